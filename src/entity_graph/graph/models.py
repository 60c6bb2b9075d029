from __future__ import annotations

from dataclasses import dataclass
from typing import Hashable


@dataclass(frozen=True, slots=True)
class UserRecord:
    """A row of the users table; `id` is the join key for connections."""

    id: int
    name: str


@dataclass(frozen=True, slots=True)
class ConnectionEdge:
    """Unordered pair of user ids."""

    a: int
    b: int

    def as_dict(self) -> dict[str, int]:
        return {"a": self.a, "b": self.b}


@dataclass(frozen=True, slots=True)
class PathNotFound:
    """Soft result of a local search whose goal is unreachable."""

    start: Hashable
    goal: Hashable

    def __bool__(self) -> bool:
        return False
