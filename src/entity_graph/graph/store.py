from __future__ import annotations

from typing import Protocol

from .models import ConnectionEdge, UserRecord


class GraphBackend(Protocol):
    """External graph database used as an optional cross-check of local BFS."""

    def sync(self, users: list[UserRecord], edges: list[ConnectionEdge]) -> None: ...

    def shortest_path(self, start_id: int, goal_id: int) -> list[int]: ...

    def close(self) -> None: ...
