from __future__ import annotations

import logging
from typing import Callable, Iterable, TypeVar

logger = logging.getLogger(__name__)

C = TypeVar("C")
R = TypeVar("R")

# Tried in order; the first one that produces well-typed rows wins.
DEFAULT_NAME_COLUMNS: tuple[str, ...] = (
    "name",
    "username",
    "first_name",
    "firstname",
    "full_name",
    "fullname",
    "nickname",
    "login",
)

DEFAULT_EDGE_COLUMN_PAIRS: tuple[tuple[str, str], ...] = (
    ("user1_id", "user2_id"),
    ("user_id_1", "user_id_2"),
    ("from_user", "to_user"),
    ("from_id", "to_id"),
    ("src", "dst"),
    ("a", "b"),
    ("u1", "u2"),
)


def first_success(candidates: Iterable[C], probe: Callable[[C], R | None]) -> tuple[C, R] | None:
    """Run `probe` on each candidate in order; return the first truthy result.

    A probe that raises counts as a miss (the source rejects unknown columns).
    Probing stops at the first success.
    """
    for candidate in candidates:
        try:
            result = probe(candidate)
        except Exception as e:
            logger.debug(f"Candidate {candidate!r} rejected: {e}")
            continue
        if result:
            return candidate, result
        logger.debug(f"Candidate {candidate!r} produced no usable rows")
    return None
