"""From two names to a path of names.

Local BFS is the primary answer and is always computed. A configured graph
backend is loaded with the same users/connections and queried too; when both
produce a path their lengths must match (the concrete path may differ when
there are several shortest ones). With `backend_required` the backend path is
the answer and any backend failure is fatal; otherwise a failing backend is
logged and the local path stands.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Literal

from entity_graph.errors import EntityGraphError, EntityNotFoundError, PathMismatchError
from entity_graph.normalize import match_key

from .engine import build_adjacency, is_valid_path, shortest_path
from .models import ConnectionEdge, PathNotFound, UserRecord
from .store import GraphBackend

logger = logging.getLogger(__name__)


class NameIndex:
    """Case/diacritic-insensitive name -> ids lookup over user records."""

    def __init__(self, users: Iterable[UserRecord]):
        self.names: dict[int, str] = {}
        self._ids: dict[str, list[int]] = {}
        for u in users:
            self.names.setdefault(u.id, u.name)
            self._ids.setdefault(match_key(u.name), []).append(u.id)

    def ids(self, name: str) -> list[int]:
        return list(self._ids.get(match_key(name), []))

    def resolve(self, *spellings: str) -> int:
        """First id of the first spelling that matches anyone."""
        for s in spellings:
            ids = self._ids.get(match_key(s))
            if ids:
                return ids[0]
        raise EntityNotFoundError(f"no user named {' / '.join(spellings)}")

    def label(self, uid: int) -> str:
        return self.names.get(uid, str(uid))


@dataclass(slots=True)
class PathAnswer:
    ids: list[int]
    names: list[str]
    source: Literal["local", "backend"] = "local"
    backend_ids: list[int] | None = None

    @property
    def answer(self) -> str:
        return ",".join(self.names)


class ConnectionPathfinder:
    def __init__(
        self,
        users: list[UserRecord],
        edges: list[ConnectionEdge],
        *,
        backend: GraphBackend | None = None,
        backend_required: bool = False,
    ):
        if backend_required and backend is None:
            raise ValueError("backend_required needs a backend")
        self.users = users
        self.index = NameIndex(users)
        # Both graphs are built from the same edge list; an edge to an unknown
        # user would exist locally but be dropped by the backend.
        self.edges = [e for e in edges if e.a in self.index.names and e.b in self.index.names]
        if len(self.edges) < len(edges):
            logger.warning(f"Ignoring {len(edges) - len(self.edges)} connections to unknown users")
        self.adjacency = build_adjacency(self.edges)
        self.backend = backend
        self.backend_required = backend_required

    def _backend_path(self, backend: GraphBackend, start: int, goal: int) -> list[int] | None:
        try:
            backend.sync(self.users, self.edges)
            return backend.shortest_path(start, goal)
        except EntityGraphError as e:
            if self.backend_required:
                raise
            logger.warning(f"Graph backend failed ({e}); keeping the local path")
            return None

    def find(self, start: str | Iterable[str], goal: str | Iterable[str]) -> PathAnswer | PathNotFound:
        """Shortest path between two people given by name (or alternative spellings)."""
        start_names = [start] if isinstance(start, str) else list(start)
        goal_names = [goal] if isinstance(goal, str) else list(goal)
        start_id = self.index.resolve(*start_names)
        goal_id = self.index.resolve(*goal_names)

        local = shortest_path(self.adjacency, start_id, goal_id)
        remote = self._backend_path(self.backend, start_id, goal_id) if self.backend else None

        if remote is not None:
            if not local or len(local) != len(remote) or not is_valid_path(self.adjacency, remote):
                raise PathMismatchError(local or None, remote)
            logger.info(f"Backend path agrees with local BFS ({len(remote) - 1} hops)")

        if self.backend_required and remote is not None:
            ids, source = remote, "backend"
        elif local:
            ids, source = local, "local"
        else:
            logger.warning(f"No path between {start_id} and {goal_id}")
            return local

        return PathAnswer(
            ids=ids,
            names=[self.index.label(i) for i in ids],
            source=source,
            backend_ids=remote,
        )
