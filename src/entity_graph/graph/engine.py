"""In-memory undirected graph and breadth-first shortest paths."""

from __future__ import annotations

from collections import deque
from typing import Hashable, Iterable, Mapping, TypeVar

from .models import ConnectionEdge, PathNotFound

N = TypeVar("N", bound=Hashable)


def build_adjacency(edges: Iterable[ConnectionEdge | tuple[N, N]]) -> dict[N, set[N]]:
    """id -> set of neighbour ids; each edge is inserted in both directions."""
    adj: dict = {}
    for e in edges:
        a, b = (e.a, e.b) if isinstance(e, ConnectionEdge) else e
        adj.setdefault(a, set()).add(b)
        adj.setdefault(b, set()).add(a)
    return adj


def shortest_path(adjacency: Mapping[N, Iterable[N]], start: N, goal: N) -> list[N] | PathNotFound:
    """Minimum edge-count path from `start` to `goal`, both inclusive.

    `start == goal` short-circuits to `[start]`. An unreachable goal returns a
    falsy `PathNotFound` instead of raising. Among several shortest paths the
    one found first in neighbour iteration order wins.
    """
    if start == goal:
        return [start]

    parent: dict = {start: None}
    queue: deque = deque([start])
    while queue:
        u = queue.popleft()
        for v in adjacency.get(u, ()):
            if v in parent:
                continue
            parent[v] = u
            if v == goal:
                return _walk_back(parent, v)
            queue.append(v)
    return PathNotFound(start=start, goal=goal)


def _walk_back(parent: Mapping, node) -> list:
    path = [node]
    while parent[node] is not None:
        node = parent[node]
        path.append(node)
    path.reverse()
    return path


def is_valid_path(adjacency: Mapping[N, Iterable[N]], path: list[N]) -> bool:
    """True if every consecutive pair of `path` is an edge."""
    return bool(path) and all(b in adjacency.get(a, ()) for a, b in zip(path, path[1:]))

