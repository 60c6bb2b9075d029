"""Graph engine: local BFS, the Neo4j backend, and name -> path resolution."""

from .engine import build_adjacency, shortest_path
from .models import ConnectionEdge, PathNotFound, UserRecord
from .resolution import ConnectionPathfinder, NameIndex, PathAnswer
from .store import GraphBackend

__all__ = [
    "build_adjacency",
    "shortest_path",
    "ConnectionEdge",
    "PathNotFound",
    "UserRecord",
    "ConnectionPathfinder",
    "NameIndex",
    "PathAnswer",
    "GraphBackend",
]
