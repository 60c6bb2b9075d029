"""Exception taxonomy.

Every fatal failure carries the pipeline stage it came from so callers can
print a diagnostic without inspecting the concrete type. Soft outcomes (a
local path that does not exist, a discovery run that never found its target)
are plain return values and never raise.
"""

from __future__ import annotations

from typing import Literal

Stage = Literal["discovery", "schema_inference", "path_search", "backend", "resolution", "report"]


class EntityGraphError(RuntimeError):
    stage: Stage = "discovery"

    def __init__(self, message: str, *, stage: Stage | None = None):
        super().__init__(message)
        if stage is not None:
            self.stage = stage


class SchemaInferenceError(EntityGraphError):
    """No candidate column (or column pair) yielded usable rows."""

    stage: Stage = "schema_inference"


class EntityNotFoundError(EntityGraphError):
    """A start/goal name did not resolve to any known id."""

    stage: Stage = "resolution"


class BackendUnavailableError(EntityGraphError):
    stage: Stage = "backend"


class BackendPathNotFoundError(EntityGraphError):
    stage: Stage = "backend"


class PathMismatchError(EntityGraphError):
    """Local BFS and the graph backend disagree on a shortest path (length or edges)."""

    stage: Stage = "path_search"

    def __init__(self, local: list[int] | None, remote: list[int]):
        if local is None:
            msg = f"backend found path {remote} but local BFS found none"
        else:
            msg = f"local path {local} and backend path {remote} disagree"
        super().__init__(msg)
        self.local = local
        self.remote = remote
