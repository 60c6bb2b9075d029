"""Graph construction from relational sources whose schema is not known upfront."""

from .builder import TabularGraphBuilder
from .cache import JsonSnapshotCache
from .candidates import DEFAULT_EDGE_COLUMN_PAIRS, DEFAULT_NAME_COLUMNS, first_success
from .rows import normalize_rows

__all__ = [
    "TabularGraphBuilder",
    "JsonSnapshotCache",
    "DEFAULT_EDGE_COLUMN_PAIRS",
    "DEFAULT_NAME_COLUMNS",
    "first_success",
    "normalize_rows",
]
