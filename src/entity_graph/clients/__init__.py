"""External collaborators: oracle, relational source, result sink."""

from .base import OracleClient, RelationalClient, ResultSink
from .oracle import HttpOracleClient
from .relational import HttpRelationalClient
from .report import ReportClient

__all__ = [
    "OracleClient",
    "RelationalClient",
    "ResultSink",
    "HttpOracleClient",
    "HttpRelationalClient",
    "ReportClient",
]
