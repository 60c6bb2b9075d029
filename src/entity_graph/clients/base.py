from __future__ import annotations

from typing import Any, Protocol


class OracleClient(Protocol):
    """Given an entity key, returns an opaque payload hinting at related entities."""

    def query(self, entity_key: str) -> Any: ...


class RelationalClient(Protocol):
    """Executes a query string; rows come back as a list or under `rows`/`reply`/`data`."""

    def execute(self, query_text: str) -> Any: ...


class ResultSink(Protocol):
    def report(self, task_id: str, answer: Any) -> Any: ...
