"""
Shared test fixtures for entity-graph.

Provides an in-memory oracle, a fake SQL-over-HTTP source that understands the
handful of query shapes the builder issues, and small sample graphs.
"""

import re
from typing import Any, Callable

import pytest

from entity_graph.graph.models import ConnectionEdge, UserRecord


# ---------------------------------------------------------------------------
# Oracle
# ---------------------------------------------------------------------------

class StubOracle:
    """Answers from a dict (or a callable); records every key it is asked."""

    def __init__(self, replies: dict[str, Any] | Callable[[str], Any] | None = None, fail: set[str] | None = None):
        self.replies = replies or {}
        self.fail = fail or set()
        self.calls: list[str] = []
        self.closed = False

    def query(self, entity_key: str) -> Any:
        self.calls.append(entity_key)
        if entity_key in self.fail:
            raise ConnectionError(f"oracle down for {entity_key}")
        if callable(self.replies):
            return self.replies(entity_key)
        return self.replies.get(entity_key, {"code": 0, "message": ""})

    def close(self) -> None:
        self.closed = True


# ---------------------------------------------------------------------------
# Relational source
# ---------------------------------------------------------------------------

_NAME_PROBE = re.compile(r"^SELECT id, (\w+) AS name FROM (\w+) WHERE (\w+) IS NOT NULL$")
_PAIR = re.compile(r"^SELECT (\w+) AS a, (\w+) AS b FROM (\w+)(?: LIMIT (\d+))?$")
_STAR = re.compile(r"^SELECT \* FROM (\w+)$")


class FakeDatabase:
    """Tables as lists of dicts; replies wrapped in the configured shape.

    Unknown columns produce an error reply with `reply: null`, or raise when
    `raise_on_error` is set.
    """

    def __init__(self, tables: dict[str, list[dict]], shape: str = "reply", raise_on_error: bool = False):
        self.tables = tables
        self.shape = shape
        self.raise_on_error = raise_on_error
        self.queries: list[str] = []
        self.closed = False

    def close(self) -> None:
        self.closed = True

    def _wrap(self, rows: list[dict]) -> Any:
        if self.shape == "list":
            return rows
        if self.shape == "rows":
            return {"rows": rows}
        if self.shape == "data":
            return {"data": rows}
        return {"reply": rows, "error": "OK"}

    def _error(self, msg: str) -> Any:
        if self.raise_on_error:
            raise RuntimeError(msg)
        return {"reply": None, "error": msg}

    def _columns(self, table: str) -> set[str]:
        cols: set[str] = set()
        for r in self.tables.get(table, []):
            cols |= set(r)
        return cols

    def execute(self, query_text: str) -> Any:
        self.queries.append(query_text)

        if m := _NAME_PROBE.match(query_text):
            col, table, _ = m.groups()
            if table not in self.tables or col not in self._columns(table):
                return self._error(f"Unknown column '{col}'")
            rows = [{"id": r.get("id"), "name": r[col]} for r in self.tables[table] if r.get(col) is not None]
            return self._wrap(rows)

        if m := _PAIR.match(query_text):
            a, b, table, limit = m.groups()
            cols = self._columns(table)
            if table not in self.tables or a not in cols or b not in cols:
                return self._error(f"Unknown column '{a}' or '{b}'")
            rows = [{"a": r.get(a), "b": r.get(b)} for r in self.tables[table]]
            return self._wrap(rows[: int(limit)] if limit else rows)

        if m := _STAR.match(query_text):
            table = m.group(1)
            if table not in self.tables:
                return self._error(f"Unknown table '{table}'")
            return self._wrap([dict(r) for r in self.tables[table]])

        return self._error(f"Unsupported query: {query_text}")


@pytest.fixture
def stub_oracle():
    return StubOracle


@pytest.fixture
def fake_db():
    return FakeDatabase


# ---------------------------------------------------------------------------
# Sample data
# ---------------------------------------------------------------------------

@pytest.fixture
def trio_users() -> list[UserRecord]:
    return [UserRecord(1, "Rafal"), UserRecord(2, "Anna"), UserRecord(3, "Barbara")]


@pytest.fixture
def trio_edges() -> list[ConnectionEdge]:
    return [ConnectionEdge(1, 2), ConnectionEdge(2, 3)]


@pytest.fixture
def social_tables() -> dict[str, list[dict]]:
    """users + connections with a non-obvious name column and string ids."""
    return {
        "users": [
            {"id": "1", "nickname": "Rafał", "access_level": "user"},
            {"id": "2", "nickname": "Anna", "access_level": "admin"},
            {"id": "3", "nickname": "Barbara", "access_level": "user"},
            {"id": "4", "nickname": "Zygfryd", "access_level": "user"},
        ],
        "connections": [
            {"user1_id": "1", "user2_id": "2"},
            {"user1_id": "2", "user2_id": "3"},
            {"user1_id": "1", "user2_id": "4"},
        ],
    }
