from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from entity_graph.graph.models import ConnectionEdge, UserRecord

logger = logging.getLogger(__name__)


class JsonSnapshotCache:
    """Users/connections snapshots as JSON files in one directory.

    Only an optimization: a missing or unreadable file is a cache miss.
    """

    USERS = "users.json"
    CONNECTIONS = "connections.json"
    USERS_COLUMN = "users_name_column.json"
    CONNECTIONS_COLUMNS = "connections_columns.json"

    def __init__(self, directory: str | Path):
        self.dir = Path(directory).expanduser()

    def _read(self, name: str) -> Any:
        path = self.dir / name
        if not path.exists():
            return None
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable cache file {path}: {e}")
            return None

    def _write(self, name: str, value: Any) -> None:
        self.dir.mkdir(parents=True, exist_ok=True)
        (self.dir / name).write_text(json.dumps(value, indent=2, ensure_ascii=False), encoding="utf-8")

    def load_users(self) -> list[UserRecord] | None:
        data = self._read(self.USERS)
        if not data:
            return None
        return [UserRecord(id=int(d["id"]), name=str(d["name"])) for d in data]

    def save_users(self, users: list[UserRecord], column: str | None = None) -> None:
        self._write(self.USERS, [{"id": u.id, "name": u.name} for u in users])
        if column:
            self._write(self.USERS_COLUMN, {"column": column})

    def load_connections(self) -> list[ConnectionEdge] | None:
        data = self._read(self.CONNECTIONS)
        if not data:
            return None
        return [ConnectionEdge(a=int(d["a"]), b=int(d["b"])) for d in data]

    def save_connections(self, edges: list[ConnectionEdge], columns: tuple[str, str] | None = None) -> None:
        self._write(self.CONNECTIONS, [e.as_dict() for e in edges])
        if columns:
            self._write(self.CONNECTIONS_COLUMNS, {"a": columns[0], "b": columns[1]})
