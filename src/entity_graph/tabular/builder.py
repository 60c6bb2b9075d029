"""Schema inference by probing.

The relational source exposes no metadata, so the builder asks questions and
looks at what comes back: first a declarative list of likely column names,
then, if none of them works, a `SELECT *` whose rows are typed column by
column. Candidates are tried one at a time in a fixed order, so the same
source always yields the same columns.
"""

from __future__ import annotations

import logging
from itertools import combinations
from typing import Sequence

from entity_graph.clients.base import RelationalClient
from entity_graph.errors import SchemaInferenceError
from entity_graph.graph.models import ConnectionEdge, UserRecord

from .cache import JsonSnapshotCache
from .candidates import DEFAULT_EDGE_COLUMN_PAIRS, DEFAULT_NAME_COLUMNS, first_success
from .rows import Row, as_int, as_name, is_text, normalize_rows

logger = logging.getLogger(__name__)


def parse_users(rows: list[Row], id_key: str = "id", name_key: str = "name") -> list[UserRecord]:
    users: list[UserRecord] = []
    for r in rows:
        uid = as_int(r.get(id_key))
        name = as_name(r.get(name_key))
        if uid is not None and name is not None:
            users.append(UserRecord(id=uid, name=name))
    return users


def parse_edges(rows: list[Row], a_key: str = "a", b_key: str = "b") -> list[ConnectionEdge]:
    edges: list[ConnectionEdge] = []
    for r in rows:
        a = as_int(r.get(a_key))
        b = as_int(r.get(b_key))
        if a is not None and b is not None:
            edges.append(ConnectionEdge(a=a, b=b))
    return edges


def _columns(rows: list[Row]) -> list[str]:
    seen: dict[str, None] = {}
    for r in rows:
        for k in r:
            seen.setdefault(k, None)
    return list(seen)


def integer_columns(rows: list[Row]) -> list[str]:
    """Columns whose non-null values all coerce to int (at least one present)."""
    out = []
    for col in _columns(rows):
        values = [r.get(col) for r in rows if r.get(col) is not None]
        if values and all(as_int(v) is not None for v in values):
            out.append(col)
    return out


def text_columns(rows: list[Row]) -> list[str]:
    return [col for col in _columns(rows) if any(is_text(r.get(col)) for r in rows)]


def infer_user_columns(rows: list[Row], preferred: Sequence[str] = ()) -> tuple[str, str] | None:
    """(id column, name column) for an untyped users table, or None."""
    cols = _columns(rows)
    ints = integer_columns(rows)
    id_col = next((c for c in cols if c.lower() == "id"), None) or (ints[0] if ints else None)
    if id_col is None:
        return None
    texts = [c for c in text_columns(rows) if c != id_col]
    if not texts:
        return None
    wanted = {p.lower() for p in preferred}
    name_col = next((c for c in texts if c.lower() in wanted), texts[0])
    return id_col, name_col


def score_pair(rows: list[Row], a_col: str, b_col: str, known_ids: set[int]) -> int:
    """Rows whose two values are ints that are both known user ids.

    With no known ids every all-int row counts.
    """
    score = 0
    for r in rows:
        a = as_int(r.get(a_col))
        b = as_int(r.get(b_col))
        if a is None or b is None:
            continue
        if not known_ids or (a in known_ids and b in known_ids):
            score += 1
    return score


def infer_edge_columns(rows: list[Row], known_ids: set[int]) -> tuple[str, str] | None:
    """Best-scoring pair of integer columns; ties go to the earlier pair."""
    ints = integer_columns(rows)
    # A surrogate key would tie with a real endpoint column whenever row
    # numbers overlap user ids.
    if len(ints) > 2:
        ints = [c for c in ints if c.lower() != "id"]
    best: tuple[str, str] | None = None
    best_score = -1
    for a_col, b_col in combinations(ints, 2):
        score = score_pair(rows, a_col, b_col, known_ids)
        if score > best_score:
            best, best_score = (a_col, b_col), score
    return best


class TabularGraphBuilder:
    """Builds `UserRecord`s and `ConnectionEdge`s from an opaque relational source.

    Results are memoized per instance (and optionally snapshotted to disk), so
    `build_users`/`build_connections` can be called repeatedly.
    """

    def __init__(
        self,
        client: RelationalClient,
        *,
        users_table: str = "users",
        connections_table: str = "connections",
        name_columns: Sequence[str] = DEFAULT_NAME_COLUMNS,
        edge_column_pairs: Sequence[tuple[str, str]] = DEFAULT_EDGE_COLUMN_PAIRS,
        probe_limit: int = 10,
        score_sample: int = 200,
        cache: JsonSnapshotCache | None = None,
    ):
        self.client = client
        self.users_table = users_table
        self.connections_table = connections_table
        self.name_columns = tuple(name_columns)
        self.edge_column_pairs = tuple(edge_column_pairs)
        self.probe_limit = probe_limit
        self.score_sample = score_sample
        self.cache = cache

        self.user_columns: tuple[str, str] | None = None
        self.edge_columns: tuple[str, str] | None = None
        self._users: list[UserRecord] | None = None
        self._edges: list[ConnectionEdge] | None = None

    def _rows(self, query: str) -> list[Row]:
        logger.debug(f"[db] {query}")
        return normalize_rows(self.client.execute(query))

    # --- users ---

    def _probe_name_column(self, col: str) -> list[UserRecord]:
        t = self.users_table
        return parse_users(self._rows(f"SELECT id, {col} AS name FROM {t} WHERE {col} IS NOT NULL"))

    def build_users(self) -> list[UserRecord]:
        if self._users is not None:
            return self._users
        if self.cache and (cached := self.cache.load_users()):
            logger.info(f"Using {len(cached)} cached users")
            self._users = cached
            return cached

        hit = first_success(self.name_columns, self._probe_name_column)
        if hit:
            col, users = hit
            self.user_columns = ("id", col)
            logger.info(f"Users table: name column is {col!r} ({len(users)} users)")
        else:
            users = self._users_from_full_scan()

        self._users = users
        if self.cache:
            self.cache.save_users(users, self.user_columns[1] if self.user_columns else None)
        return users

    def _users_from_full_scan(self) -> list[UserRecord]:
        logger.info(f"No name candidate matched; inferring columns of {self.users_table} from SELECT *")
        try:
            rows = self._rows(f"SELECT * FROM {self.users_table}")
        except Exception as e:
            raise SchemaInferenceError(f"cannot read table {self.users_table!r}") from e
        cols = infer_user_columns(rows, preferred=self.name_columns)
        if cols is None:
            raise SchemaInferenceError(
                f"no id/name columns found in {self.users_table!r} "
                f"(tried {', '.join(self.name_columns)} and a full scan of {len(rows)} rows)"
            )
        users = parse_users(rows, *cols)
        if not users:
            raise SchemaInferenceError(f"{self.users_table!r} has no rows with a usable id and name")
        self.user_columns = cols
        logger.info(f"Users table: inferred id={cols[0]!r} name={cols[1]!r} ({len(users)} users)")
        return users

    # --- connections ---

    def _pair_query(self, pair: tuple[str, str], limit: int | None = None) -> str:
        a, b = pair
        q = f"SELECT {a} AS a, {b} AS b FROM {self.connections_table}"
        return f"{q} LIMIT {limit}" if limit else q

    def _probe_pair(self, pair: tuple[str, str]) -> list[ConnectionEdge]:
        return parse_edges(self._rows(self._pair_query(pair, self.probe_limit)))

    def build_connections(self, users: list[UserRecord] | None = None) -> list[ConnectionEdge]:
        if self._edges is not None:
            return self._edges
        if self.cache and (cached := self.cache.load_connections()):
            logger.info(f"Using {len(cached)} cached connections")
            self._edges = cached
            return cached

        hit = first_success(self.edge_column_pairs, self._probe_pair)
        if hit:
            pair, _ = hit
            try:
                edges = parse_edges(self._rows(self._pair_query(pair)))
            except Exception as e:
                raise SchemaInferenceError(
                    f"cannot read {pair[0]!r}/{pair[1]!r} from {self.connections_table!r}: {e}"
                ) from e
            self.edge_columns = pair
            logger.info(f"Connections table: columns {pair[0]!r}/{pair[1]!r} ({len(edges)} edges)")
        else:
            known = {u.id for u in (users if users is not None else self.build_users())}
            edges = self._edges_from_full_scan(known)

        self._edges = edges
        if self.cache:
            self.cache.save_connections(edges, self.edge_columns)
        return edges

    def _edges_from_full_scan(self, known_ids: set[int]) -> list[ConnectionEdge]:
        t = self.connections_table
        logger.info(f"No column pair matched; inferring columns of {t} from SELECT *")
        try:
            rows = self._rows(f"SELECT * FROM {t}")
        except Exception as e:
            raise SchemaInferenceError(f"cannot read table {t!r}") from e
        pair = infer_edge_columns(rows[: self.score_sample], known_ids)
        if pair is None:
            raise SchemaInferenceError(f"{t!r} has fewer than two integer columns")
        self.edge_columns = pair
        edges = parse_edges(rows, *pair)
        logger.info(f"Connections table: inferred {pair[0]!r}/{pair[1]!r} ({len(edges)} edges)")
        return edges
