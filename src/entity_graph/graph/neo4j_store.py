from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable

from neo4j.exceptions import (
    AuthError,
    DriverError,
    Neo4jError,
    ServiceUnavailable,
    SessionExpired,
    TransientError,
)
from tenacity import RetryError, Retrying, retry_if_exception_type, stop_after_delay, wait_fixed

from entity_graph.errors import BackendPathNotFoundError, BackendUnavailableError

from .models import ConnectionEdge, UserRecord

logger = logging.getLogger(__name__)

_NOT_READY = (ServiceUnavailable, SessionExpired, TransientError, OSError)


@dataclass(slots=True)
class Neo4jConfig:
    uri: str
    user: str
    password: str
    database: str = "neo4j"
    # ingestion performance
    batch_size: int = 500
    # readiness polling
    ready_timeout_s: float = 60.0
    poll_interval_s: float = 1.0
    max_hops: int = 20


def batched(it: Iterable, batch_size: int) -> Iterable[list]:
    batch: list = []
    for x in it:
        batch.append(x)
        if len(batch) >= batch_size:
            yield batch
            batch = []
    if batch:
        yield batch


class Neo4jGraphBackend:
    """Neo4j-backed copy of the users/connections graph.

    Users become `(:Person {userId, username})`, each connection a pair of
    `KNOWS` relationships so a directed shortestPath behaves undirected.
    `sync` wipes the database first, so calling it twice is safe.

    Unlike the local BFS, an unreachable backend or a missing path raises.
    """

    def __init__(self, cfg: Neo4jConfig, driver: Any | None = None):
        self.cfg = cfg
        if driver is None:
            from neo4j import GraphDatabase

            # Driver is thread-safe; sessions are lightweight.
            driver = GraphDatabase.driver(cfg.uri, auth=(cfg.user, cfg.password))
        self._driver = driver
        self._ready = False

    def close(self) -> None:
        self._driver.close()

    def _ping(self) -> None:
        with self._driver.session(database=self.cfg.database) as s:
            s.run("RETURN 1").consume()

    def wait_until_ready(self) -> None:
        if self._ready:
            return
        retrying = Retrying(
            stop=stop_after_delay(self.cfg.ready_timeout_s),
            wait=wait_fixed(self.cfg.poll_interval_s),
            retry=retry_if_exception_type(_NOT_READY),
        )
        try:
            retrying(self._ping)
        except RetryError as e:
            raise BackendUnavailableError(
                f"Neo4j at {self.cfg.uri} not ready within {self.cfg.ready_timeout_s:.0f}s"
            ) from e.last_attempt.exception()
        except AuthError as e:
            raise BackendUnavailableError(f"Neo4j at {self.cfg.uri} rejected credentials") from e
        except (Neo4jError, DriverError) as e:
            raise BackendUnavailableError(f"Neo4j at {self.cfg.uri} failed its readiness check: {e}") from e
        self._ready = True
        logger.info(f"Neo4j ready at {self.cfg.uri}")

    def query(self, cypher: str, params: dict[str, Any] | None = None) -> list[dict[str, Any]]:
        self.wait_until_ready()
        try:
            with self._driver.session(database=self.cfg.database) as s:
                res = s.run(cypher, **(params or {}))
                return [dict(r) for r in res]
        except (Neo4jError, DriverError) as e:
            raise BackendUnavailableError(f"Neo4j query failed: {e}") from e

    def sync(self, users: list[UserRecord], edges: list[ConnectionEdge]) -> None:
        self.wait_until_ready()
        try:
            with self._driver.session(database=self.cfg.database) as s:
                s.run("MATCH (n) DETACH DELETE n").consume()
                s.run(
                    "CREATE CONSTRAINT person_user_id IF NOT EXISTS "
                    "FOR (p:Person) REQUIRE p.userId IS UNIQUE"
                ).consume()
                for batch in batched(users, self.cfg.batch_size):
                    s.execute_write(self._create_people_tx, batch)
                for batch in batched(edges, self.cfg.batch_size):
                    s.execute_write(self._create_knows_tx, batch)
        except (Neo4jError, DriverError) as e:
            raise BackendUnavailableError(f"Neo4j sync failed: {e}") from e
        logger.info(f"Loaded {len(users)} people and {len(edges)} connections into Neo4j")

    @staticmethod
    def _create_people_tx(tx, batch: list[UserRecord]):
        rows = [{"id": u.id, "name": u.name} for u in batch]
        q = """
        UNWIND $rows AS row
        MERGE (p:Person {userId: row.id})
        SET p.username = row.name
        """
        tx.run(q, rows=rows)

    @staticmethod
    def _create_knows_tx(tx, batch: list[ConnectionEdge]):
        rows = [e.as_dict() for e in batch]
        q = """
        UNWIND $rows AS row
        MATCH (a:Person {userId: row.a})
        MATCH (b:Person {userId: row.b})
        MERGE (a)-[:KNOWS]->(b)
        MERGE (b)-[:KNOWS]->(a)
        """
        tx.run(q, rows=rows)

    def shortest_path(self, start_id: int, goal_id: int) -> list[int]:
        if start_id == goal_id:
            rows = self.query("MATCH (p:Person {userId: $id}) RETURN p.userId AS id", {"id": start_id})
            if not rows:
                raise BackendPathNotFoundError(f"user {start_id} is not loaded in Neo4j")
            return [start_id]

        # Variable-length bounds cannot be parameterized.
        max_hops = max(1, int(self.cfg.max_hops))
        q = f"""
        MATCH (start:Person {{userId: $start}}), (goal:Person {{userId: $goal}})
        MATCH p = shortestPath((start)-[:KNOWS*..{max_hops}]->(goal))
        RETURN [n IN nodes(p) | n.userId] AS ids
        """
        rows = self.query(q, {"start": start_id, "goal": goal_id})
        ids = rows[0].get("ids") if rows else None
        if not ids:
            raise BackendPathNotFoundError(
                f"Neo4j returned no path from {start_id} to {goal_id} within {max_hops} hops"
            )
        return [int(x) for x in ids]
