from __future__ import annotations

from typing import Any

import httpx

from entity_graph.http import HttpClientFactory, transient_retry


class HttpRelationalClient:
    """SQL-over-HTTP endpoint (`{task, apikey, query}` -> JSON)."""

    def __init__(
        self,
        url: str,
        *,
        api_key: str | None = None,
        task: str = "database",
        timeout_s: float = 20.0,
        transport: httpx.BaseTransport | None = None,
    ):
        self.url = url
        self.task = task
        self._api_key = api_key or ""
        self._client = HttpClientFactory.client(
            headers={"Content-Type": "application/json"},
            read_timeout=timeout_s,
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> HttpRelationalClient:
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    @transient_retry()
    def execute(self, query_text: str) -> Any:
        r = self._client.post(
            self.url, json={"task": self.task, "apikey": self._api_key, "query": query_text}
        )
        r.raise_for_status()
        return r.json()
