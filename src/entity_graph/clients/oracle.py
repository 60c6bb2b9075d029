from __future__ import annotations

from typing import Any

import httpx

from entity_graph.http import HttpClientFactory, transient_retry


class HttpOracleClient:
    """Oracle endpoint that answers `{apikey, query}` POSTs.

    One instance per endpoint (people, places). Replies are returned as decoded
    JSON when possible, otherwise as text; callers treat them as opaque.
    """

    def __init__(
        self,
        url: str,
        *,
        api_key: str | None = None,
        timeout_s: float = 15.0,
        transport: httpx.BaseTransport | None = None,
    ):
        self.url = url
        self._api_key = api_key or ""
        self._client = HttpClientFactory.client(
            headers={"Content-Type": "application/json"},
            read_timeout=timeout_s,
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> HttpOracleClient:
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    @transient_retry()
    def query(self, entity_key: str) -> Any:
        r = self._client.post(self.url, json={"apikey": self._api_key, "query": entity_key})
        r.raise_for_status()
        try:
            return r.json()
        except ValueError:
            return r.text
