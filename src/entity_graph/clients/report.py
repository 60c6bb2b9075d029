from __future__ import annotations

import logging
from typing import Any

import httpx

from entity_graph.errors import EntityGraphError
from entity_graph.http import HttpClientFactory, transient_retry

logger = logging.getLogger(__name__)


class ReportClient:
    """Submits a final answer to `<base_url>/report`."""

    def __init__(
        self,
        base_url: str,
        *,
        api_key: str | None = None,
        transport: httpx.BaseTransport | None = None,
    ):
        self._api_key = api_key or ""
        self._client = HttpClientFactory.client(
            base_url=base_url.rstrip("/"),
            headers={"Content-Type": "application/json"},
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    @transient_retry()
    def _post(self, payload: dict[str, Any]) -> httpx.Response:
        return self._client.post("/report", json=payload)

    def report(self, task_id: str, answer: Any) -> Any:
        r = self._post({"task": task_id, "apikey": self._api_key, "answer": answer})
        try:
            r.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(f"Report for task {task_id!r} rejected: {r.status_code} {r.text}")
            raise EntityGraphError(f"report rejected with HTTP {r.status_code}", stage="report") from e
        try:
            return r.json()
        except ValueError:
            return r.text
