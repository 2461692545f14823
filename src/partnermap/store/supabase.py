"""Supabase document store -- one row per document in a PostgREST table.

Table layout: partner_map(id text primary key, data jsonb). Reads go through
GET /rest/v1/<table>?id=eq.<id>&select=data and retry transient transport
errors (tenacity, 3 attempts, exponential backoff). Writes are a single
upsert on the primary key and are never retried: the next mutation writes
the whole document again anyway.
"""

from __future__ import annotations

from typing import Any

import httpx
import structlog
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from src.partnermap.store.adapter import DocumentStore, StoreError

logger = structlog.get_logger(__name__)

_read_retry = retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=0.5, min=0.5, max=4),
    retry=retry_if_exception_type((httpx.ConnectError, httpx.TimeoutException)),
    reraise=True,
)


class SupabaseDocumentStore(DocumentStore):
    """DocumentStore backed by a Supabase (PostgREST) table.

    Args:
        url: Supabase project URL, e.g. https://xyz.supabase.co
        api_key: anon (or service) key, sent as apikey and Bearer token.
        table: Table holding the documents.
        timeout: Per-request timeout in seconds.
        transport: Optional httpx transport (tests use httpx.MockTransport).
    """

    name = "supabase"

    def __init__(
        self,
        url: str,
        api_key: str,
        table: str = "partner_map",
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not url or not api_key:
            raise ValueError("Supabase URL and key are required")
        self._table_url = f"{url.rstrip('/')}/rest/v1/{table}"
        self._headers = {
            "apikey": api_key,
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        }
        self._timeout = timeout
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        """Create a new httpx client for one operation."""
        return httpx.AsyncClient(
            headers=self._headers,
            timeout=self._timeout,
            transport=self._transport,
        )

    @_read_retry
    async def _select(self, params: dict[str, str]) -> list[Any]:
        async with self._client() as client:
            response = await client.get(self._table_url, params=params)
            response.raise_for_status()
            return response.json()

    async def read(self, document_id: str) -> dict[str, Any] | None:
        try:
            rows = await self._select({"id": f"eq.{document_id}", "select": "data"})
        except (httpx.HTTPError, ValueError) as exc:
            raise StoreError(f"Supabase read failed for {document_id}: {exc}") from exc

        if not isinstance(rows, list) or not rows:
            return None
        data = rows[0].get("data") if isinstance(rows[0], dict) else None
        return data if isinstance(data, dict) else None

    async def write(self, document_id: str, data: dict[str, Any]) -> None:
        try:
            async with self._client() as client:
                response = await client.post(
                    self._table_url,
                    params={"on_conflict": "id"},
                    headers={"Prefer": "resolution=merge-duplicates,return=minimal"},
                    json={"id": document_id, "data": data},
                )
                response.raise_for_status()
        except httpx.HTTPError as exc:
            raise StoreError(f"Supabase write failed for {document_id}: {exc}") from exc

        logger.debug("supabase.document_written", document_id=document_id)

    async def ping(self) -> None:
        try:
            await self._select({"select": "id", "limit": "1"})
        except (httpx.HTTPError, ValueError) as exc:
            raise StoreError(f"Supabase unreachable: {exc}") from exc
