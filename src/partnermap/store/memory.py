"""In-process document store for development and tests."""

from __future__ import annotations

import copy
from typing import Any

from src.partnermap.store.adapter import DocumentStore


class MemoryDocumentStore(DocumentStore):
    """Keeps documents in a dict; copies on the way in and out."""

    name = "memory"

    def __init__(self, documents: dict[str, dict[str, Any]] | None = None) -> None:
        self._documents: dict[str, dict[str, Any]] = copy.deepcopy(documents or {})

    async def read(self, document_id: str) -> dict[str, Any] | None:
        data = self._documents.get(document_id)
        return copy.deepcopy(data) if data is not None else None

    async def write(self, document_id: str, data: dict[str, Any]) -> None:
        self._documents[document_id] = copy.deepcopy(data)

    async def ping(self) -> None:
        return None
