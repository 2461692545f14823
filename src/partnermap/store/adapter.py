"""Document store abstract base class -- the interface every backend implements.

The whole directory is one JSON document addressed by a fixed id. Backends
only read and overwrite that document; they know nothing about regions or
partners. Every backend failure surfaces as StoreError so callers can apply
one fallback policy regardless of the backend.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class StoreError(Exception):
    """A document store could not complete a read or write."""


class DocumentStore(ABC):
    """Abstract key-document store.

    Methods:
        read: Return the stored document for an id, or None when absent.
        write: Overwrite (or create) the document for an id.
    """

    name: str = "abstract"

    @abstractmethod
    async def read(self, document_id: str) -> dict[str, Any] | None:
        """Return the stored document, None when no document exists.

        Raises:
            StoreError: If the backend cannot be reached or answers badly.
        """
        ...

    @abstractmethod
    async def write(self, document_id: str, data: dict[str, Any]) -> None:
        """Overwrite the stored document.

        Raises:
            StoreError: If the write is rejected or the backend is unreachable.
        """
        ...

    async def ping(self) -> None:
        """Check backend reachability (default: a read)."""
        await self.read("__ping__")

    async def close(self) -> None:
        """Release backend resources."""
        return None
