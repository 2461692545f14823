"""Local fallback cache -- the document as JSON in a file on this host.

The file holds an object keyed by cache key, e.g.
{"partner-map-france:v1": {"regions": [...]}}, so several documents can share
one file. Writes go through a temp file and an atomic rename.
"""

from __future__ import annotations

import asyncio
import contextlib
import json
import os
import tempfile
from pathlib import Path
from typing import Any

import structlog

from src.partnermap.store.adapter import DocumentStore, StoreError

logger = structlog.get_logger(__name__)


class LocalCacheStore(DocumentStore):
    """DocumentStore backed by a JSON file.

    The document id passed to read/write is ignored in favour of the fixed
    cache key, so the cache always mirrors the single live document.

    Args:
        path: JSON file location (created on first write).
        cache_key: Key the document is stored under inside the file.
    """

    name = "local_cache"

    def __init__(self, path: str | Path, cache_key: str) -> None:
        self._path = Path(path)
        self._key = cache_key

    def _load_file(self) -> dict[str, Any]:
        if not self._path.exists():
            return {}
        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise StoreError(f"cannot read local cache {self._path}: {exc}") from exc
        if not isinstance(raw, dict):
            raise StoreError(f"local cache {self._path} is not a JSON object")
        return raw

    def _read_sync(self) -> dict[str, Any] | None:
        data = self._load_file().get(self._key)
        return data if isinstance(data, dict) else None

    def _write_sync(self, data: dict[str, Any]) -> None:
        try:
            content = self._load_file()
        except StoreError:
            logger.warning("local_cache.replacing_unreadable_file", path=str(self._path))
            content = {}
        content[self._key] = data

        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self._path.parent, prefix=self._path.name, suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(content, f, ensure_ascii=False)
                os.replace(tmp_name, self._path)
            except Exception:
                with contextlib.suppress(OSError):
                    os.unlink(tmp_name)
                raise
        except OSError as exc:
            raise StoreError(f"cannot write local cache {self._path}: {exc}") from exc

    async def read(self, document_id: str) -> dict[str, Any] | None:
        return await asyncio.to_thread(self._read_sync)

    async def write(self, document_id: str, data: dict[str, Any]) -> None:
        await asyncio.to_thread(self._write_sync, data)

    async def ping(self) -> None:
        await asyncio.to_thread(self._load_file)
