"""Document store layer -- pluggable backends for the single directory document.

Provides abstract DocumentStore interface with concrete implementations:
- SupabaseDocumentStore: PostgREST table over HTTP (the hosted deployment)
- PostgresDocumentStore: JSONB row via SQLAlchemy async
- MemoryDocumentStore: in-process dict (development and tests)
- LocalCacheStore: JSON file used as the fallback cache

create_document_store() picks the primary backend from settings.
"""

from __future__ import annotations

from src.partnermap.config import Settings, StoreBackend
from src.partnermap.store.adapter import DocumentStore, StoreError
from src.partnermap.store.local import LocalCacheStore
from src.partnermap.store.memory import MemoryDocumentStore
from src.partnermap.store.supabase import SupabaseDocumentStore


def create_document_store(settings: Settings) -> DocumentStore:
    """Build the primary document store configured by STORE_BACKEND."""
    if settings.STORE_BACKEND == StoreBackend.supabase:
        return SupabaseDocumentStore(
            url=settings.SUPABASE_URL,
            api_key=settings.SUPABASE_ANON_KEY,
            table=settings.SUPABASE_TABLE,
            timeout=settings.STORE_TIMEOUT_SECONDS,
        )
    if settings.STORE_BACKEND == StoreBackend.postgres:
        from src.partnermap.core.database import get_session
        from src.partnermap.store.postgres import PostgresDocumentStore

        return PostgresDocumentStore(session_factory=get_session)
    return MemoryDocumentStore()


def create_local_cache(settings: Settings) -> LocalCacheStore:
    """Build the local fallback cache configured by LOCAL_CACHE_PATH/KEY."""
    return LocalCacheStore(path=settings.LOCAL_CACHE_PATH, cache_key=settings.LOCAL_CACHE_KEY)


__all__ = [
    "DocumentStore",
    "StoreError",
    "LocalCacheStore",
    "MemoryDocumentStore",
    "SupabaseDocumentStore",
    "create_document_store",
    "create_local_cache",
]
