"""Shared fixtures for partner map tests.

Provides:
- Isolated settings (admin password, JWT secret, temp cache path) per test
- A three-region catalog and a stored document with one partner
- DirectoryService over MemoryDocumentStore + LocalCacheStore
- Async HTTP client against the v1 router with the service on app.state
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from typing import Any

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from src.partnermap.config import get_settings
from src.partnermap.directory.catalog import CatalogRegion
from src.partnermap.directory.service import DirectoryService
from src.partnermap.store.adapter import DocumentStore, StoreError
from src.partnermap.store.local import LocalCacheStore
from src.partnermap.store.memory import MemoryDocumentStore

ADMIN_PASSWORD = "sesame"
DOCUMENT_ID = "france"

CATALOG = (
    CatalogRegion("idf", "Paris"),
    CatalogRegion("bre", "Bretagne"),
    CatalogRegion("occ", "Occitanie"),
)


class FailingStore(DocumentStore):
    """DocumentStore whose every call fails, like an unreachable backend."""

    name = "failing"

    def __init__(self) -> None:
        self.write_attempts = 0

    async def read(self, document_id: str) -> dict[str, Any] | None:
        raise StoreError("connection refused")

    async def write(self, document_id: str, data: dict[str, Any]) -> None:
        self.write_attempts += 1
        raise StoreError("connection refused")

    async def ping(self) -> None:
        raise StoreError("connection refused")


def stored_document() -> dict[str, Any]:
    """A stored document in the camelCase shape the stores hold."""
    return {
        "regions": [
            {
                "id": "idf",
                "name": "Paris",
                "partners": [
                    {
                        "id": "p-acme",
                        "name": "Acme",
                        "city": "Paris",
                        "address": "10 rue de Rivoli",
                        "status": "gold",
                        "logo": "",
                        "contacts": [
                            {
                                "id": "c-joe",
                                "firstName": "Joe",
                                "lastName": "Martin",
                                "title": "CTO",
                                "email": "joe@acme.fr",
                                "phone": "",
                                "verticals": ["Retail"],
                                "namedAccounts": ["Carrefour", "Decathlon"],
                                "territory": "Nord",
                            }
                        ],
                        "projects": [
                            {
                                "id": "prj-migration",
                                "name": "Cloud migration",
                                "description": "Move ERP",
                                "status": "Gagné",
                                "icName": "Alice",
                            }
                        ],
                    }
                ],
            },
            {"id": "bre", "name": "Bretagne", "partners": []},
            {"id": "occ", "name": "Occitanie", "partners": []},
        ]
    }


@pytest.fixture(autouse=True)
def settings_env(monkeypatch, tmp_path):
    """Point settings at test values and a per-test cache file."""
    monkeypatch.setenv("ADMIN_PASSWORD", ADMIN_PASSWORD)
    monkeypatch.setenv("JWT_SECRET_KEY", "test-secret")
    monkeypatch.setenv("STORE_BACKEND", "memory")
    monkeypatch.setenv("LOCAL_CACHE_PATH", str(tmp_path / "cache.json"))
    monkeypatch.setenv("SENTRY_DSN", "")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def catalog() -> tuple[CatalogRegion, ...]:
    return CATALOG


@pytest.fixture
def raw_document() -> dict[str, Any]:
    return stored_document()


@pytest.fixture
def failing_store() -> FailingStore:
    return FailingStore()


@pytest.fixture
def memory_store() -> MemoryDocumentStore:
    return MemoryDocumentStore({DOCUMENT_ID: stored_document()})


@pytest.fixture
def cache_store(tmp_path) -> LocalCacheStore:
    return LocalCacheStore(tmp_path / "cache.json", cache_key="partner-map-test:v1")


@pytest_asyncio.fixture
async def directory(memory_store, cache_store) -> AsyncGenerator[DirectoryService, None]:
    """DirectoryService loaded from the memory store."""
    service = DirectoryService(
        store=memory_store,
        cache=cache_store,
        catalog=CATALOG,
        document_id=DOCUMENT_ID,
    )
    await service.load()
    yield service
    await service.flush()


def make_app(directory: DirectoryService | None):
    """Create a minimal FastAPI app with the v1 router and the given service."""
    from fastapi import FastAPI

    from src.partnermap.api.v1.router import router

    app = FastAPI()
    app.include_router(router)
    if directory is not None:
        app.state.directory = directory
    return app


@pytest_asyncio.fixture
async def client(directory) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client for the v1 API."""
    transport = ASGITransport(app=make_app(directory))
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture
async def admin_headers(client) -> dict[str, str]:
    """Authorization header carrying a fresh admin session token."""
    response = await client.post("/api/v1/auth/admin-session", json={"password": ADMIN_PASSWORD})
    assert response.status_code == 200
    return {"Authorization": f"Bearer {response.json()['access_token']}"}
