"""FastAPI application factory.

Creates the app with logging middleware, metrics middleware, CORS, Sentry,
lifespan events that load the partner directory, and the v1 API router.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from collections.abc import AsyncGenerator

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.requests import Request
from fastapi.responses import Response

from src.partnermap.config import StoreBackend, get_settings
from src.partnermap.core.database import close_db, init_db
from src.partnermap.core.monitoring import MetricsMiddleware, get_metrics_response, init_sentry
from src.partnermap.api.middleware.logging import LoggingMiddleware, configure_structlog
from src.partnermap.api.v1.router import router as v1_router
from src.partnermap.directory.catalog import load_region_catalog
from src.partnermap.directory.service import DirectoryService
from src.partnermap.store import create_document_store, create_local_cache


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan: load the directory on startup, flush writes on shutdown."""
    log = structlog.get_logger(__name__)
    settings = get_settings()
    configure_structlog()

    # Initialize Sentry if DSN is configured
    if settings.SENTRY_DSN:
        init_sentry(dsn=settings.SENTRY_DSN, environment=settings.ENVIRONMENT.value)

    catalog = load_region_catalog(settings.REGION_CATALOG_PATH)

    if settings.STORE_BACKEND == StoreBackend.postgres:
        await init_db()

    store = create_document_store(settings)
    directory = DirectoryService(
        store=store,
        cache=create_local_cache(settings),
        catalog=catalog,
        document_id=settings.DOCUMENT_ID,
    )
    result = await directory.load()
    app.state.directory = directory
    log.info(
        "startup.directory_loaded",
        store=store.name,
        source=result.source.value,
        regions=len(directory.document.regions),
    )

    yield

    await directory.flush()
    await store.close()
    if settings.STORE_BACKEND == StoreBackend.postgres:
        await close_db()
    log.info("shutdown.complete")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Partner Map API",
        version="0.1.0",
        description="Directory of partner companies per map region, with contacts and projects",
        lifespan=lifespan,
    )

    # Middleware is added in reverse order (last added = outermost)

    # CORS middleware
    if settings.CORS_ALLOWED_ORIGINS == "*":
        origins = ["*"]
    else:
        origins = [o.strip() for o in settings.CORS_ALLOWED_ORIGINS.split(",")]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Logging middleware (logs every request with timing)
    app.add_middleware(LoggingMiddleware)

    # Metrics middleware (outermost)
    app.add_middleware(MetricsMiddleware)

    app.include_router(v1_router)

    # Prometheus metrics endpoint (infrastructure route, outside v1 router)
    @app.get("/metrics", include_in_schema=False)
    async def metrics(request: Request) -> Response:
        """Prometheus metrics endpoint."""
        return get_metrics_response()

    return app


# Module-level app for uvicorn
app = create_app()
