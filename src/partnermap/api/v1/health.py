"""Health check endpoints.

Provides liveness (/health) and readiness (/health/ready) checks.
Readiness pings the primary document store and reports where the current
document was loaded from, including the notice shown when the store was
unreachable at startup.
"""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from src.partnermap.api.deps import get_directory
from src.partnermap.config import get_settings
from src.partnermap.directory.service import DirectoryService
from src.partnermap.store.adapter import StoreError

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check():
    """Basic liveness check. No external dependencies are checked."""
    settings = get_settings()
    return {"status": "ok", "environment": settings.ENVIRONMENT.value}


@router.get("/health/ready")
async def readiness_check(directory: DirectoryService = Depends(get_directory)):
    """Readiness check: verifies the document store is reachable.

    Returns 200 if the store answers, 503 otherwise. The directory keeps
    serving from memory either way.
    """
    checks: dict = {"store": "ok", "store_backend": directory.store.name}
    try:
        await directory.store.ping()
    except StoreError as e:
        logger.warning("health.store_unreachable", error=str(e))
        checks["store"] = "error"
        checks["store_error"] = str(e)

    load_result = directory.load_result
    if load_result is not None:
        checks["load_source"] = load_result.source.value
        if load_result.notice:
            checks["notice"] = load_result.notice

    healthy = checks["store"] == "ok"
    return JSONResponse(
        status_code=status.HTTP_200_OK if healthy else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"status": "ready" if healthy else "degraded", "checks": checks},
    )
