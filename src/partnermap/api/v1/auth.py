"""Admin session endpoint.

Exchanges the shared admin password for a signed session token that the
mutation endpoints require as Authorization: Bearer.
"""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, status
from pydantic import BaseModel

import structlog

from src.partnermap.config import get_settings
from src.partnermap.core.security import (
    admin_password_configured,
    create_admin_token,
    verify_admin_password,
)

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


class AdminSessionRequest(BaseModel):
    password: str


class AdminSessionResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int


@router.post("/admin-session", response_model=AdminSessionResponse)
async def open_admin_session(body: AdminSessionRequest) -> AdminSessionResponse:
    """Unlock admin mode with the shared password."""
    if not admin_password_configured():
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Admin mode is not configured",
        )

    if not verify_admin_password(body.password):
        logger.warning("auth.admin_password_rejected")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect password",
        )

    settings = get_settings()
    logger.info("auth.admin_session_opened")
    return AdminSessionResponse(
        access_token=create_admin_token(),
        expires_in=settings.ADMIN_SESSION_EXPIRE_MINUTES * 60,
    )
