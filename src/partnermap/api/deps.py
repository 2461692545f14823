"""FastAPI dependency injection for the directory service and admin sessions.

These dependencies are used in endpoint function signatures to inject the
shared DirectoryService and to gate mutation endpoints behind an admin
session token.
"""

from __future__ import annotations

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from src.partnermap.core.security import verify_admin_token
from src.partnermap.directory.service import DirectoryService

_bearer = HTTPBearer(auto_error=False)


def get_directory(request: Request) -> DirectoryService:
    """Retrieve the DirectoryService from app.state, 503 if not available."""
    directory = getattr(request.app.state, "directory", None)
    if directory is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Directory not initialized",
        )
    return directory


async def require_admin(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),
) -> dict:
    """Require a valid admin session token (Authorization: Bearer <token>).

    Raises:
        HTTPException(401): If no token or an invalid token is provided.
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Admin session required",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return verify_admin_token(credentials.credentials)
