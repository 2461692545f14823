"""Admin session tokens.

Admin mode is unlocked with the shared ADMIN_PASSWORD and then carried as a
short-lived signed JWT (Authorization: Bearer) on every mutation request.
The password is a UX gate for editors, not an access-control boundary.
"""

from __future__ import annotations

import secrets
import uuid
from datetime import datetime, timedelta, timezone

from fastapi import HTTPException, status
from jose import JWTError, jwt

from src.partnermap.config import get_settings

ADMIN_TOKEN_TYPE = "admin_session"


def admin_password_configured() -> bool:
    return bool(get_settings().ADMIN_PASSWORD)


def verify_admin_password(password: str) -> bool:
    """Constant-time comparison against the configured shared password."""
    expected = get_settings().ADMIN_PASSWORD
    if not expected:
        return False
    return secrets.compare_digest(password.encode("utf-8"), expected.encode("utf-8"))


def create_admin_token(expires_delta: timedelta | None = None) -> str:
    """Create a signed admin session token."""
    settings = get_settings()
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=settings.ADMIN_SESSION_EXPIRE_MINUTES))
    to_encode = {
        "sub": f"admin-session:{uuid.uuid4().hex}",
        "exp": expire,
        "iat": now,
        "type": ADMIN_TOKEN_TYPE,
    }
    return jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def verify_admin_token(token: str) -> dict:
    """Decode and validate an admin session token.

    Returns:
        The decoded payload dict.

    Raises:
        HTTPException(401): If the token is invalid, expired, or wrong type.
    """
    settings = get_settings()
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Admin session required",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET_KEY,
            algorithms=[settings.JWT_ALGORITHM],
        )
    except JWTError:
        raise credentials_exception
    if payload.get("type") != ADMIN_TOKEN_TYPE or not payload.get("sub"):
        raise credentials_exception
    return payload
