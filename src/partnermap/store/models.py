"""Persistence model for the PostgreSQL document store.

One row per document: the whole directory lives in a JSONB column, exactly
like the Supabase table, so both backends can share a database.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import DateTime, String, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from src.partnermap.core.database import Base


class DocumentModel(Base):
    """A stored directory document keyed by its fixed id."""

    __tablename__ = "partner_map"

    id: Mapped[str] = mapped_column(String(100), primary_key=True)
    data: Mapped[dict[str, Any]] = mapped_column(JSONB, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
