"""PostgreSQL document store -- SQLAlchemy async over the partner_map table.

Uses the session_factory callable pattern: the store receives an async
generator function yielding AsyncSession instances, so tests and scripts can
hand in their own sessions.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator, Callable
from typing import Any

import structlog
from sqlalchemy import func, select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src.partnermap.store.adapter import DocumentStore, StoreError
from src.partnermap.store.models import DocumentModel

logger = structlog.get_logger(__name__)


class PostgresDocumentStore(DocumentStore):
    """DocumentStore backed by a JSONB column in PostgreSQL.

    Args:
        session_factory: Async callable that yields AsyncSession instances.
    """

    name = "postgres"

    def __init__(
        self, session_factory: Callable[..., AsyncGenerator[AsyncSession, None]]
    ) -> None:
        self._session_factory = session_factory

    async def read(self, document_id: str) -> dict[str, Any] | None:
        try:
            async for session in self._session_factory():
                result = await session.execute(
                    select(DocumentModel.data).where(DocumentModel.id == document_id)
                )
                data = result.scalar_one_or_none()
                return data if isinstance(data, dict) else None
        except (SQLAlchemyError, OSError) as exc:
            raise StoreError(f"PostgreSQL read failed for {document_id}: {exc}") from exc
        return None

    async def write(self, document_id: str, data: dict[str, Any]) -> None:
        stmt = insert(DocumentModel).values(id=document_id, data=data)
        stmt = stmt.on_conflict_do_update(
            index_elements=[DocumentModel.id],
            set_={"data": stmt.excluded.data, "updated_at": func.now()},
        )
        try:
            async for session in self._session_factory():
                await session.execute(stmt)
                await session.commit()
        except (SQLAlchemyError, OSError) as exc:
            raise StoreError(f"PostgreSQL write failed for {document_id}: {exc}") from exc

        logger.debug("postgres.document_written", document_id=document_id)

    async def ping(self) -> None:
        try:
            async for session in self._session_factory():
                await session.execute(select(1))
        except (SQLAlchemyError, OSError) as exc:
            raise StoreError(f"PostgreSQL unreachable: {exc}") from exc
