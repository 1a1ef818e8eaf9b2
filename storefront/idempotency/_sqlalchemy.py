"""
SQLAlchemy integration — idempotency records in a table of your own.

    class IdempotencyKeyTable(Base, IdempotencyMixin):
        __tablename__ = "idempotency_keys"
        id: Mapped[int] = mapped_column(primary_key=True)
        created_at: Mapped[datetime] = mapped_column(DateTime)

    store = SQLAlchemyStore(
        session_factory,
        model=IdempotencyKeyTable,
        encode=str,          # value -> text column
        decode=int,          # text column -> value
    )

Claiming a key is an INSERT; the unique constraint on idempotency_key makes it
atomic on every backend, so a concurrent claim surfaces as IntegrityError → Ok(False).
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timedelta
from typing import Any

from sqlalchemy import DateTime, String, Text, delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import Mapped, mapped_column

from kungfu import Error, Ok, Result

from storefront._types import utcnow
from storefront.idempotency._store import StoreError
from storefront.idempotency._types import IdempotencyRecord, RecordState


# ═══════════════════════════════════════════════════════════════════════════════
# Idempotency Mixin — add to your SQLAlchemy model
# ═══════════════════════════════════════════════════════════════════════════════

class IdempotencyMixin:
    """
    Columns for an idempotency record.

    - idempotency_key: unique key for deduplication
    - idempotency_status: "pending" | "completed" | "failed"
    - idempotency_value: encoded result
    - idempotency_error: error message
    - idempotency_fingerprint: input fingerprint
    - idempotency_expires_at: optional TTL
    """

    idempotency_key: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    idempotency_status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending")
    idempotency_value: Mapped[str | None] = mapped_column(Text, nullable=True)
    idempotency_error: Mapped[str | None] = mapped_column(Text, nullable=True)
    idempotency_fingerprint: Mapped[str | None] = mapped_column(String(128), nullable=True)
    idempotency_expires_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)


class IdempotencyStatus:
    """Values of the idempotency_status column."""
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


_STATES = {
    IdempotencyStatus.PENDING: RecordState.PENDING,
    IdempotencyStatus.COMPLETED: RecordState.COMPLETED,
    IdempotencyStatus.FAILED: RecordState.FAILED,
}


# ═══════════════════════════════════════════════════════════════════════════════
# Store
# ═══════════════════════════════════════════════════════════════════════════════

class SQLAlchemyStore[T]:
    """
    Idempotency store over any model with IdempotencyMixin.

    The model must accept idempotency_* columns and created_at as constructor keywords.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        model: type[Any],
        encode: Callable[[T], str],
        decode: Callable[[str], T],
    ) -> None:
        self._session_factory = session_factory
        self._model = model
        self._encode = encode
        self._decode = decode

    async def _find(self, session: AsyncSession, key: str) -> Any:
        result = await session.execute(select(self._model).where(self._model.idempotency_key == key))
        return result.scalar_one_or_none()

    async def get(self, key: str) -> Result[IdempotencyRecord[T] | None, StoreError]:
        try:
            async with self._session_factory() as session:
                row = await self._find(session, key)
                if row is None:
                    return Ok(None)
                if row.idempotency_expires_at and utcnow() > row.idempotency_expires_at:
                    return Ok(None)
                return Ok(self._to_record(row))
        except Exception as e:
            return Error(StoreError(f"Failed to get: {e}", e))

    async def set_pending(
        self,
        key: str,
        ttl: timedelta | None,
        fingerprint: str | None = None,
    ) -> Result[bool, StoreError]:
        try:
            async with self._session_factory() as session:
                row = await self._find(session, key)
                if row is not None:
                    if row.idempotency_expires_at and utcnow() > row.idempotency_expires_at:
                        await session.delete(row)
                        await session.flush()
                    else:
                        return Ok(False)

                now = utcnow()
                session.add(
                    self._model(
                        idempotency_key=key,
                        idempotency_status=IdempotencyStatus.PENDING,
                        idempotency_fingerprint=fingerprint,
                        idempotency_expires_at=now + ttl if ttl else None,
                        created_at=now,
                    )
                )
                try:
                    await session.commit()
                except IntegrityError:
                    await session.rollback()
                    return Ok(False)
                return Ok(True)
        except Exception as e:
            return Error(StoreError(f"Failed to set pending: {e}", e))

    async def _finish(
        self,
        key: str,
        status: str,
        ttl: timedelta | None,
        value: str | None = None,
        error: str | None = None,
    ) -> Result[None, StoreError]:
        try:
            async with self._session_factory() as session:
                row = await self._find(session, key)
                if row is None:
                    return Error(StoreError(f"Record not found: {key}"))

                row.idempotency_status = status
                row.idempotency_value = value
                row.idempotency_error = error
                row.idempotency_expires_at = utcnow() + ttl if ttl else None
                await session.commit()
                return Ok(None)
        except Exception as e:
            return Error(StoreError(f"Failed to mark {status}: {e}", e))

    async def set_completed(self, key: str, value: T, ttl: timedelta | None) -> Result[None, StoreError]:
        return await self._finish(key, IdempotencyStatus.COMPLETED, ttl, value=self._encode(value))

    async def set_failed(self, key: str, error: str, ttl: timedelta | None) -> Result[None, StoreError]:
        return await self._finish(key, IdempotencyStatus.FAILED, ttl, error=error)

    async def delete(self, key: str) -> Result[bool, StoreError]:
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    delete(self._model).where(self._model.idempotency_key == key)
                )
                await session.commit()
                return Ok(bool(result.rowcount))  # type: ignore[attr-defined]
        except Exception as e:
            return Error(StoreError(f"Failed to delete: {e}", e))

    def _to_record(self, row: Any) -> IdempotencyRecord[T]:
        state = _STATES.get(row.idempotency_status, RecordState.PENDING)
        value = row.idempotency_value
        return IdempotencyRecord(
            key=row.idempotency_key,
            state=state,
            value=self._decode(value) if value is not None else None,
            error=row.idempotency_error,
            created_at=row.created_at,
            expires_at=row.idempotency_expires_at,
            fingerprint=row.idempotency_fingerprint,
        )


__all__ = (
    "IdempotencyMixin",
    "IdempotencyStatus",
    "SQLAlchemyStore",
)
