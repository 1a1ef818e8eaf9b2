"""
Idempotency store — typed storage protocol.

Store[T] stores records with a typed value T.
All methods return Result for explicit error handling.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Protocol

from kungfu import Result, Ok, Error

from storefront._types import utcnow
from storefront.idempotency._types import RecordState, IdempotencyRecord


# ═══════════════════════════════════════════════════════════════════════════════
# Store Error
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class StoreError:
    """Storage operation error."""

    message: str
    cause: Exception | None = None


# ═══════════════════════════════════════════════════════════════════════════════
# Store Protocol — Typed, Result-based
# ═══════════════════════════════════════════════════════════════════════════════


class Store[T](Protocol):
    """
    Typed idempotency store protocol.

    Implementations: MemoryStore (single process, tests) and
    storefront.idempotency.SQLAlchemyStore (shared database).
    """

    async def get(self, key: str) -> Result[IdempotencyRecord[T] | None, StoreError]:
        """Get existing, unexpired record. Ok(None) if not found."""
        ...

    async def set_pending(
        self,
        key: str,
        ttl: timedelta | None,
        fingerprint: str | None = None,
    ) -> Result[bool, StoreError]:
        """
        Atomically claim the key.

        Ok(True) if this caller claimed it, Ok(False) if a live record exists.
        """
        ...

    async def set_completed(self, key: str, value: T, ttl: timedelta | None) -> Result[None, StoreError]:
        ...

    async def set_failed(self, key: str, error: str, ttl: timedelta | None) -> Result[None, StoreError]:
        ...

    async def delete(self, key: str) -> Result[bool, StoreError]:
        """Delete record. Ok(True) if it existed."""
        ...


# ═══════════════════════════════════════════════════════════════════════════════
# Memory Store — For Testing
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass
class _StoredRecord[T]:
    key: str
    state: RecordState
    value: T | None
    error: str | None
    created_at: datetime
    expires_at: datetime | None
    fingerprint: str | None = None

    def to_record(self) -> IdempotencyRecord[T]:
        return IdempotencyRecord(
            key=self.key,
            state=self.state,
            value=self.value,
            error=self.error,
            created_at=self.created_at,
            expires_at=self.expires_at,
            fingerprint=self.fingerprint,
        )


class MemoryStore[T]:
    """
    In-memory idempotency store.

    Note: single process only; records do not survive a restart.
    """

    def __init__(self) -> None:
        self._records: dict[str, _StoredRecord[T]] = {}
        self._lock = asyncio.Lock()

    def _live(self, key: str) -> _StoredRecord[T] | None:
        record = self._records.get(key)
        if record is not None and record.expires_at and utcnow() > record.expires_at:
            del self._records[key]
            return None
        return record

    async def get(self, key: str) -> Result[IdempotencyRecord[T] | None, StoreError]:
        async with self._lock:
            record = self._live(key)
            return Ok(record.to_record() if record else None)

    async def set_pending(
        self,
        key: str,
        ttl: timedelta | None,
        fingerprint: str | None = None,
    ) -> Result[bool, StoreError]:
        async with self._lock:
            if self._live(key) is not None:
                return Ok(False)

            now = utcnow()
            self._records[key] = _StoredRecord(
                key=key,
                state=RecordState.PENDING,
                value=None,
                error=None,
                created_at=now,
                expires_at=now + ttl if ttl else None,
                fingerprint=fingerprint,
            )
            return Ok(True)

    async def set_completed(self, key: str, value: T, ttl: timedelta | None) -> Result[None, StoreError]:
        async with self._lock:
            existing = self._records.get(key)
            if existing is None:
                return Error(StoreError(f"No pending record for key: {key}"))

            existing.state = RecordState.COMPLETED
            existing.value = value
            existing.expires_at = utcnow() + ttl if ttl else None
            return Ok(None)

    async def set_failed(self, key: str, error: str, ttl: timedelta | None) -> Result[None, StoreError]:
        async with self._lock:
            existing = self._records.get(key)
            if existing is None:
                return Error(StoreError(f"No pending record for key: {key}"))

            existing.state = RecordState.FAILED
            existing.error = error
            existing.expires_at = utcnow() + ttl if ttl else None
            return Ok(None)

    async def delete(self, key: str) -> Result[bool, StoreError]:
        async with self._lock:
            return Ok(self._records.pop(key, None) is not None)


# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

type StoreAny = Store[Any]


__all__ = (
    "StoreError",
    "Store",
    "StoreAny",
    "MemoryStore",
)
