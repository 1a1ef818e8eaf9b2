"""
Idempotency builder — fluent API and the executor that runs it.

    executor = (
        I.idempotent(place_order)
        .key(lambda req: f"order:{req.user_id}:{req.key}")
        .fingerprint(lambda req: req.digest())
        .store(I.MemoryStore())
        .policy(I.Policy().with_ttl(hours=24))
        .build()
    )

    match await executor.run(request):
        case Ok(I.IdempotencyResult(value=order_id, from_cache=replayed)):
            ...
        case Error(err):
            ...

Run protocol:

    get(key) ── COMPLETED ───────────────→ Ok(value, from_cache=True)
        │      FAILED (persisted) ───────→ Error(CACHED_FAILURE)
        │      PENDING ── WAIT: poll ────→ (re-read)
        │               └ FAIL ──────────→ Error(CONFLICT)
        └ none → set_pending (CAS) ── lost race → (re-read)
                       │
                       └ won → operation → set_completed / set_failed | delete
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass

from kungfu import Error, LazyCoroResult, Ok, Result

from storefront.idempotency._types import (
    IdempotencyError,
    IdempotencyErrorKind,
    IdempotencyRecord,
    IdempotencyResult,
)
from storefront.idempotency._store import MemoryStore, StoreAny, StoreError
from storefront.idempotency._policy import OnPending, Policy

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════════
# Key Function Type
# ═══════════════════════════════════════════════════════════════════════════════

type KeyFn[K] = Callable[[K], str]
type FingerprintFn[K] = Callable[[K], str]


def _store_failure[E](err: StoreError) -> IdempotencyError[E]:
    logger.error("Idempotency store failed: %s", err.message, exc_info=err.cause)
    return IdempotencyError(IdempotencyErrorKind.STORE_ERROR, err.message)


# ═══════════════════════════════════════════════════════════════════════════════
# Idempotent Builder
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass(slots=True, frozen=True)
class Idempotent[K, T, E]:
    """Fluent idempotency builder."""

    _operation: Callable[[K], LazyCoroResult[T, E]]
    _key_fn: KeyFn[K] | None
    _fingerprint_fn: FingerprintFn[K] | None
    _store: StoreAny | None
    _policy: Policy

    def key(self, fn: KeyFn[K]) -> Idempotent[K, T, E]:
        """Set key extraction function."""
        return Idempotent(self._operation, fn, self._fingerprint_fn, self._store, self._policy)

    def fingerprint(self, fn: FingerprintFn[K]) -> Idempotent[K, T, E]:
        """Detect a key reused with different input (INPUT_MISMATCH)."""
        return Idempotent(self._operation, self._key_fn, fn, self._store, self._policy)

    def store(self, s: StoreAny) -> Idempotent[K, T, E]:
        """Set storage backend."""
        return Idempotent(self._operation, self._key_fn, self._fingerprint_fn, s, self._policy)

    def policy(self, p: Policy) -> Idempotent[K, T, E]:
        """Set idempotency policy."""
        return Idempotent(self._operation, self._key_fn, self._fingerprint_fn, self._store, p)

    def build(self) -> IdempotentExecutor[K, T, E]:
        if self._key_fn is None:
            raise ValueError("key() is required")

        store: StoreAny = self._store if self._store is not None else MemoryStore()

        return IdempotentExecutor(
            operation=self._operation,
            key_fn=self._key_fn,
            fingerprint_fn=self._fingerprint_fn,
            store=store,
            policy=self._policy,
        )


# ═══════════════════════════════════════════════════════════════════════════════
# Idempotent Executor
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass(slots=True, frozen=True)
class IdempotentExecutor[K, T, E]:
    operation: Callable[[K], LazyCoroResult[T, E]]
    key_fn: KeyFn[K]
    fingerprint_fn: FingerprintFn[K] | None
    store: StoreAny
    policy: Policy

    def run(self, input_val: K) -> LazyCoroResult[IdempotencyResult[T], IdempotencyError[E]]:
        key = self.key_fn(input_val)
        fingerprint = self.fingerprint_fn(input_val) if self.fingerprint_fn else None

        async def execute() -> Result[IdempotencyResult[T], IdempotencyError[E]]:
            deadline = time.monotonic() + self.policy.pending_wait_timeout.total_seconds()

            while True:
                match await self.store.get(key):
                    case Error(store_err):
                        return Error(_store_failure(store_err))
                    case Ok(None):
                        match await self.store.set_pending(key, self.policy.result_ttl, fingerprint):
                            case Error(store_err):
                                return Error(_store_failure(store_err))
                            case Ok(True):
                                return await self._execute_claimed(key, input_val)
                            case Ok(False):
                                # Someone claimed it between get and set_pending
                                continue
                    case Ok(record):
                        outcome = self._from_record(record, fingerprint)
                        if outcome is not None:
                            return outcome

                # Pending with WAIT
                if time.monotonic() >= deadline:
                    return Error(
                        IdempotencyError(
                            IdempotencyErrorKind.TIMEOUT,
                            f"Timed out waiting for pending key: {key}",
                        )
                    )
                await asyncio.sleep(self.policy.poll_interval.total_seconds())

        return LazyCoroResult(execute)

    def _from_record(
        self,
        record: IdempotencyRecord[T],
        fingerprint: str | None,
    ) -> Result[IdempotencyResult[T], IdempotencyError[E]] | None:
        """Outcome for an existing record, or None to keep waiting."""
        if fingerprint is not None and record.fingerprint not in (None, fingerprint):
            return Error(
                IdempotencyError(
                    IdempotencyErrorKind.INPUT_MISMATCH,
                    f"Key {record.key} was already used with a different request",
                )
            )

        if record.is_completed:
            logger.info("Idempotency hit for %s", record.key)
            return Ok(IdempotencyResult(value=record.value, from_cache=True, key=record.key))  # type: ignore[arg-type]

        if record.is_failed:
            return Error(
                IdempotencyError(
                    IdempotencyErrorKind.CACHED_FAILURE,
                    record.error or "Previous attempt failed",
                )
            )

        if self.policy.conflict_strategy is OnPending.FAIL:
            return Error(
                IdempotencyError(
                    IdempotencyErrorKind.CONFLICT,
                    f"Request with key {record.key} is already in progress",
                )
            )
        return None

    async def _execute_claimed(
        self,
        key: str,
        input_val: K,
    ) -> Result[IdempotencyResult[T], IdempotencyError[E]]:
        try:
            result = await self.operation(input_val)
        except BaseException:
            # Cancelled (a caller's timeout) or raised: release the claim so the key can be retried
            await asyncio.shield(self._release(key))
            raise

        match result:
            case Ok(value):
                match await self.store.set_completed(key, value, self.policy.result_ttl):
                    case Error(store_err):
                        # The operation already ran; report its value anyway
                        _store_failure(store_err)
                return Ok(IdempotencyResult(value=value, from_cache=False, key=key))

            case Error(err):
                if self.policy.persist_failed:
                    ttl = self.policy.failed_result_ttl or self.policy.result_ttl
                    stored = await self.store.set_failed(key, str(err), ttl)
                else:
                    stored = await self.store.delete(key)
                if isinstance(stored, Error):
                    _store_failure(stored.error)
                return Error(
                    IdempotencyError(
                        IdempotencyErrorKind.EXECUTION,
                        "Operation failed",
                        original_error=err,
                    )
                )

    async def _release(self, key: str) -> None:
        match await self.store.delete(key):
            case Error(store_err):
                _store_failure(store_err)
            case Ok(_):
                logger.warning("Released pending key %s after an interrupted run", key)

    async def invalidate(self, input_val: K) -> bool:
        """Forget the record for input_val."""
        match await self.store.delete(self.key_fn(input_val)):
            case Ok(deleted):
                return deleted
            case _:
                return False


# ═══════════════════════════════════════════════════════════════════════════════
# idempotent() — Entry Point
# ═══════════════════════════════════════════════════════════════════════════════

def idempotent[K, T, E](
    operation: Callable[[K], LazyCoroResult[T, E]],
) -> Idempotent[K, T, E]:
    """Create idempotent wrapper for an operation."""
    return Idempotent(
        _operation=operation,
        _key_fn=None,
        _fingerprint_fn=None,
        _store=None,
        _policy=Policy(),
    )


__all__ = (
    "Idempotent",
    "IdempotentExecutor",
    "idempotent",
)
