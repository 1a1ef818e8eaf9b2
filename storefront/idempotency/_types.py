"""
Idempotency types — records, results and errors.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum, auto

from storefront._types import utcnow


# ═══════════════════════════════════════════════════════════════════════════════
# Record State — Operation Lifecycle
# ═══════════════════════════════════════════════════════════════════════════════


class RecordState(Enum):
    """
    State of an idempotency record.

    Lifecycle:
        PENDING → COMPLETED (success)
                → FAILED (error, only kept when the policy persists failures)
                → (expired/deleted)
    """

    PENDING = auto()
    COMPLETED = auto()
    FAILED = auto()


# ═══════════════════════════════════════════════════════════════════════════════
# Idempotency Record — Stored State
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class IdempotencyRecord[T]:
    """
    A stored idempotency record.

    value is set only for COMPLETED, error only for FAILED.
    fingerprint identifies the input the key was first used with, so a key
    reused for a different payload can be told apart from a retry.
    """

    key: str
    state: RecordState
    value: T | None
    error: str | None
    created_at: datetime
    expires_at: datetime | None
    fingerprint: str | None = None

    @property
    def is_expired(self) -> bool:
        if self.expires_at is None:
            return False
        return utcnow() > self.expires_at

    @property
    def is_pending(self) -> bool:
        return self.state == RecordState.PENDING

    @property
    def is_completed(self) -> bool:
        return self.state == RecordState.COMPLETED

    @property
    def is_failed(self) -> bool:
        return self.state == RecordState.FAILED


# ═══════════════════════════════════════════════════════════════════════════════
# Result Types
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class IdempotencyResult[T]:
    """from_cache is True when an earlier run with the same key produced value."""

    value: T
    from_cache: bool
    key: str


class IdempotencyErrorKind(Enum):
    CONFLICT = auto()  # Same key still pending (FAIL strategy)
    TIMEOUT = auto()  # Waited too long for the pending run
    STORE_ERROR = auto()  # Storage backend error
    EXECUTION = auto()  # Wrapped operation failed
    INPUT_MISMATCH = auto()  # Key reused with a different input
    CACHED_FAILURE = auto()  # Earlier run failed and the failure was persisted


@dataclass(frozen=True, slots=True)
class IdempotencyError[E]:
    """original_error carries the wrapped operation's error for EXECUTION."""

    kind: IdempotencyErrorKind
    message: str
    original_error: E | None = None


# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = (
    "RecordState",
    "IdempotencyRecord",
    "IdempotencyResult",
    "IdempotencyError",
    "IdempotencyErrorKind",
)
