"""
Idempotency policy — behavior configuration.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import timedelta
from enum import Enum, auto


# ═══════════════════════════════════════════════════════════════════════════════
# On Pending — Conflict Resolution Strategy
# ═══════════════════════════════════════════════════════════════════════════════


class OnPending(Enum):
    """
    What to do when a request arrives while another with the same key is running.

    WAIT: poll until the first run finishes and return its outcome.
          A double-clicked "Place order" gets the first order back.

    FAIL: return CONFLICT immediately.
    """

    WAIT = auto()
    FAIL = auto()


WAIT = OnPending.WAIT
FAIL = OnPending.FAIL


# ═══════════════════════════════════════════════════════════════════════════════
# Policy — Full Configuration
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class Policy:
    """
    Idempotency policy configuration.

    Example:
        policy = (
            Policy()
            .with_ttl(hours=24)
            .with_on_pending(WAIT)
            .with_wait_timeout(seconds=30)
        )

    Note: failures are not persisted by default, so a failed submission can be retried
    with the same key.
    """

    result_ttl: timedelta | None = None
    conflict_strategy: OnPending = OnPending.WAIT
    pending_wait_timeout: timedelta = timedelta(seconds=30)
    poll_interval: timedelta = timedelta(milliseconds=50)
    persist_failed: bool = False
    failed_result_ttl: timedelta | None = None

    def with_ttl(
        self,
        *,
        seconds: float | None = None,
        minutes: float | None = None,
        hours: float | None = None,
        delta: timedelta | None = None,
    ) -> Policy:
        """
        Set TTL for completed records. After it the key can be used again.

        Example:
            .with_ttl(seconds=3600)
            .with_ttl(delta=timedelta(days=1))
        """
        if delta is not None:
            ttl_val: timedelta | None = delta
        else:
            total_seconds = (seconds or 0) + (minutes or 0) * 60 + (hours or 0) * 3600
            ttl_val = timedelta(seconds=total_seconds) if total_seconds > 0 else None
        return replace(self, result_ttl=ttl_val)

    def with_on_pending(self, strategy: OnPending) -> Policy:
        return replace(self, conflict_strategy=strategy)

    def with_wait_timeout(
        self,
        *,
        seconds: float | None = None,
        delta: timedelta | None = None,
    ) -> Policy:
        """Only applies with WAIT."""
        timeout = delta if delta else timedelta(seconds=seconds or 30)
        return replace(self, pending_wait_timeout=timeout)

    def with_poll_interval(self, *, seconds: float) -> Policy:
        return replace(self, poll_interval=timedelta(seconds=seconds))

    def with_store_failed(self, store: bool = True, *, seconds: float | None = None) -> Policy:
        """
        Persist failed runs so the same key keeps returning the failure.

        Example:
            .with_store_failed(seconds=60)  # failures expire after a minute
        """
        failed_ttl = timedelta(seconds=seconds) if seconds else None
        return replace(self, persist_failed=store, failed_result_ttl=failed_ttl)


# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = (
    "OnPending",
    "WAIT",
    "FAIL",
    "Policy",
)
