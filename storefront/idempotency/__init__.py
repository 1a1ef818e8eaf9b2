"""
Idempotency — run an operation at most once per key.

    from storefront import idempotency as I

    executor = (
        I.idempotent(create_order)
        .key(lambda req: f"order:{req.user_id}:{req.key}")
        .store(I.MemoryStore())
        .policy(I.Policy().with_ttl(hours=24))
        .build()
    )
    result = await executor.run(request)

Used by order submission when the caller supplies an idempotency key.
"""

from storefront.idempotency._types import (
    RecordState,
    IdempotencyRecord,
    IdempotencyResult,
    IdempotencyError,
    IdempotencyErrorKind,
)
from storefront.idempotency._store import (
    Store,
    StoreAny,
    StoreError,
    MemoryStore,
)
from storefront.idempotency._policy import (
    Policy,
    OnPending,
    WAIT,
    FAIL,
)
from storefront.idempotency._builder import (
    idempotent,
    Idempotent,
    IdempotentExecutor,
)
from storefront.idempotency._sqlalchemy import (
    IdempotencyMixin,
    IdempotencyStatus,
    SQLAlchemyStore,
)

__all__ = (
    # Types
    "RecordState",
    "IdempotencyRecord",
    "IdempotencyResult",
    "IdempotencyError",
    "IdempotencyErrorKind",
    # Store
    "Store",
    "StoreAny",
    "StoreError",
    "MemoryStore",
    # Policy
    "Policy",
    "OnPending",
    "WAIT",
    "FAIL",
    # Builder
    "idempotent",
    "Idempotent",
    "IdempotentExecutor",
    # SQLAlchemy
    "IdempotencyMixin",
    "IdempotencyStatus",
    "SQLAlchemyStore",
)
