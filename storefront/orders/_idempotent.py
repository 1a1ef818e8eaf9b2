"""
Keyed order creation — the same idempotency key never creates two orders.

    keyed = IdempotentOrders(orders, store=I.MemoryStore(), policy=I.Policy().with_ttl(hours=24))
    first = await keyed.create(user.id, payload, key="3f6c...")
    again = await keyed.create(user.id, payload, key="3f6c...")   # same order, nothing created

Only the order id is stored; a replay reads the order back from the book.
A failed creation is forgotten, so the shopper may retry with the same key.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from kungfu import Error, LazyCoroResult, Ok

from storefront import idempotency as I
from storefront._types import OrderId, UserId
from storefront.lift import catching_async
from storefront.orders._types import OrderBook, OrderPayload, OrderReceipt

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class KeyedSubmission:
    user_id: UserId
    key: str
    payload: OrderPayload


class SubmissionRejected(Exception):
    """The idempotency layer refused to run or replay the submission."""

    def __init__(self, error: I.IdempotencyError[Exception]) -> None:
        super().__init__(error.message)
        self.error = error


class IdempotentOrders:
    def __init__(
        self,
        book: OrderBook,
        store: I.StoreAny | None = None,
        policy: I.Policy | None = None,
    ) -> None:
        self.book = book
        self.executor: I.IdempotentExecutor[KeyedSubmission, OrderId, Exception] = (
            I.idempotent(self._create)
            .key(lambda s: f"order:{s.user_id}:{s.key}")
            .fingerprint(lambda s: s.payload.fingerprint())
            .store(store if store is not None else I.MemoryStore())
            .policy(policy if policy is not None else I.Policy().with_ttl(hours=24))
            .build()
        )

    def _create(self, submission: KeyedSubmission) -> LazyCoroResult[OrderId, Exception]:
        return catching_async(
            lambda: self.book.create(submission.user_id, submission.payload),
            on_error=lambda exc: exc,
        ).map(lambda receipt: receipt.order_id)

    async def create(self, user_id: UserId, payload: OrderPayload, key: str) -> OrderReceipt:
        """OrderCreation.create with a key. Raises like the book does."""
        match await self.executor.run(KeyedSubmission(user_id=user_id, key=key, payload=payload)):
            case Ok(result):
                pass
            case Error(err):
                if err.original_error is not None:
                    raise err.original_error
                raise SubmissionRejected(err)

        order = await self.book.get(result.value)
        if order is None:
            raise LookupError(f"Order {result.value} recorded for key {key} no longer exists")
        if result.from_cache:
            logger.info("Submission %s replayed: order %s", key, order.id)
        return OrderReceipt(order_id=order.id, order=order)


__all__ = ("IdempotentOrders", "KeyedSubmission", "SubmissionRejected")
