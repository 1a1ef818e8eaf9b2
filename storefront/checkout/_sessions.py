from __future__ import annotations

import logging
from collections import OrderedDict
from collections.abc import Callable

from storefront._types import UserId
from storefront.checkout._orchestrator import Checkout
from storefront.identity import Identity

logger = logging.getLogger(__name__)

type CheckoutFactory = Callable[[Identity], Checkout]


class CheckoutSessions:
    """
    One orchestrator per signed-in user, at most `limit` of them.

    A finished checkout is replaced on the next lookup so the shopper can start over.
    When the registry is full the least recently used checkout is dropped.
    """

    def __init__(self, factory: CheckoutFactory, limit: int = 10_000) -> None:
        if limit < 1:
            raise ValueError("limit must be at least 1")
        self.factory = factory
        self.limit = limit
        self._sessions: OrderedDict[UserId, Checkout] = OrderedDict()

    def for_user(self, user: Identity) -> Checkout:
        checkout = self._sessions.get(user.id)
        if checkout is None or checkout.finished:
            checkout = self.factory(user)
            self._sessions[user.id] = checkout
        self._sessions.move_to_end(user.id)
        while len(self._sessions) > self.limit:
            evicted, _ = self._sessions.popitem(last=False)
            logger.info("Checkout for %s evicted", evicted)
        return checkout

    def peek(self, user_id: UserId) -> Checkout | None:
        return self._sessions.get(user_id)

    def discard(self, user_id: UserId) -> None:
        self._sessions.pop(user_id, None)

    def __len__(self) -> int:
        return len(self._sessions)


__all__ = ("CheckoutSessions", "CheckoutFactory")
