"""
Orders — what a signed-in shopper (or an admin) may see and change.

    orders = Orders(SQLAlchemyOrders(session_factory))

    mine = (await orders.orders_for(user)).unwrap()
    await orders.update_status(admin, order_id, OrderStatus.SHIPPED)

Status changes are append-only: every change adds an entry to status_history.
"""

from __future__ import annotations

import logging

from kungfu import Error, Ok, Result

from storefront._errors import Errors, ShopError
from storefront._types import OrderId
from storefront.identity import Identity
from storefront.lift import guarded
from storefront.orders._types import Order, OrderBook, OrderStatus

logger = logging.getLogger(__name__)


class Orders:
    def __init__(self, book: OrderBook) -> None:
        self.book = book

    async def orders_for(self, caller: Identity | None) -> Result[list[Order], ShopError]:
        """The caller's own orders, newest first. Admins get every order."""
        if caller is None:
            return Error(Errors.unauthenticated())
        user_id = None if caller.is_admin else caller.id
        return await guarded("orders.list", lambda: self.book.list(user_id))

    async def get(self, caller: Identity | None, order_id: OrderId) -> Result[Order, ShopError]:
        if caller is None:
            return Error(Errors.unauthenticated())

        match await guarded("orders.get", lambda: self.book.get(order_id)):
            case Error(err):
                return Error(err)
            case Ok(None):
                return Error(Errors.not_found("order", order_id))
            case Ok(order):
                # Someone else's order looks the same as a missing one
                if not (caller.owns(order.user_id) or caller.is_admin):
                    return Error(Errors.not_found("order", order_id))
                return Ok(order)

    async def update_status(
        self,
        caller: Identity | None,
        order_id: OrderId,
        status: OrderStatus,
    ) -> Result[Order, ShopError]:
        if caller is None:
            return Error(Errors.unauthenticated())
        if not caller.is_admin:
            return Error(Errors.forbidden("Admin access required"))

        match await guarded("orders.append_status", lambda: self.book.append_status(order_id, status)):
            case Error(err):
                return Error(err)
            case Ok(None):
                return Error(Errors.not_found("order", order_id))
            case Ok(order):
                logger.info("Order %s moved to %s by %s", order_id, status.value, caller.id)
                return Ok(order)


__all__ = ("Orders",)
