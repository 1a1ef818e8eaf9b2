from __future__ import annotations

import logging
from collections import Counter
from dataclasses import replace

from storefront._types import OrderId, ProductId, UserId, utcnow
from storefront.catalog import MemoryCatalog
from storefront.orders._types import (
    Order,
    OrderPayload,
    OrderReceipt,
    OrderRejected,
    OrderStatus,
    StatusEntry,
)

logger = logging.getLogger(__name__)


class MemoryOrders:
    """
    In-process order book over a MemoryCatalog.

    Stock checks and decrements happen under the catalog lock, so two
    concurrent orders cannot both take the last unit.
    """

    def __init__(self, catalog: MemoryCatalog) -> None:
        self.catalog = catalog
        self._orders: dict[OrderId, Order] = {}
        self._next_id = 1

    async def create(self, user_id: UserId, payload: OrderPayload) -> OrderReceipt:
        if not payload.items:
            raise OrderRejected("Order has no items")

        wanted: Counter[ProductId] = Counter()
        for line in payload.items:
            wanted[line.product_id] += line.quantity

        async with self.catalog.lock:
            remaining: dict[ProductId, int] = {}
            for product_id, quantity in wanted.items():
                product = self.catalog.peek(product_id)
                if product is None:
                    raise OrderRejected(f"Product with ID {product_id} not found")
                if product.stock_quantity < quantity:
                    raise OrderRejected(f"Insufficient quantity for product ID {product_id}")
                remaining[product_id] = product.stock_quantity - quantity

            for product_id, stock in remaining.items():
                self.catalog.set_stock(product_id, stock)

            now = utcnow()
            order = Order(
                id=self._next_id,
                user_id=user_id,
                items=payload.items,
                total_amount=payload.total_amount,
                shipping_address=payload.shipping_address,
                payment_method=payload.payment_method,
                payment_status=payload.payment_status,
                transaction_id=payload.transaction_id,
                created_at=now,
                status=OrderStatus.PENDING,
                status_history=(StatusEntry(OrderStatus.PENDING, now),),
                order_number=payload.order_number,
                reference_number=payload.reference_number,
                first_name=payload.first_name,
                last_name=payload.last_name,
                email=payload.email,
            )
            self._orders[order.id] = order
            self._next_id += 1

        logger.info("Order %s created for %s: %s", order.id, user_id, order.total_amount)
        return OrderReceipt(order_id=order.id, order=order)

    async def get(self, order_id: OrderId) -> Order | None:
        return self._orders.get(order_id)

    async def list(self, user_id: UserId | None = None) -> list[Order]:
        orders = [o for o in self._orders.values() if user_id is None or o.user_id == user_id]
        return sorted(orders, key=lambda o: (o.created_at, o.id), reverse=True)

    async def append_status(self, order_id: OrderId, status: OrderStatus) -> Order | None:
        order = self._orders.get(order_id)
        if order is None:
            return None
        updated = replace(
            order,
            status=status,
            status_history=(*order.status_history, StatusEntry(status, utcnow())),
        )
        self._orders[order_id] = updated
        return updated

    async def has_purchased(self, user_id: UserId, product_id: ProductId) -> bool:
        return any(o.user_id == user_id and o.contains(product_id) for o in self._orders.values())


__all__ = ("MemoryOrders",)
