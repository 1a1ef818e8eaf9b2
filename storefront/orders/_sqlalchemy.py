"""
SQLAlchemy order book — one transaction per order.

    orders = SQLAlchemyOrders(session_factory)
    receipt = await orders.create(user.id, payload)

create() locks nothing explicitly: the stock check and the decrement run in the
same transaction, and the decrement is a conditional UPDATE
(stock_quantity >= quantity), so a concurrent order that already took the stock
makes this one roll back instead of going negative.
"""

from __future__ import annotations

import logging
from collections import Counter

from sqlalchemy import exists, select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from storefront._types import OrderId, ProductId, UserId, from_cents, to_cents, utcnow
from storefront.db import OrderItemTable, OrderStatusTable, OrderTable, ProductTable
from storefront.orders._types import (
    Order,
    OrderLine,
    OrderPayload,
    OrderReceipt,
    OrderRejected,
    OrderStatus,
    StatusEntry,
)
from storefront.payments import PaymentMethod

logger = logging.getLogger(__name__)


def order_from_row(row: OrderTable) -> Order:
    return Order(
        id=row.id,
        user_id=row.user_id,
        items=tuple(
            OrderLine(product_id=i.product_id, quantity=i.quantity, price=from_cents(i.price_cents))
            for i in row.items
        ),
        total_amount=from_cents(row.total_amount_cents),
        shipping_address=row.shipping_address,
        payment_method=PaymentMethod(row.payment_method),
        payment_status=row.payment_status,
        transaction_id=row.transaction_id,
        created_at=row.created_at,
        status=OrderStatus(row.status),
        status_history=tuple(StatusEntry(OrderStatus(h.status), h.timestamp) for h in row.history),
        order_number=row.order_number,
        reference_number=row.reference_number,
        first_name=row.first_name,
        last_name=row.last_name,
        email=row.email,
    )


class SQLAlchemyOrders:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def create(self, user_id: UserId, payload: OrderPayload) -> OrderReceipt:
        if not payload.items:
            raise OrderRejected("Order has no items")

        wanted: Counter[ProductId] = Counter()
        for line in payload.items:
            wanted[line.product_id] += line.quantity

        async with self._session_factory() as session:
            async with session.begin():
                for product_id, quantity in wanted.items():
                    product = await session.get(ProductTable, product_id)
                    if product is None:
                        raise OrderRejected(f"Product with ID {product_id} not found")

                    result = await session.execute(
                        update(ProductTable)
                        .where(ProductTable.id == product_id, ProductTable.stock_quantity >= quantity)
                        .values(stock_quantity=ProductTable.stock_quantity - quantity)
                    )
                    if result.rowcount != 1:  # type: ignore[attr-defined]
                        raise OrderRejected(f"Insufficient quantity for product ID {product_id}")

                now = utcnow()
                row = OrderTable(
                    user_id=user_id,
                    total_amount_cents=to_cents(payload.total_amount),
                    status=OrderStatus.PENDING.value,
                    shipping_address=payload.shipping_address,
                    payment_method=payload.payment_method.value,
                    payment_status=payload.payment_status,
                    transaction_id=payload.transaction_id,
                    reference_number=payload.reference_number,
                    order_number=payload.order_number,
                    first_name=payload.first_name,
                    last_name=payload.last_name,
                    email=payload.email,
                    city=payload.city,
                    state=payload.state,
                    zip_code=payload.zip_code,
                    phone=payload.phone,
                    created_at=now,
                    items=[
                        OrderItemTable(
                            product_id=line.product_id,
                            quantity=line.quantity,
                            price_cents=to_cents(line.price),
                        )
                        for line in payload.items
                    ],
                    history=[OrderStatusTable(status=OrderStatus.PENDING.value, timestamp=now)],
                )
                session.add(row)
                await session.flush()
                order = order_from_row(row)

        logger.info("Order %s created for %s: %s", order.id, user_id, order.total_amount)
        return OrderReceipt(order_id=order.id, order=order)

    async def get(self, order_id: OrderId) -> Order | None:
        async with self._session_factory() as session:
            row = await session.get(OrderTable, order_id)
            return order_from_row(row) if row is not None else None

    async def list(self, user_id: UserId | None = None) -> list[Order]:
        stmt = select(OrderTable).order_by(OrderTable.created_at.desc(), OrderTable.id.desc())
        if user_id is not None:
            stmt = stmt.where(OrderTable.user_id == user_id)
        async with self._session_factory() as session:
            rows = (await session.execute(stmt)).scalars().all()
            return [order_from_row(r) for r in rows]

    async def append_status(self, order_id: OrderId, status: OrderStatus) -> Order | None:
        async with self._session_factory() as session:
            row = await session.get(OrderTable, order_id)
            if row is None:
                return None
            row.status = status.value
            row.history.append(OrderStatusTable(status=status.value, timestamp=utcnow()))
            await session.commit()
            return order_from_row(row)

    async def has_purchased(self, user_id: UserId, product_id: ProductId) -> bool:
        stmt = select(
            exists()
            .where(OrderTable.id == OrderItemTable.order_id)
            .where(OrderTable.user_id == user_id, OrderItemTable.product_id == product_id)
        )
        async with self._session_factory() as session:
            return bool((await session.execute(stmt)).scalar())


__all__ = ("SQLAlchemyOrders", "order_from_row")
