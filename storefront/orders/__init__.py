"""
Orders — atomic order creation, the order book and keyed (idempotent) submission.

    from storefront import orders as O

    book = O.SQLAlchemyOrders(session_factory)
    receipt = await book.create(user.id, payload)
    await O.Orders(book).update_status(admin, receipt.order_id, O.OrderStatus.SHIPPED)
"""

from storefront.orders._types import (
    OrderStatus,
    OrderRejected,
    OrderLine,
    OrderPayload,
    StatusEntry,
    Order,
    OrderReceipt,
    OrderCreation,
    OrderBook,
)
from storefront.orders._memory import MemoryOrders
from storefront.orders._sqlalchemy import SQLAlchemyOrders, order_from_row
from storefront.orders._service import Orders
from storefront.orders._idempotent import IdempotentOrders, KeyedSubmission, SubmissionRejected

__all__ = (
    # Types
    "OrderStatus",
    "OrderRejected",
    "OrderLine",
    "OrderPayload",
    "StatusEntry",
    "Order",
    "OrderReceipt",
    # Protocols
    "OrderCreation",
    "OrderBook",
    # Implementations
    "MemoryOrders",
    "SQLAlchemyOrders",
    "order_from_row",
    # Service
    "Orders",
    "IdempotentOrders",
    "KeyedSubmission",
    "SubmissionRejected",
)
