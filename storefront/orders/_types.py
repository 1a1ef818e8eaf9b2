"""
Order types, the creation contract and the order book protocol.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Protocol

from storefront._types import OrderId, ProductId, UserId, money
from storefront.payments import PaymentMethod


class OrderStatus(Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class OrderRejected(Exception):
    """Order creation refused the payload (unknown product, not enough stock)."""


# ═══════════════════════════════════════════════════════════════════════════════
# Payload — what checkout submits
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class OrderLine:
    product_id: ProductId
    quantity: int
    price: Decimal


@dataclass(frozen=True, slots=True)
class OrderPayload:
    """
    A finalized checkout: cart lines, total, shipping address, payment facts, contact.

    Line prices are the cart snapshot; order creation does not re-price them.
    """

    items: tuple[OrderLine, ...]
    total_amount: Decimal
    shipping_address: str
    payment_method: PaymentMethod
    payment_status: str
    transaction_id: str
    order_number: str | None = None
    reference_number: str | None = None
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    city: str = ""
    state: str = ""
    zip_code: str = ""
    phone: str = ""

    def fingerprint(self) -> str:
        """
        Digest of what is being bought and where it goes.

        Payment tokens are left out: a re-confirmed payment for the same cart is
        still the same order.
        """
        parts = [
            *(f"{line.product_id}x{line.quantity}@{money(line.price)}" for line in self.items),
            str(money(self.total_amount)),
            self.shipping_address,
            self.payment_method.value,
        ]
        return hashlib.sha256("|".join(parts).encode()).hexdigest()


# ═══════════════════════════════════════════════════════════════════════════════
# Order — what was persisted
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class StatusEntry:
    status: OrderStatus
    timestamp: datetime


@dataclass(frozen=True, slots=True)
class Order:
    id: OrderId
    user_id: UserId
    items: tuple[OrderLine, ...]
    total_amount: Decimal
    shipping_address: str
    payment_method: PaymentMethod
    payment_status: str
    transaction_id: str
    created_at: datetime
    status: OrderStatus = OrderStatus.PENDING
    status_history: tuple[StatusEntry, ...] = ()
    order_number: str | None = None
    reference_number: str | None = None
    first_name: str = ""
    last_name: str = ""
    email: str = ""

    def contains(self, product_id: ProductId) -> bool:
        return any(line.product_id == product_id for line in self.items)


@dataclass(frozen=True, slots=True)
class OrderReceipt:
    order_id: OrderId
    order: Order


# ═══════════════════════════════════════════════════════════════════════════════
# Protocols
# ═══════════════════════════════════════════════════════════════════════════════


class OrderCreation(Protocol):
    """
    Persist a payload as an order and decrement stock, atomically.

    Raises on any failure; checkout treats every exception the same way.
    """

    async def create(self, user_id: UserId, payload: OrderPayload) -> OrderReceipt: ...


class OrderBook(OrderCreation, Protocol):
    """Order creation plus the reads and status changes around it. Methods raise."""

    async def get(self, order_id: OrderId) -> Order | None: ...

    async def list(self, user_id: UserId | None = None) -> list[Order]: ...

    async def append_status(self, order_id: OrderId, status: OrderStatus) -> Order | None: ...

    async def has_purchased(self, user_id: UserId, product_id: ProductId) -> bool: ...


__all__ = (
    "OrderStatus",
    "OrderRejected",
    "OrderLine",
    "OrderPayload",
    "StatusEntry",
    "Order",
    "OrderReceipt",
    "OrderCreation",
    "OrderBook",
)
