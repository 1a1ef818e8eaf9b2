"""
Cart types and the backend protocol.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Protocol

from storefront._errors import ShopError
from storefront._types import CartItemId, ProductId, money
from storefront.catalog import Product


# ═══════════════════════════════════════════════════════════════════════════════
# Lines and views
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class CartItem:
    """
    One cart line.

    unit_price is the price when the line was added; stock_quantity is advisory
    and refreshed whenever the cart is read.
    """

    id: CartItemId
    product_id: ProductId
    name: str
    quantity: int
    unit_price: Decimal
    stock_quantity: int = 0

    @property
    def line_total(self) -> Decimal:
        return money(self.unit_price * self.quantity)


@dataclass(frozen=True, slots=True)
class CartView:
    items: tuple[CartItem, ...]
    total: Decimal

    @classmethod
    def of(cls, items: list[CartItem] | tuple[CartItem, ...]) -> CartView:
        return cls(items=tuple(items), total=money(sum((i.line_total for i in items), Decimal(0))))

    @property
    def count(self) -> int:
        return sum(i.quantity for i in self.items)

    @property
    def is_empty(self) -> bool:
        return not self.items

    def line_for(self, product_id: ProductId) -> CartItem | None:
        return next((i for i in self.items if i.product_id == product_id), None)


@dataclass(frozen=True, slots=True)
class MergeResult:
    """Outcome of moving a guest cart into the signed-in cart."""

    cart: CartView
    merged: tuple[ProductId, ...] = ()
    skipped: tuple[tuple[ProductId, ShopError], ...] = field(default_factory=tuple)


# ═══════════════════════════════════════════════════════════════════════════════
# Backend protocol
# ═══════════════════════════════════════════════════════════════════════════════


class CartBackend(Protocol):
    """
    Storage of one shopper's cart lines.

    Backends do no validation; Cart does. Methods raise on infrastructure failure.
    """

    async def items(self) -> list[CartItem]: ...

    async def get(self, item_id: CartItemId) -> CartItem | None: ...

    async def find(self, product_id: ProductId) -> CartItem | None: ...

    async def insert(self, product: Product, quantity: int) -> CartItem: ...

    async def set_quantity(self, item_id: CartItemId, quantity: int) -> CartItem | None: ...

    async def delete(self, item_id: CartItemId) -> bool: ...

    async def clear(self) -> None: ...


__all__ = (
    "CartItem",
    "CartView",
    "MergeResult",
    "CartBackend",
)
