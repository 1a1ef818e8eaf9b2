from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Protocol

from storefront._types import ProductId


@dataclass(frozen=True, slots=True)
class Product:
    id: ProductId
    name: str
    price: Decimal
    stock_quantity: int

    @property
    def in_stock(self) -> bool:
        return self.stock_quantity > 0


class Catalog(Protocol):
    """
    Catalog read model.

    get_product returns None for an unknown id and raises on infrastructure failure.
    """

    async def get_product(self, product_id: ProductId) -> Product | None: ...


__all__ = ("Product", "Catalog")
