from __future__ import annotations

import asyncio
from dataclasses import replace
from decimal import Decimal

from storefront._types import ProductId, money
from storefront.catalog._types import Product


class MemoryCatalog:
    """In-process catalog for tests and demos."""

    def __init__(self, products: list[Product] | None = None) -> None:
        self._products: dict[ProductId, Product] = {p.id: p for p in products or []}
        self._next_id = max(self._products, default=0) + 1
        self.lock = asyncio.Lock()

    def add(self, name: str, price: Decimal | str, stock_quantity: int) -> Product:
        product = Product(id=self._next_id, name=name, price=money(price), stock_quantity=stock_quantity)
        self._products[product.id] = product
        self._next_id += 1
        return product

    def set_stock(self, product_id: ProductId, stock_quantity: int) -> None:
        self._products[product_id] = replace(self._products[product_id], stock_quantity=stock_quantity)

    def peek(self, product_id: ProductId) -> Product | None:
        return self._products.get(product_id)

    async def get_product(self, product_id: ProductId) -> Product | None:
        return self._products.get(product_id)


__all__ = ("MemoryCatalog",)
