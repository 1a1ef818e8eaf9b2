"""
Guest cart — lives with the client until sign-in.

    local = LocalCart.from_json(request_payload)
    ...
    payload = local.to_json()
"""

from __future__ import annotations

import json
from dataclasses import replace

from storefront._types import CartItemId, ProductId, money
from storefront.cart._types import CartItem
from storefront.catalog import Product


class LocalCart:
    def __init__(self, items: list[CartItem] | None = None) -> None:
        self._items: list[CartItem] = list(items or [])
        self._next_id = max((i.id for i in self._items), default=0) + 1

    # Serialization

    @classmethod
    def from_json(cls, raw: str | None) -> LocalCart:
        if not raw:
            return cls()
        return cls(
            [
                CartItem(
                    id=int(entry["id"]),
                    product_id=int(entry["product_id"]),
                    name=str(entry.get("name", "")),
                    quantity=int(entry["quantity"]),
                    unit_price=money(entry.get("unit_price", "0")),
                    stock_quantity=int(entry.get("stock_quantity", 0)),
                )
                for entry in json.loads(raw)
            ]
        )

    def to_json(self) -> str:
        return json.dumps(
            [
                {
                    "id": i.id,
                    "product_id": i.product_id,
                    "name": i.name,
                    "quantity": i.quantity,
                    "unit_price": str(i.unit_price),
                    "stock_quantity": i.stock_quantity,
                }
                for i in self._items
            ]
        )

    # CartBackend

    async def items(self) -> list[CartItem]:
        return list(self._items)

    async def get(self, item_id: CartItemId) -> CartItem | None:
        return next((i for i in self._items if i.id == item_id), None)

    async def find(self, product_id: ProductId) -> CartItem | None:
        return next((i for i in self._items if i.product_id == product_id), None)

    async def insert(self, product: Product, quantity: int) -> CartItem:
        item = CartItem(
            id=self._next_id,
            product_id=product.id,
            name=product.name,
            quantity=quantity,
            unit_price=product.price,
            stock_quantity=product.stock_quantity,
        )
        self._next_id += 1
        self._items.append(item)
        return item

    async def set_quantity(self, item_id: CartItemId, quantity: int) -> CartItem | None:
        for idx, item in enumerate(self._items):
            if item.id == item_id:
                self._items[idx] = replace(item, quantity=quantity)
                return self._items[idx]
        return None

    async def delete(self, item_id: CartItemId) -> bool:
        before = len(self._items)
        self._items = [i for i in self._items if i.id != item_id]
        return len(self._items) < before

    async def clear(self) -> None:
        self._items.clear()


__all__ = ("LocalCart",)
