"""
Server-side cart — one row per line in cart_items, scoped to an owner id.
"""

from __future__ import annotations

from sqlalchemy import Select, delete, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from storefront._types import CartItemId, ProductId, from_cents, to_cents, utcnow
from storefront.cart._types import CartItem
from storefront.catalog import Product
from storefront.db import CartItemTable, ProductTable


def _to_item(row: CartItemTable, stock: int | None) -> CartItem:
    return CartItem(
        id=row.id,
        product_id=row.product_id,
        name=row.name,
        quantity=row.quantity,
        unit_price=from_cents(row.unit_price_cents),
        stock_quantity=stock or 0,
    )


class SQLAlchemyCart:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession], owner_id: str) -> None:
        self._session_factory = session_factory
        self.owner_id = owner_id

    def _lines(self) -> Select[tuple[CartItemTable, int]]:
        return (
            select(CartItemTable, ProductTable.stock_quantity)
            .outerjoin(ProductTable, ProductTable.id == CartItemTable.product_id)
            .where(CartItemTable.owner_id == self.owner_id)
        )

    async def items(self) -> list[CartItem]:
        async with self._session_factory() as session:
            result = await session.execute(self._lines().order_by(CartItemTable.id))
            return [_to_item(row, stock) for row, stock in result.all()]

    async def get(self, item_id: CartItemId) -> CartItem | None:
        async with self._session_factory() as session:
            result = await session.execute(self._lines().where(CartItemTable.id == item_id))
            found = result.first()
            return _to_item(found[0], found[1]) if found else None

    async def find(self, product_id: ProductId) -> CartItem | None:
        async with self._session_factory() as session:
            result = await session.execute(
                self._lines().where(CartItemTable.product_id == product_id).order_by(CartItemTable.id)
            )
            found = result.first()
            return _to_item(found[0], found[1]) if found else None

    async def insert(self, product: Product, quantity: int) -> CartItem:
        async with self._session_factory() as session:
            row = CartItemTable(
                owner_id=self.owner_id,
                product_id=product.id,
                name=product.name,
                quantity=quantity,
                unit_price_cents=to_cents(product.price),
                created_at=utcnow(),
            )
            session.add(row)
            await session.commit()
            return _to_item(row, product.stock_quantity)

    async def set_quantity(self, item_id: CartItemId, quantity: int) -> CartItem | None:
        async with self._session_factory() as session:
            row = await session.get(CartItemTable, item_id)
            if row is None or row.owner_id != self.owner_id:
                return None
            row.quantity = quantity
            await session.commit()
            return _to_item(row, None)

    async def delete(self, item_id: CartItemId) -> bool:
        async with self._session_factory() as session:
            result = await session.execute(
                delete(CartItemTable).where(
                    CartItemTable.id == item_id,
                    CartItemTable.owner_id == self.owner_id,
                )
            )
            await session.commit()
            return bool(result.rowcount)  # type: ignore[attr-defined]

    async def clear(self) -> None:
        async with self._session_factory() as session:
            await session.execute(delete(CartItemTable).where(CartItemTable.owner_id == self.owner_id))
            await session.commit()


__all__ = ("SQLAlchemyCart",)
