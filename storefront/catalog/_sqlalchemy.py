from __future__ import annotations

from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from storefront._types import ProductId, from_cents, to_cents
from storefront.catalog._types import Product
from storefront.db import ProductTable


def product_from_row(row: ProductTable) -> Product:
    return Product(
        id=row.id,
        name=row.name,
        price=from_cents(row.price_cents),
        stock_quantity=row.stock_quantity,
    )


class SQLAlchemyCatalog:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def get_product(self, product_id: ProductId) -> Product | None:
        async with self._session_factory() as session:
            row = await session.get(ProductTable, product_id)
            return product_from_row(row) if row is not None else None

    async def add(self, name: str, price: Decimal, stock_quantity: int) -> Product:
        """Seed a product. Catalog management itself lives outside the storefront core."""
        async with self._session_factory() as session:
            row = ProductTable(name=name, price_cents=to_cents(price), stock_quantity=stock_quantity)
            session.add(row)
            await session.commit()
            return product_from_row(row)


__all__ = ("SQLAlchemyCatalog", "product_from_row")
