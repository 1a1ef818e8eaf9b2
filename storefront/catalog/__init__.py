"""
Catalog — read access to products for cart validation.

    from storefront import catalog

    product = await catalog.SQLAlchemyCatalog(session_factory).get_product(42)
"""

from storefront.catalog._types import Product, Catalog
from storefront.catalog._memory import MemoryCatalog
from storefront.catalog._sqlalchemy import SQLAlchemyCatalog, product_from_row

__all__ = (
    "Product",
    "Catalog",
    "MemoryCatalog",
    "SQLAlchemyCatalog",
    "product_from_row",
)
