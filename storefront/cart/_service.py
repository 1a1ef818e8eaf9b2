"""
Cart — validated operations over one shopper's cart.

    cart = Cart(SQLAlchemyCart(session_factory, user.id), catalog)

    match await cart.add(product_id=7, quantity=2):
        case Ok(view):
            print(view.total)
        case Error(err):
            print(err.public_message)     # "Only 1 of Brake pad in stock"

Every mutation re-validates against the live catalog stock, so a line's quantity
never exceeds the stock at the moment it was written.
"""

from __future__ import annotations

import logging
from dataclasses import replace

from kungfu import Error, LazyCoroResult, Ok, Result

import combinators as C

from storefront._errors import Errors, ShopError
from storefront._types import CartItemId, ProductId
from storefront.cart._types import CartBackend, CartItem, CartView, MergeResult
from storefront.catalog import Catalog, Product
from storefront.lift import guarded

logger = logging.getLogger(__name__)


class Cart:
    def __init__(self, backend: CartBackend, catalog: Catalog) -> None:
        self.backend = backend
        self.catalog = catalog

    # ═══════════════════════════════════════════════════════════════════════════
    # Reads
    # ═══════════════════════════════════════════════════════════════════════════

    async def _product(self, product_id: ProductId) -> Result[Product, ShopError]:
        match await guarded("catalog.get_product", lambda: self.catalog.get_product(product_id)):
            case Ok(None):
                return Error(Errors.not_found("product", product_id))
            case Ok(product):
                return Ok(product)
            case Error(err):
                return Error(err)

    async def view(self) -> Result[CartView, ShopError]:
        """Current lines with stock refreshed from the catalog."""
        match await guarded("cart.items", self.backend.items):
            case Error(err):
                return Error(err)
            case Ok(items):
                pass

        refreshed: list[CartItem] = []
        for item in items:
            match await guarded("catalog.get_product", lambda: self.catalog.get_product(item.product_id)):
                case Ok(None):
                    refreshed.append(replace(item, stock_quantity=0))
                case Ok(product):
                    refreshed.append(replace(item, stock_quantity=product.stock_quantity))
                case Error(err):
                    return Error(err)
        return Ok(CartView.of(refreshed))

    # ═══════════════════════════════════════════════════════════════════════════
    # Mutations
    # ═══════════════════════════════════════════════════════════════════════════

    async def add(self, product_id: ProductId, quantity: int = 1) -> Result[CartView, ShopError]:
        """
        Add quantity of a product. An existing line is incremented, not duplicated.

        Fails with out_of_stock when nothing is left and insufficient_stock when the
        combined quantity would exceed stock.
        """
        if quantity < 1:
            return Error(Errors.invalid_quantity(quantity))

        match await self._product(product_id):
            case Error(err):
                return Error(err)
            case Ok(product):
                pass

        if product.stock_quantity <= 0:
            return Error(Errors.out_of_stock(product.name))

        match await guarded("cart.find", lambda: self.backend.find(product_id)):
            case Error(err):
                return Error(err)
            case Ok(existing):
                pass

        in_cart = existing.quantity if existing is not None else 0
        if in_cart + quantity > product.stock_quantity:
            return Error(Errors.insufficient_stock(product.name, product.stock_quantity, in_cart))

        if existing is not None:
            written = await guarded(
                "cart.set_quantity", lambda: self.backend.set_quantity(existing.id, in_cart + quantity)
            )
        else:
            written = await guarded("cart.insert", lambda: self.backend.insert(product, quantity))

        if isinstance(written, Error):
            return Error(written.error)
        logger.debug("Added %d x product %s (now %d)", quantity, product_id, in_cart + quantity)
        return await self.view()

    async def update_quantity(self, item_id: CartItemId, quantity: int) -> Result[CartView, ShopError]:
        """Set a line's quantity. Over-stock requests fail; they are not clamped."""
        if quantity < 1:
            return Error(Errors.invalid_quantity(quantity))

        match await guarded("cart.get", lambda: self.backend.get(item_id)):
            case Error(err):
                return Error(err)
            case Ok(None):
                return Error(Errors.not_found("cart item", item_id))
            case Ok(item):
                pass

        match await self._product(item.product_id):
            case Error(err):
                return Error(err)
            case Ok(product):
                pass

        if quantity > product.stock_quantity:
            return Error(Errors.insufficient_stock(product.name, product.stock_quantity))

        match await guarded("cart.set_quantity", lambda: self.backend.set_quantity(item_id, quantity)):
            case Error(err):
                return Error(err)
            case Ok(None):
                return Error(Errors.not_found("cart item", item_id))
            case Ok(_):
                pass
        return await self.view()

    async def remove(self, item_id: CartItemId) -> Result[CartView, ShopError]:
        match await guarded("cart.delete", lambda: self.backend.delete(item_id)):
            case Error(err):
                return Error(err)
            case Ok(_):
                return await self.view()

    async def clear(self) -> Result[CartView, ShopError]:
        match await guarded("cart.clear", self.backend.clear):
            case Error(err):
                return Error(err)
            case Ok(_):
                return Ok(CartView.of([]))

    # ═══════════════════════════════════════════════════════════════════════════
    # Merge — guest cart into the signed-in cart
    # ═══════════════════════════════════════════════════════════════════════════

    async def merge(self, local: CartBackend) -> Result[MergeResult, ShopError]:
        """
        Move every guest line into this cart, once.

        Lines that fail (out of stock, product gone) are skipped and logged.
        The guest cart is cleared whatever happened, so a repeated sign-in
        has nothing left to merge.
        """
        try:
            match await guarded("local_cart.items", local.items):
                case Error(err):
                    return Error(err)
                case Ok(lines):
                    pass

            def _add(line: CartItem) -> LazyCoroResult[CartView, ShopError]:
                return LazyCoroResult(lambda: self.add(line.product_id, line.quantity))

            # Sequential: lines for the same product must not race each other
            outcomes = await C.batch_all(lines, _add, concurrency=1)
        finally:
            await local.clear()

        merged: list[ProductId] = []
        skipped: list[tuple[ProductId, ShopError]] = []
        for line, outcome in zip(lines, outcomes.unwrap()):
            match outcome:
                case Ok(_):
                    merged.append(line.product_id)
                case Error(err):
                    logger.info("Skipped guest cart line for product %s: %s", line.product_id, err.message)
                    skipped.append((line.product_id, err))

        match await self.view():
            case Error(err):
                return Error(err)
            case Ok(view):
                return Ok(MergeResult(cart=view, merged=tuple(merged), skipped=tuple(skipped)))


__all__ = ("Cart",)
