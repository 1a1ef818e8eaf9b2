"""
Cart — guest and signed-in carts.

    from storefront import cart as CT

    guest = CT.LocalCart()
    await CT.Cart(guest, catalog).add(product_id, 1)

    # at sign-in
    server = CT.Cart(CT.SQLAlchemyCart(session_factory, user.id), catalog)
    await server.merge(guest)
"""

from storefront.cart._types import CartItem, CartView, MergeResult, CartBackend
from storefront.cart._local import LocalCart
from storefront.cart._sqlalchemy import SQLAlchemyCart
from storefront.cart._service import Cart

__all__ = (
    "CartItem",
    "CartView",
    "MergeResult",
    "CartBackend",
    "LocalCart",
    "SQLAlchemyCart",
    "Cart",
)
