"""
storefront — cart, reviews and checkout for a parts shop.

    from storefront import cart as CT         # Guest and signed-in carts, merge
    from storefront import reviews as R       # Ratings, votes, moderation
    from storefront import checkout as CO     # Shipping → payment → order
    from storefront import payments as P      # Manual payment confirmers
    from storefront import orders as O        # Order creation and history
    from storefront import idempotency as I   # At-most-once submission
"""

from storefront import lift
from storefront import identity
from storefront import catalog
from storefront import cart
from storefront import reviews
from storefront import payments
from storefront import orders
from storefront import notify
from storefront import checkout
from storefront import idempotency
from storefront._errors import ErrorKind, ShopError, Errors
from storefront._types import (
    Lazy,
    Pure,
    Fallible,
    LCR,
    NoError,
)

__version__ = "0.1.0"

__all__ = (
    "lift",
    "identity",
    "catalog",
    "cart",
    "reviews",
    "payments",
    "orders",
    "notify",
    "checkout",
    "idempotency",
    "ErrorKind",
    "ShopError",
    "Errors",
    "Lazy",
    "Pure",
    "Fallible",
    "LCR",
    "NoError",
)
