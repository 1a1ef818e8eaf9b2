"""
Checkout — shipping, payment method, payment details, submit.

    from storefront import checkout as CO

    sessions = CO.CheckoutSessions(lambda user: CO.Checkout(cart_for(user), orders, dispatcher, user))
    flow = sessions.for_user(user)
    await flow.advance(CO.ShippingInfo(first_name="Ada", ...))
"""

from storefront.checkout._types import CheckoutStep, ShippingInfo, CheckoutState
from storefront.checkout._orchestrator import Checkout
from storefront.checkout._sessions import CheckoutSessions, CheckoutFactory

__all__ = (
    "CheckoutStep",
    "ShippingInfo",
    "CheckoutState",
    "Checkout",
    "CheckoutSessions",
    "CheckoutFactory",
)
