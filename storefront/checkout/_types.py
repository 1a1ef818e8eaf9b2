"""
Checkout types — steps, shipping form, state snapshot.
"""

from __future__ import annotations

from dataclasses import dataclass, fields, replace
from enum import Enum

from storefront._errors import ShopError
from storefront.orders import OrderReceipt
from storefront.payments import Customer, PaymentIntent, PaymentMethod


class CheckoutStep(Enum):
    SHIPPING = "shipping"
    PAYMENT_METHOD = "payment_method"
    PAYMENT_DETAILS = "payment_details"
    SUBMITTING = "submitting"
    DONE = "done"

    @property
    def index(self) -> int:
        return list(CheckoutStep).index(self)

    def before(self, other: CheckoutStep) -> bool:
        return self.index < other.index


@dataclass(frozen=True, slots=True)
class ShippingInfo:
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    address: str = ""
    city: str = ""
    state: str = ""
    zip_code: str = ""
    phone: str = ""

    def stripped(self) -> ShippingInfo:
        return replace(self, **{f.name: (getattr(self, f.name) or "").strip() for f in fields(self)})

    def missing(self) -> tuple[str, ...]:
        """Names of required fields that are empty. Every field is required."""
        return tuple(f.name for f in fields(self) if not (getattr(self, f.name) or "").strip())

    def address_line(self) -> str:
        return (
            f"{self.first_name} {self.last_name}, {self.address}, "
            f"{self.city}, {self.state} {self.zip_code}, Phone: {self.phone}"
        )

    def customer(self) -> Customer:
        return Customer(first_name=self.first_name, last_name=self.last_name, email=self.email)


@dataclass(frozen=True, slots=True)
class CheckoutState:
    """Read-only snapshot of one orchestrator."""

    step: CheckoutStep
    shipping: ShippingInfo | None = None
    payment_method: PaymentMethod | None = None
    intent: PaymentIntent | None = None
    receipt: OrderReceipt | None = None
    error: ShopError | None = None


__all__ = (
    "CheckoutStep",
    "ShippingInfo",
    "CheckoutState",
)
