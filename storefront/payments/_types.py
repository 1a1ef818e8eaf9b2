"""
Payment types — the shared contract every confirmer produces.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Protocol

from kungfu import Result

from storefront._errors import ShopError


class PaymentMethod(Enum):
    CASH_ON_DELIVERY = "cash_on_delivery"
    BANK_TRANSFER = "bank_transfer"
    CHECK = "check"


PENDING_PAYMENT = "pending_payment"


@dataclass(frozen=True, slots=True)
class Customer:
    first_name: str
    last_name: str
    email: str

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


@dataclass(frozen=True, slots=True)
class PaymentDetails:
    """
    What the shopper did on the payment details step.

    acknowledged: accepted the cash-on-delivery / bank-transfer terms.
    confirmed:    ticked the "I will mail a check" box.
    """

    acknowledged: bool = False
    confirmed: bool = False


@dataclass(frozen=True, slots=True)
class PaymentIntent:
    """
    Payment facts for one order attempt. Not persisted beyond the order record.

    Every confirmer fills the same shape; order_number and reference_number are
    strategy specific, instructions are the text shown to the shopper.
    """

    payment_method: PaymentMethod
    payment_status: str
    amount: Decimal
    transaction_id: str
    order_number: str | None = None
    reference_number: str | None = None
    instructions: tuple[str, ...] = ()


class PaymentConfirmer(Protocol):
    """
    A manual (non-gateway) payment method.

    Stateless: confirm() depends only on its arguments and a fresh token.
    """

    @property
    def method(self) -> PaymentMethod: ...

    def instructions(self, amount: Decimal, customer: Customer) -> tuple[str, ...]: ...

    def confirm(
        self,
        amount: Decimal,
        customer: Customer,
        details: PaymentDetails,
    ) -> Result[PaymentIntent, ShopError]: ...


__all__ = (
    "PaymentMethod",
    "PENDING_PAYMENT",
    "Customer",
    "PaymentDetails",
    "PaymentIntent",
    "PaymentConfirmer",
)
