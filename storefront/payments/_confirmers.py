"""
Payment confirmers — cash on delivery, bank transfer, check.

None of them moves money: they record the shopper's promise to pay and hand
back a PaymentIntent in "pending_payment" with a transaction id unique to the
attempt. Only the display text and reference fields differ.
"""

from __future__ import annotations

import secrets
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from decimal import Decimal

from kungfu import Error, Ok, Result

from storefront._errors import Errors, ShopError
from storefront._types import money
from storefront.config import BankDetails, MailingAddress
from storefront.payments._types import (
    PENDING_PAYMENT,
    Customer,
    PaymentConfirmer,
    PaymentDetails,
    PaymentIntent,
    PaymentMethod,
)

type TokenFn = Callable[[], str]


def new_token() -> str:
    return secrets.token_hex(6).upper()


def _check_amount(amount: Decimal) -> ShopError | None:
    if amount <= 0:
        return Errors.validation("Nothing to pay for: the cart is empty", code="empty_cart")
    return None


# ═══════════════════════════════════════════════════════════════════════════════
# Cash on delivery
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class CashOnDelivery:
    token: TokenFn = new_token

    @property
    def method(self) -> PaymentMethod:
        return PaymentMethod.CASH_ON_DELIVERY

    def instructions(self, amount: Decimal, customer: Customer) -> tuple[str, ...]:
        return (
            f"Pay ${money(amount)} in cash when your order is delivered.",
            "Please have the exact amount ready.",
        )

    def confirm(self, amount: Decimal, customer: Customer, details: PaymentDetails) -> Result[PaymentIntent, ShopError]:
        if problem := _check_amount(amount):
            return Error(problem)
        if not details.acknowledged:
            return Error(Errors.validation("Please confirm cash on delivery", code="acknowledgement_required"))

        return Ok(
            PaymentIntent(
                payment_method=self.method,
                payment_status=PENDING_PAYMENT,
                amount=money(amount),
                transaction_id=f"COD_{self.token()}",
                instructions=self.instructions(amount, customer),
            )
        )


# ═══════════════════════════════════════════════════════════════════════════════
# Bank transfer
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class BankTransfer:
    bank: BankDetails = field(default_factory=BankDetails)
    token: TokenFn = new_token

    @property
    def method(self) -> PaymentMethod:
        return PaymentMethod.BANK_TRANSFER

    def instructions(self, amount: Decimal, customer: Customer, reference: str | None = None) -> tuple[str, ...]:
        lines = [
            f"Transfer ${money(amount)} to:",
            f"Bank: {self.bank.bank_name}",
            f"Account name: {self.bank.account_name}",
            f"Account number: {self.bank.account_number}",
            f"Routing number: {self.bank.routing_number}",
        ]
        if reference:
            lines.append(f"Write reference {reference} on your transfer.")
        return tuple(lines)

    def confirm(self, amount: Decimal, customer: Customer, details: PaymentDetails) -> Result[PaymentIntent, ShopError]:
        if problem := _check_amount(amount):
            return Error(problem)

        reference = f"BT-{self.token()}"
        return Ok(
            PaymentIntent(
                payment_method=self.method,
                payment_status=PENDING_PAYMENT,
                amount=money(amount),
                transaction_id=f"BANK_{reference}",
                reference_number=reference,
                instructions=self.instructions(amount, customer, reference),
            )
        )


# ═══════════════════════════════════════════════════════════════════════════════
# Check / money order
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class Check:
    """
    Mail-in check. The shopper must explicitly confirm before an intent is produced.

    order_number goes on the check memo; transaction_id is CHECK_<order_number>.
    """

    mailing_address: MailingAddress = field(default_factory=MailingAddress)
    token: TokenFn = new_token
    clock: Callable[[], float] = time.time

    @property
    def method(self) -> PaymentMethod:
        return PaymentMethod.CHECK

    def instructions(self, amount: Decimal, customer: Customer, order_number: str | None = None) -> tuple[str, ...]:
        lines = [
            f"Make a check for ${money(amount)} payable to {self.mailing_address.company}.",
            "Mail it to:",
            *self.mailing_address.lines(),
        ]
        if order_number:
            lines.append(f"Write order number {order_number} in the memo line.")
        return tuple(lines)

    def confirm(self, amount: Decimal, customer: Customer, details: PaymentDetails) -> Result[PaymentIntent, ShopError]:
        if problem := _check_amount(amount):
            return Error(problem)
        if not details.confirmed:
            return Error(
                Errors.validation(
                    "Please confirm that you will mail a check for this order",
                    code="confirmation_required",
                )
            )

        order_number = f"YRD-{int(self.clock() * 1000)}{self.token()[:4]}"
        return Ok(
            PaymentIntent(
                payment_method=self.method,
                payment_status=PENDING_PAYMENT,
                amount=money(amount),
                transaction_id=f"CHECK_{order_number}",
                order_number=order_number,
                instructions=self.instructions(amount, customer, order_number),
            )
        )


# ═══════════════════════════════════════════════════════════════════════════════
# Registry
# ═══════════════════════════════════════════════════════════════════════════════


def default_confirmers(
    mailing_address: MailingAddress | None = None,
    bank: BankDetails | None = None,
) -> dict[PaymentMethod, PaymentConfirmer]:
    return {
        PaymentMethod.CASH_ON_DELIVERY: CashOnDelivery(),
        PaymentMethod.BANK_TRANSFER: BankTransfer(bank=bank or BankDetails()),
        PaymentMethod.CHECK: Check(mailing_address=mailing_address or MailingAddress()),
    }


__all__ = (
    "CashOnDelivery",
    "BankTransfer",
    "Check",
    "default_confirmers",
    "new_token",
)
