from decimal import Decimal

import pytest
from kungfu import Error, Ok

from storefront.config import BankDetails, MailingAddress
from storefront.payments import (
    PENDING_PAYMENT,
    BankTransfer,
    CashOnDelivery,
    Check,
    Customer,
    PaymentDetails,
    PaymentMethod,
    default_confirmers,
)

CUSTOMER = Customer(first_name="Ada", last_name="Rider", email="ada@example.com")
AMOUNT = Decimal("129.98")


def test_cash_on_delivery_requires_acknowledgement() -> None:
    confirmer = CashOnDelivery(token=lambda: "ABC123")

    refused = confirmer.confirm(AMOUNT, CUSTOMER, PaymentDetails())
    assert isinstance(refused, Error)
    assert refused.error.code == "acknowledgement_required"

    intent = confirmer.confirm(AMOUNT, CUSTOMER, PaymentDetails(acknowledged=True)).unwrap()
    assert intent.payment_method is PaymentMethod.CASH_ON_DELIVERY
    assert intent.payment_status == PENDING_PAYMENT
    assert intent.transaction_id == "COD_ABC123"
    assert intent.amount == AMOUNT
    assert "$129.98" in intent.instructions[0]


def test_bank_transfer_carries_reference_and_bank_details() -> None:
    bank = BankDetails(bank_name="Harbour Savings", account_number="9988")
    intent = BankTransfer(bank=bank, token=lambda: "F00D").confirm(AMOUNT, CUSTOMER, PaymentDetails()).unwrap()

    assert intent.reference_number == "BT-F00D"
    assert intent.transaction_id == "BANK_BT-F00D"
    assert intent.order_number is None
    assert "Bank: Harbour Savings" in intent.instructions
    assert "Account number: 9988" in intent.instructions
    assert any("BT-F00D" in line for line in intent.instructions)


def test_check_requires_confirmation_and_builds_order_number() -> None:
    confirmer = Check(
        mailing_address=MailingAddress(company="Parts Co"),
        token=lambda: "BEEFCAFE",
        clock=lambda: 1700000000.123,
    )

    refused = confirmer.confirm(AMOUNT, CUSTOMER, PaymentDetails(acknowledged=True))
    assert isinstance(refused, Error)
    assert refused.error.code == "confirmation_required"

    intent = confirmer.confirm(AMOUNT, CUSTOMER, PaymentDetails(confirmed=True)).unwrap()
    assert intent.order_number == "YRD-1700000000123BEEF"
    assert intent.transaction_id == "CHECK_YRD-1700000000123BEEF"
    assert "payable to Parts Co" in intent.instructions[0]
    assert any("YRD-1700000000123BEEF" in line for line in intent.instructions)


@pytest.mark.parametrize("method", list(PaymentMethod))
def test_every_method_rejects_an_empty_cart(method: PaymentMethod) -> None:
    confirmer = default_confirmers()[method]
    result = confirmer.confirm(Decimal("0.00"), CUSTOMER, PaymentDetails(acknowledged=True, confirmed=True))
    assert isinstance(result, Error)
    assert result.error.code == "empty_cart"


@pytest.mark.parametrize(
    ("method", "prefix"),
    [
        (PaymentMethod.CASH_ON_DELIVERY, "COD_"),
        (PaymentMethod.BANK_TRANSFER, "BANK_BT-"),
        (PaymentMethod.CHECK, "CHECK_YRD-"),
    ],
)
def test_transaction_ids_are_unique_per_attempt(method: PaymentMethod, prefix: str) -> None:
    confirmer = default_confirmers()[method]
    details = PaymentDetails(acknowledged=True, confirmed=True)

    ids = set()
    for _ in range(50):
        match confirmer.confirm(AMOUNT, CUSTOMER, details):
            case Ok(intent):
                assert intent.transaction_id.startswith(prefix)
                ids.add(intent.transaction_id)
            case Error(err):
                raise AssertionError(err)
    assert len(ids) == 50


def test_default_confirmers_cover_every_method() -> None:
    confirmers = default_confirmers()
    assert set(confirmers) == set(PaymentMethod)
    assert all(confirmers[m].method is m for m in PaymentMethod)
    assert CUSTOMER.full_name == "Ada Rider"
