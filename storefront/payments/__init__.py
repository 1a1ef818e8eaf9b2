"""
Payments — manual payment methods behind one PaymentConfirmer contract.

    from storefront import payments as P

    confirmer = P.default_confirmers()[P.PaymentMethod.CHECK]
    intent = confirmer.confirm(total, customer, P.PaymentDetails(confirmed=True))
"""

from storefront.payments._types import (
    PaymentMethod,
    PENDING_PAYMENT,
    Customer,
    PaymentDetails,
    PaymentIntent,
    PaymentConfirmer,
)
from storefront.payments._confirmers import (
    CashOnDelivery,
    BankTransfer,
    Check,
    default_confirmers,
    new_token,
)

__all__ = (
    "PaymentMethod",
    "PENDING_PAYMENT",
    "Customer",
    "PaymentDetails",
    "PaymentIntent",
    "PaymentConfirmer",
    "CashOnDelivery",
    "BankTransfer",
    "Check",
    "default_confirmers",
    "new_token",
)
