"""
Confirmation notifiers — tell the shopper their order went through.

Notifiers raise on failure; BackgroundDispatcher is what keeps those failures
away from checkout.
"""

from __future__ import annotations

import asyncio
import logging
import smtplib
from email.message import EmailMessage
from typing import Protocol

from storefront._types import money
from storefront.config import SmtpSettings
from storefront.orders import Order

logger = logging.getLogger(__name__)


class ConfirmationNotifier(Protocol):
    async def send(self, order: Order) -> None: ...


def render_confirmation(order: Order) -> tuple[str, str]:
    """(subject, body) for an order confirmation."""
    subject = f"Order #{order.id} confirmed"
    lines = [
        f"Hi {order.first_name or 'there'},",
        "",
        f"Thank you for your order #{order.id}.",
        "",
    ]
    lines += [f"  {line.quantity} x product {line.product_id} @ ${money(line.price)}" for line in order.items]
    lines += [
        "",
        f"Total: ${money(order.total_amount)}",
        f"Payment: {order.payment_method.value.replace('_', ' ')} ({order.payment_status})",
        f"Transaction: {order.transaction_id}",
    ]
    if order.order_number:
        lines.append(f"Order number (check memo): {order.order_number}")
    if order.reference_number:
        lines.append(f"Transfer reference: {order.reference_number}")
    lines += ["", f"Shipping to: {order.shipping_address}"]
    return subject, "\n".join(lines)


class LoggingNotifier:
    """Writes the confirmation to the log instead of mailing it."""

    async def send(self, order: Order) -> None:
        subject, _ = render_confirmation(order)
        logger.info("Confirmation for order %s to %s: %s", order.id, order.email or "<no email>", subject)


class SmtpNotifier:
    def __init__(self, settings: SmtpSettings) -> None:
        self.settings = settings

    def _deliver(self, message: EmailMessage) -> None:
        with smtplib.SMTP(self.settings.host, self.settings.port, timeout=30) as smtp:
            if self.settings.use_tls:
                smtp.starttls()
            if self.settings.username:
                smtp.login(self.settings.username, self.settings.password or "")
            smtp.send_message(message)

    async def send(self, order: Order) -> None:
        if not order.email:
            logger.warning("Order %s has no email address; confirmation not sent", order.id)
            return

        subject, body = render_confirmation(order)
        message = EmailMessage()
        message["Subject"] = subject
        message["From"] = self.settings.sender
        message["To"] = order.email
        message.set_content(body)

        # smtplib blocks
        await asyncio.to_thread(self._deliver, message)
        logger.info("Confirmation for order %s mailed to %s", order.id, order.email)


__all__ = (
    "ConfirmationNotifier",
    "LoggingNotifier",
    "SmtpNotifier",
    "render_confirmation",
)
