"""
Notify — best-effort order confirmations.

    from storefront import notify as N

    dispatcher = N.BackgroundDispatcher(N.notifier_for(settings))
"""

from storefront.config import Settings
from storefront.notify._notifiers import (
    ConfirmationNotifier,
    LoggingNotifier,
    SmtpNotifier,
    render_confirmation,
)
from storefront.notify._dispatcher import BackgroundDispatcher


def notifier_for(settings: Settings) -> ConfirmationNotifier:
    """SMTP when configured, otherwise the log."""
    if settings.smtp is not None:
        return SmtpNotifier(settings.smtp)
    return LoggingNotifier()


__all__ = (
    "ConfirmationNotifier",
    "LoggingNotifier",
    "SmtpNotifier",
    "render_confirmation",
    "BackgroundDispatcher",
    "notifier_for",
)
