"""
Settings — runtime configuration.

    from storefront.config import Settings

    settings = Settings.from_env()                      # .env + environment
    settings = Settings().with_database("sqlite+aiosqlite:///shop.db").with_auto_approve()

Immutable: every with_* method returns a new Settings.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from datetime import timedelta

from dotenv import load_dotenv


def _flag(raw: str | None, default: bool = False) -> bool:
    if raw is None or raw == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


# ═══════════════════════════════════════════════════════════════════════════════
# Payment display details
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class MailingAddress:
    company: str = "Yamaha RD Parts"
    address: str = "123 Motorcycle Lane"
    city: str = "Bike City"
    state: str = "BC"
    zip_code: str = "12345"
    country: str = "USA"

    def lines(self) -> tuple[str, ...]:
        return (
            self.company,
            self.address,
            f"{self.city}, {self.state} {self.zip_code}",
            self.country,
        )


@dataclass(frozen=True, slots=True)
class BankDetails:
    bank_name: str = "First Motorcycle Bank"
    account_name: str = "Yamaha RD Parts"
    account_number: str = "000123456789"
    routing_number: str = "021000021"


# ═══════════════════════════════════════════════════════════════════════════════
# SMTP
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class SmtpSettings:
    host: str
    port: int = 587
    username: str | None = None
    password: str | None = None
    sender: str = "orders@localhost"
    use_tls: bool = True


# ═══════════════════════════════════════════════════════════════════════════════
# Settings
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class Settings:
    """
    Storefront configuration.

    Note: smtp=None selects the logging notifier; nothing is mailed.
    """

    database_url: str = "sqlite+aiosqlite:///:memory:"
    jwt_secret: str = "devsecret"
    token_ttl: timedelta = timedelta(hours=24)
    review_auto_approve: bool = False
    order_timeout: timedelta = timedelta(seconds=30)
    idempotency_ttl: timedelta = timedelta(hours=24)
    log_level: str = "INFO"
    smtp: SmtpSettings | None = None
    mailing_address: MailingAddress = MailingAddress()
    bank: BankDetails = BankDetails()

    @classmethod
    def from_env(cls, dotenv_path: str | None = None) -> Settings:
        """
        Read settings from the environment.

        A .env file (or dotenv_path) is loaded first; real environment variables win.
        """
        load_dotenv(dotenv_path)
        defaults = cls()

        smtp: SmtpSettings | None = None
        if host := os.getenv("SMTP_HOST"):
            smtp = SmtpSettings(
                host=host,
                port=int(os.getenv("SMTP_PORT", "587")),
                username=os.getenv("SMTP_USER") or None,
                password=os.getenv("SMTP_PASSWORD") or None,
                sender=os.getenv("MAIL_FROM", "orders@localhost"),
                use_tls=_flag(os.getenv("SMTP_TLS"), default=True),
            )

        mailing = defaults.mailing_address
        if payee := os.getenv("CHECK_PAYEE"):
            mailing = replace(mailing, company=payee)
        if address := os.getenv("CHECK_MAILING_ADDRESS"):
            mailing = replace(mailing, address=address)

        bank = defaults.bank
        if bank_name := os.getenv("BANK_NAME"):
            bank = replace(bank, bank_name=bank_name)
        if account := os.getenv("BANK_ACCOUNT"):
            bank = replace(bank, account_number=account)

        return cls(
            database_url=os.getenv("DATABASE_URL", defaults.database_url),
            jwt_secret=os.getenv("JWT_SECRET", defaults.jwt_secret),
            token_ttl=timedelta(
                seconds=int(os.getenv("TOKEN_TTL_SECONDS", str(int(defaults.token_ttl.total_seconds()))))
            ),
            review_auto_approve=_flag(os.getenv("REVIEW_AUTO_APPROVE")),
            order_timeout=timedelta(
                seconds=float(os.getenv("ORDER_TIMEOUT_SECONDS", str(defaults.order_timeout.total_seconds())))
            ),
            idempotency_ttl=timedelta(
                seconds=int(os.getenv("IDEMPOTENCY_TTL_SECONDS", str(int(defaults.idempotency_ttl.total_seconds()))))
            ),
            log_level=os.getenv("LOG_LEVEL", defaults.log_level),
            smtp=smtp,
            mailing_address=mailing,
            bank=bank,
        )

    def with_database(self, url: str) -> Settings:
        return replace(self, database_url=url)

    def with_secret(self, secret: str) -> Settings:
        return replace(self, jwt_secret=secret)

    def with_auto_approve(self, enabled: bool = True) -> Settings:
        """Publish new reviews immediately instead of queueing them for moderation."""
        return replace(self, review_auto_approve=enabled)

    def with_order_timeout(
        self,
        *,
        seconds: float | None = None,
        delta: timedelta | None = None,
    ) -> Settings:
        """
        Bound the order creation call.

        Example:
            .with_order_timeout(seconds=10)
        """
        timeout = delta if delta else timedelta(seconds=seconds or 30)
        return replace(self, order_timeout=timeout)

    def with_smtp(self, smtp: SmtpSettings | None) -> Settings:
        return replace(self, smtp=smtp)

    def with_log_level(self, level: str) -> Settings:
        return replace(self, log_level=level)


__all__ = (
    "Settings",
    "SmtpSettings",
    "MailingAddress",
    "BankDetails",
)
