"""
Core types for storefront.

Re-exports from kungfu/combinators + domain aliases shared by every feature package.
"""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Never

# Re-export from kungfu
from kungfu import Result, Ok, Error, Option, Some, Nothing, LazyCoroResult

# Re-export from combinators
from combinators import LCR, NoError

# ═══════════════════════════════════════════════════════════════════════════════
# Lazy Computation Aliases
# ═══════════════════════════════════════════════════════════════════════════════

type Lazy[T, E] = LazyCoroResult[T, E]
"""Lazy async computation that may fail."""

type Pure[T] = Lazy[T, Never]
"""Lazy computation that cannot fail."""

type Fallible[T, E] = Lazy[T, E]
"""Lazy computation that can fail with E."""

# ═══════════════════════════════════════════════════════════════════════════════
# Identifiers
# ═══════════════════════════════════════════════════════════════════════════════

type UserId = str
type ProductId = int
type CartItemId = int
type ReviewId = int
type OrderId = int

# ═══════════════════════════════════════════════════════════════════════════════
# Money
# ═══════════════════════════════════════════════════════════════════════════════

CENT = Decimal("0.01")


def money(value: Decimal | int | float | str) -> Decimal:
    """
    Normalize an amount to cents.

    Floats go through str() so 64.99 stays 64.99 instead of its binary expansion.
    """
    if isinstance(value, float):
        value = str(value)
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def to_cents(value: Decimal) -> int:
    return int(money(value) * 100)


def from_cents(cents: int) -> Decimal:
    return money(Decimal(cents) / 100)


def utcnow() -> datetime:
    """Naive UTC timestamp; the database columns are naive too."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = (
    # Re-exports from kungfu
    "Result",
    "Ok",
    "Error",
    "Option",
    "Some",
    "Nothing",
    "LazyCoroResult",
    # Re-exports from combinators
    "LCR",
    "NoError",
    # Type aliases
    "Lazy",
    "Pure",
    "Fallible",
    # Identifiers
    "UserId",
    "ProductId",
    "CartItemId",
    "ReviewId",
    "OrderId",
    # Money
    "CENT",
    "money",
    "to_cents",
    "from_cents",
    "utcnow",
)
