"""
Errors — one error type for every storefront operation.

    from storefront._errors import ShopError, ErrorKind, Errors

    match await cart.add(product_id, 2):
        case Ok(view):
            ...
        case Error(ShopError(kind=ErrorKind.CONFLICT, message=message)):
            show_inline(message)

ShopError is a value, not an exception: operations return Result[T, ShopError].
`message` is safe to show to a shopper; `detail` is for logs only.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


# ═══════════════════════════════════════════════════════════════════════════════
# Kinds
# ═══════════════════════════════════════════════════════════════════════════════


class ErrorKind(Enum):
    """
    Error taxonomy.

    VALIDATION: bad input shape or range, never retried automatically.
    AUTH:       missing or invalid identity.
    FORBIDDEN:  valid identity, insufficient rights.
    CONFLICT:   duplicate review, stock exceeded.
    NOT_FOUND:  review/order/product/cart line absent.
    DEPENDENCY: persistence or order creation failed or timed out.
    """

    VALIDATION = "validation"
    AUTH = "auth"
    FORBIDDEN = "forbidden"
    CONFLICT = "conflict"
    NOT_FOUND = "not_found"
    DEPENDENCY = "dependency"


GENERIC_FAILURE = "Something went wrong. Please try again."


# ═══════════════════════════════════════════════════════════════════════════════
# ShopError
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class ShopError:
    kind: ErrorKind
    code: str
    message: str
    detail: str | None = None

    @property
    def public_message(self) -> str:
        """Message for the shopper-facing surface. Dependency detail never leaks."""
        if self.kind is ErrorKind.DEPENDENCY:
            return GENERIC_FAILURE
        return self.message

    @property
    def retryable(self) -> bool:
        return self.kind is ErrorKind.DEPENDENCY


# ═══════════════════════════════════════════════════════════════════════════════
# Constructors
# ═══════════════════════════════════════════════════════════════════════════════


class Errors:
    """Factory for the errors the storefront raises."""

    # Validation

    @staticmethod
    def validation(message: str, code: str = "validation_error") -> ShopError:
        return ShopError(ErrorKind.VALIDATION, code, message)

    @staticmethod
    def invalid_quantity(quantity: int) -> ShopError:
        return ShopError(
            ErrorKind.VALIDATION,
            "invalid_quantity",
            f"Quantity must be at least 1 (got {quantity})",
        )

    @staticmethod
    def invalid_rating(rating: int) -> ShopError:
        return ShopError(
            ErrorKind.VALIDATION,
            "invalid_rating",
            f"Rating must be between 1 and 5 (got {rating})",
        )

    @staticmethod
    def no_fields_to_update() -> ShopError:
        return ShopError(ErrorKind.VALIDATION, "no_fields_to_update", "No fields to update")

    @staticmethod
    def missing_fields(*fields: str) -> ShopError:
        return ShopError(
            ErrorKind.VALIDATION,
            "missing_fields",
            "Required fields are missing: " + ", ".join(fields),
        )

    # Identity

    @staticmethod
    def unauthenticated() -> ShopError:
        return ShopError(ErrorKind.AUTH, "unauthenticated", "Please sign in")

    @staticmethod
    def forbidden(message: str = "Not authorized") -> ShopError:
        return ShopError(ErrorKind.FORBIDDEN, "forbidden", message)

    # Conflicts

    @staticmethod
    def out_of_stock(name: str) -> ShopError:
        return ShopError(ErrorKind.CONFLICT, "out_of_stock", f"{name} is out of stock")

    @staticmethod
    def insufficient_stock(name: str, available: int, in_cart: int = 0) -> ShopError:
        can_add = max(available - in_cart, 0)
        return ShopError(
            ErrorKind.CONFLICT,
            "insufficient_stock",
            f"Only {available} of {name} in stock"
            + (f" ({in_cart} already in cart, {can_add} more can be added)" if in_cart else ""),
        )

    @staticmethod
    def already_reviewed() -> ShopError:
        return ShopError(
            ErrorKind.CONFLICT, "already_reviewed", "You have already reviewed this product"
        )

    @staticmethod
    def conflict(message: str, code: str = "conflict") -> ShopError:
        return ShopError(ErrorKind.CONFLICT, code, message)

    # Lookups

    @staticmethod
    def not_found(what: str, ident: object) -> ShopError:
        code = what.replace(" ", "_")
        return ShopError(ErrorKind.NOT_FOUND, f"{code}_not_found", f"{what.capitalize()} {ident} not found")

    # Dependencies

    @staticmethod
    def dependency(operation: str, cause: BaseException | str) -> ShopError:
        return ShopError(
            ErrorKind.DEPENDENCY,
            "dependency_failed",
            GENERIC_FAILURE,
            detail=f"{operation}: {cause!r}" if isinstance(cause, BaseException) else f"{operation}: {cause}",
        )


# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = (
    "ErrorKind",
    "ShopError",
    "Errors",
    "GENERIC_FAILURE",
)
