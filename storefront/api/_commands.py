"""
Commands — what a request means once it is off the wire.
"""

from __future__ import annotations

from dataclasses import dataclass

from storefront._types import CartItemId, OrderId, ProductId, ReviewId
from storefront.cart import CartItem
from storefront.checkout import CheckoutStep
from storefront.orders import OrderStatus
from storefront.reviews import ModerationStatus, ReviewPatch, ReviewSort


# Cart


@dataclass(frozen=True, slots=True)
class AddItem:
    product_id: ProductId
    quantity: int


@dataclass(frozen=True, slots=True)
class SetQuantity:
    item_id: CartItemId
    quantity: int


@dataclass(frozen=True, slots=True)
class RemoveItem:
    item_id: CartItemId


@dataclass(frozen=True, slots=True)
class ImportCart:
    items: tuple[CartItem, ...]


# Reviews


@dataclass(frozen=True, slots=True)
class ListReviews:
    product_id: ProductId
    sort: ReviewSort
    page: int
    limit: int


@dataclass(frozen=True, slots=True)
class ProductRef:
    product_id: ProductId


@dataclass(frozen=True, slots=True)
class CreateReview:
    product_id: ProductId
    rating: int
    title: str | None
    text: str | None


@dataclass(frozen=True, slots=True)
class UpdateReview:
    review_id: ReviewId
    patch: ReviewPatch


@dataclass(frozen=True, slots=True)
class ReviewRef:
    review_id: ReviewId


@dataclass(frozen=True, slots=True)
class Vote:
    review_id: ReviewId
    is_helpful: bool


@dataclass(frozen=True, slots=True)
class ModerationQuery:
    status: ModerationStatus
    page: int
    limit: int


# Checkout and orders


@dataclass(frozen=True, slots=True)
class GoBack:
    step: CheckoutStep | None = None


@dataclass(frozen=True, slots=True)
class Submit:
    idempotency_key: str | None = None


@dataclass(frozen=True, slots=True)
class SetOrderStatus:
    order_id: OrderId
    status: OrderStatus


__all__ = (
    "AddItem",
    "SetQuantity",
    "RemoveItem",
    "ImportCart",
    "ListReviews",
    "ProductRef",
    "CreateReview",
    "UpdateReview",
    "ReviewRef",
    "Vote",
    "ModerationQuery",
    "GoBack",
    "Submit",
    "SetOrderStatus",
)
