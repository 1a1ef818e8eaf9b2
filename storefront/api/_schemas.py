"""
Request and response models.

Requests implement to_domain(); responses implement from_domain(). Money goes
out as a float with two decimals, the way the storefront client reads it.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from storefront._types import money
from storefront.api import _commands as cmd
from storefront.cart import CartItem, CartView, MergeResult
from storefront.checkout import CheckoutState, CheckoutStep, ShippingInfo
from storefront.orders import Order, OrderReceipt, OrderStatus
from storefront.payments import PaymentDetails, PaymentIntent, PaymentMethod
from storefront.reviews import (
    DEFAULT_PAGE_SIZE,
    ModerationStatus,
    Review,
    ReviewPage,
    ReviewPatch,
    ReviewSort,
    ReviewStatistics,
)


def _amount(value: Decimal) -> float:
    return float(money(value))


# ═══════════════════════════════════════════════════════════════════════════════
# Cart
# ═══════════════════════════════════════════════════════════════════════════════


class AddToCartIn(BaseModel):
    product_id: int
    quantity: int = 1

    def to_domain(self) -> cmd.AddItem:
        return cmd.AddItem(product_id=self.product_id, quantity=self.quantity)


class UpdateCartItemIn(BaseModel):
    item_id: int
    quantity: int

    def to_domain(self) -> cmd.SetQuantity:
        return cmd.SetQuantity(item_id=self.item_id, quantity=self.quantity)


class RemoveCartItemIn(BaseModel):
    item_id: int

    def to_domain(self) -> cmd.RemoveItem:
        return cmd.RemoveItem(item_id=self.item_id)


class GuestLineIn(BaseModel):
    product_id: int
    quantity: int
    name: str = ""
    unit_price: float = 0.0


class ImportCartIn(BaseModel):
    items: list[GuestLineIn] = Field(default_factory=list)

    def to_domain(self) -> cmd.ImportCart:
        return cmd.ImportCart(
            items=tuple(
                CartItem(
                    id=idx,
                    product_id=line.product_id,
                    name=line.name,
                    quantity=line.quantity,
                    unit_price=money(line.unit_price),
                )
                for idx, line in enumerate(self.items, start=1)
            )
        )


class CartItemOut(BaseModel):
    id: int
    product_id: int
    name: str
    quantity: int
    unit_price: float
    stock_quantity: int
    line_total: float

    @classmethod
    def from_domain(cls, dom: CartItem) -> CartItemOut:
        return cls(
            id=dom.id,
            product_id=dom.product_id,
            name=dom.name,
            quantity=dom.quantity,
            unit_price=_amount(dom.unit_price),
            stock_quantity=dom.stock_quantity,
            line_total=_amount(dom.line_total),
        )


class CartOut(BaseModel):
    items: list[CartItemOut]
    total: float
    count: int

    @classmethod
    def from_domain(cls, dom: CartView) -> CartOut:
        return cls(
            items=[CartItemOut.from_domain(i) for i in dom.items],
            total=_amount(dom.total),
            count=dom.count,
        )


class SkippedLineOut(BaseModel):
    product_id: int
    code: str
    message: str


class MergeOut(BaseModel):
    cart: CartOut
    merged: list[int]
    skipped: list[SkippedLineOut]

    @classmethod
    def from_domain(cls, dom: MergeResult) -> MergeOut:
        return cls(
            cart=CartOut.from_domain(dom.cart),
            merged=list(dom.merged),
            skipped=[
                SkippedLineOut(product_id=pid, code=err.code, message=err.public_message)
                for pid, err in dom.skipped
            ],
        )


# ═══════════════════════════════════════════════════════════════════════════════
# Reviews
# ═══════════════════════════════════════════════════════════════════════════════


class ReviewListQuery(BaseModel):
    product_id: int
    sort: ReviewSort = ReviewSort.NEWEST
    page: int = 1
    limit: int = DEFAULT_PAGE_SIZE

    def to_domain(self) -> cmd.ListReviews:
        return cmd.ListReviews(product_id=self.product_id, sort=self.sort, page=self.page, limit=self.limit)


class ProductQuery(BaseModel):
    product_id: int

    def to_domain(self) -> cmd.ProductRef:
        return cmd.ProductRef(product_id=self.product_id)


class CreateReviewIn(BaseModel):
    product_id: int
    rating: int
    title: str | None = None
    text: str | None = None

    def to_domain(self) -> cmd.CreateReview:
        return cmd.CreateReview(product_id=self.product_id, rating=self.rating, title=self.title, text=self.text)


class UpdateReviewIn(BaseModel):
    review_id: int
    rating: int | None = None
    title: str | None = None
    text: str | None = None
    is_approved: bool | None = None

    def to_domain(self) -> cmd.UpdateReview:
        return cmd.UpdateReview(
            review_id=self.review_id,
            patch=ReviewPatch(rating=self.rating, title=self.title, text=self.text, is_approved=self.is_approved),
        )


class ReviewQuery(BaseModel):
    review_id: int

    def to_domain(self) -> cmd.ReviewRef:
        return cmd.ReviewRef(review_id=self.review_id)


class VoteIn(BaseModel):
    review_id: int
    is_helpful: bool

    def to_domain(self) -> cmd.Vote:
        return cmd.Vote(review_id=self.review_id, is_helpful=self.is_helpful)


class ModerationQueryIn(BaseModel):
    status: ModerationStatus = ModerationStatus.ALL
    page: int = 1
    limit: int = DEFAULT_PAGE_SIZE

    def to_domain(self) -> cmd.ModerationQuery:
        return cmd.ModerationQuery(status=self.status, page=self.page, limit=self.limit)


class ReviewOut(BaseModel):
    id: int
    product_id: int
    user_id: str
    rating: int
    title: str | None
    text: str | None
    is_verified_purchase: bool
    is_approved: bool
    helpful_count: int
    not_helpful_count: int
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_domain(cls, dom: Review) -> ReviewOut:
        return cls(
            id=dom.id,
            product_id=dom.product_id,
            user_id=dom.user_id,
            rating=dom.rating,
            title=dom.title,
            text=dom.text,
            is_verified_purchase=dom.is_verified_purchase,
            is_approved=dom.is_approved,
            helpful_count=dom.helpful_count,
            not_helpful_count=dom.not_helpful_count,
            created_at=dom.created_at,
            updated_at=dom.updated_at,
        )


class StatisticsOut(BaseModel):
    average_rating: float
    total_reviews: int
    rating_distribution: dict[int, int]

    @classmethod
    def from_domain(cls, dom: ReviewStatistics) -> StatisticsOut:
        return cls(
            average_rating=dom.average_rating,
            total_reviews=dom.total_reviews,
            rating_distribution=dict(dom.rating_distribution),
        )


class PaginationOut(BaseModel):
    page: int
    limit: int
    total: int
    pages: int


class ReviewPageOut(BaseModel):
    reviews: list[ReviewOut]
    pagination: PaginationOut
    statistics: StatisticsOut | None = None

    @classmethod
    def from_domain(cls, dom: ReviewPage) -> ReviewPageOut:
        p = dom.pagination
        return cls(
            reviews=[ReviewOut.from_domain(r) for r in dom.reviews],
            pagination=PaginationOut(page=p.page, limit=p.limit, total=p.total, pages=p.pages),
            statistics=StatisticsOut.from_domain(dom.statistics) if dom.statistics is not None else None,
        )


class DeletedOut(BaseModel):
    id: int
    deleted: bool = True

    @classmethod
    def from_domain(cls, dom: int) -> DeletedOut:
        return cls(id=dom)


# ═══════════════════════════════════════════════════════════════════════════════
# Checkout
# ═══════════════════════════════════════════════════════════════════════════════


class ShippingIn(BaseModel):
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    address: str = ""
    city: str = ""
    state: str = ""
    zip_code: str = ""
    phone: str = ""

    def to_domain(self) -> ShippingInfo:
        return ShippingInfo(**self.model_dump())


class BackIn(BaseModel):
    step: CheckoutStep | None = None

    def to_domain(self) -> cmd.GoBack:
        return cmd.GoBack(step=self.step)


class PaymentMethodIn(BaseModel):
    payment_method: PaymentMethod

    def to_domain(self) -> PaymentMethod:
        return self.payment_method


class PaymentDetailsIn(BaseModel):
    acknowledged: bool = False
    confirmed: bool = False

    def to_domain(self) -> PaymentDetails:
        return PaymentDetails(acknowledged=self.acknowledged, confirmed=self.confirmed)


class SubmitIn(BaseModel):
    idempotency_key: str | None = None

    def to_domain(self) -> cmd.Submit:
        return cmd.Submit(idempotency_key=self.idempotency_key or None)


class IntentOut(BaseModel):
    payment_method: PaymentMethod
    payment_status: str
    amount: float
    transaction_id: str
    order_number: str | None = None
    reference_number: str | None = None
    instructions: list[str] = Field(default_factory=list)

    @classmethod
    def from_domain(cls, dom: PaymentIntent) -> IntentOut:
        return cls(
            payment_method=dom.payment_method,
            payment_status=dom.payment_status,
            amount=_amount(dom.amount),
            transaction_id=dom.transaction_id,
            order_number=dom.order_number,
            reference_number=dom.reference_number,
            instructions=list(dom.instructions),
        )


class ErrorOut(BaseModel):
    code: str
    message: str


class CheckoutOut(BaseModel):
    step: CheckoutStep
    shipping: ShippingIn | None = None
    payment_method: PaymentMethod | None = None
    intent: IntentOut | None = None
    order_id: int | None = None
    error: ErrorOut | None = None

    @classmethod
    def from_domain(cls, dom: CheckoutState) -> CheckoutOut:
        return cls(
            step=dom.step,
            shipping=ShippingIn.model_validate(dom.shipping, from_attributes=True) if dom.shipping else None,
            payment_method=dom.payment_method,
            intent=IntentOut.from_domain(dom.intent) if dom.intent else None,
            order_id=dom.receipt.order_id if dom.receipt else None,
            error=ErrorOut(code=dom.error.code, message=dom.error.public_message) if dom.error else None,
        )


# ═══════════════════════════════════════════════════════════════════════════════
# Orders
# ═══════════════════════════════════════════════════════════════════════════════


class OrderLineOut(BaseModel):
    product_id: int
    quantity: int
    price: float


class StatusEntryOut(BaseModel):
    status: OrderStatus
    timestamp: datetime


class OrderOut(BaseModel):
    id: int
    user_id: str
    items: list[OrderLineOut]
    total_amount: float
    shipping_address: str
    payment_method: PaymentMethod
    payment_status: str
    transaction_id: str
    order_number: str | None
    reference_number: str | None
    status: OrderStatus
    status_history: list[StatusEntryOut]
    created_at: datetime

    @classmethod
    def from_domain(cls, dom: Order) -> OrderOut:
        return cls(
            id=dom.id,
            user_id=dom.user_id,
            items=[
                OrderLineOut(product_id=i.product_id, quantity=i.quantity, price=_amount(i.price))
                for i in dom.items
            ],
            total_amount=_amount(dom.total_amount),
            shipping_address=dom.shipping_address,
            payment_method=dom.payment_method,
            payment_status=dom.payment_status,
            transaction_id=dom.transaction_id,
            order_number=dom.order_number,
            reference_number=dom.reference_number,
            status=dom.status,
            status_history=[StatusEntryOut(status=h.status, timestamp=h.timestamp) for h in dom.status_history],
            created_at=dom.created_at,
        )


class ReceiptOut(BaseModel):
    order_id: int
    order: OrderOut

    @classmethod
    def from_domain(cls, dom: OrderReceipt) -> ReceiptOut:
        return cls(order_id=dom.order_id, order=OrderOut.from_domain(dom.order))


class OrderListOut(BaseModel):
    orders: list[OrderOut]

    @classmethod
    def from_domain(cls, dom: list[Order]) -> OrderListOut:
        return cls(orders=[OrderOut.from_domain(o) for o in dom])


class OrderStatusIn(BaseModel):
    order_id: int
    status: OrderStatus

    def to_domain(self) -> cmd.SetOrderStatus:
        return cmd.SetOrderStatus(order_id=self.order_id, status=self.status)
