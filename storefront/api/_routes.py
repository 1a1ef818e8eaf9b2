"""
Routes — every storefront operation as a wire endpoint.

Handlers take (command, caller) and return the service's Result unchanged;
the FastAPI compiler turns Error(ShopError) into the matching status code.
"""

from __future__ import annotations

from kungfu import Error, Ok, Result

from storefront import wire as W
from storefront._errors import Errors, ShopError
from storefront._types import ReviewId
from storefront.api import _commands as cmd
from storefront.api import _schemas as S
from storefront.cart import CartView, LocalCart, MergeResult
from storefront.checkout import CheckoutState, ShippingInfo
from storefront.identity import Identity
from storefront.orders import Order, OrderReceipt
from storefront.payments import PaymentDetails, PaymentIntent, PaymentMethod
from storefront.reviews import Review, ReviewPage, ReviewStatistics
from storefront.shop import Shop

http = W.triggers.http.HTTPRouteTrigger
codec = W.RequestResponseCodec


def build_application(shop: Shop) -> W.Application:
    # ═══════════════════════════════════════════════════════════════════════════
    # Cart
    # ═══════════════════════════════════════════════════════════════════════════

    async def view_cart(_: None, caller: Identity) -> Result[CartView, ShopError]:
        return await shop.cart_for(caller).view()

    async def add_to_cart(command: cmd.AddItem, caller: Identity) -> Result[CartView, ShopError]:
        return await shop.cart_for(caller).add(command.product_id, command.quantity)

    async def update_item(command: cmd.SetQuantity, caller: Identity) -> Result[CartView, ShopError]:
        return await shop.cart_for(caller).update_quantity(command.item_id, command.quantity)

    async def remove_item(command: cmd.RemoveItem, caller: Identity) -> Result[CartView, ShopError]:
        return await shop.cart_for(caller).remove(command.item_id)

    async def clear_cart(_: None, caller: Identity) -> Result[CartView, ShopError]:
        return await shop.cart_for(caller).clear()

    async def import_cart(command: cmd.ImportCart, caller: Identity) -> Result[MergeResult, ShopError]:
        return await shop.cart_for(caller).merge(LocalCart(list(command.items)))

    # ═══════════════════════════════════════════════════════════════════════════
    # Reviews
    # ═══════════════════════════════════════════════════════════════════════════

    async def list_reviews(command: cmd.ListReviews, caller: Identity | None) -> Result[ReviewPage, ShopError]:
        return await shop.reviews.list(
            command.product_id,
            sort=command.sort,
            page=command.page,
            limit=command.limit,
            viewer=caller,
        )

    async def review_statistics(command: cmd.ProductRef, _: Identity | None) -> Result[ReviewStatistics, ShopError]:
        return await shop.reviews.statistics(command.product_id)

    async def create_review(command: cmd.CreateReview, caller: Identity) -> Result[Review, ShopError]:
        return await shop.reviews.create(caller, command.product_id, command.rating, command.title, command.text)

    async def update_review(command: cmd.UpdateReview, caller: Identity) -> Result[Review, ShopError]:
        return await shop.reviews.update(caller, command.review_id, command.patch)

    async def delete_review(command: cmd.ReviewRef, caller: Identity) -> Result[ReviewId, ShopError]:
        return await shop.reviews.delete(caller, command.review_id)

    async def vote(command: cmd.Vote, caller: Identity) -> Result[Review, ShopError]:
        return await shop.reviews.vote(caller, command.review_id, command.is_helpful)

    async def unvote(command: cmd.ReviewRef, caller: Identity) -> Result[Review, ShopError]:
        return await shop.reviews.unvote(caller, command.review_id)

    async def moderation_list(command: cmd.ModerationQuery, caller: Identity) -> Result[ReviewPage, ShopError]:
        return await shop.reviews.moderation_list(
            caller, status=command.status, page=command.page, limit=command.limit
        )

    # ═══════════════════════════════════════════════════════════════════════════
    # Checkout
    # ═══════════════════════════════════════════════════════════════════════════

    async def checkout_state(_: None, caller: Identity) -> Result[CheckoutState, ShopError]:
        return Ok(shop.checkouts.for_user(caller).state())

    async def shipping(command: ShippingInfo, caller: Identity) -> Result[CheckoutState, ShopError]:
        return await shop.checkouts.for_user(caller).advance(command)

    async def back(command: cmd.GoBack, caller: Identity) -> Result[CheckoutState, ShopError]:
        checkout = shop.checkouts.for_user(caller)
        if command.step is None:
            return checkout.back()
        return checkout.go_to(command.step)

    async def payment_method(command: PaymentMethod, caller: Identity) -> Result[CheckoutState, ShopError]:
        return shop.checkouts.for_user(caller).select_payment_method(command)

    async def confirm(command: PaymentDetails, caller: Identity) -> Result[PaymentIntent, ShopError]:
        return await shop.checkouts.for_user(caller).confirm_payment(command)

    async def submit(command: cmd.Submit, caller: Identity) -> Result[OrderReceipt, ShopError]:
        checkout = shop.checkouts.peek(caller.id)
        if checkout is None or checkout.finished:
            return Error(Errors.conflict("Start checkout first", code="invalid_step"))
        outcome = await checkout.submit(command.idempotency_key)
        if checkout.finished:
            # The receipt goes out in this response; nothing reads the finished flow again
            shop.checkouts.discard(caller.id)
        return outcome

    # ═══════════════════════════════════════════════════════════════════════════
    # Orders
    # ═══════════════════════════════════════════════════════════════════════════

    async def my_orders(_: None, caller: Identity) -> Result[list[Order], ShopError]:
        return await shop.orders.orders_for(caller)

    async def set_order_status(command: cmd.SetOrderStatus, caller: Identity) -> Result[Order, ShopError]:
        return await shop.orders.update_status(caller, command.order_id, command.status)

    return W.application().mount(
        # Cart
        W.endpoint(view_cart).expose(http("GET", "/api/cart"), codec(None, S.CartOut)),
        W.endpoint(add_to_cart).expose(http("POST", "/api/cart"), codec(S.AddToCartIn, S.CartOut)),
        W.endpoint(update_item).expose(http("PUT", "/api/cart/item"), codec(S.UpdateCartItemIn, S.CartOut)),
        W.endpoint(remove_item).expose(http("DELETE", "/api/cart/item"), codec(S.RemoveCartItemIn, S.CartOut)),
        W.endpoint(clear_cart).expose(http("DELETE", "/api/cart"), codec(None, S.CartOut)),
        W.endpoint(import_cart).expose(http("PUT", "/api/cart/import"), codec(S.ImportCartIn, S.MergeOut)),
        # Reviews
        W.endpoint(list_reviews).expose(
            http("GET", "/api/reviews", auth="optional"), codec(S.ReviewListQuery, S.ReviewPageOut)
        ),
        W.endpoint(review_statistics).expose(
            http("GET", "/api/reviews/statistics", auth="none"), codec(S.ProductQuery, S.StatisticsOut)
        ),
        W.endpoint(create_review).expose(
            http("POST", "/api/reviews", status_code=201), codec(S.CreateReviewIn, S.ReviewOut)
        ),
        W.endpoint(update_review).expose(http("PUT", "/api/reviews"), codec(S.UpdateReviewIn, S.ReviewOut)),
        W.endpoint(delete_review).expose(http("DELETE", "/api/reviews"), codec(S.ReviewQuery, S.DeletedOut)),
        W.endpoint(vote).expose(http("POST", "/api/reviews/helpful"), codec(S.VoteIn, S.ReviewOut)),
        W.endpoint(unvote).expose(http("DELETE", "/api/reviews/helpful"), codec(S.ReviewQuery, S.ReviewOut)),
        W.endpoint(moderation_list).expose(
            http("GET", "/api/admin/reviews"), codec(S.ModerationQueryIn, S.ReviewPageOut)
        ),
        # Checkout
        W.endpoint(checkout_state).expose(http("GET", "/api/checkout"), codec(None, S.CheckoutOut)),
        W.endpoint(shipping).expose(http("POST", "/api/checkout/shipping"), codec(S.ShippingIn, S.CheckoutOut)),
        W.endpoint(back).expose(http("POST", "/api/checkout/back"), codec(S.BackIn, S.CheckoutOut)),
        W.endpoint(payment_method).expose(
            http("POST", "/api/checkout/payment-method"), codec(S.PaymentMethodIn, S.CheckoutOut)
        ),
        W.endpoint(confirm).expose(http("POST", "/api/checkout/confirm"), codec(S.PaymentDetailsIn, S.IntentOut)),
        W.endpoint(submit).expose(
            http("POST", "/api/checkout/submit", status_code=201), codec(S.SubmitIn, S.ReceiptOut)
        ),
        # Orders
        W.endpoint(my_orders).expose(http("GET", "/api/orders"), codec(None, S.OrderListOut)),
        W.endpoint(set_order_status).expose(http("PUT", "/api/admin/orders"), codec(S.OrderStatusIn, S.OrderOut)),
    )


__all__ = ("build_application",)
