"""
Checkout — the three-step flow from cart to order.

    checkout = Checkout(cart, orders, dispatcher, user, order_timeout=30)

    await checkout.advance(ShippingInfo(...))                 # SHIPPING → PAYMENT_METHOD
    checkout.select_payment_method(PaymentMethod.CHECK)       # → PAYMENT_DETAILS
    await checkout.confirm_payment(PaymentDetails(confirmed=True))
    match await checkout.submit():                            # → SUBMITTING → DONE
        case Ok(receipt):
            redirect(f"/orders/{receipt.order_id}")
        case Error(err):
            show(err.public_message)                          # still PAYMENT_DETAILS

State machine:

    SHIPPING ──advance──→ PAYMENT_METHOD ──select──→ PAYMENT_DETAILS ──submit──→ SUBMITTING
        ↑                      │                          │    ↑                    │
        └────── back / go_to ──┴──────────────────────────┘    └──── failure ───────┤
                                                                                    └──→ DONE

Submitting calls order creation once, bounded by order_timeout. A timeout, an
exception or a receipt without an id are the same failure: back to
PAYMENT_DETAILS with the cart untouched and a generic error.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping

from kungfu import Error, LazyCoroResult, Ok, Result

from combinators import flow

from storefront._errors import Errors, ShopError
from storefront.cart import Cart
from storefront.checkout._types import CheckoutState, CheckoutStep, ShippingInfo
from storefront.identity import Identity
from storefront.lift import catching_async
from storefront.notify import BackgroundDispatcher
from storefront.orders import IdempotentOrders, OrderCreation, OrderLine, OrderPayload, OrderReceipt
from storefront.payments import (
    PaymentConfirmer,
    PaymentDetails,
    PaymentIntent,
    PaymentMethod,
    default_confirmers,
)

logger = logging.getLogger(__name__)


class Checkout:
    def __init__(
        self,
        cart: Cart,
        orders: OrderCreation,
        dispatcher: BackgroundDispatcher,
        user: Identity,
        *,
        confirmers: Mapping[PaymentMethod, PaymentConfirmer] | None = None,
        order_timeout: float = 30.0,
        keyed_orders: IdempotentOrders | None = None,
    ) -> None:
        self.cart = cart
        self.orders = orders
        self.dispatcher = dispatcher
        self.user = user
        self.confirmers = dict(confirmers) if confirmers is not None else default_confirmers()
        self.order_timeout = order_timeout
        self.keyed_orders = keyed_orders

        self.step = CheckoutStep.SHIPPING
        self.shipping: ShippingInfo | None = None
        self.payment_method: PaymentMethod | None = None
        self.intent: PaymentIntent | None = None
        self.receipt: OrderReceipt | None = None
        self.error: ShopError | None = None

    # ═══════════════════════════════════════════════════════════════════════════
    # State
    # ═══════════════════════════════════════════════════════════════════════════

    @property
    def finished(self) -> bool:
        return self.step is CheckoutStep.DONE

    def state(self) -> CheckoutState:
        return CheckoutState(
            step=self.step,
            shipping=self.shipping,
            payment_method=self.payment_method,
            intent=self.intent,
            receipt=self.receipt,
            error=self.error,
        )

    def _require(self, *steps: CheckoutStep) -> ShopError | None:
        if self.step in steps:
            return None
        return Errors.conflict(
            f"Not available at the {self.step.value.replace('_', ' ')} step",
            code="invalid_step",
        )

    # ═══════════════════════════════════════════════════════════════════════════
    # Navigation
    # ═══════════════════════════════════════════════════════════════════════════

    async def advance(self, shipping: ShippingInfo) -> Result[CheckoutState, ShopError]:
        """Validate and keep the shipping form, then move to payment method selection."""
        if problem := self._require(CheckoutStep.SHIPPING):
            return Error(problem)
        if missing := shipping.missing():
            return Error(Errors.missing_fields(*missing))

        self.shipping = shipping.stripped()
        self.step = CheckoutStep.PAYMENT_METHOD
        self.error = None
        return Ok(self.state())

    def go_to(self, step: CheckoutStep) -> Result[CheckoutState, ShopError]:
        """Jump back to an earlier step. Form data, method and intent are kept."""
        if problem := self._require(
            CheckoutStep.SHIPPING, CheckoutStep.PAYMENT_METHOD, CheckoutStep.PAYMENT_DETAILS
        ):
            return Error(problem)
        if not step.before(self.step):
            return Error(Errors.validation(f"Cannot go forward to {step.value} this way", code="invalid_step"))

        self.step = step
        self.error = None
        return Ok(self.state())

    def back(self) -> Result[CheckoutState, ShopError]:
        if self.step is CheckoutStep.SHIPPING:
            return Error(Errors.validation("Already at the first step", code="invalid_step"))
        return self.go_to(list(CheckoutStep)[self.step.index - 1])

    def select_payment_method(self, method: PaymentMethod) -> Result[CheckoutState, ShopError]:
        if problem := self._require(CheckoutStep.PAYMENT_METHOD):
            return Error(problem)
        if method not in self.confirmers:
            return Error(Errors.validation(f"Unsupported payment method: {method.value}", code="invalid_payment_method"))

        if method is not self.payment_method:
            # An intent belongs to the method that produced it
            self.intent = None
        self.payment_method = method
        self.step = CheckoutStep.PAYMENT_DETAILS
        self.error = None
        return Ok(self.state())

    # ═══════════════════════════════════════════════════════════════════════════
    # Payment
    # ═══════════════════════════════════════════════════════════════════════════

    async def confirm_payment(self, details: PaymentDetails) -> Result[PaymentIntent, ShopError]:
        """Run the selected confirmer against the cart total at this moment."""
        if problem := self._require(CheckoutStep.PAYMENT_DETAILS):
            return Error(problem)
        if self.payment_method is None or self.shipping is None:
            return Error(Errors.validation("Please complete the previous steps", code="invalid_step"))

        match await self.cart.view():
            case Error(err):
                return Error(err)
            case Ok(view):
                pass
        if view.is_empty:
            return Error(Errors.validation("Your cart is empty", code="empty_cart"))

        confirmer = self.confirmers[self.payment_method]
        match confirmer.confirm(view.total, self.shipping.customer(), details):
            case Error(err):
                return Error(err)
            case Ok(intent):
                self.intent = intent
                self.error = None
                logger.debug("Payment confirmed for %s: %s %s", self.user.id, intent.payment_method.value, intent.amount)
                return Ok(intent)

    # ═══════════════════════════════════════════════════════════════════════════
    # Submit
    # ═══════════════════════════════════════════════════════════════════════════

    def _create(self, payload: OrderPayload, key: str | None) -> LazyCoroResult[OrderReceipt, Exception]:
        if key is not None and self.keyed_orders is not None:
            keyed = self.keyed_orders
            return catching_async(lambda: keyed.create(self.user.id, payload, key), on_error=lambda exc: exc)
        if key is not None:
            logger.warning("Idempotency key ignored: keyed submission is not configured")
        return catching_async(lambda: self.orders.create(self.user.id, payload), on_error=lambda exc: exc)

    def _fail(self, cause: BaseException | str) -> Result[OrderReceipt, ShopError]:
        self.step = CheckoutStep.PAYMENT_DETAILS
        self.error = Errors.dependency("orders.create", cause)
        return Error(self.error)

    async def submit(self, idempotency_key: str | None = None) -> Result[OrderReceipt, ShopError]:
        """
        Place the order. Exactly one order creation call per submit.

        Without an idempotency key nothing deduplicates two submissions made from
        different sessions; with one, a repeated key returns the first order.
        """
        if problem := self._require(CheckoutStep.PAYMENT_DETAILS):
            return Error(problem)
        if self.intent is None:
            return Error(Errors.validation("Please confirm your payment first", code="payment_not_confirmed"))
        if self.shipping is None:
            return Error(Errors.validation("Please complete the previous steps", code="invalid_step"))

        self.step = CheckoutStep.SUBMITTING

        match await self.cart.view():
            case Error(err):
                self.step = CheckoutStep.PAYMENT_DETAILS
                return Error(err)
            case Ok(view):
                pass
        if view.is_empty:
            self.step = CheckoutStep.PAYMENT_DETAILS
            return Error(Errors.validation("Your cart is empty", code="empty_cart"))
        if view.total != self.intent.amount:
            self.step = CheckoutStep.PAYMENT_DETAILS
            self.intent = None
            return Error(
                Errors.validation("Your cart changed. Please confirm your payment again", code="cart_changed")
            )

        shipping, intent = self.shipping, self.intent
        payload = OrderPayload(
            items=tuple(
                OrderLine(product_id=item.product_id, quantity=item.quantity, price=item.unit_price)
                for item in view.items
            ),
            total_amount=intent.amount,
            shipping_address=shipping.address_line(),
            payment_method=intent.payment_method,
            payment_status=intent.payment_status,
            transaction_id=intent.transaction_id,
            order_number=intent.order_number,
            reference_number=intent.reference_number,
            first_name=shipping.first_name,
            last_name=shipping.last_name,
            email=shipping.email,
            city=shipping.city,
            state=shipping.state,
            zip_code=shipping.zip_code,
            phone=shipping.phone,
        )

        outcome = await flow(self._create(payload, idempotency_key)).timeout(seconds=self.order_timeout).compile()

        match outcome:
            case Error(exc):
                logger.error("Order creation failed for %s", self.user.id, exc_info=exc)
                return self._fail(exc)
            case Ok(receipt) if not receipt.order_id:
                logger.error("Order creation for %s returned no order id", self.user.id)
                return self._fail("no order id returned")
            case Ok(receipt):
                pass

        self.step = CheckoutStep.DONE
        self.receipt = receipt
        self.error = None
        logger.info("Checkout done for %s: order %s", self.user.id, receipt.order_id)

        self.dispatcher.dispatch(receipt.order)

        match await self.cart.clear():
            case Error(err):
                # The order exists; a stale cart is the lesser problem
                logger.error("Cart not cleared after order %s: %s", receipt.order_id, err.detail)
            case Ok(_):
                pass
        return Ok(receipt)


__all__ = ("Checkout",)
