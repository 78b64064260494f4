"""Checkout service: connects the cart engine to the checkout saga.

Snapshots the cart, runs the saga, and clears the cart once an attempt
succeeds. A failed attempt leaves the cart untouched so the shopper can
retry; nothing is retried automatically.
"""

import os
from collections.abc import Callable
from datetime import timedelta

import structlog
from pydantic import ValidationError
from structlog.contextvars import bound_contextvars

from cart.engine import CartEngine
from ordering.checkout.request import build_checkout_request
from ordering.checkout.results import CheckoutOutcome, FailureKind, PaymentCallback, PaymentPrompt, Purchaser
from ordering.checkout.saga import DEFAULT_PAYMENT_WINDOW, CheckoutSaga
from ordering.order.repository import OrderRepository
from payments.gateway import get_gateway
from payments.gateway.port import PaymentGateway

logger = structlog.get_logger(__name__)

PaymentHandler = Callable[[PaymentPrompt], PaymentCallback | None]


def payment_window_from_env() -> timedelta:
    seconds = os.environ.get("CHECKOUT_PAYMENT_WINDOW_SECONDS")
    if not seconds:
        return DEFAULT_PAYMENT_WINDOW
    return timedelta(seconds=float(seconds))


class CheckoutService:
    def __init__(
        self,
        cart: CartEngine,
        gateway: PaymentGateway | None = None,
        orders: OrderRepository | None = None,
        payment_window: timedelta | None = None,
    ) -> None:
        self.cart = cart
        self.gateway = gateway if gateway is not None else get_gateway()
        self.orders = orders if orders is not None else OrderRepository()
        self.payment_window = payment_window if payment_window is not None else payment_window_from_env()

    def submit(self, purchaser: Purchaser, shipping_address, payment_method, billing_address=None) -> CheckoutSaga:
        """Start a checkout attempt over the current cart contents.

        Cash-on-delivery attempts finish before this returns. Gateway
        attempts stop at the payment prompt (``saga.prompt``) unless they
        failed to create the gateway order.
        """
        with bound_contextvars(user_id=purchaser.user_id):
            try:
                request = build_checkout_request(
                    self.cart.state,
                    shipping_address=shipping_address,
                    payment_method=payment_method,
                    billing_address=billing_address,
                )
            except ValidationError as exc:
                logger.info("Checkout rejected", errors=exc.error_count())
                return CheckoutSaga.rejected(purchaser, FailureKind.VALIDATION, str(exc))

            saga = CheckoutSaga(
                request,
                purchaser,
                gateway=self.gateway,
                orders=self.orders,
                payment_window=self.payment_window,
            )
            saga.start()
            self._settle(saga)
            return saga

    def confirm_payment(self, saga: CheckoutSaga, callback: PaymentCallback) -> CheckoutOutcome:
        with bound_contextvars(user_id=saga.purchaser.user_id):
            if saga.is_finished:
                return saga.complete_payment(callback)
            outcome = saga.complete_payment(callback)
            self._settle(saga)
            return outcome

    def cancel_payment(self, saga: CheckoutSaga) -> CheckoutOutcome:
        return saga.cancel()

    def checkout(
        self,
        purchaser: Purchaser,
        shipping_address,
        payment_method,
        pay: PaymentHandler | None = None,
        billing_address=None,
    ) -> CheckoutOutcome:
        """Run an attempt end to end.

        ``pay`` plays the gateway UI: it receives the payment prompt and
        returns the success callback, or ``None`` when the shopper dismisses it.
        """
        saga = self.submit(purchaser, shipping_address, payment_method, billing_address)
        if not saga.is_awaiting_payment:
            return saga.outcome

        callback = pay(saga.prompt) if pay is not None else None
        if callback is None:
            return self.cancel_payment(saga)
        return self.confirm_payment(saga, callback)

    def _settle(self, saga: CheckoutSaga) -> None:
        if saga.outcome is not None and saga.outcome.success:
            self.cart.clear_cart()
