"""Checkout saga: drives one checkout attempt to a single outcome.

Cash on delivery:
    INITIATED → ORDER_PERSISTED → NOTIFIED → COMPLETED

Gateway (pay now):
    INITIATED → GATEWAY_ORDER_CREATED → AWAITING_USER_PAYMENT
    AWAITING_USER_PAYMENT → PAYMENT_VERIFIED → ORDER_PERSISTED →
        PAYMENT_RECORDED → NOTIFIED → COMPLETED
    AWAITING_USER_PAYMENT → PAYMENT_REJECTED | USER_CANCELLED → FAILED

Any step may end in FAILED. AWAITING_USER_PAYMENT is the only suspension
point: ``start()`` returns with ``prompt`` set and the attempt resumes when
the gateway UI reports back through ``complete_payment()`` or ``cancel()``.
All other steps run synchronously, in order, because each needs the id the
previous one produced.

Collaborators answer with typed results (gateway results, ``StepResult``);
the saga turns them into a ``CheckoutOutcome``. Written records are never
deleted on a later failure. If line items cannot be written the header is
marked orphaned and the attempt fails.

Duplicate submissions are not guarded: two attempts over the same cart
snapshot each place their own order.
"""

from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from enum import Enum

import structlog
from protean.exceptions import ValidationError

from ordering.checkout.request import CheckoutRequest
from ordering.checkout.results import (
    COD_SUCCESS_MESSAGE,
    GATEWAY_SUCCESS_MESSAGE,
    CheckoutOutcome,
    FailureKind,
    PaymentCallback,
    PaymentPrompt,
    Purchaser,
)
from ordering.order.order import PaymentMethod
from ordering.order.repository import GatewayPayment, OrderRepository
from payments.gateway.port import PaymentGateway
from payments.settings import CURRENCY

logger = structlog.get_logger(__name__)

DEFAULT_PAYMENT_WINDOW = timedelta(minutes=15)


class CheckoutStatus(Enum):
    INITIATED = "initiated"
    GATEWAY_ORDER_CREATED = "gateway_order_created"
    AWAITING_USER_PAYMENT = "awaiting_user_payment"
    PAYMENT_VERIFIED = "payment_verified"
    PAYMENT_REJECTED = "payment_rejected"
    USER_CANCELLED = "user_cancelled"
    ORDER_PERSISTED = "order_persisted"
    PAYMENT_RECORDED = "payment_recorded"
    NOTIFIED = "notified"
    COMPLETED = "completed"
    FAILED = "failed"


_VALID_TRANSITIONS = {
    CheckoutStatus.INITIATED: {
        CheckoutStatus.GATEWAY_ORDER_CREATED,
        CheckoutStatus.ORDER_PERSISTED,
        CheckoutStatus.FAILED,
    },
    CheckoutStatus.GATEWAY_ORDER_CREATED: {CheckoutStatus.AWAITING_USER_PAYMENT},
    CheckoutStatus.AWAITING_USER_PAYMENT: {
        CheckoutStatus.PAYMENT_VERIFIED,
        CheckoutStatus.PAYMENT_REJECTED,
        CheckoutStatus.USER_CANCELLED,
        CheckoutStatus.FAILED,  # Verification unavailable or window expired
    },
    CheckoutStatus.PAYMENT_VERIFIED: {CheckoutStatus.ORDER_PERSISTED, CheckoutStatus.FAILED},
    CheckoutStatus.PAYMENT_REJECTED: {CheckoutStatus.FAILED},
    CheckoutStatus.USER_CANCELLED: {CheckoutStatus.FAILED},
    CheckoutStatus.ORDER_PERSISTED: {
        CheckoutStatus.PAYMENT_RECORDED,
        CheckoutStatus.NOTIFIED,
        CheckoutStatus.FAILED,
    },
    CheckoutStatus.PAYMENT_RECORDED: {CheckoutStatus.NOTIFIED},
    CheckoutStatus.NOTIFIED: {CheckoutStatus.COMPLETED},
    CheckoutStatus.COMPLETED: set(),  # Terminal
    CheckoutStatus.FAILED: set(),  # Terminal
}


def _utcnow() -> datetime:
    return datetime.now(UTC)


class CheckoutSaga:
    def __init__(
        self,
        request: CheckoutRequest | None,
        purchaser: Purchaser,
        gateway: PaymentGateway,
        orders: OrderRepository,
        payment_window: timedelta = DEFAULT_PAYMENT_WINDOW,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.request = request
        self.purchaser = purchaser
        self.gateway = gateway
        self.orders = orders
        self.payment_window = payment_window
        self.clock = clock

        self.status = CheckoutStatus.INITIATED
        self.history = [CheckoutStatus.INITIATED]
        self.outcome: CheckoutOutcome | None = None
        self.prompt: PaymentPrompt | None = None
        self.gateway_order_id: str | None = None
        self.payment_deadline: datetime | None = None
        self.order_id: str | None = None
        self.failure_detail: str | None = None

    @classmethod
    def rejected(cls, purchaser, kind: FailureKind, detail=None, **collaborators):
        """An attempt that failed before it could start (invalid input)."""
        saga = cls(None, purchaser, collaborators.get("gateway"), collaborators.get("orders"))
        saga._fail(kind, detail)
        return saga

    # -------------------------------------------------------------------
    # State helpers
    # -------------------------------------------------------------------
    @property
    def is_finished(self) -> bool:
        return self.status in (CheckoutStatus.COMPLETED, CheckoutStatus.FAILED)

    @property
    def is_awaiting_payment(self) -> bool:
        return self.status == CheckoutStatus.AWAITING_USER_PAYMENT

    def _transition(self, new_status: CheckoutStatus) -> None:
        if new_status not in _VALID_TRANSITIONS[self.status]:
            raise ValidationError({"status": [f"Cannot move checkout from {self.status.value} to {new_status.value}"]})
        self.status = new_status
        self.history.append(new_status)

    def _fail(self, kind: FailureKind, detail=None) -> CheckoutOutcome:
        self._transition(CheckoutStatus.FAILED)
        self.failure_detail = detail
        self.outcome = CheckoutOutcome.failed(kind)
        logger.warning(
            "Checkout failed",
            user_id=self.purchaser.user_id,
            failure=kind.value,
            detail=detail,
            order_id=self.order_id,
        )
        return self.outcome

    def _guarded(self, step, failure_kind: FailureKind, *args) -> CheckoutOutcome | None:
        try:
            return step(*args)
        except Exception as exc:
            logger.exception("Unexpected checkout error", step=step.__name__, status=self.status.value)
            if self.is_finished:
                return self.outcome
            self.status = CheckoutStatus.FAILED
            self.history.append(CheckoutStatus.FAILED)
            self.failure_detail = str(exc)
            self.outcome = CheckoutOutcome.failed(failure_kind)
            return self.outcome

    # -------------------------------------------------------------------
    # Entry points
    # -------------------------------------------------------------------
    def start(self) -> CheckoutOutcome | None:
        """Run the attempt up to completion or up to the payment prompt.

        Returns the outcome, or ``None`` while waiting for the shopper to pay.
        """
        if self.status != CheckoutStatus.INITIATED:
            raise ValidationError({"status": ["Checkout has already started"]})

        if self.request.payment_method == PaymentMethod.CASH_ON_DELIVERY:
            return self._guarded(self._place_order, FailureKind.PERSISTENCE, None)
        return self._guarded(self._open_payment, FailureKind.GATEWAY)

    def complete_payment(self, callback: PaymentCallback) -> CheckoutOutcome:
        """Resume after the gateway UI reported a successful payment.

        A finished attempt answers a repeated callback with its existing outcome.
        """
        if self.is_finished:
            return self._replay("payment callback")
        self._require_awaiting()
        return self._guarded(self._verify_payment, FailureKind.GATEWAY, callback)

    def cancel(self) -> CheckoutOutcome:
        """Resume after the shopper dismissed the gateway UI."""
        if self.is_finished:
            return self._replay("cancellation")
        self._require_awaiting()
        self._transition(CheckoutStatus.USER_CANCELLED)
        return self._fail(FailureKind.USER_CANCELLED)

    def expire(self) -> CheckoutOutcome | None:
        """Fail the attempt if the payment window has closed."""
        if self.is_awaiting_payment and self._window_closed():
            return self._fail(FailureKind.TIMED_OUT, "Payment window expired")
        return self.outcome

    def _replay(self, signal: str) -> CheckoutOutcome:
        logger.info(
            "Ignoring signal for finished checkout",
            signal=signal,
            status=self.status.value,
            order_id=self.order_id,
        )
        return self.outcome

    def _require_awaiting(self) -> None:
        if not self.is_awaiting_payment:
            raise ValidationError({"status": [f"Checkout is not awaiting payment (status: {self.status.value})"]})

    def _window_closed(self) -> bool:
        return self.payment_deadline is not None and self.clock() > self.payment_deadline

    # -------------------------------------------------------------------
    # Gateway branch
    # -------------------------------------------------------------------
    def _open_payment(self) -> CheckoutOutcome | None:
        result = self.gateway.create_payment_order(amount=self.request.amount_minor, currency=CURRENCY)
        if not result.success:
            return self._fail(FailureKind.GATEWAY, result.failure_reason)

        self.gateway_order_id = result.gateway_order_id
        self._transition(CheckoutStatus.GATEWAY_ORDER_CREATED)

        shipping = self.request.shipping_address
        self.prompt = PaymentPrompt(
            key_id=self.gateway.key_id,
            gateway_order_id=result.gateway_order_id,
            amount=result.amount,
            currency=result.currency,
            prefill={"name": shipping.name, "email": self.purchaser.email, "contact": shipping.phone},
        )
        self.payment_deadline = self.clock() + self.payment_window
        self._transition(CheckoutStatus.AWAITING_USER_PAYMENT)
        logger.info(
            "Awaiting gateway payment",
            gateway_order_id=self.gateway_order_id,
            amount=result.amount,
            currency=result.currency,
        )
        return None

    def _verify_payment(self, callback: PaymentCallback) -> CheckoutOutcome:
        if self._window_closed():
            return self._fail(FailureKind.TIMED_OUT, "Payment window expired")

        if callback.razorpay_order_id != self.gateway_order_id:
            self._transition(CheckoutStatus.PAYMENT_REJECTED)
            return self._fail(FailureKind.VERIFICATION, "Callback is for a different gateway order")

        verification = self.gateway.verify_payment(
            callback.razorpay_order_id,
            callback.razorpay_payment_id,
            callback.razorpay_signature,
        )
        if not verification.success:
            return self._fail(FailureKind.GATEWAY, verification.failure_reason)
        if not verification.verified:
            self._transition(CheckoutStatus.PAYMENT_REJECTED)
            return self._fail(FailureKind.VERIFICATION, "Signature mismatch")

        self._transition(CheckoutStatus.PAYMENT_VERIFIED)
        payment = GatewayPayment(
            razorpay_order_id=callback.razorpay_order_id,
            razorpay_payment_id=callback.razorpay_payment_id,
        )
        return self._guarded(self._place_order, FailureKind.PERSISTENCE, payment)

    # -------------------------------------------------------------------
    # Persistence (both branches)
    # -------------------------------------------------------------------
    def _place_order(self, payment: GatewayPayment | None) -> CheckoutOutcome:
        created = self.orders.create_order(self.request, self.purchaser, payment)
        if not created.ok:
            return self._fail(FailureKind.PERSISTENCE, created.error)

        order = created.value
        self.order_id = str(order.id)
        self._transition(CheckoutStatus.ORDER_PERSISTED)

        items = self.orders.add_line_items(order.id, self.request.lines)
        if not items.ok:
            self.orders.mark_orphaned(order.id, f"Line items not written: {items.error}")
            return self._fail(FailureKind.PERSISTENCE, items.error)

        if payment is not None:
            recorded = self.orders.record_payment(order, payment)
            if not recorded.ok:
                return self._fail(FailureKind.PERSISTENCE, recorded.error)
            self._transition(CheckoutStatus.PAYMENT_RECORDED)

        # Notification failures never change the outcome
        self.orders.notify_admin(order)
        self._transition(CheckoutStatus.NOTIFIED)

        self._transition(CheckoutStatus.COMPLETED)
        message = COD_SUCCESS_MESSAGE if payment is None else GATEWAY_SUCCESS_MESSAGE
        self.outcome = CheckoutOutcome.succeeded(order.id, message)
        logger.info(
            "Checkout completed",
            order_id=self.order_id,
            user_id=self.purchaser.user_id,
            total=self.request.total,
            payment_method=self.request.payment_method.value,
        )
        return self.outcome
