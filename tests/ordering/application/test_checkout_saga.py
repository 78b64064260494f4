from datetime import UTC, datetime, timedelta

import pytest
from cart.lines import CartLine, CartState
from ordering.checkout.request import build_checkout_request
from ordering.checkout.results import FailureKind, PaymentCallback, Purchaser
from ordering.checkout.saga import CheckoutSaga, CheckoutStatus
from ordering.order.line_item import OrderLineItem
from ordering.order.notification import AdminNotification
from ordering.order.order import Order, OrderStatus, PaymentMethod
from ordering.order.payment_record import PaymentRecord
from ordering.order.repository import OrderRepository
from payments.gateway.fake_adapter import FakeGateway
from protean import current_domain
from protean.exceptions import ValidationError

ADDRESS = {
    "name": "Asha Rao",
    "street": "12 MG Road",
    "city": "Bengaluru",
    "state": "Karnataka",
    "zip_code": "560001",
    "phone": "9800000000",
}

PURCHASER = Purchaser(user_id="user-1", email="asha@example.com")


class FlakyRepository(OrderRepository):
    """Fails every write of the given record types."""

    def __init__(self, *failing):
        self.failing = failing

    def _persist(self, record):
        if isinstance(record, self.failing):
            raise RuntimeError(f"{type(record).__name__} insert failed")
        return super()._persist(record)


class NthLineItemFails(OrderRepository):
    """Fails only the n-th line item write."""

    def __init__(self, n):
        self.n = n
        self.seen = 0

    def _persist(self, record):
        if isinstance(record, OrderLineItem):
            self.seen += 1
            if self.seen == self.n:
                raise RuntimeError("line item insert failed")
        return super()._persist(record)


class Clock:
    def __init__(self):
        self.now = datetime(2026, 1, 1, 12, 0, tzinfo=UTC)

    def __call__(self):
        return self.now


def _cart():
    return CartState.from_lines(
        [
            CartLine(product_id="prod-1", name="Kurta", unit_price=200.0, quantity=2, size="M"),
            CartLine(product_id="prod-2", name="Scarf", unit_price=100.0, quantity=1, color="Blue"),
        ]
    )


def _saga(method=PaymentMethod.CASH_ON_DELIVERY, gateway=None, orders=None, **kwargs):
    request = build_checkout_request(_cart(), shipping_address=ADDRESS, payment_method=method)
    return CheckoutSaga(
        request,
        PURCHASER,
        gateway=gateway or FakeGateway(),
        orders=orders or OrderRepository(),
        **kwargs,
    )


def _all(aggregate_cls):
    return current_domain.repository_for(aggregate_cls)._dao.query.all().items


def _callback(saga, gateway, payment_id="pay_1", signature=None):
    return PaymentCallback(
        razorpay_order_id=saga.gateway_order_id,
        razorpay_payment_id=payment_id,
        razorpay_signature=signature or gateway.sign(saga.gateway_order_id, payment_id),
    )


class TestCashOnDelivery:
    def test_completes_in_one_step(self):
        saga = _saga()

        outcome = saga.start()

        assert outcome.success
        assert outcome.message == "Order placed successfully! You can pay when the order is delivered."
        assert saga.history == [
            CheckoutStatus.INITIATED,
            CheckoutStatus.ORDER_PERSISTED,
            CheckoutStatus.NOTIFIED,
            CheckoutStatus.COMPLETED,
        ]

    def test_writes_header_items_and_notification(self):
        saga = _saga()
        outcome = saga.start()

        order = current_domain.repository_for(Order).get(outcome.order_id)
        assert order.payment_status == "pending"
        assert order.razorpay_payment_id is None
        assert order.subtotal == 500.0
        assert order.tax == 40.0
        assert order.total_amount == 540.0
        assert order.billing_address.street == "12 MG Road"
        assert len(OrderRepository().line_items_for(order.id)) == 2
        assert _all(PaymentRecord) == []
        assert len(_all(AdminNotification)) == 1

    def test_never_calls_gateway(self):
        gateway = FakeGateway()
        _saga(gateway=gateway).start()

        assert gateway.calls == []

    def test_cannot_start_twice(self):
        saga = _saga()
        saga.start()

        with pytest.raises(ValidationError):
            saga.start()


class TestGatewayPayment:
    def test_stops_at_payment_prompt(self):
        gateway = FakeGateway()
        saga = _saga(PaymentMethod.GATEWAY, gateway=gateway)

        assert saga.start() is None
        assert saga.status == CheckoutStatus.AWAITING_USER_PAYMENT
        assert saga.prompt.amount == 54000
        assert saga.prompt.currency == "INR"
        assert saga.prompt.key_id == gateway.key_id
        assert saga.prompt.prefill == {"name": "Asha Rao", "email": "asha@example.com", "contact": "9800000000"}
        assert _all(Order) == []

    def test_verified_payment_places_order(self):
        gateway = FakeGateway()
        saga = _saga(PaymentMethod.GATEWAY, gateway=gateway)
        saga.start()

        outcome = saga.complete_payment(_callback(saga, gateway))

        assert outcome.success
        assert outcome.message == "Order confirmed successfully!"
        assert saga.status == CheckoutStatus.COMPLETED
        assert CheckoutStatus.PAYMENT_RECORDED in saga.history

        order = current_domain.repository_for(Order).get(outcome.order_id)
        assert order.payment_status == "completed"
        assert order.razorpay_order_id == saga.gateway_order_id
        assert order.razorpay_payment_id == "pay_1"

        records = OrderRepository().payment_records_for(order.id)
        assert len(records) == 1
        assert records[0].amount == 540.0
        assert records[0].currency == "INR"

    def test_signature_mismatch_writes_nothing(self):
        gateway = FakeGateway()
        saga = _saga(PaymentMethod.GATEWAY, gateway=gateway)
        saga.start()

        outcome = saga.complete_payment(_callback(saga, gateway, signature="forged"))

        assert not outcome.success
        assert outcome.failure == FailureKind.VERIFICATION
        assert outcome.message == "Payment verification failed"
        assert saga.history[-2:] == [CheckoutStatus.PAYMENT_REJECTED, CheckoutStatus.FAILED]
        assert _all(Order) == []
        assert _all(PaymentRecord) == []

    def test_callback_for_other_gateway_order_is_rejected(self):
        gateway = FakeGateway()
        saga = _saga(PaymentMethod.GATEWAY, gateway=gateway)
        saga.start()
        forged = PaymentCallback("order_other", "pay_1", gateway.sign("order_other", "pay_1"))

        outcome = saga.complete_payment(forged)

        assert outcome.failure == FailureKind.VERIFICATION
        assert _all(Order) == []

    def test_verification_unavailable(self):
        gateway = FakeGateway()
        saga = _saga(PaymentMethod.GATEWAY, gateway=gateway)
        saga.start()
        gateway.configure(verification_available=False)

        outcome = saga.complete_payment(_callback(saga, gateway))

        assert outcome.failure == FailureKind.GATEWAY
        assert _all(Order) == []

    def test_gateway_order_failure_touches_no_records(self):
        gateway = FakeGateway()
        gateway.configure(should_succeed=False)
        saga = _saga(PaymentMethod.GATEWAY, gateway=gateway)

        outcome = saga.start()

        assert outcome.failure == FailureKind.GATEWAY
        assert outcome.message == "Failed to process payment. Please try again."
        assert saga.prompt is None
        assert _all(Order) == []

    def test_user_cancelled(self):
        saga = _saga(PaymentMethod.GATEWAY)
        saga.start()

        outcome = saga.cancel()

        assert outcome.failure == FailureKind.USER_CANCELLED
        assert outcome.message == "Payment cancelled by user"
        assert saga.history[-2:] == [CheckoutStatus.USER_CANCELLED, CheckoutStatus.FAILED]
        assert _all(Order) == []

    def test_callback_after_window_closes(self):
        gateway = FakeGateway()
        clock = Clock()
        saga = _saga(PaymentMethod.GATEWAY, gateway=gateway, clock=clock, payment_window=timedelta(minutes=5))
        saga.start()
        clock.now += timedelta(minutes=6)

        outcome = saga.complete_payment(_callback(saga, gateway))

        assert outcome.failure == FailureKind.TIMED_OUT
        assert _all(Order) == []

    def test_expire(self):
        clock = Clock()
        saga = _saga(PaymentMethod.GATEWAY, clock=clock, payment_window=timedelta(minutes=5))
        saga.start()

        assert saga.expire() is None
        clock.now += timedelta(minutes=5, seconds=1)
        outcome = saga.expire()

        assert outcome.failure == FailureKind.TIMED_OUT
        assert saga.is_finished

    def test_complete_requires_awaiting_payment(self):
        saga = _saga(PaymentMethod.GATEWAY)

        with pytest.raises(ValidationError):
            saga.complete_payment(PaymentCallback("order_1", "pay_1", "sig"))

    def test_repeated_callback_returns_existing_outcome(self):
        gateway = FakeGateway()
        saga = _saga(PaymentMethod.GATEWAY, gateway=gateway)
        saga.start()
        callback = _callback(saga, gateway)

        first = saga.complete_payment(callback)
        second = saga.complete_payment(callback)

        assert second == first
        assert second.success
        assert len(_all(Order)) == 1
        assert len(_all(PaymentRecord)) == 1

    def test_cancel_after_completion_returns_existing_outcome(self):
        gateway = FakeGateway()
        saga = _saga(PaymentMethod.GATEWAY, gateway=gateway)
        saga.start()
        first = saga.complete_payment(_callback(saga, gateway))

        assert saga.cancel() == first
        assert saga.status == CheckoutStatus.COMPLETED

    def test_callback_after_cancel_returns_cancellation(self):
        gateway = FakeGateway()
        saga = _saga(PaymentMethod.GATEWAY, gateway=gateway)
        saga.start()
        saga.cancel()

        outcome = saga.complete_payment(_callback(saga, gateway))

        assert outcome.failure == FailureKind.USER_CANCELLED
        assert _all(Order) == []


class TestPersistenceFailures:
    def test_header_failure(self):
        saga = _saga(orders=FlakyRepository(Order))

        outcome = saga.start()

        assert outcome.failure == FailureKind.PERSISTENCE
        assert outcome.message == "Failed to create order. Please contact support."
        assert _all(Order) == []

    def test_line_item_failure_orphans_header(self):
        saga = _saga(orders=FlakyRepository(OrderLineItem))

        outcome = saga.start()

        assert outcome.failure == FailureKind.PERSISTENCE
        orders = _all(Order)
        assert len(orders) == 1
        assert orders[0].status == OrderStatus.ORPHANED.value
        assert orders[0].orphan_reason.startswith("Line items not written")
        assert _all(OrderLineItem) == []
        assert _all(AdminNotification) == []

    def test_failure_on_later_line_item_leaves_no_rows(self):
        saga = _saga(orders=NthLineItemFails(2))

        outcome = saga.start()

        assert outcome.failure == FailureKind.PERSISTENCE
        orders = _all(Order)
        assert len(orders) == 1
        assert orders[0].status == OrderStatus.ORPHANED.value
        assert _all(OrderLineItem) == []

    def test_payment_record_failure(self):
        gateway = FakeGateway()
        saga = _saga(PaymentMethod.GATEWAY, gateway=gateway, orders=FlakyRepository(PaymentRecord))
        saga.start()

        outcome = saga.complete_payment(_callback(saga, gateway))

        assert outcome.failure == FailureKind.PERSISTENCE
        assert len(_all(Order)) == 1
        assert _all(PaymentRecord) == []

    def test_notification_failure_still_succeeds(self):
        saga = _saga(orders=FlakyRepository(AdminNotification))

        outcome = saga.start()

        assert outcome.success
        assert saga.status == CheckoutStatus.COMPLETED
        assert len(_all(OrderLineItem)) == 2
        assert _all(AdminNotification) == []
