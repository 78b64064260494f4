"""Order repository: writes a completed checkout and reads orders back.

Each write is a separate step returning a ``StepResult`` instead of raising,
so the checkout orchestrator can decide what a failure means at that point
of the flow. Writes are never undone here: a header whose line items failed
stays in place (see ``mark_orphaned``).
"""

from dataclasses import dataclass
from typing import Any

import structlog
from protean.core.unit_of_work import UnitOfWork
from protean.utils.globals import current_domain

from ordering.order.line_item import OrderLineItem
from ordering.order.notification import AdminNotification
from ordering.order.order import Order, PaymentMethod
from ordering.order.payment_record import PaymentRecord
from payments.settings import CURRENCY

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class StepResult:
    ok: bool
    value: Any = None
    error: str | None = None

    @classmethod
    def success(cls, value=None):
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, error):
        return cls(ok=False, error=str(error))


@dataclass(frozen=True)
class GatewayPayment:
    """Gateway identifiers of a verified payment."""

    razorpay_order_id: str
    razorpay_payment_id: str


class OrderRepository:
    def _persist(self, record):
        return current_domain.repository_for(type(record)).add(record)

    # -------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------
    def create_order(self, request, purchaser, payment: GatewayPayment | None = None) -> StepResult:
        """Insert the order header; the result value is the persisted Order."""
        try:
            order = Order.place(
                user_id=purchaser.user_id,
                user_email=purchaser.email,
                shipping_address=request.shipping_address.model_dump(),
                billing_address=request.billing_address.model_dump(),
                amounts=request.amounts,
                payment_method=request.payment_method.value,
                razorpay_order_id=payment.razorpay_order_id if payment else None,
                razorpay_payment_id=payment.razorpay_payment_id if payment else None,
            )
            self._persist(order)
        except Exception as exc:
            logger.exception("Order header insert failed", user_id=purchaser.user_id)
            return StepResult.failure(exc)

        logger.info("Order header created", order_id=str(order.id), payment_method=order.payment_method)
        return StepResult.success(order)

    def add_line_items(self, order_id, lines) -> StepResult:
        """Insert one OrderLineItem per cart line; the result value is the row count.

        All rows are written in one unit of work, so a failure leaves none behind.
        """
        try:
            items = [OrderLineItem.from_cart_line(order_id, line) for line in lines]
            with UnitOfWork():
                for item in items:
                    self._persist(item)
        except Exception as exc:
            logger.exception("Order line item insert failed", order_id=str(order_id))
            return StepResult.failure(exc)

        return StepResult.success(len(items))

    def record_payment(self, order, payment: GatewayPayment) -> StepResult:
        """Insert the payment record of a verified gateway payment."""
        if order.payment_method != PaymentMethod.GATEWAY.value or not payment.razorpay_payment_id:
            return StepResult.success(None)

        try:
            record = PaymentRecord(
                order_id=order.id,
                razorpay_order_id=payment.razorpay_order_id,
                razorpay_payment_id=payment.razorpay_payment_id,
                amount=order.total_amount,
                currency=CURRENCY,
            )
            self._persist(record)
        except Exception as exc:
            logger.exception("Payment record insert failed", order_id=str(order.id))
            return StepResult.failure(exc)

        return StepResult.success(record)

    def notify_admin(self, order) -> StepResult:
        try:
            notification = AdminNotification.new_order(order)
            self._persist(notification)
        except Exception as exc:
            logger.warning("Admin notification failed", order_id=str(order.id), error=str(exc))
            return StepResult.failure(exc)

        return StepResult.success(notification)

    def mark_orphaned(self, order_id, reason) -> StepResult:
        """Flag an order header left without line items. Never deletes it."""
        try:
            repo = current_domain.repository_for(Order)
            order = repo.get(order_id)
            order.mark_orphaned(reason)
            repo.add(order)
        except Exception as exc:
            logger.exception("Could not mark order orphaned", order_id=str(order_id))
            return StepResult.failure(exc)

        logger.warning("Order header orphaned", order_id=str(order_id), reason=reason)
        return StepResult.success(order)

    # -------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------
    def line_items_for(self, order_id) -> list[OrderLineItem]:
        repo = current_domain.repository_for(OrderLineItem)
        return repo._dao.query.filter(order_id=str(order_id)).all().items

    def payment_records_for(self, order_id) -> list[PaymentRecord]:
        repo = current_domain.repository_for(PaymentRecord)
        return repo._dao.query.filter(order_id=str(order_id)).all().items

    def get_order(self, order_id) -> dict:
        """Return the order with its line items. Raises ObjectNotFoundError."""
        order = current_domain.repository_for(Order).get(order_id)
        return self._with_items(order)

    def get_user_orders(self, user_id) -> list[dict]:
        """Return a user's orders, newest first."""
        repo = current_domain.repository_for(Order)
        orders = repo._dao.query.filter(user_id=str(user_id)).all().items
        orders = sorted(orders, key=lambda order: order.created_at, reverse=True)
        return [self._with_items(order) for order in orders]

    def _with_items(self, order) -> dict:
        data = order.to_dict()
        data["items"] = [item.to_dict() for item in self.line_items_for(order.id)]
        return data
