"""Order aggregate (CQRS): the header record of a placed order.

An Order is written exactly once per completed checkout. Line items, the
payment record and the admin notification are separate aggregates that
reference it by ``order_id``; they are written after the header, in that
order, each depending on the header's generated id.

Status changes after placement belong to back-office tooling. The only
transition made here is CONFIRMED → ORPHANED, recorded when line item
insertion fails after the header was written, so the incomplete order can be
found and repaired instead of silently lingering.
"""

from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, Identifier, String, ValueObject

from ordering.domain import ordering
from ordering.order.events import OrderOrphaned, OrderPlaced


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    CONFIRMED = "confirmed"
    ORPHANED = "orphaned"


class PaymentStatus(Enum):
    PENDING = "pending"
    COMPLETED = "completed"


class PaymentMethod(Enum):
    GATEWAY = "razorpay"
    CASH_ON_DELIVERY = "cod"


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@ordering.value_object(part_of="Order")
class PostalAddress:
    """A delivery or billing address captured at checkout time.

    Once recorded on an Order the address is immutable; it is where this
    order goes, regardless of later changes to the shopper's address book.
    """

    name = String(required=True, max_length=255)
    street = String(required=True, max_length=255)
    city = String(required=True, max_length=100)
    state = String(required=True, max_length=100)
    zip_code = String(required=True, max_length=20)
    country = String(max_length=100, default="India")
    phone = String(max_length=30)


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@ordering.aggregate
class Order:
    user_id = Identifier(required=True)
    user_email = String(max_length=255)
    user_name = String(max_length=255)
    shipping_address = ValueObject(PostalAddress)
    billing_address = ValueObject(PostalAddress)
    subtotal = Float(required=True, min_value=0.0)
    tax = Float(default=0.0, min_value=0.0)
    shipping_cost = Float(default=0.0, min_value=0.0)
    total_amount = Float(required=True, min_value=0.0)
    payment_method = String(choices=PaymentMethod, required=True)
    status = String(choices=OrderStatus, default=OrderStatus.CONFIRMED.value)
    payment_status = String(choices=PaymentStatus, required=True)
    razorpay_order_id = String(max_length=255)
    razorpay_payment_id = String(max_length=255)
    orphan_reason = String(max_length=500)
    created_at = DateTime()

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def place(
        cls,
        user_id,
        user_email,
        shipping_address,
        billing_address,
        amounts,
        payment_method,
        razorpay_order_id=None,
        razorpay_payment_id=None,
    ):
        """Build the header for a checkout.

        Cash-on-delivery orders start with payment pending; gateway orders
        are only placed after the payment was verified, so they start
        completed and must carry the gateway payment id.

        Args:
            shipping_address: Dict with name, street, city, state, zip_code, country, phone.
            billing_address: Same shape as shipping_address.
            amounts: Dict with subtotal, tax, shipping, total.
        """
        method = PaymentMethod(payment_method)
        if method == PaymentMethod.GATEWAY and not razorpay_payment_id:
            raise ValidationError({"razorpay_payment_id": ["Gateway orders require a verified payment"]})

        payment_status = PaymentStatus.COMPLETED if method == PaymentMethod.GATEWAY else PaymentStatus.PENDING

        order = cls(
            user_id=user_id,
            user_email=user_email,
            user_name=shipping_address.get("name"),
            shipping_address=PostalAddress(**shipping_address),
            billing_address=PostalAddress(**billing_address),
            subtotal=amounts["subtotal"],
            tax=amounts.get("tax", 0.0),
            shipping_cost=amounts.get("shipping", 0.0),
            total_amount=amounts["total"],
            payment_method=method.value,
            status=OrderStatus.CONFIRMED.value,
            payment_status=payment_status.value,
            razorpay_order_id=razorpay_order_id,
            razorpay_payment_id=razorpay_payment_id,
            created_at=datetime.now(UTC),
        )
        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                user_id=str(user_id),
                total_amount=order.total_amount,
                payment_method=order.payment_method,
                payment_status=order.payment_status,
                placed_at=order.created_at,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Compensation marker
    # -------------------------------------------------------------------
    def mark_orphaned(self, reason):
        """Flag a header whose line items could not be written."""
        if OrderStatus(self.status) != OrderStatus.CONFIRMED:
            raise ValidationError({"status": ["Only confirmed orders can be marked orphaned"]})

        self.status = OrderStatus.ORPHANED.value
        self.orphan_reason = reason
        self.raise_(
            OrderOrphaned(
                order_id=str(self.id),
                reason=reason,
                orphaned_at=datetime.now(UTC),
            )
        )
