"""AdminNotification aggregate: back-office alert that a new order arrived."""

from protean.fields import Identifier, String, Text

from ordering.domain import ordering

NEW_ORDER = "new_order"


@ordering.aggregate
class AdminNotification:
    notification_type = String(required=True, max_length=50)
    title = String(required=True, max_length=255)
    message = Text(required=True)
    order_id = Identifier()

    @classmethod
    def new_order(cls, order):
        return cls(
            notification_type=NEW_ORDER,
            title="New Order Received",
            message=f"New order #{str(order.id)[:8]} for ₹{order.total_amount} from {order.user_email}",
            order_id=order.id,
        )
