"""Domain events for the Order aggregate."""

from protean.fields import DateTime, Float, Identifier, String

from ordering.domain import ordering


@ordering.event(part_of="Order")
class OrderPlaced:
    """An order header was written at checkout."""

    __version__ = "v1"

    order_id = Identifier(required=True)
    user_id = Identifier(required=True)
    total_amount = Float(required=True)
    payment_method = String(required=True)
    payment_status = String(required=True)
    placed_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderOrphaned:
    """The order header exists but its line items could not be written."""

    __version__ = "v1"

    order_id = Identifier(required=True)
    reason = String(required=True)
    orphaned_at = DateTime(required=True)
