"""PaymentRecord aggregate: links a verified gateway payment to its order.

Only written for gateway checkouts whose callback signature was verified.
"""

from protean.fields import Float, Identifier, String

from ordering.domain import ordering


@ordering.aggregate
class PaymentRecord:
    order_id = Identifier(required=True)
    razorpay_order_id = String(required=True, max_length=255)
    razorpay_payment_id = String(required=True, max_length=255)
    amount = Float(required=True, min_value=0.0)
    currency = String(max_length=3, default="INR")
    status = String(max_length=50, default="completed")
    gateway = String(max_length=50, default="razorpay")
