"""Value types exchanged with the checkout orchestrator."""

from dataclasses import dataclass, field
from enum import Enum


class FailureKind(Enum):
    VALIDATION = "validation"
    GATEWAY = "gateway"
    VERIFICATION = "verification"
    PERSISTENCE = "persistence"
    USER_CANCELLED = "user_cancelled"
    TIMED_OUT = "timed_out"


FAILURE_MESSAGES = {
    FailureKind.VALIDATION: "Please fill in all required checkout details.",
    FailureKind.GATEWAY: "Failed to process payment. Please try again.",
    FailureKind.VERIFICATION: "Payment verification failed",
    FailureKind.PERSISTENCE: "Failed to create order. Please contact support.",
    FailureKind.USER_CANCELLED: "Payment cancelled by user",
    FailureKind.TIMED_OUT: "Payment window expired. Please try again.",
}

COD_SUCCESS_MESSAGE = "Order placed successfully! You can pay when the order is delivered."
GATEWAY_SUCCESS_MESSAGE = "Order confirmed successfully!"


@dataclass(frozen=True)
class CheckoutOutcome:
    """The single result a checkout attempt reports to its caller."""

    success: bool
    message: str
    order_id: str | None = None
    failure: FailureKind | None = None

    @classmethod
    def succeeded(cls, order_id, message):
        return cls(success=True, message=message, order_id=str(order_id))

    @classmethod
    def failed(cls, kind: FailureKind):
        return cls(success=False, message=FAILURE_MESSAGES[kind], failure=kind)


@dataclass(frozen=True)
class Purchaser:
    user_id: str
    email: str


@dataclass(frozen=True)
class PaymentPrompt:
    """What the gateway's own payment UI needs to collect the payment."""

    key_id: str | None
    gateway_order_id: str
    amount: int  # minor units
    currency: str
    prefill: dict = field(default_factory=dict)
    name: str = "Storefront"
    description: str = "Purchase from Storefront"


@dataclass(frozen=True)
class PaymentCallback:
    """Success callback from the gateway UI; field names follow the gateway."""

    razorpay_order_id: str
    razorpay_payment_id: str
    razorpay_signature: str
