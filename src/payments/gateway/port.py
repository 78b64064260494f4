"""Payment gateway port (abstract interface).

Defines the contract that all payment gateway adapters must implement, so
checkout code can run against FakeGateway (dev/test), RazorpayGateway
(server side, holds the key secret) or RemoteGateway (client side, calls
this service's payment endpoints) without change.

Adapters never raise for gateway or transport failures; they return a
result with ``success=False`` and a ``failure_reason``.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


class GatewayError(Exception):
    """Transport or gateway-side failure inside an adapter."""


@dataclass(frozen=True)
class PaymentOrderResult:
    """Result of creating a payment order at the gateway."""

    success: bool
    gateway_order_id: str | None = None
    amount: int | None = None  # minor units
    currency: str | None = None
    failure_reason: str | None = None


@dataclass(frozen=True)
class VerificationResult:
    """Result of verifying a payment callback.

    ``success`` reports whether the check could be carried out at all
    (False on transport or configuration failure); ``verified`` whether the
    signature matched.
    """

    success: bool
    verified: bool = False
    failure_reason: str | None = None


class PaymentGateway(ABC):
    """Abstract payment gateway interface."""

    key_id: str | None = None

    @abstractmethod
    def create_payment_order(self, amount: int, currency: str) -> PaymentOrderResult:
        """Create a gateway order for ``amount`` minor units."""
        ...

    @abstractmethod
    def verify_payment(self, order_id: str, payment_id: str, signature: str) -> VerificationResult:
        """Verify that a payment callback is authentically from the gateway."""
        ...
