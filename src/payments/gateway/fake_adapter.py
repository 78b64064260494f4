"""Configurable fake payment gateway for development and testing.

Simulates the gateway and its signing server without any external calls. It
holds its own key secret, so ``sign()`` produces the signature a real
gateway would attach to a successful payment callback. Behaviour can be
switched at runtime:
- order creation succeeds or fails
- verification transport succeeds or fails (the signature check itself is
  always real)
"""

from uuid import uuid4

from payments.gateway.port import PaymentGateway, PaymentOrderResult, VerificationResult
from payments.signature import compute_signature, verify_signature


class FakeGateway(PaymentGateway):
    """Configurable fake payment gateway."""

    def __init__(self, key_id: str = "rzp_test_fake", key_secret: str = "fake-secret") -> None:
        self.key_id = key_id
        self.key_secret = key_secret
        self.should_succeed: bool = True
        self.verification_available: bool = True
        self.failure_reason: str = "Gateway unavailable"
        self.calls: list[dict] = []

    def configure(
        self,
        should_succeed: bool = True,
        failure_reason: str = "Gateway unavailable",
        verification_available: bool = True,
    ) -> None:
        """Configure gateway behavior at runtime."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason
        self.verification_available = verification_available

    def create_payment_order(self, amount: int, currency: str) -> PaymentOrderResult:
        self.calls.append({"method": "create_payment_order", "amount": amount, "currency": currency})

        if not self.should_succeed:
            return PaymentOrderResult(success=False, failure_reason=self.failure_reason)
        return PaymentOrderResult(
            success=True,
            gateway_order_id=f"order_{uuid4().hex[:14]}",
            amount=amount,
            currency=currency,
        )

    def verify_payment(self, order_id: str, payment_id: str, signature: str) -> VerificationResult:
        self.calls.append({"method": "verify_payment", "order_id": order_id, "payment_id": payment_id})

        if not self.verification_available:
            return VerificationResult(success=False, failure_reason=self.failure_reason)
        verified = verify_signature(order_id, payment_id, signature, self.key_secret)
        return VerificationResult(success=True, verified=verified)

    def sign(self, order_id: str, payment_id: str) -> str:
        """Signature the gateway would send for a genuine payment."""
        return compute_signature(order_id, payment_id, self.key_secret)
