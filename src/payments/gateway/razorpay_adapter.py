"""Razorpay gateway adapter (server side).

Creates orders through the Razorpay Orders REST API using HTTP basic auth
with the key id and key secret, and verifies payment callbacks locally with
the key secret. Must only be constructed where the secret is available.
"""

import requests
import structlog

from payments.gateway.port import GatewayError, PaymentGateway, PaymentOrderResult, VerificationResult
from payments.signature import verify_signature

logger = structlog.get_logger(__name__)


class RazorpayGateway(PaymentGateway):
    def __init__(
        self,
        key_id: str,
        key_secret: str,
        api_base: str = "https://api.razorpay.com/v1",
        timeout: float = 10.0,
        session: requests.Session | None = None,
    ) -> None:
        self.key_id = key_id
        self.key_secret = key_secret
        self.api_base = api_base.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def _post(self, path: str, payload: dict) -> dict:
        try:
            response = self.session.post(
                f"{self.api_base}{path}",
                json=payload,
                auth=(self.key_id, self.key_secret),
                timeout=self.timeout,
            )
            response.raise_for_status()
            return response.json()
        except (requests.RequestException, ValueError) as exc:
            raise GatewayError(str(exc)) from exc

    def create_payment_order(self, amount: int, currency: str) -> PaymentOrderResult:
        try:
            body = self._post("/orders", {"amount": amount, "currency": currency})
        except GatewayError as exc:
            logger.warning("Razorpay order creation failed", amount=amount, currency=currency, error=str(exc))
            return PaymentOrderResult(success=False, failure_reason="Failed to create payment order")

        return PaymentOrderResult(
            success=True,
            gateway_order_id=body["id"],
            amount=body.get("amount", amount),
            currency=body.get("currency", currency),
        )

    def verify_payment(self, order_id: str, payment_id: str, signature: str) -> VerificationResult:
        verified = verify_signature(order_id, payment_id, signature, self.key_secret)
        if not verified:
            logger.warning("Payment signature mismatch", order_id=order_id, payment_id=payment_id)
        return VerificationResult(success=True, verified=verified)
