"""Client-side gateway adapter.

The client never holds the key secret. It asks this service's payment
endpoints (``POST /payments/orders`` and ``POST /payments/verify``) to create
gateway orders and to verify callbacks.
"""

import requests
import structlog

from payments.gateway.port import GatewayError, PaymentGateway, PaymentOrderResult, VerificationResult

logger = structlog.get_logger(__name__)


class RemoteGateway(PaymentGateway):
    def __init__(
        self,
        base_url: str,
        key_id: str | None = None,
        timeout: float = 10.0,
        session: requests.Session | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.key_id = key_id
        self.timeout = timeout
        self.session = session or requests.Session()

    def _post(self, path: str, payload: dict) -> tuple[int, dict]:
        try:
            response = self.session.post(f"{self.base_url}{path}", json=payload, timeout=self.timeout)
            return response.status_code, response.json()
        except (requests.RequestException, ValueError) as exc:
            raise GatewayError(str(exc)) from exc

    def create_payment_order(self, amount: int, currency: str) -> PaymentOrderResult:
        try:
            status, body = self._post("/payments/orders", {"amount": amount, "currency": currency})
        except GatewayError as exc:
            logger.warning("Payment order request failed", error=str(exc))
            return PaymentOrderResult(success=False, failure_reason="Failed to create payment order")

        if status != 200 or not body.get("success"):
            return PaymentOrderResult(success=False, failure_reason=body.get("error", "Failed to create payment order"))
        return PaymentOrderResult(
            success=True,
            gateway_order_id=body["id"],
            amount=body["amount"],
            currency=body["currency"],
        )

    def verify_payment(self, order_id: str, payment_id: str, signature: str) -> VerificationResult:
        payload = {
            "razorpay_order_id": order_id,
            "razorpay_payment_id": payment_id,
            "razorpay_signature": signature,
        }
        try:
            status, body = self._post("/payments/verify", payload)
        except GatewayError as exc:
            logger.warning("Payment verification request failed", error=str(exc))
            return VerificationResult(success=False, failure_reason="Verification unavailable")

        # A 400 carrying "verified" means the check ran and the signature did not match
        if status == 200 or (status == 400 and "verified" in body):
            return VerificationResult(success=True, verified=bool(body.get("verified")), failure_reason=body.get("error"))
        return VerificationResult(success=False, failure_reason=body.get("error", "Verification unavailable"))
