"""FastAPI routes for the Payments context: gateway order creation and callback verification.

Both endpoints run on the trusted side: order creation needs the gateway
credentials and verification needs the key secret.
"""

import structlog
from fastapi import APIRouter
from fastapi.responses import JSONResponse

from payments.api.schemas import (
    CreatePaymentOrderRequest,
    PaymentOrderResponse,
    VerifyPaymentRequest,
    VerifyPaymentResponse,
)
from payments.gateway import get_gateway
from payments.settings import GatewaySettings
from payments.signature import verify_signature

logger = structlog.get_logger(__name__)

payment_router = APIRouter(prefix="/payments", tags=["payments"])


@payment_router.post("/orders", response_model=PaymentOrderResponse)
async def create_payment_order(body: CreatePaymentOrderRequest):
    """Create a gateway order the shopper will pay against."""
    result = get_gateway().create_payment_order(amount=body.amount, currency=body.currency)
    if not result.success:
        return JSONResponse(status_code=502, content={"success": False, "error": result.failure_reason})

    return PaymentOrderResponse(
        success=True,
        id=result.gateway_order_id,
        amount=result.amount,
        currency=result.currency,
    )


@payment_router.post("/verify", response_model=VerifyPaymentResponse)
async def verify_payment(body: VerifyPaymentRequest):
    """Check the HMAC signature attached to a gateway payment callback."""
    if not (body.razorpay_order_id and body.razorpay_payment_id and body.razorpay_signature):
        return JSONResponse(status_code=400, content={"error": "Missing required payment data"})

    try:
        key_secret = GatewaySettings.from_env().key_secret
        if not key_secret:
            raise RuntimeError("Razorpay secret not configured")
        verified = verify_signature(
            body.razorpay_order_id,
            body.razorpay_payment_id,
            body.razorpay_signature,
            key_secret,
        )
    except RuntimeError as exc:
        logger.error("Payment verification failed", error=str(exc))
        return JSONResponse(
            status_code=500,
            content={"success": False, "verified": False, "error": str(exc)},
        )

    if not verified:
        logger.warning(
            "Payment signature mismatch",
            order_id=body.razorpay_order_id,
            payment_id=body.razorpay_payment_id,
        )
        return JSONResponse(
            status_code=400,
            content={"success": False, "verified": False, "error": "Signature mismatch"},
        )

    return VerifyPaymentResponse(success=True, verified=True)
