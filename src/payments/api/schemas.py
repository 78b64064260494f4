"""Pydantic request/response schemas for the Payments API.

Field names of the verification request are the gateway's callback contract
and must not be renamed.
"""

from pydantic import BaseModel, Field

from payments.settings import CURRENCY


class CreatePaymentOrderRequest(BaseModel):
    amount: int = Field(gt=0, description="Amount in minor units (paise)")
    currency: str = CURRENCY

    model_config = {"json_schema_extra": {"examples": [{"amount": 54000, "currency": "INR"}]}}


class PaymentOrderResponse(BaseModel):
    success: bool
    id: str
    amount: int
    currency: str


class VerifyPaymentRequest(BaseModel):
    # Optional here so a missing field yields the contract's 400, not a 422
    razorpay_order_id: str | None = None
    razorpay_payment_id: str | None = None
    razorpay_signature: str | None = None


class VerifyPaymentResponse(BaseModel):
    success: bool
    verified: bool
    error: str | None = None
