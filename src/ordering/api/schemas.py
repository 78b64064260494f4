"""Pydantic response schemas for the Ordering API.

These are external contracts (anti-corruption layer), separate from
internal Protean aggregates.
"""

from datetime import datetime

from pydantic import BaseModel


class AddressSchema(BaseModel):
    name: str
    street: str
    city: str
    state: str
    zip_code: str
    country: str | None = None
    phone: str | None = None


class OrderItemSchema(BaseModel):
    id: str
    product_id: str
    product_name: str
    product_image: str | None = None
    size: str | None = None
    color: str | None = None
    quantity: int
    unit_price: float
    total_price: float


class OrderResponse(BaseModel):
    id: str
    user_id: str
    user_email: str | None = None
    user_name: str | None = None
    shipping_address: AddressSchema | None = None
    billing_address: AddressSchema | None = None
    subtotal: float
    tax: float
    shipping_cost: float
    total_amount: float
    payment_method: str
    status: str
    payment_status: str
    razorpay_order_id: str | None = None
    razorpay_payment_id: str | None = None
    created_at: datetime | None = None
    items: list[OrderItemSchema] = []


class OrderListResponse(BaseModel):
    orders: list[OrderResponse]
