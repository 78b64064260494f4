"""Checkout snapshot: the immutable input of one checkout attempt.

Built once from the cart state when the shopper submits; the orchestrator
works from this snapshot only and never reads the live cart mid-flow.
"""

from pydantic import BaseModel, ConfigDict, Field, model_validator

from cart.lines import CartLine, CartState, round2
from ordering.order.order import PaymentMethod

TAX_RATE = 0.08
FREE_SHIPPING = 0.0


class Address(BaseModel):
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    name: str = Field(min_length=1)
    street: str = Field(min_length=1)
    city: str = Field(min_length=1)
    state: str = Field(min_length=1)
    zip_code: str = Field(min_length=1)
    country: str = "India"
    phone: str = Field(min_length=1)


class CheckoutRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    lines: tuple[CartLine, ...] = Field(min_length=1)
    subtotal: float = Field(ge=0)
    tax: float = Field(ge=0)
    shipping: float = Field(ge=0)
    total: float = Field(gt=0)
    shipping_address: Address
    billing_address: Address
    payment_method: PaymentMethod

    @model_validator(mode="after")
    def _total_adds_up(self):
        if round2(self.subtotal + self.tax + self.shipping) != round2(self.total):
            raise ValueError("total must equal subtotal + tax + shipping")
        return self

    @property
    def amount_minor(self) -> int:
        """Total in the currency's minor unit, as the gateway expects it."""
        return round(self.total * 100)

    @property
    def amounts(self) -> dict:
        return {"subtotal": self.subtotal, "tax": self.tax, "shipping": self.shipping, "total": self.total}


def build_checkout_request(
    state: CartState,
    shipping_address,
    payment_method,
    billing_address=None,
    tax_rate: float = TAX_RATE,
    shipping: float = FREE_SHIPPING,
) -> CheckoutRequest:
    """Snapshot the cart with its checkout totals.

    Billing defaults to the shipping address. Raises pydantic's
    ``ValidationError`` when a required field is missing or the cart is empty.
    """
    subtotal = state.total
    tax = round2(subtotal * tax_rate)
    return CheckoutRequest(
        lines=state.lines,
        subtotal=subtotal,
        tax=tax,
        shipping=shipping,
        total=round2(subtotal + tax + shipping),
        shipping_address=shipping_address,
        billing_address=billing_address if billing_address is not None else shipping_address,
        payment_method=payment_method,
    )
