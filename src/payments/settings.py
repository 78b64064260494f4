"""Gateway configuration read from the process environment."""

import os
from dataclasses import dataclass

CURRENCY = "INR"


@dataclass(frozen=True)
class GatewaySettings:
    key_id: str | None = None
    key_secret: str | None = None
    api_base: str = "https://api.razorpay.com/v1"
    payments_api_url: str | None = None
    timeout: float = 10.0

    @classmethod
    def from_env(cls) -> "GatewaySettings":
        return cls(
            key_id=os.environ.get("RAZORPAY_KEY_ID"),
            key_secret=os.environ.get("RAZORPAY_KEY_SECRET"),
            api_base=os.environ.get("RAZORPAY_API_BASE", cls.api_base),
            payments_api_url=os.environ.get("PAYMENTS_API_URL"),
            timeout=float(os.environ.get("GATEWAY_TIMEOUT_SECONDS", cls.timeout)),
        )
