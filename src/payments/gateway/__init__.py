"""Payment gateway factory.

Provides get_gateway() / set_gateway() to swap implementations:
- RazorpayGateway when RAZORPAY_KEY_ID and RAZORPAY_KEY_SECRET are set (server)
- RemoteGateway when only PAYMENTS_API_URL is set (client)
- FakeGateway otherwise (development and testing)
"""

from payments.gateway.fake_adapter import FakeGateway
from payments.gateway.port import PaymentGateway
from payments.gateway.razorpay_adapter import RazorpayGateway
from payments.gateway.remote_adapter import RemoteGateway
from payments.settings import GatewaySettings

_current_gateway: PaymentGateway | None = None


def gateway_from_settings(settings: GatewaySettings) -> PaymentGateway:
    if settings.key_id and settings.key_secret:
        return RazorpayGateway(
            key_id=settings.key_id,
            key_secret=settings.key_secret,
            api_base=settings.api_base,
            timeout=settings.timeout,
        )
    if settings.payments_api_url:
        return RemoteGateway(settings.payments_api_url, key_id=settings.key_id, timeout=settings.timeout)
    return FakeGateway()


def get_gateway() -> PaymentGateway:
    """Return the current payment gateway, building it from the environment on first use."""
    global _current_gateway
    if _current_gateway is None:
        _current_gateway = gateway_from_settings(GatewaySettings.from_env())
    return _current_gateway


def set_gateway(gateway: PaymentGateway) -> None:
    """Override the active payment gateway (useful for tests)."""
    global _current_gateway
    _current_gateway = gateway


def reset_gateway() -> None:
    """Reset to default gateway."""
    global _current_gateway
    _current_gateway = None
