from unittest.mock import MagicMock

import pytest
import requests
from payments.gateway import gateway_from_settings, get_gateway, reset_gateway, set_gateway
from payments.gateway.fake_adapter import FakeGateway
from payments.gateway.razorpay_adapter import RazorpayGateway
from payments.gateway.remote_adapter import RemoteGateway
from payments.settings import GatewaySettings
from payments.signature import compute_signature


def _response(status_code=200, body=None):
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = body if body is not None else {}
    if status_code >= 400:
        response.raise_for_status.side_effect = requests.HTTPError(f"{status_code} error")
    return response


@pytest.fixture
def session():
    return MagicMock(spec=requests.Session)


class TestFakeGateway:
    def test_creates_order(self):
        gateway = FakeGateway()
        result = gateway.create_payment_order(54000, "INR")

        assert result.success
        assert result.gateway_order_id.startswith("order_")
        assert result.amount == 54000
        assert gateway.calls[0]["method"] == "create_payment_order"

    def test_configured_failure(self):
        gateway = FakeGateway()
        gateway.configure(should_succeed=False, failure_reason="Gateway down")

        result = gateway.create_payment_order(100, "INR")

        assert not result.success
        assert result.failure_reason == "Gateway down"

    def test_verifies_own_signature(self):
        gateway = FakeGateway()
        signature = gateway.sign("order_1", "pay_1")

        result = gateway.verify_payment("order_1", "pay_1", signature)

        assert result.success and result.verified

    def test_rejects_forged_signature(self):
        result = FakeGateway().verify_payment("order_1", "pay_1", "forged")

        assert result.success
        assert not result.verified

    def test_verification_unavailable(self):
        gateway = FakeGateway()
        gateway.configure(verification_available=False)

        result = gateway.verify_payment("order_1", "pay_1", gateway.sign("order_1", "pay_1"))

        assert not result.success
        assert not result.verified


class TestRazorpayGateway:
    def test_create_order_posts_with_basic_auth_and_timeout(self, session):
        session.post.return_value = _response(body={"id": "order_abc", "amount": 54000, "currency": "INR"})
        gateway = RazorpayGateway("rzp_key", "rzp_secret", timeout=5.0, session=session)

        result = gateway.create_payment_order(54000, "INR")

        assert result.success
        assert result.gateway_order_id == "order_abc"
        session.post.assert_called_once_with(
            "https://api.razorpay.com/v1/orders",
            json={"amount": 54000, "currency": "INR"},
            auth=("rzp_key", "rzp_secret"),
            timeout=5.0,
        )

    def test_http_error_is_reported_as_failure(self, session):
        session.post.return_value = _response(status_code=401, body={"error": {"code": "BAD_REQUEST_ERROR"}})
        gateway = RazorpayGateway("rzp_key", "rzp_secret", session=session)

        result = gateway.create_payment_order(54000, "INR")

        assert not result.success
        assert result.failure_reason == "Failed to create payment order"

    def test_timeout_is_reported_as_failure(self, session):
        session.post.side_effect = requests.Timeout("read timed out")
        gateway = RazorpayGateway("rzp_key", "rzp_secret", session=session)

        assert not gateway.create_payment_order(54000, "INR").success

    def test_verifies_locally_with_secret(self, session):
        gateway = RazorpayGateway("rzp_key", "rzp_secret", session=session)
        signature = compute_signature("order_1", "pay_1", "rzp_secret")

        assert gateway.verify_payment("order_1", "pay_1", signature).verified
        assert not gateway.verify_payment("order_1", "pay_2", signature).verified
        session.post.assert_not_called()


class TestRemoteGateway:
    def test_create_order(self, session):
        session.post.return_value = _response(
            body={"success": True, "id": "order_abc", "amount": 54000, "currency": "INR"}
        )
        gateway = RemoteGateway("http://payments.local/", key_id="rzp_key", session=session)

        result = gateway.create_payment_order(54000, "INR")

        assert result.success
        assert result.gateway_order_id == "order_abc"
        assert session.post.call_args.args[0] == "http://payments.local/payments/orders"

    def test_create_order_server_failure(self, session):
        session.post.return_value = _response(status_code=502, body={"success": False, "error": "Gateway down"})
        gateway = RemoteGateway("http://payments.local", session=session)

        result = gateway.create_payment_order(54000, "INR")

        assert not result.success
        assert result.failure_reason == "Gateway down"

    def test_verify_sends_callback_field_names(self, session):
        session.post.return_value = _response(body={"success": True, "verified": True, "error": None})
        gateway = RemoteGateway("http://payments.local", session=session)

        result = gateway.verify_payment("order_1", "pay_1", "sig")

        assert result.success and result.verified
        assert session.post.call_args.kwargs["json"] == {
            "razorpay_order_id": "order_1",
            "razorpay_payment_id": "pay_1",
            "razorpay_signature": "sig",
        }

    def test_verify_mismatch(self, session):
        session.post.return_value = _response(
            status_code=400, body={"success": False, "verified": False, "error": "Signature mismatch"}
        )
        gateway = RemoteGateway("http://payments.local", session=session)

        result = gateway.verify_payment("order_1", "pay_1", "sig")

        assert result.success
        assert not result.verified

    def test_verify_server_misconfigured(self, session):
        session.post.return_value = _response(
            status_code=500, body={"success": False, "verified": False, "error": "Razorpay secret not configured"}
        )
        gateway = RemoteGateway("http://payments.local", session=session)

        result = gateway.verify_payment("order_1", "pay_1", "sig")

        assert not result.success
        assert result.failure_reason == "Razorpay secret not configured"

    def test_verify_transport_failure(self, session):
        session.post.side_effect = requests.ConnectionError("refused")
        gateway = RemoteGateway("http://payments.local", session=session)

        result = gateway.verify_payment("order_1", "pay_1", "sig")

        assert not result.success
        assert result.failure_reason == "Verification unavailable"


class TestGatewayFactory:
    def test_credentials_select_razorpay(self):
        gateway = gateway_from_settings(GatewaySettings(key_id="k", key_secret="s"))

        assert isinstance(gateway, RazorpayGateway)

    def test_payments_url_selects_remote(self):
        gateway = gateway_from_settings(GatewaySettings(key_id="k", payments_api_url="http://payments.local"))

        assert isinstance(gateway, RemoteGateway)
        assert gateway.key_id == "k"

    def test_default_is_fake(self):
        assert isinstance(gateway_from_settings(GatewaySettings()), FakeGateway)

    def test_settings_from_environment(self, monkeypatch):
        monkeypatch.setenv("RAZORPAY_KEY_ID", "rzp_key")
        monkeypatch.setenv("RAZORPAY_KEY_SECRET", "rzp_secret")
        monkeypatch.setenv("GATEWAY_TIMEOUT_SECONDS", "3")

        settings = GatewaySettings.from_env()

        assert settings.key_id == "rzp_key"
        assert settings.timeout == 3.0
        assert settings.api_base == "https://api.razorpay.com/v1"

    def test_set_and_reset(self, monkeypatch):
        for name in ("RAZORPAY_KEY_ID", "RAZORPAY_KEY_SECRET", "PAYMENTS_API_URL"):
            monkeypatch.delenv(name, raising=False)
        fake = FakeGateway()

        set_gateway(fake)
        assert get_gateway() is fake

        reset_gateway()
        assert get_gateway() is not fake
        assert isinstance(get_gateway(), FakeGateway)
