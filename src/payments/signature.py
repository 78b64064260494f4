"""Payment callback signature check.

The gateway signs ``"<order_id>|<payment_id>"`` with HMAC-SHA256 under the
merchant's key secret and sends the base64 digest back with the callback.
Only code that holds the secret (the server) may run this check.
"""

import base64
import hashlib
import hmac


def compute_signature(order_id: str, payment_id: str, secret: str) -> str:
    message = f"{order_id}|{payment_id}".encode()
    digest = hmac.new(secret.encode(), message, hashlib.sha256).digest()
    return base64.b64encode(digest).decode("ascii")


def verify_signature(order_id: str, payment_id: str, signature: str, secret: str) -> bool:
    """Return True when ``signature`` matches exactly (case-sensitive)."""
    expected = compute_signature(order_id, payment_id, secret)
    return hmac.compare_digest(expected.encode(), signature.encode())
