"""WooCommerce webhook signature verification.

WooCommerce signs each delivery with base64(HMAC-SHA256(secret, raw body))
in the X-WC-Webhook-Signature header. The signature covers the exact bytes
received, so it must be checked before the body is parsed.
"""

import base64
import hashlib
import hmac

from auth.exceptions import InvalidSignatureError

SIGNATURE_HEADER = "X-WC-Webhook-Signature"
TOPIC_HEADER = "X-WC-Webhook-Topic"


class WebhookSignatureVerifier:
    """Verify WooCommerce webhook signatures."""

    def __init__(self, secret: str):
        if not secret:
            raise ValueError("secret is required")
        self._secret = secret.encode("utf-8")

    def sign(self, body: bytes) -> str:
        digest = hmac.new(self._secret, body, hashlib.sha256).digest()
        return base64.b64encode(digest).decode("ascii")

    def verify(self, body: bytes, signature: str | None) -> None:
        """
        Raises:
            InvalidSignatureError: If signature is missing or does not match body
        """
        if not signature:
            raise InvalidSignatureError("Missing webhook signature")
        if not hmac.compare_digest(self.sign(body).encode("ascii"), signature.strip().encode("utf-8")):
            raise InvalidSignatureError("Invalid webhook signature")
