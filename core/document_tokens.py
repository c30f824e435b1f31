"""
Signed, expiring download tokens for order documents.

Format: base64url(header).base64url(payload).base64url(signature), no
padding, where signature = HMAC-SHA256(secret, header + "." + payload).

    header  = {"typ": "TOKEN", "alg": "HS256", "ver": 1}
    payload = {"order_id": int, "iat": int, "exp": int, "jti": str}

Tokens are self-contained: nothing is stored server-side, and any number
of valid tokens may exist for one order. Revocation is secret rotation or
expiry. jti is a random nonce for uniqueness in logs; it is not checked
for replay.
"""

import base64
import hashlib
import hmac
import json
import logging
import secrets
from datetime import timedelta

from core.exceptions import InvalidOrExpiredToken
from utils.timezone import now_utc

logger = logging.getLogger(__name__)

HEADER = {"typ": "TOKEN", "alg": "HS256", "ver": 1}


def _b64encode(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def _b64decode(segment: str) -> bytes:
    padding = "=" * (-len(segment) % 4)
    return base64.urlsafe_b64decode(segment + padding)


class DocumentTokenService:
    """Mint and verify document tokens."""

    def __init__(self, secret: str, expiry_days: int = 150):
        if not secret:
            raise ValueError("secret is required")
        if expiry_days < 1:
            raise ValueError("expiry_days must be positive")

        self._secret = secret.encode("utf-8")
        self.expiry = timedelta(days=expiry_days)

    def _sign(self, signing_input: str) -> str:
        digest = hmac.new(self._secret, signing_input.encode("ascii"), hashlib.sha256).digest()
        return _b64encode(digest)

    def mint(self, order_id: int) -> str:
        """Issue a token granting access to an order's document."""
        issued_at = now_utc()
        payload = {
            "order_id": order_id,
            "iat": int(issued_at.timestamp()),
            "exp": int((issued_at + self.expiry).timestamp()),
            "jti": secrets.token_hex(16),
        }

        header_segment = _b64encode(json.dumps(HEADER, separators=(",", ":")).encode("utf-8"))
        payload_segment = _b64encode(json.dumps(payload, separators=(",", ":")).encode("utf-8"))
        signing_input = f"{header_segment}.{payload_segment}"

        logger.info(f"Minted document token for order {order_id} (jti {payload['jti']})")
        return f"{signing_input}.{self._sign(signing_input)}"

    def verify(self, token: str) -> int:
        """
        Verify a token and return its order id.

        Every failure raises the same exception so callers cannot tell
        a forged token from an expired one.

        Raises:
            InvalidOrExpiredToken: On any structural, signature, or expiry failure
        """
        parts = token.split(".") if token else []
        if len(parts) != 3:
            raise InvalidOrExpiredToken("Malformed token")

        header_segment, payload_segment, signature = parts
        expected = self._sign(f"{header_segment}.{payload_segment}")
        if not hmac.compare_digest(expected.encode("ascii"), signature.encode("ascii", "replace")):
            raise InvalidOrExpiredToken("Bad signature")

        try:
            payload = json.loads(_b64decode(payload_segment))
        except (ValueError, UnicodeDecodeError):
            raise InvalidOrExpiredToken("Unreadable payload")

        if not isinstance(payload, dict):
            raise InvalidOrExpiredToken("Payload is not an object")

        order_id = payload.get("order_id")
        expires_at = payload.get("exp")
        # bool is an int subclass; reject it explicitly
        if not isinstance(order_id, int) or isinstance(order_id, bool):
            raise InvalidOrExpiredToken("Missing order id")
        if not isinstance(expires_at, (int, float)) or isinstance(expires_at, bool):
            raise InvalidOrExpiredToken("Missing expiry")

        if now_utc().timestamp() >= expires_at:
            raise InvalidOrExpiredToken("Token expired")

        return order_id
