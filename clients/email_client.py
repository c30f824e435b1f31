"""
Client for the outbound mail gateway.

Every request body is JSON signed with HMAC-SHA256 (X-Signature) and carries
the gateway key (X-API-Key). PDF attachments are embedded base64-encoded.
"""

import base64
import hashlib
import hmac
import json
import logging
from dataclasses import dataclass

import requests

logger = logging.getLogger(__name__)


class EmailGatewayError(Exception):
    """The mail gateway could not be reached or refused the message."""


@dataclass(frozen=True)
class Attachment:
    """A file attached to an outgoing email."""

    filename: str
    content: bytes
    content_type: str = "application/pdf"

    def encoded(self) -> dict:
        return {
            "filename": self.filename,
            "content_type": self.content_type,
            "content": base64.b64encode(self.content).decode("ascii"),
        }


class EmailGatewayClient:
    """Delivers confirmation emails through the signed mail gateway."""

    def __init__(self, gateway_url: str, api_key: str, hmac_secret: str, timeout: int = 10):
        """
        Raises:
            ValueError: If gateway_url, api_key or hmac_secret is empty
        """
        for name, value in (
            ("gateway_url", gateway_url),
            ("api_key", api_key),
            ("hmac_secret", hmac_secret),
        ):
            if not value:
                raise ValueError(f"{name} is required")

        self.gateway_url = gateway_url
        self.api_key = api_key
        self._secret = hmac_secret.encode("utf-8")
        self.timeout = timeout

    def _post_signed(self, message: dict) -> None:
        body = json.dumps(message, separators=(",", ":"))
        digest = hmac.new(self._secret, body.encode("utf-8"), hashlib.sha256).hexdigest()

        try:
            response = requests.post(
                self.gateway_url,
                data=body,
                headers={
                    "Content-Type": "application/json",
                    "X-API-Key": self.api_key,
                    "X-Signature": digest,
                },
                timeout=self.timeout,
            )
        except (requests.exceptions.RequestException, ConnectionError) as e:
            logger.error(f"Mail gateway unreachable: {e}")
            raise EmailGatewayError(f"Connection failed: {e}")

        try:
            result = response.json()
        except ValueError:
            logger.error(f"Mail gateway answered with non-JSON (HTTP {response.status_code})")
            raise EmailGatewayError("Invalid response from gateway")

        if response.status_code != 200 or not result.get("success"):
            reason = result.get("message", "Unknown error")
            logger.error(f"Mail gateway rejected message (HTTP {response.status_code}): {reason}")
            raise EmailGatewayError(f"Gateway error: {reason}")

    def send_email(
        self,
        to: str,
        subject: str,
        html_body: str,
        text_body: str,
        sender: str,
        attachments: list[Attachment] | None = None,
    ) -> None:
        """
        Send a multipart HTML and plain-text email.

        Raises:
            EmailGatewayError: On gateway failure
        """
        self._post_signed({
            "type": "custom",
            "email": to,
            "subject": subject,
            "html": html_body,
            "body": text_body,
            "sender": sender,
            "attachments": [a.encoded() for a in attachments or []],
        })
        logger.info(f"Email '{subject}' sent to {to}")
