"""
Mollie payments API client (read-only).

Only payment status lookup is needed: payment creation is handled by the
WooCommerce Mollie gateway, we just report the outcome on the thank-you page.
"""

import logging

import requests

logger = logging.getLogger(__name__)

MOLLIE_API_URL = "https://api.mollie.com/v2"


class MollieError(Exception):
    """Raised when Mollie cannot report a payment."""


class MollieClient:
    """Fetch payments from the Mollie v2 REST API."""

    def __init__(self, api_key: str, base_url: str = MOLLIE_API_URL, timeout: int = 10):
        if not api_key:
            raise ValueError("api_key is required")

        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._headers = {"Authorization": f"Bearer {api_key}"}

    def get_payment(self, payment_id: str) -> dict:
        """
        Fetch a payment.

        Args:
            payment_id: Mollie payment id (tr_...)

        Returns:
            Decoded payment resource

        Raises:
            MollieError: On connection failure, error status, or bad JSON
        """
        try:
            response = requests.get(
                f"{self.base_url}/payments/{payment_id}",
                headers=self._headers,
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            logger.error(f"Mollie connection failed for payment {payment_id}: {e}")
            raise MollieError(f"Connection failed: {e}")

        try:
            body = response.json()
        except ValueError:
            logger.error(f"Mollie returned invalid JSON for payment {payment_id}")
            raise MollieError("Invalid response from Mollie")

        if response.status_code != 200:
            detail = body.get("detail", "Unknown error") if isinstance(body, dict) else "Unknown error"
            logger.error(f"Mollie error for payment {payment_id} ({response.status_code}): {detail}")
            raise MollieError(f"Mollie error: {detail}")

        return body
