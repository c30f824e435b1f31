"""
WooCommerce REST client: orders, coupons, and the event catalog.

Consumer key/secret are sent as query parameters (WooCommerce over HTTPS).
Transport failures and unparseable responses raise WooCommerceError;
"not found"-style lookups return None so callers can decide.
"""

import logging
from typing import Any

import requests

logger = logging.getLogger(__name__)


class WooCommerceError(Exception):
    """Raised when a WooCommerce request fails or returns an error."""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)


class WooCommerceClient:
    """WooCommerce v3 API client."""

    def __init__(
        self,
        base_url: str,
        consumer_key: str,
        consumer_secret: str,
        timeout: int = 10,
        order_timeout: int = 30,
    ):
        """
        Initialize with store credentials.

        Raises:
            ValueError: If any credential is empty
        """
        if not base_url:
            raise ValueError("base_url is required")
        if not consumer_key:
            raise ValueError("consumer_key is required")
        if not consumer_secret:
            raise ValueError("consumer_secret is required")

        self.base_url = base_url.rstrip("/")
        self._auth = {"consumer_key": consumer_key, "consumer_secret": consumer_secret}
        self.timeout = timeout
        self.order_timeout = order_timeout

    def _request(
        self,
        method: str,
        path: str,
        params: dict | None = None,
        json: Any = None,
        timeout: int | None = None,
    ) -> tuple[int, Any]:
        """
        Perform an authenticated request.

        Returns:
            (status_code, decoded JSON body)

        Raises:
            WooCommerceError: On connection failure or non-JSON response
        """
        url = f"{self.base_url}/wp-json/wc/v3{path}"
        query = {**self._auth, **(params or {})}

        try:
            response = requests.request(
                method,
                url,
                params=query,
                json=json,
                timeout=timeout or self.timeout,
            )
        except requests.exceptions.RequestException as e:
            logger.error(f"WooCommerce {method} {path} connection failed: {e}")
            raise WooCommerceError(f"Connection failed: {e}")

        try:
            body = response.json()
        except ValueError:
            logger.error(
                f"WooCommerce {method} {path} returned invalid JSON "
                f"(status {response.status_code})"
            )
            raise WooCommerceError("Invalid response from WooCommerce", response.status_code)

        return response.status_code, body

    # Orders

    def create_order(self, payload: dict) -> dict:
        """
        Create an order.

        Returns:
            Created order dict (has 'id')

        Raises:
            WooCommerceError: With WooCommerce's message on rejection
        """
        status, body = self._request(
            "POST", "/orders", json=payload, timeout=self.order_timeout
        )

        if status == 201 and isinstance(body, dict) and "id" in body:
            logger.info(f"WooCommerce order {body['id']} created (status {body.get('status')})")
            return body

        message = body.get("message", "Failed to create order") if isinstance(body, dict) else "Failed to create order"
        logger.error(f"WooCommerce order creation failed ({status}): {message}")
        raise WooCommerceError(message, status)

    def get_order(self, order_id: int) -> dict | None:
        """
        Fetch an order by id.

        Returns None if WooCommerce does not return the order.
        Raises WooCommerceError on transport failure.
        """
        status, body = self._request("GET", f"/orders/{order_id}")

        if status == 200 and isinstance(body, dict) and "id" in body:
            return body

        logger.warning(f"WooCommerce order {order_id} not retrieved (status {status})")
        return None

    def update_order_status(self, order_id: int, status: str) -> bool:
        """
        Set an order's status.

        Returns True if WooCommerce confirmed the update.
        Raises WooCommerceError on transport failure.
        """
        code, body = self._request("PUT", f"/orders/{order_id}", json={"status": status})

        if code == 200 and isinstance(body, dict) and "id" in body:
            logger.info(f"WooCommerce order {order_id} status set to {body.get('status')}")
            return True

        logger.error(f"WooCommerce status update for order {order_id} failed ({code})")
        return False

    def get_checkout_url(self, order_id: int, return_url: str) -> str | None:
        """
        Ask the store for the payment page URL of an order.

        Returns None if the store did not produce one.
        """
        status, body = self._request(
            "POST",
            "/get-checkout-url",
            params={"order_id": order_id, "return_url": return_url},
        )

        if (
            status == 200
            and isinstance(body, dict)
            and body.get("checkout_url")
            and body.get("order_id")
        ):
            return body["checkout_url"]

        logger.error(f"No checkout URL for order {order_id} (status {status})")
        return None

    # Coupons

    def validate_coupon(self, code: str) -> dict:
        """
        Raw coupon validation result.

        Returns the decoded body; {'valid': False, ...} on non-200 responses.
        """
        status, body = self._request("GET", "/validate_coupon", params={"code": code})

        if status != 200 or not isinstance(body, dict):
            message = body.get("message") if isinstance(body, dict) else None
            return {"valid": False, "message": message or "Invalid coupon code"}

        return body

    # Catalog

    def get_events(self) -> list[dict]:
        """Events with their ticket product, as published by the store."""
        status, body = self._request("GET", "/events", timeout=self.order_timeout)

        if status != 200 or not isinstance(body, list):
            raise WooCommerceError("Events listing unavailable", status)

        return body

    def get_product_variations(self, product_id: int) -> list[dict]:
        """Variations (ticket types) of an event product."""
        status, body = self._request(
            "GET", f"/products/{product_id}/variations", timeout=self.order_timeout
        )

        if status != 200 or not isinstance(body, list):
            raise WooCommerceError(f"Variations for product {product_id} unavailable", status)

        return body
