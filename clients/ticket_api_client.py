"""
Ticket information API client.

The ticketing plugin issues one ticket code per admission after an order is
placed. Codes are fetched on demand whenever a document is rendered, so a
re-issued or cancelled ticket shows up in the next download.
"""

import logging

import requests

logger = logging.getLogger(__name__)


class TicketApiError(Exception):
    """Raised when ticket information cannot be retrieved."""


class TicketApiClient:
    """Fetch issued tickets for an order."""

    def __init__(self, url: str, api_key: str, timeout: int = 30):
        if not url:
            raise ValueError("url is required")
        if not api_key:
            raise ValueError("api_key is required")

        self.url = url
        self.api_key = api_key
        self.timeout = timeout

    def get_ticket_information(self, order_id: int) -> dict:
        """
        Fetch ticket information for an order.

        Returns:
            Decoded response, expected shape:
            {"event_name": str, "event_date": str?, "tickets": {id: {"ticket_code", "ticket_name"}}}

        Raises:
            TicketApiError: On connection failure, non-200, or bad JSON
        """
        try:
            response = requests.post(
                self.url,
                json={"api_key": self.api_key, "order_id": str(order_id)},
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            logger.error(f"Ticket API connection failed for order {order_id}: {e}")
            raise TicketApiError(f"Connection failed: {e}")

        if response.status_code != 200:
            logger.error(f"Ticket API returned {response.status_code} for order {order_id}")
            raise TicketApiError(f"Ticket API status {response.status_code}")

        try:
            data = response.json()
        except ValueError:
            logger.error(f"Ticket API returned invalid JSON for order {order_id}: {response.text[:500]}")
            raise TicketApiError("Invalid response from ticket API")

        if not isinstance(data, dict):
            raise TicketApiError("Ticket API response is not an object")

        logger.info(
            f"Ticket information for order {order_id}: "
            f"{len(data.get('tickets') or {})} tickets"
        )
        return data
