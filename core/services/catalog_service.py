"""
Catalog service for events and their ticket types.

The store publishes events with their ticket product embedded. An event's
stock is shared by all of its ticket types; ticket types are the product's
variations, cheapest first.
"""

import html
import logging
from decimal import Decimal, InvalidOperation

from clients.woocommerce_client import WooCommerceClient, WooCommerceError
from core.exceptions import EventUnavailable
from core.models import Event, TicketType

logger = logging.getLogger(__name__)

DEFAULT_TICKET_NAME = "Ticket"


def _ticket_type_name(attributes: list[dict]) -> str:
    """Name from the first attribute that looks like a ticket type."""
    for attribute in attributes or []:
        name = (attribute.get("name") or "").lower()
        option = attribute.get("option")
        if option and ("ticket" in name or "type" in name):
            return option
    return DEFAULT_TICKET_NAME


class CatalogService:
    """Read-only view of the store's event catalog."""

    def __init__(self, woocommerce: WooCommerceClient):
        self.woocommerce = woocommerce

    def _to_event(self, data: dict) -> Event | None:
        product = data.get("product") or {}
        if not product.get("id") or not product.get("stock_status"):
            logger.debug(f"Skipping event {data.get('id')} without product data")
            return None

        return Event(
            id=product["id"],
            event_id=data.get("id"),
            name=html.unescape(data.get("title") or product.get("name") or ""),
            date=data.get("date"),
            time=data.get("time"),
            location=data.get("location"),
            stock_quantity=product.get("stock_quantity"),
            stock_status=product["stock_status"],
        )

    def list_events(self) -> list[Event]:
        """Events that have a ticket product. Empty if the store is unreachable."""
        try:
            raw_events = self.woocommerce.get_events()
        except WooCommerceError as e:
            logger.error(f"Event listing failed: {e}")
            return []

        events = [event for event in map(self._to_event, raw_events) if event is not None]
        logger.info(f"Loaded {len(events)} of {len(raw_events)} events")
        return events

    def get_ticket_types(self, product_id: int) -> list[TicketType]:
        """Ticket types of an event product, cheapest first."""
        try:
            variations = self.woocommerce.get_product_variations(product_id)
        except WooCommerceError as e:
            logger.error(f"Ticket types for product {product_id} unavailable: {e}")
            return []

        ticket_types = []
        for variation in variations:
            try:
                price = Decimal(str(variation.get("price")))
            except InvalidOperation:
                logger.warning(f"Skipping variation {variation.get('id')} with no usable price")
                continue

            ticket_types.append(TicketType(
                id=variation["id"],
                name=_ticket_type_name(variation.get("attributes")),
                price=price,
                stock_quantity=variation.get("stock_quantity"),
            ))

        return sorted(ticket_types, key=lambda t: t.price)

    def get_event(self, product_id: int) -> Event:
        """
        One event with its ticket types.

        Raises:
            EventUnavailable: If the event is unknown
        """
        for event in self.list_events():
            if event.id == product_id:
                return event.model_copy(update={"ticket_types": self.get_ticket_types(product_id)})

        raise EventUnavailable(f"Event {product_id} not found")
