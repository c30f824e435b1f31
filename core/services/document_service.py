"""
Document service: order confirmation PDFs with QR-coded tickets.

Documents are never cached. Every request fetches the order and its ticket
codes again, so a ticket re-issued upstream shows up in the next download.

A QR code that fails to render is replaced by an SVG placeholder showing
the raw ticket code as text; the rest of the document still renders.
"""

import base64
import html
import logging

from jinja2 import Environment

from clients.render_client import RenderGatewayClient, RenderGatewayError
from clients.ticket_api_client import TicketApiClient, TicketApiError
from clients.woocommerce_client import WooCommerceClient, WooCommerceError
from core.config import StorefrontConfig
from core.exceptions import DocumentUnavailable, RenderingFailure
from core.rendering import create_template_env
from utils.ticket_names import short_ticket_name

logger = logging.getLogger(__name__)

QR_SIZE = 200


def meta_value(order: dict, key: str) -> str | None:
    for meta in order.get("meta_data") or []:
        if meta.get("key") == key:
            return meta.get("value")
    return None


def customer_name(order: dict) -> str | None:
    """Billing name, falling back to shipping name."""
    for section in ("billing", "shipping"):
        details = order.get(section) or {}
        name = f"{details.get('first_name') or ''} {details.get('last_name') or ''}".strip()
        if name:
            return name
    return None


def valid_ticket_info(data: dict | None) -> bool:
    """Ticket API responses need event_name and tickets with code and name."""
    if not isinstance(data, dict) or not data.get("event_name"):
        return False
    tickets = data.get("tickets")
    if not isinstance(tickets, dict):
        return False
    return all(
        isinstance(ticket, dict) and ticket.get("ticket_code") and ticket.get("ticket_name")
        for ticket in tickets.values()
    )


def placeholder_qr(code: str) -> str:
    """SVG data URI showing the code as text, used when QR rendering fails."""
    svg = (
        f'<svg xmlns="http://www.w3.org/2000/svg" width="{QR_SIZE}" height="{QR_SIZE}">'
        f'<rect width="100%" height="100%" fill="#ffffff" stroke="#000000"/>'
        f'<text x="50%" y="50%" font-family="monospace" font-size="14" '
        f'text-anchor="middle" dominant-baseline="middle">{html.escape(code)}</text>'
        f"</svg>"
    )
    return "data:image/svg+xml;base64," + base64.b64encode(svg.encode("utf-8")).decode("ascii")


class DocumentService:
    """Render order confirmation PDFs."""

    def __init__(
        self,
        woocommerce: WooCommerceClient,
        ticket_api: TicketApiClient,
        renderer: RenderGatewayClient,
        config: StorefrontConfig,
        templates: Environment | None = None,
    ):
        self.woocommerce = woocommerce
        self.ticket_api = ticket_api
        self.renderer = renderer
        self.config = config
        self.templates = templates or create_template_env()

    @staticmethod
    def filename_for(order: dict) -> str:
        return f"order-confirmation-{order.get('number') or order['id']}.pdf"

    def get_order(self, order_id: int) -> dict:
        """
        Raises:
            DocumentUnavailable: If the order cannot be fetched
        """
        try:
            order = self.woocommerce.get_order(order_id)
        except WooCommerceError as e:
            raise DocumentUnavailable(f"Order {order_id} unavailable: {e}")

        if order is None:
            raise DocumentUnavailable(f"Order {order_id} not found")
        return order

    def ticket_info(self, order_id: int) -> dict | None:
        """Ticket codes for an order, or None if unavailable or malformed."""
        try:
            data = self.ticket_api.get_ticket_information(order_id)
        except TicketApiError as e:
            logger.warning(f"No ticket information for order {order_id}: {e}")
            return None

        if not valid_ticket_info(data):
            logger.warning(f"Malformed ticket information for order {order_id}")
            return None
        return data

    def _render_qr(self, code: str) -> str:
        try:
            png = self.renderer.render_qr(code, size=QR_SIZE)
        except RenderGatewayError as e:
            raise RenderingFailure(f"QR for {code}: {e}")
        return "data:image/png;base64," + base64.b64encode(png).decode("ascii")

    def qr_image(self, code: str) -> str:
        """QR data URI for a ticket code, or the text placeholder."""
        try:
            return self._render_qr(code)
        except RenderingFailure as e:
            logger.error(f"QR rendering failed, using placeholder: {e}")
            return placeholder_qr(code)

    def render_html(self, order: dict, ticket_info: dict | None) -> str:
        tickets = []
        if ticket_info:
            for ticket in ticket_info["tickets"].values():
                code = str(ticket["ticket_code"])
                tickets.append({
                    "code": code,
                    "name": ticket["ticket_name"],
                    "short_name": short_ticket_name(ticket["ticket_name"]),
                    "qr": self.qr_image(code),
                })

        event_name = (ticket_info or {}).get("event_name") or meta_value(order, "_event_name") or ""
        event_date = (ticket_info or {}).get("event_date") or meta_value(order, "_event_date")

        discount = order.get("discount_total")
        return self.templates.get_template("pdf/order.html").render(
            order_number=order.get("number") or order["id"],
            customer_name=customer_name(order) or "",
            billing=order.get("billing") or {},
            event_name=event_name,
            event_date=event_date,
            line_items=order.get("line_items") or [],
            discount_total=discount if discount and discount not in ("0", "0.00") else None,
            total_tax=order.get("total_tax") or "0.00",
            total=order.get("total") or "0.00",
            currency=order.get("currency") or self.config.currency,
            tickets=tickets,
        )

    def render(self, order: dict) -> bytes:
        """
        PDF for an order, with fresh ticket codes.

        Raises:
            RenderingFailure: If the PDF itself cannot be produced
        """
        html_document = self.render_html(order, self.ticket_info(order["id"]))

        try:
            pdf = self.renderer.html_to_pdf(html_document, paper="A4", orientation="portrait")
        except RenderGatewayError as e:
            logger.error(f"PDF rendering failed for order {order['id']}: {e}")
            raise RenderingFailure(str(e))

        logger.info(f"Rendered confirmation PDF for order {order['id']}")
        return pdf

    def render_for_order(self, order_id: int) -> tuple[bytes, str]:
        """
        Fetch an order and render its PDF.

        Returns:
            (pdf bytes, download filename)

        Raises:
            DocumentUnavailable: Order missing
            RenderingFailure: PDF could not be produced
        """
        order = self.get_order(order_id)
        return self.render(order), self.filename_for(order)
