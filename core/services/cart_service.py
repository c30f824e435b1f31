"""
Cart service: ticket selection, quantity changes, and coupons.

Cart state lives in the checkout session:

    cart    {"event_id", "shared_stock", "lines": [CartLine, ...]}
    coupon  Coupon

Lines cover every ticket type of the selected event, including those at
quantity 0, so quantities can be changed later without another catalog
lookup. Prices always come from the catalog, never from the client.

Two caps apply to the ticket count across all lines: max_tickets_per_order
and the event's shared stock. An increment past a cap is rejected; setting
a quantity past a cap is clamped down to what fits.
"""

import logging

from core import money
from core.config import StorefrontConfig
from core.exceptions import EmptyCart, EventUnavailable, StockOrQuantityExceeded, ValidationFailed
from core.models import Cart, CartLine, CartTotals, Coupon
from core.services.catalog_service import CatalogService
from core.services.coupon_service import CouponService
from core.session_store import CheckoutSession

logger = logging.getLogger(__name__)

CART_KEY = "cart"
COUPON_KEY = "coupon"


class CartService:
    """Service for the checkout cart."""

    def __init__(self, catalog: CatalogService, coupons: CouponService, config: StorefrontConfig):
        self.catalog = catalog
        self.coupons = coupons
        self.config = config

    # -------------------------------------------------------------------------
    # Session state
    # -------------------------------------------------------------------------

    def _load_lines(self, session: CheckoutSession) -> tuple[list[CartLine], int | None]:
        state = session.get_json(CART_KEY)
        if not state:
            return [], None
        lines = [CartLine.model_validate(line) for line in state.get("lines", [])]
        return lines, state.get("shared_stock")

    def _save_lines(self, session: CheckoutSession, lines: list[CartLine], shared_stock: int | None) -> None:
        session.set_json(CART_KEY, {
            "event_id": lines[0].event_id if lines else None,
            "shared_stock": shared_stock,
            "lines": [line.model_dump(mode="json") for line in lines],
        })

    def _load_coupon(self, session: CheckoutSession) -> Coupon | None:
        data = session.get_json(COUPON_KEY)
        return Coupon.model_validate(data) if data else None

    def _limit(self, shared_stock: int | None) -> tuple[int, str]:
        """The binding cap on the ticket count, and what it is."""
        limit, reason = self.config.max_tickets_per_order, "maximum per order"
        if shared_stock is not None and shared_stock < limit:
            limit, reason = max(shared_stock, 0), "available stock"
        return limit, reason

    def _require_lines(self, session: CheckoutSession) -> tuple[list[CartLine], int | None]:
        lines, shared_stock = self._load_lines(session)
        if not lines:
            raise EmptyCart("No tickets selected")
        return lines, shared_stock

    @staticmethod
    def _find(lines: list[CartLine], ticket_type_id: int) -> int:
        for index, line in enumerate(lines):
            if line.ticket_type_id == ticket_type_id:
                return index
        raise ValidationFailed({"ticket_type_id": [f"Unknown ticket type {ticket_type_id}"]})

    # -------------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------------

    def select_tickets(self, session: CheckoutSession, event_id: int, selections: dict[int, int]) -> Cart:
        """
        Replace the cart with a selection for one event.

        Args:
            session: Checkout session
            event_id: Event product id
            selections: ticket type id -> quantity

        Raises:
            EventUnavailable: Unknown or sold out event
            ValidationFailed: Unknown ticket type
            EmptyCart: Nothing selected
            StockOrQuantityExceeded: Selection over a cap
        """
        event = self.catalog.get_event(event_id)
        if not event.is_available:
            raise EventUnavailable(f"Event {event_id} is sold out")

        known = {ticket_type.id for ticket_type in event.ticket_types}
        unknown = sorted(set(selections) - known)
        if unknown:
            raise ValidationFailed({"tickets": [f"Unknown ticket type {tid}" for tid in unknown]})

        lines = [
            CartLine(
                ticket_type_id=ticket_type.id,
                name=ticket_type.name,
                unit_price=ticket_type.price,
                quantity=max(0, selections.get(ticket_type.id, 0)),
                event_id=event.id,
                event_name=event.name,
                event_date=event.date,
            )
            for ticket_type in event.ticket_types
        ]

        count = sum(line.quantity for line in lines)
        if count == 0:
            raise EmptyCart("Select at least one ticket")

        limit, reason = self._limit(event.stock_quantity)
        if count > limit:
            raise StockOrQuantityExceeded(limit, count, reason)

        self._save_lines(session, lines, event.stock_quantity)
        logger.info(f"Session selected {count} tickets for event {event.id}")
        return self.get_cart(session)

    def set_quantity(self, session: CheckoutSession, ticket_type_id: int, quantity: int) -> tuple[Cart, bool]:
        """
        Set one line's quantity, clamping to the caps.

        Returns:
            (cart, clamped) where clamped is True if the quantity was reduced to fit
        """
        lines, shared_stock = self._require_lines(session)
        index = self._find(lines, ticket_type_id)

        requested = max(0, quantity)
        others = sum(line.quantity for line in lines) - lines[index].quantity
        limit, reason = self._limit(shared_stock)
        allowed = min(requested, max(limit - others, 0))
        clamped = allowed != requested

        if clamped:
            logger.info(
                f"Quantity for ticket type {ticket_type_id} clamped from {requested} "
                f"to {allowed} ({reason} {limit})"
            )

        lines[index] = lines[index].model_copy(update={"quantity": allowed})
        self._save_lines(session, lines, shared_stock)
        return self.get_cart(session), clamped

    def increment(self, session: CheckoutSession, ticket_type_id: int) -> Cart:
        """
        Add one ticket.

        Raises:
            StockOrQuantityExceeded: If the new count would pass a cap; the cart is unchanged
        """
        lines, shared_stock = self._require_lines(session)
        index = self._find(lines, ticket_type_id)

        requested = sum(line.quantity for line in lines) + 1
        limit, reason = self._limit(shared_stock)
        if requested > limit:
            raise StockOrQuantityExceeded(limit, requested, reason)

        lines[index] = lines[index].model_copy(update={"quantity": lines[index].quantity + 1})
        self._save_lines(session, lines, shared_stock)
        return self.get_cart(session)

    def decrement(self, session: CheckoutSession, ticket_type_id: int) -> Cart:
        """Remove one ticket. Quantities stop at zero."""
        lines, shared_stock = self._require_lines(session)
        index = self._find(lines, ticket_type_id)

        lines[index] = lines[index].model_copy(update={"quantity": max(lines[index].quantity - 1, 0)})
        self._save_lines(session, lines, shared_stock)
        return self.get_cart(session)

    def apply_coupon(self, session: CheckoutSession, code: str) -> Coupon:
        """
        Validate a code and attach it to the session if valid.

        An invalid code leaves any previously applied coupon in place.
        """
        coupon = self.coupons.validate(code)
        if coupon.valid:
            session.set_json(COUPON_KEY, coupon.model_dump(mode="json"))
        return coupon

    def remove_coupon(self, session: CheckoutSession) -> Cart:
        session.remove(COUPON_KEY)
        return self.get_cart(session)

    def compute_totals(self, session: CheckoutSession) -> CartTotals:
        """Totals for the session's lines and coupon. Reads only."""
        lines, _ = self._load_lines(session)
        return money.compute_totals(lines, self._load_coupon(session), self.config.tax_rate)

    def get_cart(self, session: CheckoutSession) -> Cart:
        lines, shared_stock = self._load_lines(session)
        coupon = self._load_coupon(session)
        return Cart(
            lines=lines,
            coupon=coupon,
            totals=money.compute_totals(lines, coupon, self.config.tax_rate),
            shared_stock=shared_stock,
        )

    def clear(self, session: CheckoutSession) -> None:
        session.remove(CART_KEY, COUPON_KEY)
