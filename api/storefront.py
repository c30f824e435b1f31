"""Storefront routes: events, cart, coupons, checkout, thank-you.

Thin transport over the core services. The checkout session id comes from
CheckoutSessionMiddleware and is passed into every service call.
"""

from decimal import Decimal, InvalidOperation

from fastapi import APIRouter, Query, Request
from pydantic import BaseModel

from api.base import success_response
from core import money
from core.exceptions import EventUnavailable
from core.models import Cart, CartTotals


class TicketSelection(BaseModel):
    tickets: dict[int, int]


class QuantityChange(BaseModel):
    ticket_type_id: int
    quantity: int | None = None
    delta: int | None = None


class CouponRequest(BaseModel):
    code: str = ""


def totals_view(totals: CartTotals) -> dict:
    """Totals rounded for display."""
    return {
        "subtotal": money.to_cents_str(totals.gross_subtotal),
        "discount": money.to_cents_str(totals.discount),
        "subtotal_ex_tax": money.to_cents_str(totals.subtotal_ex_tax),
        "tax": money.to_cents_str(totals.tax),
        "total": money.to_cents_str(totals.total_inc_tax),
    }


def cart_view(cart: Cart) -> dict:
    return {
        "lines": [
            {
                "ticket_type_id": line.ticket_type_id,
                "name": line.name,
                "unit_price": money.to_cents_str(line.unit_price),
                "quantity": line.quantity,
                "line_total": money.to_cents_str(line.line_total),
                "event_id": line.event_id,
                "event_name": line.event_name,
                "event_date": line.event_date,
            }
            for line in cart.lines
        ],
        "ticket_count": cart.ticket_count,
        "shared_stock": cart.shared_stock,
        "coupon": cart.coupon.model_dump(mode="json") if cart.coupon else None,
        "totals": totals_view(cart.totals),
    }


def create_storefront_router(services: dict) -> APIRouter:
    router = APIRouter()

    sessions = services["sessions"]
    catalog = services["catalog"]
    carts = services["cart"]
    orders = services["order"]
    config = services["config"]

    def session_for(request: Request):
        return sessions.session(request.state.session_id)

    # -------------------------------------------------------------------------
    # Events
    # -------------------------------------------------------------------------

    @router.get("/events")
    def list_events():
        events = catalog.list_events()
        return success_response(
            [e.model_dump(mode="json", exclude={"ticket_types"}) for e in events]
        ).model_dump(mode="json")

    @router.get("/events/{event_id}/tickets")
    def event_tickets(request: Request, event_id: int):
        event = catalog.get_event(event_id)
        if not event.is_available:
            raise EventUnavailable(f"Event {event_id} is sold out")

        cart = carts.get_cart(session_for(request))
        existing = {
            line.ticket_type_id: line.quantity
            for line in cart.lines
            if line.event_id == event_id
        }
        return success_response({
            "event": event.model_dump(mode="json"),
            "existing_quantities": existing,
            "max_tickets_per_order": config.max_tickets_per_order,
            "shared_stock": event.stock_quantity,
            "tax_rate": str(config.tax_rate),
            "applied_coupon": cart.coupon.model_dump(mode="json") if cart.coupon else None,
        }).model_dump(mode="json")

    @router.post("/events/{event_id}/order")
    def select_tickets(request: Request, event_id: int, body: TicketSelection):
        cart = carts.select_tickets(session_for(request), event_id, body.tickets)
        return success_response(cart_view(cart)).model_dump(mode="json")

    # -------------------------------------------------------------------------
    # Cart
    # -------------------------------------------------------------------------

    @router.post("/cart/quantity")
    def change_quantity(request: Request, body: QuantityChange):
        session = session_for(request)
        clamped = False

        if body.delta is not None and body.quantity is None:
            if body.delta == 1:
                cart = carts.increment(session, body.ticket_type_id)
            elif body.delta == -1:
                cart = carts.decrement(session, body.ticket_type_id)
            else:
                raise ValueError("'delta' must be 1 or -1")
        elif body.quantity is not None and body.delta is None:
            cart, clamped = carts.set_quantity(session, body.ticket_type_id, body.quantity)
        else:
            raise ValueError("Provide exactly one of 'quantity' or 'delta'")

        return success_response({**cart_view(cart), "clamped": clamped}).model_dump(mode="json")

    @router.post("/api/validate-coupon")
    def validate_coupon(request: Request, body: CouponRequest):
        session = session_for(request)
        coupon = carts.apply_coupon(session, body.code)
        if not coupon.valid:
            return success_response({"valid": False, "message": coupon.message}).model_dump(mode="json")

        cart = carts.get_cart(session)
        return success_response({
            "valid": True,
            "coupon": coupon.model_dump(mode="json"),
            "cart": cart_view(cart),
        }).model_dump(mode="json")

    @router.post("/api/remove-coupon")
    def remove_coupon(request: Request):
        cart = carts.remove_coupon(session_for(request))
        return success_response(cart_view(cart)).model_dump(mode="json")

    # -------------------------------------------------------------------------
    # Checkout
    # -------------------------------------------------------------------------

    @router.get("/checkout")
    def checkout(request: Request):
        cart, token = orders.checkout_view(session_for(request))
        return success_response({
            "cart": cart_view(cart),
            "checkout_token": token,
        }).model_dump(mode="json")

    @router.post("/checkout")
    def submit_checkout(request: Request, body: dict):
        form_data = dict(body)
        token = form_data.pop("checkout_token", None)
        claimed = form_data.pop("discount_amount", None)

        try:
            claimed_discount = Decimal(str(claimed)) if claimed not in (None, "") else None
        except InvalidOperation:
            claimed_discount = None

        result = orders.submit(session_for(request), form_data, token, claimed_discount)
        return success_response({
            "order_id": result.order_id,
            "payment_required": result.payment_required,
            "redirect_url": result.redirect_url,
            "totals": totals_view(result.totals),
        }).model_dump(mode="json")

    @router.get("/thank-you")
    def thank_you(
        request: Request,
        order_id: int | None = Query(None),
        key: str | None = Query(None),
    ):
        view = orders.thank_you(session_for(request), order_id, key)
        data = view.model_dump(mode="json")
        data["payment_message"] = view.payment.message if view.payment else None
        return success_response(data).model_dump(mode="json")

    return router
