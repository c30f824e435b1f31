"""
Order service: checkout view, submission, and the thank-you page.

Submission order matters:

1. Consume the checkout token. Nothing else runs for a duplicate submit.
2. Validate the form.
3. Recompute totals from the session cart. A client-submitted discount is
   only a cross-check (see money.reconcile_discount).
4. Split every line and the discount into net + tax for the store.
5. Create the order. Failures are not retried here; the customer gets a
   fresh checkout page with a new token.
6. Payment required: hand back the payment page URL. Zero total: mark the
   order completed and announce it so the confirmation goes out.
7. Clear the cart, keep what the thank-you page needs.
"""

import hmac
import logging
from decimal import Decimal

from pydantic import ValidationError

from clients.woocommerce_client import WooCommerceClient, WooCommerceError
from core import money
from core.checkout_token import CheckoutTokenGuard
from core.config import StorefrontConfig
from core.event_bus import EventBus
from core.events import OrderCompleted
from core.exceptions import (
    EmptyCart,
    OrderAccessDenied,
    OrderCreationFailed,
    PaymentLinkUnavailable,
    PaymentStatusUnavailable,
    ValidationFailed,
)
from core.models import Cart, CartLine, CartTotals, CheckoutForm, Coupon, OrderResult, ThankYouView
from core.services.cart_service import CartService
from core.services.payment_service import PaymentService, payment_reference
from core.session_store import CheckoutSession

logger = logging.getLogger(__name__)

LAST_ORDER_KEY = "last_order"
ORDER_KEY_META_KEYS = ("_order_key", "order_key", "_woocommerce_order_key")


def form_errors(error: ValidationError) -> dict[str, list[str]]:
    """Pydantic errors as field -> messages."""
    field_errors: dict[str, list[str]] = {}
    for item in error.errors():
        field = str(item["loc"][0]) if item["loc"] else "form"
        message = item["msg"].removeprefix("Value error, ")
        field_errors.setdefault(field, []).append(message)
    return field_errors


def order_key(order: dict) -> str | None:
    """The order's secret key, from the order itself or its meta data."""
    if order.get("order_key"):
        return order["order_key"]
    for meta in order.get("meta_data") or []:
        if meta.get("key") in ORDER_KEY_META_KEYS and meta.get("value"):
            return meta["value"]
    return None


def build_order_payload(
    form: CheckoutForm,
    lines: list[CartLine],
    coupon: Coupon | None,
    totals: CartTotals,
    config: StorefrontConfig,
) -> dict:
    """
    WooCommerce v3 order body.

    The store expects net prices with tax reported separately, so each
    tax-inclusive line and the discount are split before sending.
    """
    cents = money.to_cents_str
    line_items = []
    for line in lines:
        split = money.split_inclusive(line.line_total, config.tax_rate)
        line_items.append({
            "product_id": line.ticket_type_id,
            "quantity": line.quantity,
            "name": line.name,
            "price": cents(split.net / line.quantity),
            "total": cents(split.net),
            "total_tax": cents(split.tax),
            "taxes": [{"id": 1, "total": cents(split.tax), "subtotal": cents(split.tax)}],
        })

    coupon_lines = []
    if coupon is not None and totals.discount > 0:
        discount = money.split_inclusive(totals.discount, config.tax_rate)
        coupon_lines.append({
            "code": coupon.code,
            "discount": cents(discount.net),
            "discount_tax": cents(discount.tax),
        })

    billing = {
        "first_name": form.first_name,
        "last_name": form.last_name,
        "company": form.company or "",
        "city": form.city,
        "phone": form.phone or "",
        "email": str(form.email),
    }

    return {
        "payment_method": config.payment_method,
        "payment_method_title": config.payment_method_title,
        "set_paid": False,
        "status": "pending",
        "currency": config.currency,
        "billing": billing,
        "shipping": {k: billing[k] for k in ("first_name", "last_name", "company", "city")},
        "line_items": line_items,
        "coupon_lines": coupon_lines,
        "shipping_lines": [],
        "fee_lines": [],
        "tax_lines": [{
            "rate_code": f"NL-VAT-{config.tax_rate.normalize():f}",
            "rate_id": "1",
            "label": "BTW",
            "compound": False,
            "tax_total": cents(totals.tax),
            "shipping_tax_total": "0.00",
        }],
        "meta_data": [
            {"key": "_event_name", "value": lines[0].event_name},
            {"key": "_event_date", "value": lines[0].event_date or ""},
        ],
    }


class OrderService:
    """Service for checkout submission and post-checkout lookups."""

    def __init__(
        self,
        woocommerce: WooCommerceClient,
        carts: CartService,
        payments: PaymentService,
        tokens: CheckoutTokenGuard,
        event_bus: EventBus,
        config: StorefrontConfig,
    ):
        self.woocommerce = woocommerce
        self.carts = carts
        self.payments = payments
        self.tokens = tokens
        self.event_bus = event_bus
        self.config = config

    def checkout_view(self, session: CheckoutSession) -> tuple[Cart, str]:
        """
        Cart for the checkout page plus a fresh checkout token.

        Every render reissues the token, invalidating any earlier one.

        Raises:
            EmptyCart: Nothing to check out
        """
        cart = self.carts.get_cart(session)
        if cart.is_empty:
            raise EmptyCart("No tickets selected")
        return cart, self.tokens.issue(session, overwrite=True)

    def submit(
        self,
        session: CheckoutSession,
        form_data: dict,
        submitted_token: str | None,
        claimed_discount: Decimal | None = None,
    ) -> OrderResult:
        """
        Place an order for the session's cart.

        Raises:
            DuplicateOrExpiredSubmission: Token missing, reused, or wrong
            ValidationFailed: Form errors, by field
            EmptyCart: Nothing selected
            OrderCreationFailed: Store rejected or was unreachable
            PaymentLinkUnavailable: Order exists but has no payment page
        """
        self.tokens.consume(session, submitted_token)

        try:
            form = CheckoutForm.model_validate(form_data)
        except ValidationError as e:
            raise ValidationFailed(form_errors(e))

        cart = self.carts.get_cart(session)
        lines = [line for line in cart.lines if line.quantity > 0]
        if not lines:
            raise EmptyCart("No tickets selected")

        totals = cart.totals
        if cart.coupon is not None and claimed_discount is not None:
            discount = money.reconcile_discount(claimed_discount, totals.discount, totals.gross_subtotal)
            if discount != totals.discount:
                totals = money.totals_with_discount(totals.gross_subtotal, discount, self.config.tax_rate)

        payload = build_order_payload(form, lines, cart.coupon, totals, self.config)

        try:
            order = self.woocommerce.create_order(payload)
        except WooCommerceError as e:
            logger.error(f"Order creation failed for {money.to_cents_str(totals.total_inc_tax)} order: {e}")
            raise OrderCreationFailed(str(e))

        order_id = order["id"]
        payment_required = totals.total_inc_tax > 0

        session.set_json(LAST_ORDER_KEY, {
            "order_id": order_id,
            "customer": form.model_dump(mode="json", exclude={"email_confirm", "terms"}),
            "total": money.to_cents_str(totals.total_inc_tax),
        })

        redirect_url = None
        if payment_required:
            redirect_url = self._payment_url(order_id)
        else:
            self._complete_free_order(order_id)

        self.carts.clear(session)
        logger.info(
            f"Order {order_id} placed, total {money.to_cents_str(totals.total_inc_tax)}, "
            f"{'awaiting payment' if payment_required else 'completed without payment'}"
        )

        return OrderResult(
            order_id=order_id,
            order_key=order_key(order),
            totals=totals,
            payment_required=payment_required,
            redirect_url=redirect_url,
        )

    def _payment_url(self, order_id: int) -> str:
        return_url = f"{self.config.app_base_url.rstrip('/')}/thank-you"
        try:
            url = self.woocommerce.get_checkout_url(order_id, return_url)
        except WooCommerceError as e:
            logger.error(f"Payment link request for order {order_id} failed: {e}")
            url = None

        if not url:
            raise PaymentLinkUnavailable(order_id)
        return url

    def _complete_free_order(self, order_id: int) -> None:
        try:
            updated = self.woocommerce.update_order_status(order_id, "completed")
        except WooCommerceError as e:
            logger.warning(f"Could not mark zero-total order {order_id} completed: {e}")
            updated = False

        if not updated:
            logger.warning(f"Zero-total order {order_id} not marked completed upstream")

        self.event_bus.publish(OrderCompleted.create(order_id, source="checkout"))

    def thank_you(
        self,
        session: CheckoutSession,
        order_id: int | None = None,
        key: str | None = None,
    ) -> ThankYouView:
        """
        Data for the thank-you page.

        With order_id from the query string (payment provider redirect) the
        order key is required and must match. Without it, the session's last
        order is shown. The session's retained order data is cleared either way.

        Raises:
            OrderAccessDenied: missing_key, invalid_key, or order_not_found
        """
        last_order = session.get_json(LAST_ORDER_KEY) or {}

        if order_id is not None and not key:
            raise OrderAccessDenied("missing_key")

        resolved_id = order_id if order_id is not None else last_order.get("order_id")
        if resolved_id is None:
            raise OrderAccessDenied("order_not_found")

        try:
            order = self.woocommerce.get_order(resolved_id)
        except WooCommerceError as e:
            logger.error(f"Thank-you lookup for order {resolved_id} failed: {e}")
            order = None

        if order is None:
            logger.warning(f"Thank-you page for unknown order {resolved_id}")
            raise OrderAccessDenied("order_not_found")

        if order_id is not None:
            expected = order_key(order)
            if not expected or not hmac.compare_digest(key.encode("utf-8"), expected.encode("utf-8")):
                logger.warning(f"Thank-you page for order {resolved_id} with invalid key")
                raise OrderAccessDenied("invalid_key")

        payment = None
        reference = payment_reference(order)
        if reference:
            try:
                payment = self.payments.get_status(reference)
            except PaymentStatusUnavailable:
                payment = None

        session.remove(LAST_ORDER_KEY)
        self.carts.clear(session)

        customer = last_order.get("customer") if last_order.get("order_id") == resolved_id else None
        return ThankYouView(
            order_id=resolved_id,
            order_number=str(order.get("number") or resolved_id),
            status=order.get("status"),
            total=order.get("total"),
            customer=customer,
            payment=payment,
        )
