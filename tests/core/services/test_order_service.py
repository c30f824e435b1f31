"""Tests for OrderService: checkout submission and the thank-you page."""

from decimal import Decimal
from unittest.mock import Mock

import pytest

from clients.woocommerce_client import WooCommerceError
from core.checkout_token import CheckoutTokenGuard
from core.event_bus import EventBus
from core.exceptions import (
    DuplicateOrExpiredSubmission,
    EmptyCart,
    OrderAccessDenied,
    OrderCreationFailed,
    PaymentLinkUnavailable,
    PaymentStatusUnavailable,
    ValidationFailed,
)
from core.models import PaymentInfo
from core.services.order_service import LAST_ORDER_KEY, OrderService, order_key
from core.services.payment_service import PaymentService

EVENT_PRODUCT_ID = 501
ADULT, CHILD = 601, 602
PAYMENT_URL = "https://pay.example.com/checkout/1001"


@pytest.fixture
def payments():
    return Mock(spec=PaymentService)


@pytest.fixture
def event_bus():
    bus = EventBus()
    bus.published = []
    bus.subscribe("OrderCompleted", bus.published.append)
    return bus


@pytest.fixture
def orders(woocommerce, carts, payments, event_bus, config):
    woocommerce.create_order.return_value = {"id": 1001, "number": "1001", "order_key": "wc_order_abc"}
    woocommerce.get_checkout_url.return_value = PAYMENT_URL
    woocommerce.update_order_status.return_value = True
    return OrderService(woocommerce, carts, payments, CheckoutTokenGuard(), event_bus, config)


@pytest.fixture
def form():
    return {
        "first_name": "Anna",
        "last_name": "de Vries",
        "city": "Utrecht",
        "email": "anna@example.com",
        "email_confirm": "anna@example.com",
        "terms": True,
    }


def _checkout(orders, carts, session, selections):
    carts.select_tickets(session, EVENT_PRODUCT_ID, selections)
    _, token = orders.checkout_view(session)
    return token


def _payload(woocommerce) -> dict:
    return woocommerce.create_order.call_args.args[0]


# =============================================================================
# SUBMISSION
# =============================================================================


class TestSubmit:

    def test_paid_order(self, orders, carts, session, form, woocommerce, event_bus):
        token = _checkout(orders, carts, session, {ADULT: 1})

        result = orders.submit(session, form, token)

        assert result.order_id == 1001
        assert result.order_key == "wc_order_abc"
        assert result.payment_required
        assert result.redirect_url == PAYMENT_URL
        woocommerce.get_checkout_url.assert_called_once_with(1001, "https://tickets.example.com/thank-you")
        assert event_bus.published == []

    def test_payload_splits_tax(self, orders, carts, session, form, woocommerce):
        token = _checkout(orders, carts, session, {ADULT: 1})

        orders.submit(session, form, token)

        payload = _payload(woocommerce)
        line = payload["line_items"][0]
        assert line["product_id"] == ADULT
        assert line["total"] == "27.52"
        assert line["total_tax"] == "2.48"
        assert payload["tax_lines"][0]["tax_total"] == "2.48"
        assert payload["tax_lines"][0]["rate_code"] == "NL-VAT-9"
        assert payload["billing"]["email"] == "anna@example.com"
        assert payload["set_paid"] is False

    def test_zero_quantity_lines_not_sent(self, orders, carts, session, form, woocommerce):
        token = _checkout(orders, carts, session, {ADULT: 1})

        orders.submit(session, form, token)

        assert [item["product_id"] for item in _payload(woocommerce)["line_items"]] == [ADULT]

    def test_coupon_line(self, orders, carts, session, form, woocommerce):
        carts.select_tickets(session, EVENT_PRODUCT_ID, {ADULT: 1})
        carts.apply_coupon(session, "SAVE10")
        _, token = orders.checkout_view(session)

        result = orders.submit(session, form, token, claimed_discount=Decimal("3.00"))

        assert result.totals.total_inc_tax == Decimal("27.00")
        coupon_line = _payload(woocommerce)["coupon_lines"][0]
        assert coupon_line == {"code": "SAVE10", "discount": "2.75", "discount_tax": "0.25"}

    def test_wildly_wrong_claimed_discount_ignored(self, orders, carts, session, form):
        carts.select_tickets(session, EVENT_PRODUCT_ID, {ADULT: 1})
        carts.apply_coupon(session, "SAVE10")
        _, token = orders.checkout_view(session)

        result = orders.submit(session, form, token, claimed_discount=Decimal("30.00"))

        assert result.totals.discount == Decimal("3.00")

    def test_zero_total_completes_order(self, orders, carts, session, form, woocommerce, event_bus):
        carts.select_tickets(session, EVENT_PRODUCT_ID, {ADULT: 1})
        woocommerce.validate_coupon.return_value = {
            "valid": True, "code": "FREE", "discount_type": "percent", "amount": "100",
        }
        carts.apply_coupon(session, "FREE")
        _, token = orders.checkout_view(session)

        result = orders.submit(session, form, token)

        assert not result.payment_required
        assert result.redirect_url is None
        woocommerce.get_checkout_url.assert_not_called()
        woocommerce.update_order_status.assert_called_once_with(1001, "completed")
        completed = [e for e in event_bus.published if type(e).__name__ == "OrderCompleted"]
        assert completed[0].order_id == 1001
        assert completed[0].source == "checkout"

    def test_zero_total_completion_failure_still_announces(self, orders, carts, session, form, woocommerce, event_bus):
        carts.select_tickets(session, EVENT_PRODUCT_ID, {ADULT: 1})
        woocommerce.validate_coupon.return_value = {
            "valid": True, "code": "FREE", "discount_type": "percent", "amount": "100",
        }
        carts.apply_coupon(session, "FREE")
        _, token = orders.checkout_view(session)
        woocommerce.update_order_status.side_effect = WooCommerceError("down")

        orders.submit(session, form, token)

        assert any(type(e).__name__ == "OrderCompleted" for e in event_bus.published)

    def test_cart_cleared_and_last_order_kept(self, orders, carts, session, form):
        token = _checkout(orders, carts, session, {ADULT: 1})

        orders.submit(session, form, token)

        assert carts.get_cart(session).is_empty
        assert session.get_json(LAST_ORDER_KEY)["order_id"] == 1001

    def test_second_submit_is_duplicate(self, orders, carts, session, form, woocommerce):
        token = _checkout(orders, carts, session, {ADULT: 1})
        orders.submit(session, form, token)

        with pytest.raises(DuplicateOrExpiredSubmission):
            orders.submit(session, form, token)

        woocommerce.create_order.assert_called_once()

    def test_invalid_form(self, orders, carts, session, form, woocommerce):
        token = _checkout(orders, carts, session, {ADULT: 1})
        form["email_confirm"] = "someone@else.com"

        with pytest.raises(ValidationFailed) as exc_info:
            orders.submit(session, form, token)

        assert "email_confirm" in exc_info.value.field_errors
        woocommerce.create_order.assert_not_called()

    def test_empty_cart(self, orders, carts, session, form):
        token = _checkout(orders, carts, session, {ADULT: 1})
        carts.decrement(session, ADULT)

        with pytest.raises(EmptyCart):
            orders.submit(session, form, token)

    def test_order_creation_failure(self, orders, carts, session, form, woocommerce):
        token = _checkout(orders, carts, session, {ADULT: 1})
        woocommerce.create_order.side_effect = WooCommerceError("Invalid product", 400)

        with pytest.raises(OrderCreationFailed):
            orders.submit(session, form, token)

        assert not carts.get_cart(session).is_empty

    def test_payment_link_failure_keeps_cart(self, orders, carts, session, form, woocommerce):
        token = _checkout(orders, carts, session, {ADULT: 1})
        woocommerce.get_checkout_url.return_value = None

        with pytest.raises(PaymentLinkUnavailable) as exc_info:
            orders.submit(session, form, token)

        assert exc_info.value.order_id == 1001
        assert not carts.get_cart(session).is_empty


class TestCheckoutView:

    def test_empty_cart(self, orders, session):
        with pytest.raises(EmptyCart):
            orders.checkout_view(session)

    def test_rerender_invalidates_previous_token(self, orders, carts, session, form):
        first = _checkout(orders, carts, session, {ADULT: 1})
        orders.checkout_view(session)

        with pytest.raises(DuplicateOrExpiredSubmission):
            orders.submit(session, form, first)


# =============================================================================
# THANK-YOU PAGE
# =============================================================================


class TestThankYou:

    @pytest.fixture
    def placed(self, orders, carts, session, form, woocommerce):
        token = _checkout(orders, carts, session, {ADULT: 1})
        orders.submit(session, form, token)
        woocommerce.get_order.return_value = {
            "id": 1001, "number": "1001", "status": "processing", "total": "30.00",
            "order_key": "wc_order_abc", "transaction_id": "tr_abc",
        }

    def test_session_order(self, orders, session, payments, placed):
        payments.get_status.return_value = PaymentInfo(payment_id="tr_abc", status="paid")

        view = orders.thank_you(session)

        assert view.order_id == 1001
        assert view.customer["first_name"] == "Anna"
        assert view.payment.status == "paid"
        assert session.get_json(LAST_ORDER_KEY) is None

    def test_redirect_with_valid_key(self, orders, session, payments, placed):
        payments.get_status.return_value = PaymentInfo(payment_id="tr_abc", status="open")

        view = orders.thank_you(session, order_id=1001, key="wc_order_abc")

        assert view.status == "processing"

    def test_redirect_without_key(self, orders, session, placed):
        with pytest.raises(OrderAccessDenied) as exc_info:
            orders.thank_you(session, order_id=1001)

        assert exc_info.value.reason == "missing_key"

    def test_redirect_with_wrong_key(self, orders, session, placed):
        with pytest.raises(OrderAccessDenied) as exc_info:
            orders.thank_you(session, order_id=1001, key="wc_order_wrong")

        assert exc_info.value.reason == "invalid_key"

    def test_order_key_compared_in_constant_time(self, orders, session, payments, placed, monkeypatch):
        import core.services.order_service as order_service

        compare = Mock(return_value=False)
        monkeypatch.setattr(order_service.hmac, "compare_digest", compare)

        with pytest.raises(OrderAccessDenied):
            orders.thank_you(session, order_id=1001, key="wc_order_abc")

        compare.assert_called_once_with(b"wc_order_abc", b"wc_order_abc")

    def test_non_ascii_key_is_rejected_not_crashing(self, orders, session, placed):
        with pytest.raises(OrderAccessDenied) as exc_info:
            orders.thank_you(session, order_id=1001, key="wc_örder_abc")

        assert exc_info.value.reason == "invalid_key"

    def test_no_order_in_session(self, orders, sessions):
        with pytest.raises(OrderAccessDenied) as exc_info:
            orders.thank_you(sessions.session("x" * 40))

        assert exc_info.value.reason == "order_not_found"

    def test_unknown_order(self, orders, session, woocommerce, placed):
        woocommerce.get_order.return_value = None

        with pytest.raises(OrderAccessDenied) as exc_info:
            orders.thank_you(session, order_id=1001, key="wc_order_abc")

        assert exc_info.value.reason == "order_not_found"

    def test_payment_status_outage_degrades(self, orders, session, payments, placed):
        payments.get_status.side_effect = PaymentStatusUnavailable("down")

        view = orders.thank_you(session)

        assert view.payment is None

    def test_customer_hidden_for_other_order(self, orders, sessions, woocommerce, payments, placed):
        payments.get_status.return_value = PaymentInfo(payment_id="tr_abc", status="paid")
        other_session = sessions.session("o" * 40)

        view = orders.thank_you(other_session, order_id=1001, key="wc_order_abc")

        assert view.customer is None


class TestOrderKey:

    def test_from_meta(self):
        order = {"meta_data": [{"key": "_order_key", "value": "wc_order_meta"}]}
        assert order_key(order) == "wc_order_meta"

    def test_missing(self):
        assert order_key({}) is None
