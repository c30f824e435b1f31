"""API test fixtures: the full app over real services with mocked upstreams."""

from unittest.mock import Mock

import pytest
from starlette.testclient import TestClient

from auth.api_key import ApiKeyGuard
from auth.webhook_signature import WebhookSignatureVerifier
from clients.email_client import EmailGatewayClient
from clients.mollie_client import MollieClient
from clients.render_client import RenderGatewayClient
from clients.ticket_api_client import TicketApiClient
from clients.woocommerce_client import WooCommerceClient
from core.checkout_token import CheckoutTokenGuard
from core.document_tokens import DocumentTokenService
from core.event_bus import EventBus
from core.job_queue import JobQueue
from core.services.cart_service import CartService
from core.services.catalog_service import CatalogService
from core.services.confirmation_service import ConfirmationService
from core.services.coupon_service import CouponService
from core.services.document_service import DocumentService
from core.services.order_service import OrderService
from core.services.payment_service import PaymentService
from main import create_app

OPERATOR_KEY = "operator-key"
WEBHOOK_SECRET = "wc-secret"
EVENT_PRODUCT_ID = 501
ADULT, CHILD = 601, 602


def store_order(**overrides) -> dict:
    order = {
        "id": 1001,
        "number": "1001",
        "status": "processing",
        "total": "30.00",
        "total_tax": "2.48",
        "currency": "EUR",
        "order_key": "wc_order_abc",
        "billing": {"first_name": "Anna", "last_name": "de Vries", "email": "anna@example.com"},
        "line_items": [{"name": "Adult", "quantity": 1, "total": "27.52"}],
        "meta_data": [],
    }
    order.update(overrides)
    return order


# =============================================================================
# UPSTREAM DOUBLES
# =============================================================================


@pytest.fixture
def woocommerce():
    mock = Mock(spec=WooCommerceClient)
    mock.get_events.return_value = [{
        "id": 9,
        "title": "Jazz Night",
        "date": "2026-12-05",
        "product": {"id": EVENT_PRODUCT_ID, "stock_quantity": 50, "stock_status": "instock"},
    }]
    mock.get_product_variations.return_value = [
        {"id": ADULT, "price": "30.00", "attributes": [{"name": "Ticket type", "option": "Adult"}]},
        {"id": CHILD, "price": "15.00", "attributes": [{"name": "Ticket type", "option": "Child"}]},
    ]
    mock.validate_coupon.return_value = {
        "valid": True, "code": "SAVE10", "discount_type": "percent", "amount": "10",
    }
    mock.create_order.return_value = {"id": 1001, "number": "1001", "order_key": "wc_order_abc"}
    mock.get_checkout_url.return_value = "https://pay.example.com/1001"
    mock.update_order_status.return_value = True
    mock.get_order.return_value = store_order()
    return mock


@pytest.fixture
def renderer():
    mock = Mock(spec=RenderGatewayClient)
    mock.render_qr.return_value = b"\x89PNG"
    mock.html_to_pdf.return_value = b"%PDF-1.7"
    return mock


@pytest.fixture
def email():
    return Mock(spec=EmailGatewayClient)


# =============================================================================
# SERVICES DICT
# =============================================================================


@pytest.fixture
def services(valkey, sessions, config, woocommerce, renderer, email):
    ticket_api = Mock(spec=TicketApiClient)
    ticket_api.get_ticket_information.return_value = {
        "event_name": "Jazz Night",
        "tickets": {"1": {"ticket_code": "ABC123", "ticket_name": "Adult Ticket"}},
    }

    catalog = CatalogService(woocommerce)
    carts = CartService(catalog, CouponService(woocommerce), config)
    event_bus = EventBus()
    orders = OrderService(
        woocommerce, carts, PaymentService(Mock(spec=MollieClient)), CheckoutTokenGuard(), event_bus, config
    )
    tokens = DocumentTokenService("test-secret")
    documents = DocumentService(woocommerce, ticket_api, renderer, config)
    queue = JobQueue(valkey)
    confirmations = ConfirmationService(valkey, queue, tokens, documents, email, config)

    return {
        "config": config,
        "valkey": valkey,
        "woocommerce": woocommerce,
        "sessions": sessions,
        "catalog": catalog,
        "cart": carts,
        "order": orders,
        "event_bus": event_bus,
        "queue": queue,
        "document_tokens": tokens,
        "documents": documents,
        "confirmations": confirmations,
        "webhook_verifier": WebhookSignatureVerifier(WEBHOOK_SECRET),
        "api_key_guard": ApiKeyGuard(OPERATOR_KEY),
    }


# =============================================================================
# APP & CLIENT FIXTURES
# =============================================================================


@pytest.fixture
def app(services):
    return create_app(services)


@pytest.fixture
def client(app):
    """Client over https so the secure session cookie round-trips."""
    return TestClient(app, base_url="https://testserver", raise_server_exceptions=False)
