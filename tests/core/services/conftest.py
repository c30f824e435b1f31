"""Service test fixtures: store, catalog and cart wired against FakeValkey."""

from unittest.mock import Mock

import pytest

from clients.woocommerce_client import WooCommerceClient
from core.services.cart_service import CartService
from core.services.catalog_service import CatalogService
from core.services.coupon_service import CouponService

EVENT_PRODUCT_ID = 501


def store_event(stock_quantity=100, stock_status="instock") -> dict:
    return {
        "id": 9,
        "title": "Jazz &amp; Blues Night",
        "date": "2026-12-05",
        "time": "20:00",
        "location": "Tivoli, Utrecht",
        "product": {
            "id": EVENT_PRODUCT_ID,
            "name": "Jazz Night tickets",
            "stock_quantity": stock_quantity,
            "stock_status": stock_status,
        },
    }


def store_variations() -> list[dict]:
    return [
        {"id": 601, "price": "30.00", "stock_quantity": None,
         "attributes": [{"name": "Ticket type", "option": "Adult"}]},
        {"id": 602, "price": "15.00", "stock_quantity": None,
         "attributes": [{"name": "Ticket type", "option": "Child"}]},
    ]


@pytest.fixture
def woocommerce():
    mock = Mock(spec=WooCommerceClient)
    mock.get_events.return_value = [store_event()]
    mock.get_product_variations.return_value = store_variations()
    mock.validate_coupon.return_value = {
        "valid": True, "code": "SAVE10", "discount_type": "percent", "amount": "10",
    }
    return mock


@pytest.fixture
def catalog(woocommerce):
    return CatalogService(woocommerce)


@pytest.fixture
def coupons(woocommerce):
    return CouponService(woocommerce)


@pytest.fixture
def carts(catalog, coupons, config):
    return CartService(catalog, coupons, config)


@pytest.fixture
def make_event():
    return store_event
