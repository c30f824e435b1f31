"""Core domain models."""

from core.models.coupon import Coupon, DiscountType
from core.models.catalog import Event, TicketType
from core.models.cart import Cart, CartLine, CartTotals
from core.models.checkout import CheckoutForm
from core.models.order import OrderResult, PaymentInfo, ThankYouView
from core.models.job import ConfirmationJob

__all__ = [
    # Coupon
    "Coupon", "DiscountType",
    # Catalog
    "Event", "TicketType",
    # Cart
    "Cart", "CartLine", "CartTotals",
    # Checkout
    "CheckoutForm",
    # Order
    "OrderResult", "PaymentInfo", "ThankYouView",
    # Jobs
    "ConfirmationJob",
]
