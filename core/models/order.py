"""Order outcome models."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel

from core.models.cart import CartTotals


class OrderResult(BaseModel):
    """
    Outcome of a successful checkout submission.

    redirect_url is the payment page when payment is required; None when
    the order was completed directly (zero total).
    """

    order_id: int
    order_key: str | None = None
    totals: CartTotals
    payment_required: bool
    redirect_url: str | None = None


class PaymentInfo(BaseModel):
    """Payment status as reported by the payment provider."""

    payment_id: str
    status: str
    amount: Decimal | None = None
    currency: str | None = None
    method: str | None = None
    paid_at: datetime | None = None

    @property
    def message(self) -> str:
        """Customer-facing summary of the status."""
        if self.status == "paid":
            return "Your payment was successful."
        if self.status in ("pending", "open"):
            return "Your payment is being processed."
        if self.status in ("canceled", "expired", "failed"):
            return "Your payment was not completed."
        return "Payment status unknown."


class ThankYouView(BaseModel):
    """Data for the thank-you page."""

    order_id: int
    order_number: str | None = None
    status: str | None = None
    total: str | None = None
    customer: dict | None = None
    payment: PaymentInfo | None = None
