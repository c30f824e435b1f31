"""Coupon domain models."""

from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, Field


class DiscountType(str, Enum):
    """How a coupon's amount is applied to the cart subtotal."""

    PERCENT = "percent"
    FIXED = "fixed"
    UNKNOWN = "unknown"

    @classmethod
    def from_upstream(cls, value: str | None) -> "DiscountType":
        """Normalize a WooCommerce discount_type string."""
        normalized = (value or "").strip().lower()
        if normalized in ("percent", "percentage"):
            return cls.PERCENT
        if normalized in ("fixed_cart", "fixed"):
            return cls.FIXED
        return cls.UNKNOWN


class Coupon(BaseModel):
    """
    A validated coupon.

    Immutable once attached to a checkout session. amount is a percentage
    for PERCENT coupons and a tax-inclusive currency amount for FIXED ones.
    """

    code: str
    discount_type: DiscountType = DiscountType.UNKNOWN
    amount: Decimal = Field(default=Decimal("0"), ge=0)
    valid: bool = False
    description: str | None = None
    message: str | None = None

    model_config = {"frozen": True}
