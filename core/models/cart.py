"""Cart domain models.

All money is Decimal with full precision; values are rounded to cents
only when shown or sent upstream (see core.money.to_cents_str).
"""

from decimal import Decimal

from pydantic import BaseModel, Field

from core.models.coupon import Coupon


class CartLine(BaseModel):
    """One ticket type in the cart. unit_price is tax-inclusive."""

    ticket_type_id: int
    name: str
    unit_price: Decimal = Field(..., ge=0)
    quantity: int = Field(..., ge=0)
    event_id: int
    event_name: str
    event_date: str | None = None

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity


class CartTotals(BaseModel):
    """
    Derived totals for a set of lines and an optional coupon.

    total_inc_tax - tax == subtotal_ex_tax always holds.
    """

    gross_subtotal: Decimal
    discount: Decimal
    total_inc_tax: Decimal
    tax: Decimal
    subtotal_ex_tax: Decimal


class Cart(BaseModel):
    """Snapshot of a checkout session's cart."""

    lines: list[CartLine] = Field(default_factory=list)
    coupon: Coupon | None = None
    totals: CartTotals
    shared_stock: int | None = None

    @property
    def ticket_count(self) -> int:
        return sum(line.quantity for line in self.lines)

    @property
    def is_empty(self) -> bool:
        return self.ticket_count == 0
