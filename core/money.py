"""
Money and tax arithmetic for tax-inclusive prices.

Ticket prices already contain VAT, so tax is extracted from a total, never
added on top:

    tax = total - total / (1 + rate / 100)
    net = total - tax

Everything here works on Decimal at full precision. Rounding to cents
happens only at display and wire boundaries via to_cents / to_cents_str,
so subtotal, tax and total always reconcile.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable

from core.models import CartLine, CartTotals, Coupon, DiscountType

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
CENT = Decimal("0.01")
HUNDRED = Decimal("100")


@dataclass(frozen=True)
class TaxBreakdown:
    """A tax-inclusive amount split into net and tax."""

    net: Decimal
    tax: Decimal
    gross: Decimal


def to_decimal(value) -> Decimal:
    """Convert str/int/Decimal to Decimal. Floats go through str to avoid binary noise."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def to_cents(value: Decimal) -> Decimal:
    """Round to 2 places, half up."""
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def to_cents_str(value: Decimal) -> str:
    """Wire format for WooCommerce and templates, e.g. '27.52'."""
    return str(to_cents(value))


def split_inclusive(total: Decimal, rate: Decimal) -> TaxBreakdown:
    """
    Split a tax-inclusive total into net and tax.

    Args:
        total: Tax-inclusive amount
        rate: Tax percentage (9 for 9%)

    Returns:
        TaxBreakdown where net + tax == gross exactly
    """
    total = to_decimal(total)
    rate = to_decimal(rate)
    if total == ZERO:
        return TaxBreakdown(net=ZERO, tax=ZERO, gross=ZERO)

    tax = total - total / (1 + rate / HUNDRED)
    return TaxBreakdown(net=total - tax, tax=tax, gross=total)


def calculate_discount(subtotal: Decimal, coupon: Coupon | None) -> Decimal:
    """
    Discount for a tax-inclusive subtotal. Never exceeds the subtotal.

    Percent coupons take amount% of the subtotal; fixed coupons take
    min(amount, subtotal). Unknown coupon types give no discount.
    """
    subtotal = to_decimal(subtotal)
    if coupon is None or not coupon.valid or subtotal <= ZERO:
        return ZERO

    if coupon.discount_type == DiscountType.PERCENT:
        discount = subtotal * coupon.amount / HUNDRED
    elif coupon.discount_type == DiscountType.FIXED:
        discount = coupon.amount
    else:
        logger.warning(
            f"Coupon {coupon.code} has unsupported discount type "
            f"{coupon.discount_type.value}, no discount applied"
        )
        return ZERO

    return min(discount, subtotal)


def compute_totals(
    lines: Iterable[CartLine],
    coupon: Coupon | None,
    rate: Decimal,
) -> CartTotals:
    """
    Totals for a cart. Deterministic and side-effect free.

    The discount reduces the gross amount; tax is then extracted from the
    post-discount gross.
    """
    gross_subtotal = sum((line.line_total for line in lines), ZERO)
    return totals_with_discount(gross_subtotal, calculate_discount(gross_subtotal, coupon), rate)


def totals_with_discount(gross_subtotal: Decimal, discount: Decimal, rate: Decimal) -> CartTotals:
    """Totals for a gross subtotal and an already decided discount."""
    discount = min(to_decimal(discount), gross_subtotal)
    split = split_inclusive(gross_subtotal - discount, rate)

    return CartTotals(
        gross_subtotal=gross_subtotal,
        discount=discount,
        total_inc_tax=split.gross,
        tax=split.tax,
        subtotal_ex_tax=split.net,
    )


def reconcile_discount(claimed: Decimal | None, computed: Decimal, subtotal: Decimal) -> Decimal:
    """
    Decide which discount to charge when the client also submitted one.

    A claim within one cent of the server figure is accepted, rounded to
    cents and capped at the subtotal. Anything else gets the server figure.
    """
    if claimed is None:
        return computed

    claimed = to_decimal(claimed)
    if abs(claimed - computed) <= CENT:
        accepted = min(max(to_cents(claimed), ZERO), to_decimal(subtotal))
        if accepted != computed:
            logger.info(f"Accepting client discount {accepted} (server computed {computed})")
        return accepted

    logger.warning(
        f"Client discount {claimed} differs from server discount {computed}, using server value"
    )
    return computed
