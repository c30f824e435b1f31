"""
Coupon service.

Validates codes against the store and normalizes the result into a Coupon.
Store outages never raise: the customer gets an invalid coupon with a
"try again" message and the checkout carries on without a discount.
"""

import logging
from decimal import Decimal, InvalidOperation

from clients.woocommerce_client import WooCommerceClient, WooCommerceError
from core.exceptions import ValidationFailed
from core.models import Coupon, DiscountType

logger = logging.getLogger(__name__)

UNAVAILABLE_MESSAGE = "Unable to validate coupon at this time. Please try again."


class CouponService:
    """Service for coupon validation."""

    def __init__(self, woocommerce: WooCommerceClient):
        self.woocommerce = woocommerce

    def validate(self, code: str) -> Coupon:
        """
        Validate a coupon code.

        Returns:
            Coupon with valid=True, or valid=False and a customer-facing message

        Raises:
            ValidationFailed: If the code is empty
        """
        code = (code or "").strip()
        if not code:
            raise ValidationFailed({"coupon_code": ["Enter a coupon code"]})

        try:
            body = self.woocommerce.validate_coupon(code)
        except WooCommerceError as e:
            logger.error(f"Coupon validation for {code} failed upstream: {e}")
            return Coupon(code=code, valid=False, message=UNAVAILABLE_MESSAGE)

        if not body.get("valid"):
            logger.info(f"Coupon {code} rejected: {body.get('message')}")
            return Coupon(
                code=code,
                valid=False,
                message=body.get("message") or "Invalid coupon code",
            )

        try:
            amount = Decimal(str(body.get("amount") or "0"))
        except InvalidOperation:
            logger.error(f"Coupon {code} has unreadable amount {body.get('amount')!r}")
            return Coupon(code=code, valid=False, message=UNAVAILABLE_MESSAGE)

        # The store omits discount_type for plain percentage coupons
        discount_type = DiscountType.from_upstream(body.get("discount_type") or "percent")

        coupon = Coupon(
            code=body.get("code") or code,
            discount_type=discount_type,
            amount=abs(amount),
            valid=True,
            description=body.get("description") or None,
        )
        logger.info(f"Coupon {coupon.code} valid: {discount_type.value} {coupon.amount}")
        return coupon
