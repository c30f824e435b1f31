"""Payment status lookup for completed checkouts."""

import logging
from decimal import Decimal, InvalidOperation

from clients.mollie_client import MollieClient, MollieError
from core.exceptions import PaymentStatusUnavailable
from core.models import PaymentInfo
from utils.timezone import parse_iso

logger = logging.getLogger(__name__)

PAYMENT_REFERENCE_META_KEYS = ("_mollie_payment_id", "mollie_payment_id", "_payment_id")


def payment_reference(order: dict) -> str | None:
    """Payment id recorded on a WooCommerce order, if any."""
    for meta in order.get("meta_data") or []:
        if meta.get("key") in PAYMENT_REFERENCE_META_KEYS and meta.get("value"):
            return str(meta["value"])
    return order.get("transaction_id") or None


class PaymentService:
    """Service for payment provider lookups."""

    def __init__(self, mollie: MollieClient):
        self.mollie = mollie

    def get_status(self, payment_id: str) -> PaymentInfo:
        """
        Current status of a payment.

        Raises:
            PaymentStatusUnavailable: If the provider cannot report it
        """
        try:
            payment = self.mollie.get_payment(payment_id)
        except MollieError as e:
            logger.warning(f"Payment status for {payment_id} unavailable: {e}")
            raise PaymentStatusUnavailable(str(e))

        amount = payment.get("amount") or {}
        try:
            value = Decimal(str(amount["value"])) if amount.get("value") else None
        except InvalidOperation:
            value = None

        paid_at = None
        if payment.get("paidAt"):
            try:
                paid_at = parse_iso(payment["paidAt"])
            except ValueError:
                logger.warning(f"Unreadable paidAt {payment['paidAt']!r} on payment {payment_id}")

        return PaymentInfo(
            payment_id=payment_id,
            status=payment.get("status") or "unknown",
            amount=value,
            currency=amount.get("currency"),
            method=payment.get("method"),
            paid_at=paid_at,
        )
