"""
Single-use checkout tokens.

A token is issued when the checkout page is rendered and consumed by the
form submission. States: none -> issued -> consumed.

consume() removes the stored token with GETDEL before comparing it, so of
any number of racing submissions only the first to reach Valkey can see
the token. The comparison result does not matter for the deletion: a
mismatched submission also burns the token.
"""

import hmac
import logging
import secrets

from core.exceptions import CheckoutTokenAlreadyIssued, DuplicateOrExpiredSubmission
from core.session_store import CheckoutSession

logger = logging.getLogger(__name__)

TOKEN_KEY = "checkout_token"
TOKEN_BYTES = 32  # 256 bits


class CheckoutTokenGuard:
    """Issue and consume checkout tokens."""

    def issue(self, session: CheckoutSession, overwrite: bool = False) -> str:
        """
        Issue a fresh token for the session.

        Args:
            session: Checkout session
            overwrite: Replace an existing token (checkout page re-render)

        Returns:
            64-char hex token

        Raises:
            CheckoutTokenAlreadyIssued: If a token exists and overwrite is False
        """
        token = secrets.token_hex(TOKEN_BYTES)

        if overwrite:
            session.set(TOKEN_KEY, token)
        elif not session.set_if_absent(TOKEN_KEY, token):
            raise CheckoutTokenAlreadyIssued("Checkout token already issued for this session")

        return token

    def consume(self, session: CheckoutSession, submitted: str | None) -> None:
        """
        Consume the session's token.

        Raises:
            DuplicateOrExpiredSubmission: No token stored, empty submission, or mismatch
        """
        stored = session.pop(TOKEN_KEY)

        if stored is None:
            logger.warning("Checkout submitted without an issued token (duplicate or expired)")
            raise DuplicateOrExpiredSubmission("No checkout token for this session")

        if not submitted:
            logger.warning("Checkout submitted without a token")
            raise DuplicateOrExpiredSubmission("Checkout token missing")

        if not hmac.compare_digest(stored.encode("utf-8"), submitted.encode("utf-8")):
            logger.warning("Checkout token mismatch")
            raise DuplicateOrExpiredSubmission("Checkout token mismatch")
