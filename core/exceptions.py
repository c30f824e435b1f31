"""Typed exceptions for the order pipeline.

Business-rule errors are recovered by the API layer and shown to the
customer. Integration errors carry the upstream message for logs only;
customers see a generic message.
"""


class StorefrontError(Exception):
    """Base class for order pipeline errors."""


class ValidationFailed(StorefrontError):
    """
    User-correctable input error.

    field_errors maps field name to a list of messages so the form can be
    re-rendered with inline errors.
    """

    def __init__(self, field_errors: dict[str, list[str]]):
        self.field_errors = field_errors
        fields = ", ".join(sorted(field_errors))
        super().__init__(f"Validation failed for: {fields}")


class DuplicateOrExpiredSubmission(StorefrontError):
    """Checkout token missing, already consumed, or mismatched."""


class CheckoutTokenAlreadyIssued(StorefrontError):
    """A checkout token exists for this session and overwrite was not requested."""


class EmptyCart(StorefrontError):
    """No tickets selected."""


class EventUnavailable(StorefrontError):
    """Event does not exist or is sold out."""


class StockOrQuantityExceeded(StorefrontError):
    """Selection would exceed the per-order maximum or the event's shared stock."""

    def __init__(self, limit: int, requested: int, reason: str):
        self.limit = limit
        self.requested = requested
        self.reason = reason
        super().__init__(f"{requested} tickets exceeds {reason} of {limit}")


class OrderCreationFailed(StorefrontError):
    """Upstream order creation failed. Message is the upstream detail."""


class PaymentLinkUnavailable(StorefrontError):
    """Order was created but no payment redirect URL could be obtained."""

    def __init__(self, order_id: int):
        self.order_id = order_id
        super().__init__(f"No payment link for order {order_id}")


class PaymentStatusUnavailable(StorefrontError):
    """Payment provider could not report a status."""


class OrderAccessDenied(StorefrontError):
    """
    Thank-you page access with a missing or wrong order key, or unknown order.

    reason is one of: missing_key, invalid_key, order_not_found.
    """

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(reason)


class InvalidOrExpiredToken(StorefrontError):
    """
    Document token is malformed, forged, or expired.

    Deliberately carries no detail about which: callers respond with
    not-found so a valid token cannot be told from a forged one.
    """


class DocumentUnavailable(StorefrontError):
    """Document could not be produced for a valid token (order gone, render failed)."""


class RenderingFailure(StorefrontError):
    """QR or PDF rendering failed."""
