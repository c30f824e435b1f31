"""JSON envelope shared by every storefront endpoint: success, data, error, meta."""

from typing import Any
from datetime import datetime
from uuid import uuid4

from pydantic import BaseModel, Field

from utils.timezone import now_utc


class APIError(BaseModel):
    code: str = Field(..., description="Machine-readable error code (see ErrorCodes)")
    message: str = Field(..., description="Message safe to show to a customer")
    fields: dict[str, list[str]] | None = Field(
        None, description="Checkout form field -> messages, for validation failures"
    )


class APIMeta(BaseModel):
    timestamp: datetime = Field(..., description="When the response was built (UTC)")
    request_id: str = Field(..., description="Correlates the response with server logs")


class APIResponse(BaseModel):
    """
    Envelope for JSON responses.

    Exactly one of data and error is populated, depending on success.
    The PDF download is the only route that answers outside it.
    """

    success: bool
    data: Any | None = None
    error: APIError | None = None
    meta: APIMeta


def _meta() -> APIMeta:
    return APIMeta(timestamp=now_utc(), request_id=str(uuid4()))


def success_response(data: Any) -> APIResponse:
    return APIResponse(success=True, data=data, meta=_meta())


def error_response(
    code: str,
    message: str,
    fields: dict[str, list[str]] | None = None,
) -> APIResponse:
    return APIResponse(
        success=False,
        error=APIError(code=code, message=message, fields=fields),
        meta=_meta(),
    )


class ErrorCodes:
    """Codes carried in APIError.code. Clients branch on these, not on messages."""

    # Operator key and webhook signature
    NOT_AUTHENTICATED = "NOT_AUTHENTICATED"
    INVALID_SIGNATURE = "INVALID_SIGNATURE"
    ACCESS_DENIED = "ACCESS_DENIED"

    NOT_FOUND = "NOT_FOUND"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_REQUEST = "INVALID_REQUEST"

    # Cart
    EMPTY_CART = "EMPTY_CART"
    EVENT_UNAVAILABLE = "EVENT_UNAVAILABLE"
    QUANTITY_EXCEEDED = "QUANTITY_EXCEEDED"

    # Checkout
    DUPLICATE_SUBMISSION = "DUPLICATE_SUBMISSION"
    ORDER_CREATION_FAILED = "ORDER_CREATION_FAILED"
    PAYMENT_LINK_UNAVAILABLE = "PAYMENT_LINK_UNAVAILABLE"
    PAYMENT_STATUS_UNAVAILABLE = "PAYMENT_STATUS_UNAVAILABLE"

    # Documents
    RENDERING_FAILED = "RENDERING_FAILED"

    INTERNAL_ERROR = "INTERNAL_ERROR"
