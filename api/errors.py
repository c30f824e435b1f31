"""Global exception handlers for FastAPI."""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.responses import JSONResponse

from api.base import error_response, ErrorCodes
from auth.exceptions import InvalidApiKeyError, InvalidSignatureError
from core.exceptions import (
    CheckoutTokenAlreadyIssued,
    DocumentUnavailable,
    DuplicateOrExpiredSubmission,
    EmptyCart,
    EventUnavailable,
    InvalidOrExpiredToken,
    OrderAccessDenied,
    OrderCreationFailed,
    PaymentLinkUnavailable,
    PaymentStatusUnavailable,
    RenderingFailure,
    StockOrQuantityExceeded,
    ValidationFailed,
)

logger = logging.getLogger(__name__)

DOCUMENT_NOT_FOUND = "PDF not found or token invalid"

# exception -> (status, code, fixed message or None to use str(exc))
# Upstream failures get a fixed message; the detail is logged where raised.
DOMAIN_ERRORS = [
    (DuplicateOrExpiredSubmission, 409, ErrorCodes.DUPLICATE_SUBMISSION,
     "This checkout was already submitted or has expired. Please start again."),
    (CheckoutTokenAlreadyIssued, 409, ErrorCodes.DUPLICATE_SUBMISSION, None),
    (EmptyCart, 400, ErrorCodes.EMPTY_CART, "Select at least one ticket to continue."),
    (EventUnavailable, 404, ErrorCodes.EVENT_UNAVAILABLE, "This event is not available."),
    (StockOrQuantityExceeded, 409, ErrorCodes.QUANTITY_EXCEEDED, None),
    (OrderCreationFailed, 502, ErrorCodes.ORDER_CREATION_FAILED,
     "We could not place your order. Please try again."),
    (PaymentLinkUnavailable, 502, ErrorCodes.PAYMENT_LINK_UNAVAILABLE,
     "We could not start the payment. Please try again."),
    (PaymentStatusUnavailable, 503, ErrorCodes.PAYMENT_STATUS_UNAVAILABLE,
     "Payment status is temporarily unavailable."),
    (OrderAccessDenied, 403, ErrorCodes.ACCESS_DENIED, None),
    (InvalidOrExpiredToken, 404, ErrorCodes.NOT_FOUND, DOCUMENT_NOT_FOUND),
    (DocumentUnavailable, 404, ErrorCodes.NOT_FOUND, DOCUMENT_NOT_FOUND),
    (RenderingFailure, 500, ErrorCodes.RENDERING_FAILED, "The document could not be generated."),
    (InvalidApiKeyError, 401, ErrorCodes.NOT_AUTHENTICATED, "Authentication required"),
    (InvalidSignatureError, 401, ErrorCodes.INVALID_SIGNATURE, "Invalid signature"),
]


def _domain_handler(status_code: int, code: str, message: str | None):
    async def handler(request: Request, exc: Exception):
        return JSONResponse(
            status_code=status_code,
            content=error_response(code, message or str(exc)).model_dump(mode="json"),
        )
    return handler


def register_error_handlers(app: FastAPI) -> None:
    """Register global exception handlers on the app."""

    for exc_class, status_code, code, message in DOMAIN_ERRORS:
        app.add_exception_handler(exc_class, _domain_handler(status_code, code, message))

    @app.exception_handler(ValidationFailed)
    async def validation_failed_handler(request: Request, exc: ValidationFailed):
        return JSONResponse(
            status_code=422,
            content=error_response(
                ErrorCodes.VALIDATION_ERROR,
                "Please correct the highlighted fields.",
                fields=exc.field_errors,
            ).model_dump(mode="json"),
        )

    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError):
        message = str(exc)
        if "not found" in message.lower():
            return JSONResponse(
                status_code=404,
                content=error_response(ErrorCodes.NOT_FOUND, message).model_dump(mode="json"),
            )
        return JSONResponse(
            status_code=400,
            content=error_response(ErrorCodes.INVALID_REQUEST, message).model_dump(mode="json"),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=422,
            content=error_response(
                ErrorCodes.VALIDATION_ERROR,
                str(exc.errors()),
            ).model_dump(mode="json"),
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled exception")
        return JSONResponse(
            status_code=500,
            content=error_response(
                ErrorCodes.INTERNAL_ERROR,
                "An internal error occurred",
            ).model_dump(mode="json"),
        )
