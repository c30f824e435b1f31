"""Security middleware for FastAPI - API key check for operator routes."""

import logging

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse

from api.base import error_response, ErrorCodes
from auth.api_key import ApiKeyGuard
from auth.exceptions import InvalidApiKeyError

logger = logging.getLogger(__name__)


class ApiKeyMiddleware(BaseHTTPMiddleware):
    """Middleware that requires X-API-KEY on operator routes.

    Only paths under PROTECTED_PREFIXES are checked; the storefront,
    document downloads, webhooks and health stay public.
    """

    PROTECTED_PREFIXES = [
        "/api/orders/",
    ]

    def __init__(self, app, guard: ApiKeyGuard):
        super().__init__(app)
        self._guard = guard

    def _is_protected_path(self, path: str) -> bool:
        return any(path.startswith(prefix) for prefix in self.PROTECTED_PREFIXES)

    async def dispatch(self, request: Request, call_next):
        """Process request through middleware."""
        if not self._is_protected_path(request.url.path):
            return await call_next(request)

        try:
            self._guard.verify(request.headers.get(ApiKeyGuard.HEADER))
        except InvalidApiKeyError as e:
            client = request.client.host if request.client else "unknown"
            logger.warning(f"Rejected operator request to {request.url.path} from {client}: {e}")
            return JSONResponse(
                status_code=401,
                content=error_response(
                    ErrorCodes.NOT_AUTHENTICATED,
                    "Authentication required",
                ).model_dump(mode="json"),
            )

        request.state.operator = True
        return await call_next(request)
