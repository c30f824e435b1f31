"""Request-scoped middleware for API requests."""

import re
import secrets
from uuid import uuid4

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Assigns a unique request ID to every request."""

    async def dispatch(self, request: Request, call_next):
        request_id = str(uuid4())
        request.state.request_id = request_id
        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response


class CheckoutSessionMiddleware(BaseHTTPMiddleware):
    """Gives every visitor a checkout session id cookie.

    The id is exposed as request.state.session_id. Session contents live
    in Valkey; the cookie only names them.
    """

    COOKIE_NAME = "checkout_session"
    _VALID_ID = re.compile(r"^[A-Za-z0-9_-]{32,64}$")

    def __init__(self, app, max_age_seconds: int, secure: bool = False):
        super().__init__(app)
        self._max_age = max_age_seconds
        self._secure = secure

    async def dispatch(self, request: Request, call_next):
        session_id = request.cookies.get(self.COOKIE_NAME)
        if not session_id or not self._VALID_ID.match(session_id):
            session_id = secrets.token_urlsafe(32)

        request.state.session_id = session_id
        response = await call_next(request)

        # Refresh on every response so the cookie outlives activity like the Valkey TTL does
        response.set_cookie(
            self.COOKIE_NAME,
            session_id,
            max_age=self._max_age,
            httponly=True,
            samesite="lax",
            secure=self._secure,
        )
        return response
