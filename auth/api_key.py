"""Shared-secret API key check for the operator API."""

import hmac

from auth.exceptions import InvalidApiKeyError


class ApiKeyGuard:
    """Compare a presented API key against the configured one in constant time."""

    HEADER = "X-API-KEY"

    def __init__(self, api_key: str):
        if not api_key:
            raise ValueError("api_key is required")
        self._api_key = api_key.encode("utf-8")

    def verify(self, presented: str | None) -> None:
        """
        Raises:
            InvalidApiKeyError: If presented is empty or wrong
        """
        if not presented:
            raise InvalidApiKeyError("API key required")
        if not hmac.compare_digest(self._api_key, presented.encode("utf-8")):
            raise InvalidApiKeyError("Invalid API key")
