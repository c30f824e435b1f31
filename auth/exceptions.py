"""Typed exceptions for auth failures."""


class AuthError(Exception):
    """Base class for authentication/authorization errors."""


class InvalidApiKeyError(AuthError):
    """
    API key missing or wrong.

    Responses must not say which.
    """


class InvalidSignatureError(AuthError):
    """Webhook signature missing or does not match the body."""
