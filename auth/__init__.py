"""Authentication and authorization modules."""

from auth.exceptions import (
    AuthError,
    InvalidApiKeyError,
    InvalidSignatureError,
)
from auth.api_key import ApiKeyGuard
from auth.webhook_signature import WebhookSignatureVerifier
from auth.security_middleware import ApiKeyMiddleware
