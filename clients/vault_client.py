"""
Secrets for the storefront, read from HashiCorp Vault (KV v2).

Login is AppRole with VAULT_ROLE_ID / VAULT_SECRET_ID. Every lookup is
confined to the 'storefront/' mount path. A missing secret stops startup.
"""

import os
import logging
from typing import Dict

import hvac
from hvac.exceptions import InvalidPath, Unauthorized, Forbidden

logger = logging.getLogger(__name__)

_SECRET_PREFIX = "storefront"

# One authenticated client and one value cache per process
_vault_client_instance: "VaultClient | None" = None
_secret_cache: Dict[str, str] = {}


def _ensure_vault_client() -> "VaultClient":
    global _vault_client_instance
    if _vault_client_instance is None:
        _vault_client_instance = VaultClient()
    return _vault_client_instance


class VaultError(Exception):
    """Secrets could not be loaded. The service cannot start without them."""


class VaultClient:
    """AppRole-authenticated reader for storefront secrets."""

    def __init__(
        self,
        vault_addr: str | None = None,
        vault_namespace: str | None = None,
    ):
        """
        Raises:
            ValueError: VAULT_ADDR or the AppRole credentials are not set
            PermissionError: Login was refused
        """
        self.vault_addr = vault_addr or os.getenv("VAULT_ADDR")
        self.vault_namespace = vault_namespace or os.getenv("VAULT_NAMESPACE")
        role_id = os.getenv("VAULT_ROLE_ID")
        secret_id = os.getenv("VAULT_SECRET_ID")

        if not self.vault_addr:
            raise ValueError("VAULT_ADDR must be set")
        if not role_id or not secret_id:
            raise ValueError("VAULT_ROLE_ID and VAULT_SECRET_ID must both be set")

        options = {"url": self.vault_addr}
        if self.vault_namespace:
            options["namespace"] = self.vault_namespace
        self.client = hvac.Client(**options)

        self._login(role_id, secret_id)
        if not self.client.is_authenticated():
            raise PermissionError("Vault authentication failed")

        logger.info(f"Connected to Vault at {self.vault_addr}")

    def _login(self, role_id: str, secret_id: str) -> None:
        try:
            login = self.client.auth.approle.login(role_id=role_id, secret_id=secret_id)
        except Exception as e:
            logger.error(f"Vault AppRole login rejected: {e}")
            raise PermissionError(f"AppRole authentication failed: {e}")
        self.client.token = login["auth"]["client_token"]

    def get_secret(self, path: str, field: str) -> str:
        """
        One field of the secret at storefront/<path>.

        Raises:
            PermissionError: The path is missing or not readable
            KeyError: The secret has no such field
        """
        full_path = f"{_SECRET_PREFIX}/{path}"

        try:
            response = self.client.secrets.kv.v2.read_secret_version(
                path=full_path, raise_on_deleted_version=True
            )
        except InvalidPath:
            logger.error(f"No secret at {full_path}")
            raise PermissionError(f"Secret path '{full_path}' not found in Vault")
        except (Unauthorized, Forbidden) as e:
            logger.error(f"Vault refused read of {full_path}: {e}")
            raise PermissionError(f"Access denied to secret '{full_path}': {e}")

        values = response["data"]["data"]
        if field not in values:
            raise KeyError(
                f"Field '{field}' not found in '{full_path}' "
                f"(has: {', '.join(sorted(values))})"
            )
        return values[field]


def _get_fields(path: str, fields: list[str]) -> Dict[str, str]:
    """
    Read several fields of one secret, caching each per process.

    Raises:
        VaultError: A field is missing or unreadable
    """
    result = {}

    for field in fields:
        cache_key = f"{_SECRET_PREFIX}/{path}/{field}"
        if cache_key not in _secret_cache:
            try:
                _secret_cache[cache_key] = _ensure_vault_client().get_secret(path, field)
            except (PermissionError, KeyError) as e:
                raise VaultError(f"Cannot load {cache_key}: {e}") from e
        result[field] = _secret_cache[cache_key]

    return result


def get_valkey_url() -> str:
    """Get Valkey (Redis) connection URL from Vault."""
    return _get_fields("valkey", ["url"])["url"]


def get_woocommerce_config() -> Dict[str, str]:
    """
    Get WooCommerce REST credentials.

    Returns:
        Dict with keys: base_url, consumer_key, consumer_secret, webhook_secret
    """
    return _get_fields(
        "woocommerce", ["base_url", "consumer_key", "consumer_secret", "webhook_secret"]
    )


def get_mollie_config() -> Dict[str, str]:
    """Get Mollie API key. Returns dict with key: api_key"""
    return _get_fields("mollie", ["api_key"])


def get_email_config() -> Dict[str, str]:
    """
    Get email gateway configuration.

    Returns:
        Dict with keys: gateway_url, api_key, hmac_secret
    """
    return _get_fields("email", ["gateway_url", "api_key", "hmac_secret"])


def get_render_config() -> Dict[str, str]:
    """
    Get document render gateway configuration.

    Returns:
        Dict with keys: gateway_url, api_key
    """
    return _get_fields("render", ["gateway_url", "api_key"])


def get_ticket_api_config() -> Dict[str, str]:
    """Get ticket information API config. Returns dict with keys: url, api_key"""
    return _get_fields("ticket_api", ["url", "api_key"])


def get_document_token_secret() -> str:
    """Get HMAC secret for PDF download tokens. Rotating it revokes all links."""
    return _get_fields("documents", ["token_secret"])["token_secret"]


def get_operator_api_key() -> str:
    """Get API key for the operator order-processing endpoint."""
    return _get_fields("operator", ["api_key"])["api_key"]
