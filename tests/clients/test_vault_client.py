"""Tests for VaultClient - HashiCorp Vault secrets management."""

from unittest.mock import MagicMock, patch

import pytest
from hvac.exceptions import InvalidPath, Forbidden

import clients.vault_client as vault_module
from clients.vault_client import (
    VaultClient,
    VaultError,
    get_document_token_secret,
    get_operator_api_key,
    get_woocommerce_config,
)


@pytest.fixture
def vault_env(monkeypatch):
    monkeypatch.setenv("VAULT_ADDR", "https://vault.test")
    monkeypatch.setenv("VAULT_ROLE_ID", "role")
    monkeypatch.setenv("VAULT_SECRET_ID", "secret")
    monkeypatch.delenv("VAULT_NAMESPACE", raising=False)


@pytest.fixture
def hvac_client():
    """Authenticated hvac.Client double with a small KV store."""
    client = MagicMock()
    client.auth.approle.login.return_value = {"auth": {"client_token": "t"}}
    client.is_authenticated.return_value = True

    store = {
        "storefront/documents": {"token_secret": "s3cret"},
        "storefront/woocommerce": {
            "base_url": "https://shop.test",
            "consumer_key": "ck",
            "consumer_secret": "cs",
            "webhook_secret": "wh",
        },
    }

    def read(path, raise_on_deleted_version):
        if path not in store:
            raise InvalidPath()
        return {"data": {"data": store[path]}}

    client.secrets.kv.v2.read_secret_version.side_effect = read
    with patch("clients.vault_client.hvac.Client", return_value=client):
        yield client


@pytest.fixture(autouse=True)
def reset_singleton():
    vault_module._vault_client_instance = None
    vault_module._secret_cache.clear()
    yield
    vault_module._vault_client_instance = None
    vault_module._secret_cache.clear()


class TestVaultClientInit:

    def test_missing_vault_addr_raises(self, monkeypatch):
        monkeypatch.delenv("VAULT_ADDR", raising=False)
        with pytest.raises(ValueError, match="VAULT_ADDR"):
            VaultClient()

    def test_missing_approle_credentials_raises(self, monkeypatch):
        monkeypatch.setenv("VAULT_ADDR", "https://vault.test")
        monkeypatch.delenv("VAULT_ROLE_ID", raising=False)
        with pytest.raises(ValueError, match="VAULT_ROLE_ID"):
            VaultClient()

    def test_failed_login_raises_permission_error(self, vault_env, hvac_client):
        hvac_client.auth.approle.login.side_effect = Exception("bad role")
        with pytest.raises(PermissionError, match="authentication"):
            VaultClient()

    def test_valid_approle_sets_token(self, vault_env, hvac_client):
        client = VaultClient()
        assert client.client.token == "t"


class TestGetSecret:

    def test_returns_scoped_field(self, vault_env, hvac_client):
        assert VaultClient().get_secret("documents", "token_secret") == "s3cret"

    def test_missing_path_raises_permission_error(self, vault_env, hvac_client):
        with pytest.raises(PermissionError, match="not found"):
            VaultClient().get_secret("nonexistent", "field")

    def test_missing_field_raises_keyerror(self, vault_env, hvac_client):
        with pytest.raises(KeyError, match="not found"):
            VaultClient().get_secret("documents", "nope")

    def test_forbidden_raises_permission_error(self, vault_env, hvac_client):
        hvac_client.secrets.kv.v2.read_secret_version.side_effect = Forbidden()
        with pytest.raises(PermissionError, match="Access denied"):
            VaultClient().get_secret("documents", "token_secret")


class TestConvenienceFunctions:

    def test_woocommerce_config_has_all_fields(self, vault_env, hvac_client):
        config = get_woocommerce_config()
        assert config == {
            "base_url": "https://shop.test",
            "consumer_key": "ck",
            "consumer_secret": "cs",
            "webhook_secret": "wh",
        }

    def test_values_are_cached(self, vault_env, hvac_client):
        get_document_token_secret()
        get_document_token_secret()
        assert hvac_client.secrets.kv.v2.read_secret_version.call_count == 1

    def test_missing_secret_raises_vault_error(self, vault_env, hvac_client):
        with pytest.raises(VaultError, match="storefront/operator/api_key"):
            get_operator_api_key()
