"""Shared test fixtures for the storefront test suite."""

import json
import threading
import time
from decimal import Decimal

import pytest

import clients.vault_client as vault_module
from core.config import StorefrontConfig
from core.session_store import SessionStore


# =============================================================================
# VALKEY TEST DOUBLE
# =============================================================================


class FakeValkey:
    """
    In-memory stand-in for ValkeyClient.

    Same method surface, same return conventions, plus ttl() and lrange()
    for tests to inspect state. Every operation takes one lock, which gives
    the atomicity Valkey gives per command.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._values: dict[str, str] = {}
        self._lists: dict[str, list[str]] = {}
        self._expires: dict[str, float] = {}

    def _purge(self, key: str) -> None:
        deadline = self._expires.get(key)
        if deadline is not None and time.monotonic() >= deadline:
            self._values.pop(key, None)
            self._lists.pop(key, None)
            self._expires.pop(key, None)

    def _exists(self, key: str) -> bool:
        self._purge(key)
        return key in self._values or key in self._lists

    def ping(self) -> bool:
        return True

    def get(self, key: str) -> str | None:
        with self._lock:
            self._purge(key)
            return self._values.get(key)

    def set(self, key, value, expire_seconds=None, only_if_absent=False) -> bool:
        with self._lock:
            if only_if_absent and self._exists(key):
                return False
            self._values[key] = value
            if expire_seconds:
                self._expires[key] = time.monotonic() + expire_seconds
            else:
                self._expires.pop(key, None)
            return True

    def getdel(self, key: str) -> str | None:
        with self._lock:
            self._purge(key)
            self._expires.pop(key, None)
            return self._values.pop(key, None)

    def delete(self, *keys: str) -> int:
        with self._lock:
            removed = 0
            for key in keys:
                if self._exists(key):
                    removed += 1
                self._values.pop(key, None)
                self._lists.pop(key, None)
                self._expires.pop(key, None)
            return removed

    def exists(self, key: str) -> bool:
        with self._lock:
            return self._exists(key)

    def ttl(self, key: str) -> int:
        with self._lock:
            if not self._exists(key):
                return -2
            if key not in self._expires:
                return -1
            return max(0, int(self._expires[key] - time.monotonic()))

    def set_json(self, key, value, expire_seconds=None) -> None:
        self.set(key, json.dumps(value), expire_seconds)

    def get_json(self, key):
        value = self.get(key)
        return None if value is None else json.loads(value)

    def lpush(self, key: str, value: str) -> int:
        with self._lock:
            items = self._lists.setdefault(key, [])
            items.insert(0, value)
            return len(items)

    def move_tail_to_head(self, source, destination, timeout_seconds=0) -> str | None:
        with self._lock:
            items = self._lists.get(source)
            if not items:
                return None
            value = items.pop()
            if not items:
                del self._lists[source]
            self._lists.setdefault(destination, []).insert(0, value)
            return value

    def lrem(self, key: str, value: str, count: int = 1) -> int:
        with self._lock:
            items = self._lists.get(key, [])
            removed = 0
            while value in items and (count == 0 or removed < count):
                items.remove(value)
                removed += 1
            if key in self._lists and not items:
                del self._lists[key]
            return removed

    def lrange(self, key: str, start: int = 0, end: int = -1) -> list[str]:
        with self._lock:
            items = self._lists.get(key, [])
            return list(items[start:] if end == -1 else items[start:end + 1])

    def llen(self, key: str) -> int:
        with self._lock:
            return len(self._lists.get(key, []))

    def close(self) -> None:
        pass


# =============================================================================
# FIXTURES
# =============================================================================


@pytest.fixture(autouse=True)
def reset_vault_cache():
    """No secret leaks between tests through the per-process cache."""
    vault_module._vault_client_instance = None
    vault_module._secret_cache.clear()
    yield
    vault_module._vault_client_instance = None
    vault_module._secret_cache.clear()


@pytest.fixture
def valkey() -> FakeValkey:
    return FakeValkey()


@pytest.fixture
def config() -> StorefrontConfig:
    return StorefrontConfig(
        tax_rate=Decimal("9"),
        max_tickets_per_order=25,
        app_base_url="https://tickets.example.com",
        app_name="Tickets",
        from_email="tickets@example.com",
    )


@pytest.fixture
def sessions(valkey, config) -> SessionStore:
    return SessionStore(valkey, config.checkout_session_ttl_minutes)


@pytest.fixture
def session(sessions):
    return sessions.session("s" * 43)
