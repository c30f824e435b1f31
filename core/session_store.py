"""Per-session checkout state in Valkey.

Each checkout session owns a handful of keys (cart, coupon, checkout token,
last order) under checkout:{session_id}:{name}. Every write refreshes the
key's TTL so an abandoned checkout disappears on its own.

Sessions are passed explicitly into every operation; nothing here is global.
Writes are last-writer-wins. The only race that matters, the checkout
token, is settled with an atomic GETDEL.
"""

from clients.valkey_client import ValkeyClient


class CheckoutSession:
    """Key-value view over one session's state."""

    KEY_PREFIX = "checkout:"

    def __init__(self, valkey: ValkeyClient, session_id: str, ttl_seconds: int):
        self._valkey = valkey
        self.session_id = session_id
        self._ttl = ttl_seconds

    def _key(self, name: str) -> str:
        return f"{self.KEY_PREFIX}{self.session_id}:{name}"

    def get(self, name: str) -> str | None:
        return self._valkey.get(self._key(name))

    def set(self, name: str, value: str) -> None:
        self._valkey.set(self._key(name), value, expire_seconds=self._ttl)

    def set_if_absent(self, name: str, value: str) -> bool:
        """Set only if nothing is stored under name. Returns True if set."""
        return self._valkey.set(
            self._key(name), value, expire_seconds=self._ttl, only_if_absent=True
        )

    def pop(self, name: str) -> str | None:
        """Atomically read and remove a value."""
        return self._valkey.getdel(self._key(name))

    def get_json(self, name: str) -> dict | list | None:
        return self._valkey.get_json(self._key(name))

    def set_json(self, name: str, value: dict | list) -> None:
        self._valkey.set_json(self._key(name), value, expire_seconds=self._ttl)

    def remove(self, *names: str) -> None:
        self._valkey.delete(*(self._key(name) for name in names))


class SessionStore:
    """Factory for CheckoutSession views."""

    def __init__(self, valkey: ValkeyClient, ttl_minutes: int):
        self._valkey = valkey
        self._ttl_seconds = ttl_minutes * 60

    def session(self, session_id: str) -> CheckoutSession:
        if not session_id:
            raise ValueError("session_id is required")
        return CheckoutSession(self._valkey, session_id, self._ttl_seconds)
