"""
Valkey (Redis-compatible) client for checkout sessions and the job queue.

Simple wrapper around redis-py. Connection URL from Vault.
Fail-fast: raises on connection failure, never returns fallback values.
"""

import json
import logging

import redis

logger = logging.getLogger(__name__)


class ValkeyClient:
    """
    Redis-compatible client for Valkey.

    Usage:
        client = ValkeyClient("redis://localhost:6379/0")
        client.set("key", "value", expire_seconds=300)
        value = client.getdel("key")  # Atomic read-and-remove
    """

    def __init__(self, url: str):
        """
        Initialize Valkey connection.

        Args:
            url: Redis-compatible connection URL (e.g., redis://localhost:6379/0)

        Raises:
            redis.ConnectionError: If connection fails
        """
        self._client = redis.from_url(url, decode_responses=True)
        # Verify connectivity immediately (fail-fast)
        self._client.ping()
        logger.info("ValkeyClient connected")

    def ping(self) -> bool:
        """
        Health check.

        Raises redis.ConnectionError if unreachable.
        """
        self._client.ping()
        return True

    def get(self, key: str) -> str | None:
        """Get value by key. None if missing."""
        return self._client.get(key)

    def set(
        self,
        key: str,
        value: str,
        expire_seconds: int | None = None,
        only_if_absent: bool = False,
    ) -> bool:
        """
        Set key to value.

        Args:
            key: Key to set
            value: Value to store
            expire_seconds: TTL in seconds (None for no expiration)
            only_if_absent: SET NX semantics - leave an existing key untouched

        Returns:
            True if the value was written, False if only_if_absent and the key existed.
        """
        result = self._client.set(key, value, ex=expire_seconds, nx=only_if_absent)
        return bool(result)

    def getdel(self, key: str) -> str | None:
        """
        Atomically get a value and delete the key.

        At most one concurrent caller receives the value; the others get None.
        """
        return self._client.getdel(key)

    def delete(self, *keys: str) -> int:
        """Delete keys. Returns how many existed."""
        if not keys:
            return 0
        return self._client.delete(*keys)

    def exists(self, key: str) -> bool:
        """Check if key exists."""
        return self._client.exists(key) > 0

    def set_json(self, key: str, value: dict | list, expire_seconds: int | None = None) -> None:
        """Set key to JSON-serialized value."""
        self.set(key, json.dumps(value), expire_seconds)

    def get_json(self, key: str) -> dict | list | None:
        """
        Get and deserialize JSON value.

        Returns None if key doesn't exist.
        Raises ValueError if value is not valid JSON.
        """
        value = self.get(key)
        if value is None:
            return None
        try:
            return json.loads(value)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in key '{key}': {e}")

    # List operations (job queue)

    def lpush(self, key: str, value: str) -> int:
        """Push value onto the head of a list. Returns new length."""
        return self._client.lpush(key, value)

    def move_tail_to_head(self, source: str, destination: str, timeout_seconds: int = 0) -> str | None:
        """
        Atomically pop the tail of source and push it onto the head of destination.

        With timeout_seconds > 0 this blocks until an element is available or
        the timeout expires. Returns the moved element, or None.
        """
        if timeout_seconds > 0:
            return self._client.blmove(source, destination, timeout_seconds, "RIGHT", "LEFT")
        return self._client.lmove(source, destination, "RIGHT", "LEFT")

    def lrem(self, key: str, value: str, count: int = 1) -> int:
        """Remove up to count occurrences of value. Returns number removed."""
        return self._client.lrem(key, count, value)

    def llen(self, key: str) -> int:
        """Length of a list (0 if missing)."""
        return self._client.llen(key)

    def close(self) -> None:
        """Close the connection."""
        self._client.close()
        logger.info("ValkeyClient closed")
