"""Thread-safe cache of constructed clients keyed by configuration fingerprint."""

import logging
from collections.abc import Callable
from threading import Lock
from typing import Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ClientCache(Generic[T]):
    """Map of configuration fingerprint to a ready-to-use client.

    At most one client is constructed per fingerprint. Concurrent callers
    asking for the same fingerprint wait for the first construction to
    finish; callers for other fingerprints are not blocked. A factory that
    raises stores nothing, so the next caller tries again.

    Entries live as long as the cache; there is no eviction.

    Example:
        ```python
        cache = ClientCache()
        client = cache.get_or_create(config.key(), lambda: build_client(config))
        ```
    """

    def __init__(self) -> None:
        self._lock = Lock()
        self._clients: dict[str, T] = {}
        self._key_locks: dict[str, Lock] = {}
        # Callers holding or waiting on each per-key lock
        self._key_users: dict[str, int] = {}

    def get(self, key: str) -> T | None:
        with self._lock:
            return self._clients.get(key)

    def get_or_create(self, key: str, factory: Callable[[], T]) -> T:
        """Return the client for `key`, constructing it with `factory` on a miss."""
        with self._lock:
            client = self._clients.get(key)
            if client is not None:
                return client
            key_lock = self._key_locks.setdefault(key, Lock())
            self._key_users[key] = self._key_users.get(key, 0) + 1

        try:
            with key_lock:
                # Double-check: another caller may have finished while we waited
                with self._lock:
                    client = self._clients.get(key)
                if client is not None:
                    return client

                logger.debug("Client cache miss, constructing a new client")
                client = factory()

                with self._lock:
                    self._clients[key] = client
        finally:
            with self._lock:
                self._key_users[key] -= 1
                if not self._key_users[key]:
                    del self._key_users[key]
                    del self._key_locks[key]

        return client

    def clear(self) -> None:
        """Drop all cached clients without closing them.

        Constructions in flight are not interrupted and store their client
        once finished.
        """
        with self._lock:
            self._clients.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._clients)

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._clients
