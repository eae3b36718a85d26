"""Short-lived caches for resolved session state.

The session resolver receives one of these instead of reaching for global
state. Entries are opaque strings with a per-entry TTL.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from threading import Lock
from typing import Protocol

import redis

from topbreja.core.settings import settings

logger = logging.getLogger(__name__)


class AuthCache(Protocol):
    """Minimal key/value store with expiry."""

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str, ttl_seconds: float) -> None: ...

    def delete(self, key: str) -> None: ...


class MemoryAuthCache:
    """In-process cache; expiry is checked lazily on read."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._entries: dict[str, tuple[float, str]] = {}
        self._lock = Lock()

    def get(self, key: str) -> str | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            expires_at, value = entry
            if self._clock() >= expires_at:
                del self._entries[key]
                return None
            return value

    def set(self, key: str, value: str, ttl_seconds: float) -> None:
        if ttl_seconds <= 0:
            return
        with self._lock:
            self._entries[key] = (self._clock() + ttl_seconds, value)

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()


class RedisAuthCache:
    """Redis-backed cache shared by every worker process.

    Redis failures degrade to cache misses so a Redis outage only costs extra
    session lookups.
    """

    def __init__(self, client: redis.Redis) -> None:
        self._redis = client

    @classmethod
    def from_url(cls, url: str) -> RedisAuthCache:
        return cls(redis.Redis.from_url(url, decode_responses=True))

    def get(self, key: str) -> str | None:
        try:
            value = self._redis.get(key)
        except redis.RedisError as exc:
            logger.warning("Auth cache read failed for %s: %s", key, exc)
            return None
        if isinstance(value, bytes):
            return value.decode()
        return value

    def set(self, key: str, value: str, ttl_seconds: float) -> None:
        if ttl_seconds <= 0:
            return
        try:
            self._redis.set(key, value, px=max(1, int(ttl_seconds * 1000)))
        except redis.RedisError as exc:
            logger.warning("Auth cache write failed for %s: %s", key, exc)

    def delete(self, key: str) -> None:
        try:
            self._redis.delete(key)
        except redis.RedisError as exc:
            logger.warning("Auth cache delete failed for %s: %s", key, exc)


def build_auth_cache(backend: str | None = None) -> AuthCache:
    """Create the cache selected by ``AUTH_CACHE_BACKEND``."""
    backend = (backend or settings.auth_cache_backend).lower()
    if backend == "redis":
        return RedisAuthCache.from_url(settings.redis_url)
    if backend == "memory":
        return MemoryAuthCache()
    raise ValueError(f"Unknown auth cache backend: {backend!r}")
