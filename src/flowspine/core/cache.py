"""
Caching abstraction with in-memory and Redis implementations.

Provides the ``CacheBackend`` protocol used by the cache-aside fetcher.
Query results are cached under their normalized query text; every entry
written during one request shares the same absolute expiry (the end of the
current cache period), so entries written together also disappear together.

Manifesto:
    - **Protocol-based:** CacheBackend defines the contract
    - **Tier-aware:** InMemoryCache for dev/tests, RedisCache for production
    - **Absolute expiry:** ``expire_at`` (epoch seconds) alongside TTLs
    - **Explicit lifetime:** ``close()`` releases the connection per request

Architecture:
    ::

        CacheBackend (Protocol)
        ├── InMemoryCache  — single-process, bounded LRU
        └── RedisCache     — distributed (SET … EXAT)

        API: get(key) → value | None
             set(key, value, ttl_seconds=None, expire_at=None)
             delete(key) / exists(key) / clear() / close()

Examples:
    >>> from flowspine.core.cache import InMemoryCache
    >>> cache = InMemoryCache(max_size=1000)
    >>> cache.set("sql:SELECT 1", [["1"]], expire_at=4102444800)
    >>> cache.get("sql:SELECT 1")
    [['1']]

Guardrails:
    ❌ DON'T: Use InMemoryCache in multi-process deployments (no sharing)
    ✅ DO: Configure ``redis_url`` for anything beyond a single worker

Tags:
    cache, caching, redis, in-memory, ttl, flow-spine

Doc-Types:
    - API Reference
    - Infrastructure Guide
"""

from __future__ import annotations

import json
import threading
import time
from decimal import Decimal
from typing import Any, Protocol

from flowspine.core.errors import CacheError


def _json_default(value: Any) -> Any:
    """Encode driver types (numeric sums come back as Decimal) for storage."""
    if isinstance(value, Decimal):
        return float(value)
    return str(value)


def dumps(value: Any) -> str:
    return json.dumps(value, default=_json_default)


class CacheBackend(Protocol):
    """Protocol for cache backend implementations.

    Keys are strings, values are JSON-serializable.
    """

    def get(self, key: str) -> Any | None:
        """Return the cached value, or ``None`` if missing or expired."""
        ...

    def set(
        self,
        key: str,
        value: Any,
        *,
        ttl_seconds: int | None = None,
        expire_at: int | None = None,
    ) -> None:
        """Store a value.

        Args:
            key: Cache key.
            value: JSON-serializable value to cache.
            ttl_seconds: Relative time-to-live. ``None`` → default TTL.
            expire_at: Absolute expiry as Unix epoch seconds. Wins over TTL.
        """
        ...

    def delete(self, key: str) -> None:
        """Remove a key. No-op if missing."""
        ...

    def exists(self, key: str) -> bool:
        """``True`` if the key exists and has not expired."""
        ...

    def clear(self) -> None:
        """Remove all keys. Use for testing only."""
        ...

    def close(self) -> None:
        """Release any connection held by the backend."""
        ...


# ------------------------------------------------------------------ #
# In-Memory Cache
# ------------------------------------------------------------------ #


class InMemoryCache:
    """Bounded in-memory cache with TTL and absolute expiry.

    Uses LRU eviction when ``max_size`` is reached. Guarded by a lock since
    the fetcher reads and writes from worker threads.

    Example:
        cache = InMemoryCache(max_size=500, default_ttl_seconds=1800)
        cache.set("sql:…", rows, expire_at=period_end)
    """

    def __init__(
        self,
        *,
        max_size: int = 10_000,
        default_ttl_seconds: int | None = 3600,
    ):
        self._store: dict[str, tuple[Any, float | None]] = {}
        self._access_order: list[str] = []
        self._max_size = max_size
        self._default_ttl = default_ttl_seconds
        self._lock = threading.Lock()

    def get(self, key: str) -> Any | None:
        with self._lock:
            if key not in self._store:
                return None

            value, expires_at = self._store[key]

            if expires_at is not None and time.time() >= expires_at:
                self._delete_locked(key)
                return None

            if key in self._access_order:
                self._access_order.remove(key)
            self._access_order.append(key)

            # Round-trip through JSON so callers never share mutable state
            return json.loads(value)

    def set(
        self,
        key: str,
        value: Any,
        *,
        ttl_seconds: int | None = None,
        expire_at: int | None = None,
    ) -> None:
        if expire_at is not None:
            expires = float(expire_at)
        else:
            ttl = ttl_seconds if ttl_seconds is not None else self._default_ttl
            expires = (time.time() + ttl) if ttl else None

        serialized = dumps(value)

        with self._lock:
            if key not in self._store and len(self._store) >= self._max_size:
                if self._access_order:
                    lru_key = self._access_order.pop(0)
                    self._store.pop(lru_key, None)

            self._store[key] = (serialized, expires)

            if key in self._access_order:
                self._access_order.remove(key)
            self._access_order.append(key)

    def delete(self, key: str) -> None:
        with self._lock:
            self._delete_locked(key)

    def _delete_locked(self, key: str) -> None:
        self._store.pop(key, None)
        if key in self._access_order:
            self._access_order.remove(key)

    def exists(self, key: str) -> bool:
        with self._lock:
            if key not in self._store:
                return False

            _, expires_at = self._store[key]
            if expires_at is not None and time.time() >= expires_at:
                self._delete_locked(key)
                return False

            return True

    def clear(self) -> None:
        with self._lock:
            self._store.clear()
            self._access_order.clear()

    def close(self) -> None:
        """Nothing to release; the store lives as long as the process."""

    def size(self) -> int:
        """Return current number of cached keys."""
        return len(self._store)


# ------------------------------------------------------------------ #
# Redis Cache
# ------------------------------------------------------------------ #


class RedisCache:
    """Redis-backed distributed cache.

    Driver failures are re-raised as :class:`CacheError` (retryable) so the
    fetcher's retry policy treats them like any other transient fault.

    Example:
        cache = RedisCache("redis://localhost:6379/0")
        try:
            cache.set("sql:…", rows, expire_at=period_end)
        finally:
            cache.close()
    """

    def __init__(
        self,
        url: str = "redis://localhost:6379/0",
        *,
        default_ttl_seconds: int | None = 3600,
    ):
        import redis

        self._redis_error = redis.RedisError
        self._client = redis.from_url(url, decode_responses=False)
        self._default_ttl = default_ttl_seconds

    def get(self, key: str) -> Any | None:
        try:
            raw = self._client.get(key)
        except self._redis_error as exc:
            raise CacheError(f"Cache read failed: {exc}", cause=exc) from exc
        if raw is None:
            return None

        return json.loads(raw)

    def set(
        self,
        key: str,
        value: Any,
        *,
        ttl_seconds: int | None = None,
        expire_at: int | None = None,
    ) -> None:
        try:
            serialized = dumps(value)
        except (TypeError, ValueError) as exc:
            raise CacheError(f"Cache value not serializable: {exc}", cause=exc) from exc

        try:
            if expire_at is not None:
                self._client.set(key, serialized, exat=expire_at)
                return

            ttl = ttl_seconds if ttl_seconds is not None else self._default_ttl
            if ttl:
                self._client.setex(key, ttl, serialized)
            else:
                self._client.set(key, serialized)
        except self._redis_error as exc:
            raise CacheError(f"Cache write failed: {exc}", cause=exc) from exc

    def delete(self, key: str) -> None:
        self._client.delete(key)

    def exists(self, key: str) -> bool:
        return bool(self._client.exists(key))

    def ping(self) -> bool:
        """Round-trip to the server; raises on failure."""
        return bool(self._client.ping())

    def clear(self) -> None:
        """Flush the current Redis database. Use with caution!"""
        self._client.flushdb()

    def close(self) -> None:
        """Release the connection pool."""
        self._client.close()


def create_cache(redis_url: str | None) -> CacheBackend:
    """Open the cache backend for one request.

    Args:
        redis_url: Redis URL, or ``None`` for the process-wide in-memory cache.
    """
    if redis_url:
        return RedisCache(redis_url)
    return _PROCESS_CACHE


_PROCESS_CACHE = InMemoryCache()


__all__ = [
    "CacheBackend",
    "InMemoryCache",
    "RedisCache",
    "create_cache",
]
