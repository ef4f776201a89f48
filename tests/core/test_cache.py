"""
Tests for flowspine.core.cache — InMemoryCache and create_cache.

Covers:
- get/set/delete/exists/clear
- LRU eviction
- TTL and absolute (``expire_at``) expiry
- JSON isolation of stored values
"""

import time
from decimal import Decimal

import pytest

from flowspine.core.cache import InMemoryCache, RedisCache, create_cache


class TestInMemoryCache:
    """Test InMemoryCache backend."""

    def test_basic_get_set(self):
        cache = InMemoryCache(max_size=100, default_ttl_seconds=None)
        cache.set("key1", [{"value": "a"}, {"value": "b"}])
        assert cache.get("key1") == [{"value": "a"}, {"value": "b"}]

    def test_get_missing_key(self):
        cache = InMemoryCache()
        assert cache.get("missing") is None

    def test_delete(self):
        cache = InMemoryCache()
        cache.set("key1", "value1")
        assert cache.exists("key1")
        cache.delete("key1")
        assert not cache.exists("key1")
        assert cache.get("key1") is None

    def test_delete_missing_is_noop(self):
        cache = InMemoryCache()
        cache.delete("nope")

    def test_clear(self):
        cache = InMemoryCache()
        cache.set("k1", 1)
        cache.set("k2", 2)
        assert cache.size() == 2
        cache.clear()
        assert cache.size() == 0

    def test_lru_eviction(self):
        """Least recently used key goes first when full."""
        cache = InMemoryCache(max_size=2)
        cache.set("a", 1)
        cache.set("b", 2)
        cache.get("a")
        cache.set("c", 3)
        assert cache.exists("a")
        assert not cache.exists("b")
        assert cache.exists("c")

    def test_ttl_expiry(self):
        cache = InMemoryCache(default_ttl_seconds=1)
        cache.set("temp", "value", ttl_seconds=1)
        assert cache.exists("temp")
        time.sleep(1.1)
        assert cache.get("temp") is None

    def test_expire_at_in_past(self):
        """Absolute expiry already reached → miss."""
        cache = InMemoryCache()
        cache.set("k", "v", expire_at=int(time.time()) - 1)
        assert cache.get("k") is None
        assert not cache.exists("k")

    def test_expire_at_wins_over_ttl(self):
        cache = InMemoryCache()
        cache.set("k", "v", ttl_seconds=3600, expire_at=int(time.time()) - 1)
        assert cache.get("k") is None

    def test_expire_at_in_future(self):
        cache = InMemoryCache()
        cache.set("k", "v", expire_at=int(time.time()) + 3600)
        assert cache.get("k") == "v"

    def test_values_are_copies(self):
        """Mutating a returned value never changes the cached one."""
        cache = InMemoryCache()
        cache.set("k", [{"value": "a"}])
        first = cache.get("k")
        first.append({"value": "b"})
        assert cache.get("k") == [{"value": "a"}]

    def test_decimal_values_stored_as_float(self):
        cache = InMemoryCache()
        cache.set("k", [{"value": Decimal("5.5")}])
        assert cache.get("k") == [{"value": 5.5}]

    def test_rejects_circular_values(self):
        cache = InMemoryCache()
        value: list = []
        value.append(value)
        with pytest.raises(ValueError):
            cache.set("k", value)

    def test_close_is_noop(self):
        cache = InMemoryCache()
        cache.set("k", 1)
        cache.close()
        assert cache.get("k") == 1


class TestCreateCache:
    def test_without_url_returns_process_cache(self):
        first = create_cache(None)
        second = create_cache(None)
        assert isinstance(first, InMemoryCache)
        assert first is second

    def test_with_url_returns_redis_cache(self, monkeypatch):
        redis = pytest.importorskip("redis")
        from unittest.mock import MagicMock

        monkeypatch.setattr(redis, "from_url", MagicMock(return_value=MagicMock()))
        cache = create_cache("redis://cache:6379/2")
        assert isinstance(cache, RedisCache)
