"""Tests for the transient cache backends."""

from unittest.mock import MagicMock

import pytest

from syncguard.core.cache import DatabaseCache, InMemoryCache, RedisCache


@pytest.fixture(params=["memory", "database"])
def backend(request, conn, clock):
    if request.param == "memory":
        return InMemoryCache(clock=clock)
    return DatabaseCache(conn, clock=clock)


class TestCacheContract:
    """Behaviour shared by the in-process and database backends."""

    def test_get_missing(self, backend):
        assert backend.get("nope") is None
        assert backend.exists("nope") is False

    def test_set_get_json_values(self, backend):
        backend.set("k", {"opened_at": 1, "failures": 3})
        assert backend.get("k") == {"opened_at": 1, "failures": 3}

    def test_set_overwrites(self, backend):
        backend.set("k", 1)
        backend.set("k", 2)
        assert backend.get("k") == 2

    def test_ttl_expiry(self, backend, clock):
        backend.set("k", 1, ttl_seconds=10)
        clock.advance(9)
        assert backend.get("k") == 1
        clock.advance(1)
        assert backend.get("k") is None
        assert backend.exists("k") is False

    def test_add_only_once(self, backend):
        assert backend.add("probe", 1, ttl_seconds=360) is True
        assert backend.add("probe", 1, ttl_seconds=360) is False

    def test_add_reclaims_expired(self, backend, clock):
        assert backend.add("probe", 1, ttl_seconds=360) is True
        clock.advance(360)
        assert backend.add("probe", 1, ttl_seconds=360) is True

    def test_delete_then_add(self, backend):
        backend.add("probe", 1)
        backend.delete("probe")
        assert backend.add("probe", 1) is True

    def test_delete_missing_is_noop(self, backend):
        backend.delete("nope")

    def test_clear(self, backend):
        backend.set("a", 1)
        backend.set("b", 2)
        backend.clear()
        assert backend.get("a") is None
        assert backend.get("b") is None


class TestDatabaseCache:
    def test_shared_between_instances(self, conn, clock):
        first = DatabaseCache(conn, clock=clock)
        second = DatabaseCache(conn, clock=clock)
        assert first.add("probe", 1) is True
        assert second.add("probe", 1) is False
        assert second.get("probe") == 1

    def test_no_ttl_never_expires(self, conn, clock):
        cache = DatabaseCache(conn, default_ttl_seconds=None, clock=clock)
        cache.set("k", "v")
        clock.advance(10**9)
        assert cache.get("k") == "v"


class TestInMemoryCache:
    def test_size(self, clock):
        cache = InMemoryCache(clock=clock)
        cache.set("a", 1)
        cache.set("b", 2)
        assert cache.size() == 2


class TestRedisCache:
    def test_add_uses_set_nx(self):
        client = MagicMock()
        client.set.return_value = True
        cache = RedisCache(client=client)
        assert cache.add("probe", 1, ttl_seconds=360) is True
        client.set.assert_called_once_with("probe", "1", nx=True, ex=360)

    def test_add_denied(self):
        client = MagicMock()
        client.set.return_value = None
        assert RedisCache(client=client).add("probe", 1) is False

    def test_set_with_ttl_uses_setex(self):
        client = MagicMock()
        RedisCache(client=client).set("k", {"a": 1}, ttl_seconds=5)
        client.setex.assert_called_once_with("k", 5, '{"a": 1}')

    def test_get_decodes(self):
        client = MagicMock()
        client.get.return_value = b"3"
        assert RedisCache(client=client).get("k") == 3
