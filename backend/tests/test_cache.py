"""Tests for caching functionality.

Redis is replaced by an in-memory fake; the fake can be switched to raise
`RedisError` to exercise the fail-open paths.
"""

import fnmatch

import pytest
import redis.asyncio as redis
from httpx import AsyncClient

from quotebook.config import settings
from quotebook.utils import cache
from quotebook.utils.cache import cache_key, cached, invalidate_cache, owner_key


class InMemoryRedis:
    def __init__(self):
        self.data: dict[str, str] = {}
        self.broken = False

    def _check(self):
        if self.broken:
            raise redis.ConnectionError("redis is down")

    async def get(self, key):
        self._check()
        return self.data.get(key)

    async def setex(self, key, ttl, value):
        self._check()
        self.data[key] = value

    async def scan_iter(self, match="*"):
        self._check()
        for key in list(self.data):
            if fnmatch.fnmatch(key, match):
                yield key

    async def delete(self, *keys):
        self._check()
        for key in keys:
            self.data.pop(key, None)


@pytest.fixture
def fake_redis(monkeypatch):
    fake = InMemoryRedis()

    async def get_fake_redis():
        return fake

    monkeypatch.setattr(settings, "cache_enabled", True)
    monkeypatch.setattr(cache, "get_redis", get_fake_redis)
    return fake


@pytest.mark.cache
@pytest.mark.asyncio
class TestCacheUtility:

    async def test_cache_key_generation(self):
        key1 = cache_key(limit=50, offset=0)
        key2 = cache_key(limit=50, offset=0)
        key3 = cache_key(limit=100, offset=0)

        assert key1 == key2
        assert key1 != key3
        assert cache_key() == "default"

    async def test_cached_decorator(self, fake_redis):
        call_count = 0

        @cached(ttl=10, prefix="test")
        async def expensive_function(arg1: int, arg2: str):
            nonlocal call_count
            call_count += 1
            return {"result": arg1 + len(arg2)}

        assert await expensive_function(arg1=10, arg2="hello") == {"result": 15}
        assert await expensive_function(arg1=10, arg2="hello") == {"result": 15}
        assert call_count == 1

        assert await expensive_function(arg1=20, arg2="world") == {"result": 25}
        assert call_count == 2

    async def test_owner_key(self, fake_redis):
        @cached(prefix="clients", key_builder=owner_key("clients"))
        async def list_things(owner_id: str):
            return [owner_id]

        await list_things(owner_id="owner-1")
        assert "clients:owner-1" in fake_redis.data

    async def test_cache_invalidation(self, fake_redis):
        fake_redis.data.update(
            {"clients:owner-1": "[]", "clients:owner-2": "[]", "bank_info:owner-1": "[]"}
        )

        await invalidate_cache("clients:owner-1*")

        assert set(fake_redis.data) == {"clients:owner-2", "bank_info:owner-1"}

    async def test_redis_failure_falls_back_to_uncached(self, fake_redis):
        fake_redis.broken = True
        call_count = 0

        @cached(prefix="test")
        async def compute(x: int):
            nonlocal call_count
            call_count += 1
            return x * 2

        assert await compute(x=2) == 4
        assert await compute(x=2) == 4
        assert call_count == 2
        await invalidate_cache("test:*")

    async def test_disabled_cache_bypasses_redis(self, monkeypatch):
        async def no_redis():
            raise AssertionError("Redis must not be used")

        monkeypatch.setattr(settings, "cache_enabled", False)
        monkeypatch.setattr(cache, "get_redis", no_redis)

        @cached(prefix="test")
        async def compute(x: int):
            return x

        assert await compute(x=1) == 1
        await invalidate_cache("test:*")


@pytest.mark.cache
@pytest.mark.api
@pytest.mark.asyncio
class TestCachedEndpoints:

    async def test_client_list_cached_and_invalidated(
        self, client: AsyncClient, auth_headers: dict, fake_redis
    ):
        await client.post("/api/clients/", json={"name": "Alpha"}, headers=auth_headers)

        first = (await client.get("/api/clients/", headers=auth_headers)).json()
        assert [c["name"] for c in first] == ["Alpha"]
        assert "clients:owner-1" in fake_redis.data

        await client.post("/api/clients/", json={"name": "Beta"}, headers=auth_headers)
        assert "clients:owner-1" not in fake_redis.data

        second = (await client.get("/api/clients/", headers=auth_headers)).json()
        assert [c["name"] for c in second] == ["Alpha", "Beta"]
