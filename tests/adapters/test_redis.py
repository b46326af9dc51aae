"""Integration tests for the Redis backend using testcontainers."""

import pytest

# Skip all tests if redis or testcontainers are not installed
pytest.importorskip("redis")
pytest.importorskip("testcontainers")

import asyncio

import redis.asyncio
from testcontainers.redis import RedisContainer

from gamestash import CacheStore, RedisBackend, build_caches
from gamestash.models import Sublocation


@pytest.fixture(scope="module")
def redis_container():
    """Start a Redis container for the test module."""
    try:
        container = RedisContainer()
        container.start()
    except Exception as exc:  # docker missing or not running
        pytest.skip(f"Redis container unavailable: {exc}")
    yield container
    container.stop()


@pytest.fixture
async def redis_client(redis_container):
    """Create an async Redis client, flushing the db afterwards."""
    client = redis.asyncio.Redis(
        host=redis_container.get_container_host_ip(),
        port=int(redis_container.get_exposed_port(6379)),
        decode_responses=False,
    )
    yield client
    await client.flushdb()
    await client.aclose()


@pytest.fixture
def redis_backend(redis_client) -> RedisBackend:
    return RedisBackend(redis_client)


class TestRedisBackend:
    """Integration tests for RedisBackend."""

    async def test_get_nonexistent_returns_none(self, redis_backend: RedisBackend) -> None:
        assert await redis_backend.get("nonexistent") is None

    async def test_set_and_get(self, redis_backend: RedisBackend) -> None:
        await redis_backend.set("library:42", b'[{"id":7}]', 60_000)
        assert await redis_backend.get("library:42") == b'[{"id":7}]'

    async def test_keys_are_stored_verbatim(
        self, redis_backend: RedisBackend, redis_client
    ) -> None:
        """A key seen in redis-cli is the key the cache layer built."""
        await redis_backend.set("library:42:game:7", b"{}", 60_000)
        assert await redis_client.exists("library:42:game:7") == 1

    async def test_prefix(self, redis_client) -> None:
        backend = RedisBackend(redis_client, prefix="gs")
        await backend.set("library:42", b"[]", 60_000)
        assert await redis_client.exists("gs:library:42") == 1
        assert await backend.get("library:42") == b"[]"

    async def test_delete(self, redis_backend: RedisBackend) -> None:
        await redis_backend.set("key1", b"1", 60_000)
        await redis_backend.delete("key1")
        assert await redis_backend.get("key1") is None

    async def test_ttl_expiration(self, redis_backend: RedisBackend) -> None:
        await redis_backend.set("expiring_key", b"1", 100)
        assert await redis_backend.get("expiring_key") is not None
        await asyncio.sleep(0.3)
        assert await redis_backend.get("expiring_key") is None

    async def test_clear_with_prefix_keeps_other_keys(self, redis_client) -> None:
        backend = RedisBackend(redis_client, prefix="gs")
        await backend.set("key1", b"1", 60_000)
        await redis_client.set("unrelated", b"x")

        await backend.clear()

        assert await backend.get("key1") is None
        assert await redis_client.get("unrelated") == b"x"


class TestRedisStore:
    """Entity caches over a real Redis."""

    async def test_sublocation_roundtrip_and_invalidation(
        self, redis_backend: RedisBackend
    ) -> None:
        caches = build_caches(CacheStore(redis_backend))
        sub = Sublocation(id="xyz", user_id="42", physical_location_id="p1", name="Shelf")

        await caches.sublocations.set_single("42", sub)
        assert await caches.sublocations.get_single("42", "xyz") == (True, sub)

        result = await caches.sublocations.invalidate_single("42", "xyz")
        assert result.ok
        assert await caches.sublocations.get_single("42", "xyz") == (False, None)
