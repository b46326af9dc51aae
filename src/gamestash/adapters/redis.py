"""Redis cache backend."""

from __future__ import annotations

from typing import Any

import redis.asyncio


class RedisBackend:
    """Async Redis backend.

    Keys are stored as given, or as ``<prefix>:<key>`` when a prefix is set,
    so a key seen in redis-cli can be matched to its domain/user/entity.
    """

    def __init__(
        self,
        client: Any,  # redis.asyncio.Redis
        *,
        prefix: str | None = None,
    ) -> None:
        self._client = client
        self._prefix = prefix

    @classmethod
    def from_url(cls, url: str, *, prefix: str | None = None) -> RedisBackend:
        """Create a backend with its own connection pool."""
        return cls(redis.asyncio.from_url(url, decode_responses=False), prefix=prefix)

    def _cache_key(self, key: str) -> str:
        """Generate full Redis key."""
        if self._prefix:
            return f"{self._prefix}:{key}"
        return key

    async def get(self, key: str) -> bytes | None:
        """Get a blob by key."""
        data: bytes | None = await self._client.get(self._cache_key(key))
        return data

    async def set(self, key: str, value: bytes, ttl_ms: int) -> None:
        """Store a blob with automatic expiration."""
        if ttl_ms > 0:
            await self._client.set(self._cache_key(key), value, px=ttl_ms)
        else:
            await self._client.set(self._cache_key(key), value)

    async def delete(self, key: str) -> None:
        """Delete a blob."""
        await self._client.delete(self._cache_key(key))

    async def clear(self) -> None:
        """Clear all cached entries under the prefix (or the whole db)."""
        if not self._prefix:
            await self._client.flushdb()
            return
        # Use SCAN to find and delete all prefixed keys
        cursor: int = 0
        pattern = f"{self._prefix}:*"
        while True:
            result = await self._client.scan(cursor, match=pattern, count=100)
            cursor = result[0]
            keys = result[1]
            if keys:
                await self._client.delete(*keys)
            if cursor == 0:
                break

    async def disconnect(self) -> None:
        """Close the Redis connection."""
        await self._client.aclose()
