"""In-memory cache backend."""

import asyncio
import time
from collections import OrderedDict

from gamestash.types import CacheEntry


def _now_ms() -> int:
    return int(time.time() * 1000)


class MemoryBackend:
    """Async in-memory backend with TTL expiry and optional LRU eviction."""

    def __init__(self, max_items: int | None = None) -> None:
        self._cache: OrderedDict[str, CacheEntry] = OrderedDict()
        self._max_items = max_items
        self._lock = asyncio.Lock()

    async def get(self, key: str) -> bytes | None:
        """Get a blob by key, dropping it if it has expired."""
        async with self._lock:
            entry = self._cache.get(key)
            if entry is None:
                return None
            if entry.expires_at is not None and entry.expires_at <= _now_ms():
                del self._cache[key]
                return None
            self._cache.move_to_end(key)  # LRU touch
            return entry.value

    async def set(self, key: str, value: bytes, ttl_ms: int) -> None:
        """Store a blob."""
        expires_at = _now_ms() + ttl_ms if ttl_ms > 0 else None
        async with self._lock:
            self._cache[key] = CacheEntry(value=value, expires_at=expires_at)
            self._cache.move_to_end(key)
            if self._max_items and len(self._cache) > self._max_items:
                self._cache.popitem(last=False)

    async def delete(self, key: str) -> None:
        """Delete a blob."""
        async with self._lock:
            self._cache.pop(key, None)

    async def clear(self) -> None:
        """Clear all cached entries."""
        async with self._lock:
            self._cache.clear()

    async def disconnect(self) -> None:
        """Disconnect from the storage backend (no-op for memory)."""
        pass

    def __len__(self) -> int:
        return len(self._cache)
