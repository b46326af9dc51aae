"""CacheStore - serialized get/set/delete over a shared backend.

The store knows nothing about domain entities. It turns values into JSON
blobs with pydantic, applies the deployment-wide TTL, bounds every backend
round trip with a timeout and reports backend trouble as
``CacheUnavailableError``.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable
from functools import lru_cache
from typing import Any, TypeVar

import structlog
from pydantic import TypeAdapter, ValidationError
from pydantic_core import to_json

from gamestash.adapters.base import CacheBackend
from gamestash.config import DEFAULT_TIMEOUT, DEFAULT_TTL, CacheSettings, get_settings
from gamestash.duration import parse_duration
from gamestash.errors import CacheUnavailableError, InvalidCacheKeyError
from gamestash.types import Duration

logger = structlog.get_logger(__name__)

T = TypeVar("T")

# Written by invalidation; reads treat it exactly like an absent key.
TOMBSTONE = b"null"


@lru_cache(maxsize=256)
def _adapter_for(type_: Any) -> TypeAdapter[Any]:
    return TypeAdapter(type_)


class CacheStore:
    """Typed key/value operations with a fixed TTL."""

    def __init__(
        self,
        backend: CacheBackend,
        *,
        ttl: Duration = DEFAULT_TTL,
        timeout: Duration | None = DEFAULT_TIMEOUT,
    ) -> None:
        ttl_ms = parse_duration(ttl)
        if ttl_ms <= 0:
            logger.warning(
                "Invalid cache TTL, using default",
                ttl=ttl,
                default=DEFAULT_TTL,
            )
            ttl_ms = parse_duration(DEFAULT_TTL)
        self._backend = backend
        self._ttl_ms = ttl_ms
        self._timeout = parse_duration(timeout) / 1000 if timeout is not None else None

    @property
    def backend(self) -> CacheBackend:
        return self._backend

    @property
    def ttl_ms(self) -> int:
        return self._ttl_ms

    async def get_cached_results(
        self, key: str, type_: Any
    ) -> tuple[bool, Any | None]:
        """Look up key and validate the stored blob as ``type_``.

        Returns ``(True, value)`` on a hit and ``(False, None)`` on a miss.
        A tombstone or a blob that no longer validates counts as a miss.

        Raises:
            CacheUnavailableError: the backend failed or timed out.
        """
        self._check_key(key)
        raw = await self._call(key, "get", self._backend.get(key))
        if raw is None:
            return False, None

        data = raw.encode("utf-8") if isinstance(raw, str) else raw
        if data == TOMBSTONE:
            return False, None

        try:
            value = _adapter_for(type_).validate_json(data)
        except ValidationError as exc:
            logger.warning(
                "Failed to deserialize cached value, treating as miss",
                key=key,
                error_count=exc.error_count(),
            )
            return False, None
        return True, value

    async def set_cached_results(
        self, key: str, value: Any, type_: Any | None = None
    ) -> None:
        """Serialize value and store it under key with the store TTL.

        ``None`` is stored as a tombstone.

        Raises:
            CacheUnavailableError: the backend failed or timed out.
        """
        self._check_key(key)
        if value is None:
            blob = TOMBSTONE
        elif type_ is not None:
            blob = _adapter_for(type_).dump_json(value, by_alias=True)
        else:
            blob = to_json(value, by_alias=True)
        await self._call(key, "set", self._backend.set(key, blob, self._ttl_ms))

    async def delete_cache_key(self, key: str) -> None:
        """Remove key. Missing keys are not an error.

        Raises:
            CacheUnavailableError: the backend failed or timed out.
        """
        self._check_key(key)
        await self._call(key, "delete", self._backend.delete(key))

    async def clear(self) -> None:
        """Clear all cached entries."""
        await self._backend.clear()

    async def disconnect(self) -> None:
        """Disconnect from the storage backend."""
        await self._backend.disconnect()

    # -------------------------------------------------------------------------
    # Internal helpers
    # -------------------------------------------------------------------------

    @staticmethod
    def _check_key(key: str) -> None:
        if not key:
            raise InvalidCacheKeyError("cache key cannot be empty")

    async def _call(self, key: str, operation: str, call: Awaitable[T]) -> T:
        """Await a backend call under the timeout, translating failures."""
        try:
            if self._timeout is None:
                return await call
            return await asyncio.wait_for(call, self._timeout)
        except asyncio.CancelledError:
            raise
        except TimeoutError as exc:
            raise CacheUnavailableError(key, operation, "timed out") from exc
        except Exception as exc:
            raise CacheUnavailableError(key, operation, str(exc)) from exc


def create_cache_store(
    settings: CacheSettings | None = None,
    *,
    backend: CacheBackend | None = None,
    ttl: Duration | None = None,
) -> CacheStore:
    """Create a cache store from settings.

    Args:
        settings: Cache settings (default: loaded from the environment)
        backend: Use this backend instead of the one named by settings
        ttl: Override the settings TTL, e.g. for the dashboard store

    Returns:
        CacheStore bound to the backend
    """
    settings = settings or get_settings()
    if backend is None:
        backend = _backend_from_settings(settings)

    return CacheStore(
        backend,
        ttl=ttl if ttl is not None else settings.ttl_ms,
        timeout=settings.timeout,
    )


def _backend_from_settings(settings: CacheSettings) -> CacheBackend:
    if settings.backend == "memory":
        from gamestash.adapters.memory import MemoryBackend

        return MemoryBackend(max_items=settings.max_memory_items)

    from gamestash.adapters.redis import RedisBackend

    return RedisBackend.from_url(settings.redis_url, prefix=settings.key_prefix)


__all__ = ["TOMBSTONE", "CacheStore", "create_cache_store"]
