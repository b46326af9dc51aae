"""Shared read-through and invalidation plumbing for the services."""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterable
from datetime import datetime
from typing import TypeVar

import structlog

from gamestash.caches import Caches, utcnow
from gamestash.errors import CacheUnavailableError
from gamestash.types import InvalidationResult

logger = structlog.get_logger(__name__)

T = TypeVar("T")


class CachedService:
    """Base class for services reading through and invalidating ``Caches``."""

    def __init__(
        self,
        caches: Caches,
        *,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._caches = caches
        self._clock = clock

    @property
    def caches(self) -> Caches:
        return self._caches

    async def _read_through(
        self,
        name: str,
        *,
        lookup: Callable[[], Awaitable[tuple[bool, T | None]]],
        load: Callable[[], Awaitable[T]],
        populate: Callable[[T], Awaitable[None]],
    ) -> T:
        """Cache-aside read.

        An unavailable cache is logged and treated as a miss; a failed
        populate is logged and the loaded value is still returned.
        """
        try:
            hit, cached = await lookup()
        except CacheUnavailableError as exc:
            logger.warning(
                "Cache lookup failed, falling back to database",
                cache=name,
                key=exc.key,
                error=str(exc),
            )
        else:
            if hit and cached is not None:
                logger.debug("Cache hit", cache=name)
                return cached

        value = await load()
        try:
            await populate(value)
        except CacheUnavailableError as exc:
            logger.warning(
                "Failed to populate cache",
                cache=name,
                key=exc.key,
                error=str(exc),
            )
        return value

    def _report(
        self, operation: str, user_id: str, result: InvalidationResult
    ) -> InvalidationResult:
        """Log an invalidation outcome; failures never fail the write."""
        for failure in result.failures:
            logger.error(
                "Cache invalidation failed",
                operation=operation,
                user_id=user_id,
                key=failure.key,
                error=str(failure),
            )
        logger.debug(
            "Cache invalidated",
            operation=operation,
            user_id=user_id,
            keys=len(result.invalidated),
            failed=len(result.failures),
        )
        return result

    # -------------------------------------------------------------------------
    # Cascades shared across domains
    # -------------------------------------------------------------------------

    async def _invalidate_physical_location(
        self, user_id: str, location_id: str
    ) -> InvalidationResult:
        """A physical location plus every view that embeds it."""
        caches = self._caches
        return (
            await caches.physical.invalidate_single(user_id, location_id)
            + await caches.physical.invalidate_user(user_id)
            + await caches.physical_bff.invalidate(user_id)
        )

    async def _invalidate_library_views(self, user_id: str) -> InvalidationResult:
        return await self._caches.library.invalidate_user(
            user_id
        ) + await self._caches.library_bff.invalidate(user_id)

    async def _invalidate_dashboard(self, user_id: str) -> InvalidationResult:
        return await self._caches.dashboard.invalidate_user(user_id)

    async def _invalidate_library_items(
        self, user_id: str, game_ids: Iterable[int]
    ) -> InvalidationResult:
        """Library items holding a copy at a changed location, plus the library views.

        Cached items embed the location of each copy, so a location write
        reaches every game stored there.
        """
        result = InvalidationResult()
        for game_id in game_ids:
            result += await self._caches.library.invalidate_single(user_id, game_id)
        return result + await self._invalidate_library_views(user_id)
