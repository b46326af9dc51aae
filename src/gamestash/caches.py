"""Domain cache registry.

``build_caches`` instantiates every domain adapter over one shared
``CacheStore``. Services receive the resulting ``Caches`` at construction
time and never reach for a global client.

Key layout (user ``42``):

    library:42                      library collection
    library:42:game:7               library item
    library:bff:42                  library BFF view
    physical:42                     physical locations
    physical:42:location:<id>       physical location
    physical:bff:42                 physical BFF view
    sublocation:42                  sublocations
    sublocation:42:sublocation:<id> sublocation
    digital:42                      digital locations
    digital:42:location:<id>        digital location
    digital:bff:42                  digital BFF view
    digital:42:subscription:<id>    subscription of a digital location
    digital:42:payments:<id>        payments of a digital location
    dashboard:bff:42                dashboard view
    dashboard:last_update:42        dashboard timestamp
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from gamestash.adapters.base import CacheBackend
from gamestash.config import DEFAULT_DASHBOARD_TTL, CacheSettings, get_settings
from gamestash.duration import parse_duration
from gamestash.entity_cache import (
    EntityCacheAdapter,
    Invalidation,
    KeyedCache,
    ViewCache,
)
from gamestash.logs import configure_logging
from gamestash.models import (
    DigitalLocation,
    LibraryItem,
    Payment,
    PhysicalLocation,
    Sublocation,
    Subscription,
)
from gamestash.responses import (
    DashboardBFFResponse,
    DigitalLocationsBFFResponse,
    LibraryBFFResponse,
    PhysicalLocationsBFFResponse,
)
from gamestash.store import CacheStore, create_cache_store
from gamestash.types import Duration, InvalidationResult


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DashboardCache:
    """Dashboard view guarded by a last-update timestamp.

    The view is served only while its timestamp is younger than the
    freshness window, regardless of how long the backend keeps the blob.
    """

    def __init__(
        self,
        store: CacheStore,
        *,
        freshness: Duration = DEFAULT_DASHBOARD_TTL,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._view: ViewCache[DashboardBFFResponse] = ViewCache(
            store, DashboardBFFResponse, domain="dashboard", view="bff"
        )
        self._last_update: ViewCache[datetime] = ViewCache(
            store, datetime, domain="dashboard", view="last_update"
        )
        self._freshness = timedelta(milliseconds=parse_duration(freshness))
        self._clock = clock

    def key(self, user_id: str) -> str:
        return self._view.key(user_id)

    def last_update_key(self, user_id: str) -> str:
        return self._last_update.key(user_id)

    async def get(self, user_id: str) -> tuple[bool, DashboardBFFResponse | None]:
        hit, updated_at = await self._last_update.get(user_id)
        if not hit or updated_at is None:
            return False, None
        if self._clock() - updated_at > self._freshness:
            return False, None
        return await self._view.get(user_id)

    async def set(self, user_id: str, value: DashboardBFFResponse) -> None:
        await self._view.set(user_id, value)
        await self._last_update.set(user_id, self._clock())

    async def invalidate_user(self, user_id: str) -> InvalidationResult:
        return await self._last_update.invalidate(user_id) + await self._view.invalidate(
            user_id
        )


@dataclass(frozen=True, slots=True)
class Caches:
    """Every domain cache, sharing one store."""

    library: EntityCacheAdapter[LibraryItem]
    library_bff: ViewCache[LibraryBFFResponse]
    physical: EntityCacheAdapter[PhysicalLocation]
    physical_bff: ViewCache[PhysicalLocationsBFFResponse]
    sublocations: EntityCacheAdapter[Sublocation]
    digital: EntityCacheAdapter[DigitalLocation]
    digital_bff: ViewCache[DigitalLocationsBFFResponse]
    subscriptions: KeyedCache[Subscription]
    payments: KeyedCache[list[Payment]]
    dashboard: DashboardCache


def build_caches(
    store: CacheStore,
    *,
    dashboard_store: CacheStore | None = None,
    dashboard_freshness: Duration = DEFAULT_DASHBOARD_TTL,
    clock: Callable[[], datetime] = utcnow,
) -> Caches:
    """Create the domain caches over a store.

    Args:
        store: Shared cache store
        dashboard_store: Store for the dashboard view (default: ``store``)
        dashboard_freshness: How long a dashboard view may be served
        clock: Time source for dashboard freshness

    Returns:
        Caches bundle to hand to the services
    """
    return Caches(
        library=EntityCacheAdapter(
            store,
            LibraryItem,
            domain="library",
            subresource="game",
            id_of=lambda item: item.id,
            invalidation=Invalidation.TOMBSTONE,
        ),
        library_bff=ViewCache(store, LibraryBFFResponse, domain="library"),
        physical=EntityCacheAdapter(
            store,
            PhysicalLocation,
            domain="physical",
            subresource="location",
            id_of=lambda location: location.id,
            invalidation=Invalidation.DELETE,
        ),
        physical_bff=ViewCache(store, PhysicalLocationsBFFResponse, domain="physical"),
        sublocations=EntityCacheAdapter(
            store,
            Sublocation,
            domain="sublocation",
            subresource="sublocation",
            id_of=lambda sublocation: sublocation.id,
            invalidation=Invalidation.DELETE,
        ),
        digital=EntityCacheAdapter(
            store,
            DigitalLocation,
            domain="digital",
            subresource="location",
            id_of=lambda location: location.id,
            invalidation=Invalidation.TOMBSTONE,
        ),
        digital_bff=ViewCache(store, DigitalLocationsBFFResponse, domain="digital"),
        subscriptions=KeyedCache(
            store, Subscription, domain="digital", subresource="subscription"
        ),
        payments=KeyedCache(store, list[Payment], domain="digital", subresource="payments"),
        dashboard=DashboardCache(
            dashboard_store or store, freshness=dashboard_freshness, clock=clock
        ),
    )


def create_caches(
    settings: CacheSettings | None = None,
    *,
    backend: CacheBackend | None = None,
    clock: Callable[[], datetime] = utcnow,
) -> Caches:
    """Create the domain caches from settings.

    Logging is configured from the settings. The dashboard gets its own
    store over the same backend, with the dashboard TTL, so its entries
    expire together with its freshness window.

    Args:
        settings: Cache settings (default: loaded from the environment)
        backend: Use this backend instead of the one named by settings
        clock: Time source for dashboard freshness

    Returns:
        Caches bundle to hand to the services
    """
    settings = settings or get_settings()
    configure_logging(settings.log_level, json=settings.log_json)
    store = create_cache_store(settings, backend=backend)
    dashboard_store = create_cache_store(
        settings, backend=store.backend, ttl=settings.dashboard_ttl_ms
    )
    return build_caches(
        store,
        dashboard_store=dashboard_store,
        dashboard_freshness=settings.dashboard_ttl_ms,
        clock=clock,
    )


__all__ = ["Caches", "DashboardCache", "build_caches", "create_caches", "utcnow"]
