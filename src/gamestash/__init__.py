"""gamestash - read-through cache and BFF aggregation for a game collection."""

# Backends
from gamestash.adapters import CacheBackend, MemoryBackend, RedisBackend

# Aggregation
from gamestash.aggregation import (
    build_dashboard,
    build_digital_locations_bff,
    build_library_bff,
    build_physical_locations_bff,
    group_digital_locations,
    group_physical_locations,
    recently_added_cutoff,
)
from gamestash.billing import BillingCycle, monthly_cost

# Caches
from gamestash.caches import Caches, DashboardCache, build_caches, create_caches
from gamestash.config import CacheSettings, get_settings

# Duration parsing
from gamestash.duration import parse_duration
from gamestash.entity_cache import EntityCacheAdapter, Invalidation, KeyedCache, ViewCache
from gamestash.errors import (
    CacheError,
    CacheUnavailableError,
    DigitalLocationNotFoundError,
    GameNotFoundError,
    GamestashError,
    InvalidCacheKeyError,
    NotFoundError,
    PhysicalLocationNotFoundError,
    SublocationNotFoundError,
    SubscriptionNotFoundError,
)
from gamestash.keys import KeySpace, build_key, parse_key
from gamestash.logs import configure_logging

# Services
from gamestash.services import (
    DashboardService,
    DigitalService,
    LibraryService,
    PhysicalService,
    SublocationService,
)
from gamestash.store import CacheStore, create_cache_store

# Core types
from gamestash.types import CacheEntry, Duration, InvalidationResult

__version__ = "0.1.0"

__all__ = [
    "BillingCycle",
    "CacheBackend",
    "CacheEntry",
    "CacheError",
    "CacheSettings",
    "CacheStore",
    "CacheUnavailableError",
    "Caches",
    "DashboardCache",
    "DashboardService",
    "DigitalLocationNotFoundError",
    "DigitalService",
    "Duration",
    "EntityCacheAdapter",
    "GameNotFoundError",
    "GamestashError",
    "InvalidCacheKeyError",
    "Invalidation",
    "InvalidationResult",
    "KeySpace",
    "KeyedCache",
    "LibraryService",
    "MemoryBackend",
    "NotFoundError",
    "PhysicalLocationNotFoundError",
    "PhysicalService",
    "RedisBackend",
    "SublocationNotFoundError",
    "SublocationService",
    "SubscriptionNotFoundError",
    "ViewCache",
    "build_caches",
    "build_dashboard",
    "build_digital_locations_bff",
    "build_key",
    "build_library_bff",
    "build_physical_locations_bff",
    "configure_logging",
    "create_cache_store",
    "create_caches",
    "get_settings",
    "group_digital_locations",
    "group_physical_locations",
    "monthly_cost",
    "parse_duration",
    "parse_key",
    "recently_added_cutoff",
]
