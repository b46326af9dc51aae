"""Services orchestrating cache lookups, database fallbacks and invalidation."""

from gamestash.services.base import CachedService
from gamestash.services.dashboard import DashboardService
from gamestash.services.digital import DigitalService
from gamestash.services.library import LibraryService
from gamestash.services.physical import PhysicalService
from gamestash.services.sublocation import SublocationService

__all__ = [
    "CachedService",
    "DashboardService",
    "DigitalService",
    "LibraryService",
    "PhysicalService",
    "SublocationService",
]
