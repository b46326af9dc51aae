"""Dashboard service."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime

from gamestash.aggregation import build_dashboard
from gamestash.caches import Caches, utcnow
from gamestash.ports import DashboardDbAdapter
from gamestash.responses import DashboardBFFResponse
from gamestash.services.base import CachedService
from gamestash.types import InvalidationResult


class DashboardService(CachedService):
    """Read-only statistics over the whole collection.

    The other services clear the dashboard on their writes; this one only
    builds and serves it.
    """

    def __init__(
        self,
        db: DashboardDbAdapter,
        caches: Caches,
        *,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        super().__init__(caches, clock=clock)
        self._db = db

    async def get_dashboard_bff(self, user_id: str) -> DashboardBFFResponse:
        return await self._read_through(
            "dashboard",
            lookup=lambda: self._caches.dashboard.get(user_id),
            load=lambda: self._load(user_id),
            populate=lambda view: self._caches.dashboard.set(user_id, view),
        )

    async def _load(self, user_id: str) -> DashboardBFFResponse:
        rows = await self._db.get_dashboard_rows(user_id)
        return build_dashboard(rows, now=self._clock())

    async def invalidate_user(self, user_id: str) -> InvalidationResult:
        return self._report(
            "invalidate_dashboard", user_id, await self._invalidate_dashboard(user_id)
        )
