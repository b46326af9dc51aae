"""Physical location service and the physical locations BFF view."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime

from gamestash.aggregation import build_physical_locations_bff
from gamestash.caches import Caches, utcnow
from gamestash.errors import NotFoundError
from gamestash.models import PhysicalLocation
from gamestash.ports import PhysicalDbAdapter
from gamestash.responses import PhysicalLocationsBFFResponse
from gamestash.services.base import CachedService
from gamestash.types import InvalidationResult


class PhysicalService(CachedService):
    def __init__(
        self,
        db: PhysicalDbAdapter,
        caches: Caches,
        *,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        super().__init__(caches, clock=clock)
        self._db = db

    async def get_physical_locations(self, user_id: str) -> list[PhysicalLocation]:
        return await self._read_through(
            "physical",
            lookup=lambda: self._caches.physical.get_collection(user_id),
            load=lambda: self._db.get_physical_locations(user_id),
            populate=lambda items: self._caches.physical.set_collection(user_id, items),
        )

    async def get_physical_location(self, user_id: str, location_id: str) -> PhysicalLocation:
        """Raises PhysicalLocationNotFoundError when absent."""
        return await self._read_through(
            "physical",
            lookup=lambda: self._caches.physical.get_single(user_id, location_id),
            load=lambda: self._db.get_physical_location(user_id, location_id),
            populate=lambda item: self._caches.physical.set_single(user_id, item),
        )

    async def get_physical_locations_bff(self, user_id: str) -> PhysicalLocationsBFFResponse:
        return await self._read_through(
            "physical_bff",
            lookup=lambda: self._caches.physical_bff.get(user_id),
            load=lambda: self._load_bff(user_id),
            populate=lambda view: self._caches.physical_bff.set(user_id, view),
        )

    async def _load_bff(self, user_id: str) -> PhysicalLocationsBFFResponse:
        return build_physical_locations_bff(await self._db.get_physical_bff_rows(user_id))

    async def create_physical_location(
        self, user_id: str, location: PhysicalLocation
    ) -> PhysicalLocation:
        created = await self._db.create_physical_location(user_id, location)
        caches = self._caches
        result = (
            await caches.physical.invalidate_user(user_id)
            + await caches.physical_bff.invalidate(user_id)
            + await self._invalidate_dashboard(user_id)
        )
        self._report("create_physical_location", user_id, result)
        return created

    async def update_physical_location(
        self, user_id: str, location: PhysicalLocation
    ) -> PhysicalLocation:
        caches = self._caches
        # Cleared before and after the write; both are kept on purpose.
        before = await caches.physical.invalidate_user(user_id)
        updated = await self._db.update_physical_location(user_id, location)

        result = (
            before
            + await self._invalidate_physical_location(user_id, updated.id)
            + await caches.sublocations.invalidate_user(user_id)
            + await caches.library_bff.invalidate(user_id)
            + await self._invalidate_dashboard(user_id)
        )
        self._report("update_physical_location", user_id, result)
        return updated

    async def delete_physical_locations(self, user_id: str, location_ids: list[str]) -> int:
        """Delete physical locations and their sublocations, returning the count."""
        if not location_ids:
            return 0
        # Children must be read before the cascade removes them.
        children: dict[str, list[str]] = {}
        for location_id in location_ids:
            try:
                location = await self._db.get_physical_location(user_id, location_id)
            except NotFoundError:
                continue
            children[location_id] = [sub.id for sub in location.sublocations]
        game_ids = await self._db.get_stored_game_ids(user_id, location_ids)

        deleted = await self._db.delete_physical_locations(user_id, location_ids)

        caches = self._caches
        result = InvalidationResult()
        for location_id in location_ids:
            result += await caches.physical.invalidate_single(user_id, location_id)
            for sublocation_id in children.get(location_id, []):
                result += await caches.sublocations.invalidate_single(user_id, sublocation_id)
        result += await caches.physical.invalidate_user(user_id)
        result += await caches.physical_bff.invalidate(user_id)
        result += await caches.sublocations.invalidate_user(user_id)
        result += await self._invalidate_library_items(user_id, game_ids)
        result += await self._invalidate_dashboard(user_id)
        self._report("delete_physical_locations", user_id, result)
        return deleted
