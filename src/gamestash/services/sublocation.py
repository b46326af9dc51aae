"""Sublocation service.

A sublocation always belongs to exactly one physical location, and the
physical location's cached views embed its sublocations. Every write
therefore clears the parent's caches too, using the parent id as it was
before the write.
"""

from __future__ import annotations

import uuid
from collections.abc import Callable
from datetime import datetime

from gamestash.caches import Caches, utcnow
from gamestash.models import NewSublocation, Sublocation, SublocationUpdate
from gamestash.ports import SublocationDbAdapter
from gamestash.services.base import CachedService
from gamestash.types import InvalidationResult


class SublocationService(CachedService):
    def __init__(
        self,
        db: SublocationDbAdapter,
        caches: Caches,
        *,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        super().__init__(caches, clock=clock)
        self._db = db

    async def get_sublocations(self, user_id: str) -> list[Sublocation]:
        return await self._read_through(
            "sublocation",
            lookup=lambda: self._caches.sublocations.get_collection(user_id),
            load=lambda: self._db.get_sublocations(user_id),
            populate=lambda items: self._caches.sublocations.set_collection(user_id, items),
        )

    async def get_sublocation(self, user_id: str, sublocation_id: str) -> Sublocation:
        """Raises SublocationNotFoundError when absent."""
        return await self._read_through(
            "sublocation",
            lookup=lambda: self._caches.sublocations.get_single(user_id, sublocation_id),
            load=lambda: self._db.get_sublocation(user_id, sublocation_id),
            populate=lambda item: self._caches.sublocations.set_single(user_id, item),
        )

    async def create_sublocation(self, user_id: str, request: NewSublocation) -> Sublocation:
        now = self._clock()
        sublocation = Sublocation(
            id=str(uuid.uuid4()),
            user_id=user_id,
            physical_location_id=request.physical_location_id,
            name=request.name,
            location_type=request.location_type,
            created_at=now,
            updated_at=now,
        )
        created = await self._db.create_sublocation(user_id, sublocation)

        result = await self._caches.sublocations.invalidate_user(user_id)
        result += await self._invalidate_physical_location(
            user_id, created.physical_location_id
        )
        result += await self._invalidate_dashboard(user_id)
        self._report("create_sublocation", user_id, result)
        return created

    async def update_sublocation(
        self, user_id: str, sublocation_id: str, update: SublocationUpdate
    ) -> Sublocation:
        """Raises SublocationNotFoundError when absent."""
        existing = await self._db.get_sublocation(user_id, sublocation_id)
        game_ids = await self._db.get_stored_game_ids(user_id, [sublocation_id])
        changes = update.model_dump(exclude_none=True)
        changes["updated_at"] = self._clock()
        updated = await self._db.update_sublocation(
            user_id, existing.model_copy(update=changes)
        )

        caches = self._caches
        result = (
            await caches.sublocations.invalidate_user(user_id)
            + await caches.sublocations.invalidate_single(user_id, sublocation_id)
            + await self._invalidate_physical_location(
                user_id, existing.physical_location_id
            )
            + await self._invalidate_library_items(user_id, game_ids)
            + await self._invalidate_dashboard(user_id)
        )
        self._report("update_sublocation", user_id, result)
        return updated

    async def delete_sublocations(self, user_id: str, sublocation_ids: list[str]) -> int:
        """Delete sublocations, returning how many were removed."""
        if not sublocation_ids:
            return 0
        # Parents must be read before the rows are gone.
        parents = await self._parent_ids(user_id, sublocation_ids)
        game_ids = await self._db.get_stored_game_ids(user_id, sublocation_ids)
        deleted = await self._db.delete_sublocations(user_id, sublocation_ids)

        result = await self._caches.sublocations.invalidate_user(user_id)
        result += await self._invalidate_each(user_id, sublocation_ids, parents)
        result += await self._invalidate_library_items(user_id, game_ids)
        result += await self._invalidate_dashboard(user_id)
        self._report("delete_sublocations", user_id, result)
        return deleted

    async def move_game(
        self, user_id: str, user_game_id: str, target_sublocation_id: str
    ) -> None:
        """Move a game copy to another sublocation."""
        await self._db.move_game(user_id, user_game_id, target_sublocation_id)
        # The moved copy is now stored at the target.
        game_ids = await self._db.get_stored_game_ids(user_id, [target_sublocation_id])
        self._report("move_game", user_id, await self._invalidate_all(user_id, game_ids))

    async def remove_game(self, user_id: str, user_game_id: str) -> None:
        """Take a game copy out of its sublocation."""
        # Read before the copy is gone.
        sublocations = await self._db.get_sublocations(user_id)
        game_ids = await self._db.get_stored_game_ids(user_id, [sub.id for sub in sublocations])
        await self._db.remove_game(user_id, user_game_id)
        self._report("remove_game", user_id, await self._invalidate_all(user_id, game_ids))

    async def _parent_ids(self, user_id: str, sublocation_ids: list[str]) -> dict[str, str]:
        wanted = set(sublocation_ids)
        return {
            sub.id: sub.physical_location_id
            for sub in await self._db.get_sublocations(user_id)
            if sub.id in wanted
        }

    async def _invalidate_each(
        self, user_id: str, sublocation_ids: list[str], parents: dict[str, str]
    ) -> InvalidationResult:
        result = InvalidationResult()
        for sublocation_id in sublocation_ids:
            result += await self._caches.sublocations.invalidate_single(
                user_id, sublocation_id
            )
            parent_id = parents.get(sublocation_id)
            if parent_id:
                result += await self._invalidate_physical_location(user_id, parent_id)
        return result

    async def _invalidate_all(self, user_id: str, game_ids: list[int]) -> InvalidationResult:
        """Clear every sublocation and parent: the source of a move is unknown."""
        sublocations = await self._db.get_sublocations(user_id)
        parents = {sub.id: sub.physical_location_id for sub in sublocations}
        result = await self._caches.sublocations.invalidate_user(user_id)
        result += await self._invalidate_each(user_id, list(parents), parents)
        result += await self._invalidate_library_items(user_id, game_ids)
        result += await self._invalidate_dashboard(user_id)
        return result
