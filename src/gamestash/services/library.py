"""Library service: a user's games and the library BFF view."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from datetime import datetime

import structlog

from gamestash.aggregation import build_library_bff
from gamestash.caches import Caches, utcnow
from gamestash.errors import CacheUnavailableError
from gamestash.models import GameVersion, HeldCopy, LibraryItem
from gamestash.ports import LibraryDbAdapter
from gamestash.responses import LibraryBFFResponse
from gamestash.services.base import CachedService
from gamestash.types import InvalidationResult

logger = structlog.get_logger(__name__)


class LibraryService(CachedService):
    """Reads and writes library items.

    Every write clears the user's library collection and BFF view, the
    dashboard, and the caches of each location the game is (or was) held
    in, since those views count and list the game too.
    """

    def __init__(
        self,
        db: LibraryDbAdapter,
        caches: Caches,
        *,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        super().__init__(caches, clock=clock)
        self._db = db

    async def get_library_items(self, user_id: str) -> list[LibraryItem]:
        return await self._read_through(
            "library",
            lookup=lambda: self._caches.library.get_collection(user_id),
            load=lambda: self._db.get_library_items(user_id),
            populate=lambda items: self._caches.library.set_collection(user_id, items),
        )

    async def get_library_item(self, user_id: str, game_id: int) -> LibraryItem:
        """Raises GameNotFoundError when the game is not in the library."""
        return await self._read_through(
            "library",
            lookup=lambda: self._caches.library.get_single(user_id, game_id),
            load=lambda: self._db.get_library_item(user_id, game_id),
            populate=lambda item: self._caches.library.set_single(user_id, item),
        )

    async def get_library_bff(self, user_id: str) -> LibraryBFFResponse:
        return await self._read_through(
            "library_bff",
            lookup=lambda: self._caches.library_bff.get(user_id),
            load=lambda: self._load_library_bff(user_id),
            populate=lambda view: self._caches.library_bff.set(user_id, view),
        )

    async def _load_library_bff(self, user_id: str) -> LibraryBFFResponse:
        rows = await self._db.get_library_rows(user_id)
        return build_library_bff(rows, now=self._clock())

    async def is_game_in_library(self, user_id: str, game_id: int) -> bool:
        """Answer from the cached BFF view when present, else ask the database."""
        try:
            hit, view = await self._caches.library_bff.get(user_id)
        except CacheUnavailableError as exc:
            logger.warning(
                "Cache lookup failed, falling back to database",
                cache="library_bff",
                key=exc.key,
                error=str(exc),
            )
        else:
            if hit and view is not None:
                return view.contains_game(game_id)
        return await self._db.is_game_in_library(user_id, game_id)

    async def create_library_item(self, user_id: str, item: LibraryItem) -> LibraryItem:
        created = await self._db.create_library_item(user_id, item)
        self._report(
            "create_library_item",
            user_id,
            await self._invalidate_after_write(user_id, None, [created]),
        )
        return created

    async def update_library_item(self, user_id: str, item: LibraryItem) -> LibraryItem:
        """Raises GameNotFoundError when the game is not in the library."""
        existing = await self._db.get_library_item(user_id, item.id)
        updated = await self._db.update_library_item(user_id, item)
        self._report(
            "update_library_item",
            user_id,
            await self._invalidate_after_write(user_id, item.id, [existing, updated]),
        )
        return updated

    async def delete_library_item(self, user_id: str, game_id: int) -> None:
        """Raises GameNotFoundError when the game is not in the library."""
        # Copies must be read before the rows disappear.
        existing = await self._db.get_library_item(user_id, game_id)
        await self._db.delete_library_item(user_id, game_id)
        self._report(
            "delete_library_item",
            user_id,
            await self._invalidate_after_write(user_id, game_id, [existing]),
        )

    async def delete_game_versions(
        self, user_id: str, game_id: int, versions: list[GameVersion]
    ) -> int:
        """Delete some platform versions of a game, returning the count removed."""
        existing = await self._db.get_library_item(user_id, game_id)
        deleted = await self._db.delete_game_versions(user_id, game_id, versions)
        self._report(
            "delete_game_versions",
            user_id,
            await self._invalidate_after_write(user_id, game_id, [existing]),
        )
        return deleted

    async def _invalidate_after_write(
        self, user_id: str, game_id: int | None, items: Iterable[LibraryItem]
    ) -> InvalidationResult:
        caches = self._caches
        result = await caches.library.invalidate_user(user_id)
        if game_id is not None:
            result += await caches.library.invalidate_single(user_id, game_id)
        result += await caches.library_bff.invalidate(user_id)
        result += await self._invalidate_dashboard(user_id)
        for item in items:
            for copy in item.digital_copies():
                result += await self._invalidate_digital_copy(user_id, copy)
            for copy in item.physical_copies():
                result += await self._invalidate_physical_copy(user_id, copy)
        return result

    async def _invalidate_digital_copy(
        self, user_id: str, copy: HeldCopy
    ) -> InvalidationResult:
        caches = self._caches
        return (
            await caches.digital.invalidate_single(user_id, copy.location_id)
            + await caches.digital.invalidate_user(user_id)
            + await caches.digital_bff.invalidate(user_id)
        )

    async def _invalidate_physical_copy(
        self, user_id: str, copy: HeldCopy
    ) -> InvalidationResult:
        caches = self._caches
        result = await caches.sublocations.invalidate_single(
            user_id, copy.location_id
        ) + await caches.sublocations.invalidate_user(user_id)
        if copy.parent_location_id:
            result += await self._invalidate_physical_location(
                user_id, copy.parent_location_id
            )
        else:
            result += await caches.physical.invalidate_user(user_id)
            result += await caches.physical_bff.invalidate(user_id)
        return result
