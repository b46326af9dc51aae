"""Typed per-domain caches over a CacheStore.

Provides:
- EntityCacheAdapter[T]: a user's collection plus single entities
- ViewCache[T]: one aggregated view per user (BFF responses)
- KeyedCache[T]: a per-entity sub-resource (subscription, payments)

Reads propagate ``CacheUnavailableError`` so the caller can fall through
to the database. Invalidations never raise it; they return an
``InvalidationResult`` instead.
"""

from __future__ import annotations

from collections.abc import Callable
from enum import Enum
from typing import Any, Generic, TypeVar

from gamestash.errors import CacheUnavailableError
from gamestash.keys import KeyPart, KeySpace
from gamestash.store import CacheStore
from gamestash.types import InvalidationResult

T = TypeVar("T")


class Invalidation(Enum):
    """How a key is invalidated. Both make the next read a miss."""

    TOMBSTONE = "tombstone"  # overwrite with null
    DELETE = "delete"  # remove the key


async def invalidate_key(
    store: CacheStore, key: str, mode: Invalidation = Invalidation.DELETE
) -> InvalidationResult:
    """Invalidate one key, reporting rather than raising backend failures."""
    try:
        if mode is Invalidation.TOMBSTONE:
            await store.set_cached_results(key, None)
        else:
            await store.delete_cache_key(key)
    except CacheUnavailableError as exc:
        return InvalidationResult(failures=(exc,))
    return InvalidationResult(invalidated=(key,))


class EntityCacheAdapter(Generic[T]):
    """Collection and single-entity cache for one domain.

    Usage:
        games = EntityCacheAdapter(
            store, LibraryItem, domain="library", subresource="game",
            id_of=lambda item: item.id,
        )
        await games.set_single("42", item)      # library:42:game:7
        hit, item = await games.get_single("42", 7)
        await games.invalidate_user("42")       # library:42
    """

    def __init__(
        self,
        store: CacheStore,
        type_: type[T],
        *,
        domain: str,
        subresource: str,
        id_of: Callable[[T], KeyPart],
        invalidation: Invalidation = Invalidation.TOMBSTONE,
    ) -> None:
        self._store = store
        self._type: Any = type_
        self._list_type: Any = list[type_]  # type: ignore[valid-type]
        self._keys = KeySpace(domain, subresource)
        self._id_of = id_of
        self._invalidation = invalidation

    @property
    def keys(self) -> KeySpace:
        return self._keys

    @property
    def invalidation(self) -> Invalidation:
        return self._invalidation

    def collection_key(self, user_id: KeyPart) -> str:
        return self._keys.collection(user_id)

    def single_key(self, user_id: KeyPart, entity_id: KeyPart) -> str:
        return self._keys.single(user_id, entity_id)

    async def get_collection(self, user_id: KeyPart) -> tuple[bool, list[T] | None]:
        return await self._store.get_cached_results(
            self.collection_key(user_id), self._list_type
        )

    async def set_collection(self, user_id: KeyPart, items: list[T]) -> None:
        await self._store.set_cached_results(
            self.collection_key(user_id), items, self._list_type
        )

    async def get_single(
        self, user_id: KeyPart, entity_id: KeyPart
    ) -> tuple[bool, T | None]:
        return await self._store.get_cached_results(
            self.single_key(user_id, entity_id), self._type
        )

    async def set_single(self, user_id: KeyPart, entity: T) -> None:
        await self._store.set_cached_results(
            self.single_key(user_id, self._id_of(entity)), entity, self._type
        )

    async def invalidate_user(self, user_id: KeyPart) -> InvalidationResult:
        return await invalidate_key(
            self._store, self.collection_key(user_id), self._invalidation
        )

    async def invalidate_single(
        self, user_id: KeyPart, entity_id: KeyPart
    ) -> InvalidationResult:
        return await invalidate_key(
            self._store, self.single_key(user_id, entity_id), self._invalidation
        )


class ViewCache(Generic[T]):
    """One aggregated value per user, keyed ``<domain>:<view>:<user>``."""

    def __init__(
        self,
        store: CacheStore,
        type_: type[T],
        *,
        domain: str,
        view: str = "bff",
        invalidation: Invalidation = Invalidation.DELETE,
    ) -> None:
        self._store = store
        self._type: Any = type_
        self._keys = KeySpace(domain)
        self._view = view
        self._invalidation = invalidation

    def key(self, user_id: KeyPart) -> str:
        return self._keys.view(self._view, user_id)

    async def get(self, user_id: KeyPart) -> tuple[bool, T | None]:
        return await self._store.get_cached_results(self.key(user_id), self._type)

    async def set(self, user_id: KeyPart, value: T) -> None:
        await self._store.set_cached_results(self.key(user_id), value, self._type)

    async def invalidate(self, user_id: KeyPart) -> InvalidationResult:
        return await invalidate_key(self._store, self.key(user_id), self._invalidation)


class KeyedCache(Generic[T]):
    """A value hung off one entity, keyed ``<domain>:<user>:<subresource>:<id>``."""

    def __init__(
        self,
        store: CacheStore,
        type_: Any,
        *,
        domain: str,
        subresource: str,
        invalidation: Invalidation = Invalidation.DELETE,
    ) -> None:
        self._store = store
        self._type: Any = type_
        self._keys = KeySpace(domain, subresource)
        self._invalidation = invalidation

    def key(self, user_id: KeyPart, key_id: KeyPart) -> str:
        return self._keys.single(user_id, key_id)

    async def get(self, user_id: KeyPart, key_id: KeyPart) -> tuple[bool, T | None]:
        return await self._store.get_cached_results(self.key(user_id, key_id), self._type)

    async def set(self, user_id: KeyPart, key_id: KeyPart, value: T) -> None:
        await self._store.set_cached_results(self.key(user_id, key_id), value, self._type)

    async def invalidate(self, user_id: KeyPart, key_id: KeyPart) -> InvalidationResult:
        return await invalidate_key(
            self._store, self.key(user_id, key_id), self._invalidation
        )


__all__ = [
    "EntityCacheAdapter",
    "Invalidation",
    "KeyedCache",
    "ViewCache",
    "invalidate_key",
]
