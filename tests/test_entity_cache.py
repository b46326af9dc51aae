"""Tests for the generic entity, view and keyed caches."""

import pytest

from gamestash import (
    CacheStore,
    EntityCacheAdapter,
    Invalidation,
    KeyedCache,
    MemoryBackend,
    ViewCache,
)
from gamestash.models import DigitalLocation, Payment, Sublocation
from gamestash.responses import LibraryBFFResponse
from gamestash.store import TOMBSTONE


def sublocation(sub_id: str = "xyz", parent: str = "p1") -> Sublocation:
    return Sublocation(id=sub_id, user_id="42", physical_location_id=parent, name="Shelf")


@pytest.fixture(params=[Invalidation.TOMBSTONE, Invalidation.DELETE], ids=["tombstone", "delete"])
def adapter(request, store: CacheStore) -> EntityCacheAdapter[Sublocation]:
    return EntityCacheAdapter(
        store,
        Sublocation,
        domain="sublocation",
        subresource="sublocation",
        id_of=lambda s: s.id,
        invalidation=request.param,
    )


class TestKeys:
    def test_key_layout(self, adapter: EntityCacheAdapter[Sublocation]) -> None:
        assert adapter.collection_key("42") == "sublocation:42"
        assert adapter.single_key("42", "xyz") == "sublocation:42:sublocation:xyz"

    def test_keys_differ_per_user(self, adapter: EntityCacheAdapter[Sublocation]) -> None:
        assert adapter.collection_key("1") != adapter.collection_key("2")
        assert adapter.single_key("1", "x") != adapter.single_key("2", "x")


class TestEntityCacheAdapter:
    """Collection and single operations, in both invalidation modes."""

    async def test_collection_roundtrip(self, adapter: EntityCacheAdapter[Sublocation]) -> None:
        items = [sublocation("a"), sublocation("b")]
        await adapter.set_collection("42", items)
        assert await adapter.get_collection("42") == (True, items)

    async def test_single_roundtrip(self, adapter: EntityCacheAdapter[Sublocation]) -> None:
        item = sublocation()
        await adapter.set_single("42", item)
        assert await adapter.get_single("42", "xyz") == (True, item)

    async def test_invalidate_user(self, adapter: EntityCacheAdapter[Sublocation]) -> None:
        await adapter.set_collection("42", [sublocation()])
        result = await adapter.invalidate_user("42")
        assert result.ok
        assert result.invalidated == ("sublocation:42",)
        assert await adapter.get_collection("42") == (False, None)

    async def test_invalidate_single(self, adapter: EntityCacheAdapter[Sublocation]) -> None:
        await adapter.set_single("42", sublocation())
        await adapter.invalidate_single("42", "xyz")
        assert await adapter.get_single("42", "xyz") == (False, None)

    async def test_invalidate_single_leaves_collection(
        self, adapter: EntityCacheAdapter[Sublocation]
    ) -> None:
        await adapter.set_collection("42", [sublocation()])
        await adapter.set_single("42", sublocation())
        await adapter.invalidate_single("42", "xyz")
        hit, _ = await adapter.get_collection("42")
        assert hit

    async def test_invalidating_missing_key_is_ok(
        self, adapter: EntityCacheAdapter[Sublocation]
    ) -> None:
        assert (await adapter.invalidate_single("42", "nope")).ok

    async def test_repopulate_after_invalidation(
        self, adapter: EntityCacheAdapter[Sublocation]
    ) -> None:
        await adapter.set_single("42", sublocation())
        await adapter.invalidate_single("42", "xyz")
        renamed = sublocation().model_copy(update={"name": "Bottom Shelf"})
        await adapter.set_single("42", renamed)
        assert await adapter.get_single("42", "xyz") == (True, renamed)


class TestInvalidationModes:
    async def test_tombstone_mode_writes_null(
        self, store: CacheStore, backend: MemoryBackend
    ) -> None:
        digital = EntityCacheAdapter(
            store,
            DigitalLocation,
            domain="digital",
            subresource="location",
            id_of=lambda d: d.id,
            invalidation=Invalidation.TOMBSTONE,
        )
        await digital.set_collection("42", [])
        await digital.invalidate_user("42")
        assert await backend.get("digital:42") == TOMBSTONE

    async def test_delete_mode_removes_key(
        self, store: CacheStore, backend: MemoryBackend
    ) -> None:
        subs = EntityCacheAdapter(
            store,
            Sublocation,
            domain="sublocation",
            subresource="sublocation",
            id_of=lambda s: s.id,
            invalidation=Invalidation.DELETE,
        )
        await subs.set_collection("42", [])
        await subs.invalidate_user("42")
        assert await backend.get("sublocation:42") is None


class TestUnavailableBackend:
    """Reads raise, invalidations report."""

    async def test_invalidation_reports_failure(self, failing_backend) -> None:
        adapter = EntityCacheAdapter(
            CacheStore(failing_backend),
            Sublocation,
            domain="sublocation",
            subresource="sublocation",
            id_of=lambda s: s.id,
        )
        result = await adapter.invalidate_single("42", "xyz")
        assert not result.ok
        assert result.failed_keys == ("sublocation:42:sublocation:xyz",)


class TestViewCache:
    async def test_roundtrip_and_invalidate(self, store: CacheStore) -> None:
        view = ViewCache(store, LibraryBFFResponse, domain="library")
        assert view.key("42") == "library:bff:42"

        response = LibraryBFFResponse()
        await view.set("42", response)
        assert await view.get("42") == (True, response)

        await view.invalidate("42")
        assert await view.get("42") == (False, None)


class TestKeyedCache:
    async def test_roundtrip_list_payload(self, store: CacheStore) -> None:
        payments = KeyedCache(store, list[Payment], domain="digital", subresource="payments")
        assert payments.key("42", "abc") == "digital:42:payments:abc"

        value = [
            Payment(
                id="pay-1",
                location_id="abc",
                amount=14.99,
                payment_date="2026-02-01T00:00:00Z",
            )
        ]
        await payments.set("42", "abc", value)
        assert await payments.get("42", "abc") == (True, value)

        await payments.invalidate("42", "abc")
        assert await payments.get("42", "abc") == (False, None)
