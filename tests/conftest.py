"""Shared pytest fixtures."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from datetime import datetime, timedelta, timezone

import pytest

from gamestash import (
    Caches,
    CacheStore,
    DigitalLocationNotFoundError,
    GameNotFoundError,
    MemoryBackend,
    PhysicalLocationNotFoundError,
    SublocationNotFoundError,
    build_caches,
)
from gamestash.models import (
    DigitalLocation,
    GameVersion,
    HeldCopy,
    LibraryItem,
    Payment,
    PhysicalLocation,
    Sublocation,
    Subscription,
)
from gamestash.rows import DashboardRows, DigitalBFFRows, LibraryRows, PhysicalBFFRows
from gamestash.store import TOMBSTONE

NOW = datetime(2026, 3, 15, 12, 0, tzinfo=timezone.utc)
USER = "42"


class FrozenClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime = NOW) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now = self.now + delta


class FailingBackend:
    """Backend whose every call fails, like an unreachable Redis."""

    def __init__(self) -> None:
        self.calls = 0

    async def _fail(self) -> None:
        self.calls += 1
        raise ConnectionError("cache backend unreachable")

    async def get(self, key: str) -> bytes | None:
        await self._fail()
        return None

    async def set(self, key: str, value: bytes, ttl_ms: int) -> None:
        await self._fail()

    async def delete(self, key: str) -> None:
        await self._fail()

    async def clear(self) -> None:
        await self._fail()

    async def disconnect(self) -> None:
        pass


class SlowBackend(MemoryBackend):
    """Memory backend that stalls on reads."""

    def __init__(self, delay: float) -> None:
        super().__init__()
        self._delay = delay

    async def get(self, key: str) -> bytes | None:
        await asyncio.sleep(self._delay)
        return await super().get(key)


# -----------------------------------------------------------------------------
# Fake database adapters
# -----------------------------------------------------------------------------


class FakeLibraryDb:
    def __init__(self) -> None:
        self.items: dict[str, dict[int, LibraryItem]] = {}
        self.rows: dict[str, LibraryRows] = {}
        self.calls: list[str] = []

    def add(self, user_id: str, item: LibraryItem) -> None:
        self.items.setdefault(user_id, {})[item.id] = item

    def holding(self, user_id: str, held_at: Callable[[HeldCopy], bool]) -> list[int]:
        """Ids of the games with a copy matching held_at."""
        return [
            item.id
            for item in self.items.get(user_id, {}).values()
            if any(held_at(copy) for copy in item.copies)
        ]

    async def get_library_items(self, user_id: str) -> list[LibraryItem]:
        self.calls.append("get_library_items")
        return list(self.items.get(user_id, {}).values())

    async def get_library_item(self, user_id: str, game_id: int) -> LibraryItem:
        self.calls.append("get_library_item")
        try:
            return self.items[user_id][game_id]
        except KeyError:
            raise GameNotFoundError(user_id, str(game_id)) from None

    async def get_library_rows(self, user_id: str) -> LibraryRows:
        self.calls.append("get_library_rows")
        return self.rows.get(user_id, LibraryRows())

    async def is_game_in_library(self, user_id: str, game_id: int) -> bool:
        self.calls.append("is_game_in_library")
        return game_id in self.items.get(user_id, {})

    async def create_library_item(self, user_id: str, item: LibraryItem) -> LibraryItem:
        self.calls.append("create_library_item")
        self.add(user_id, item)
        return item

    async def update_library_item(self, user_id: str, item: LibraryItem) -> LibraryItem:
        self.calls.append("update_library_item")
        if item.id not in self.items.get(user_id, {}):
            raise GameNotFoundError(user_id, str(item.id))
        self.add(user_id, item)
        return item

    async def delete_library_item(self, user_id: str, game_id: int) -> None:
        self.calls.append("delete_library_item")
        if self.items.get(user_id, {}).pop(game_id, None) is None:
            raise GameNotFoundError(user_id, str(game_id))

    async def delete_game_versions(
        self, user_id: str, game_id: int, versions: list[GameVersion]
    ) -> int:
        self.calls.append("delete_game_versions")
        item = self.items[user_id][game_id]
        doomed = {(v.platform_id, v.location_type) for v in versions}
        kept = [c for c in item.copies if (c.platform_id, c.location_type) not in doomed]
        self.add(user_id, item.model_copy(update={"copies": kept}))
        return len(item.copies) - len(kept)


class FakePhysicalDb:
    def __init__(self, library: FakeLibraryDb | None = None) -> None:
        self.library = library or FakeLibraryDb()
        self.locations: dict[str, dict[str, PhysicalLocation]] = {}
        self.bff_rows: dict[str, PhysicalBFFRows] = {}
        self.calls: list[str] = []

    def add(self, location: PhysicalLocation) -> None:
        self.locations.setdefault(location.user_id, {})[location.id] = location

    async def get_physical_locations(self, user_id: str) -> list[PhysicalLocation]:
        self.calls.append("get_physical_locations")
        return list(self.locations.get(user_id, {}).values())

    async def get_physical_location(self, user_id: str, location_id: str) -> PhysicalLocation:
        self.calls.append("get_physical_location")
        try:
            return self.locations[user_id][location_id]
        except KeyError:
            raise PhysicalLocationNotFoundError(user_id, location_id) from None

    async def get_physical_bff_rows(self, user_id: str) -> PhysicalBFFRows:
        self.calls.append("get_physical_bff_rows")
        return self.bff_rows.get(user_id, PhysicalBFFRows())

    async def create_physical_location(
        self, user_id: str, location: PhysicalLocation
    ) -> PhysicalLocation:
        self.calls.append("create_physical_location")
        self.add(location)
        return location

    async def update_physical_location(
        self, user_id: str, location: PhysicalLocation
    ) -> PhysicalLocation:
        self.calls.append("update_physical_location")
        if location.id not in self.locations.get(user_id, {}):
            raise PhysicalLocationNotFoundError(user_id, location.id)
        self.add(location)
        return location

    async def delete_physical_locations(self, user_id: str, location_ids: list[str]) -> int:
        self.calls.append("delete_physical_locations")
        owned = self.locations.get(user_id, {})
        return sum(1 for i in location_ids if owned.pop(i, None) is not None)

    async def get_stored_game_ids(self, user_id: str, location_ids: list[str]) -> list[int]:
        self.calls.append("get_stored_game_ids")
        wanted = set(location_ids)
        return self.library.holding(
            user_id,
            lambda c: c.location_type == "physical" and c.parent_location_id in wanted,
        )


class FakeSublocationDb:
    def __init__(self, library: FakeLibraryDb | None = None) -> None:
        self.library = library or FakeLibraryDb()
        self.sublocations: dict[str, dict[str, Sublocation]] = {}
        self.moves: list[tuple[str, str]] = []
        self.calls: list[str] = []

    def add(self, sublocation: Sublocation) -> None:
        self.sublocations.setdefault(sublocation.user_id, {})[sublocation.id] = sublocation

    async def get_sublocations(self, user_id: str) -> list[Sublocation]:
        self.calls.append("get_sublocations")
        return list(self.sublocations.get(user_id, {}).values())

    async def get_sublocation(self, user_id: str, sublocation_id: str) -> Sublocation:
        self.calls.append("get_sublocation")
        try:
            return self.sublocations[user_id][sublocation_id]
        except KeyError:
            raise SublocationNotFoundError(user_id, sublocation_id) from None

    async def create_sublocation(self, user_id: str, sublocation: Sublocation) -> Sublocation:
        self.calls.append("create_sublocation")
        self.add(sublocation)
        return sublocation

    async def update_sublocation(self, user_id: str, sublocation: Sublocation) -> Sublocation:
        self.calls.append("update_sublocation")
        self.add(sublocation)
        return sublocation

    async def delete_sublocations(self, user_id: str, sublocation_ids: list[str]) -> int:
        self.calls.append("delete_sublocations")
        owned = self.sublocations.get(user_id, {})
        return sum(1 for i in sublocation_ids if owned.pop(i, None) is not None)

    async def move_game(
        self, user_id: str, user_game_id: str, target_sublocation_id: str
    ) -> None:
        self.calls.append("move_game")
        self.moves.append((user_game_id, target_sublocation_id))

    async def remove_game(self, user_id: str, user_game_id: str) -> None:
        self.calls.append("remove_game")

    async def get_stored_game_ids(
        self, user_id: str, sublocation_ids: list[str]
    ) -> list[int]:
        self.calls.append("get_stored_game_ids")
        wanted = set(sublocation_ids)
        return self.library.holding(
            user_id, lambda c: c.location_type == "physical" and c.location_id in wanted
        )


class FakeDigitalDb:
    def __init__(self, library: FakeLibraryDb | None = None) -> None:
        self.library = library or FakeLibraryDb()
        self.locations: dict[str, dict[str, DigitalLocation]] = {}
        self.subscriptions: dict[str, Subscription] = {}
        self.payments: dict[str, list[Payment]] = {}
        self.games: set[tuple[str, int]] = set()
        self.bff_rows: dict[str, DigitalBFFRows] = {}
        self.calls: list[str] = []

    def add(self, location: DigitalLocation) -> None:
        self.locations.setdefault(location.user_id, {})[location.id] = location
        if location.subscription is not None:
            self.subscriptions[location.id] = location.subscription

    async def get_digital_locations(self, user_id: str) -> list[DigitalLocation]:
        self.calls.append("get_digital_locations")
        return list(self.locations.get(user_id, {}).values())

    async def get_digital_location(self, user_id: str, location_id: str) -> DigitalLocation:
        self.calls.append("get_digital_location")
        try:
            location = self.locations[user_id][location_id]
        except KeyError:
            raise DigitalLocationNotFoundError(user_id, location_id) from None
        return location.model_copy(
            update={"subscription": self.subscriptions.get(location_id)}
        )

    async def get_digital_bff_rows(self, user_id: str) -> DigitalBFFRows:
        self.calls.append("get_digital_bff_rows")
        return self.bff_rows.get(user_id, DigitalBFFRows())

    async def create_digital_location(
        self, user_id: str, location: DigitalLocation
    ) -> DigitalLocation:
        self.calls.append("create_digital_location")
        self.add(location)
        return location

    async def update_digital_location(
        self, user_id: str, location: DigitalLocation
    ) -> DigitalLocation:
        self.calls.append("update_digital_location")
        self.add(location)
        return location

    async def delete_digital_locations(self, user_id: str, location_ids: list[str]) -> int:
        self.calls.append("delete_digital_locations")
        owned = self.locations.get(user_id, {})
        return sum(1 for i in location_ids if owned.pop(i, None) is not None)

    async def get_subscription(self, location_id: str) -> Subscription | None:
        self.calls.append("get_subscription")
        return self.subscriptions.get(location_id)

    async def create_subscription(self, subscription: Subscription) -> Subscription:
        self.calls.append("create_subscription")
        self.subscriptions[subscription.location_id] = subscription
        return subscription

    async def update_subscription(self, subscription: Subscription) -> Subscription:
        self.calls.append("update_subscription")
        self.subscriptions[subscription.location_id] = subscription
        return subscription

    async def delete_subscription(self, location_id: str) -> None:
        self.calls.append("delete_subscription")
        self.subscriptions.pop(location_id, None)

    async def get_payments(self, location_id: str) -> list[Payment]:
        self.calls.append("get_payments")
        return list(self.payments.get(location_id, []))

    async def create_payment(self, payment: Payment) -> Payment:
        self.calls.append("create_payment")
        self.payments.setdefault(payment.location_id, []).append(payment)
        return payment

    async def add_game(self, user_id: str, location_id: str, game_id: int) -> None:
        self.calls.append("add_game")
        self.games.add((location_id, game_id))

    async def remove_game(self, user_id: str, location_id: str, game_id: int) -> None:
        self.calls.append("remove_game")
        self.games.discard((location_id, game_id))

    async def get_stored_game_ids(self, user_id: str, location_ids: list[str]) -> list[int]:
        self.calls.append("get_stored_game_ids")
        wanted = set(location_ids)
        stored = self.library.holding(
            user_id, lambda c: c.location_type == "digital" and c.location_id in wanted
        )
        stored += [game_id for location_id, game_id in self.games if location_id in wanted]
        return stored


class FakeDashboardDb:
    def __init__(self) -> None:
        self.rows: dict[str, DashboardRows] = {}
        self.calls: list[str] = []

    async def get_dashboard_rows(self, user_id: str) -> DashboardRows:
        self.calls.append("get_dashboard_rows")
        return self.rows.get(user_id, DashboardRows())


# -----------------------------------------------------------------------------
# Fixtures
# -----------------------------------------------------------------------------


@pytest.fixture
def clock() -> FrozenClock:
    """A clock frozen at NOW."""
    return FrozenClock()


@pytest.fixture
def backend() -> MemoryBackend:
    """Create a fresh MemoryBackend for each test."""
    return MemoryBackend()


@pytest.fixture
def store(backend: MemoryBackend) -> CacheStore:
    """Create a CacheStore over the memory backend."""
    return CacheStore(backend, ttl="10m", timeout="1s")


@pytest.fixture
def caches(store: CacheStore, clock: FrozenClock) -> Caches:
    """Create every domain cache over the shared store."""
    return build_caches(store, clock=clock)


@pytest.fixture
def failing_backend() -> FailingBackend:
    return FailingBackend()


@pytest.fixture
def slow_backend() -> SlowBackend:
    """A backend that takes 200ms to answer a read."""
    return SlowBackend(delay=0.2)


@pytest.fixture
def failing_caches(failing_backend: FailingBackend, clock: FrozenClock) -> Caches:
    """Domain caches whose backend is down."""
    return build_caches(CacheStore(failing_backend), clock=clock)


@pytest.fixture
def library_db() -> FakeLibraryDb:
    return FakeLibraryDb()


@pytest.fixture
def physical_db(library_db: FakeLibraryDb) -> FakePhysicalDb:
    return FakePhysicalDb(library_db)


@pytest.fixture
def sublocation_db(library_db: FakeLibraryDb) -> FakeSublocationDb:
    return FakeSublocationDb(library_db)


@pytest.fixture
def digital_db(library_db: FakeLibraryDb) -> FakeDigitalDb:
    return FakeDigitalDb(library_db)


@pytest.fixture
def dashboard_db() -> FakeDashboardDb:
    return FakeDashboardDb()


@pytest.fixture
def seed(backend: MemoryBackend):
    """Write placeholder blobs under the given keys."""

    async def _seed(*keys: str) -> None:
        for key in keys:
            await backend.set(key, b"{}", 600_000)

    return _seed


@pytest.fixture
def cached(backend: MemoryBackend):
    """Tell whether a key still holds a live (non-tombstone) entry."""

    async def _cached(key: str) -> bool:
        blob = await backend.get(key)
        return blob is not None and blob != TOMBSTONE

    return _cached
