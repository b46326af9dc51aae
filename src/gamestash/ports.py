"""Contracts for the database adapters the services consume.

Query text and transactions live behind these protocols. A missing entity
is reported by raising the matching ``NotFoundError`` subclass; any other
exception is a database failure and propagates to the caller.
"""

from typing import Protocol, runtime_checkable

from gamestash.models import (
    DigitalLocation,
    GameVersion,
    LibraryItem,
    Payment,
    PhysicalLocation,
    Sublocation,
    Subscription,
)
from gamestash.rows import DashboardRows, DigitalBFFRows, LibraryRows, PhysicalBFFRows


@runtime_checkable
class LibraryDbAdapter(Protocol):
    async def get_library_items(self, user_id: str) -> list[LibraryItem]: ...

    async def get_library_item(self, user_id: str, game_id: int) -> LibraryItem: ...

    async def get_library_rows(self, user_id: str) -> LibraryRows: ...

    async def is_game_in_library(self, user_id: str, game_id: int) -> bool: ...

    async def create_library_item(self, user_id: str, item: LibraryItem) -> LibraryItem: ...

    async def update_library_item(self, user_id: str, item: LibraryItem) -> LibraryItem: ...

    async def delete_library_item(self, user_id: str, game_id: int) -> None: ...

    async def delete_game_versions(
        self, user_id: str, game_id: int, versions: list[GameVersion]
    ) -> int:
        """Delete selected platform versions, returning how many were removed."""
        ...


@runtime_checkable
class PhysicalDbAdapter(Protocol):
    async def get_physical_locations(self, user_id: str) -> list[PhysicalLocation]: ...

    async def get_physical_location(
        self, user_id: str, location_id: str
    ) -> PhysicalLocation: ...

    async def get_physical_bff_rows(self, user_id: str) -> PhysicalBFFRows: ...

    async def create_physical_location(
        self, user_id: str, location: PhysicalLocation
    ) -> PhysicalLocation: ...

    async def update_physical_location(
        self, user_id: str, location: PhysicalLocation
    ) -> PhysicalLocation: ...

    async def delete_physical_locations(self, user_id: str, location_ids: list[str]) -> int: ...

    async def get_stored_game_ids(self, user_id: str, location_ids: list[str]) -> list[int]:
        """Games with a copy anywhere under the given physical locations."""
        ...


@runtime_checkable
class SublocationDbAdapter(Protocol):
    async def get_sublocations(self, user_id: str) -> list[Sublocation]: ...

    async def get_sublocation(self, user_id: str, sublocation_id: str) -> Sublocation: ...

    async def create_sublocation(self, user_id: str, sublocation: Sublocation) -> Sublocation: ...

    async def update_sublocation(self, user_id: str, sublocation: Sublocation) -> Sublocation: ...

    async def delete_sublocations(self, user_id: str, sublocation_ids: list[str]) -> int: ...

    async def move_game(
        self, user_id: str, user_game_id: str, target_sublocation_id: str
    ) -> None: ...

    async def remove_game(self, user_id: str, user_game_id: str) -> None: ...

    async def get_stored_game_ids(
        self, user_id: str, sublocation_ids: list[str]
    ) -> list[int]: ...


@runtime_checkable
class DigitalDbAdapter(Protocol):
    async def get_digital_locations(self, user_id: str) -> list[DigitalLocation]: ...

    async def get_digital_location(self, user_id: str, location_id: str) -> DigitalLocation: ...

    async def get_digital_bff_rows(self, user_id: str) -> DigitalBFFRows: ...

    async def create_digital_location(
        self, user_id: str, location: DigitalLocation
    ) -> DigitalLocation: ...

    async def update_digital_location(
        self, user_id: str, location: DigitalLocation
    ) -> DigitalLocation: ...

    async def delete_digital_locations(self, user_id: str, location_ids: list[str]) -> int: ...

    async def get_subscription(self, location_id: str) -> Subscription | None: ...

    async def create_subscription(self, subscription: Subscription) -> Subscription: ...

    async def update_subscription(self, subscription: Subscription) -> Subscription: ...

    async def delete_subscription(self, location_id: str) -> None: ...

    async def get_payments(self, location_id: str) -> list[Payment]: ...

    async def create_payment(self, payment: Payment) -> Payment: ...

    async def add_game(self, user_id: str, location_id: str, game_id: int) -> None: ...

    async def remove_game(self, user_id: str, location_id: str, game_id: int) -> None: ...

    async def get_stored_game_ids(self, user_id: str, location_ids: list[str]) -> list[int]: ...


@runtime_checkable
class DashboardDbAdapter(Protocol):
    async def get_dashboard_rows(self, user_id: str) -> DashboardRows: ...
