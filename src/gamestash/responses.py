"""BFF response shapes.

Nested, client-ready trees built by ``gamestash.aggregation``. All of them
serialize with camelCase keys (``libraryItems``, ``parentLocationId``,
``platformVersions`` ...).
"""

from __future__ import annotations

from datetime import datetime

from pydantic import Field

from gamestash.models import CamelModel, GameType


class PlatformVersion(CamelModel):
    platform_name: str
    platform_id: int


class PhysicalLocationGroup(CamelModel):
    """Every platform version of a game at one (location, sublocation)."""

    parent_location_id: str
    parent_location_name: str = ""
    parent_location_type: str = ""
    parent_location_bg_color: str = ""
    sublocation_id: str
    sublocation_name: str = ""
    sublocation_type: str = ""
    platform_versions: list[PlatformVersion] = Field(default_factory=list)


class DigitalLocationGroup(CamelModel):
    """Every platform version of a game at one digital location."""

    digital_location_id: str
    digital_location_name: str = ""
    monthly_cost: float = 0.0
    platform_versions: list[PlatformVersion] = Field(default_factory=list)


class LibraryBFFItem(CamelModel):
    id: int
    name: str
    cover_url: str = ""
    first_release_date: int | None = None
    rating: float | None = None
    theme_names: list[str] = Field(default_factory=list)
    is_favorite: bool = False
    is_in_wishlist: bool = False
    game_type: GameType = Field(default_factory=GameType)
    created_at: datetime | None = None
    total_physical_versions: int = 0
    total_digital_versions: int = 0
    physical_locations: list[PhysicalLocationGroup] = Field(default_factory=list)
    digital_locations: list[DigitalLocationGroup] = Field(default_factory=list)


class LibraryBFFResponse(CamelModel):
    library_items: list[LibraryBFFItem] = Field(default_factory=list)
    recently_added: list[LibraryBFFItem] = Field(default_factory=list)

    def contains_game(self, game_id: int) -> bool:
        return any(item.id == game_id for item in self.library_items)


class MapCoordinates(CamelModel):
    coords: str = ""
    google_maps_link: str = ""


class PhysicalLocationSummary(CamelModel):
    id: str
    name: str
    label: str = ""
    location_type: str = ""
    bg_color: str = ""
    map_coordinates: MapCoordinates = Field(default_factory=MapCoordinates)
    sublocation_count: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None


class SublocationSummary(CamelModel):
    id: str
    name: str
    location_type: str = ""
    stored_items: int = 0
    parent_location_id: str
    parent_location_name: str = ""
    parent_location_type: str = ""
    parent_location_bg_color: str = ""
    created_at: datetime | None = None
    updated_at: datetime | None = None


class PhysicalLocationsBFFResponse(CamelModel):
    physical_locations: list[PhysicalLocationSummary] = Field(default_factory=list)
    sublocations: list[SublocationSummary] = Field(default_factory=list)


class StoredGame(CamelModel):
    id: int
    name: str
    platform: str = ""
    is_unique_copy: bool = False
    has_physical_copy: bool = False


class DigitalLocationSummary(CamelModel):
    id: str
    name: str
    is_subscription: bool = False
    is_active: bool = True
    url: str = ""
    payment_method: str = ""
    monthly_cost: float = 0.0
    billing_cycle: str = ""
    cost_per_cycle: float = 0.0
    next_payment_date: datetime | None = None
    item_count: int = 0
    stored_games: list[StoredGame] = Field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None


class DigitalLocationsBFFResponse(CamelModel):
    digital_locations: list[DigitalLocationSummary] = Field(default_factory=list)


class StatCard(CamelModel):
    title: str
    icon: str
    value: float
    secondary_value: float | None = None
    last_updated: datetime


class PlatformCount(CamelModel):
    platform: str
    item_count: int


class DashboardDigitalLocation(CamelModel):
    id: str
    name: str
    is_active: bool = True
    billing_cycle: str = ""
    monthly_fee: float = 0.0
    stored_items: int = 0


class DashboardSublocation(CamelModel):
    id: str
    name: str
    location_type: str = ""
    parent_location_id: str
    parent_location_name: str = ""
    stored_items: int = 0


class DashboardBFFResponse(CamelModel):
    game_stats: StatCard
    subscription_stats: StatCard
    digital_location_stats: StatCard
    physical_location_stats: StatCard
    subscription_total: float = 0.0
    new_items_this_month: int = 0
    platform_list: list[PlatformCount] = Field(default_factory=list)
    digital_locations: list[DashboardDigitalLocation] = Field(default_factory=list)
    sublocations: list[DashboardSublocation] = Field(default_factory=list)
