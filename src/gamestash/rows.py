"""Flat join rows handed over by the DB adapters.

Every bundle is already scoped to a single user. Row order is the query's
order and is preserved by the aggregation functions.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True, slots=True)
class GameRow:
    """One owned game."""

    id: int
    name: str
    created_at: datetime
    cover_url: str = ""
    first_release_date: int | None = None
    rating: float | None = None
    theme_names: tuple[str, ...] = ()
    is_favorite: bool = False
    is_in_wishlist: bool = False
    game_type_display: str = ""
    game_type_normalized: str = ""


@dataclass(frozen=True, slots=True)
class PhysicalCopyRow:
    """game x platform x (physical location, sublocation)."""

    game_id: int
    platform_id: int
    platform_name: str
    parent_location_id: str | None
    sublocation_id: str | None
    parent_location_name: str = ""
    parent_location_type: str = ""
    parent_location_bg_color: str = ""
    sublocation_name: str = ""
    sublocation_type: str = ""


@dataclass(frozen=True, slots=True)
class DigitalCopyRow:
    """game x platform x digital location, with the location's billing."""

    game_id: int
    platform_id: int
    platform_name: str
    digital_location_id: str | None
    digital_location_name: str = ""
    billing_cycle: str = ""
    cost_per_cycle: float = 0.0
    is_active: bool = True


@dataclass(frozen=True, slots=True)
class PhysicalLocationRow:
    id: str
    name: str
    label: str = ""
    location_type: str = ""
    map_coordinates: str = ""
    bg_color: str = ""
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass(frozen=True, slots=True)
class SublocationRow:
    id: str
    physical_location_id: str
    name: str
    location_type: str = ""
    stored_items: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass(frozen=True, slots=True)
class DigitalLocationRow:
    id: str
    name: str
    is_subscription: bool = False
    is_active: bool = True
    url: str = ""
    payment_method: str = ""
    billing_cycle: str = ""
    cost_per_cycle: float = 0.0
    next_payment_date: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass(frozen=True, slots=True)
class DigitalGameRow:
    """A game stored in a digital location."""

    location_id: str
    game_id: int
    game_name: str
    platform_name: str = ""
    is_unique_copy: bool = False
    has_physical_copy: bool = False


@dataclass(frozen=True, slots=True)
class LibraryRows:
    games: list[GameRow] = field(default_factory=list)
    physical: list[PhysicalCopyRow] = field(default_factory=list)
    digital: list[DigitalCopyRow] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class PhysicalBFFRows:
    locations: list[PhysicalLocationRow] = field(default_factory=list)
    sublocations: list[SublocationRow] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class DigitalBFFRows:
    locations: list[DigitalLocationRow] = field(default_factory=list)
    games: list[DigitalGameRow] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class DashboardRows:
    games: list[GameRow] = field(default_factory=list)
    physical: list[PhysicalCopyRow] = field(default_factory=list)
    digital: list[DigitalCopyRow] = field(default_factory=list)
    physical_locations: list[PhysicalLocationRow] = field(default_factory=list)
    sublocations: list[SublocationRow] = field(default_factory=list)
    digital_locations: list[DigitalLocationRow] = field(default_factory=list)
