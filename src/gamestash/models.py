"""Domain entities as seen by the cache layer.

These are the values cached per user or per entity. They serialize to
JSON with camelCase keys, matching what the API hands to the client.
"""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from gamestash.billing import monthly_cost


class CamelModel(BaseModel):
    """Base model with camelCase JSON aliases."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


LocationType = Literal["physical", "digital"]


class GameType(CamelModel):
    display_text: str = ""
    normalized_text: str = ""


class HeldCopy(CamelModel):
    """One (platform, location) pair a game is held in."""

    platform_id: int
    platform_name: str
    location_type: LocationType
    location_id: str
    location_name: str = ""
    # Physical copies sit in a sublocation; this is its physical location.
    parent_location_id: str | None = None


class LibraryItem(CamelModel):
    id: int
    name: str
    cover_url: str = ""
    first_release_date: int | None = None
    rating: float | None = None
    theme_names: list[str] = Field(default_factory=list)
    is_favorite: bool = False
    is_in_wishlist: bool = False
    game_type: GameType = Field(default_factory=GameType)
    copies: list[HeldCopy] = Field(default_factory=list)
    created_at: datetime | None = None

    def physical_copies(self) -> list[HeldCopy]:
        return [c for c in self.copies if c.location_type == "physical"]

    def digital_copies(self) -> list[HeldCopy]:
        return [c for c in self.copies if c.location_type == "digital"]


class GameVersion(CamelModel):
    """A platform version of a library item, used for partial deletes."""

    platform_id: int
    location_type: LocationType


class Sublocation(CamelModel):
    id: str
    user_id: str
    physical_location_id: str
    name: str
    location_type: str = ""
    stored_items: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None


class PhysicalLocation(CamelModel):
    id: str
    user_id: str
    name: str
    label: str = ""
    location_type: str = ""
    map_coordinates: str = ""
    bg_color: str = ""
    sublocations: list[Sublocation] = Field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None


class NewSublocation(CamelModel):
    physical_location_id: str
    name: str
    location_type: str = ""


class SublocationUpdate(CamelModel):
    name: str | None = None
    location_type: str | None = None


class Subscription(CamelModel):
    location_id: str
    billing_cycle: str
    cost_per_cycle: float
    anchor_date: datetime | None = None
    next_payment_date: datetime | None = None
    payment_method: str = ""

    @property
    def monthly_cost(self) -> float:
        return monthly_cost(self.billing_cycle, self.cost_per_cycle)


class Payment(CamelModel):
    id: str
    location_id: str
    amount: float
    payment_date: datetime
    payment_method: str = ""
    transaction_id: str | None = None


class DigitalLocation(CamelModel):
    id: str
    user_id: str
    name: str
    is_subscription: bool = False
    is_active: bool = True
    url: str = ""
    payment_method: str = ""
    subscription: Subscription | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class SubscriptionRequest(CamelModel):
    billing_cycle: str
    cost_per_cycle: float
    anchor_date: datetime | None = None
    payment_method: str = ""


class DigitalLocationRequest(CamelModel):
    name: str
    is_subscription: bool = False
    is_active: bool = True
    url: str = ""
    payment_method: str = ""
    subscription: SubscriptionRequest | None = None
