"""Aggregation of flat join rows into BFF response trees.

Every function here is pure: rows in, new response objects out. Grouping
uses insertion-ordered dicts, so groups are emitted in the order their
first row appears and platform versions keep first-seen order. Malformed
rows (missing ids, or references to a game or location that is not part
of the same result set) are dropped with a warning instead of failing the
whole response.
"""

from __future__ import annotations

import calendar
import html
from collections.abc import Iterable
from datetime import datetime, timezone
from urllib.parse import quote_plus

import structlog

from gamestash.billing import monthly_cost
from gamestash.models import GameType
from gamestash.responses import (
    DashboardBFFResponse,
    DashboardDigitalLocation,
    DashboardSublocation,
    DigitalLocationGroup,
    DigitalLocationsBFFResponse,
    DigitalLocationSummary,
    LibraryBFFItem,
    LibraryBFFResponse,
    MapCoordinates,
    PhysicalLocationGroup,
    PhysicalLocationsBFFResponse,
    PhysicalLocationSummary,
    PlatformCount,
    PlatformVersion,
    StatCard,
    StoredGame,
    SublocationSummary,
)
from gamestash.rows import (
    DashboardRows,
    DigitalBFFRows,
    DigitalCopyRow,
    GameRow,
    LibraryRows,
    PhysicalBFFRows,
    PhysicalCopyRow,
    PhysicalLocationRow,
)

logger = structlog.get_logger(__name__)

RECENTLY_ADDED_MONTHS = 6
GOOGLE_MAPS_URL = "https://www.google.com/maps/search/?api=1&query="

__all__ = [
    "build_dashboard",
    "build_digital_locations_bff",
    "build_library_bff",
    "build_map_coordinates",
    "build_physical_locations_bff",
    "group_digital_locations",
    "group_physical_locations",
    "monthly_cost",
    "recently_added_cutoff",
    "subtract_months",
]


# -----------------------------------------------------------------------------
# Dates
# -----------------------------------------------------------------------------


def subtract_months(moment: datetime, months: int) -> datetime:
    """Step back whole calendar months, clamping to the target month's end.

    2024-08-31 minus 6 months is 2024-02-29.
    """
    month_index = moment.year * 12 + (moment.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def recently_added_cutoff(now: datetime) -> datetime:
    """Items created strictly after this instant count as recently added."""
    return subtract_months(now, RECENTLY_ADDED_MONTHS)


def _as_utc(moment: datetime) -> datetime:
    """Naive timestamps from the database are UTC."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def _start_of_month(now: datetime) -> datetime:
    return now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


# -----------------------------------------------------------------------------
# Library BFF
# -----------------------------------------------------------------------------


def _add_version(
    versions: list[PlatformVersion], seen: set[int], platform_id: int, platform_name: str
) -> None:
    if platform_id in seen:
        return
    seen.add(platform_id)
    versions.append(PlatformVersion(platform_name=platform_name, platform_id=platform_id))


def group_physical_locations(
    rows: Iterable[PhysicalCopyRow],
) -> list[PhysicalLocationGroup]:
    """Group one game's physical rows by (parent location, sublocation)."""
    groups: dict[tuple[str, str], PhysicalLocationGroup] = {}
    seen: dict[tuple[str, str], set[int]] = {}

    for row in rows:
        if not row.parent_location_id or not row.sublocation_id:
            logger.warning(
                "Dropping physical copy without a location",
                game_id=row.game_id,
                parent_location_id=row.parent_location_id,
                sublocation_id=row.sublocation_id,
            )
            continue

        key = (row.parent_location_id, row.sublocation_id)
        group = groups.get(key)
        if group is None:
            group = PhysicalLocationGroup(
                parent_location_id=row.parent_location_id,
                parent_location_name=row.parent_location_name,
                parent_location_type=row.parent_location_type,
                parent_location_bg_color=row.parent_location_bg_color,
                sublocation_id=row.sublocation_id,
                sublocation_name=row.sublocation_name,
                sublocation_type=row.sublocation_type,
            )
            groups[key] = group
            seen[key] = set()
        _add_version(group.platform_versions, seen[key], row.platform_id, row.platform_name)

    return list(groups.values())


def group_digital_locations(
    rows: Iterable[DigitalCopyRow],
) -> list[DigitalLocationGroup]:
    """Group one game's digital rows by digital location."""
    groups: dict[str, DigitalLocationGroup] = {}
    seen: dict[str, set[int]] = {}

    for row in rows:
        if not row.digital_location_id:
            logger.warning(
                "Dropping digital copy without a location",
                game_id=row.game_id,
            )
            continue

        key = row.digital_location_id
        group = groups.get(key)
        if group is None:
            group = DigitalLocationGroup(
                digital_location_id=key,
                digital_location_name=row.digital_location_name,
                monthly_cost=monthly_cost(row.billing_cycle, row.cost_per_cycle),
            )
            groups[key] = group
            seen[key] = set()
        _add_version(group.platform_versions, seen[key], row.platform_id, row.platform_name)

    return list(groups.values())


def _rows_by_game(rows: Iterable, game_ids: set[int], kind: str) -> dict[int, list]:
    by_game: dict[int, list] = {}
    for row in rows:
        if row.game_id not in game_ids:
            logger.warning(
                "Dropping copy row for a game outside the result set",
                kind=kind,
                game_id=row.game_id,
            )
            continue
        by_game.setdefault(row.game_id, []).append(row)
    return by_game


def _library_item(
    game: GameRow,
    physical: list[PhysicalLocationGroup],
    digital: list[DigitalLocationGroup],
) -> LibraryBFFItem:
    return LibraryBFFItem(
        id=game.id,
        name=game.name,
        cover_url=game.cover_url,
        first_release_date=game.first_release_date,
        rating=game.rating,
        theme_names=list(game.theme_names),
        is_favorite=game.is_favorite,
        is_in_wishlist=game.is_in_wishlist,
        game_type=GameType(
            display_text=game.game_type_display,
            normalized_text=game.game_type_normalized,
        ),
        created_at=game.created_at,
        total_physical_versions=sum(len(g.platform_versions) for g in physical),
        total_digital_versions=sum(len(g.platform_versions) for g in digital),
        physical_locations=physical,
        digital_locations=digital,
    )


def build_library_bff(rows: LibraryRows, *, now: datetime) -> LibraryBFFResponse:
    """Build the library view: every game with its grouped locations.

    ``recently_added`` holds the items created after ``now`` minus six
    months; the cutoff is taken once for the whole response.
    """
    cutoff = recently_added_cutoff(_as_utc(now))
    game_ids = {game.id for game in rows.games}
    physical_by_game = _rows_by_game(rows.physical, game_ids, "physical")
    digital_by_game = _rows_by_game(rows.digital, game_ids, "digital")

    library_items: list[LibraryBFFItem] = []
    recently_added: list[LibraryBFFItem] = []
    for game in rows.games:
        item = _library_item(
            game,
            group_physical_locations(physical_by_game.get(game.id, [])),
            group_digital_locations(digital_by_game.get(game.id, [])),
        )
        library_items.append(item)
        if _as_utc(game.created_at) > cutoff:
            recently_added.append(item)

    return LibraryBFFResponse(library_items=library_items, recently_added=recently_added)


# -----------------------------------------------------------------------------
# Physical locations BFF
# -----------------------------------------------------------------------------


def build_map_coordinates(coords: str) -> MapCoordinates:
    coords = coords.strip()
    if not coords:
        return MapCoordinates()
    return MapCoordinates(coords=coords, google_maps_link=GOOGLE_MAPS_URL + quote_plus(coords))


def build_physical_locations_bff(rows: PhysicalBFFRows) -> PhysicalLocationsBFFResponse:
    parents: dict[str, PhysicalLocationRow] = {loc.id: loc for loc in rows.locations}
    counts: dict[str, int] = dict.fromkeys(parents, 0)

    sublocations: list[SublocationSummary] = []
    for sub in rows.sublocations:
        parent = parents.get(sub.physical_location_id)
        if parent is None:
            logger.warning(
                "Dropping sublocation with unknown parent location",
                sublocation_id=sub.id,
                physical_location_id=sub.physical_location_id,
            )
            continue
        counts[parent.id] += 1
        sublocations.append(
            SublocationSummary(
                id=sub.id,
                name=sub.name,
                location_type=sub.location_type,
                stored_items=sub.stored_items,
                parent_location_id=parent.id,
                parent_location_name=parent.name,
                parent_location_type=parent.location_type,
                parent_location_bg_color=parent.bg_color,
                created_at=sub.created_at,
                updated_at=sub.updated_at,
            )
        )

    locations = [
        PhysicalLocationSummary(
            id=loc.id,
            name=loc.name,
            label=loc.label,
            location_type=loc.location_type,
            bg_color=loc.bg_color,
            map_coordinates=build_map_coordinates(loc.map_coordinates),
            sublocation_count=counts[loc.id],
            created_at=loc.created_at,
            updated_at=loc.updated_at,
        )
        for loc in rows.locations
    ]
    return PhysicalLocationsBFFResponse(physical_locations=locations, sublocations=sublocations)


# -----------------------------------------------------------------------------
# Digital locations BFF
# -----------------------------------------------------------------------------


def build_digital_locations_bff(rows: DigitalBFFRows) -> DigitalLocationsBFFResponse:
    games_by_location: dict[str, list[StoredGame]] = {loc.id: [] for loc in rows.locations}
    for game in rows.games:
        stored = games_by_location.get(game.location_id)
        if stored is None:
            logger.warning(
                "Dropping stored game for unknown digital location",
                location_id=game.location_id,
                game_id=game.game_id,
            )
            continue
        stored.append(
            StoredGame(
                id=game.game_id,
                name=html.unescape(game.game_name),
                platform=game.platform_name,
                is_unique_copy=game.is_unique_copy,
                has_physical_copy=game.has_physical_copy,
            )
        )

    summaries = []
    for loc in rows.locations:
        stored_games = games_by_location[loc.id]
        summaries.append(
            DigitalLocationSummary(
                id=loc.id,
                name=html.unescape(loc.name),
                is_subscription=loc.is_subscription,
                is_active=loc.is_active,
                url=loc.url,
                payment_method=loc.payment_method,
                monthly_cost=monthly_cost(loc.billing_cycle, loc.cost_per_cycle),
                billing_cycle=loc.billing_cycle,
                cost_per_cycle=loc.cost_per_cycle,
                next_payment_date=loc.next_payment_date,
                item_count=len(stored_games),
                stored_games=stored_games,
                created_at=loc.created_at,
                updated_at=loc.updated_at,
            )
        )
    return DigitalLocationsBFFResponse(digital_locations=summaries)


# -----------------------------------------------------------------------------
# Dashboard
# -----------------------------------------------------------------------------


def _platform_counts(rows: DashboardRows) -> list[PlatformCount]:
    counts: dict[str, int] = {}
    seen: set[tuple[int, str]] = set()
    copies: list[PhysicalCopyRow | DigitalCopyRow] = [*rows.physical, *rows.digital]
    for copy in copies:
        pair = (copy.game_id, copy.platform_name)
        if pair in seen:
            continue
        seen.add(pair)
        counts[copy.platform_name] = counts.get(copy.platform_name, 0) + 1
    return [PlatformCount(platform=name, item_count=n) for name, n in counts.items()]


def build_dashboard(rows: DashboardRows, *, now: datetime) -> DashboardBFFResponse:
    month_start = _start_of_month(_as_utc(now))
    new_items = sum(1 for game in rows.games if _as_utc(game.created_at) >= month_start)

    active_subscriptions = [
        loc for loc in rows.digital_locations if loc.is_subscription and loc.is_active
    ]
    subscription_total = sum(
        monthly_cost(loc.billing_cycle, loc.cost_per_cycle) for loc in active_subscriptions
    )

    stored_by_location: dict[str, set[int]] = {loc.id: set() for loc in rows.digital_locations}
    for copy in rows.digital:
        if copy.digital_location_id in stored_by_location:
            stored_by_location[copy.digital_location_id].add(copy.game_id)

    parents = {loc.id: loc for loc in rows.physical_locations}
    sublocations: list[DashboardSublocation] = []
    for sub in rows.sublocations:
        parent = parents.get(sub.physical_location_id)
        if parent is None:
            logger.warning(
                "Dropping sublocation with unknown parent location",
                sublocation_id=sub.id,
                physical_location_id=sub.physical_location_id,
            )
            continue
        sublocations.append(
            DashboardSublocation(
                id=sub.id,
                name=sub.name,
                location_type=sub.location_type,
                parent_location_id=parent.id,
                parent_location_name=parent.name,
                stored_items=sub.stored_items,
            )
        )

    return DashboardBFFResponse(
        game_stats=StatCard(
            title="Games",
            icon="games",
            value=len(rows.games),
            secondary_value=new_items,
            last_updated=now,
        ),
        subscription_stats=StatCard(
            title="Monthly Subscriptions",
            icon="subscriptions",
            value=round(subscription_total, 2),
            secondary_value=len(active_subscriptions),
            last_updated=now,
        ),
        digital_location_stats=StatCard(
            title="Digital Locations",
            icon="digital",
            value=len(rows.digital_locations),
            last_updated=now,
        ),
        physical_location_stats=StatCard(
            title="Physical Locations",
            icon="physical",
            value=len(rows.physical_locations),
            secondary_value=len(sublocations),
            last_updated=now,
        ),
        subscription_total=subscription_total,
        new_items_this_month=new_items,
        platform_list=_platform_counts(rows),
        digital_locations=[
            DashboardDigitalLocation(
                id=loc.id,
                name=html.unescape(loc.name),
                is_active=loc.is_active,
                billing_cycle=loc.billing_cycle,
                monthly_fee=monthly_cost(loc.billing_cycle, loc.cost_per_cycle),
                stored_items=len(stored_by_location[loc.id]),
            )
            for loc in rows.digital_locations
        ],
        sublocations=sublocations,
    )
