"""Digital location service: storefronts, subscriptions and payments."""

from __future__ import annotations

import uuid
from collections.abc import Callable
from datetime import datetime

import structlog

from gamestash.aggregation import build_digital_locations_bff
from gamestash.caches import Caches, utcnow
from gamestash.errors import CacheUnavailableError, SubscriptionNotFoundError
from gamestash.models import (
    DigitalLocation,
    DigitalLocationRequest,
    Payment,
    Subscription,
    SubscriptionRequest,
)
from gamestash.ports import DigitalDbAdapter
from gamestash.responses import DigitalLocationsBFFResponse
from gamestash.services.base import CachedService
from gamestash.types import InvalidationResult

logger = structlog.get_logger(__name__)


def _subscription_from_request(
    location_id: str, request: SubscriptionRequest, payment_method: str
) -> Subscription:
    return Subscription(
        location_id=location_id,
        billing_cycle=request.billing_cycle,
        cost_per_cycle=request.cost_per_cycle,
        anchor_date=request.anchor_date,
        payment_method=request.payment_method or payment_method,
    )


class DigitalService(CachedService):
    """Digital locations and everything hanging off them.

    The digital BFF view embeds each location's subscription cost and its
    stored games, and the dashboard sums subscription costs, so changes to
    subscriptions or stored games clear those views as well.
    """

    def __init__(
        self,
        db: DigitalDbAdapter,
        caches: Caches,
        *,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        super().__init__(caches, clock=clock)
        self._db = db

    # -------------------------------------------------------------------------
    # Locations
    # -------------------------------------------------------------------------

    async def get_digital_locations(self, user_id: str) -> list[DigitalLocation]:
        return await self._read_through(
            "digital",
            lookup=lambda: self._caches.digital.get_collection(user_id),
            load=lambda: self._db.get_digital_locations(user_id),
            populate=lambda items: self._caches.digital.set_collection(user_id, items),
        )

    async def get_digital_location(self, user_id: str, location_id: str) -> DigitalLocation:
        """Raises DigitalLocationNotFoundError when absent."""
        return await self._read_through(
            "digital",
            lookup=lambda: self._caches.digital.get_single(user_id, location_id),
            load=lambda: self._db.get_digital_location(user_id, location_id),
            populate=lambda item: self._caches.digital.set_single(user_id, item),
        )

    async def get_digital_locations_bff(self, user_id: str) -> DigitalLocationsBFFResponse:
        return await self._read_through(
            "digital_bff",
            lookup=lambda: self._caches.digital_bff.get(user_id),
            load=lambda: self._load_bff(user_id),
            populate=lambda view: self._caches.digital_bff.set(user_id, view),
        )

    async def _load_bff(self, user_id: str) -> DigitalLocationsBFFResponse:
        return build_digital_locations_bff(await self._db.get_digital_bff_rows(user_id))

    async def create_digital_location(
        self, user_id: str, request: DigitalLocationRequest
    ) -> DigitalLocation:
        now = self._clock()
        location = DigitalLocation(
            id=str(uuid.uuid4()),
            user_id=user_id,
            name=request.name,
            is_subscription=request.is_subscription,
            is_active=request.is_active,
            url=request.url,
            payment_method=request.payment_method,
            created_at=now,
            updated_at=now,
        )
        created = await self._db.create_digital_location(user_id, location)
        try:
            if request.is_subscription and request.subscription is not None:
                subscription = await self._db.create_subscription(
                    _subscription_from_request(
                        created.id, request.subscription, created.payment_method
                    )
                )
                created = created.model_copy(update={"subscription": subscription})
        finally:
            caches = self._caches
            result = (
                await caches.digital.invalidate_user(user_id)
                + await caches.digital_bff.invalidate(user_id)
                + await self._invalidate_dashboard(user_id)
            )
            self._report("create_digital_location", user_id, result)
        return created

    async def update_digital_location(
        self, user_id: str, location_id: str, request: DigitalLocationRequest
    ) -> DigitalLocation:
        """Raises DigitalLocationNotFoundError when absent."""
        existing = await self._db.get_digital_location(user_id, location_id)
        game_ids = await self._db.get_stored_game_ids(user_id, [location_id])
        changes = request.model_dump(exclude={"subscription"})
        changes["updated_at"] = self._clock()
        updated = await self._db.update_digital_location(
            user_id, existing.model_copy(update=changes)
        )
        try:
            subscription = await self._sync_subscription(existing, request)
            updated = updated.model_copy(update={"subscription": subscription})
        finally:
            result = await self._invalidate_location(
                user_id, location_id
            ) + await self._invalidate_library_items(user_id, game_ids)
            self._report("update_digital_location", user_id, result)
        return updated

    async def _sync_subscription(
        self, existing: DigitalLocation, request: DigitalLocationRequest
    ) -> Subscription | None:
        """Create, update or drop the subscription to match the request."""
        if request.is_subscription and request.subscription is not None:
            subscription = _subscription_from_request(
                existing.id, request.subscription, request.payment_method
            )
            if existing.subscription is None:
                return await self._db.create_subscription(subscription)
            return await self._db.update_subscription(subscription)

        if existing.subscription is not None:
            await self._db.delete_subscription(existing.id)
        return None

    async def delete_digital_locations(self, user_id: str, location_ids: list[str]) -> int:
        """Delete digital locations, returning how many were removed."""
        if not location_ids:
            return 0
        game_ids = await self._db.get_stored_game_ids(user_id, location_ids)
        deleted = await self._db.delete_digital_locations(user_id, location_ids)

        caches = self._caches
        result = InvalidationResult()
        for location_id in location_ids:
            result += await caches.digital.invalidate_single(user_id, location_id)
            result += await caches.subscriptions.invalidate(user_id, location_id)
            result += await caches.payments.invalidate(user_id, location_id)
        result += await caches.digital.invalidate_user(user_id)
        result += await caches.digital_bff.invalidate(user_id)
        result += await self._invalidate_library_items(user_id, game_ids)
        result += await self._invalidate_dashboard(user_id)
        self._report("delete_digital_locations", user_id, result)
        return deleted

    # -------------------------------------------------------------------------
    # Subscriptions
    # -------------------------------------------------------------------------

    async def get_subscription(self, user_id: str, location_id: str) -> Subscription:
        """Raises SubscriptionNotFoundError when the location has none."""
        return await self._read_through(
            "subscription",
            lookup=lambda: self._caches.subscriptions.get(user_id, location_id),
            load=lambda: self._load_subscription(user_id, location_id),
            populate=lambda sub: self._caches.subscriptions.set(user_id, location_id, sub),
        )

    async def _load_subscription(self, user_id: str, location_id: str) -> Subscription:
        subscription = await self._db.get_subscription(location_id)
        if subscription is None:
            raise SubscriptionNotFoundError(user_id, location_id)
        return subscription

    async def create_subscription(
        self, user_id: str, subscription: Subscription
    ) -> Subscription:
        created = await self._db.create_subscription(subscription)
        self._report(
            "create_subscription",
            user_id,
            await self._invalidate_location(user_id, created.location_id),
        )
        try:
            await self._caches.subscriptions.set(user_id, created.location_id, created)
        except CacheUnavailableError as exc:
            logger.warning(
                "Failed to populate cache",
                cache="subscription",
                key=exc.key,
                error=str(exc),
            )
        return created

    async def update_subscription(
        self, user_id: str, subscription: Subscription
    ) -> Subscription:
        updated = await self._db.update_subscription(subscription)
        self._report(
            "update_subscription",
            user_id,
            await self._invalidate_location(user_id, subscription.location_id),
        )
        return updated

    async def delete_subscription(self, user_id: str, location_id: str) -> None:
        await self._db.delete_subscription(location_id)
        self._report(
            "delete_subscription",
            user_id,
            await self._invalidate_location(user_id, location_id),
        )

    # -------------------------------------------------------------------------
    # Payments
    # -------------------------------------------------------------------------

    async def get_payments(self, user_id: str, location_id: str) -> list[Payment]:
        return await self._read_through(
            "payments",
            lookup=lambda: self._caches.payments.get(user_id, location_id),
            load=lambda: self._db.get_payments(location_id),
            populate=lambda items: self._caches.payments.set(user_id, location_id, items),
        )

    async def create_payment(self, user_id: str, payment: Payment) -> Payment:
        created = await self._db.create_payment(payment)
        self._report(
            "create_payment",
            user_id,
            await self._caches.payments.invalidate(user_id, payment.location_id),
        )
        return created

    # -------------------------------------------------------------------------
    # Stored games
    # -------------------------------------------------------------------------

    async def add_game(self, user_id: str, location_id: str, game_id: int) -> None:
        await self._db.add_game(user_id, location_id, game_id)
        self._report(
            "add_game",
            user_id,
            await self._invalidate_stored_games(user_id, location_id, game_id),
        )

    async def remove_game(self, user_id: str, location_id: str, game_id: int) -> None:
        await self._db.remove_game(user_id, location_id, game_id)
        self._report(
            "remove_game",
            user_id,
            await self._invalidate_stored_games(user_id, location_id, game_id),
        )

    # -------------------------------------------------------------------------
    # Cascades
    # -------------------------------------------------------------------------

    async def _invalidate_location(self, user_id: str, location_id: str) -> InvalidationResult:
        """A digital location, its subscription and every view embedding them."""
        caches = self._caches
        return (
            await caches.subscriptions.invalidate(user_id, location_id)
            + await caches.digital.invalidate_single(user_id, location_id)
            + await caches.digital.invalidate_user(user_id)
            + await caches.digital_bff.invalidate(user_id)
            + await caches.library_bff.invalidate(user_id)
            + await self._invalidate_dashboard(user_id)
        )

    async def _invalidate_stored_games(
        self, user_id: str, location_id: str, game_id: int
    ) -> InvalidationResult:
        caches = self._caches
        return (
            await caches.digital.invalidate_single(user_id, location_id)
            + await caches.digital.invalidate_user(user_id)
            + await caches.digital_bff.invalidate(user_id)
            + await self._invalidate_library_items(user_id, [game_id])
            + await self._invalidate_dashboard(user_id)
        )
