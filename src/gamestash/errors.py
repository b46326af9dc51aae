"""Exception hierarchy."""

from __future__ import annotations


class GamestashError(Exception):
    """Base class for every error raised by gamestash."""


class NotFoundError(GamestashError, LookupError):
    """An entity is absent from the database."""

    entity = "entity"

    def __init__(self, user_id: str, entity_id: str) -> None:
        self.user_id = user_id
        self.entity_id = entity_id
        super().__init__(f"{self.entity} {entity_id!r} not found for user {user_id!r}")


class GameNotFoundError(NotFoundError):
    entity = "game"


class PhysicalLocationNotFoundError(NotFoundError):
    entity = "physical location"


class SublocationNotFoundError(NotFoundError):
    entity = "sublocation"


class DigitalLocationNotFoundError(NotFoundError):
    entity = "digital location"


class SubscriptionNotFoundError(NotFoundError):
    entity = "subscription"


class CacheError(GamestashError):
    """Base class for cache layer errors."""


class CacheUnavailableError(CacheError):
    """A cache backend call failed or timed out.

    Always recoverable: reads fall through to the database and
    invalidations are reported, never raised, by the services.
    """

    def __init__(self, key: str, operation: str, reason: str = "") -> None:
        self.key = key
        self.operation = operation
        self.reason = reason
        message = f"cache {operation} failed for key {key!r}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class InvalidCacheKeyError(CacheError, ValueError):
    """A cache key is empty or malformed."""
