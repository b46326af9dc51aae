"""Core types for the gamestash cache layer."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from gamestash.errors import CacheUnavailableError


@dataclass(frozen=True, slots=True)
class CacheEntry:
    """A serialized value held by an in-process backend."""

    value: bytes
    expires_at: int | None  # Unix timestamp ms, None = no expiry


@dataclass(frozen=True, slots=True)
class InvalidationResult:
    """Outcome of a best-effort invalidation.

    Invalidation never fails the write that triggered it, so callers are
    free to drop this value. It is returned rather than swallowed so that
    a caller can still log or inspect the keys that could not be cleared.
    """

    invalidated: tuple[str, ...] = ()
    failures: tuple[CacheUnavailableError, ...] = ()

    @property
    def ok(self) -> bool:
        return not self.failures

    @property
    def failed_keys(self) -> tuple[str, ...]:
        return tuple(failure.key for failure in self.failures)

    def __add__(self, other: InvalidationResult) -> InvalidationResult:
        return InvalidationResult(
            invalidated=self.invalidated + other.invalidated,
            failures=self.failures + other.failures,
        )


# Duration type alias
Duration = str | int | timedelta  # "30s", "5m", "2h", "1d", milliseconds or timedelta
