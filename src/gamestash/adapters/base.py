"""Base protocol for cache backends."""

from typing import Protocol, runtime_checkable


@runtime_checkable
class CacheBackend(Protocol):
    """Async key/value backend holding serialized blobs."""

    async def get(self, key: str) -> bytes | str | None:
        """Get the blob stored at key, or None when absent or expired."""
        ...

    async def set(self, key: str, value: bytes, ttl_ms: int) -> None:
        """Store a blob, replacing any existing value, expiring after ttl_ms."""
        ...

    async def delete(self, key: str) -> None:
        """Delete a key. Deleting a missing key is not an error."""
        ...

    async def clear(self) -> None:
        """Clear all cached entries."""
        ...

    async def disconnect(self) -> None:
        """Disconnect from the storage backend."""
        ...
