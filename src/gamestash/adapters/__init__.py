"""Cache backends for gamestash (async only)."""

from gamestash.adapters.base import CacheBackend
from gamestash.adapters.memory import MemoryBackend
from gamestash.adapters.redis import RedisBackend

__all__ = [
    "CacheBackend",
    "MemoryBackend",
    "RedisBackend",
]
