"""Two-tier caching."""

from .handler import CacheEntry, CacheHandler
from .store import DurableStore, RedisJsonStore, StoreResult

__all__ = ["CacheEntry", "CacheHandler", "DurableStore", "RedisJsonStore", "StoreResult"]
