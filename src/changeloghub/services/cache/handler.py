"""Two-tier cache: an in-process mirror over a durable JSON store."""

import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from changeloghub.logger import get_logger

from .store import TTL_MISSING_KEY, DurableStore

logger = get_logger(__name__)

# Allowed drift between the mirror's expiry and the durable TTL, in milliseconds
TTL_DRIFT_TOLERANCE_MS = 1000


@dataclass
class CacheEntry:
    """Mirrored value with its absolute expiry (epoch milliseconds, None = never)."""

    value: Any
    expires_at: int | None

    def is_expired(self, now_ms: int) -> bool:
        return self.expires_at is not None and self.expires_at < now_ms


class CacheHandler:
    """Key/value cache with TTL semantics.

    In development mode the in-process mirror is the only store. In production
    the durable store is authoritative and the mirror is a latency optimization
    reconciled lazily on read.
    """

    def __init__(
        self,
        store: DurableStore | None,
        is_dev: bool,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """
        Initialize the cache handler.

        Args:
            store: Durable store; may be None only in development mode
            is_dev: Whether the mirror is the only store
            clock: Time source in seconds, overridable for tests
        """
        if not is_dev and store is None:
            raise ValueError("A durable store is required in production mode")
        self._store = store
        self._is_dev = is_dev
        self._clock = clock
        self._mirror: dict[str, CacheEntry] = {}

    @property
    def is_dev(self) -> bool:
        return self._is_dev

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)

    def _expires_at(self, ttl_seconds: int | None) -> int | None:
        return self._now_ms() + ttl_seconds * 1000 if ttl_seconds else None

    async def get(self, key: str) -> Any | None:  # noqa: ANN401
        """Get a value from the cache.

        Args:
            key: Cache key

        Returns:
            The cached value, or None when absent, expired or unreachable
        """
        if self._is_dev:
            entry = self._mirror.get(key)
            if entry is None:
                logger.debug("Cache miss", key=key)
                return None
            if entry.is_expired(self._now_ms()):
                logger.debug("Cache entry expired, purging", key=key)
                del self._mirror[key]
                return None
            return entry.value

        assert self._store is not None

        entry = self._mirror.get(key)
        if entry is not None:
            if entry.is_expired(self._now_ms()):
                del self._mirror[key]
            elif await self._mirror_is_consistent(key, entry):
                return entry.value
            else:
                logger.debug("Mirror entry drifted from durable TTL, evicting", key=key)
                self._mirror.pop(key, None)

        result = await self._store.json_get(key)
        if not result.ok:
            logger.error("Durable store get failed", key=key, error=result.error)
            return None
        if result.value is None:
            return None

        ttl_result = await self._store.ttl(key)
        if not ttl_result.ok or ttl_result.value is None or ttl_result.value == TTL_MISSING_KEY:
            # Unknown expiry: serve the value without mirroring it
            logger.warning("Durable store TTL lookup failed, not mirroring", key=key, error=ttl_result.error)
            return result.value

        ttl = ttl_result.value
        expires_at = self._now_ms() + ttl * 1000 if ttl > 0 else None
        self._mirror[key] = CacheEntry(value=result.value, expires_at=expires_at)
        return result.value

    async def _mirror_is_consistent(self, key: str, entry: CacheEntry) -> bool:
        """Compare a mirrored expiry with the durable store's live TTL."""
        assert self._store is not None
        result = await self._store.ttl(key)
        if not result.ok or result.value is None:
            # Store unreachable: the locally unexpired mirror is the best answer we have
            logger.warning("Durable store TTL check failed, serving mirror", key=key, error=result.error)
            return True

        ttl = result.value
        if ttl == TTL_MISSING_KEY:
            return False
        if ttl < 0:
            return entry.expires_at is None
        if entry.expires_at is None:
            return False
        durable_expires_at = self._now_ms() + ttl * 1000
        return abs(durable_expires_at - entry.expires_at) <= TTL_DRIFT_TOLERANCE_MS

    async def set(self, key: str, value: Any, ttl_seconds: int | None = None) -> None:  # noqa: ANN401
        """Set a value in the cache.

        Durable store failures are logged, never raised.

        Args:
            key: Cache key
            value: JSON-serializable value
            ttl_seconds: Optional time to live
        """
        entry = CacheEntry(value=value, expires_at=self._expires_at(ttl_seconds))

        if self._is_dev:
            logger.debug("Setting in-memory cache entry", key=key, ttl=ttl_seconds)
            self._mirror[key] = entry
            return

        assert self._store is not None
        result = await self._store.json_set(key, value)
        if result.ok and ttl_seconds:
            result = await self._store.expire(key, ttl_seconds)
        if not result.ok:
            logger.error("Durable store set failed", key=key, error=result.error)

        self._mirror[key] = entry

    async def delete(self, key: str) -> bool:
        """Delete a value from the cache.

        Args:
            key: Cache key

        Returns:
            Whether an entry was actually deleted (durable store in production)
        """
        if self._is_dev:
            return self._mirror.pop(key, None) is not None

        assert self._store is not None
        result = await self._store.delete(key)
        self._mirror.pop(key, None)
        if not result.ok:
            logger.error("Durable store delete failed", key=key, error=result.error)
            return False
        return bool(result.value)

    async def exists(self, key: str) -> bool:
        """Check whether a key is cached."""
        if self._is_dev:
            entry = self._mirror.get(key)
            return entry is not None and not entry.is_expired(self._now_ms())

        assert self._store is not None
        result = await self._store.exists(key)
        if not result.ok:
            logger.error("Durable store exists failed", key=key, error=result.error)
            return False
        return bool(result.value)

    def clear_mirror(self) -> int:
        """Drop every mirrored entry.

        Returns:
            Number of entries cleared
        """
        count = len(self._mirror)
        self._mirror.clear()
        logger.info("Cleared mirrored cache entries", count=count)
        return count
