"""Durable JSON store backing the cache.

Store operations never raise: failures come back as a ``StoreResult`` with
``ok=False`` so the cache handler decides how to degrade.
"""

from dataclasses import dataclass
from typing import Any, Generic, Protocol, TypeVar

import redis.asyncio as redis
from redis.exceptions import RedisError

from changeloghub.logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

# Redis TTL sentinels
TTL_NO_EXPIRY = -1
TTL_MISSING_KEY = -2


@dataclass(frozen=True)
class StoreResult(Generic[T]):
    """Outcome of a durable store call."""

    ok: bool
    value: T | None = None
    error: str | None = None

    @classmethod
    def success(cls, value: T | None = None) -> "StoreResult[T]":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, error: BaseException | str) -> "StoreResult[T]":
        return cls(ok=False, error=str(error))


class DurableStore(Protocol):
    """JSON document store with key expiry."""

    async def json_get(self, key: str) -> StoreResult[Any]: ...

    async def json_set(self, key: str, value: Any) -> StoreResult[bool]: ...  # noqa: ANN401

    async def expire(self, key: str, ttl_seconds: int) -> StoreResult[bool]: ...

    async def ttl(self, key: str) -> StoreResult[int]: ...

    async def exists(self, key: str) -> StoreResult[bool]: ...

    async def delete(self, key: str) -> StoreResult[int]: ...


class RedisJsonStore:
    """DurableStore implementation over Redis JSON commands."""

    def __init__(self, client: redis.Redis) -> None:
        self._redis = client

    @classmethod
    def from_url(cls, url: str) -> "RedisJsonStore":
        return cls(redis.Redis.from_url(url, decode_responses=True))

    async def json_get(self, key: str) -> StoreResult[Any]:
        try:
            return StoreResult.success(await self._redis.json().get(key))
        except RedisError as e:
            return StoreResult.failure(e)

    async def json_set(self, key: str, value: Any) -> StoreResult[bool]:  # noqa: ANN401
        try:
            return StoreResult.success(bool(await self._redis.json().set(key, "$", value)))
        except RedisError as e:
            return StoreResult.failure(e)

    async def expire(self, key: str, ttl_seconds: int) -> StoreResult[bool]:
        try:
            return StoreResult.success(bool(await self._redis.expire(key, ttl_seconds)))
        except RedisError as e:
            return StoreResult.failure(e)

    async def ttl(self, key: str) -> StoreResult[int]:
        try:
            return StoreResult.success(int(await self._redis.ttl(key)))
        except RedisError as e:
            return StoreResult.failure(e)

    async def exists(self, key: str) -> StoreResult[bool]:
        try:
            return StoreResult.success(await self._redis.exists(key) == 1)
        except RedisError as e:
            return StoreResult.failure(e)

    async def delete(self, key: str) -> StoreResult[int]:
        try:
            return StoreResult.success(int(await self._redis.delete(key)))
        except RedisError as e:
            return StoreResult.failure(e)

    async def close(self) -> None:
        await self._redis.aclose()
        logger.info("Redis connection closed")
