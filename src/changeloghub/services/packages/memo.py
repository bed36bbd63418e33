"""Compute-once value holder."""

import asyncio
from collections.abc import Awaitable, Callable
from typing import Generic, TypeVar

T = TypeVar("T")


class CachedComputation(Generic[T]):
    """Holds the result of an expensive async computation.

    Unlike an "is the list empty" check, a computed empty result stays
    computed. The value is replaced or invalidated only on demand.
    """

    def __init__(self) -> None:
        self._value: T | None = None
        self._computed = False
        self._lock = asyncio.Lock()

    @property
    def is_computed(self) -> bool:
        return self._computed

    @property
    def value(self) -> T | None:
        return self._value

    async def get_or_compute(self, factory: Callable[[], Awaitable[T]]) -> T:
        """Return the stored value, computing it first if needed.

        Concurrent first callers share a single computation.
        """
        if self._computed:
            return self._value  # type: ignore[return-value]
        async with self._lock:
            if not self._computed:
                self.replace(await factory())
        return self._value  # type: ignore[return-value]

    def replace(self, value: T) -> None:
        self._value = value
        self._computed = True

    def invalidate(self) -> None:
        self._value = None
        self._computed = False
