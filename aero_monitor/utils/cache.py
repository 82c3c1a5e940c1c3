"""
Simple in-memory cache with per-entry TTL.
"""

import time
from typing import Callable, Dict, Generic, Hashable, Optional, Tuple, TypeVar

T = TypeVar("T")


class TTLCache(Generic[T]):
    """
    Key/value store whose entries expire ``ttl`` seconds after insertion.

    Expiry is lazy: an expired entry is evicted when it is read. ``prune()``
    sweeps every expired entry at once. Not safe for concurrent mutation.
    """

    def __init__(self, ttl: float, clock: Callable[[], float] = time.monotonic):
        if ttl < 0:
            raise ValueError("ttl must be >= 0")
        self.ttl = ttl
        self._clock = clock
        self._data: Dict[Hashable, Tuple[T, float]] = {}

    def get(self, key: Hashable) -> Optional[T]:
        entry = self._data.get(key)
        if entry is None:
            return None

        value, expiry = entry
        if self._clock() > expiry:
            del self._data[key]
            return None

        return value

    def set(self, key: Hashable, value: T) -> None:
        self._data[key] = (value, self._clock() + self.ttl)

    def has(self, key: Hashable) -> bool:
        return self.get(key) is not None

    __contains__ = has

    def clear(self) -> None:
        self._data.clear()

    def prune(self) -> int:
        """Drop expired entries and return how many were removed."""
        now = self._clock()
        expired = [key for key, (_, expiry) in self._data.items() if now > expiry]
        for key in expired:
            del self._data[key]
        return len(expired)

    def __len__(self) -> int:
        return len(self._data)
