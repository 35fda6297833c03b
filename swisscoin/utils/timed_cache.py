"""
Time-bounded caches with an injected clock.

A cached value is valid while `now - fetched_at < ttl`. A single TimedValue
is never evicted; callers check validity and invalidate explicitly on refresh.
KeyedTimedCache drops expired keys whenever it is read or written.
"""

import time
from typing import Callable, Dict, Generic, Hashable, Optional, TypeVar

T = TypeVar("T")
Clock = Callable[[], float]


class TimedValue(Generic[T]):
    """A single cached value and the time it was fetched."""

    def __init__(self, ttl_seconds: float, clock: Clock = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self.clock = clock
        self.value: Optional[T] = None
        self.fetched_at: Optional[float] = None

    @property
    def is_valid(self) -> bool:
        if self.fetched_at is None:
            return False
        return self.clock() - self.fetched_at < self.ttl_seconds

    def get(self) -> Optional[T]:
        return self.value if self.is_valid else None

    def set(self, value: T) -> None:
        self.value = value
        self.fetched_at = self.clock()

    def invalidate(self) -> None:
        self.value = None
        self.fetched_at = None


class KeyedTimedCache(Generic[T]):
    """One TimedValue per key, sharing a ttl and clock."""

    def __init__(self, ttl_seconds: float, clock: Clock = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self.clock = clock
        self._entries: Dict[Hashable, TimedValue[T]] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, key: Hashable) -> Optional[T]:
        self._prune()
        entry = self._entries.get(key)
        return entry.get() if entry else None

    def set(self, key: Hashable, value: T) -> None:
        self._prune()
        entry = self._entries.get(key)
        if entry is None:
            entry = TimedValue(self.ttl_seconds, self.clock)
            self._entries[key] = entry
        entry.set(value)

    def invalidate(self, key: Hashable) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()

    def _prune(self) -> None:
        expired = [key for key, entry in self._entries.items() if not entry.is_valid]
        for key in expired:
            del self._entries[key]
