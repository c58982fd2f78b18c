"""In-process cache for computed metrics."""

import time
from collections.abc import Callable
from dataclasses import dataclass

from .models import MetricsResult, Period


CacheKey = tuple[Period, str | None]

DEFAULT_TTL_SECONDS = 300


@dataclass
class CacheEntry:
    """Last computed result for one cache key."""

    last_calculation: float = 0.0
    metrics: MetricsResult | None = None


class MetricsCache:
    """
    TTL cache keyed by (period, user_id).

    Entries live for the lifetime of the process. Concurrent writers are not
    coordinated: the last stored result wins.
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        self.ttl_seconds = ttl_seconds
        self.clock = clock
        self._entries: dict[CacheKey, CacheEntry] = {}

    @staticmethod
    def make_key(period: Period, user_id: str | None = None) -> CacheKey:
        return (period, user_id or None)

    def get(self, key: CacheKey) -> MetricsResult | None:
        """Return the cached result if it is still fresh."""
        entry = self._entries.get(key)
        if entry is None or entry.metrics is None:
            return None
        if self.clock() - entry.last_calculation >= self.ttl_seconds:
            return None
        return entry.metrics

    def set(self, key: CacheKey, metrics: MetricsResult) -> None:
        """Store a freshly computed result."""
        self._entries[key] = CacheEntry(last_calculation=self.clock(), metrics=metrics)

    def clear(self) -> None:
        """Invalidate every entry so the next read recomputes."""
        for entry in self._entries.values():
            entry.last_calculation = 0.0
            entry.metrics = None

    def entry(self, key: CacheKey) -> CacheEntry | None:
        return self._entries.get(key)

    def __len__(self) -> int:
        return len(self._entries)
