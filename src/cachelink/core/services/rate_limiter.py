"""Per-key rate limiter."""

from datetime import timedelta

from cachelink.core.interfaces.clock import IClock


class RateLimiter:
    """Tracks the last backend round-trip per key.

    A key is throttled while less than ``min_interval`` has passed since
    its last recorded query. Only real backend round-trips are recorded;
    cache hits never are.
    """

    def __init__(
        self,
        clock: IClock,
        min_interval: timedelta = timedelta(seconds=1),
    ) -> None:
        self._clock = clock
        self._min_interval = min_interval.total_seconds()
        self._last_query: dict[str, float] = {}

    def should_throttle(self, key: str) -> bool:
        """Return True iff ``key`` was queried less than the interval ago."""
        last = self._last_query.get(key)
        if last is None:
            return False
        return self._clock.now() - last < self._min_interval

    def record(self, key: str) -> None:
        """Stamp the current time as the last query time of ``key``."""
        self._last_query[key] = self._clock.now()

    def forget(self, key: str) -> None:
        """Drop the record of ``key``."""
        self._last_query.pop(key, None)

    def clear(self) -> None:
        """Drop every record."""
        self._last_query.clear()

    @property
    def last_query_times(self) -> dict[str, float]:
        """Copy of the ``key -> last query time`` table."""
        return dict(self._last_query)

    def __len__(self) -> int:
        return len(self._last_query)
