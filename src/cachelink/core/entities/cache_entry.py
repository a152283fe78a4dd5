"""Cache entry entity."""

from dataclasses import dataclass
from datetime import timedelta
from typing import Any


@dataclass(frozen=True)
class CacheEntry:
    """Immutable cache entry value object.

    Represents a cached read result with the clock time it was stored
    and its time-to-live. Timestamps come from the layer's clock, in
    seconds.
    """

    key: str
    value: Any
    created_at: float
    ttl: timedelta

    @property
    def expires_at(self) -> float:
        """Calculate expiration time.

        Returns:
            The clock time at which this entry stops being valid.
        """
        return self.created_at + self.ttl.total_seconds()

    def is_valid(self, now: float) -> bool:
        """Check whether the entry may still be served as a cache hit.

        Args:
            now: The current clock time in seconds.

        Returns:
            True while ``now - created_at < ttl``.
        """
        return now - self.created_at < self.ttl.total_seconds()

    def age(self, now: float) -> float:
        """Return seconds elapsed since the entry was stored."""
        return now - self.created_at

    @classmethod
    def create(
        cls,
        key: str,
        value: Any,
        now: float,
        ttl: timedelta,
    ) -> "CacheEntry":
        """Factory method to create a new cache entry.

        Args:
            key: The cache key.
            value: The value to cache.
            now: The current clock time in seconds.
            ttl: Time-to-live.

        Returns:
            A new CacheEntry instance.
        """
        return cls(key=key, value=value, created_at=now, ttl=ttl)
