"""Cache store - read-through cache with per-entry expiry."""

import logging
from datetime import timedelta
from typing import Any

from cachelink.core.entities.cache_entry import CacheEntry
from cachelink.core.entities.cache_key import KEY_SEPARATOR, resource_prefix
from cachelink.core.interfaces.cache_backend import ICacheBackend
from cachelink.core.interfaces.clock import IClock

logger = logging.getLogger(__name__)


class CacheStore:
    """Domain service holding read results with per-entry TTLs.

    Expired entries are never returned by ``get`` but stay readable
    through ``get_stale`` until they are overwritten, invalidated,
    evicted by the backend or cleared. This is what lets throttled
    reads fall back to the last known value.

    Has no network or subscription side effects.
    """

    def __init__(
        self,
        backend: ICacheBackend,
        clock: IClock,
        default_ttl: timedelta = timedelta(minutes=5),
    ) -> None:
        """Initialize the cache store.

        Args:
            backend: Storage for cache entries.
            clock: Time source for insertion and expiry checks.
            default_ttl: TTL used when ``set`` receives none.
        """
        self._backend = backend
        self._clock = clock
        self._default_ttl = default_ttl

        # Statistics
        self._hits = 0
        self._misses = 0
        self._sets = 0

    @property
    def stats(self) -> dict[str, int]:
        """Get cache statistics.

        Returns:
            Dictionary with hits, misses, sets, and total lookups.
        """
        return {
            "hits": self._hits,
            "misses": self._misses,
            "sets": self._sets,
            "total": self._hits + self._misses,
        }

    def get_entry(self, key: str) -> CacheEntry | None:
        """Return the entry for ``key`` if it is still valid.

        Args:
            key: The cache key.

        Returns:
            The valid CacheEntry, or None on a miss (absent or expired).
        """
        entry = self._backend.get(key)

        if entry is None or not entry.is_valid(self._clock.now()):
            self._misses += 1
            return None

        self._hits += 1
        logger.debug("Cache hit: %s", key)
        return entry

    def get(self, key: str) -> Any | None:
        """Return the cached value for ``key``, or None on a miss."""
        entry = self.get_entry(key)
        return entry.value if entry is not None else None

    def is_fresh(self, key: str) -> bool:
        """Check for a valid entry without counting a hit or miss."""
        entry = self._backend.get(key)
        return entry is not None and entry.is_valid(self._clock.now())

    def get_stale_entry(self, key: str) -> CacheEntry | None:
        """Return the most recent entry for ``key`` even if it has expired."""
        return self._backend.get(key)

    def get_stale(self, key: str) -> Any | None:
        """Return the most recent value for ``key`` even if it has expired."""
        entry = self.get_stale_entry(key)
        return entry.value if entry is not None else None

    def set(self, key: str, value: Any, ttl: timedelta | None = None) -> CacheEntry:
        """Store ``value`` under ``key``, replacing any previous entry.

        Args:
            key: The cache key.
            value: The value to cache.
            ttl: Optional TTL. Uses the default if not provided. A zero
                TTL stores a value that is only usable as stale fallback.

        Returns:
            The created CacheEntry.
        """
        effective_ttl = ttl if ttl is not None else self._default_ttl
        entry = CacheEntry.create(
            key=key,
            value=value,
            now=self._clock.now(),
            ttl=effective_ttl,
        )
        self._backend.set(entry)
        self._sets += 1
        return entry

    def invalidate(self, target: str) -> int:
        """Invalidate one key or every key of a resource.

        A ``target`` containing ``":"`` is an exact key. A bare name is a
        resource: every key starting with ``"<resource>:"`` is removed,
        and keys of other resources sharing a name prefix are untouched.

        Args:
            target: A cache key or a resource name.

        Returns:
            Number of entries removed.
        """
        if KEY_SEPARATOR in target:
            return 1 if self._backend.delete(target) else 0
        return self.invalidate_resource(target)

    def invalidate_resource(self, resource: str) -> int:
        """Remove every entry of ``resource``.

        Returns:
            Number of entries removed.
        """
        count = self._backend.delete_prefix(resource_prefix(resource))
        logger.info("Invalidated %d cache entries for %s", count, resource)
        return count

    def clear(self) -> None:
        """Clear all cached entries."""
        self._backend.clear()
        self._hits = 0
        self._misses = 0
        self._sets = 0

    def __len__(self) -> int:
        """Return the number of stored entries, fresh or stale."""
        return len(self._backend)
