"""In-memory cache backend implementation."""

from collections.abc import Iterator

from cachetools import LRUCache  # type: ignore[import-untyped]

from cachelink.core.entities.cache_entry import CacheEntry


class InMemoryCacheBackend:
    """In-memory cache backend with LRU eviction.

    Entries are kept past their TTL so that throttled reads can still be
    served the last known value; the LRU bound from cachetools keeps the
    total number of entries, fresh or stale, under ``maxsize``.
    """

    def __init__(self, maxsize: int = 1000) -> None:
        """Initialize the in-memory cache backend.

        Args:
            maxsize: Maximum number of entries in the cache.
        """
        self._maxsize = maxsize
        self._cache: LRUCache[str, CacheEntry] = LRUCache(maxsize=maxsize)

    def get(self, key: str) -> CacheEntry | None:
        """Retrieve an entry by key.

        Args:
            key: The cache key to retrieve.

        Returns:
            The stored entry, or None if not found.
        """
        result = self._cache.get(key)
        return result if isinstance(result, CacheEntry) else None

    def set(self, entry: CacheEntry) -> None:
        """Store an entry, evicting the least recently used one if full.

        Args:
            entry: The entry to store under ``entry.key``.
        """
        self._cache[entry.key] = entry

    def delete(self, key: str) -> bool:
        """Delete an entry.

        Args:
            key: The cache key to delete.

        Returns:
            True if the key existed and was deleted, False otherwise.
        """
        try:
            del self._cache[key]
            return True
        except KeyError:
            return False

    def delete_prefix(self, prefix: str) -> int:
        """Delete keys starting with ``prefix``.

        Args:
            prefix: Literal key prefix.

        Returns:
            Number of keys deleted.
        """
        keys_to_delete = [key for key in list(self._cache.keys()) if key.startswith(prefix)]

        count = 0
        for key in keys_to_delete:
            if self.delete(key):
                count += 1

        return count

    def clear(self) -> None:
        """Clear all cached entries."""
        self._cache.clear()

    def keys(self) -> Iterator[str]:
        """Iterate over a snapshot of the stored keys."""
        return iter(list(self._cache.keys()))

    def __len__(self) -> int:
        """Return the number of items in the cache."""
        return len(self._cache)

    @property
    def maxsize(self) -> int:
        """Return the maximum size of the cache."""
        return self._maxsize
