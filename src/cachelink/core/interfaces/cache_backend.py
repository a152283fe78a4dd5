"""Cache backend interface."""

from collections.abc import Iterator
from typing import Protocol

from cachelink.core.entities.cache_entry import CacheEntry


class ICacheBackend(Protocol):
    """Contract for cache entry storage.

    Backends store entries as-is and never evaluate expiry; CacheStore
    decides whether an entry is fresh or only usable as a stale
    fallback. Methods are synchronous so that change listeners, which
    run outside any coroutine, can invalidate entries directly.
    """

    def get(self, key: str) -> CacheEntry | None:
        """Retrieve an entry by key.

        Args:
            key: The cache key to retrieve.

        Returns:
            The stored entry, expired or not, or None if absent.
        """
        ...

    def set(self, entry: CacheEntry) -> None:
        """Store an entry under ``entry.key``, replacing any previous one.

        Args:
            entry: The entry to store.
        """
        ...

    def delete(self, key: str) -> bool:
        """Delete an entry.

        Args:
            key: The cache key to delete.

        Returns:
            True if the key existed and was deleted, False otherwise.
        """
        ...

    def delete_prefix(self, prefix: str) -> int:
        """Delete every key starting with ``prefix``.

        Args:
            prefix: Literal key prefix (no pattern syntax).

        Returns:
            Number of keys deleted.
        """
        ...

    def clear(self) -> None:
        """Remove every entry."""
        ...

    def keys(self) -> Iterator[str]:
        """Iterate over the stored keys."""
        ...

    def __len__(self) -> int:
        """Return the number of stored entries."""
        ...
