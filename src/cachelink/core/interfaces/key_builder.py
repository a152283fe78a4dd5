"""Key builder interface."""

from typing import Protocol

from cachelink.core.entities.query import Query


class IKeyBuilder(Protocol):
    """Contract for building cache and subscription keys.

    Keys must be deterministic and start with ``"<resource>:"`` so that
    resource-scoped invalidation and batch grouping can recover the
    resource from a key.
    """

    def build(self, resource: str, query: Query) -> str:
        """Build the cache key of a read.

        Args:
            resource: The resource (table) name.
            query: The row selection.

        Returns:
            A unique string key for caching the read result.
        """
        ...

    def subscription_key(self, resource: str, filter_key: str = "") -> str:
        """Build the key identifying one live channel.

        Args:
            resource: The resource (table) name.
            filter_key: Caller-chosen discriminator; empty for the whole
                resource.

        Returns:
            The subscription key.
        """
        ...

    def resource_of(self, key: str) -> str:
        """Return the resource encoded in a key built by this builder."""
        ...
