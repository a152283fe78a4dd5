"""Default key builder implementation."""

from cachelink.core.entities.cache_key import (
    KEY_SEPARATOR,
    CacheKey,
    validate_resource,
)
from cachelink.core.entities.query import Query


class DefaultKeyBuilder:
    """Default key builder using a hash of the normalized query.

    Cache keys look like ``"projects:3f2a9c0d1b7e4a55"``: the resource
    name, then the first 16 hex chars of the SHA-256 of the query's
    sorted-key JSON form.
    """

    def build(self, resource: str, query: Query) -> str:
        """Build the cache key of a read.

        Args:
            resource: The resource (table) name.
            query: The row selection.

        Returns:
            ``"<resource>:<signature>"``.
        """
        return str(CacheKey.from_components(resource, query.to_signature_data()))

    def subscription_key(self, resource: str, filter_key: str = "") -> str:
        """Build the key identifying one live channel.

        Args:
            resource: The resource (table) name.
            filter_key: Caller-chosen discriminator.

        Returns:
            ``"<resource>:<filter_key>"``.
        """
        return f"{validate_resource(resource)}{KEY_SEPARATOR}{filter_key}"

    def resource_of(self, key: str) -> str:
        """Return the resource part of a key."""
        return CacheKey.parse(key).resource
