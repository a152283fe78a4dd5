"""Cache key value object."""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from cachelink.core.exceptions import InvalidResourceError

KEY_SEPARATOR = ":"


def validate_resource(resource: str) -> str:
    """Check that a resource name can prefix a cache key.

    Resource names may not be empty or contain the key separator, which
    keeps ``"<resource>:"`` prefix matching exact.

    Raises:
        InvalidResourceError: If the name is unusable.
    """
    if not isinstance(resource, str) or not resource:
        raise InvalidResourceError("resource name must be a non-empty string")
    if KEY_SEPARATOR in resource:
        raise InvalidResourceError(
            f"resource name {resource!r} must not contain {KEY_SEPARATOR!r}"
        )
    return resource


def resource_prefix(resource: str) -> str:
    """Return the key prefix shared by every key of ``resource``."""
    return f"{validate_resource(resource)}{KEY_SEPARATOR}"


@dataclass(frozen=True)
class CacheKey:
    """Immutable cache key value object.

    A key is the resource name and a signature of the query, joined by
    ``":"``. The resource part never contains the separator.
    """

    resource: str
    signature: str

    def __post_init__(self) -> None:
        validate_resource(self.resource)

    def __str__(self) -> str:
        """Return the full cache key string."""
        return f"{self.resource}{KEY_SEPARATOR}{self.signature}"

    @classmethod
    def parse(cls, key: str) -> "CacheKey":
        """Split a key string back into its components.

        Args:
            key: A key produced by ``str(CacheKey(...))``.

        Returns:
            The parsed CacheKey.

        Raises:
            InvalidResourceError: If the key has no resource part.
        """
        resource, sep, signature = key.partition(KEY_SEPARATOR)
        if not sep:
            raise InvalidResourceError(f"{key!r} is not a resource-scoped key")
        return cls(resource=resource, signature=signature)

    @classmethod
    def from_components(
        cls,
        resource: str,
        query: Any,
        hash_func: Callable[[Any], str] | None = None,
    ) -> "CacheKey":
        """Create a CacheKey from a resource and a query description.

        Args:
            resource: Resource (table) name.
            query: A JSON-serializable description of the query.
            hash_func: Optional custom hash function.

        Returns:
            A new CacheKey instance.
        """
        from cachelink.utils.hashing import hash_value

        hasher = hash_func or hash_value
        return cls(resource=resource, signature=hasher(query))
