"""Domain entities for cachelink."""

from cachelink.core.entities.access_config import AccessConfig, QueryOptions
from cachelink.core.entities.bulk import BulkOperation
from cachelink.core.entities.cache_entry import CacheEntry
from cachelink.core.entities.cache_key import (
    KEY_SEPARATOR,
    CacheKey,
    resource_prefix,
    validate_resource,
)
from cachelink.core.entities.metrics import AccessMetrics
from cachelink.core.entities.query import Query
from cachelink.core.entities.subscription import (
    ChangeEvent,
    ChangeListener,
    ChangeType,
    SubscriptionHandle,
)

__all__ = [
    "AccessConfig",
    "QueryOptions",
    "Query",
    "CacheEntry",
    "CacheKey",
    "KEY_SEPARATOR",
    "resource_prefix",
    "validate_resource",
    "BulkOperation",
    "AccessMetrics",
    "ChangeEvent",
    "ChangeListener",
    "ChangeType",
    "SubscriptionHandle",
]
