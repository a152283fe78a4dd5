"""Core domain layer for cachelink."""

from cachelink.core.entities import (
    AccessConfig,
    AccessMetrics,
    BulkOperation,
    CacheEntry,
    CacheKey,
    ChangeEvent,
    ChangeType,
    Query,
    QueryOptions,
    SubscriptionHandle,
)
from cachelink.core.exceptions import (
    AccessLayerClosedError,
    BackendError,
    BulkPartialFailure,
    CacheLinkError,
    InvalidResourceError,
    SubscriptionBackoffError,
    SubscriptionTeardownError,
)
from cachelink.core.interfaces import (
    ICacheBackend,
    IChannel,
    IClock,
    IDataBackend,
    IKeyBuilder,
    ITimer,
)
from cachelink.core.services import (
    BatchScheduler,
    BulkOperationRunner,
    CacheStore,
    PerformanceMonitor,
    QueryExecutor,
    RateLimiter,
    SubscriptionManager,
)

__all__ = [
    # Entities
    "AccessConfig",
    "AccessMetrics",
    "BulkOperation",
    "CacheEntry",
    "CacheKey",
    "ChangeEvent",
    "ChangeType",
    "Query",
    "QueryOptions",
    "SubscriptionHandle",
    # Exceptions
    "CacheLinkError",
    "BackendError",
    "InvalidResourceError",
    "SubscriptionTeardownError",
    "SubscriptionBackoffError",
    "BulkPartialFailure",
    "AccessLayerClosedError",
    # Interfaces
    "ICacheBackend",
    "IKeyBuilder",
    "IDataBackend",
    "IChannel",
    "IClock",
    "ITimer",
    # Services
    "CacheStore",
    "RateLimiter",
    "BatchScheduler",
    "SubscriptionManager",
    "QueryExecutor",
    "BulkOperationRunner",
    "PerformanceMonitor",
]
