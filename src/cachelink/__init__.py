"""cachelink - Client-side caching, subscription and batching engine.

A Python library that sits between application code and a managed
row-store backend. Reads are served from a TTL cache, concurrent
identical reads share one backend call, bursts are rate limited with a
stale-value fallback, push-change channels are deduplicated and swept
when idle, and bulk writes run in chunks with a documented
non-transactional failure policy.

Example:
    from datetime import timedelta
    from cachelink import DataAccessLayer, InMemoryDataBackend, QueryOptions

    backend = InMemoryDataBackend()

    async with DataAccessLayer(backend) as layer:
        await layer.bulk_operation("projects", "insert", [{"name": "Apollo"}])

        projects = await layer.optimized_query(
            "projects",
            {"select": "id, name"},
            QueryOptions(ttl=timedelta(minutes=1), realtime=True),
        )

        stop = layer.subscribe_to_table(
            "tasks", "board-1", lambda event: print(event.event_type)
        )
        ...
        stop()

Any backend implementing IDataBackend (fetch, subscribe, insert,
update, delete) can replace InMemoryDataBackend.
"""

from cachelink.access_layer import DataAccessLayer
from cachelink.core.entities import (
    AccessConfig,
    AccessMetrics,
    BulkOperation,
    CacheEntry,
    CacheKey,
    ChangeEvent,
    ChangeListener,
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
from cachelink.infrastructure import (
    DefaultKeyBuilder,
    InMemoryCacheBackend,
    InMemoryChannel,
    InMemoryDataBackend,
    ManualClock,
    SystemClock,
)

__version__ = "0.1.0"

__all__ = [
    # Version
    "__version__",
    # Facade
    "DataAccessLayer",
    # Core entities
    "AccessConfig",
    "QueryOptions",
    "Query",
    "CacheEntry",
    "CacheKey",
    "BulkOperation",
    "AccessMetrics",
    "ChangeEvent",
    "ChangeListener",
    "ChangeType",
    "SubscriptionHandle",
    # Exceptions
    "CacheLinkError",
    "BackendError",
    "InvalidResourceError",
    "SubscriptionTeardownError",
    "SubscriptionBackoffError",
    "BulkPartialFailure",
    "AccessLayerClosedError",
    # Core interfaces
    "ICacheBackend",
    "IKeyBuilder",
    "IDataBackend",
    "IChannel",
    "IClock",
    "ITimer",
    # Core services
    "CacheStore",
    "RateLimiter",
    "BatchScheduler",
    "SubscriptionManager",
    "QueryExecutor",
    "BulkOperationRunner",
    "PerformanceMonitor",
    # Infrastructure implementations
    "InMemoryCacheBackend",
    "DefaultKeyBuilder",
    "InMemoryDataBackend",
    "InMemoryChannel",
    "SystemClock",
    "ManualClock",
]
