"""Domain services for cachelink."""

from cachelink.core.services.batch_scheduler import (
    BatchScheduler,
    GroupExecutor,
    PendingBatchRequest,
)
from cachelink.core.services.bulk_operation_runner import BulkOperationRunner
from cachelink.core.services.cache_store import CacheStore
from cachelink.core.services.performance_monitor import PerformanceMonitor
from cachelink.core.services.query_executor import QueryExecutor
from cachelink.core.services.rate_limiter import RateLimiter
from cachelink.core.services.subscription_manager import (
    ChannelFactory,
    SubscriptionManager,
)

__all__ = [
    "CacheStore",
    "RateLimiter",
    "BatchScheduler",
    "GroupExecutor",
    "PendingBatchRequest",
    "SubscriptionManager",
    "ChannelFactory",
    "QueryExecutor",
    "BulkOperationRunner",
    "PerformanceMonitor",
]
