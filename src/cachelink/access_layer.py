"""Data access layer - the consumer-facing facade.

Wires the cache store, rate limiter, batch scheduler, subscription
manager, query executor, bulk runner and performance monitor around one
data backend. Each instance owns its state; build one per backend and
shut it down when done.
"""

import functools
import logging
from collections.abc import Callable, Mapping, Sequence
from types import TracebackType
from typing import Any

from cachelink.core.entities.access_config import AccessConfig, QueryOptions
from cachelink.core.entities.bulk import BulkOperation
from cachelink.core.entities.metrics import AccessMetrics
from cachelink.core.entities.query import Query
from cachelink.core.entities.subscription import ChangeListener
from cachelink.core.exceptions import AccessLayerClosedError
from cachelink.core.interfaces.cache_backend import ICacheBackend
from cachelink.core.interfaces.clock import IClock
from cachelink.core.interfaces.data_backend import IDataBackend
from cachelink.core.interfaces.key_builder import IKeyBuilder
from cachelink.core.services.batch_scheduler import BatchScheduler
from cachelink.core.services.bulk_operation_runner import BulkOperationRunner
from cachelink.core.services.cache_store import CacheStore
from cachelink.core.services.performance_monitor import PerformanceMonitor
from cachelink.core.services.query_executor import QueryExecutor
from cachelink.core.services.rate_limiter import RateLimiter
from cachelink.core.services.subscription_manager import SubscriptionManager
from cachelink.infrastructure.backends.memory import InMemoryCacheBackend
from cachelink.infrastructure.clocks import SystemClock
from cachelink.infrastructure.key_builders.default import DefaultKeyBuilder

logger = logging.getLogger(__name__)


class DataAccessLayer:
    """Caching, subscription and batching engine over a data backend.

    Example:
        backend = InMemoryDataBackend()
        async with DataAccessLayer(backend) as layer:
            projects = await layer.optimized_query(
                "projects",
                {"match": {"owner_id": user_id}},
                QueryOptions(realtime=True),
            )
            await layer.bulk_operation("tasks", "insert", new_tasks)
    """

    def __init__(
        self,
        backend: IDataBackend,
        config: AccessConfig | None = None,
        clock: IClock | None = None,
        cache_backend: ICacheBackend | None = None,
        key_builder: IKeyBuilder | None = None,
    ) -> None:
        """Initialize the access layer.

        Args:
            backend: The data backend to read from and write to.
            config: Optional configuration. Uses defaults if not provided.
            clock: Time source and timer scheduler. Defaults to the
                monotonic clock of the running event loop.
            cache_backend: Cache entry storage. Defaults to an LRU-bounded
                in-memory backend of ``config.max_cache_size`` entries.
            key_builder: Cache and subscription key builder.
        """
        self._config = config or AccessConfig()
        self._clock = clock or SystemClock()
        self._backend = backend
        self._key_builder = key_builder or DefaultKeyBuilder()

        self._cache = CacheStore(
            backend=cache_backend or InMemoryCacheBackend(maxsize=self._config.max_cache_size),
            clock=self._clock,
            default_ttl=self._config.default_ttl,
        )
        self._rate_limiter = RateLimiter(
            clock=self._clock,
            min_interval=self._config.rate_limit_interval,
        )
        self._subscriptions = SubscriptionManager(
            clock=self._clock,
            reuse_window=self._config.subscription_reuse_window,
            sweep_interval=self._config.subscription_sweep_interval,
            stale_threshold=self._config.subscription_stale_threshold,
            error_backoff=self._config.subscription_error_backoff,
        )
        self._executor = QueryExecutor(
            backend=backend,
            cache=self._cache,
            rate_limiter=self._rate_limiter,
            subscriptions=self._subscriptions,
            key_builder=self._key_builder,
            clock=self._clock,
            config=self._config,
        )
        self._bulk = BulkOperationRunner(
            backend=backend,
            cache=self._cache,
            default_batch_size=self._config.default_batch_size,
        )
        self._monitor = PerformanceMonitor(clock=self._clock)
        self._closed = False

    @property
    def config(self) -> AccessConfig:
        """Get the access configuration."""
        return self._config

    @property
    def cache(self) -> CacheStore:
        """The read-through cache."""
        return self._cache

    @property
    def rate_limiter(self) -> RateLimiter:
        """The per-key query throttle."""
        return self._rate_limiter

    @property
    def subscriptions(self) -> SubscriptionManager:
        """The live channel registry."""
        return self._subscriptions

    @property
    def batcher(self) -> BatchScheduler:
        """The scheduler serving batched reads."""
        return self._executor.batcher

    @property
    def monitor(self) -> PerformanceMonitor:
        """Latency samples recorded at the caller's discretion."""
        return self._monitor

    @property
    def closed(self) -> bool:
        """Whether ``shutdown`` has been called."""
        return self._closed

    async def optimized_query(
        self,
        resource: str,
        query: Query | Mapping[str, Any] | None = None,
        options: QueryOptions | None = None,
    ) -> Any:
        """Read rows of ``resource`` through cache, throttle and batcher.

        See QueryExecutor.optimized_query.
        """
        self._ensure_open()
        return await self._executor.optimized_query(resource, query, options)

    def subscribe_to_table(
        self,
        resource: str,
        filter_key: str,
        on_change: ChangeListener,
    ) -> Callable[[], None]:
        """Listen to changes of ``resource``.

        Subscriptions with the same resource and filter key share one
        channel. Must be called from inside the event loop.

        Args:
            resource: The resource (table) name.
            filter_key: Discriminator for the channel; ``""`` shares the
                channel used by realtime reads.
            on_change: Called with every ChangeEvent.

        Returns:
            An idempotent function removing this listener. The channel is
            torn down once no listener remains on it.
        """
        self._ensure_open()
        key = self._key_builder.subscription_key(resource, filter_key)
        # A distinct wrapper per registration so each disposer removes only its own
        listener = functools.partial(on_change)

        self._subscriptions.subscribe(
            key,
            functools.partial(self._backend.subscribe, resource),
            listener,
        )

        disposed = False

        def unsubscribe() -> None:
            nonlocal disposed
            if disposed:
                return
            disposed = True
            self._subscriptions.remove_listener(key, listener)
            if self._subscriptions.listener_count(key) == 0:
                self._subscriptions.unsubscribe(key)

        return unsubscribe

    async def bulk_operation(
        self,
        resource: str,
        operation: BulkOperation | str,
        items: Sequence[Any],
        batch_size: int | None = None,
    ) -> list[Any]:
        """Insert, update or delete many rows.

        See BulkOperationRunner.bulk_operation.
        """
        self._ensure_open()
        return await self._bulk.bulk_operation(resource, operation, items, batch_size)

    def invalidate_table_cache(self, resource: str) -> int:
        """Drop every cached read of ``resource``.

        Returns:
            Number of entries removed.
        """
        return self._cache.invalidate_resource(resource)

    def get_performance_metrics(self) -> AccessMetrics:
        """Snapshot cache, subscription, batch and rate-limit counters."""
        return AccessMetrics(
            cache_size=len(self._cache),
            active_subscriptions=len(self._subscriptions),
            batch_queue_size=self._executor.batcher.queue_size,
            last_query_times=self._rate_limiter.last_query_times,
        )

    async def warm_up(self, resource: str, select: str = "id") -> bool:
        """Issue one lightweight read to open backend connections early.

        Bypasses cache and rate limiter. A failure is logged, not raised.

        Returns:
            True if the read succeeded.
        """
        self._ensure_open()
        try:
            await self._backend.fetch(resource, Query(select=select))
        except Exception as exc:
            logger.warning("Warm-up read on %s failed: %s", resource, exc)
            return False

        logger.info("Backend warmed up via %s", resource)
        return True

    def shutdown(self) -> None:
        """Tear down subscriptions and timers and drop all cached state.

        Batched requests still waiting for a flush are rejected with
        AccessLayerClosedError. Reads already running complete on their
        own. Calling it again does nothing.
        """
        if self._closed:
            return

        self._closed = True
        self._subscriptions.close()
        self._executor.batcher.close()
        self._cache.clear()
        self._rate_limiter.clear()
        logger.info("Access layer shut down")

    async def __aenter__(self) -> "DataAccessLayer":
        self._ensure_open()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.shutdown()

    def _ensure_open(self) -> None:
        if self._closed:
            raise AccessLayerClosedError("Access layer has been shut down")
