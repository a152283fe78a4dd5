"""Query executor - the cached, rate-limited, batched read path."""

import asyncio
import functools
import logging
from collections.abc import Mapping
from datetime import timedelta
from typing import Any

from cachelink.core.entities.access_config import AccessConfig, QueryOptions
from cachelink.core.entities.cache_key import validate_resource
from cachelink.core.entities.query import Query
from cachelink.core.entities.subscription import ChangeEvent, ChangeListener
from cachelink.core.interfaces.clock import IClock
from cachelink.core.interfaces.data_backend import IDataBackend
from cachelink.core.interfaces.key_builder import IKeyBuilder
from cachelink.core.services.batch_scheduler import BatchScheduler, PendingBatchRequest
from cachelink.core.services.cache_store import CacheStore
from cachelink.core.services.rate_limiter import RateLimiter
from cachelink.core.services.subscription_manager import SubscriptionManager

logger = logging.getLogger(__name__)


class QueryExecutor:
    """Serves reads through cache, rate limiter, batcher and subscriptions.

    The read path for one call:

    1. A valid cache entry is returned immediately.
    2. A read already in flight for the same key is joined (when
       ``coalesce_reads`` is enabled).
    3. A throttled key is served its last cached value, even expired;
       with nothing cached the read proceeds.
    4. The backend read runs directly or through the batch scheduler,
       its result is cached, and a realtime subscription invalidating
       the key is ensured when requested.

    Backend errors reach the caller unchanged; nothing is retried.
    """

    def __init__(
        self,
        backend: IDataBackend,
        cache: CacheStore,
        rate_limiter: RateLimiter,
        subscriptions: SubscriptionManager,
        key_builder: IKeyBuilder,
        clock: IClock,
        config: AccessConfig | None = None,
    ) -> None:
        """Initialize the executor.

        Args:
            backend: Source of rows and change channels.
            cache: Read-through cache.
            rate_limiter: Per-key throttle.
            subscriptions: Live channel registry used for realtime reads.
            key_builder: Builds cache and subscription keys.
            clock: Arms the batch flush timer.
            config: Access configuration. Uses defaults if not provided.
        """
        self._backend = backend
        self._cache = cache
        self._rate_limiter = rate_limiter
        self._subscriptions = subscriptions
        self._key_builder = key_builder
        self._config = config or AccessConfig()
        self._batcher = BatchScheduler(
            clock=clock,
            window=self._config.batch_window,
            group_executor=self.fetch_group,
            resource_of=key_builder.resource_of,
        )

        self._in_flight: dict[str, asyncio.Future[Any]] = {}
        self._invalidators: dict[str, ChangeListener] = {}

    @property
    def batcher(self) -> BatchScheduler:
        """The scheduler serving ``batch=True`` reads."""
        return self._batcher

    @property
    def in_flight_count(self) -> int:
        """Number of backend reads currently running."""
        return len(self._in_flight)

    async def optimized_query(
        self,
        resource: str,
        query: Query | Mapping[str, Any] | None = None,
        options: QueryOptions | None = None,
    ) -> Any:
        """Read rows of ``resource`` through the cache.

        Args:
            resource: The resource (table) name.
            query: A Query, a ``{"select", "match"}`` mapping, or None
                for every row and column.
            options: Caching, TTL, realtime and batching options.

        Returns:
            The rows returned by the backend, possibly from cache.

        Raises:
            InvalidResourceError: If ``resource`` is not a valid name.
            Exception: Whatever the backend raised, unchanged.
        """
        validate_resource(resource)
        query = Query.coerce(query)
        options = options or QueryOptions()
        key = self._key_builder.build(resource, query)

        if options.cache:
            entry = self._cache.get_entry(key)
            if entry is not None:
                return entry.value

        if self._config.coalesce_reads:
            in_flight = self._in_flight.get(key)
            if in_flight is not None:
                logger.debug("Joining in-flight read: %s", key)
                result = await asyncio.shield(in_flight)
                if options.realtime:
                    self._ensure_realtime(resource, key)
                return result

        if self._rate_limiter.should_throttle(key):
            stale = self._cache.get_stale_entry(key)
            if stale is not None:
                logger.debug("Rate limited query, serving cached value: %s", key)
                return stale.value
            logger.debug("Rate limited query with nothing cached, proceeding: %s", key)

        self._rate_limiter.record(key)

        task = asyncio.ensure_future(self._execute(resource, query, key, options))
        if self._config.coalesce_reads:
            self._in_flight[key] = task
        task.add_done_callback(functools.partial(self._forget_in_flight, key))
        return await asyncio.shield(task)

    def invalidate(self, key: str) -> None:
        """Drop the cache entry of one read key."""
        self._cache.invalidate(key)

    async def _execute(
        self,
        resource: str,
        query: Query,
        key: str,
        options: QueryOptions,
    ) -> Any:
        if options.batch:
            future = self._batcher.schedule(
                key,
                functools.partial(self._backend.fetch, resource, query),
                context=query,
            )
            result = await asyncio.shield(future)
        else:
            result = await self._backend.fetch(resource, query)

        if options.cache:
            self._cache.set(key, result, options.resolve_ttl(self._config.default_ttl))
        elif not self._cache.is_fresh(key):
            # A zero TTL keeps the value for throttle fallback only
            self._cache.set(key, result, timedelta(0))

        if options.realtime:
            self._ensure_realtime(resource, key)

        return result

    async def fetch_group(
        self,
        resource: str,
        requests: list[PendingBatchRequest],
    ) -> dict[str, Any]:
        """Serve several batched reads of one resource with one fetch.

        Fetches every row of the resource once and applies each query
        locally. Queries that cannot be applied locally (embedded
        resources, aliases) fall back to their own backend call.
        """
        queries: list[Query] = [request.context for request in requests]

        if not all(isinstance(q, Query) and q.is_locally_applicable for q in queries):
            results = await asyncio.gather(*(request.executor() for request in requests))
            return {request.key: result for request, result in zip(requests, results)}

        rows = await self._backend.fetch(resource, Query())
        return {request.key: request.context.apply(rows) for request in requests}

    def _ensure_realtime(self, resource: str, key: str) -> None:
        listener = self._invalidators.get(key)
        if listener is None:
            listener = functools.partial(self._on_change, resource, key)
            self._invalidators[key] = listener

        try:
            self._subscriptions.subscribe(
                self._key_builder.subscription_key(resource),
                functools.partial(self._backend.subscribe, resource),
                listener,
            )
        except Exception as exc:
            logger.warning("Realtime updates unavailable for %s: %s", key, exc)

    def _on_change(self, resource: str, key: str, event: ChangeEvent) -> None:
        logger.debug("Change on %s (%s), invalidating %s", resource, event.event_type.value, key)
        self._cache.invalidate(key)

        # One-shot: the next realtime read of this key registers again
        listener = self._invalidators.pop(key, None)
        if listener is not None:
            self._subscriptions.remove_listener(
                self._key_builder.subscription_key(resource), listener
            )

    def _forget_in_flight(self, key: str, task: "asyncio.Future[Any]") -> None:
        if self._in_flight.get(key) is task:
            del self._in_flight[key]
        # Mark the outcome as retrieved when every caller has gone away
        if not task.cancelled():
            task.exception()
