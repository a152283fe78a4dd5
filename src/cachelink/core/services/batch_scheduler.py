"""Batch scheduler - coalesces concurrent identical requests."""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from datetime import timedelta
from typing import Any

from cachelink.core.entities.cache_key import KEY_SEPARATOR
from cachelink.core.exceptions import AccessLayerClosedError
from cachelink.core.interfaces.clock import IClock, ITimer

logger = logging.getLogger(__name__)

Executor = Callable[[], Awaitable[Any]]


@dataclass
class PendingBatchRequest:
    """A request waiting for the next flush.

    Attributes:
        key: Request key; every caller of this key shares ``future``.
        resource: Resource encoded in the key, used for grouping.
        executor: Performs the request when run alone.
        future: Settled once by the flush.
        context: Opaque data for the group executor (e.g. the query).
    """

    key: str
    resource: str
    executor: Executor
    future: asyncio.Future[Any]
    context: Any = None


GroupExecutor = Callable[
    [str, list[PendingBatchRequest]],
    Awaitable[Mapping[str, Any]],
]


def _resource_from_key(key: str) -> str:
    return key.partition(KEY_SEPARATOR)[0]


class BatchScheduler:
    """Coalesces requests issued within a short flush window.

    ``schedule`` returns the pending future of a key if there is one, so
    N callers of the same key between two flushes share one execution
    and one outcome. On flush, requests are grouped by resource. A group
    holding a single key runs that key's executor. A group holding
    several keys is served by one call to ``group_executor``, which
    returns a result per key; without a group executor, each key's
    executor runs once. A failing call rejects every future it was
    meant to settle, and other groups are unaffected.

    A group executor may still issue one call per key: QueryExecutor does
    so for groups holding a selection it cannot apply locally.
    """

    def __init__(
        self,
        clock: IClock,
        window: timedelta = timedelta(milliseconds=50),
        group_executor: GroupExecutor | None = None,
        resource_of: Callable[[str], str] = _resource_from_key,
    ) -> None:
        """Initialize the scheduler.

        Args:
            clock: Arms the flush timer.
            window: Delay between the first queued request and the flush.
            group_executor: Serves a multi-key resource group in one call.
            resource_of: Extracts the resource from a request key.
        """
        self._clock = clock
        self._window = window.total_seconds()
        self._group_executor = group_executor
        self._resource_of = resource_of

        self._queue: dict[str, PendingBatchRequest] = {}
        self._timer: ITimer | None = None
        self._flush_tasks: set[asyncio.Task[None]] = set()
        self._closed = False

    @property
    def queue_size(self) -> int:
        """Number of requests waiting for the next flush."""
        return len(self._queue)

    def schedule(
        self,
        key: str,
        executor: Executor,
        context: Any = None,
    ) -> asyncio.Future[Any]:
        """Queue a request or join the pending one for ``key``.

        Must be called from inside the event loop. Cancelling the
        returned future cancels it for every caller sharing the key;
        wrap it in ``asyncio.shield`` to abandon it safely.

        Args:
            key: Request key.
            executor: Coroutine function performing the request.
            context: Passed to the group executor on the request.

        Returns:
            The future settled by the next flush.

        Raises:
            AccessLayerClosedError: If the scheduler has been closed.
        """
        if self._closed:
            raise AccessLayerClosedError("Batch scheduler is closed")

        pending = self._queue.get(key)
        if pending is not None:
            logger.debug("Joining pending batch request: %s", key)
            return pending.future

        future: asyncio.Future[Any] = asyncio.get_running_loop().create_future()
        self._queue[key] = PendingBatchRequest(
            key=key,
            resource=self._resource_of(key),
            executor=executor,
            future=future,
            context=context,
        )

        if self._timer is None:
            self._timer = self._clock.call_later(self._window, self._on_timer)

        return future

    async def flush(self) -> None:
        """Execute every queued request now."""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

        batch = list(self._queue.values())
        self._queue = {}
        if not batch:
            return

        groups: dict[str, list[PendingBatchRequest]] = {}
        for request in batch:
            groups.setdefault(request.resource, []).append(request)

        logger.debug(
            "Flushing %d batched requests in %d groups", len(batch), len(groups)
        )
        await asyncio.gather(
            *(self._flush_group(resource, requests) for resource, requests in groups.items())
        )

    def close(self) -> None:
        """Cancel the flush timer and reject every queued request."""
        self._closed = True
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

        batch = list(self._queue.values())
        self._queue = {}
        for request in batch:
            _reject(request, AccessLayerClosedError("Access layer shut down"))

    def _on_timer(self) -> None:
        self._timer = None
        task = asyncio.ensure_future(self.flush())
        self._flush_tasks.add(task)
        task.add_done_callback(self._flush_tasks.discard)

    async def _flush_group(
        self,
        resource: str,
        requests: list[PendingBatchRequest],
    ) -> None:
        if len(requests) == 1 or self._group_executor is None:
            await asyncio.gather(*(self._run_single(request) for request in requests))
            return

        try:
            results = await self._group_executor(resource, requests)
        except Exception as exc:
            logger.debug("Batched call for %s failed: %s", resource, exc)
            for request in requests:
                _reject(request, exc)
            return

        for request in requests:
            if request.key in results:
                _resolve(request, results[request.key])
            else:
                _reject(
                    request,
                    KeyError(f"Group executor returned no result for {request.key!r}"),
                )

    async def _run_single(self, request: PendingBatchRequest) -> None:
        try:
            result = await request.executor()
        except Exception as exc:
            _reject(request, exc)
            return
        _resolve(request, result)


def _resolve(request: PendingBatchRequest, result: Any) -> None:
    if not request.future.done():
        request.future.set_result(result)


def _reject(request: PendingBatchRequest, error: BaseException) -> None:
    if not request.future.done():
        request.future.set_exception(error)
