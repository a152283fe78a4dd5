"""Exception hierarchy for cachelink."""

from typing import Any


class CacheLinkError(Exception):
    """Base class for errors raised by the access layer."""

    pass


class BackendError(CacheLinkError):
    """Raised by data backends when a call fails or is rejected.

    The access layer never wraps read errors: whatever the backend
    raises reaches the caller of ``optimized_query`` unchanged.
    """

    pass


class InvalidResourceError(CacheLinkError, ValueError):
    """Raised when a resource name cannot be used in a cache key."""

    pass


class SubscriptionTeardownError(CacheLinkError):
    """Raised by a channel that fails to unsubscribe.

    SubscriptionManager catches and logs it so that cleanup failures
    never block new subscriptions.
    """

    pass


class SubscriptionBackoffError(CacheLinkError):
    """Raised when a subscription is retried too soon after a failure."""

    def __init__(self, key: str, retry_in: float) -> None:
        super().__init__(
            f"Subscription {key!r} failed recently; retry in {retry_in:.1f}s"
        )
        self.key = key
        self.retry_in = retry_in


class BulkPartialFailure(CacheLinkError):
    """Raised when a chunk of a bulk write fails.

    Chunks written before the failing one stay applied; nothing is
    rolled back. ``applied`` holds the rows returned by those chunks.
    """

    def __init__(
        self,
        resource: str,
        operation: str,
        chunk_index: int,
        applied: list[Any],
        error: BaseException,
    ) -> None:
        super().__init__(
            f"Bulk {operation} on {resource!r} failed at chunk {chunk_index} "
            f"after {len(applied)} applied rows: {error}"
        )
        self.resource = resource
        self.operation = operation
        self.chunk_index = chunk_index
        self.applied = applied
        self.error = error


class AccessLayerClosedError(CacheLinkError):
    """Raised when the access layer is used after shutdown."""

    pass
