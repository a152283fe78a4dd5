"""Access layer configuration entities."""

from dataclasses import dataclass
from datetime import timedelta


@dataclass
class AccessConfig:
    """Access layer configuration.

    Holds the TTL default and the fixed internal intervals of the
    caching, rate limiting, batching and subscription components.

    Durations are ``timedelta`` values. Every interval must be positive,
    except ``subscription_error_backoff`` which may be zero to disable
    backoff.
    """

    default_ttl: timedelta = timedelta(minutes=5)
    max_cache_size: int = 1000

    # Rate limiting
    rate_limit_interval: timedelta = timedelta(seconds=1)

    # Batching
    batch_window: timedelta = timedelta(milliseconds=50)
    default_batch_size: int = 100

    # Subscriptions
    subscription_reuse_window: timedelta = timedelta(seconds=120)
    subscription_sweep_interval: timedelta = timedelta(minutes=10)
    subscription_stale_threshold: timedelta = timedelta(minutes=60)
    subscription_error_backoff: timedelta = timedelta(seconds=10)

    # Share one in-flight read between concurrent callers of the same key
    coalesce_reads: bool = True

    def __post_init__(self) -> None:
        """Validate intervals and sizes."""
        for name in (
            "default_ttl",
            "rate_limit_interval",
            "batch_window",
            "subscription_reuse_window",
            "subscription_sweep_interval",
            "subscription_stale_threshold",
        ):
            if getattr(self, name) <= timedelta(0):
                raise ValueError(f"{name} must be positive")

        if self.subscription_error_backoff < timedelta(0):
            raise ValueError("subscription_error_backoff must not be negative")
        if self.default_batch_size < 1:
            raise ValueError("default_batch_size must be at least 1")
        if self.max_cache_size < 1:
            raise ValueError("max_cache_size must be at least 1")


@dataclass(frozen=True)
class QueryOptions:
    """Per-call options for ``optimized_query``.

    Attributes:
        cache: Serve and store results through the cache.
        ttl: Cache entry lifetime. None means the configured default.
        realtime: Keep a live subscription that invalidates the entry
            whenever the resource changes.
        batch: Route the read through the batch scheduler.
    """

    cache: bool = True
    ttl: timedelta | None = None
    realtime: bool = False
    batch: bool = False

    def __post_init__(self) -> None:
        """Reject negative TTLs."""
        if self.ttl is not None and self.ttl < timedelta(0):
            raise ValueError("ttl must not be negative")

    def resolve_ttl(self, default: timedelta) -> timedelta:
        """Return the effective TTL for this call."""
        return self.ttl if self.ttl is not None else default
