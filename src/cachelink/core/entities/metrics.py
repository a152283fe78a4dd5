"""Diagnostics snapshot entity."""

from dataclasses import asdict, dataclass, field
from typing import Any


@dataclass(frozen=True)
class AccessMetrics:
    """Point-in-time counters of an access layer instance."""

    cache_size: int
    active_subscriptions: int
    batch_queue_size: int
    last_query_times: dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Return the snapshot as a plain dictionary."""
        return asdict(self)
