"""Subscription and change event entities."""

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ChangeType(Enum):
    """Kind of change pushed by a backend channel."""

    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


@dataclass(frozen=True)
class ChangeEvent:
    """A single change delivered by a live channel.

    Attributes:
        event_type: What happened to the record.
        resource: The resource the record belongs to.
        record: The record after the change (None for deletes).
        old_record: The record before the change, when known.
    """

    event_type: ChangeType
    resource: str
    record: dict[str, Any] | None = None
    old_record: dict[str, Any] | None = None


ChangeListener = Callable[[ChangeEvent], None]


@dataclass
class SubscriptionHandle:
    """Bookkeeping for the one live channel of a subscription key.

    Attributes:
        key: ``"<resource>:<filter key>"``.
        channel: The live channel returned by the channel factory.
        created_at: Clock time the channel was created.
        last_touched: Clock time of the last subscribe for this key.
        listeners: Callbacks receiving the channel's events, in order.
    """

    key: str
    channel: Any
    created_at: float
    last_touched: float
    listeners: list[ChangeListener] = field(default_factory=list)

    def age(self, now: float) -> float:
        """Seconds since the channel was created."""
        return now - self.created_at

    def idle_for(self, now: float) -> float:
        """Seconds since the key was last subscribed."""
        return now - self.last_touched

    def add_listener(self, listener: ChangeListener) -> None:
        """Register a listener once."""
        if listener not in self.listeners:
            self.listeners.append(listener)

    def remove_listener(self, listener: ChangeListener) -> bool:
        """Unregister a listener.

        Returns:
            True if the listener was registered.
        """
        try:
            self.listeners.remove(listener)
            return True
        except ValueError:
            return False
