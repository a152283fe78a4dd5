"""Clock and timer interface."""

from collections.abc import Callable
from typing import Protocol


class ITimer(Protocol):
    """Handle of a scheduled callback."""

    def cancel(self) -> None:
        """Prevent the callback from running if it has not yet."""
        ...


class IClock(Protocol):
    """Contract for time reads and delayed callbacks.

    Every timestamp and timer in the access layer goes through a clock,
    so tests can replace real time with a manually advanced one.
    """

    def now(self) -> float:
        """Return the current time in seconds from an arbitrary origin."""
        ...

    def call_later(self, delay: float, callback: Callable[[], None]) -> ITimer:
        """Run ``callback`` after ``delay`` seconds.

        Args:
            delay: Seconds to wait.
            callback: Synchronous callable invoked once.

        Returns:
            A handle that can cancel the callback.
        """
        ...
