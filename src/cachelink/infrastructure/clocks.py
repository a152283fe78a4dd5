"""Clock implementations."""

import asyncio
import heapq
import itertools
import time
from collections.abc import Callable


class SystemClock:
    """Monotonic wall clock backed by the running asyncio loop.

    ``call_later`` must be called from inside the event loop.
    """

    def now(self) -> float:
        """Return ``time.monotonic()``."""
        return time.monotonic()

    def call_later(
        self,
        delay: float,
        callback: Callable[[], None],
    ) -> asyncio.TimerHandle:
        """Schedule ``callback`` on the running loop."""
        return asyncio.get_running_loop().call_later(delay, callback)


class ManualTimer:
    """Timer scheduled on a ManualClock."""

    def __init__(self, when: float, callback: Callable[[], None]) -> None:
        self.when = when
        self._callback = callback
        self.cancelled = False
        self.fired = False

    def cancel(self) -> None:
        """Prevent the callback from running."""
        self.cancelled = True

    def fire(self) -> None:
        """Run the callback unless cancelled or already run."""
        if self.cancelled or self.fired:
            return
        self.fired = True
        self._callback()


class ManualClock:
    """Deterministic clock for tests and simulations.

    Time only moves when ``advance`` is called. Timers due within the
    advanced span fire in due-time order, with ``now()`` set to each
    timer's due time while its callback runs; timers scheduled by those
    callbacks fire in the same call if they fall due before the target.

    Example:
        clock = ManualClock()
        layer = DataAccessLayer(backend, clock=clock)
        await layer.optimized_query("projects")
        clock.advance(301)  # default TTL elapsed
    """

    def __init__(self, start: float = 0.0) -> None:
        self._now = start
        self._timers: list[tuple[float, int, ManualTimer]] = []
        self._sequence = itertools.count()

    def now(self) -> float:
        """Return the simulated time."""
        return self._now

    def call_later(self, delay: float, callback: Callable[[], None]) -> ManualTimer:
        """Schedule ``callback`` ``delay`` simulated seconds from now."""
        timer = ManualTimer(self._now + max(delay, 0.0), callback)
        heapq.heappush(self._timers, (timer.when, next(self._sequence), timer))
        return timer

    def advance(self, seconds: float) -> None:
        """Move time forward and fire every timer that falls due.

        Raises:
            ValueError: If ``seconds`` is negative.
        """
        if seconds < 0:
            raise ValueError("cannot move a clock backwards")

        target = self._now + seconds
        while self._timers and self._timers[0][0] <= target:
            when, _, timer = heapq.heappop(self._timers)
            if timer.cancelled:
                continue
            self._now = max(self._now, when)
            timer.fire()
        self._now = target

    @property
    def pending_timers(self) -> int:
        """Number of scheduled timers that have not fired or been cancelled."""
        return sum(
            1 for _, _, timer in self._timers if not (timer.cancelled or timer.fired)
        )
