"""Rolling latency samples per labeled operation."""

import functools
import logging
from collections import deque
from collections.abc import Awaitable, Callable, Iterator
from contextlib import contextmanager
from typing import Any, TypeVar

from cachelink.core.interfaces.clock import IClock

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Awaitable[Any]])


class PerformanceMonitor:
    """Keeps the last few durations of each labeled operation.

    Purely observational: nothing in the access layer reads these
    numbers to make decisions.

    Example:
        stop = monitor.start_timer("load_projects")
        rows = await layer.optimized_query("projects")
        stop()
        monitor.get_average_time("load_projects")
    """

    def __init__(self, clock: IClock, max_samples: int = 10) -> None:
        """Initialize the monitor.

        Args:
            clock: Time source.
            max_samples: Samples kept per label; older ones are dropped.
        """
        self._clock = clock
        self._max_samples = max_samples
        self._samples: dict[str, deque[float]] = {}

    def start_timer(self, label: str) -> Callable[[], float]:
        """Start timing ``label``.

        Returns:
            A stop function that records the elapsed milliseconds and
            returns them.
        """
        started = self._clock.now()

        def stop() -> float:
            elapsed_ms = (self._clock.now() - started) * 1000.0
            self.record(label, elapsed_ms)
            return elapsed_ms

        return stop

    def record(self, label: str, elapsed_ms: float) -> None:
        """Add one sample for ``label``."""
        samples = self._samples.get(label)
        if samples is None:
            samples = self._samples[label] = deque(maxlen=self._max_samples)
        samples.append(elapsed_ms)
        logger.debug("%s: %.1fms", label, elapsed_ms)

    @contextmanager
    def measure(self, label: str) -> Iterator[None]:
        """Time the body of a ``with`` block, even when it raises."""
        stop = self.start_timer(label)
        try:
            yield
        finally:
            stop()

    def timed(self, label: str | None = None) -> Callable[[F], F]:
        """Decorator timing every call of an async function.

        Args:
            label: Sample label. Defaults to the function's name.
        """

        def decorator(func: F) -> F:
            name = label or func.__name__

            @functools.wraps(func)
            async def wrapper(*args: Any, **kwargs: Any) -> Any:
                with self.measure(name):
                    return await func(*args, **kwargs)

            return wrapper  # type: ignore

        return decorator

    def get_samples(self, label: str) -> list[float]:
        """Return the retained samples of ``label``, oldest first."""
        return list(self._samples.get(label, ()))

    def get_average_time(self, label: str) -> float:
        """Average of the retained samples, or 0.0 if there are none."""
        samples = self._samples.get(label)
        if not samples:
            return 0.0
        return sum(samples) / len(samples)

    def get_report(self) -> dict[str, float]:
        """Return ``{label: average milliseconds}`` for every label."""
        return {label: self.get_average_time(label) for label in self._samples}

    def reset(self) -> None:
        """Drop every sample."""
        self._samples.clear()
