"""Tests for PerformanceMonitor."""

import pytest

from cachelink import ManualClock, PerformanceMonitor


@pytest.fixture
def monitor(clock: ManualClock) -> PerformanceMonitor:
    """Create a monitor keeping three samples per label."""
    return PerformanceMonitor(clock, max_samples=3)


class TestPerformanceMonitor:
    """Tests for PerformanceMonitor."""

    def test_start_timer(self, monitor: PerformanceMonitor, clock: ManualClock) -> None:
        """The stop function records elapsed milliseconds."""
        stop = monitor.start_timer("load")
        clock.advance(0.25)

        assert stop() == pytest.approx(250.0)
        assert monitor.get_samples("load") == [pytest.approx(250.0)]

    def test_rolling_window(self, monitor: PerformanceMonitor) -> None:
        """Only the newest samples are kept."""
        for value in (10.0, 20.0, 30.0, 40.0):
            monitor.record("load", value)

        assert monitor.get_samples("load") == [20.0, 30.0, 40.0]
        assert monitor.get_average_time("load") == 30.0

    def test_average_of_unknown_label(self, monitor: PerformanceMonitor) -> None:
        """Labels without samples average to zero."""
        assert monitor.get_average_time("missing") == 0.0
        assert monitor.get_samples("missing") == []

    def test_measure_records_on_error(
        self, monitor: PerformanceMonitor, clock: ManualClock
    ) -> None:
        """The context manager records even when its body raises."""
        with pytest.raises(RuntimeError):
            with monitor.measure("save"):
                clock.advance(0.5)
                raise RuntimeError("failed")

        assert monitor.get_samples("save") == [pytest.approx(500.0)]

    @pytest.mark.asyncio
    async def test_timed_decorator(
        self, monitor: PerformanceMonitor, clock: ManualClock
    ) -> None:
        """Decorated coroutines are timed under their name."""

        @monitor.timed()
        async def load_projects() -> str:
            clock.advance(0.125)
            return "rows"

        assert await load_projects() == "rows"
        assert monitor.get_report() == {"load_projects": pytest.approx(125.0)}

    def test_reset(self, monitor: PerformanceMonitor) -> None:
        """Reset drops every label."""
        monitor.record("load", 1.0)
        monitor.reset()

        assert monitor.get_report() == {}
