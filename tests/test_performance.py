"""Tests for the query performance monitor."""

from __future__ import annotations

import pytest

from smartai.performance import PerformanceMonitor


class _ManualClock:
    def __init__(self) -> None:
        self.value = 0.0

    def __call__(self) -> float:
        return self.value


class TestPerformanceMonitor:
    def test_no_queries(self) -> None:
        metrics = PerformanceMonitor(clock=_ManualClock()).get_metrics()
        assert metrics.total_queries == 0
        assert metrics.average_response_time_ms == 0.0

    def test_tracks_count_total_and_average(self) -> None:
        clock = _ManualClock()
        monitor = PerformanceMonitor(clock=clock)

        start = monitor.now()
        clock.value += 0.2
        monitor.track_query(start)
        start = monitor.now()
        clock.value += 0.4
        monitor.track_query(start)

        metrics = monitor.get_metrics()
        assert metrics.total_queries == 2
        assert metrics.total_response_time_ms == pytest.approx(600.0)
        assert metrics.average_response_time_ms == pytest.approx(300.0)
        assert metrics.uptime_seconds == pytest.approx(0.6)

    def test_listeners_receive_duration(self) -> None:
        clock = _ManualClock()
        monitor = PerformanceMonitor(clock=clock)
        seen: list[float] = []
        monitor.add_listener(seen.append)

        start = monitor.now()
        clock.value += 1.5
        monitor.track_query(start)

        assert seen == [pytest.approx(1500.0)]

    def test_failing_listener_does_not_propagate(self) -> None:
        monitor = PerformanceMonitor(clock=_ManualClock())

        def broken(duration_ms: float) -> None:
            raise RuntimeError("listener down")

        monitor.add_listener(broken)
        monitor.track_query(monitor.now())

        assert monitor.get_metrics().total_queries == 1

    def test_resource_fields(self) -> None:
        metrics = PerformanceMonitor().get_metrics()
        assert metrics.cpu_user_seconds >= 0
        assert metrics.max_rss_mb is None or metrics.max_rss_mb > 0
