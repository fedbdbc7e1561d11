"""Query latency counters and process resource metrics.

:class:`PerformanceMonitor` is a plain object constructed once by the CLI and
handed to the :class:`~smartai.orchestrator.QueryOrchestrator`. Tracking a
query is fire-and-forget: :meth:`PerformanceMonitor.track_query` never raises,
and a misbehaving listener is logged and ignored.
"""

from __future__ import annotations

import logging
import os
import sys
import threading
import time
from typing import Callable, Optional

from smartai.models import PerformanceMetrics

if sys.platform != "win32":
    import resource
else:
    resource = None  # type: ignore[assignment]

logger = logging.getLogger(__name__)

QueryListener = Callable[[float], None]


class PerformanceMonitor:
    """Counts completed queries and their cumulative wall-clock latency.

    Args:
        clock: Monotonic clock in seconds. Tests inject a fake.
    """

    def __init__(self, clock: Optional[Callable[[], float]] = None) -> None:
        self._clock = clock or time.monotonic
        self._lock = threading.Lock()
        self._started = self._clock()
        self._total_queries = 0
        self._total_response_ms = 0.0
        self._listeners: list[QueryListener] = []

    def now(self) -> float:
        """Return a start timestamp suitable for :meth:`track_query`."""
        return self._clock()

    def add_listener(self, listener: QueryListener) -> None:
        """Call *listener* with the duration in milliseconds after each tracked query."""
        self._listeners.append(listener)

    def track_query(self, start: float) -> None:
        """Record one completed query that started at *start* (from :meth:`now`)."""
        try:
            duration_ms = max(0.0, (self._clock() - start) * 1000)
            with self._lock:
                self._total_queries += 1
                self._total_response_ms += duration_ms
        except Exception as exc:  # noqa: BLE001
            logger.debug("Could not record query timing: %s", exc)
            return

        for listener in list(self._listeners):
            try:
                listener(duration_ms)
            except Exception as exc:  # noqa: BLE001
                logger.warning("Performance listener failed: %s", exc)

    def get_metrics(self) -> PerformanceMetrics:
        """Return a snapshot of query counters and process resource usage."""
        with self._lock:
            total = self._total_queries
            total_ms = self._total_response_ms

        times = os.times()
        return PerformanceMetrics(
            uptime_seconds=self._clock() - self._started,
            total_queries=total,
            total_response_time_ms=total_ms,
            average_response_time_ms=total_ms / total if total else 0.0,
            cpu_user_seconds=times.user,
            cpu_system_seconds=times.system,
            max_rss_mb=_max_rss_mb(),
            load_average=_load_average(),
        )


def _max_rss_mb() -> Optional[float]:
    """Peak resident set size in MB, or ``None`` where unsupported."""
    if resource is None:
        return None
    peak = resource.getrusage(resource.RUSAGE_SELF).ru_maxrss
    # Linux reports kilobytes, macOS reports bytes.
    if sys.platform == "darwin":
        return peak / 1024 / 1024
    return peak / 1024


def _load_average() -> Optional[tuple[float, float, float]]:
    if not hasattr(os, "getloadavg"):
        return None
    try:
        return os.getloadavg()
    except OSError:
        return None
