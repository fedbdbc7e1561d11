"""Performance command -- show process resource usage and query latency counters."""

from __future__ import annotations

from smartai.output import OutputFormat, get_output, render


def performance_command() -> None:
    """Show system performance metrics.

    Query counters cover the current process only.

    Example::

        smart-ai performance
        smart-ai --json performance
    """
    from smartai.performance import PerformanceMonitor

    metrics = PerformanceMonitor().get_metrics()

    if get_output().format == OutputFormat.JSON:
        render(metrics.model_dump(mode="json"))
        return

    data = {
        "Uptime": f"{metrics.uptime_seconds / 60:.2f} minutes",
        "Total Queries": metrics.total_queries,
        "Average Response Time": f"{metrics.average_response_time_ms:.2f} ms",
        "CPU User": f"{metrics.cpu_user_seconds * 1000:.2f} ms",
        "CPU System": f"{metrics.cpu_system_seconds * 1000:.2f} ms",
    }
    if metrics.max_rss_mb is not None:
        data["Peak Memory"] = f"{metrics.max_rss_mb:.2f} MB"
    if metrics.load_average is not None:
        data["Load Average"] = ", ".join(f"{load:.2f}" for load in metrics.load_average)
    render(data)
