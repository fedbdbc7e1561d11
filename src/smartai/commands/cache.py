"""Cache commands -- inspect and clear the response cache.

Hit/miss counters are kept in memory only, so ``cache stats`` reports the
persisted size alongside counters that start from zero in each process.
"""

from __future__ import annotations

import typer

from smartai.output import OutputFormat, error, get_output, render, success


cache_app = typer.Typer(no_args_is_help=True)


def _open():
    from smartai.config import resolve_config
    from smartai.exceptions import ConfigError
    from smartai.runtime import open_cache

    try:
        return open_cache(resolve_config())
    except ConfigError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None


@cache_app.command("stats")
def cache_stats() -> None:
    """Show cache statistics."""
    cache = _open()
    try:
        stats = cache.stats()
    finally:
        cache.close()

    if get_output().format == OutputFormat.JSON:
        render(stats.model_dump())
        return
    render(
        {
            "Hits": stats.hits,
            "Misses": stats.misses,
            "Hit Rate": f"{stats.hit_rate * 100:.2f}%",
            "Size": f"{stats.size}/{stats.max_size}",
            "Evictions": stats.evictions,
        }
    )


@cache_app.command("clear")
def cache_clear() -> None:
    """Remove every cached answer."""
    cache = _open()
    try:
        cache.clear()
    finally:
        cache.close()
    success("Cache cleared.")
