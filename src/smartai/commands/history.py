"""History commands -- browse, search, and prune the query history.

Provides the ``smart-ai history`` sub-command group. Compressed answers are
decompressed transparently for display.
"""

from __future__ import annotations

import typer

from smartai.output import OutputFormat, error, get_output, info, print_table, render, success


history_app = typer.Typer(no_args_is_help=True)

_PREVIEW_CHARS = 80


def _preview(text: str) -> str:
    flat = " ".join(text.split())
    if len(flat) <= _PREVIEW_CHARS:
        return flat
    return flat[: _PREVIEW_CHARS - 3] + "..."


def _open():
    from smartai.config import resolve_config
    from smartai.exceptions import ConfigError
    from smartai.runtime import open_history

    try:
        return open_history(resolve_config())
    except ConfigError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None


def _show(entries) -> None:
    from smartai.history import decompress_answer

    rows = []
    for entry in entries:
        try:
            answer = decompress_answer(entry)
        except ValueError:
            answer = "<unreadable>"
        rows.append(
            [
                entry.timestamp.strftime("%Y-%m-%d %H:%M"),
                entry.question,
                _preview(answer),
            ]
        )
    print_table(["Time", "Question", "Answer"], rows, title="History")


@history_app.command("list")
def history_list(
    limit: int = typer.Option(10, "--limit", "-l", min=1, help="Number of entries to show."),
) -> None:
    """Show the most recent questions and answers.

    Example::

        smart-ai history list --limit 20
    """
    store = _open()
    try:
        entries = store.recent(limit)
    finally:
        store.close()

    if not entries:
        info("History is empty.")
        return
    _show(entries)


@history_app.command("search")
def history_search(
    text: str = typer.Argument(help="Text to look for in questions and answers."),
) -> None:
    """Search history entries case-insensitively.

    Example::

        smart-ai history search python
    """
    store = _open()
    try:
        matches = store.search(text)
    finally:
        store.close()

    if not matches:
        info(f"No history entries match '{text}'.")
        return
    _show(matches)


@history_app.command("stats")
def history_stats() -> None:
    """Show history statistics."""
    store = _open()
    try:
        stats = store.stats()
    finally:
        store.close()

    data = stats.model_dump(by_alias=True)
    if get_output().format == OutputFormat.JSON:
        render(data)
        return
    render(
        {
            "Total Entries": stats.total_entries,
            "Compressed Size": f"{stats.compressed_size / 1024:.2f} KB",
            "Compression Ratio": f"{stats.compression_ratio:.2f}",
            "Max Entries": stats.max_entries,
            "Max Size": f"{stats.max_size_mb} MB",
        }
    )


@history_app.command("clear")
def history_clear(ctx: typer.Context) -> None:
    """Delete every history entry. Asks for confirmation unless ``--force``."""
    force = ctx.obj.get("force", False) if ctx.obj else False
    if not force:
        confirmed = typer.confirm("Clear the entire query history?")
        if not confirmed:
            info("Cancelled.")
            raise typer.Exit()

    store = _open()
    try:
        store.clear()
    finally:
        store.close()
    success("History cleared.")


@history_app.command("clear-old")
def history_clear_old(
    days: int = typer.Option(30, "--days", "-d", min=0, help="Number of days to keep."),
) -> None:
    """Delete history entries older than ``--days`` days.

    Example::

        smart-ai history clear-old --days 7
    """
    store = _open()
    try:
        removed = store.clear_older_than(days)
    finally:
        store.close()
    success(f"Removed {removed} entries older than {days} days.")
