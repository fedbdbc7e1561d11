"""The ``smart-ai`` command line.

``app`` is the root Typer application; sub-commands live in
:mod:`smartai.commands` and are attached below. :func:`main` is the console
script. It turns :class:`~smartai.exceptions.SmartAIError` into an
``Error:`` line and the error's exit code, and anything unexpected into a
crash log under ``<data dir>/logs``.
"""

from __future__ import annotations

import logging
import signal
import sys
import traceback
from datetime import datetime
from typing import Any, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

from smartai import __version__
from smartai.exit_codes import EXIT_GENERIC_FAILURE

_EXIT_INTERRUPTED = 130

app = typer.Typer(
    name="smart-ai",
    help="Ask questions and get answers from web search plus a chain of LLM providers.",
    no_args_is_help=True,
    add_completion=True,
    rich_markup_mode="rich",
)

from smartai.commands.ask import ask_command  # noqa: E402
from smartai.commands.cache import cache_app  # noqa: E402
from smartai.commands.config import config_app  # noqa: E402
from smartai.commands.history import history_app  # noqa: E402
from smartai.commands.performance import performance_command  # noqa: E402
from smartai.commands.plugins import plugins_app  # noqa: E402

app.command("ask")(ask_command)
app.command("performance")(performance_command)
app.add_typer(history_app, name="history", help="View and manage query history.")
app.add_typer(cache_app, name="cache", help="Response cache management.")
app.add_typer(config_app, name="config", help="Configuration management.")
app.add_typer(plugins_app, name="plugins", help="List and run plugins.")


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"smart-ai {__version__}")
        raise typer.Exit()


def _configure_logging(verbose: bool, quiet: bool) -> None:
    """Send ``smartai.*`` records to stderr via Rich.

    The threshold is WARNING, lowered to DEBUG by ``--verbose`` or raised to
    ERROR by ``--quiet``.
    """
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.ERROR
    else:
        level = logging.WARNING

    handler = RichHandler(console=Console(stderr=True), show_path=verbose, rich_tracebacks=verbose)
    handler.setFormatter(logging.Formatter("%(message)s"))

    logger = logging.getLogger("smartai")
    logger.handlers[:] = [handler]
    logger.setLevel(level)
    logger.propagate = False


def _split_priority(raw: Optional[str]) -> Optional[list[str]]:
    if not raw:
        return None
    return [name.strip() for name in raw.split(",") if name.strip()]


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    json_output: bool = typer.Option(False, "--json", help="JSON output format."),
    plain_output: bool = typer.Option(False, "--plain", help="Plain text output."),
    no_color: bool = typer.Option(False, "--no-color", help="Disable color output."),
    quiet: bool = typer.Option(False, "--quiet", help="Suppress non-essential output."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug output."),
    force: bool = typer.Option(False, "--force", "-f", help="Skip confirmations."),
    priority: Optional[str] = typer.Option(
        None,
        "--priority",
        "-p",
        help="Comma-separated provider order for this run, e.g. 'claude,openai'.",
    ),
) -> None:
    """Set up output and logging, then hand shared flags to sub-commands.

    ``ctx.obj`` carries ``force``, ``verbose`` and ``priority`` (a list of
    provider names, or ``None`` when ``--priority`` was not given).
    """
    from smartai.output import OutputFormat, OutputManager, set_output

    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN
    else:
        fmt = OutputFormat.AUTO

    set_output(OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose))
    _configure_logging(verbose, quiet)

    ctx.ensure_object(dict)
    ctx.obj.update(force=force, verbose=verbose, priority=_split_priority(priority))


def _cancel(*_: Any) -> None:
    sys.stderr.write("\nCancelled.\n")
    sys.exit(_EXIT_INTERRUPTED)


def _write_crash_log(exc: Exception) -> str:
    from smartai.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    log_path = logs_dir / f"crash-{datetime.now():%Y%m%d-%H%M%S}.log"
    log_path.write_text(
        "".join(traceback.format_exception(type(exc), exc, exc.__traceback__)),
        encoding="utf-8",
    )
    return str(log_path)


def main() -> None:
    """Console-script entry point; always ends in ``SystemExit``."""
    from smartai.exceptions import SmartAIError
    from smartai.output import error

    signal.signal(signal.SIGINT, _cancel)
    try:
        app()
    except KeyboardInterrupt:
        _cancel()
    except SmartAIError as exc:
        error(str(exc))
        sys.exit(exc.exit_code)
    except Exception as exc:
        error(f"Unexpected error. Debug log: {_write_crash_log(exc)}")
        sys.exit(EXIT_GENERIC_FAILURE)
