"""Terminal output for smart-ai: answers and data on stdout, diagnostics on stderr.

Answers, tables and ``--json`` payloads are written to **stdout** so they can
be piped. Progress, status, warnings and errors go to **stderr**. Rich
formatting is used only when stdout is an interactive terminal and colour is
allowed (``NO_COLOR``, ``TERM=dumb`` and ``--no-color`` all turn it off).

Commands normally call the module-level helpers (:func:`print_answer`,
:func:`render`, :func:`error`, ...), which delegate to the process-wide
:class:`OutputManager` installed by :func:`~smartai.app.main_callback`.
"""

from __future__ import annotations

import json
import os
import sys
from enum import Enum
from typing import Any, Optional

from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table


class OutputFormat(str, Enum):
    """Supported output formats. ``AUTO`` picks ``RICH`` on a colour TTY, else ``PLAIN``."""

    AUTO = "auto"
    JSON = "json"
    PLAIN = "plain"
    RICH = "rich"


def _is_scalar(value: Any) -> bool:
    return value is None or isinstance(value, (str, int, float, bool))


class OutputManager:
    """Routes every piece of CLI output to the right stream in the right format.

    Args:
        format: Requested format; ``AUTO`` is resolved once, here.
        no_color: Disable colour and Rich markup.
        quiet: Hide informational, success and suggestion messages.
        verbose: Show debug messages.
    """

    def __init__(
        self,
        format: OutputFormat = OutputFormat.AUTO,
        no_color: bool = False,
        quiet: bool = False,
        verbose: bool = False,
    ) -> None:
        self._no_color = no_color or _should_disable_color()
        self._quiet = quiet
        self._verbose = verbose

        if format != OutputFormat.AUTO:
            self._format = format
        elif _is_tty() and not self._no_color:
            self._format = OutputFormat.RICH
        else:
            self._format = OutputFormat.PLAIN

        self._stdout = Console(
            file=sys.stdout,
            no_color=self._no_color,
            force_terminal=self._format == OutputFormat.RICH,
        )
        self._stderr = Console(file=sys.stderr, no_color=self._no_color, stderr=True)

    @property
    def format(self) -> OutputFormat:
        return self._format

    @property
    def is_quiet(self) -> bool:
        return self._quiet

    @property
    def is_verbose(self) -> bool:
        return self._verbose

    # ------------------------------------------------------------------ #
    # stdout
    # ------------------------------------------------------------------ #

    def print_data(self, text: str) -> None:
        """Write *text* and a newline to stdout, unformatted."""
        print(text, file=sys.stdout, flush=True)

    def print_answer(self, answer: str, source: str, data: Optional[dict[str, Any]] = None) -> None:
        """Print an answer.

        Rich mode shows the answer as Markdown in a panel captioned with its
        source (a provider name, ``cache`` or ``search``). JSON mode prints
        *data*, or ``{"response", "source"}`` when no payload is given. Plain
        mode prints the answer text alone.
        """
        if self._format == OutputFormat.JSON:
            self._print_json(data if data is not None else {"response": answer, "source": source})
        elif self._format == OutputFormat.PLAIN:
            self.print_data(answer)
        else:
            panel = Panel(Markdown(answer), subtitle=f"source: {source}", border_style="cyan")
            self._stdout.print(panel)

    def render(self, data: Any) -> None:
        """Print a dict, list or string in the active format.

        Flat dicts (stats, metrics) become a two-column table in Rich mode and
        ``key<TAB>value`` lines in plain mode. Nested data is shown as
        highlighted JSON in Rich mode.
        """
        if self._format == OutputFormat.JSON:
            self._print_json(data)
            return

        if self._format == OutputFormat.PLAIN:
            for line in self._plain_lines(data):
                self.print_data(line)
            return

        if isinstance(data, dict) and all(_is_scalar(v) for v in data.values()):
            table = Table(show_header=False, box=None, pad_edge=False)
            table.add_column(style="bold cyan")
            table.add_column()
            for key, value in data.items():
                table.add_row(str(key), str(value))
            self._stdout.print(table)
        elif isinstance(data, (dict, list)):
            text = json.dumps(data, indent=2, ensure_ascii=False, default=str)
            self._stdout.print(Syntax(text, "json", theme="monokai", word_wrap=True))
        else:
            self._stdout.print(str(data))

    def print_table(
        self,
        headers: list[str],
        rows: list[list[str]],
        title: Optional[str] = None,
    ) -> None:
        """Print rows as a Rich table, a JSON array of objects, or TSV lines."""
        if self._format == OutputFormat.JSON:
            records = [dict(zip(headers, row)) for row in rows]
            self.print_data(json.dumps(records, indent=2, ensure_ascii=False))
        elif self._format == OutputFormat.PLAIN:
            for row in [headers, *rows]:
                self.print_data("\t".join(row))
        else:
            table = Table(*headers, title=title, header_style="bold cyan")
            for row in rows:
                table.add_row(*row)
            self._stdout.print(table)

    def _print_json(self, data: Any) -> None:
        # Strings that already hold JSON are re-indented; other strings pass through.
        if isinstance(data, str):
            try:
                data = json.loads(data)
            except ValueError:
                self.print_data(data)
                return
        self.print_data(json.dumps(data, indent=2, ensure_ascii=False, default=str))

    @staticmethod
    def _plain_lines(data: Any) -> list[str]:
        if isinstance(data, dict):
            return [f"{key}\t{value}" for key, value in data.items()]
        if isinstance(data, list):
            return [
                "\t".join(str(v) for v in item.values()) if isinstance(item, dict) else str(item)
                for item in data
            ]
        return [str(data)]

    # ------------------------------------------------------------------ #
    # stderr
    # ------------------------------------------------------------------ #

    def _diagnostic(self, plain: str, markup: str) -> None:
        if self._no_color:
            print(plain, file=sys.stderr, flush=True)
        else:
            self._stderr.print(markup)

    def info(self, message: str) -> None:
        if not self._quiet:
            self._diagnostic(message, message)

    def success(self, message: str) -> None:
        if not self._quiet:
            self._diagnostic(message, f"[green]{message}[/green]")

    def warning(self, message: str) -> None:
        """Warnings are shown even with ``--quiet``."""
        self._diagnostic(f"Warning: {message}", f"[yellow]Warning:[/yellow] {message}")

    def error(self, message: str) -> None:
        """Errors are always shown."""
        self._diagnostic(f"Error: {message}", f"[bold red]Error:[/bold red] {message}")

    def suggest(self, message: str) -> None:
        if not self._quiet:
            self._diagnostic(f"→ {message}", f"[dim]→ {message}[/dim]")

    def debug(self, message: str) -> None:
        if self._verbose:
            self._diagnostic(f"[debug] {message}", f"[dim]\\[debug] {message}[/dim]")

    def progress(self, message: str) -> None:
        """Status line for long operations; only on an interactive terminal."""
        if not self._quiet and _is_tty():
            self._diagnostic(message, f"[dim]{message}[/dim]")


def _is_tty() -> bool:
    return hasattr(sys.stdout, "isatty") and sys.stdout.isatty()


def _should_disable_color() -> bool:
    """True when ``NO_COLOR`` is set to any value or ``TERM`` is ``dumb``."""
    return os.environ.get("NO_COLOR") is not None or os.environ.get("TERM") == "dumb"


# ------------------------------------------------------------------ #
# Process-wide instance
# ------------------------------------------------------------------ #

_output: Optional[OutputManager] = None


def get_output() -> OutputManager:
    """Return the installed :class:`OutputManager`, creating a default one if needed."""
    global _output
    if _output is None:
        _output = OutputManager()
    return _output


def set_output(output: OutputManager) -> None:
    global _output
    _output = output


def reset_output() -> None:
    """Forget the installed manager (tests call this between CliRunner runs)."""
    global _output
    _output = None


def render(data: Any) -> None:
    get_output().render(data)


def print_answer(answer: str, source: str, data: Optional[dict[str, Any]] = None) -> None:
    get_output().print_answer(answer, source, data)


def print_data(text: str) -> None:
    get_output().print_data(text)


def print_table(headers: list[str], rows: list[list[str]], title: Optional[str] = None) -> None:
    get_output().print_table(headers, rows, title)


def info(message: str) -> None:
    get_output().info(message)


def success(message: str) -> None:
    get_output().success(message)


def warning(message: str) -> None:
    get_output().warning(message)


def error(message: str) -> None:
    get_output().error(message)


def suggest(message: str) -> None:
    get_output().suggest(message)


def debug(message: str) -> None:
    get_output().debug(message)


def progress(message: str) -> None:
    get_output().progress(message)
