"""Ask command -- answer a question from web search plus the LLM fallback chain.

Typical usage::

    smart-ai ask "What is the capital of France?"
    smart-ai ask "What is 2+2?" --quick
    smart-ai ask "Explain TCP slow start" --detailed --save answer.md
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Optional

import typer

from smartai.output import error, print_answer, progress, success


def _save_answer(path: Path, question: str, answer: str, source: str) -> None:
    """Write *answer* to *path* as a small Markdown document."""
    from smartai.config import atomic_write

    document = f"# {question}\n\n{answer}\n\n_Source: {source}_\n"
    atomic_write(path, document)


def ask_command(
    ctx: typer.Context,
    question: str = typer.Argument(help="The question to answer."),
    quick: bool = typer.Option(
        False, "--quick", "-q", help="Use a cached answer when one is still fresh."
    ),
    detailed: bool = typer.Option(
        False, "--detailed", "-d", help="Ask for a detailed answer with examples."
    ),
    save: Optional[Path] = typer.Option(
        None, "--save", "-s", help="Also write the answer to this file."
    ),
) -> None:
    """Ask a question and get an AI-powered answer.

    The question is searched on the web first. The results are sent to each
    configured provider in priority order until one answers; if none does,
    the answer is taken from the search results. The final answer is cached
    and added to the history.

    Args:
        ctx: Typer context carrying the ``priority`` override.
        question: The question text. Used verbatim as the cache key.
        quick: Return a fresh cached answer without searching when present.
        detailed: Request a longer, example-rich answer.
        save: Optional path the answer is also written to.

    Raises:
        typer.Exit: With the error's exit code if configuration is invalid
            or the search fails.

    Example::

        smart-ai ask "What is 2+2?" --quick
        smart-ai --json ask "Latest Python release"
    """
    from smartai.config import resolve_config
    from smartai.exceptions import InvalidUsageError, SmartAIError
    from smartai.models import QueryOptions
    from smartai.performance import PerformanceMonitor
    from smartai.runtime import build_orchestrator

    priority = ctx.obj.get("priority") if ctx.obj else None
    options = QueryOptions(quick=quick, detailed=detailed)

    try:
        if not question.strip():
            raise InvalidUsageError("The question must not be empty")
        config = resolve_config(cli_priority=priority)
        orchestrator = build_orchestrator(config, PerformanceMonitor())
    except SmartAIError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    try:
        progress("Searching and generating an answer...")
        result = asyncio.run(orchestrator.process_query(question, options))
    except SmartAIError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None
    finally:
        orchestrator.close()

    print_answer(result.response, result.source, result.model_dump(mode="json"))

    if save is not None:
        try:
            _save_answer(save, question, result.response, result.source)
        except OSError as exc:
            error(f"Could not save answer to {save}: {exc}")
            raise typer.Exit(code=1) from None
        success(f"Answer saved to {save}")
