"""smartai -- answer questions from live web search and a chain of LLM providers.

A query is resolved by fetching search results, asking each configured LLM
provider in priority order until one answers, and falling back to a summary
of the raw search text when none does. Every resolved answer is written to a
time-boxed response cache and to a compressed, size-bounded history log that
survive across runs.

Typical workflow::

    smart-ai ask "What is 2+2?"            # search + LLM fallback chain
    smart-ai ask "What is 2+2?" --quick    # answer from cache when fresh
    smart-ai history search kubernetes     # grep past answers

Modules:
    app: Typer application factory and CLI entry point.
    orchestrator: Query orchestration with provider fallback.
    cache: Bounded, TTL-limited response cache.
    history: Compressed, size-bounded query history.
    storage: Blob persistence backends used by the cache and history.
    providers: Search and LLM provider clients.
    models: Pydantic models shared across the entire package.
    config: XDG-aware configuration management.
    exceptions: Exception hierarchy with exit-code mapping.
    exit_codes: Numeric exit codes following clig.dev conventions.
    output: stdout/stderr formatting system with Rich support.
"""

__version__ = "1.3.0"
