"""Exception hierarchy for smartai.

All exceptions inherit from :class:`SmartAIError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`smartai.exit_codes`.
:func:`smartai.app.main` prints the message of any uncaught ``SmartAIError``
and exits with that code.

Subclass hierarchy::

    SmartAIError (exit 1)
    +-- InvalidUsageError      (exit 2)
    +-- ConfigError            (exit 3)
    |   +-- ConfigRepairError  (exit 3)
    +-- ProviderError          (exit 5)
    +-- QueryProcessingFailed  (exit 6)
    +-- PersistenceError       (exit 8)
    +-- PluginError            (exit 10)

Not every failure is fatal. A :class:`ProviderError` only moves the
orchestrator on to the next provider, and a :class:`PersistenceError`
raised while saving the cache or history is logged and swallowed so the
user still receives their answer.
"""

from __future__ import annotations

from typing import Optional

from smartai.exit_codes import (
    EXIT_CONFIG_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_PERSISTENCE_ERROR,
    EXIT_PLUGIN_ERROR,
    EXIT_PROVIDER_ERROR,
    EXIT_QUERY_FAILED,
)


class SmartAIError(Exception):
    """Root of the smartai exception tree.

    ``exit_code`` is the process status :func:`smartai.app.main` exits with;
    subclasses set their own, and a single instance can override it.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(SmartAIError):
    """Bad command-line input, such as an empty question or an unknown config key."""

    exit_code = EXIT_INVALID_USAGE


class ConfigError(SmartAIError):
    """Raised for configuration problems (invalid JSON, unknown providers, bad credential sources)."""

    exit_code = EXIT_CONFIG_ERROR


class ConfigRepairError(ConfigError):
    """Raised when automatic repair cannot bring a configuration back to a valid state.

    Args:
        message: Human-readable description of why the repair failed.
        errors: The validation errors that remained after fixes were applied.
    """

    def __init__(self, message: str, errors: Optional[list[str]] = None):
        super().__init__(message)
        self.errors = errors or []


class ProviderError(SmartAIError):
    """Raised when an LLM or search provider call fails.

    Args:
        provider: Name of the provider that failed (e.g. ``"openai"``).
        message: Human-readable error description.
        status_code: HTTP status code when the failure came from a response.
    """

    exit_code = EXIT_PROVIDER_ERROR

    def __init__(
        self,
        provider: str,
        message: str,
        status_code: Optional[int] = None,
    ):
        super().__init__(f"{provider}: {message}")
        self.provider = provider
        self.status_code = status_code


class QueryProcessingFailed(SmartAIError):
    """Raised when a query cannot be answered because search retrieval failed.

    Args:
        query: The original query text, kept for diagnostics.
        message: Human-readable error description.
    """

    exit_code = EXIT_QUERY_FAILED

    def __init__(self, query: str, message: str):
        super().__init__(f"Failed to process query: {message}")
        self.query = query


class PersistenceError(SmartAIError):
    """Raised when a blob cannot be written to durable storage."""

    exit_code = EXIT_PERSISTENCE_ERROR


class PluginError(SmartAIError):
    """Raised when a plugin fails to load, validate, or execute."""

    exit_code = EXIT_PLUGIN_ERROR
