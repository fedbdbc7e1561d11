"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~smartai.exceptions.SmartAIError` subclass.
Shell wrappers can inspect the exit code to tell a failed search apart from
a broken configuration without parsing stderr.

Example::

    $ smart-ai ask "What is 2+2?"
    $ echo $?
    6   # EXIT_QUERY_FAILED -- the search provider could not be reached
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or missing required parameters."""

EXIT_CONFIG_ERROR = 3
"""The configuration could not be loaded, validated, or repaired."""

EXIT_PROVIDER_ERROR = 5
"""An LLM provider returned an error or an unusable response."""

EXIT_QUERY_FAILED = 6
"""The query could not be processed because search retrieval failed."""

EXIT_PERSISTENCE_ERROR = 8
"""The cache or history could not be written to durable storage."""

EXIT_PLUGIN_ERROR = 10
"""A plugin failed to load, initialise, or execute."""
