"""Built-in CLI sub-commands for smart-ai.

This package groups all Typer sub-command modules that form the CLI's
top-level command tree:

* :mod:`~smartai.commands.ask` -- answer a question.
* :mod:`~smartai.commands.history` -- browse, search and prune history.
* :mod:`~smartai.commands.cache` -- inspect and clear the response cache.
* :mod:`~smartai.commands.performance` -- show process metrics.
* :mod:`~smartai.commands.config` -- view, modify, validate and repair
  global settings.
* :mod:`~smartai.commands.plugins` -- list, inspect and run plugins.

Each module either exports a :class:`typer.Typer` sub-application (for
multi-command groups like ``history`` and ``config``) or a plain callback
function registered directly on the root app (for single commands like
``ask``).
"""
