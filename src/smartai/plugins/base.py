"""Abstract base class for smartai plugins.

Every plugin must subclass :class:`Plugin` and provide :attr:`name`,
:attr:`version` and :attr:`description` plus :meth:`execute`.
:meth:`initialize` is optional; the default is a no-op.

Plugins are registered as entry points in the ``smartai.plugins`` group
and discovered at runtime by :class:`~smartai.plugins.manager.PluginManager`.

Example:
    Minimal plugin implementation::

        class EchoPlugin(Plugin):
            name = "echo"
            version = "1.0.0"
            description = "Echo the arguments back"

            def execute(self, args):
                return {"message": " ".join(args)}
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Sequence

_REQUIRED_ATTRIBUTES = ("name", "version", "description")
_REQUIRED_METHODS = ("initialize", "execute")


class Plugin(ABC):
    """Base class for all smartai plugins.

    The plugin lifecycle is:

    1. Instantiation -- the :class:`PluginManager` calls the no-arg constructor.
    2. :meth:`initialize` -- called once after the plugin passes validation.
    3. :meth:`execute` -- called zero or more times, e.g. by
       ``smart-ai plugins run``.
    """

    name: str = ""
    version: str = "0.1.0"
    description: str = ""

    def initialize(self) -> None:
        """Called once when the plugin is loaded by the :class:`PluginManager`."""

    @abstractmethod
    def execute(self, args: Sequence[str]) -> dict[str, Any]:
        """Run the plugin.

        Args:
            args: Free-form string arguments from the command line.

        Returns:
            A JSON-serialisable dict rendered by the CLI.
        """
        ...


def validate_plugin(candidate: Any) -> bool:
    """Return True if *candidate* looks like a usable plugin.

    The check is structural so that duck-typed objects are accepted too: the
    ``name``, ``version`` and ``description`` attributes must be non-empty,
    and ``initialize`` and ``execute`` must be callable.
    """
    if candidate is None:
        return False
    for method in _REQUIRED_METHODS:
        if not callable(getattr(candidate, method, None)):
            return False
    for attribute in _REQUIRED_ATTRIBUTES:
        if not getattr(candidate, attribute, None):
            return False
    return True
