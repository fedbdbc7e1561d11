"""Plugin system for smartai -- discovery, validation, and execution.

Third-party packages can register plugins by declaring an entry point in the
``smartai.plugins`` group. At runtime, :class:`PluginManager` discovers
those entry points, checks each candidate with :func:`validate_plugin`, and
initializes the ones that pass.

Key classes:

* :class:`Plugin` -- Abstract base class for plugins.
* :class:`PluginManager` -- Discovers, registers and runs plugins.

Example:
    Typical usage from the CLI::

        from smartai.plugins import PluginManager

        manager = PluginManager()
        manager.discover(global_config)
        manager.execute("hello-world", ["x"])
"""

from smartai.plugins.base import Plugin, validate_plugin
from smartai.plugins.manager import ENTRY_POINT_GROUP, PluginManager

__all__ = ["ENTRY_POINT_GROUP", "Plugin", "PluginManager", "validate_plugin"]
