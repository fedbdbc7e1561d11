"""Loads plugins from the ``smartai.plugins`` entry-point group and runs them.

A package ships a plugin by declaring it in its ``pyproject.toml``::

    [project.entry-points."smartai.plugins"]
    my-plugin = "my_package.plugin:MyPlugin"

The entry point may name a class (instantiated with no arguments) or a
ready-made instance.
"""

from __future__ import annotations

import importlib.metadata
import logging
from typing import Any, Sequence

from smartai.exceptions import PluginError
from smartai.models import GlobalConfig, PluginsConfig
from smartai.plugins.base import Plugin, validate_plugin

logger = logging.getLogger(__name__)

ENTRY_POINT_GROUP = "smartai.plugins"


def _is_wanted(name: str, settings: PluginsConfig) -> bool:
    # A non-empty ``enabled`` list is an allowlist; ``disabled`` always blocks.
    if settings.enabled and name not in settings.enabled:
        logger.debug("Plugin '%s' not in enabled list, skipping", name)
        return False
    if name in settings.disabled:
        logger.debug("Plugin '%s' is disabled, skipping", name)
        return False
    return True


class PluginManager:
    """Registry of initialized plugins, keyed by plugin name.

    ``discover`` only scans entry points the first time it is called; later
    calls return the names already registered.
    """

    def __init__(self) -> None:
        self._plugins: dict[str, Plugin] = {}
        self._discovered = False

    def discover(self, config: GlobalConfig) -> list[str]:
        """Register every wanted entry-point plugin and return their names.

        A plugin that cannot be imported, validated or initialized is logged
        as a warning and skipped.
        """
        if self._discovered:
            return list(self._plugins)
        self._discovered = True

        registered: list[str] = []
        for ep in importlib.metadata.entry_points(group=ENTRY_POINT_GROUP):
            if not _is_wanted(ep.name, config.plugins):
                continue
            try:
                target = ep.load()
                plugin = target() if isinstance(target, type) else target
                self.register(plugin)
            except Exception as exc:
                logger.warning("Failed to load plugin '%s': %s", ep.name, exc)
                continue
            registered.append(plugin.name)
        return registered

    def register(self, plugin: Any) -> None:
        """Validate and initialize *plugin*, then make it available by name.

        Raises:
            PluginError: *plugin* is incomplete, its name is taken, or its
                ``initialize()`` raised.
        """
        if not validate_plugin(plugin):
            raise PluginError(
                f"Invalid plugin {plugin!r}: name, version, description, "
                "initialize() and execute() are required"
            )
        if plugin.name in self._plugins:
            raise PluginError(f"Plugin '{plugin.name}' is already loaded")

        try:
            plugin.initialize()
        except Exception as exc:
            raise PluginError(f"Plugin '{plugin.name}' failed to initialize: {exc}") from exc

        self._plugins[plugin.name] = plugin
        logger.info("Loaded plugin '%s' v%s", plugin.name, plugin.version)

    def get_plugin(self, name: str) -> Plugin:
        if name not in self._plugins:
            raise PluginError(f"Plugin '{name}' is not loaded")
        return self._plugins[name]

    def list_plugins(self) -> list[dict[str, str]]:
        """``name``, ``version`` and ``description`` of each plugin, in registration order."""
        return [
            {"name": p.name, "version": p.version, "description": p.description}
            for p in self._plugins.values()
        ]

    def execute(self, name: str, args: Sequence[str]) -> dict[str, Any]:
        """Run plugin *name*; anything it raises comes back as :class:`PluginError`."""
        plugin = self.get_plugin(name)
        try:
            return plugin.execute(list(args))
        except PluginError:
            raise
        except Exception as exc:
            raise PluginError(f"Plugin '{name}' failed: {exc}") from exc
