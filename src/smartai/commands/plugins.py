"""Plugin commands -- list, inspect and run installed plugins.

Plugins are discovered through the ``smartai.plugins`` entry-point group,
filtered by the ``plugins.enabled`` / ``plugins.disabled`` config lists.
"""

from __future__ import annotations

from typing import Optional

import typer

from smartai.output import error, info, print_table, render


plugins_app = typer.Typer(no_args_is_help=True)


def _manager():
    from smartai.config import resolve_config
    from smartai.exceptions import ConfigError
    from smartai.plugins import PluginManager

    try:
        config = resolve_config()
    except ConfigError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    manager = PluginManager()
    manager.discover(config)
    return manager


@plugins_app.command("list")
def plugins_list() -> None:
    """List all available plugins."""
    plugins = _manager().list_plugins()
    if not plugins:
        info("No plugins installed.")
        return
    print_table(
        ["Name", "Version", "Description"],
        [[p["name"], p["version"], p["description"]] for p in plugins],
        title="Plugins",
    )


@plugins_app.command("info")
def plugins_info(
    name: str = typer.Argument(help="Plugin name."),
) -> None:
    """Show information about a specific plugin."""
    from smartai.exceptions import PluginError

    try:
        plugin = _manager().get_plugin(name)
    except PluginError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    render(
        {
            "name": plugin.name,
            "version": plugin.version,
            "description": plugin.description,
        }
    )


@plugins_app.command("run")
def plugins_run(
    name: str = typer.Argument(help="Plugin name."),
    args: Optional[list[str]] = typer.Argument(None, help="Arguments passed to the plugin."),
) -> None:
    """Execute a plugin and print its result.

    Example::

        smart-ai plugins run hello-world foo bar
    """
    from smartai.exceptions import PluginError

    manager = _manager()
    try:
        result = manager.execute(name, args or [])
    except PluginError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None
    render(result)
