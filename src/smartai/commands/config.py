"""Config commands -- view, modify, validate and repair global configuration.

Provides the ``smart-ai config`` sub-command group for reading, updating,
resetting, checking and repairing the user's global configuration file
(:class:`~smartai.models.GlobalConfig`). Settings are persisted in the
smartai config directory and control the provider chain, credential
sources, and store limits.
"""

from __future__ import annotations

from typing import Any

import typer

from smartai.output import error, info, render, success, suggest, warning


config_app = typer.Typer(no_args_is_help=True)


def _load():
    from smartai.config import load_global_config
    from smartai.exceptions import ConfigError

    try:
        return load_global_config()
    except ConfigError as exc:
        error(str(exc))
        suggest("Run 'smart-ai config reset' to start over.")
        raise typer.Exit(code=exc.exit_code) from None


def _coerce(key: str, current: Any, value: str) -> Any:
    """Coerce the string *value* to the type of the existing field."""
    if isinstance(current, bool):
        return value.lower() in ("true", "1", "yes")
    if isinstance(current, int):
        try:
            return int(value)
        except ValueError:
            error(f"Expected integer for {key}, got: {value}")
            raise typer.Exit(code=2) from None
    if isinstance(current, float):
        try:
            return float(value)
        except ValueError:
            error(f"Expected number for {key}, got: {value}")
            raise typer.Exit(code=2) from None
    if isinstance(current, list):
        return [item.strip() for item in value.split(",") if item.strip()]
    if current is None and value.lower() in ("null", "none"):
        return None
    return value


@config_app.command("show")
def config_show() -> None:
    """Show current configuration.

    Example::

        smart-ai config show
        smart-ai --json config show
    """
    from smartai.config import get_config_dir

    config = _load()
    info(f"Config directory: {get_config_dir()}")
    render(config.model_dump(mode="json"))


@config_app.command("set")
def config_set(
    key: str = typer.Argument(
        help="Config key (dot notation, e.g., 'cache.ttl_seconds')."
    ),
    value: str = typer.Argument(help="Value to set. Lists are comma-separated."),
) -> None:
    """Set a configuration value.

    Uses dot notation for nested keys. The value is coerced to match the
    existing field's type (bool, int, float, comma-separated list, or str)
    and the updated config is validated before saving.

    Raises:
        typer.Exit: With code 2 if the key path is invalid, the value
            cannot be coerced, or validation fails.

    Example::

        smart-ai config set provider_priority claude,openai
        smart-ai config set providers.openai.api_key_source env:MY_OPENAI_KEY
        smart-ai config set cache.ttl_seconds 600
    """
    from pydantic import ValidationError

    from smartai.config import save_global_config
    from smartai.models import GlobalConfig

    config = _load()
    data = config.model_dump(mode="json")

    keys = key.split(".")
    target = data
    for k in keys[:-1]:
        if k not in target or not isinstance(target[k], dict):
            error(f"Invalid config key: {key}")
            raise typer.Exit(code=2)
        target = target[k]

    final_key = keys[-1]
    if final_key not in target:
        error(f"Unknown config key: {key}")
        raise typer.Exit(code=2)

    coerced = _coerce(key, target[final_key], value)
    target[final_key] = coerced

    try:
        new_config = GlobalConfig.model_validate(data)
    except ValidationError as exc:
        error(f"Validation error: {exc}")
        raise typer.Exit(code=2) from None

    save_global_config(new_config)
    success(f"Set {key} = {coerced}")


@config_app.command("reset")
def config_reset(
    ctx: typer.Context,
) -> None:
    """Reset configuration to defaults.

    Asks for confirmation unless ``--force`` is active.

    Example::

        smart-ai config reset
        smart-ai --force config reset
    """
    from smartai.config import save_global_config
    from smartai.models import GlobalConfig

    force = ctx.obj.get("force", False) if ctx.obj else False
    if not force:
        confirmed = typer.confirm("Reset all config to defaults?")
        if not confirmed:
            info("Cancelled.")
            raise typer.Exit()

    save_global_config(GlobalConfig())
    success("Configuration reset to defaults.")


@config_app.command("validate")
def config_validate() -> None:
    """Check the configuration for errors and suspicious values.

    Exits with the configuration error code when errors are found.

    Example::

        smart-ai config validate
    """
    from smartai.exit_codes import EXIT_CONFIG_ERROR
    from smartai.validation import validate_config

    result = validate_config(_load())
    render(result.model_dump(mode="json"))

    for issue in result.warnings:
        warning(f"{issue.field}: {issue.message}")
    for issue in result.errors:
        error(f"{issue.field}: {issue.message}")
    if result.fixes:
        suggest("Run 'smart-ai config repair' to apply the available fixes.")

    if not result.is_valid:
        raise typer.Exit(code=EXIT_CONFIG_ERROR)
    success("Configuration is valid.")


@config_app.command("repair")
def config_repair() -> None:
    """Apply automatic fixes to the configuration and save it.

    Example::

        smart-ai config repair
    """
    from smartai.config import save_global_config
    from smartai.exceptions import ConfigRepairError
    from smartai.validation import repair_config

    try:
        result = repair_config(_load())
    except ConfigRepairError as exc:
        error(str(exc))
        for message in exc.errors:
            error(message)
        raise typer.Exit(code=exc.exit_code) from None

    if result.applied_fixes:
        save_global_config(result.config)
        for fix in result.applied_fixes:
            info(f"{fix.field}: {fix.message}")
    success(result.message)
