"""Where smart-ai keeps its files, and how the effective settings are assembled.

Three directories are used, each created on first access:

=========  ==============================  =====================
kind       Linux / BSD                     macOS / Windows
=========  ==============================  =====================
config     ``$XDG_CONFIG_HOME/smartai``    ``~/.smartai``
cache      ``$XDG_CACHE_HOME/smartai``     ``~/.smartai/cache``
data       ``$XDG_DATA_HOME/smartai``      ``~/.smartai/data``
=========  ==============================  =====================

The config directory holds ``config.json`` (a serialised
:class:`~smartai.models.GlobalConfig`). A ``smartai.json`` in the working
directory may override any subset of it. :func:`resolve_config` layers those
two files, the ``SMARTAI_*`` environment variables and CLI flags, in that
order.

Every file this package writes goes through :func:`atomic_write`.
"""

from __future__ import annotations

import getpass
import json
import os
import platform
import sys
import tempfile
from pathlib import Path
from typing import Any, Callable, Optional

from smartai.exceptions import ConfigError
from smartai.models import GlobalConfig

_APP_NAME = "smartai"
_CONFIG_FILENAME = "config.json"
_PROJECT_CONFIG_FILENAME = "smartai.json"

# kind -> (XDG variable, default location under $HOME, sub-directory of ~/.smartai)
_DIRS: dict[str, tuple[str, tuple[str, ...], Optional[str]]] = {
    "config": ("XDG_CONFIG_HOME", (".config",), None),
    "cache": ("XDG_CACHE_HOME", (".cache",), "cache"),
    "data": ("XDG_DATA_HOME", (".local", "share"), "data"),
}

_STORAGE_BACKENDS = ("file", "diskcache")


def _is_xdg_platform() -> bool:
    system = platform.system()
    return system == "Linux" or system.endswith("BSD")


def _app_dir(kind: str) -> Path:
    env_var, home_parts, legacy_sub = _DIRS[kind]
    if _is_xdg_platform():
        root = os.environ.get(env_var) or Path.home().joinpath(*home_parts)
        path = Path(root) / _APP_NAME
    else:
        path = Path.home() / f".{_APP_NAME}"
        if legacy_sub:
            path = path / legacy_sub
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_config_dir() -> Path:
    """Directory holding ``config.json``."""
    return _app_dir("config")


def get_cache_dir() -> Path:
    """Directory for the response cache; safe to wipe."""
    return _app_dir("cache")


def get_data_dir() -> Path:
    """Directory for query history and crash logs."""
    return _app_dir("data")


def atomic_write(path: Path, data: str | bytes) -> None:
    """Replace *path* with *data* so readers see either the old or the new file.

    The bytes go to a hidden sibling temp file, are fsynced, and then
    ``os.replace`` swaps it in. If anything fails the temp file is removed
    and the exception is re-raised; *path* is left untouched.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = data.encode("utf-8") if isinstance(data, str) else data

    handle = tempfile.NamedTemporaryFile(
        mode="wb", dir=path.parent, prefix=f".{path.name}.", suffix=".tmp", delete=False
    )
    try:
        with handle:
            handle.write(payload)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(handle.name, path)
    except BaseException:
        try:
            os.unlink(handle.name)
        except OSError:
            pass
        raise


def _read_json(path: Path, label: str) -> Any:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise ConfigError(f"Invalid {label} at {path}: {exc}") from exc


def load_global_config() -> GlobalConfig:
    """Read ``config.json``; a missing file yields the defaults.

    Raises:
        ConfigError: The file is not JSON or does not validate.
    """
    path = get_config_dir() / _CONFIG_FILENAME
    if not path.is_file():
        return GlobalConfig()
    data = _read_json(path, "global config")
    try:
        return GlobalConfig.model_validate(data)
    except ValueError as exc:
        raise ConfigError(f"Invalid global config at {path}: {exc}") from exc


def save_global_config(config: GlobalConfig) -> None:
    text = json.dumps(config.model_dump(mode="json"), indent=2) + "\n"
    atomic_write(get_config_dir() / _CONFIG_FILENAME, text)


def load_project_config() -> Optional[dict[str, Any]]:
    """Return the overrides in ``./smartai.json``, or ``None`` when there is no such file."""
    path = Path.cwd() / _PROJECT_CONFIG_FILENAME
    if not path.is_file():
        return None
    data = _read_json(path, "project config")
    if not isinstance(data, dict):
        raise ConfigError(f"Invalid project config at {path}: expected a JSON object")
    return data


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _priority_from_env(config: GlobalConfig, raw: str) -> None:
    config.provider_priority = [name.strip() for name in raw.split(",") if name.strip()]


def _backend_from_env(config: GlobalConfig, raw: str) -> None:
    if raw not in _STORAGE_BACKENDS:
        raise ConfigError(f"Unknown storage backend in SMARTAI_STORAGE_BACKEND: {raw}")
    config.storage.backend = raw  # type: ignore[assignment]


def _ttl_from_env(config: GlobalConfig, raw: str) -> None:
    try:
        config.cache.ttl_seconds = int(raw)
    except ValueError as exc:
        raise ConfigError(f"SMARTAI_CACHE_TTL must be an integer, got: {raw}") from exc


_ENV_OVERRIDES: dict[str, Callable[[GlobalConfig, str], None]] = {
    "SMARTAI_PROVIDER_PRIORITY": _priority_from_env,
    "SMARTAI_STORAGE_BACKEND": _backend_from_env,
    "SMARTAI_CACHE_TTL": _ttl_from_env,
}


def resolve_config(
    cli_format: Optional[str] = None,
    cli_priority: Optional[list[str]] = None,
) -> GlobalConfig:
    """Build the effective configuration.

    Later layers win: defaults, ``config.json``, ``./smartai.json``, the
    ``SMARTAI_PROVIDER_PRIORITY`` / ``SMARTAI_STORAGE_BACKEND`` /
    ``SMARTAI_CACHE_TTL`` environment variables, then the CLI flags.

    Raises:
        ConfigError: A layer is malformed or the merged result is invalid.
    """
    config = load_global_config()

    overrides = load_project_config()
    if overrides is not None:
        try:
            config = GlobalConfig.model_validate(
                _deep_merge(config.model_dump(mode="json"), overrides)
            )
        except ValueError as exc:
            raise ConfigError(f"Invalid project config override: {exc}") from exc

    for var, apply in _ENV_OVERRIDES.items():
        raw = os.environ.get(var)
        if raw:
            apply(config, raw)

    if cli_priority:
        config.provider_priority = list(cli_priority)
    if cli_format is not None:
        config.output.format = cli_format
    return config


def resolve_credential(source: str) -> str:
    """Turn a provider's ``api_key_source`` into the key itself.

    ``env:NAME`` reads an environment variable, ``file:PATH`` reads a file
    (surrounding whitespace dropped), ``prompt`` asks on the terminal, and
    any other non-empty string is the key.

    Raises:
        ConfigError: The variable is unset, the file is missing or
            unreadable, stdin is not a terminal, or *source* is empty.
    """
    kind, _, rest = source.partition(":")

    if kind == "env" and rest:
        value = os.environ.get(rest)
        if not value:
            raise ConfigError(f"Environment variable '{rest}' is not set (source: {source})")
        return value

    if kind == "file" and rest:
        path = Path(rest).expanduser()
        if not path.is_file():
            raise ConfigError(f"Credential file not found: {path} (source: {source})")
        try:
            return path.read_text(encoding="utf-8").strip()
        except OSError as exc:
            raise ConfigError(f"Cannot read credential file {path}: {exc}") from exc

    if source == "prompt":
        if not sys.stdin.isatty():
            raise ConfigError("Cannot prompt for an API key: stdin is not a TTY")
        return getpass.getpass("API key: ")

    if not source:
        raise ConfigError("Empty credential source")
    return source
