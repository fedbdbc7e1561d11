"""Static checks and automatic repair for :class:`~smartai.models.GlobalConfig`.

:func:`validate_config` never raises; it reports problems as three lists:

* **errors** make the configuration unusable (unknown provider in the
  priority list, non-positive limits, empty literal keys);
* **warnings** flag suspicious values that still work (literal keys that look
  like placeholders or test keys);
* **fixes** are mechanical corrections :func:`repair_config` can apply.

Only *literal* credential sources are inspected. ``env:``, ``file:`` and
``prompt`` sources are resolved at query time and cannot be checked here.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from smartai.exceptions import ConfigRepairError
from smartai.models import GlobalConfig

_INDIRECT_PREFIXES = ("env:", "file:")
_TEST_KEY_MARKERS = ("test", "dev", "dummy")


class ValidationIssue(BaseModel):
    """One error or warning, addressed by dotted config path."""

    field: str
    message: str


class ConfigFix(BaseModel):
    """A correction that sets the key at *path* to *value*.

    *field* is the dotted form shown to the user; *path* holds the real keys,
    which may themselves contain dots (a provider named ``my.llm``).
    """

    field: str
    path: tuple[str, ...]
    message: str
    value: Any = None


class ValidationResult(BaseModel):
    """Outcome of :func:`validate_config`."""

    is_valid: bool
    errors: list[ValidationIssue] = Field(default_factory=list)
    warnings: list[ValidationIssue] = Field(default_factory=list)
    fixes: list[ConfigFix] = Field(default_factory=list)


class RepairResult(BaseModel):
    """Outcome of a successful :func:`repair_config`."""

    message: str
    config: GlobalConfig
    applied_fixes: list[ConfigFix] = Field(default_factory=list)


def _is_literal_key(source: str) -> bool:
    return source != "prompt" and not source.startswith(_INDIRECT_PREFIXES)


def _check_literal_key(
    path: tuple[str, ...],
    value: str,
    errors: list[ValidationIssue],
    warnings: list[ValidationIssue],
    fixes: list[ConfigFix],
) -> None:
    field = ".".join(path)
    if not value.strip():
        errors.append(ValidationIssue(field=field, message="API key is empty"))
        return

    if value != value.strip():
        warnings.append(
            ValidationIssue(field=field, message="contains leading or trailing whitespace")
        )
        fixes.append(
            ConfigFix(field=field, path=path, message="Remove whitespace", value=value.strip())
        )

    if "${" in value:
        warnings.append(
            ValidationIssue(field=field, message="contains unresolved environment variable")
        )

    lowered = value.lower()
    if any(marker in lowered for marker in _TEST_KEY_MARKERS):
        warnings.append(
            ValidationIssue(field=field, message="appears to be a development/test key")
        )


def validate_config(config: GlobalConfig) -> ValidationResult:
    """Check *config* for errors, suspicious values and mechanical fixes.

    Args:
        config: The configuration to inspect. It is not modified.

    Returns:
        A :class:`ValidationResult`; ``is_valid`` is ``True`` when there are
        no errors (warnings and fixes do not affect validity).
    """
    errors: list[ValidationIssue] = []
    warnings: list[ValidationIssue] = []
    fixes: list[ConfigFix] = []

    # --- Provider chain ---
    unknown = [name for name in config.provider_priority if name not in config.providers]
    for name in unknown:
        errors.append(
            ValidationIssue(
                field="provider_priority",
                message=f"'{name}' is not a configured provider",
            )
        )
    if unknown:
        fixes.append(
            ConfigFix(
                field="provider_priority",
                path=("provider_priority",),
                message=f"Remove unknown providers: {', '.join(unknown)}",
                value=[n for n in config.provider_priority if n in config.providers],
            )
        )

    active = [
        name
        for name in config.provider_priority
        if name in config.providers and config.providers[name].enabled
    ]
    if not active:
        warnings.append(
            ValidationIssue(
                field="provider_priority",
                message="no enabled providers; answers will come from search results only",
            )
        )

    for name, provider in config.providers.items():
        prefix = f"providers.{name}"
        if provider.timeout is not None and provider.timeout <= 0:
            errors.append(
                ValidationIssue(field=f"{prefix}.timeout", message="must be positive or null")
            )
        if provider.max_tokens <= 0:
            errors.append(ValidationIssue(field=f"{prefix}.max_tokens", message="must be positive"))
        if _is_literal_key(provider.api_key_source):
            _check_literal_key(
                ("providers", name, "api_key_source"),
                provider.api_key_source,
                errors,
                warnings,
                fixes,
            )

    if _is_literal_key(config.search.api_key_source):
        _check_literal_key(
            ("search", "api_key_source"), config.search.api_key_source, errors, warnings, fixes
        )
    if config.search.num_results <= 0:
        errors.append(ValidationIssue(field="search.num_results", message="must be positive"))

    # --- Store limits ---
    limits = {
        "cache.ttl_seconds": config.cache.ttl_seconds,
        "cache.max_size": config.cache.max_size,
        "history.max_entries": config.history.max_entries,
        "history.max_size_mb": config.history.max_size_mb,
        "history.compress_threshold": config.history.compress_threshold,
    }
    for field, value in limits.items():
        if value <= 0:
            errors.append(ValidationIssue(field=field, message="must be positive"))

    return ValidationResult(
        is_valid=not errors, errors=errors, warnings=warnings, fixes=fixes
    )


def _apply_fix(data: dict[str, Any], fix: ConfigFix) -> None:
    *parents, leaf = fix.path
    target = data
    for part in parents:
        target = target[part]
    target[leaf] = fix.value


def repair_config(config: GlobalConfig) -> RepairResult:
    """Apply every available fix to a copy of *config* and re-validate it.

    Args:
        config: The configuration to repair. It is not modified.

    Returns:
        A :class:`RepairResult` carrying the repaired configuration and the
        fixes that were applied.

    Raises:
        ConfigRepairError: If errors remain after all fixes are applied.
    """
    result = validate_config(config)
    if result.is_valid and not result.fixes:
        return RepairResult(
            message="Configuration is valid, no repairs needed",
            config=config.model_copy(deep=True),
        )

    data = config.model_dump(mode="json")
    for fix in result.fixes:
        _apply_fix(data, fix)
    repaired = GlobalConfig.model_validate(data)

    final = validate_config(repaired)
    if not final.is_valid:
        raise ConfigRepairError(
            "Failed to repair configuration: "
            "configuration could not be automatically repaired",
            errors=[f"{issue.field}: {issue.message}" for issue in final.errors],
        )

    return RepairResult(
        message="Configuration repaired successfully",
        config=repaired,
        applied_fixes=result.fixes,
    )
