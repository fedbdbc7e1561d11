"""Build provider clients from :class:`~smartai.models.GlobalConfig`."""

from __future__ import annotations

import logging
from typing import Callable

from smartai.config import resolve_credential
from smartai.exceptions import ConfigError
from smartai.models import GlobalConfig
from smartai.providers.base import SearchClient, TextGenerator
from smartai.providers.llm import GENERATOR_TYPES
from smartai.providers.search import SerperSearchClient

logger = logging.getLogger(__name__)


def build_providers(
    config: GlobalConfig,
    resolve: Callable[[str], str] = resolve_credential,
) -> list[TextGenerator]:
    """Instantiate the LLM clients named in ``provider_priority``, in that order.

    Names without a matching ``providers`` entry, disabled providers and
    providers whose API key cannot be resolved are skipped with a warning, so
    a user with a single key configured still gets a working (shorter)
    fallback chain.

    Args:
        config: The effective global configuration.
        resolve: Credential resolver; defaults to
            :func:`~smartai.config.resolve_credential`.

    Returns:
        The ready-to-use generators in priority order.
    """
    generators: list[TextGenerator] = []
    for name in config.provider_priority:
        provider_cfg = config.providers.get(name)
        if provider_cfg is None:
            logger.warning("Provider '%s' is in the priority list but not configured", name)
            continue
        if not provider_cfg.enabled:
            logger.debug("Provider '%s' is disabled, skipping", name)
            continue
        try:
            api_key = resolve(provider_cfg.api_key_source)
        except ConfigError as exc:
            logger.warning("Skipping provider '%s': %s", name, exc)
            continue

        cls = GENERATOR_TYPES[provider_cfg.type]
        generators.append(
            cls(
                name=name,
                api_key=api_key,
                model=provider_cfg.model,
                base_url=provider_cfg.base_url,
                timeout=provider_cfg.timeout,
                max_tokens=provider_cfg.max_tokens,
                temperature=provider_cfg.temperature,
            )
        )
    return generators


def build_search_client(
    config: GlobalConfig,
    resolve: Callable[[str], str] = resolve_credential,
) -> SearchClient:
    """Instantiate the configured search client.

    Raises:
        ConfigError: If the search API key cannot be resolved. Search is
            mandatory, so there is nothing to fall back to.
    """
    search_cfg = config.search
    api_key = resolve(search_cfg.api_key_source)
    return SerperSearchClient(
        api_key=api_key,
        base_url=search_cfg.base_url,
        num_results=search_cfg.num_results,
        timeout=search_cfg.timeout,
    )
