"""Wiring helpers that build the stores and the orchestrator for CLI commands.

The response cache lives in :func:`~smartai.config.get_cache_dir` and the
history in :func:`~smartai.config.get_data_dir`; both use the blob backend
selected by ``storage.backend``.
"""

from __future__ import annotations

import logging
from typing import Optional

from smartai.cache import ResponseCache
from smartai.config import get_cache_dir, get_data_dir
from smartai.history import HistoryStore
from smartai.models import GlobalConfig
from smartai.orchestrator import QueryOrchestrator
from smartai.performance import PerformanceMonitor
from smartai.providers import build_providers, build_search_client
from smartai.storage import create_blob_store

logger = logging.getLogger(__name__)


def open_cache(config: GlobalConfig) -> ResponseCache:
    """Open the persistent response cache."""
    store = create_blob_store(config.storage, get_cache_dir())
    return ResponseCache(store, config.cache)


def open_history(config: GlobalConfig) -> HistoryStore:
    """Open the persistent query history."""
    store = create_blob_store(config.storage, get_data_dir())
    return HistoryStore(store, config.history)


def build_orchestrator(
    config: GlobalConfig,
    performance: Optional[PerformanceMonitor] = None,
) -> QueryOrchestrator:
    """Build a ready-to-use :class:`QueryOrchestrator` from *config*.

    Raises:
        ConfigError: If the search API key cannot be resolved.
    """
    search = build_search_client(config)
    providers = build_providers(config)
    if not providers:
        logger.warning("No LLM providers available; answers will come from search results")
    else:
        logger.debug("Provider chain: %s", ", ".join(p.name for p in providers))
    return QueryOrchestrator(
        search_client=search,
        providers=providers,
        cache=open_cache(config),
        history=open_history(config),
        performance=performance,
    )
