"""Response caching for smartai.

This package provides :class:`ResponseCache`, a short-horizon memo of
answers keyed by the exact question text. Entries expire after a
configurable TTL, the oldest entry is evicted when the cache is full, and
the whole mapping is persisted through a :class:`~smartai.storage.BlobStore`.

The cache is consumed by :class:`~smartai.orchestrator.QueryOrchestrator`
and is controlled by the ``cache`` section of the global configuration
(:class:`~smartai.models.CacheConfig`).
"""

from smartai.cache.cache import CACHE_BLOB_KEY, ResponseCache

__all__ = ["CACHE_BLOB_KEY", "ResponseCache"]
