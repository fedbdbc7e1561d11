"""Bounded, time-boxed response cache persisted as a single JSON blob.

Answers are keyed by the exact question text. An entry is *live* while it is
younger than the configured TTL; expired entries are dropped lazily the next
time they are looked up. When the cache is full, inserting a new answer
first evicts the entry with the oldest timestamp (a linear scan, which is
fine at the default bound of 1000 entries).

The full mapping is written through a :class:`~smartai.storage.BlobStore`
after every :meth:`ResponseCache.put` and :meth:`ResponseCache.clear` as an
uncompressed JSON list of ``[question, entry]`` pairs. Hit/miss/eviction
counters live only in memory and start at zero in every process.

See Also:
    :class:`~smartai.models.CacheConfig` -- the Pydantic model that
    controls ``enabled``, ``ttl_seconds`` and ``max_size``.
"""

from __future__ import annotations

import json
import logging
import threading
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from pydantic import ValidationError

from smartai.exceptions import PersistenceError
from smartai.models import CacheConfig, CacheEntry, CacheStats
from smartai.storage import BlobStore

logger = logging.getLogger(__name__)

CACHE_BLOB_KEY = "cache.json"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ResponseCache:
    """In-memory answer cache with TTL expiry, size-bounded eviction, and persistence.

    Every read-modify-write (lookup with lazy expiry, insert with eviction,
    clear) runs under a per-instance lock so concurrent callers cannot lose
    counter updates or evict twice. The lock is never held while a provider
    or search call is in flight.

    Args:
        store: Durable backend the mapping is written to.
        config: Cache configuration (``enabled``, ``ttl_seconds``, ``max_size``).
        clock: Returns the current UTC time. Tests inject a fake clock.

    Example::

        from smartai.cache import ResponseCache
        from smartai.models import CacheConfig
        from smartai.storage import FileBlobStore

        cache = ResponseCache(FileBlobStore("/tmp/smartai"), CacheConfig())
        cache.put("What is 2+2?", "4")
        hit = cache.get("What is 2+2?")
    """

    def __init__(
        self,
        store: BlobStore,
        config: CacheConfig,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._store = store
        self._config = config
        self._clock = clock or _utcnow
        self._lock = threading.Lock()
        self._entries: dict[str, CacheEntry] = {}
        self._stats = CacheStats(max_size=config.max_size)
        self.load()

    @property
    def ttl(self) -> timedelta:
        return timedelta(seconds=self._config.ttl_seconds)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, question: object) -> bool:
        return question in self._entries

    # ------------------------------------------------------------------ #
    # Persistence
    # ------------------------------------------------------------------ #

    def load(self) -> None:
        """Replace the in-memory mapping with the persisted one.

        A missing blob is the normal first-run state. A blob that cannot be
        decoded is treated the same way: the cache starts empty.
        """
        raw = self._store.read_blob(CACHE_BLOB_KEY)
        entries: dict[str, CacheEntry] = {}
        if raw is not None:
            try:
                pairs = json.loads(raw.decode("utf-8"))
                for question, data in pairs:
                    entries[question] = CacheEntry.model_validate(
                        {**data, "question": question}
                    )
            except (UnicodeDecodeError, ValueError, TypeError, ValidationError) as exc:
                logger.warning("Discarding unreadable response cache: %s", exc)
                entries = {}
        with self._lock:
            self._entries = entries
            dropped = self._evict_oldest_locked(self._config.max_size)
            if dropped:
                logger.debug("Trimmed %d cached answers over max_size on load", dropped)
            self._stats.size = len(self._entries)

    def _evict_oldest_locked(self, limit: int) -> int:
        """Drop oldest-timestamp entries until at most *limit* remain; return how many."""
        dropped = 0
        while self._entries and len(self._entries) > limit:
            oldest = min(self._entries, key=lambda q: self._entries[q].timestamp)
            del self._entries[oldest]
            dropped += 1
        return dropped

    def _save_locked(self) -> None:
        """Write the full mapping. Caller must hold ``self._lock``."""
        pairs = [
            [question, entry.model_dump(mode="json")]
            for question, entry in self._entries.items()
        ]
        data = json.dumps(pairs, indent=2, ensure_ascii=False).encode("utf-8")
        try:
            self._store.write_blob(CACHE_BLOB_KEY, data)
        except PersistenceError as exc:
            logger.warning("Failed to save response cache: %s", exc)

    # ------------------------------------------------------------------ #
    # Lookup / insert
    # ------------------------------------------------------------------ #

    def get(self, question: str) -> Optional[CacheEntry]:
        """Look up a live cached answer.

        Args:
            question: Exact question text; no normalisation is applied.

        Returns:
            The :class:`~smartai.models.CacheEntry` on a hit, or ``None`` on
            a miss, on expiry, or when caching is disabled.
        """
        if not self._config.enabled:
            return None

        with self._lock:
            entry = self._entries.get(question)
            if entry is not None:
                if self._clock() - entry.timestamp < self.ttl:
                    self._stats.hits += 1
                    return entry
                # Expired: drop it and fall through to a miss.
                del self._entries[question]
                self._stats.evictions += 1
                self._stats.size = len(self._entries)
                logger.debug("Cache entry expired: %r", question)
            self._stats.misses += 1
            return None

    def put(self, question: str, response: str) -> None:
        """Store *response* under *question* with the current timestamp.

        When the cache already holds ``max_size`` entries, the entry with the
        oldest timestamp is evicted first, so the size never exceeds
        ``max_size``. The whole mapping is persisted afterwards.
        """
        if not self._config.enabled:
            return

        with self._lock:
            evicted = self._evict_oldest_locked(self._config.max_size - 1)
            if evicted:
                self._stats.evictions += evicted
                logger.debug("Cache full, evicted %d oldest entries", evicted)

            self._entries[question] = CacheEntry(
                question=question,
                response=response,
                timestamp=self._clock(),
            )
            self._stats.size = len(self._entries)
            self._save_locked()

    def clear(self) -> None:
        """Remove all entries, reset every counter, and persist the empty mapping."""
        with self._lock:
            self._entries.clear()
            self._stats = CacheStats(max_size=self._config.max_size)
            self._save_locked()

    # ------------------------------------------------------------------ #
    # Introspection
    # ------------------------------------------------------------------ #

    def stats(self) -> CacheStats:
        """Return a snapshot of the cache counters (``hit_rate`` included)."""
        with self._lock:
            return self._stats.model_copy()

    def entries(self) -> list[CacheEntry]:
        """Return the cached entries in insertion order."""
        with self._lock:
            return list(self._entries.values())

    def close(self) -> None:
        """Release the underlying blob store."""
        self._store.close()
