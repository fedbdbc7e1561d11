"""Compressed, size-bounded query history persisted as one gzip blob.

Every resolved question/answer pair is appended to an ordered log. Large
answers are gzip-compressed and base64-encoded individually, and the whole
log (entries plus :class:`~smartai.models.HistoryStats`) is serialised to
JSON and gzip-compressed again as a single unit before being written
through a :class:`~smartai.storage.BlobStore`.

Two bounds keep the log in check:

* ``max_entries`` -- the oldest entries are dropped once the count is
  exceeded (on :meth:`HistoryStore.append` and after :meth:`HistoryStore.load`).
* ``max_size_mb`` -- before each write, the oldest entries are dropped until
  the compressed blob fits.

Entries are never edited in place. They leave the log only through
trimming, :meth:`HistoryStore.clear_older_than`, or :meth:`HistoryStore.clear`.
"""

from __future__ import annotations

import base64
import binascii
import gzip
import json
import logging
import threading
import zlib
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from pydantic import ValidationError

from smartai.exceptions import PersistenceError
from smartai.models import HistoryConfig, HistoryEntry, HistoryStats
from smartai.storage import BlobStore

logger = logging.getLogger(__name__)

HISTORY_BLOB_KEY = "history.json.gz"

_BYTES_PER_MB = 1024 * 1024


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def compress_text(text: str) -> str:
    """Gzip *text* and return the result as base64 ASCII."""
    return base64.b64encode(gzip.compress(text.encode("utf-8"))).decode("ascii")


def decompress_answer(entry: HistoryEntry) -> str:
    """Return the plain-text answer of *entry*, decompressing when needed.

    Raises:
        ValueError: If a compressed answer is not valid base64 gzip data.
    """
    if not entry.compressed:
        return entry.answer
    try:
        return gzip.decompress(base64.b64decode(entry.answer, validate=True)).decode("utf-8")
    except (binascii.Error, OSError, EOFError, zlib.error, UnicodeDecodeError) as exc:
        raise ValueError(f"Corrupt compressed answer for {entry.question!r}: {exc}") from exc


class HistoryStore:
    """Append-only log of past queries with compression and bounded size.

    The store loads the persisted blob on construction. A missing blob (first
    run) or one that cannot be decoded (crash mid-write) yields an empty log;
    neither is an error.

    Args:
        store: Durable backend the log is written to.
        config: Limits (``max_entries``, ``max_size_mb``) and the answer
            compression threshold.
        clock: Returns the current UTC time. Tests inject a fake clock.

    Example::

        history = HistoryStore(FileBlobStore(get_data_dir()), HistoryConfig())
        history.append("What is 2+2?", "4")
        matches = history.search("2+2")
    """

    def __init__(
        self,
        store: BlobStore,
        config: HistoryConfig,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._store = store
        self._config = config
        self._clock = clock or _utcnow
        self._lock = threading.Lock()
        self._entries: list[HistoryEntry] = []
        self._stats = self._default_stats()
        self.load()

    def _default_stats(self) -> HistoryStats:
        return HistoryStats(
            total_entries=0,
            compressed_size=0,
            max_entries=self._config.max_entries,
            max_size_mb=self._config.max_size_mb,
        )

    def __len__(self) -> int:
        return len(self._entries)

    # ------------------------------------------------------------------ #
    # Persistence
    # ------------------------------------------------------------------ #

    def load(self) -> None:
        """Replace the in-memory log with the persisted one, then apply :meth:`cleanup`."""
        raw = self._store.read_blob(HISTORY_BLOB_KEY)
        entries: list[HistoryEntry] = []
        stats = self._default_stats()
        if raw is not None:
            try:
                data = json.loads(gzip.decompress(raw).decode("utf-8"))
                entries = [HistoryEntry.model_validate(item) for item in data["entries"]]
                stats = HistoryStats.model_validate(data.get("stats") or {})
                stats.compressed_size = len(raw)
            except (
                OSError,
                EOFError,
                zlib.error,
                UnicodeDecodeError,
                ValueError,
                KeyError,
                TypeError,
                ValidationError,
            ) as exc:
                logger.warning("Discarding unreadable history: %s", exc)
                entries = []
                stats = self._default_stats()

        # Configured limits win over whatever an older run persisted.
        stats.max_entries = self._config.max_entries
        stats.max_size_mb = self._config.max_size_mb
        stats.total_entries = len(entries)

        with self._lock:
            self._entries = entries
            self._stats = stats
        self.cleanup()

    def cleanup(self) -> None:
        """Drop the oldest entries until at most ``max_entries`` remain."""
        with self._lock:
            self._trim_to_max_entries_locked()

    def _trim_to_max_entries_locked(self) -> None:
        excess = len(self._entries) - self._config.max_entries
        if excess > 0:
            del self._entries[:excess]
            self._stats.total_entries = len(self._entries)
            logger.debug("Trimmed %d oldest history entries", excess)

    def _serialise_locked(self) -> bytes:
        # compressedSize is the blob's own length, so load() derives it instead.
        payload = {
            "entries": [entry.model_dump(mode="json") for entry in self._entries],
            "stats": self._stats.model_dump(
                mode="json", by_alias=True, exclude={"compression_ratio", "compressed_size"}
            ),
        }
        return gzip.compress(json.dumps(payload, ensure_ascii=False).encode("utf-8"))

    def _save_locked(self) -> None:
        """Write the whole log, dropping oldest entries until it fits. Caller holds the lock."""
        limit = self._config.max_size_mb * _BYTES_PER_MB
        blob = self._serialise_locked()
        while len(blob) > limit and self._entries:
            self._entries.pop(0)
            self._stats.total_entries -= 1
            blob = self._serialise_locked()

        try:
            self._store.write_blob(HISTORY_BLOB_KEY, blob)
        except PersistenceError as exc:
            logger.error("Failed to save history: %s", exc)
            return
        self._stats.compressed_size = len(blob)

    def save(self) -> None:
        """Persist the current log. Write failures are logged, not raised."""
        with self._lock:
            self._save_locked()

    # ------------------------------------------------------------------ #
    # Mutation
    # ------------------------------------------------------------------ #

    def append(self, question: str, answer: str) -> HistoryEntry:
        """Record a resolved query and persist the log.

        Answers whose UTF-8 encoding exceeds ``compress_threshold`` bytes are
        stored compressed with ``compressed=True``.

        Returns:
            The stored :class:`~smartai.models.HistoryEntry`.
        """
        compressed = len(answer.encode("utf-8")) > self._config.compress_threshold
        entry = HistoryEntry(
            timestamp=self._clock(),
            question=question,
            answer=compress_text(answer) if compressed else answer,
            compressed=compressed,
        )
        with self._lock:
            self._entries.append(entry)
            self._stats.total_entries += 1
            self._trim_to_max_entries_locked()
            self._save_locked()
        return entry

    def clear_older_than(self, days: int = 30) -> int:
        """Remove every entry older than *days* days and persist.

        Returns:
            The number of entries removed.
        """
        cutoff = self._clock() - timedelta(days=days)
        with self._lock:
            before = len(self._entries)
            self._entries = [e for e in self._entries if e.timestamp > cutoff]
            self._stats.total_entries = len(self._entries)
            self._save_locked()
            return before - len(self._entries)

    def clear(self) -> None:
        """Remove all entries and persist the empty log."""
        with self._lock:
            self._entries = []
            self._stats.total_entries = 0
            self._save_locked()

    # ------------------------------------------------------------------ #
    # Read-only access
    # ------------------------------------------------------------------ #

    def entries(self) -> list[HistoryEntry]:
        """Return all entries, oldest first."""
        with self._lock:
            return list(self._entries)

    def recent(self, limit: int = 5) -> list[HistoryEntry]:
        """Return the *limit* most recent entries, oldest first."""
        if limit <= 0:
            return []
        with self._lock:
            return list(self._entries[-limit:])

    def search(self, text: str) -> list[HistoryEntry]:
        """Return entries whose question or answer contains *text*, case-insensitively.

        Compressed answers are decompressed for matching. Entries whose
        answer cannot be decompressed are matched on the question only.
        """
        needle = text.lower()
        with self._lock:
            snapshot = list(self._entries)

        matches: list[HistoryEntry] = []
        for entry in snapshot:
            if needle in entry.question.lower():
                matches.append(entry)
                continue
            try:
                answer = decompress_answer(entry)
            except ValueError as exc:
                logger.warning("%s", exc)
                continue
            if needle in answer.lower():
                matches.append(entry)
        return matches

    def stats(self) -> HistoryStats:
        """Return a snapshot of the history stats (``compression_ratio`` included)."""
        with self._lock:
            return self._stats.model_copy()

    def close(self) -> None:
        """Release the underlying blob store."""
        self._store.close()
