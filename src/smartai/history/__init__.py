"""Persistent query history for smartai.

:class:`HistoryStore` keeps an append-only, compressed log of every resolved
question and answer, bounded by entry count and by compressed size. It is
owned by :class:`~smartai.orchestrator.QueryOrchestrator` and read by the
``smart-ai history`` commands.
"""

from smartai.history.store import (
    HISTORY_BLOB_KEY,
    HistoryStore,
    compress_text,
    decompress_answer,
)

__all__ = ["HISTORY_BLOB_KEY", "HistoryStore", "compress_text", "decompress_answer"]
