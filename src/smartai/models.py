"""Pydantic models for smart-ai settings and for the data the query pipeline passes around.

**Settings** (stored in ``config.json``):
    :class:`ProviderConfig`, :class:`SearchConfig`, :class:`CacheConfig`,
    :class:`HistoryConfig`, :class:`StorageConfig`, :class:`OutputConfig`,
    :class:`PluginsConfig`, and :class:`GlobalConfig`.

**Pipeline data**:
    :class:`HistoryEntry`, :class:`HistoryStats`, :class:`CacheEntry`,
    :class:`CacheStats`, :class:`QueryOptions`, :class:`QueryResult`, and
    :class:`PerformanceMetrics`.

All models use Pydantic v2. The persisted history and cache models use
camelCase aliases so that their on-disk layout stays stable regardless of
Python attribute naming.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator


def _as_utc(value: datetime) -> datetime:
    """Treat naive timestamps (older blobs) as UTC so comparisons never mix kinds."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


# --- Provider / search config ---


class ProviderConfig(BaseModel):
    """Connection settings for one LLM back-end.

    The dictionary key under :attr:`GlobalConfig.providers` is the provider
    *name* used in :attr:`GlobalConfig.provider_priority` and reported as
    ``used_model`` in query results. ``type`` selects the client
    implementation, so two differently-named providers may share a type
    (e.g. two OpenAI-compatible endpoints).

    Example::

        ProviderConfig(
            type="openai",
            api_key_source="env:OPENAI_API_KEY",
            model="gpt-4o-mini",
        )
    """

    type: Literal["openai", "claude", "bard", "llama"] = Field(
        default="openai", description="Client implementation: openai, claude, bard, llama"
    )
    enabled: bool = Field(default=True, description="Include this provider in the fallback chain")
    api_key_source: str = Field(
        default="prompt",
        description="Credential source: env:VAR, file:/path, prompt, or a literal key",
    )
    model: Optional[str] = Field(default=None, description="Model identifier sent to the API")
    base_url: Optional[str] = Field(default=None, description="Override the API base URL")
    timeout: Optional[float] = Field(
        default=30.0,
        description="Seconds to wait for a response; null waits indefinitely",
    )
    max_tokens: int = Field(default=1000, description="Upper bound on generated tokens")
    temperature: float = Field(default=0.7, description="Sampling temperature")


class SearchConfig(BaseModel):
    """Web search provider settings."""

    provider: Literal["serper"] = "serper"
    api_key_source: str = Field(
        default="env:SERPER_API_KEY",
        description="Credential source: env:VAR, file:/path, prompt, or a literal key",
    )
    base_url: str = Field(default="https://google.serper.dev")
    num_results: int = Field(default=5, description="Organic results to include")
    timeout: Optional[float] = Field(default=30.0, description="Request timeout in seconds")


def _default_providers() -> dict[str, ProviderConfig]:
    return {
        "openai": ProviderConfig(
            type="openai",
            api_key_source="env:OPENAI_API_KEY",
            model="gpt-4o-mini",
        ),
        "claude": ProviderConfig(
            type="claude",
            api_key_source="env:CLAUDE_API_KEY",
            model="claude-3-5-haiku-latest",
        ),
        "bard": ProviderConfig(
            type="bard",
            api_key_source="env:BARD_API_KEY",
            model="gemini-1.5-flash",
        ),
        "llama": ProviderConfig(
            type="llama",
            api_key_source="env:LLAMA_API_KEY",
            model="llama3.1-70b",
        ),
    }


# --- Store config ---


class CacheConfig(BaseModel):
    """Response cache settings stored in :class:`GlobalConfig`."""

    enabled: bool = Field(default=True, description="Enable response caching")
    ttl_seconds: int = Field(default=3600, description="Cache TTL in seconds")
    max_size: int = Field(default=1000, description="Maximum number of cached answers")


class HistoryConfig(BaseModel):
    """Query history limits stored in :class:`GlobalConfig`."""

    max_entries: int = Field(default=10000, description="Maximum number of history entries")
    max_size_mb: int = Field(default=100, description="Maximum compressed history size in MB")
    compress_threshold: int = Field(
        default=1024, description="Answers larger than this many UTF-8 bytes are compressed"
    )


class StorageConfig(BaseModel):
    """Selects the durable backend for cache and history blobs."""

    backend: Literal["file", "diskcache"] = Field(
        default="file", description="Blob backend: file or diskcache"
    )


class OutputConfig(BaseModel):
    """Preferred output format when no --json or --plain flag is given."""

    format: str = Field(
        default="auto", description="Output format: auto, json, plain, rich"
    )


class PluginsConfig(BaseModel):
    """Which entry-point plugins to load; see :class:`~smartai.plugins.PluginManager`."""

    enabled: list[str] = Field(default_factory=list)
    disabled: list[str] = Field(default_factory=list)


class GlobalConfig(BaseModel):
    """User-wide configuration persisted at ``~/.config/smartai/config.json``.

    ``./smartai.json``, the ``SMARTAI_*`` variables and CLI flags all take
    priority over it; :func:`~smartai.config.resolve_config` applies them.
    """

    provider_priority: list[str] = Field(
        default_factory=lambda: ["openai", "claude", "bard", "llama"],
        description="Order in which providers are tried",
    )
    providers: dict[str, ProviderConfig] = Field(default_factory=_default_providers)
    search: SearchConfig = Field(default_factory=SearchConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    history: HistoryConfig = Field(default_factory=HistoryConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    plugins: PluginsConfig = Field(default_factory=PluginsConfig)


# --- History ---


class HistoryEntry(BaseModel):
    """One resolved question/answer pair in the history log.

    Entries are immutable once written. When ``compressed`` is ``True`` the
    ``answer`` field holds base64-encoded gzip data; use
    :func:`smartai.history.decompress_answer` to recover the text.
    """

    model_config = ConfigDict(frozen=True)

    timestamp: datetime
    question: str
    answer: str
    compressed: bool = False

    @field_validator("timestamp")
    @classmethod
    def normalize_timestamp(cls, value: datetime) -> datetime:
        return _as_utc(value)


class HistoryStats(BaseModel):
    """Process-wide history counters, persisted next to the entries."""

    model_config = ConfigDict(populate_by_name=True)

    total_entries: int = Field(default=0, alias="totalEntries")
    compressed_size: int = Field(default=0, alias="compressedSize")
    max_entries: int = Field(default=10000, alias="maxEntries")
    max_size_mb: int = Field(default=100, alias="maxSizeMB")

    @computed_field(alias="compressionRatio")  # type: ignore[prop-decorator]
    @property
    def compression_ratio(self) -> float:
        # Entries per kilobyte of compressed blob; kept for compatibility.
        if self.compressed_size > 0:
            return self.total_entries * 1000 / self.compressed_size
        return 0.0


# --- Cache ---


class CacheEntry(BaseModel):
    """A cached answer keyed by the exact question text."""

    question: str
    response: str
    timestamp: datetime

    @field_validator("timestamp")
    @classmethod
    def normalize_timestamp(cls, value: datetime) -> datetime:
        return _as_utc(value)


class CacheStats(BaseModel):
    """In-memory cache counters. Reset on every process start."""

    hits: int = 0
    misses: int = 0
    evictions: int = 0
    size: int = 0
    max_size: int = 1000

    @computed_field  # type: ignore[prop-decorator]
    @property
    def hit_rate(self) -> float:
        total = self.hits + self.misses
        return self.hits / total if total else 0.0


# --- Query pipeline ---


class QueryOptions(BaseModel):
    """Per-call switches for :meth:`~smartai.orchestrator.QueryOrchestrator.process_query`."""

    quick: bool = Field(default=False, description="Serve a fresh cached answer when available")
    detailed: bool = Field(default=False, description="Ask providers for a detailed answer")


class QueryResult(BaseModel):
    """The outcome of a processed query.

    ``source`` is ``"cache"`` for a cache hit, the answering provider's name
    when an LLM responded, or ``"search"`` when the answer was derived from
    the raw search text alone.
    """

    response: str
    source: str
    search_results: Optional[str] = None
    used_model: Optional[str] = None
    timestamp: Optional[datetime] = None


class PerformanceMetrics(BaseModel):
    """Snapshot returned by :meth:`~smartai.performance.PerformanceMonitor.get_metrics`."""

    uptime_seconds: float
    total_queries: int
    total_response_time_ms: float
    average_response_time_ms: float
    cpu_user_seconds: float
    cpu_system_seconds: float
    max_rss_mb: Optional[float] = None
    load_average: Optional[tuple[float, float, float]] = None
