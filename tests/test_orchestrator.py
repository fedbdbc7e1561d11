"""Tests for the query orchestrator, prompt building and search-only formatting."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Optional, Sequence

import pytest

from conftest import FakeClock, FakeProvider, FakeSearch, MemoryBlobStore
from smartai.cache import ResponseCache
from smartai.exceptions import ProviderError, QueryProcessingFailed
from smartai.history import HistoryStore
from smartai.models import CacheConfig, HistoryConfig, QueryOptions
from smartai.orchestrator import (
    SEARCH_ONLY_LEAD_IN,
    QueryOrchestrator,
    build_prompt,
    format_response,
)
from smartai.performance import PerformanceMonitor


SEARCH_TEXT = "1. Python is a programming language\nUsed for scripting.\nURL: https://python.org"


def _orchestrator(
    providers: Sequence[FakeProvider],
    search: Optional[FakeSearch] = None,
    clock: Optional[FakeClock] = None,
    performance: Optional[PerformanceMonitor] = None,
) -> QueryOrchestrator:
    clock = clock or FakeClock()
    return QueryOrchestrator(
        search or FakeSearch(SEARCH_TEXT),
        providers,
        ResponseCache(MemoryBlobStore(), CacheConfig(), clock=clock),
        HistoryStore(MemoryBlobStore(), HistoryConfig(), clock=clock),
        performance=performance,
    )


def _ask(orchestrator: QueryOrchestrator, query: str, **options: bool):
    return asyncio.run(orchestrator.process_query(query, QueryOptions(**options)))


class _SlowBlobStore(MemoryBlobStore):
    def __init__(self, delay: float) -> None:
        super().__init__()
        self.delay = delay

    def write_blob(self, key: str, data: bytes) -> None:
        time.sleep(self.delay)
        super().write_blob(key, data)


class _TickClock:
    """Monotonic clock that advances half a second per reading."""

    def __init__(self) -> None:
        self.value = 100.0

    def __call__(self) -> float:
        self.value += 0.5
        return self.value


# ------------------------------------------------------------------ #
# Cache fast path
# ------------------------------------------------------------------ #


class TestQuickMode:
    def test_cache_hit_skips_search_and_providers(self) -> None:
        provider = FakeProvider("openai", reply="fresh")
        search = FakeSearch()
        orchestrator = _orchestrator([provider], search=search)
        orchestrator.cache.put("What is 2+2?", "4")

        result = _ask(orchestrator, "What is 2+2?", quick=True)

        assert result.source == "cache"
        assert result.response == "4"
        assert result.timestamp is not None
        assert search.calls == []
        assert provider.prompts == []
        assert orchestrator.history.stats().total_entries == 0

    def test_second_quick_query_is_served_from_cache(self) -> None:
        log: list[str] = []
        search = FakeSearch()
        orchestrator = _orchestrator([FakeProvider("openai", reply="4", log=log)], search=search)

        first = _ask(orchestrator, "What is 2+2?", quick=True)
        second = _ask(orchestrator, "What is 2+2?", quick=True)

        assert first.source == "openai"
        assert second.source == "cache"
        assert second.response == first.response == "4"
        assert search.calls == ["What is 2+2?"]
        assert log == ["openai"]

    def test_without_quick_cache_is_ignored(self) -> None:
        search = FakeSearch()
        orchestrator = _orchestrator([FakeProvider("openai", reply="new")], search=search)
        orchestrator.cache.put("q", "old")

        result = _ask(orchestrator, "q")

        assert result.source == "openai"
        assert result.response == "new"
        assert search.calls == ["q"]

    def test_expired_entry_is_a_miss(self) -> None:
        clock = FakeClock()
        orchestrator = _orchestrator([FakeProvider("openai", reply="new")], clock=clock)
        orchestrator.cache.put("q", "old")
        clock.advance(hours=2)

        assert _ask(orchestrator, "q", quick=True).source == "openai"


# ------------------------------------------------------------------ #
# Persistence of resolved answers
# ------------------------------------------------------------------ #


class TestPersistence:
    def test_answer_written_to_cache_and_history(self) -> None:
        orchestrator = _orchestrator([FakeProvider("claude", reply="An answer")])
        before = orchestrator.history.stats().total_entries

        _ask(orchestrator, "Why?")

        cached = orchestrator.cache.get("Why?")
        assert cached is not None and cached.response == "An answer"
        assert orchestrator.history.stats().total_entries == before + 1
        assert orchestrator.history.entries()[-1].question == "Why?"

    def test_search_only_answer_is_also_persisted(self) -> None:
        orchestrator = _orchestrator([])
        result = _ask(orchestrator, "python")

        assert orchestrator.cache.get("python").response == result.response
        assert orchestrator.history.stats().total_entries == 1

    def test_slow_writes_do_not_block_the_event_loop(self) -> None:
        store = _SlowBlobStore(delay=0.3)
        clock = FakeClock()
        orchestrator = QueryOrchestrator(
            FakeSearch(SEARCH_TEXT),
            [FakeProvider("openai", reply="An answer")],
            ResponseCache(store, CacheConfig(), clock=clock),
            HistoryStore(store, HistoryConfig(), clock=clock),
        )

        async def run() -> list[float]:
            gaps: list[float] = []
            done = asyncio.Event()

            async def ticker() -> None:
                last = time.monotonic()
                while not done.is_set():
                    await asyncio.sleep(0.01)
                    now = time.monotonic()
                    gaps.append(now - last)
                    last = now

            task = asyncio.create_task(ticker())
            try:
                await orchestrator.process_query("q")
            finally:
                done.set()
                await task
            return gaps

        gaps = asyncio.run(run())

        assert len(store.writes) == 2
        assert max(gaps) < 0.2


# ------------------------------------------------------------------ #
# Provider fallback
# ------------------------------------------------------------------ #


class TestFallback:
    def test_first_success_wins_and_later_providers_are_not_called(self) -> None:
        log: list[str] = []
        providers = [
            FakeProvider("A", error=ProviderError("A", "boom"), log=log),
            FakeProvider("B", error=RuntimeError("down"), log=log),
            FakeProvider("C", reply="from C", log=log),
            FakeProvider("D", reply="from D", log=log),
        ]

        result = _ask(_orchestrator(providers), "question")

        assert log == ["A", "B", "C"]
        assert result.source == "C"
        assert result.used_model == "C"
        assert result.response == "from C"

    def test_failures_are_logged_as_warnings(self, caplog: pytest.LogCaptureFixture) -> None:
        providers = [
            FakeProvider("A", error=ProviderError("A", "boom")),
            FakeProvider("B", reply="ok"),
        ]
        with caplog.at_level(logging.WARNING, logger="smartai.orchestrator"):
            _ask(_orchestrator(providers), "question")
        assert "A enhancement failed, trying next model" in caplog.text

    def test_empty_reply_counts_as_failure(self) -> None:
        providers = [FakeProvider("blank", reply="   "), FakeProvider("real", reply="text")]
        assert _ask(_orchestrator(providers), "q").source == "real"

    def test_timed_out_provider_falls_through(self) -> None:
        log: list[str] = []
        providers = [
            FakeProvider("slow", reply="late", delay=0.5, timeout=0.01, log=log),
            FakeProvider("fast", reply="on time", log=log),
        ]
        result = _ask(_orchestrator(providers), "q")

        assert log == ["slow", "fast"]
        assert result.source == "fast"
        assert result.response == "on time"

    def test_every_provider_receives_the_same_prompt(self) -> None:
        first = FakeProvider("A", error=RuntimeError("x"))
        second = FakeProvider("B", reply="ok")
        _ask(_orchestrator([first, second]), "What is Python?", detailed=True)
        assert first.prompts == second.prompts
        assert SEARCH_TEXT in first.prompts[0]

    def test_all_failing_falls_back_to_search_text(self) -> None:
        providers = [
            FakeProvider("A", error=RuntimeError("x")),
            FakeProvider("B", error=RuntimeError("y")),
        ]
        result = _ask(_orchestrator(providers), "What is Python?")

        assert result.source == "search"
        assert result.used_model is None
        assert result.search_results == SEARCH_TEXT
        assert result.response == "1. Python is a programming language\n\nUsed for scripting."

    def test_no_providers_configured(self) -> None:
        result = _ask(_orchestrator([]), "anything")
        assert result.source == "search"


# ------------------------------------------------------------------ #
# Search failures
# ------------------------------------------------------------------ #


class TestSearchFailure:
    def test_raises_query_processing_failed(self) -> None:
        provider = FakeProvider("openai", reply="unused")
        orchestrator = _orchestrator(
            [provider], search=FakeSearch(error=ConnectionError("no network"))
        )

        with pytest.raises(QueryProcessingFailed) as exc_info:
            _ask(orchestrator, "What is 2+2?")

        assert exc_info.value.query == "What is 2+2?"
        assert "no network" in str(exc_info.value)
        assert isinstance(exc_info.value.__cause__, ConnectionError)
        assert provider.prompts == []
        assert orchestrator.history.stats().total_entries == 0
        assert len(orchestrator.cache) == 0


# ------------------------------------------------------------------ #
# Performance tracking
# ------------------------------------------------------------------ #


class TestPerformance:
    def test_resolved_queries_are_tracked(self) -> None:
        monitor = PerformanceMonitor(clock=_TickClock())
        orchestrator = _orchestrator([FakeProvider("A", reply="4")], performance=monitor)

        _ask(orchestrator, "q", quick=True)
        _ask(orchestrator, "q", quick=True)

        metrics = monitor.get_metrics()
        assert metrics.total_queries == 1
        assert metrics.total_response_time_ms == pytest.approx(500.0)


# ------------------------------------------------------------------ #
# Prompt building
# ------------------------------------------------------------------ #


class TestBuildPrompt:
    def test_concise_prompt(self) -> None:
        prompt = build_prompt("What is Python?", "results here", QueryOptions())
        assert prompt.startswith(
            'Based on the following search results and the user\'s query "What is Python?", '
            "please provide a concise answer:"
        )
        assert "Search Results:\nresults here\n" in prompt
        assert "- Keep it concise" in prompt
        assert "- Cite sources when possible" in prompt

    def test_detailed_prompt(self) -> None:
        prompt = build_prompt("q", "r", QueryOptions(detailed=True))
        assert "please provide a detailed answer:" in prompt
        assert "- Provide a detailed explanation with examples" in prompt
        assert "- Keep it concise" not in prompt


# ------------------------------------------------------------------ #
# Search-only formatting
# ------------------------------------------------------------------ #


class TestFormatResponse:
    def test_ai_response_returned_verbatim(self) -> None:
        assert format_response("  The answer.  ", "ignored", "q") == "  The answer.  "

    def test_prefers_line_mentioning_query(self) -> None:
        search = "Intro text\nPYTHON rocks\nURL: https://x"
        assert format_response(None, search, "python") == "PYTHON rocks\n\nIntro text"

    def test_numbered_line_skips_url_lines(self) -> None:
        search = "\n\nURL: https://a\n1. First hit\nURL: https://b\nDetails line"
        assert format_response(None, search, "zzz") == "1. First hit\n\nDetails line"

    def test_main_line_alone_when_no_context_line(self) -> None:
        assert format_response(None, "1. Only line\nURL: https://a", "zzz") == "1. Only line"

    def test_lead_in_when_no_line_qualifies(self) -> None:
        assert format_response(None, "alpha\nbeta", "zzz") == SEARCH_ONLY_LEAD_IN + "alpha"

    def test_empty_search_text(self) -> None:
        assert format_response(None, "", "zzz") == SEARCH_ONLY_LEAD_IN
