"""Query orchestration: cache, search, provider fallback, formatting, persistence.

:class:`QueryOrchestrator` resolves one query end to end:

1. In *quick* mode, a live :class:`~smartai.cache.ResponseCache` entry is
   returned immediately -- no search, no provider calls, no history write.
2. The search client is queried. Search is mandatory; its failure raises
   :class:`~smartai.exceptions.QueryProcessingFailed`.
3. Providers are tried strictly one after another in priority order. The
   first one that returns text wins; each failure is logged and the next
   provider is tried. If every provider fails the answer is derived from the
   raw search text instead.
4. The final answer is written to the cache and the history, both keyed by
   the original query.

The orchestrator owns exactly one cache and one history instance, injected
at construction time.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional, Sequence

from smartai.cache import ResponseCache
from smartai.exceptions import ProviderError, QueryProcessingFailed
from smartai.history import HistoryStore
from smartai.models import QueryOptions, QueryResult
from smartai.performance import PerformanceMonitor
from smartai.providers.base import SearchClient, TextGenerator

logger = logging.getLogger(__name__)

SEARCH_ONLY_LEAD_IN = "Based on the search results, here's what I found:\n\n"


def build_prompt(query: str, search_results: str, options: QueryOptions) -> str:
    """Build the prompt sent to every provider in the fallback chain."""
    detail = "detailed" if options.detailed else "concise"
    requirement = (
        "- Provide a detailed explanation with examples"
        if options.detailed
        else "- Keep it concise"
    )
    return (
        f'Based on the following search results and the user\'s query "{query}", '
        f"please provide a {detail} answer:\n"
        "\n"
        "Search Results:\n"
        f"{search_results}\n"
        "\n"
        "Additional requirements:\n"
        f"{requirement}\n"
        "- Include relevant facts and figures\n"
        "- Cite sources when possible\n"
        "- Focus on practical, actionable information"
    )


def format_response(ai_response: Optional[str], search_results: str, query: str) -> str:
    """Return the LLM answer verbatim, or derive one from the raw search text.

    Without an LLM answer, the first non-blank line that mentions the query
    (case-insensitively) or starts with ``"1."`` and is not a URL line becomes
    the answer, followed by one further non-URL line of context. If no line
    qualifies, the first line is returned behind a short lead-in.
    """
    if ai_response:
        return ai_response

    try:
        lines = [line for line in search_results.split("\n") if line.strip()]
        needle = query.lower()
        main = next(
            (
                line
                for line in lines
                if needle in line.lower()
                or (line.startswith("1.") and "url:" not in line.lower())
            ),
            None,
        )
        if main is None:
            return SEARCH_ONLY_LEAD_IN + lines[0]

        extra = next(
            (
                line
                for line in lines
                if main not in line and "url:" not in line.lower() and line.strip()
            ),
            None,
        )
        response = main.strip()
        if extra:
            response += "\n\n" + extra.strip()
        return response
    except (AttributeError, IndexError, TypeError) as exc:
        logger.error("Error formatting search results: %s", exc)
        return SEARCH_ONLY_LEAD_IN + str(search_results).split("\n")[0]


class QueryOrchestrator:
    """Coordinates search, sequential provider fallback, and answer persistence.

    Args:
        search_client: The web search back-end.
        providers: LLM back-ends in priority order. The order is fixed for
            the lifetime of the orchestrator.
        cache: Response cache consulted in quick mode and written after every
            resolved query.
        history: History log appended after every resolved query.
        performance: Optional monitor that receives the latency of every
            resolved query.

    Example::

        orchestrator = QueryOrchestrator(search, [openai, claude], cache, history)
        result = await orchestrator.process_query(
            "What is 2+2?", QueryOptions(quick=True)
        )
    """

    def __init__(
        self,
        search_client: SearchClient,
        providers: Sequence[TextGenerator],
        cache: ResponseCache,
        history: HistoryStore,
        performance: Optional[PerformanceMonitor] = None,
    ) -> None:
        self._search = search_client
        self._providers = tuple(providers)
        self._cache = cache
        self._history = history
        self._performance = performance

    @property
    def cache(self) -> ResponseCache:
        return self._cache

    @property
    def history(self) -> HistoryStore:
        return self._history

    @property
    def providers(self) -> tuple[TextGenerator, ...]:
        return self._providers

    @property
    def performance(self) -> Optional[PerformanceMonitor]:
        return self._performance

    async def process_query(
        self, query: str, options: Optional[QueryOptions] = None
    ) -> QueryResult:
        """Answer *query*, preferring the cache, then search plus the provider chain.

        Args:
            query: The user's question. Used verbatim as the cache and
                history key.
            options: ``quick`` enables the cache fast path; ``detailed``
                asks providers for a longer answer.

        Returns:
            A :class:`~smartai.models.QueryResult`. ``source`` is ``"cache"``,
            the answering provider's name, or ``"search"``.

        Raises:
            QueryProcessingFailed: If the search call fails.
        """
        options = options or QueryOptions()
        start = self._performance.now() if self._performance else None

        if options.quick:
            cached = self._cache.get(query)
            if cached is not None:
                logger.debug("Cache hit for %r", query)
                return QueryResult(
                    response=cached.response,
                    source="cache",
                    timestamp=cached.timestamp,
                )

        try:
            search_results = await self._search.search(query)
        except Exception as exc:
            logger.error("Failed to process query: %s (query=%r)", exc, query)
            raise QueryProcessingFailed(query, str(exc)) from exc

        prompt = build_prompt(query, search_results, options)
        ai_response, used_model = await self._generate_with_fallback(prompt)

        answer = format_response(ai_response, search_results, query)

        # Both stores serialise and write their whole blob; keep that off the loop.
        await asyncio.to_thread(self._cache.put, query, answer)
        await asyncio.to_thread(self._history.append, query, answer)

        result = QueryResult(
            response=answer,
            source=used_model or "search",
            search_results=search_results,
            used_model=used_model,
        )

        if self._performance is not None and start is not None:
            self._performance.track_query(start)
        return result

    async def _generate_with_fallback(
        self, prompt: str
    ) -> tuple[Optional[str], Optional[str]]:
        """Try each provider in order; return ``(text, provider_name)`` or ``(None, None)``."""
        for provider in self._providers:
            try:
                text = await self._call_provider(provider, prompt)
            except Exception as exc:
                logger.warning(
                    "%s enhancement failed, trying next model: %s", provider.name, exc
                )
                continue
            logger.debug("Answer generated by %s", provider.name)
            return text, provider.name

        if self._providers:
            logger.warning("All providers failed; answering from search results only")
        return None, None

    @staticmethod
    async def _call_provider(provider: TextGenerator, prompt: str) -> str:
        if provider.timeout is None:
            text = await provider.generate(prompt)
        else:
            try:
                text = await asyncio.wait_for(provider.generate(prompt), provider.timeout)
            except asyncio.TimeoutError as exc:
                raise ProviderError(
                    provider.name, f"timed out after {provider.timeout}s"
                ) from exc
        if not text or not text.strip():
            raise ProviderError(provider.name, "empty response")
        return text

    def close(self) -> None:
        """Release the cache and history blob stores."""
        self._cache.close()
        self._history.close()
