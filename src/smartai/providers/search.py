"""Serper.dev web search client.

Results are rendered as numbered plain text so that both the LLM prompt and
the search-only fallback formatter can work with them line by line::

    Answer: 4
    1. What is 2+2? - Math facts
    2 plus 2 equals 4.
    URL: https://example.com/math
"""

from __future__ import annotations

from typing import Any, Optional

import httpx

from smartai.exceptions import ProviderError
from smartai.providers.base import SearchClient


class SerperSearchClient(SearchClient):
    """Google search through the Serper.dev JSON API.

    Args:
        api_key: Resolved Serper API key.
        base_url: API root (``https://google.serper.dev``).
        num_results: Number of organic results to request and render.
        timeout: Seconds to wait for a response, or ``None`` for no limit.
        transport: Optional httpx transport, used by tests to mock the API.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://google.serper.dev",
        num_results: int = 5,
        timeout: Optional[float] = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.num_results = num_results
        self.timeout = timeout
        self._transport = transport

    @property
    def name(self) -> str:
        return "serper"

    async def search(self, query: str) -> str:
        headers = {"X-API-KEY": self._api_key, "Content-Type": "application/json"}
        payload = {"q": query, "num": self.num_results}
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            ) as client:
                response = await client.post(
                    f"{self.base_url}/search", headers=headers, json=payload
                )
        except httpx.HTTPError as exc:
            raise ProviderError(self.name, f"request failed: {exc}") from exc

        if response.is_error:
            raise ProviderError(
                self.name,
                f"API error {response.status_code}: {response.reason_phrase}",
                status_code=response.status_code,
            )
        try:
            data = response.json()
        except ValueError as exc:
            raise ProviderError(self.name, "response is not valid JSON") from exc
        if not isinstance(data, dict):
            raise ProviderError(self.name, "unexpected response shape")
        return self.render(data, query)

    def render(self, data: dict[str, Any], query: str) -> str:
        """Render a Serper response dict as numbered plain text."""
        lines: list[str] = []

        answer_box = data.get("answerBox") or {}
        answer = answer_box.get("answer") or answer_box.get("snippet")
        if answer:
            lines.append(f"Answer: {answer}")

        organic = data.get("organic") or []
        for index, item in enumerate(organic[: self.num_results], start=1):
            lines.append(f"{index}. {item.get('title', '').strip()}")
            snippet = (item.get("snippet") or "").strip()
            if snippet:
                lines.append(snippet)
            link = item.get("link")
            if link:
                lines.append(f"URL: {link}")

        if not lines:
            return f"No search results found for: {query}"
        return "\n".join(lines)
