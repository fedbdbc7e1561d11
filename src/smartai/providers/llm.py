"""httpx clients for the supported LLM back-ends.

Each client sends one JSON POST per prompt and extracts the generated text
from the provider's response shape. Transport failures, non-2xx statuses,
unexpected payloads and empty completions all surface as
:class:`~smartai.exceptions.ProviderError`, which the orchestrator treats as
"try the next provider".

Clients:

* :class:`OpenAIGenerator` -- Chat Completions API.
* :class:`ClaudeGenerator` -- Anthropic Messages API.
* :class:`BardGenerator` -- Google Gemini ``generateContent``.
* :class:`LlamaGenerator` -- an OpenAI-compatible Llama endpoint.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import Any, Optional

import httpx

from smartai.exceptions import ProviderError
from smartai.providers.base import TextGenerator


class HTTPTextGenerator(TextGenerator):
    """Shared request/response plumbing for JSON-over-HTTP LLM APIs.

    Subclasses set :attr:`default_base_url` and :attr:`default_model` and
    implement :meth:`_build_request` and :meth:`_extract_text`.

    Args:
        name: Provider name reported as ``used_model``.
        api_key: Resolved API key.
        model: Model identifier; defaults to :attr:`default_model`.
        base_url: API root; defaults to :attr:`default_base_url`.
        timeout: Seconds to wait for a response, or ``None`` for no limit.
        max_tokens: Upper bound on generated tokens.
        temperature: Sampling temperature.
        transport: Optional httpx transport, used by tests to mock the API.
    """

    default_base_url: str = ""
    default_model: str = ""

    def __init__(
        self,
        name: str,
        api_key: str,
        model: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = 30.0,
        max_tokens: int = 1000,
        temperature: float = 0.7,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._name = name
        self._api_key = api_key
        self.model = model or self.default_model
        self.base_url = (base_url or self.default_base_url).rstrip("/")
        self.timeout = timeout
        self.max_tokens = max_tokens
        self.temperature = temperature
        self._transport = transport

    @property
    def name(self) -> str:
        return self._name

    async def generate(self, prompt: str) -> str:
        url, headers, payload = self._build_request(prompt)
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                transport=self._transport,
                follow_redirects=True,
            ) as client:
                response = await client.post(url, headers=headers, json=payload)
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

        try:
            text = self._extract_text(data)
        except (KeyError, IndexError, TypeError) as exc:
            raise ProviderError(self.name, f"unexpected response shape: {exc!r}") from exc

        if not text or not text.strip():
            raise ProviderError(self.name, "empty response")
        return text

    @abstractmethod
    def _build_request(self, prompt: str) -> tuple[str, dict[str, str], dict[str, Any]]:
        """Return ``(url, headers, json_payload)`` for *prompt*."""

    @abstractmethod
    def _extract_text(self, data: Any) -> str:
        """Pull the generated text out of the decoded JSON response."""


class OpenAIGenerator(HTTPTextGenerator):
    default_base_url = "https://api.openai.com/v1"
    default_model = "gpt-4o-mini"

    def _build_request(self, prompt: str) -> tuple[str, dict[str, str], dict[str, Any]]:
        headers = {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }
        payload = {
            "model": self.model,
            "messages": [{"role": "user", "content": prompt}],
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
        }
        return f"{self.base_url}/chat/completions", headers, payload

    def _extract_text(self, data: Any) -> str:
        return data["choices"][0]["message"]["content"]


class LlamaGenerator(OpenAIGenerator):
    """Llama models served behind an OpenAI-compatible chat endpoint."""

    default_base_url = "https://api.llama-api.com"
    default_model = "llama3.1-70b"


class ClaudeGenerator(HTTPTextGenerator):
    default_base_url = "https://api.anthropic.com/v1"
    default_model = "claude-3-5-haiku-latest"
    api_version = "2023-06-01"

    def _build_request(self, prompt: str) -> tuple[str, dict[str, str], dict[str, Any]]:
        headers = {
            "x-api-key": self._api_key,
            "anthropic-version": self.api_version,
            "Content-Type": "application/json",
        }
        payload = {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
            "messages": [{"role": "user", "content": prompt}],
        }
        return f"{self.base_url}/messages", headers, payload

    def _extract_text(self, data: Any) -> str:
        blocks = data["content"]
        return "".join(block["text"] for block in blocks if block.get("type") == "text")


class BardGenerator(HTTPTextGenerator):
    """Google's Gemini models (the successor of the Bard text API)."""

    default_base_url = "https://generativelanguage.googleapis.com/v1beta"
    default_model = "gemini-1.5-flash"

    def _build_request(self, prompt: str) -> tuple[str, dict[str, str], dict[str, Any]]:
        headers = {
            "x-goog-api-key": self._api_key,
            "Content-Type": "application/json",
        }
        payload = {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": self.temperature,
                "maxOutputTokens": self.max_tokens,
                "topK": 40,
                "topP": 0.95,
                "candidateCount": 1,
            },
        }
        return f"{self.base_url}/models/{self.model}:generateContent", headers, payload

    def _extract_text(self, data: Any) -> str:
        parts = data["candidates"][0]["content"]["parts"]
        return "".join(part.get("text", "") for part in parts)


GENERATOR_TYPES: dict[str, type[HTTPTextGenerator]] = {
    "openai": OpenAIGenerator,
    "claude": ClaudeGenerator,
    "bard": BardGenerator,
    "llama": LlamaGenerator,
}
"""Maps :attr:`~smartai.models.ProviderConfig.type` to its client class."""
