"""Abstract contracts for search and LLM back-ends.

The orchestrator depends only on these two interfaces. Concrete httpx
clients live in :mod:`smartai.providers.llm` and
:mod:`smartai.providers.search`; tests substitute in-memory fakes.

Example:
    Minimal generator implementation::

        class EchoGenerator(TextGenerator):
            @property
            def name(self) -> str:
                return "echo"

            async def generate(self, prompt: str) -> str:
                return prompt
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional


class TextGenerator(ABC):
    """An LLM back-end that turns a prompt into text.

    Implementations raise :class:`~smartai.exceptions.ProviderError` (or any
    other exception) on failure; the orchestrator treats every exception from
    :meth:`generate` as a reason to try the next provider.

    Attributes:
        timeout: Seconds the orchestrator waits for :meth:`generate` before
            giving up on this provider. ``None`` waits indefinitely.
    """

    timeout: Optional[float] = None

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the provider name reported as ``used_model`` (e.g. ``"openai"``)."""
        ...

    @abstractmethod
    async def generate(self, prompt: str) -> str:
        """Return generated text for *prompt*.

        Raises:
            ProviderError: If the back-end fails or returns no usable text.
        """
        ...


class SearchClient(ABC):
    """A web search back-end returning multi-line plain text."""

    @property
    def name(self) -> str:
        return "search"

    @abstractmethod
    async def search(self, query: str) -> str:
        """Return raw search results for *query* as newline-separated text.

        Raises:
            ProviderError: On network or API failure.
        """
        ...
