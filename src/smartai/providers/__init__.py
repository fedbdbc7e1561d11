"""Search and LLM provider clients.

The orchestrator talks to back-ends only through two small contracts:

* :class:`TextGenerator` -- ``await generate(prompt) -> str``
* :class:`SearchClient` -- ``await search(query) -> str``

Concrete httpx implementations are provided for OpenAI, Anthropic Claude,
Google Gemini ("bard"), an OpenAI-compatible Llama endpoint, and Serper.dev
web search. :func:`build_providers` and :func:`build_search_client` create
them from the global configuration.
"""

from smartai.providers.base import SearchClient, TextGenerator
from smartai.providers.factory import build_providers, build_search_client
from smartai.providers.llm import (
    GENERATOR_TYPES,
    BardGenerator,
    ClaudeGenerator,
    HTTPTextGenerator,
    LlamaGenerator,
    OpenAIGenerator,
)
from smartai.providers.search import SerperSearchClient

__all__ = [
    "BardGenerator",
    "ClaudeGenerator",
    "GENERATOR_TYPES",
    "HTTPTextGenerator",
    "LlamaGenerator",
    "OpenAIGenerator",
    "SearchClient",
    "SerperSearchClient",
    "TextGenerator",
    "build_providers",
    "build_search_client",
]
