"""
Embedding provider for semantic message search.

Wraps the Google GenAI embedding API behind an awaitable interface so the
search engine can fan out one request per message concurrently.
"""

from __future__ import annotations

import os
from collections.abc import Callable
from typing import Any, Protocol

from google.genai import Client as GenAIClient


_DEFAULT_MODEL = "gemini-embedding-001"
_DEFAULT_DIM = 768


class Embedder(Protocol):
    """Text-to-vector function for a fixed model."""

    async def embed(self, text: str) -> list[float]:
        """Embed a message text."""

    async def embed_query(self, query: str) -> list[float]:
        """Embed a search query."""


class EmbeddingProvider:
    """Generate text embeddings via Google GenAI."""

    def __init__(
        self,
        *,
        api_key: str | None = None,
        model: str | None = None,
        dim: int | None = None,
        client: Any | None = None,
    ) -> None:
        self.model = model or os.getenv("CHAT_SEARCH_EMBEDDING_MODEL", _DEFAULT_MODEL)
        self.dim = dim or int(os.getenv("CHAT_SEARCH_EMBEDDING_DIM", str(_DEFAULT_DIM)))

        if client is not None:
            self._client = client
        else:
            resolved_key = api_key or os.getenv("GOOGLE_API_KEY")
            if resolved_key is None:
                raise ValueError(
                    "GOOGLE_API_KEY not found. "
                    "Provide api_key or set the environment variable."
                )
            self._client = GenAIClient(api_key=resolved_key)

    async def _embed_one(self, text: str, *, task_type: str) -> list[float]:
        result = await self._client.aio.models.embed_content(
            model=self.model,
            contents=[text],
            config={
                "task_type": task_type,
                "output_dimensionality": self.dim,
            },
        )
        if not result.embeddings or result.embeddings[0].values is None:
            raise ValueError(f"Embedding response for model {self.model} was empty.")
        return list(result.embeddings[0].values)

    async def embed(self, text: str) -> list[float]:
        """Embed a single message text for retrieval."""
        return await self._embed_one(text, task_type="RETRIEVAL_DOCUMENT")

    async def embed_query(self, query: str) -> list[float]:
        """Embed a single query text for retrieval."""
        return await self._embed_one(query, task_type="RETRIEVAL_QUERY")


class LazyEmbedder:
    """Defers building an embedder until the first text needs a vector.

    Searches over empty conversations never embed, so they succeed even
    when no provider credentials are configured.
    """

    def __init__(self, factory: Callable[[], Embedder]) -> None:
        self._factory = factory
        self._embedder: Embedder | None = None

    def _resolve(self) -> Embedder:
        if self._embedder is None:
            self._embedder = self._factory()
        return self._embedder

    async def embed(self, text: str) -> list[float]:
        return await self._resolve().embed(text)

    async def embed_query(self, query: str) -> list[float]:
        return await self._resolve().embed_query(query)
