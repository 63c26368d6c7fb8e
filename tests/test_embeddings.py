"""Tests for the embedding provider."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any

import pytest

from chat_search.embeddings import EmbeddingProvider, LazyEmbedder


# ---------------------------------------------------------------------------
# Mock helpers
# ---------------------------------------------------------------------------


@dataclass
class _FakeEmbedding:
    values: list[float] | None


@dataclass
class _FakeEmbedResult:
    embeddings: list[_FakeEmbedding] | None


class _FakeModels:
    """Records calls and returns deterministic embeddings."""

    def __init__(self, *, empty: bool = False) -> None:
        self.calls: list[dict[str, Any]] = []
        self.empty = empty

    async def embed_content(
        self, *, model: str, contents: list[str], config: dict
    ) -> _FakeEmbedResult:
        self.calls.append({"model": model, "contents": contents, "config": config})
        if self.empty:
            return _FakeEmbedResult(embeddings=[])
        dim = config.get("output_dimensionality", 768)
        return _FakeEmbedResult(
            embeddings=[_FakeEmbedding(values=[float(len(c))] * dim) for c in contents]
        )


class _FakeAio:
    def __init__(self, models: _FakeModels) -> None:
        self.models = models


class _FakeClient:
    def __init__(self, *, empty: bool = False) -> None:
        self.aio = _FakeAio(_FakeModels(empty=empty))


# ---------------------------------------------------------------------------
# Unit tests (mock-based, no API key needed)
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_embed_uses_document_task_type() -> None:
    client = _FakeClient()
    provider = EmbeddingProvider(client=client, dim=4)

    result = await provider.embed("hello")

    assert result == [5.0] * 4
    call = client.aio.models.calls[0]
    assert call["contents"] == ["hello"]
    assert call["config"]["task_type"] == "RETRIEVAL_DOCUMENT"


@pytest.mark.asyncio
async def test_embed_query_uses_query_task_type() -> None:
    client = _FakeClient()
    provider = EmbeddingProvider(client=client, dim=4)

    result = await provider.embed_query("search query")

    assert len(result) == 4
    call = client.aio.models.calls[0]
    assert call["config"]["task_type"] == "RETRIEVAL_QUERY"
    assert call["config"]["output_dimensionality"] == 4


@pytest.mark.asyncio
async def test_empty_response_raises() -> None:
    provider = EmbeddingProvider(client=_FakeClient(empty=True), dim=4)

    with pytest.raises(ValueError, match="empty"):
        await provider.embed("hello")


@pytest.mark.asyncio
async def test_env_overrides(monkeypatch) -> None:
    client = _FakeClient()
    monkeypatch.setenv("CHAT_SEARCH_EMBEDDING_MODEL", "custom-model-001")
    monkeypatch.setenv("CHAT_SEARCH_EMBEDDING_DIM", "256")

    provider = EmbeddingProvider(client=client)

    assert provider.model == "custom-model-001"
    assert provider.dim == 256

    await provider.embed("test")
    call = client.aio.models.calls[0]
    assert call["model"] == "custom-model-001"
    assert call["config"]["output_dimensionality"] == 256


def test_missing_api_key_raises(monkeypatch) -> None:
    monkeypatch.delenv("GOOGLE_API_KEY", raising=False)
    with pytest.raises(ValueError, match="GOOGLE_API_KEY"):
        EmbeddingProvider(api_key=None, client=None)


@pytest.mark.asyncio
async def test_lazy_embedder_builds_provider_once_on_first_use() -> None:
    client = _FakeClient()
    built: list[EmbeddingProvider] = []

    def factory() -> EmbeddingProvider:
        built.append(EmbeddingProvider(client=client, dim=2))
        return built[-1]

    lazy = LazyEmbedder(factory)
    assert built == []

    await lazy.embed_query("standup")
    await lazy.embed("standup tomorrow")

    assert len(built) == 1
    assert [c["config"]["task_type"] for c in client.aio.models.calls] == [
        "RETRIEVAL_QUERY",
        "RETRIEVAL_DOCUMENT",
    ]


@pytest.mark.asyncio
async def test_lazy_embedder_surfaces_factory_errors_when_used(monkeypatch) -> None:
    monkeypatch.delenv("GOOGLE_API_KEY", raising=False)
    lazy = LazyEmbedder(EmbeddingProvider)

    with pytest.raises(ValueError, match="GOOGLE_API_KEY"):
        await lazy.embed("hello")


# ---------------------------------------------------------------------------
# Real API integration test (skipped unless GOOGLE_API_KEY is set)
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.skipif(
    not os.getenv("GOOGLE_API_KEY"),
    reason="GOOGLE_API_KEY not set, skipping real embedding test",
)
async def test_real_embedding_api() -> None:
    provider = EmbeddingProvider(dim=128)

    message_emb = await provider.embed("Let's do the standup tomorrow at 9am")
    query_emb = await provider.embed_query("standup tomorrow")

    assert len(message_emb) == 128
    assert len(query_emb) == 128
    assert all(isinstance(v, float) for v in message_emb)
