"""
Hybrid semantic + keyword search over a conversation's recent messages.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable

from ..config import SearchConfig
from ..embeddings import Embedder
from ..store.base import Message, MessageStore
from .ranker import RankedResults, rank_messages, score_message
from .semantic import cosine_similarity

logger = logging.getLogger(__name__)


class SearchValidationError(ValueError):
    """Raised when a search request is missing required input."""


class SearchFailedError(RuntimeError):
    """Raised when the message store or embedding provider fails."""


def validate_search_input(
    conversation_id: str | None,
    query: str | None,
    candidate_limit: int | None = None,
) -> None:
    """Fail fast on missing input, before any store or provider call."""
    if not conversation_id or not conversation_id.strip() or not query or not query.strip():
        raise SearchValidationError("conversationId and query are required")
    if candidate_limit is not None and candidate_limit < 1:
        raise SearchValidationError("messageCount must be a positive integer")


class MessageSearchEngine:
    """Rank a conversation's recent messages against a free-text query.

    Every call fetches candidates from the store, embeds the query and each
    candidate concurrently, and scores each candidate independently. No
    state is kept between calls.
    """

    def __init__(
        self,
        store: MessageStore,
        embedder: Embedder,
        config: SearchConfig | None = None,
    ) -> None:
        self.store = store
        self.embedder = embedder
        self.config = config or SearchConfig()

    async def search(
        self,
        *,
        conversation_id: str | None,
        query: str | None,
        candidate_limit: int | None = None,
        config: SearchConfig | None = None,
    ) -> RankedResults:
        validate_search_input(conversation_id, query, candidate_limit)

        effective = config or self.config
        limit = candidate_limit if candidate_limit is not None else effective.candidate_limit
        if effective.timeout_seconds is None:
            return await self._search(conversation_id, query, limit, effective)
        try:
            return await asyncio.wait_for(
                self._search(conversation_id, query, limit, effective),
                timeout=effective.timeout_seconds,
            )
        except asyncio.TimeoutError as exc:
            logger.error(
                "Search in conversation %s timed out after %.1fs",
                conversation_id,
                effective.timeout_seconds,
            )
            raise SearchFailedError("Search timed out") from exc

    async def _search(
        self,
        conversation_id: str,
        query: str,
        limit: int,
        config: SearchConfig,
    ) -> RankedResults:
        try:
            candidates = await asyncio.to_thread(
                self.store.fetch_recent_messages, conversation_id, limit
            )
        except Exception as exc:
            logger.exception("Failed to fetch messages for conversation %s", conversation_id)
            raise SearchFailedError("Failed to fetch messages") from exc

        candidates = list(candidates)[:limit]
        if not candidates:
            logger.info("Conversation %s has no messages to search", conversation_id)
            return RankedResults(results=[], total_messages=0, max_score=0.0)

        try:
            query_embedding, message_embeddings = await self._embed_all(
                query, candidates, max_concurrency=config.max_concurrency
            )
        except Exception as exc:
            logger.exception(
                "Embedding failed while searching conversation %s", conversation_id
            )
            raise SearchFailedError("Failed to embed messages") from exc

        scored = [
            score_message(
                message,
                query=query,
                semantic_score=cosine_similarity(query_embedding, embedding),
                keyword_boost=config.keyword_boost,
            )
            for message, embedding in zip(candidates, message_embeddings)
        ]
        max_score = max(item.similarity for item in scored)
        results = rank_messages(
            scored,
            threshold=config.similarity_threshold,
            limit=config.max_results,
        )
        logger.info(
            "Searched %d messages in conversation %s: %d results, best score %.3f",
            len(candidates),
            conversation_id,
            len(results),
            max_score,
        )
        return RankedResults(
            results=results,
            total_messages=len(candidates),
            max_score=max_score,
        )

    async def _embed_all(
        self,
        query: str,
        candidates: list[Message],
        *,
        max_concurrency: int,
    ) -> tuple[list[float], list[list[float]]]:
        """Embed the query and every candidate, results aligned by index.

        The first failure cancels the calls still in flight.
        """
        semaphore = asyncio.Semaphore(max_concurrency)

        async def guarded(
            embed: Callable[[str], Awaitable[list[float]]], text: str
        ) -> list[float]:
            async with semaphore:
                return await embed(text)

        tasks = [asyncio.create_task(guarded(self.embedder.embed_query, query))]
        tasks.extend(
            asyncio.create_task(guarded(self.embedder.embed, message.text))
            for message in candidates
        )
        try:
            vectors = await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise
        return vectors[0], list(vectors[1:])
