"""
Ranking helpers for merging semantic and keyword signals.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ..store.base import Message
from .keywords import has_keyword_match


@dataclass(frozen=True)
class ScoredMessage:
    """A candidate message with its relevance signals."""

    message: Message
    semantic_score: float
    has_keyword_match: bool
    similarity: float

    @property
    def matched_by(self) -> str:
        if self.has_keyword_match and self.semantic_score > 0:
            return "semantic+keyword"
        if self.has_keyword_match:
            return "keyword"
        return "semantic"

    def to_dict(self) -> dict[str, Any]:
        return {
            **self.message.to_dict(),
            "semanticScore": self.semantic_score,
            "hasKeywordMatch": self.has_keyword_match,
            "similarity": self.similarity,
            "matchedBy": self.matched_by,
        }


@dataclass(frozen=True)
class RankedResults:
    """Top results of one search plus the candidate summary."""

    results: list[ScoredMessage]
    total_messages: int
    max_score: float


def combine_score(semantic_score: float, keyword_match: bool, keyword_boost: float) -> float:
    """Add the keyword boost and cap the sum to [0, 1]."""
    boosted = semantic_score + (keyword_boost if keyword_match else 0.0)
    return max(0.0, min(boosted, 1.0))


def score_message(
    message: Message,
    *,
    query: str,
    semantic_score: float,
    keyword_boost: float,
) -> ScoredMessage:
    matched = has_keyword_match(query, message.text)
    return ScoredMessage(
        message=message,
        semantic_score=semantic_score,
        has_keyword_match=matched,
        similarity=combine_score(semantic_score, matched, keyword_boost),
    )


def rank_messages(
    scored: list[ScoredMessage],
    *,
    threshold: float,
    limit: int,
) -> list[ScoredMessage]:
    """Keep scores strictly above *threshold*, sort descending, apply limit.

    The sort is stable, so equal scores keep candidate (store) order.
    """
    kept = [item for item in scored if item.similarity > threshold]
    ordered = sorted(kept, key=lambda item: item.similarity, reverse=True)
    return ordered[: max(limit, 1)]
