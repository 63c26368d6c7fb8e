"""Search helpers for conversation messages."""

from .engine import (
    MessageSearchEngine,
    SearchFailedError,
    SearchValidationError,
    validate_search_input,
)
from .filters import (
    MessageFilter,
    MessageFilterParseError,
    parse_message_filters,
    supported_filter_syntax,
)
from .keywords import has_keyword_match
from .ranker import (
    RankedResults,
    ScoredMessage,
    combine_score,
    rank_messages,
    score_message,
)
from .semantic import cosine_similarity

__all__ = [
    "MessageSearchEngine",
    "SearchFailedError",
    "SearchValidationError",
    "validate_search_input",
    "MessageFilter",
    "MessageFilterParseError",
    "parse_message_filters",
    "supported_filter_syntax",
    "has_keyword_match",
    "RankedResults",
    "ScoredMessage",
    "combine_score",
    "rank_messages",
    "score_message",
    "cosine_similarity",
]
