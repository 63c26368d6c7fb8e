"""
Lexical matching between a query and a message text.

Short chat messages embed poorly against formally phrased queries, so the
ranker rewards literal or near-literal term overlap on top of the vector
score. Three checks run in order of cost and the first hit wins:

1. the whole query occurs in the text (case-insensitive);
2. a query token of 3+ characters occurs inside a message token;
3. two tokens of 4+ characters share a 4-character prefix, which catches
   morphological variants such as "availability" / "available".
"""

from __future__ import annotations

MIN_TOKEN_LENGTH = 3
STEM_PREFIX_LENGTH = 4


def tokenize(text: str) -> list[str]:
    """Split on whitespace and lowercase."""
    return text.lower().split()


def _token_overlap(query_tokens: list[str], message_tokens: list[str]) -> bool:
    for query_token in query_tokens:
        if len(query_token) < MIN_TOKEN_LENGTH:
            continue
        if any(query_token in message_token for message_token in message_tokens):
            return True
    return False


def _stem_overlap(query_tokens: list[str], message_tokens: list[str]) -> bool:
    stems = [t for t in message_tokens if len(t) >= STEM_PREFIX_LENGTH]
    for query_token in query_tokens:
        if len(query_token) < STEM_PREFIX_LENGTH:
            continue
        query_prefix = query_token[:STEM_PREFIX_LENGTH]
        for message_token in stems:
            if message_token.startswith(query_prefix) or query_token.startswith(
                message_token[:STEM_PREFIX_LENGTH]
            ):
                return True
    return False


def has_keyword_match(query: str, text: str) -> bool:
    """Return True when *text* matches *query* lexically."""
    normalized_query = query.strip().lower()
    normalized_text = text.lower()
    if not normalized_query or not normalized_text:
        return False
    if normalized_query in normalized_text:
        return True

    query_tokens = tokenize(normalized_query)
    message_tokens = tokenize(normalized_text)
    return _token_overlap(query_tokens, message_tokens) or _stem_overlap(
        query_tokens, message_tokens
    )
