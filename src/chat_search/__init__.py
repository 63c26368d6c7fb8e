"""
ChatSearch - hybrid semantic + keyword search for team chat conversations.

This package ranks a conversation's recent messages against a free-text
query by combining embedding cosine similarity (Google GenAI embeddings)
with a lexical keyword boost, then keeps the best matches above a
configurable relevance threshold.

Example usage:
    >>> from chat_search import MessageSearchEngine, EmbeddingProvider, DuckDBMessageStore
    >>> engine = MessageSearchEngine(DuckDBMessageStore("messages.duckdb"), EmbeddingProvider())
    >>> ranked = await engine.search(conversation_id="team-general", query="standup tomorrow")
"""

from .config import SearchConfig, configure_logging, resolve_db_path
from .embeddings import Embedder, EmbeddingProvider
from .search import (
    MessageSearchEngine,
    RankedResults,
    ScoredMessage,
    SearchFailedError,
    SearchValidationError,
)
from .store import DuckDBMessageStore, InMemoryMessageStore, Message, MessageStore

__all__ = [
    # Configuration
    "SearchConfig",
    "configure_logging",
    "resolve_db_path",
    # Embeddings
    "Embedder",
    "EmbeddingProvider",
    # Search
    "MessageSearchEngine",
    "RankedResults",
    "ScoredMessage",
    "SearchFailedError",
    "SearchValidationError",
    # Storage
    "DuckDBMessageStore",
    "InMemoryMessageStore",
    "Message",
    "MessageStore",
]
