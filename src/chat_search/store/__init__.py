"""Message stores consumed by the search engine."""

from .base import FilterableMessageStore, Message, MessageStore, parse_timestamp
from .duckdb import DuckDBMessageStore
from .export import load_messages_file, parse_messages_payload
from .memory import InMemoryMessageStore

__all__ = [
    "Message",
    "FilterableMessageStore",
    "MessageStore",
    "parse_timestamp",
    "DuckDBMessageStore",
    "InMemoryMessageStore",
    "load_messages_file",
    "parse_messages_payload",
]
