import asyncio
import math
from datetime import datetime, timedelta, timezone
from typing import Callable

import pytest

from chat_search.store import InMemoryMessageStore, Message

BASE_TIME = datetime(2024, 5, 1, 9, 0, tzinfo=timezone.utc)


def vector_with_similarity(score: float) -> list[float]:
    """2-d unit vector whose cosine with [1, 0] equals *score*."""
    return [score, math.sqrt(max(0.0, 1.0 - score * score))]


QUERY_VECTOR = [1.0, 0.0]


def make_message(message_id: str, text: str, minutes: int = 0, **metadata) -> Message:
    return Message(
        id=message_id,
        text=text,
        sender_id=f"user-{message_id}",
        sender_username=f"user{message_id}",
        timestamp=BASE_TIME + timedelta(minutes=minutes),
        metadata=metadata,
    )


class FakeEmbedder:
    """Deterministic embedder keyed by text; records calls and concurrency."""

    def __init__(
        self,
        vectors: dict[str, list[float]] | None = None,
        *,
        default: list[float] | None = None,
        fail_on: set[str] | None = None,
        delay: Callable[[str], float] | float = 0.0,
    ) -> None:
        self.vectors = vectors or {}
        self.default = default or [0.0, 1.0]
        self.fail_on = fail_on or set()
        self.delay = delay
        self.calls: list[str] = []
        self.query_calls: list[str] = []
        self.cancelled: list[str] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def _lookup(self, text: str) -> list[float]:
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            seconds = self.delay(text) if callable(self.delay) else self.delay
            if seconds:
                await asyncio.sleep(seconds)
            if text in self.fail_on:
                raise RuntimeError(f"provider unavailable for {text!r}")
            return list(self.vectors.get(text, self.default))
        except asyncio.CancelledError:
            self.cancelled.append(text)
            raise
        finally:
            self.in_flight -= 1

    async def embed(self, text: str) -> list[float]:
        self.calls.append(text)
        return await self._lookup(text)

    async def embed_query(self, query: str) -> list[float]:
        self.query_calls.append(query)
        return await self._lookup(query)


class RecordingStore(InMemoryMessageStore):
    """In-memory store that remembers every fetch and lookup it served."""

    def __init__(self, conversations: dict[str, list[Message]] | None = None) -> None:
        super().__init__(conversations)
        self.fetch_calls: list[tuple[str, int]] = []
        self.search_calls: list[tuple[str, dict]] = []

    def fetch_recent_messages(self, conversation_id: str, limit: int) -> list[Message]:
        self.fetch_calls.append((conversation_id, limit))
        return super().fetch_recent_messages(conversation_id, limit)

    def search_messages(self, conversation_id: str, **conditions) -> list[Message]:
        self.search_calls.append((conversation_id, conditions))
        return super().search_messages(conversation_id, **conditions)


class FailingStore:
    def __init__(self) -> None:
        self.fetch_calls: list[tuple[str, int]] = []

    def fetch_recent_messages(self, conversation_id: str, limit: int) -> list[Message]:
        self.fetch_calls.append((conversation_id, limit))
        raise ConnectionError("document store unreachable")


@pytest.fixture()
def standup_messages() -> list[Message]:
    return [
        make_message("1", "Let's do the standup tomorrow at 9am", minutes=0),
        make_message("2", "I fixed the login bug", minutes=1),
        make_message("3", "standups are useful", minutes=2),
    ]


@pytest.fixture()
def standup_store(standup_messages) -> RecordingStore:
    return RecordingStore({"team": standup_messages})


@pytest.fixture()
def standup_embedder() -> FakeEmbedder:
    return FakeEmbedder(
        {
            "standup tomorrow": QUERY_VECTOR,
            "Let's do the standup tomorrow at 9am": vector_with_similarity(0.8),
            "I fixed the login bug": vector_with_similarity(0.1),
            "standups are useful": vector_with_similarity(0.3),
        }
    )
