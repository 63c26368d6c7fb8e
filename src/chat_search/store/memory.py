"""
In-memory message store.
"""

from __future__ import annotations

from datetime import datetime, timezone

from .base import Message

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def _chronological_key(message: Message) -> datetime:
    return message.timestamp or _EPOCH


class InMemoryMessageStore:
    """Dict-backed store keyed by conversation id."""

    def __init__(self, conversations: dict[str, list[Message]] | None = None) -> None:
        self._conversations: dict[str, list[Message]] = {
            conversation_id: list(messages)
            for conversation_id, messages in (conversations or {}).items()
        }

    def add_messages(self, conversation_id: str, messages: list[Message]) -> int:
        self._conversations.setdefault(conversation_id, []).extend(messages)
        return len(messages)

    def fetch_recent_messages(self, conversation_id: str, limit: int) -> list[Message]:
        messages = self._conversations.get(conversation_id, [])
        ordered = sorted(messages, key=_chronological_key, reverse=True)
        return ordered[: max(limit, 0)]

    def search_messages(
        self,
        conversation_id: str,
        *,
        start: datetime | None = None,
        end: datetime | None = None,
        keyword: str | None = None,
        sender: str | None = None,
        limit: int | None = None,
    ) -> list[Message]:
        """Date-range, keyword and sender lookup, oldest first."""
        needle = keyword.lower() if keyword else None
        who = sender.lower() if sender else None
        matches: list[Message] = []
        for message in self._conversations.get(conversation_id, []):
            if start is not None or end is not None:
                if message.timestamp is None:
                    continue
                if start is not None and message.timestamp < start:
                    continue
                if end is not None and message.timestamp > end:
                    continue
            if needle and needle not in message.text.lower():
                continue
            if who and who not in {
                (message.sender_id or "").lower(),
                (message.sender_username or "").lower(),
            }:
                continue
            matches.append(message)

        matches.sort(key=_chronological_key)
        if limit is not None:
            matches = matches[-limit:] if limit > 0 else []
        return matches
