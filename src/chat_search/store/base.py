"""
Message store interfaces and the message record shared by all backends.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Protocol


_KNOWN_KEYS = {"id", "text", "senderId", "senderUsername", "timestamp"}


def parse_timestamp(value: Any) -> datetime | None:
    """Coerce a stored timestamp (datetime, epoch seconds, ISO string) to UTC."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, (int, float)):
        parsed = datetime.fromtimestamp(float(value), tz=timezone.utc)
    elif isinstance(value, str):
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    elif isinstance(value, dict) and ("seconds" in value or "_seconds" in value):
        # Document-store timestamp export. Client SDKs write {"seconds", "nanoseconds"},
        # the admin SDK serializes as {"_seconds", "_nanoseconds"}.
        prefix = "" if "seconds" in value else "_"
        seconds = float(value[f"{prefix}seconds"])
        seconds += float(value.get(f"{prefix}nanoseconds", 0)) / 1e9
        parsed = datetime.fromtimestamp(seconds, tz=timezone.utc)
    else:
        raise ValueError(f"Unsupported timestamp value: {value!r}")
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass(frozen=True)
class Message:
    """A chat message as supplied by the message store."""

    id: str
    text: str
    sender_id: str | None = None
    sender_username: str | None = None
    timestamp: datetime | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_document(cls, doc_id: str | None, data: dict[str, Any]) -> "Message":
        """Build a message from a document-store shaped dict."""
        resolved_id = doc_id or data.get("id") or data.get("messageId")
        if not resolved_id:
            raise ValueError("Message document has no id.")
        return cls(
            id=str(resolved_id),
            text=str(data.get("text") or ""),
            sender_id=data.get("senderId"),
            sender_username=data.get("senderUsername"),
            timestamp=parse_timestamp(data.get("timestamp")),
            metadata={k: v for k, v in data.items() if k not in _KNOWN_KEYS},
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            **self.metadata,
            "id": self.id,
            "text": self.text,
            "senderId": self.sender_id,
            "senderUsername": self.sender_username,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
        }


class MessageStore(Protocol):
    """Protocol for the message source consumed by the search engine."""

    def fetch_recent_messages(self, conversation_id: str, limit: int) -> list[Message]:
        """Return up to *limit* most recent messages, newest first.

        Unknown conversation ids yield an empty list.
        """


class FilterableMessageStore(MessageStore, Protocol):
    """A message store that can also answer lexical lookups."""

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
        """Return messages inside [start, end] containing *keyword* from *sender*.

        Matching is case-insensitive. Date bounds exclude untimed messages.
        With *limit*, only the most recent matches are kept. Results are
        oldest first.
        """
