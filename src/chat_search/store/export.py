"""
Loading conversation exports from JSON files.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from .base import Message


def parse_messages_payload(payload: Any) -> tuple[str | None, list[Message]]:
    """Parse an export payload into (conversation_id, messages).

    Accepts either ``{"conversationId": ..., "messages": [...]}`` or a bare
    list of message documents.
    """
    conversation_id: str | None = None
    if isinstance(payload, dict):
        raw_id = payload.get("conversationId") or payload.get("conversation_id")
        conversation_id = str(raw_id) if raw_id else None
        documents = payload.get("messages")
    else:
        documents = payload
    if not isinstance(documents, list):
        raise ValueError("Export must contain a list of messages.")

    messages: list[Message] = []
    for index, document in enumerate(documents):
        if not isinstance(document, dict):
            raise ValueError(f"Message #{index} is not an object.")
        messages.append(Message.from_document(None, document))
    return conversation_id, messages


def load_messages_file(path: str | Path) -> tuple[str | None, list[Message]]:
    """Read a JSON conversation export from disk."""
    with open(path, "r", encoding="utf-8") as f:
        payload = json.load(f)
    return parse_messages_payload(payload)
