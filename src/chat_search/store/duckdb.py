"""
DuckDB-backed local message store.
"""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path
from typing import Any

import duckdb

from .base import Message, parse_timestamp


_SELECT_COLUMNS = "id, text, sender_id, sender_username, ts, metadata_json"


def _epoch(value: datetime | None) -> float | None:
    return value.timestamp() if value is not None else None


def _row_to_message(row: tuple[Any, ...]) -> Message:
    return Message(
        id=str(row[0]),
        text=str(row[1]),
        sender_id=row[2],
        sender_username=row[3],
        timestamp=parse_timestamp(row[4]),
        metadata=json.loads(row[5]) if row[5] else {},
    )


class DuckDBMessageStore:
    """DuckDB persistence for conversation messages.

    Read methods open a cursor per call so the store can be used from
    worker threads (the search engine fetches via ``asyncio.to_thread``).
    """

    def __init__(
        self,
        db_path: str,
        *,
        read_only: bool = False,
        initialize: bool = True,
    ) -> None:
        self.db_path = str(Path(db_path).expanduser().resolve())
        self.read_only = read_only
        Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        self._conn = duckdb.connect(self.db_path, read_only=read_only)
        if initialize and not read_only:
            self.initialize()

    def close(self) -> None:
        """Close the underlying DuckDB connection."""
        self._conn.close()

    def initialize(self) -> None:
        self._conn.execute("CREATE SEQUENCE IF NOT EXISTS message_seq START 1;")
        self._conn.execute(
            """
            CREATE TABLE IF NOT EXISTS messages (
                conversation_id VARCHAR NOT NULL,
                id VARCHAR NOT NULL,
                seq BIGINT NOT NULL DEFAULT nextval('message_seq'),
                text VARCHAR NOT NULL,
                sender_id VARCHAR,
                sender_username VARCHAR,
                ts DOUBLE,
                metadata_json VARCHAR NOT NULL DEFAULT '{}',
                PRIMARY KEY (conversation_id, id)
            );
            """
        )

    def add_messages(self, conversation_id: str, messages: list[Message]) -> int:
        """Insert or update messages of a conversation. Return count written."""
        if not messages:
            return 0
        self._conn.executemany(
            """
            INSERT INTO messages (
                conversation_id, id, text, sender_id, sender_username, ts, metadata_json
            )
            VALUES (?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT (conversation_id, id) DO UPDATE SET
                text = excluded.text,
                sender_id = excluded.sender_id,
                sender_username = excluded.sender_username,
                ts = excluded.ts,
                metadata_json = excluded.metadata_json
            """,
            [
                (
                    conversation_id,
                    message.id,
                    message.text,
                    message.sender_id,
                    message.sender_username,
                    _epoch(message.timestamp),
                    json.dumps(message.metadata, default=str),
                )
                for message in messages
            ],
        )
        return len(messages)

    def fetch_recent_messages(self, conversation_id: str, limit: int) -> list[Message]:
        if limit < 1:
            return []
        with self._conn.cursor() as cursor:
            rows = cursor.execute(
                f"""
                SELECT {_SELECT_COLUMNS}
                FROM messages
                WHERE conversation_id = ?
                ORDER BY ts DESC NULLS LAST, seq DESC
                LIMIT ?
                """,
                [conversation_id, limit],
            ).fetchall()
        return [_row_to_message(row) for row in rows]

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
        """Date-range, keyword and sender lookup, oldest first.

        With *limit*, the most recent *limit* matches are returned.
        """
        if limit is not None and limit < 1:
            return []
        sql = f"SELECT {_SELECT_COLUMNS} FROM messages WHERE conversation_id = ?"
        params: list[Any] = [conversation_id]
        if start is not None:
            sql += " AND ts >= ?"
            params.append(_epoch(start))
        if end is not None:
            sql += " AND ts <= ?"
            params.append(_epoch(end))
        if keyword:
            sql += " AND contains(lower(text), ?)"
            params.append(keyword.lower())
        if sender:
            sql += " AND (lower(sender_id) = ? OR lower(sender_username) = ?)"
            params.extend([sender.lower(), sender.lower()])
        if limit is None:
            sql += " ORDER BY ts ASC NULLS FIRST, seq ASC"
        else:
            sql += " ORDER BY ts DESC NULLS LAST, seq DESC LIMIT ?"
            params.append(limit)

        with self._conn.cursor() as cursor:
            rows = cursor.execute(sql, params).fetchall()
        messages = [_row_to_message(row) for row in rows]
        return messages if limit is None else list(reversed(messages))

    def count_messages(self, conversation_id: str) -> int:
        with self._conn.cursor() as cursor:
            row = cursor.execute(
                "SELECT COUNT(*) FROM messages WHERE conversation_id = ?",
                [conversation_id],
            ).fetchone()
        return int(row[0]) if row else 0

    def list_conversations(self) -> list[dict[str, Any]]:
        with self._conn.cursor() as cursor:
            rows = cursor.execute(
                """
                SELECT conversation_id, COUNT(*), MAX(ts)
                FROM messages
                GROUP BY conversation_id
                ORDER BY conversation_id
                """
            ).fetchall()
        results: list[dict[str, Any]] = []
        for row in rows:
            last = parse_timestamp(row[2])
            results.append(
                {
                    "conversation_id": str(row[0]),
                    "message_count": int(row[1]),
                    "last_message_at": last.isoformat() if last else None,
                }
            )
        return results
