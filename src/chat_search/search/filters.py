"""
Message filter parsing helpers.

Filters give a lexical, non-semantic way to pull messages out of a
conversation by date range, keyword and sender.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime, time, timezone
from typing import Any


FILTER_FIELDS = ("after", "before", "keyword", "sender")

_DATE_ONLY_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_CONDITION_RE = re.compile(r"^\s*([A-Za-z_][A-Za-z0-9_]*)\s*(=|:)\s*(.*?)\s*$", re.DOTALL)


class MessageFilterParseError(ValueError):
    """Raised when message filter syntax is invalid."""


@dataclass(frozen=True)
class MessageFilter:
    """Normalized message filter conditions; unset fields match everything."""

    after: datetime | None = None
    before: datetime | None = None
    keyword: str | None = None
    sender: str | None = None

    def as_search_kwargs(self) -> dict[str, Any]:
        """Keyword arguments for a store's ``search_messages``."""
        return {
            "start": self.after,
            "end": self.before,
            "keyword": self.keyword,
            "sender": self.sender,
        }

    def to_dict(self) -> dict[str, Any]:
        return {
            "after": self.after.isoformat() if self.after else None,
            "before": self.before.isoformat() if self.before else None,
            "keyword": self.keyword,
            "sender": self.sender,
        }


def supported_filter_syntax() -> str:
    """Return a short help text for filter syntax."""
    return (
        "Supported filter syntax: "
        "`after=YYYY-MM-DD`, `before=YYYY-MM-DD`, `keyword=text`, `sender=name`; "
        "ISO datetimes are accepted for dates, quote values containing commas; "
        "combine with comma or `and`."
    )


def parse_message_filters(raw_filters: str | None) -> MessageFilter:
    """Parse a raw filter string into a MessageFilter.

    A date-only ``before`` bound includes the whole day.
    """
    if raw_filters is None or not raw_filters.strip():
        return MessageFilter()

    values: dict[str, Any] = {}
    for condition in _split_conditions(raw_filters):
        match = _CONDITION_RE.match(condition)
        if not match:
            raise MessageFilterParseError(f"Invalid filter syntax: {condition!r}")
        field, _, raw_value = match.groups()
        field = field.lower()
        if field not in FILTER_FIELDS:
            allowed = ", ".join(FILTER_FIELDS)
            raise MessageFilterParseError(
                f"Unknown filter field {field!r}. Allowed fields: {allowed}"
            )
        if field in values:
            raise MessageFilterParseError(f"Duplicate filter field: {field!r}")
        value = _unquote(raw_value)
        if not value:
            raise MessageFilterParseError(f"Missing filter value: {condition!r}")
        if field in ("after", "before"):
            values[field] = _parse_datetime(value, end_of_day=field == "before")
        else:
            values[field] = value

    parsed = MessageFilter(**values)
    if parsed.after and parsed.before and parsed.after > parsed.before:
        raise MessageFilterParseError("`after` must not be later than `before`.")
    return parsed


def _parse_datetime(value: str, *, end_of_day: bool) -> datetime:
    try:
        if _DATE_ONLY_RE.match(value):
            day = date.fromisoformat(value)
            parsed = datetime.combine(day, time.max if end_of_day else time.min)
        else:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError as exc:
        raise MessageFilterParseError(f"Invalid date: {value!r}") from exc
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _unquote(raw_value: str) -> str:
    text = raw_value.strip()
    if len(text) >= 2 and text[0] == text[-1] and text[0] in {"'", '"'}:
        return text[1:-1]
    return text


def _split_conditions(raw: str) -> list[str]:
    parts: list[str] = []
    current: list[str] = []
    quote: str | None = None
    i = 0
    while i < len(raw):
        ch = raw[i]

        if quote is not None:
            current.append(ch)
            if ch == quote:
                quote = None
            i += 1
            continue

        if ch in {"'", '"'}:
            quote = ch
            current.append(ch)
            i += 1
            continue

        if ch == ",":
            _flush_part(parts, current)
            i += 1
            continue

        if (
            raw[i : i + 3].lower() == "and"
            and (i == 0 or raw[i - 1].isspace())
            and (i + 3 == len(raw) or raw[i + 3].isspace())
        ):
            _flush_part(parts, current)
            i += 3
            continue

        current.append(ch)
        i += 1

    if quote is not None:
        raise MessageFilterParseError(f"Unterminated quote in filters: {raw!r}")
    _flush_part(parts, current)
    return parts


def _flush_part(parts: list[str], current: list[str]) -> None:
    text = "".join(current).strip()
    if text:
        parts.append(text)
    current.clear()
