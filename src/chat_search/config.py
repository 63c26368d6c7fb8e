"""
Configuration helpers for search tuning, local message storage and logging.
"""

from __future__ import annotations

import logging
import os
import sys
from dataclasses import dataclass, replace
from pathlib import Path


DEFAULT_DB_PATH = "~/.chat_search/messages.duckdb"
ENV_DB_PATH = "CHAT_SEARCH_DB_PATH"
ENV_LOG_LEVEL = "CHAT_SEARCH_LOG_LEVEL"

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def resolve_db_path(override_path: str | None = None) -> str:
    """
    Resolve the DuckDB path from CLI override, env var, or default.

    Precedence:
    1) explicit override_path
    2) CHAT_SEARCH_DB_PATH
    3) default path
    """
    raw_path = override_path or os.getenv(ENV_DB_PATH) or DEFAULT_DB_PATH
    resolved = Path(raw_path).expanduser().resolve()
    resolved.parent.mkdir(parents=True, exist_ok=True)
    return str(resolved)


def configure_logging(level: str | None = None) -> None:
    """Install a stdout handler for the application loggers."""
    resolved = (level or os.getenv(ENV_LOG_LEVEL) or "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, resolved, logging.INFO),
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stdout)],
    )


def _env_float(name: str, default: float | None) -> float | None:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return float(raw)


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return int(raw)


@dataclass(frozen=True)
class SearchConfig:
    """Tuning knobs for hybrid message ranking.

    ``similarity_threshold`` is exclusive: a result must score strictly
    above it. ``keyword_boost`` is added to the semantic score of messages
    that match the query lexically, and the sum is capped at 1.0.
    """

    similarity_threshold: float = 0.4
    keyword_boost: float = 0.25
    max_results: int = 5
    candidate_limit: int = 200
    max_concurrency: int = 16
    timeout_seconds: float | None = None

    def __post_init__(self) -> None:
        if not 0.0 <= self.similarity_threshold < 1.0:
            raise ValueError(
                f"similarity_threshold must be in [0, 1), got {self.similarity_threshold}"
            )
        if self.keyword_boost < 0.0:
            raise ValueError(f"keyword_boost must be >= 0, got {self.keyword_boost}")
        for name in ("max_results", "candidate_limit", "max_concurrency"):
            value = getattr(self, name)
            if value < 1:
                raise ValueError(f"{name} must be >= 1, got {value}")
        if self.timeout_seconds is not None and self.timeout_seconds <= 0:
            raise ValueError(
                f"timeout_seconds must be positive, got {self.timeout_seconds}"
            )

    @classmethod
    def from_env(cls) -> "SearchConfig":
        """Build a config from CHAT_SEARCH_* variables, falling back to defaults."""
        defaults = cls()
        return cls(
            similarity_threshold=_env_float(
                "CHAT_SEARCH_SIMILARITY_THRESHOLD", defaults.similarity_threshold
            ),
            keyword_boost=_env_float("CHAT_SEARCH_KEYWORD_BOOST", defaults.keyword_boost),
            max_results=_env_int("CHAT_SEARCH_MAX_RESULTS", defaults.max_results),
            candidate_limit=_env_int(
                "CHAT_SEARCH_CANDIDATE_LIMIT", defaults.candidate_limit
            ),
            max_concurrency=_env_int(
                "CHAT_SEARCH_MAX_CONCURRENCY", defaults.max_concurrency
            ),
            timeout_seconds=_env_float("CHAT_SEARCH_TIMEOUT_SECONDS", None),
        )

    def with_overrides(self, **overrides: float | int | None) -> "SearchConfig":
        """Return a copy with the non-None overrides applied."""
        changes = {key: value for key, value in overrides.items() if value is not None}
        if not changes:
            return self
        return replace(self, **changes)
