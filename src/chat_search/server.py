"""
FastAPI server for chat message search.

Exposes ranked hybrid search and lexical filtering over a conversation's
recent messages, plus a liveness endpoint.
"""

import asyncio
import logging
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from .config import SearchConfig, configure_logging, resolve_db_path
from .embeddings import Embedder, EmbeddingProvider, LazyEmbedder
from .models import FilterRequest, SearchRequest
from .search import (
    MessageFilterParseError,
    MessageSearchEngine,
    SearchValidationError,
    parse_message_filters,
    validate_search_input,
)
from .store import DuckDBMessageStore, FilterableMessageStore, InMemoryMessageStore

logger = logging.getLogger(__name__)

app = FastAPI(title="ChatSearch", description="Hybrid semantic search for team chat")

SEARCH_FAILED_MESSAGE = "Failed to search messages"


@contextmanager
def open_message_store(db_path: str | None = None) -> Iterator[FilterableMessageStore]:
    """Open the local message store read-only for the duration of one request.

    A database file that does not exist yet behaves as an empty store.
    """
    resolved = resolve_db_path(db_path)
    if not Path(resolved).exists():
        yield InMemoryMessageStore()
        return
    store = DuckDBMessageStore(resolved, read_only=True, initialize=False)
    try:
        yield store
    finally:
        store.close()


def build_embedder() -> Embedder:
    return EmbeddingProvider()


def get_search_config() -> SearchConfig:
    return SearchConfig.from_env()


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@app.get("/api/test")
async def health():
    """Report that the service is up."""
    return {
        "message": "ChatSearch service is running",
        "timestamp": _now(),
        "status": "healthy",
    }


@app.post("/api/test")
async def echo(request: Request):
    """Echo the posted JSON body back."""
    try:
        body = await request.json()
    except ValueError as exc:
        return JSONResponse(
            {
                "message": "Failed to parse request body",
                "error": str(exc),
                "timestamp": _now(),
                "status": "error",
            },
            status_code=400,
        )
    return {
        "message": "Received your data!",
        "data": body,
        "timestamp": _now(),
        "status": "success",
    }


@app.post("/api/search")
async def search_messages(request: SearchRequest):
    """Rank a conversation's recent messages against a query."""
    try:
        validate_search_input(request.conversation_id, request.query, request.message_count)
    except SearchValidationError as exc:
        return JSONResponse({"error": str(exc)}, status_code=400)

    try:
        with open_message_store(request.db_path) as store:
            engine = MessageSearchEngine(
                store, LazyEmbedder(build_embedder), config=get_search_config()
            )
            ranked = await engine.search(
                conversation_id=request.conversation_id,
                query=request.query,
                candidate_limit=request.message_count,
            )
    except Exception:
        logger.exception("Search error for conversation %s", request.conversation_id)
        return JSONResponse({"error": SEARCH_FAILED_MESSAGE}, status_code=500)

    return {
        "results": [item.to_dict() for item in ranked.results],
        "query": request.query,
        "conversationId": request.conversation_id,
        "totalMessages": ranked.total_messages,
        "maxScore": ranked.max_score,
    }


@app.post("/api/messages/filter")
async def filter_messages(request: FilterRequest):
    """Return messages matching date, keyword and sender filters."""
    if not request.conversation_id:
        return JSONResponse({"error": "conversationId is required"}, status_code=400)
    if request.message_count < 1:
        return JSONResponse(
            {"error": "messageCount must be a positive integer"}, status_code=400
        )
    try:
        message_filter = parse_message_filters(request.filters)
    except MessageFilterParseError as exc:
        return JSONResponse({"error": str(exc)}, status_code=400)

    try:
        with open_message_store(request.db_path) as store:
            matches = await asyncio.to_thread(
                store.search_messages,
                request.conversation_id,
                limit=request.message_count,
                **message_filter.as_search_kwargs(),
            )
    except Exception:
        logger.exception("Filter error for conversation %s", request.conversation_id)
        return JSONResponse({"error": "Failed to filter messages"}, status_code=500)

    return {
        "conversationId": request.conversation_id,
        "filters": message_filter.to_dict(),
        "count": len(matches),
        "messages": [message.to_dict() for message in matches],
    }


def run_server(host: str = "127.0.0.1", port: int = 8000):
    """Run the FastAPI server."""
    import uvicorn

    configure_logging()
    uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    run_server()
