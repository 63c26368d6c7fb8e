import asyncio
import json

from typer import Typer, Option, Argument, Exit
from typing import Annotated
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .config import SearchConfig, configure_logging, resolve_db_path
from .embeddings import Embedder, EmbeddingProvider, LazyEmbedder
from .search import (
    MessageFilterParseError,
    MessageSearchEngine,
    RankedResults,
    SearchFailedError,
    SearchValidationError,
    parse_message_filters,
    supported_filter_syntax,
)
from .store import DuckDBMessageStore, load_messages_file

app = Typer(help="Hybrid semantic + keyword search over chat conversations.")
console = Console()


def build_embedder() -> Embedder:
    return EmbeddingProvider()


@app.callback()
def setup(
    log_level: Annotated[
        str | None,
        Option("--log-level", help="Logging level (defaults to CHAT_SEARCH_LOG_LEVEL or INFO)."),
    ] = None,
) -> None:
    configure_logging(log_level)


async def run_search(
    *,
    conversation_id: str,
    query: str,
    message_count: int | None,
    config: SearchConfig,
    db_path: str | None,
) -> RankedResults:
    store = DuckDBMessageStore(resolve_db_path(db_path))
    try:
        engine = MessageSearchEngine(store, LazyEmbedder(build_embedder), config=config)
        return await engine.search(
            conversation_id=conversation_id,
            query=query,
            candidate_limit=message_count,
        )
    finally:
        store.close()


def _render_results(ranked: RankedResults, query: str) -> None:
    if not ranked.results:
        content = (
            f"No messages matched `{query}`.\n"
            f"Searched {ranked.total_messages} messages, best match {ranked.max_score:.0%}."
        )
        console.print(Panel(content, title="No results", border_style="bold yellow"))
        return

    table = Table(title=f"Results for: {query}", title_justify="left")
    table.add_column("#", justify="right")
    table.add_column("Score", justify="right")
    table.add_column("Matched by")
    table.add_column("Sender")
    table.add_column("Message")
    for rank, item in enumerate(ranked.results, start=1):
        message = item.message
        table.add_row(
            str(rank),
            f"{item.similarity:.0%}",
            item.matched_by,
            message.sender_username or message.sender_id or "",
            message.text,
        )
    console.print(table)
    console.print(
        f"Searched {ranked.total_messages} messages, best match {ranked.max_score:.0%}."
    )


@app.command("import")
def import_messages(
    file: Annotated[str, Argument(help="JSON export of a conversation.")],
    conversation_id: Annotated[
        str | None,
        Option("--conversation-id", "-c", help="Overrides the id stored in the export."),
    ] = None,
    db_path: Annotated[
        str | None, Option("--db-path", help="Message store path.")
    ] = None,
) -> None:
    """Load a conversation export into the local message store."""
    try:
        exported_id, messages = load_messages_file(file)
    except (OSError, ValueError) as exc:
        console.print(f"[bold red]Could not read {file}:[/] {exc}")
        raise Exit(code=1)

    resolved_id = conversation_id or exported_id
    if not resolved_id:
        console.print("[bold red]No conversation id in the export; pass --conversation-id.[/]")
        raise Exit(code=1)

    store = DuckDBMessageStore(resolve_db_path(db_path))
    try:
        written = store.add_messages(resolved_id, messages)
        total = store.count_messages(resolved_id)
    finally:
        store.close()
    console.print(
        f"Imported {written} messages into conversation [bold]{resolved_id}[/] "
        f"({total} stored)."
    )


@app.command()
def search(
    conversation_id: Annotated[
        str, Option("--conversation-id", "-c", help="Conversation to search.")
    ],
    query: Annotated[str, Option("--query", "-q", help="What to look for.")],
    message_count: Annotated[
        int | None,
        Option("--message-count", "-n", help="Number of recent messages to consider."),
    ] = None,
    threshold: Annotated[
        float | None, Option("--threshold", help="Minimum score (exclusive).")
    ] = None,
    max_results: Annotated[
        int | None, Option("--max-results", help="Maximum results to show.")
    ] = None,
    db_path: Annotated[
        str | None, Option("--db-path", help="Message store path.")
    ] = None,
    as_json: Annotated[
        bool, Option("--json", help="Print the response envelope as JSON.")
    ] = False,
) -> None:
    """Rank a conversation's recent messages against a query."""
    try:
        config = SearchConfig.from_env().with_overrides(
            similarity_threshold=threshold, max_results=max_results
        )
    except ValueError as exc:
        console.print(f"[bold red]Invalid configuration:[/] {exc}")
        raise Exit(code=1)

    try:
        ranked = asyncio.run(
            run_search(
                conversation_id=conversation_id,
                query=query,
                message_count=message_count,
                config=config,
                db_path=db_path,
            )
        )
    except (SearchValidationError, SearchFailedError) as exc:
        console.print(f"[bold red]Search failed:[/] {exc}")
        raise Exit(code=1)

    if as_json:
        envelope = {
            "results": [item.to_dict() for item in ranked.results],
            "query": query,
            "conversationId": conversation_id,
            "totalMessages": ranked.total_messages,
            "maxScore": ranked.max_score,
        }
        console.print_json(json.dumps(envelope))
        return
    _render_results(ranked, query)


@app.command("filter")
def filter_command(
    conversation_id: Annotated[
        str, Option("--conversation-id", "-c", help="Conversation to filter.")
    ],
    filters: Annotated[str, Option("--filters", "-f", help=supported_filter_syntax())],
    message_count: Annotated[
        int, Option("--message-count", "-n", help="Maximum matches to show (most recent kept).")
    ] = 200,
    db_path: Annotated[
        str | None, Option("--db-path", help="Message store path.")
    ] = None,
) -> None:
    """List messages matching date, keyword and sender filters."""
    try:
        message_filter = parse_message_filters(filters)
    except MessageFilterParseError as exc:
        console.print(f"[bold red]{exc}[/]")
        raise Exit(code=1)

    store = DuckDBMessageStore(resolve_db_path(db_path))
    try:
        matches = store.search_messages(
            conversation_id, limit=message_count, **message_filter.as_search_kwargs()
        )
    finally:
        store.close()

    table = Table(title=f"{len(matches)} matching messages", title_justify="left")
    table.add_column("When")
    table.add_column("Sender")
    table.add_column("Message")
    for message in matches:
        table.add_row(
            message.timestamp.isoformat(timespec="minutes") if message.timestamp else "",
            message.sender_username or message.sender_id or "",
            message.text,
        )
    console.print(table)


@app.command()
def conversations(
    db_path: Annotated[
        str | None, Option("--db-path", help="Message store path.")
    ] = None,
) -> None:
    """List stored conversations with their message counts."""
    store = DuckDBMessageStore(resolve_db_path(db_path))
    try:
        listed = store.list_conversations()
    finally:
        store.close()

    if not listed:
        console.print(
            Panel("Nothing imported yet.", title="No conversations", border_style="bold yellow")
        )
        return

    table = Table(title="Conversations", title_justify="left")
    table.add_column("Conversation")
    table.add_column("Messages", justify="right")
    table.add_column("Last message")
    for entry in listed:
        table.add_row(
            entry["conversation_id"],
            str(entry["message_count"]),
            entry["last_message_at"] or "",
        )
    console.print(table)


@app.command()
def serve(
    host: Annotated[str, Option("--host", help="Bind address.")] = "127.0.0.1",
    port: Annotated[int, Option("--port", help="Bind port.")] = 8000,
) -> None:
    """Start the HTTP API."""
    from .server import run_server

    run_server(host=host, port=port)
