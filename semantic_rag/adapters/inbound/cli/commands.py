"""CLI interface for the semantic retrieval engine.

The vector store lives in memory, so every command indexes the given
path before it runs.
"""

import asyncio
import json
from pathlib import Path

import typer
from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.prompt import Prompt
from rich.table import Table

from ....config import settings
from ....config.logging import setup_logging
from ....core.domain import ChatMessage, RAGConfig, RAGResponse
from ....core.domain.exceptions import SemanticRagError
from ...common.exception_handler import format_exception_json, get_error_code

app = typer.Typer(
    name="semrag",
    help="Semantic RAG - index local files and ask questions about them",
    add_completion=False,
)

console = Console(force_terminal=True, legacy_windows=False)

# Determine if we're in debug mode (shows full stack traces)
DEBUG_MODE = settings.debug

DEFAULT_COLLECTION = "default"


def handle_cli_error(exc: Exception) -> None:
    """Handle and display errors in CLI with structured format.

    In debug mode, shows full JSON error details.
    In normal mode, shows a user-friendly message with error code.

    Args:
        exc: The exception to handle.
    """
    error_data = format_exception_json(exc, include_trace=DEBUG_MODE)

    if DEBUG_MODE:
        console.print(
            Panel(
                json.dumps(error_data, indent=2),
                title="[bold red]Error Details[/]",
                border_style="red",
            )
        )
        return

    console.print(f"\n[red]Error [{get_error_code(exc)}]:[/] {error_data['error']['message']}")
    if isinstance(exc, SemanticRagError) and exc.collection:
        console.print(f"[dim]Collection: {exc.collection}[/]")
    console.print(f"[dim]Type: {error_data['error']['type']}[/]")

    location = error_data.get("location", {})
    if location:
        loc_str = f"{location.get('file', '?')}:{location.get('line', '?')} in {location.get('method', '?')}"
        console.print(f"[dim]Location: {loc_str}[/]")

    console.print("[dim]Set DEBUG=true for full details[/]")


def _require_path(path: Path) -> None:
    if not path.exists():
        raise typer.BadParameter(f"{path} does not exist", param_hint="PATH")


async def _index(path: Path, collection: str, whole_files: bool = False) -> int:
    from ....composition.container import get_indexing_service

    with console.status(f"[bold green]Indexing {path}...[/]"):
        return await get_indexing_service().index_path(collection, path, whole_files=whole_files)


async def _index_and_query(path: Path, question: str, config: RAGConfig) -> RAGResponse:
    from ....composition.container import get_rag_service

    await _index(path, config.collection_name)
    with console.status("[bold green]Thinking...[/]"):
        return await get_rag_service().query(question, config)


def _print_response(response: RAGResponse) -> None:
    console.print(
        Panel(
            Markdown(response.answer),
            title="[bold cyan]Answer[/]",
            subtitle=f"confidence {response.confidence:.2f}",
            border_style="cyan",
        )
    )

    if response.citations:
        console.print("[dim]Sources:[/]")
        for citation in response.citations[:3]:
            console.print(f"  [dim]{citation.source} ({citation.relevance:.0%})[/]")


@app.callback()
def main() -> None:
    setup_logging(settings.log_level, log_file=settings.log_file, json_format=settings.log_json)


@app.command()
def index(
    path: Path = typer.Argument(..., help="File or directory to index"),
    collection: str = typer.Option(DEFAULT_COLLECTION, "--collection", "-c"),
    whole_files: bool = typer.Option(
        False, "--whole-files", help="Index each source file as one document instead of chunks"
    ),
) -> None:
    """Index a file or directory and report the resulting collection."""
    from ....composition.container import get_vector_store

    _require_path(path)
    try:
        count = asyncio.run(_index(path, collection, whole_files))
        stats = get_vector_store().get_collection_stats(collection)
    except Exception as exc:
        handle_cli_error(exc)
        raise typer.Exit(1)

    console.print(f"[green]Indexed {count} documents into '{collection}'[/]")
    if stats:
        console.print(f"[dim]{stats['count']} documents, {stats['dimensions']} dimensions[/]")


@app.command()
def ask(
    question: str = typer.Argument(..., help="Question to answer"),
    path: Path = typer.Option(Path("."), "--path", "-p", help="File or directory to index first"),
    collection: str = typer.Option(DEFAULT_COLLECTION, "--collection", "-c"),
    top_k: int = typer.Option(settings.rag_top_k, "--top-k", "-k", min=1),
    rerank: bool = typer.Option(False, "--rerank", help="Rerank sources with the chat model"),
    expand: bool = typer.Option(False, "--expand", help="Expand the query before retrieval"),
) -> None:
    """Index a path and answer a single question about it."""
    config = RAGConfig(
        collection_name=collection,
        top_k=top_k,
        reranking=rerank,
        query_expansion=expand,
        max_context_length=settings.rag_max_context_length,
    )

    _require_path(path)
    try:
        response = asyncio.run(_index_and_query(path, question, config))
    except Exception as exc:
        handle_cli_error(exc)
        raise typer.Exit(1)

    _print_response(response)


@app.command()
def chat(
    path: Path = typer.Option(Path("."), "--path", "-p", help="File or directory to index first"),
    collection: str = typer.Option(DEFAULT_COLLECTION, "--collection", "-c"),
) -> None:
    """Start an interactive chat session over an indexed path."""
    from ....composition.container import get_rag_service

    _require_path(path)
    config = RAGConfig(
        collection_name=collection,
        top_k=settings.rag_top_k,
        max_context_length=settings.rag_max_context_length,
    )
    history: list[ChatMessage] = []

    # Provider clients bind to the loop that first uses them
    with asyncio.Runner() as runner:
        try:
            count = runner.run(_index(path, collection))
            rag = get_rag_service()
        except Exception as exc:
            handle_cli_error(exc)
            raise typer.Exit(1)

        console.print(
            Panel.fit(
                f"[bold cyan]Semantic RAG[/]\n"
                f"[dim]{count} documents indexed from {path}[/]\n\n"
                "[dim]Type 'quit' or 'exit' to leave[/]",
                border_style="cyan",
            )
        )

        while True:
            try:
                question = Prompt.ask("\n[bold cyan]You[/]")

                if question.lower() in ("quit", "exit", "q"):
                    console.print("[dim]Goodbye![/]")
                    break

                if not question.strip():
                    continue

                with console.status("[bold green]Thinking...[/]"):
                    response = runner.run(rag.query(question, config, history))

                console.print()
                _print_response(response)

                history.append(ChatMessage(role="user", content=question))
                history.append(ChatMessage(role="assistant", content=response.answer))

            except KeyboardInterrupt:
                console.print("\n[dim]Goodbye![/]")
                break
            except Exception as exc:
                handle_cli_error(exc)


@app.command()
def stats(
    path: Path = typer.Argument(..., help="File or directory to index"),
    collection: str = typer.Option(DEFAULT_COLLECTION, "--collection", "-c"),
) -> None:
    """Show configuration and collection statistics for an indexed path."""
    from ....composition.container import get_vector_store

    console.print("[bold]Semantic RAG Status[/]\n")

    if settings.google_api_key:
        console.print("[green]Google API key configured[/]")
    else:
        console.print("[yellow]Google API key not set (set GOOGLE_API_KEY in .env)[/]")

    _require_path(path)
    try:
        asyncio.run(_index(path, collection))
        store = get_vector_store()
    except Exception as exc:
        handle_cli_error(exc)
        raise typer.Exit(1)

    table = Table(title="Collections")
    table.add_column("Name")
    table.add_column("Documents", justify="right")
    table.add_column("Dimensions", justify="right")
    table.add_column("Search")

    for name in store.list_collections():
        info = store.get_collection_stats(name) or {"count": 0, "dimensions": 0}
        mode = "hnsw" if info["count"] > store.brute_force_threshold else "brute force"
        table.add_row(name, str(info["count"]), str(info["dimensions"]), mode)

    console.print(table)


if __name__ == "__main__":
    app()
