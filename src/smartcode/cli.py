"""
Command line interface for smart code search.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.progress import (
    BarColumn,
    Progress,
    TaskProgressColumn,
    TextColumn,
    TimeElapsedColumn,
)
from rich.table import Table

from .chunking import chunk_source, get_chunking_params
from .logger import configure_logging, get_logger, redirect_logging_to_file
from .search import HybridSearch
from .services import IndexerService, IndexingCallbacks
from .settings import settings
from .storage import ChunkCache
from .version import __version__

app = typer.Typer(name="smartcode", help="Structure-aware code search CLI.")
configure_logging(enable_console=False)
log = get_logger(__name__)
console = Console()


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"smartcode {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    workspace: Optional[Path] = typer.Option(
        None,
        "--workspace",
        "-w",
        help="Workspace root to operate on (defaults to the configured root).",
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Print debug logs to the console."
    ),
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show the version and exit.",
    ),
) -> None:
    """Index a workspace and search it by meaning and by text."""
    if workspace is not None:
        if not workspace.is_dir():
            typer.echo(f"[ERROR] Workspace not found: {workspace}")
            raise typer.Exit(code=2)
        settings.workspace_root = workspace
    if verbose or settings.verbose:
        configure_logging(level=logging.DEBUG, enable_console=True)


@app.command()
def index(
    force: bool = typer.Option(False, "--force", help="Re-embed every file."),
    log_file: bool = typer.Option(
        False,
        "--log",
        help="Redirect detailed logs to indexing.log in the cache directory.",
    ),
) -> None:
    """Chunk, embed and cache every eligible file in the workspace."""
    cache_dir = settings.resolved_cache_directory()
    if log_file:
        log_path = (cache_dir / "indexing.log").resolve()
        redirect_logging_to_file(log_path)
        typer.echo(f"Logging detailed output to {log_path}")

    cache = ChunkCache(cache_dir)
    try:
        with Progress(
            TextColumn("{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            TimeElapsedColumn(),
            console=console,
            transient=True,
        ) as progress:
            scan_task = progress.add_task("Scanning workspace", total=None)
            embed_task = progress.add_task("Embedding chunks", total=1)

            def on_file(path: Path) -> None:
                progress.update(scan_task, advance=1, description=f"Chunking {path.name}")

            def on_embed_progress(completed: int, total: int) -> None:
                total = max(total, 1)
                progress.update(
                    embed_task,
                    total=total,
                    completed=min(completed, total),
                    description=f"Embedding chunks ({completed}/{total})",
                )
                progress.refresh()

            def on_stage(stage: str) -> None:
                if stage == "scan_started":
                    progress.update(scan_task, description="Scanning workspace")
                elif stage == "chunk_started":
                    progress.update(scan_task, description="Chunking files")
                elif stage == "chunk_completed":
                    task = progress.tasks[scan_task]
                    progress.update(
                        scan_task,
                        total=max(task.completed, 1),
                        completed=max(task.completed, 1),
                        description="Chunking complete",
                    )
                elif stage == "embedding_completed":
                    task = progress.tasks[embed_task]
                    progress.update(
                        embed_task,
                        completed=task.total if task.total is not None else task.completed,
                        description="Embedding complete",
                    )

            callbacks = IndexingCallbacks(
                file=on_file,
                stage=on_stage,
                embed_progress=on_embed_progress,
            )
            service = IndexerService(cache=cache, workspace=settings.workspace_root)
            result = service.index_workspace(force=force, callbacks=callbacks)
    finally:
        cache.close()

    typer.echo(
        f"Indexed {result.workspace} files={result.files_scanned} "
        f"updated={result.files_indexed} unchanged={result.files_unchanged} "
        f"removed={result.files_removed} chunks={result.chunk_count}"
    )
    for failed in result.failed_files:
        typer.echo(f"[WARN] Could not read {failed}")


@app.command()
def search(
    query: str = typer.Argument(..., help="Natural language or literal code query."),
    max_results: Optional[int] = typer.Option(
        None, "--max-results", "-k", help="Number of results to show."
    ),
    show_code: bool = typer.Option(
        True, "--code/--no-code", help="Print the matched code under each hit."
    ),
) -> None:
    """Search the indexed workspace."""
    cache = ChunkCache(settings.resolved_cache_directory())
    try:
        engine = HybridSearch(cache)
        try:
            results = engine.search(query, max_results=max_results)
        except ValueError as exc:
            typer.echo(f"[ERROR] {exc}")
            raise typer.Exit(code=2)
    finally:
        cache.close()

    if not results:
        typer.echo("No results. Run `smartcode index` first?")
        return
    for rank, result in enumerate(results, start=1):
        location = f"{rank}. {result.path}:{result.start_line}-{result.end_line}"
        marker = " [exact]" if result.exact_match else ""
        console.print(
            f"[bold]{escape(location)}[/bold] "
            f"({result.kind}) score={result.score:.3f}{escape(marker)}",
            highlight=False,
        )
        console.print(f"   {result.signature}", markup=False, highlight=False)
        if show_code:
            console.print(result.text, markup=False, highlight=False)
            console.print()


@app.command()
def chunk(
    file: Path = typer.Argument(..., help="Source file to preview."),
    show_text: bool = typer.Option(False, "--text", help="Print each chunk's text."),
) -> None:
    """Show how a file would be chunked, without touching the cache."""
    if not file.is_file():
        typer.echo(f"[ERROR] File not found: {file}")
        raise typer.Exit(code=2)
    params = get_chunking_params(
        settings.embedding_model,
        target_override=settings.chunk_target_tokens,
        overlap_override=settings.chunk_overlap_tokens,
    )
    content = file.read_text(encoding="utf-8", errors="ignore")
    chunks = chunk_source(
        content,
        file,
        params,
        chunk_size=settings.chunk_size,
        chunk_overlap=settings.chunk_overlap,
    )

    table = Table(title=escape(f"{file.name}: {len(chunks)} chunks"))
    table.add_column("Lines", justify="right")
    table.add_column("Kind")
    table.add_column("Tokens", justify="right")
    table.add_column("Signature", overflow="fold")
    for item in chunks:
        table.add_row(
            f"{item.start_line}-{item.end_line}",
            item.kind,
            str(item.token_count),
            escape(item.display_signature()),
        )
    console.print(table)
    if show_text:
        for item in chunks:
            console.rule(f"{item.start_line}-{item.end_line} {item.kind}")
            console.print(item.text, markup=False, highlight=False)


@app.command()
def status() -> None:
    """Show cache statistics for the workspace."""
    cache = ChunkCache(settings.resolved_cache_directory())
    try:
        stats = cache.stats()
    finally:
        cache.close()
    typer.echo(f"Workspace: {settings.workspace_root.resolve()}")
    typer.echo(f"Cache: {stats['db_path']}")
    typer.echo(f"Embedding model: {stats['embedding_model'] or '-'}")
    typer.echo(f"Files: {stats['files']} chunks: {stats['chunks']}")


@app.command("clear-cache")
def clear_cache(
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not prompt for confirmation."),
) -> None:
    """Drop every cached chunk and embedding."""
    if not yes:
        proceed = typer.confirm("Delete all cached embeddings?", default=False)
        if not proceed:
            typer.echo("Aborted.")
            raise typer.Exit()
    cache = ChunkCache(settings.resolved_cache_directory())
    try:
        cache.reset()
    finally:
        cache.close()
    typer.echo("Cache cleared.")


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, "--host", help="Bind address."),
    port: Optional[int] = typer.Option(None, "--port", help="Bind port."),
) -> None:
    """Serve the HTTP API."""
    import uvicorn

    uvicorn.run(
        "smartcode.api.main:app",
        host=host or settings.api_host,
        port=port or settings.api_port,
        reload=False,
    )


if __name__ == "__main__":  # pragma: no cover
    app()
