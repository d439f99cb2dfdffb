"""Command line interface for sourcefinder."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.text import Text

from sourcefinder.config import AppConfig
from sourcefinder.errors import IndexingError, SourceFinderError
from sourcefinder.index.highlight import BAND_COLORS
from sourcefinder.index.indexer import Indexer, IndexStats
from sourcefinder.index.search import SearchHit, Searcher
from sourcefinder.index.status import collect_status, read_status, write_status
from sourcefinder.index.storage import EngineStore

console = Console()
app = typer.Typer(help="sourcefinder - change-aware code search on a remote full-text engine")


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="[%(levelname)s] %(message)s")


def _load_config(engine: Optional[str], index_name: Optional[str], root: Optional[Path] = None) -> AppConfig:
    return AppConfig.from_env(engine_url=engine, index_name=index_name, source_root=root)


def _render_hit(hit: SearchHit) -> Text:
    text = Text()
    for line in hit.plan.lines:
        style = BAND_COLORS[line.band] if line.band is not None else ""
        if line.bold:
            style = f"bold {style}".strip()
        text.append(f"{line.line_no:>{hit.plan.width}d} | ", style="dim")
        text.append(line.text + "\n", style=style or None)
    return text


@app.command()
def index(
    roots: List[Path] = typer.Argument(None, help="Directories to index (default: source root)."),
    engine: Optional[str] = typer.Option(None, "--engine", help="Search engine URL"),
    index_name: Optional[str] = typer.Option(None, "--index", help="Remote index name"),
    root: Optional[Path] = typer.Option(
        None, "--root", help="Source root indexed by default and stamped with the status file"
    ),
    overwrite: bool = typer.Option(False, "--overwrite", help="Resubmit every document"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Sync source trees with the remote index, skipping unchanged files."""
    _setup_logging(verbose)
    config = _load_config(engine, index_name, root)
    source_root = config.resolve_source_root(Path.cwd())
    targets = list(roots) if roots else [source_root]

    total = IndexStats()
    with EngineStore(config) as store:
        indexer = Indexer(
            store,
            batch_size=config.read_batch_size,
            detect_changes=config.detect_changes and not overwrite,
            extensions=config.extensions,
        )
        for target in targets:
            if not target.exists():
                console.print(f"[yellow]Skipping missing path {target}[/yellow]")
                continue
            console.print(f"Indexing [bold]{target}[/bold] into {config.index_name}...")
            try:
                total.merge(indexer.index(target))
            except IndexingError as exc:
                total.merge(exc.stats)
                console.print(f"[red]{exc}[/red]")
                console.print(
                    f"Read: {total.read}, unchanged: {total.unchanged}, submitted: {total.submitted}"
                )
                raise typer.Exit(code=1)

        if source_root.is_dir():
            write_status(
                source_root / config.status_name,
                collect_status(source_root, status_name=config.status_name),
            )

    console.print(
        f"Read: {total.read}, unchanged: {total.unchanged}, "
        f"submitted: {total.submitted}, batches: {total.batches}"
    )


@app.command()
def search(
    query: str = typer.Argument(..., help="Query text, @name restricts to matching file names"),
    page: int = typer.Option(0, help="Result page"),
    doc_id: Optional[str] = typer.Option(None, "--id", help="Show a single document in full"),
    engine: Optional[str] = typer.Option(None, "--engine", help="Search engine URL"),
    index_name: Optional[str] = typer.Option(None, "--index", help="Remote index name"),
    explain: bool = typer.Option(False, "--explain", help="Print score explanations"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Search the remote index and print match windows."""
    _setup_logging(verbose)
    config = _load_config(engine, index_name)

    with EngineStore(config) as store:
        result = Searcher(store, config).search(query, page=page, doc_id=doc_id)

    if result.error:
        console.print(f"[red]{result.error}[/red]")
        raise typer.Exit(code=1)
    if not result.hits:
        console.print("[yellow]No matches found.[/yellow]")
        return

    console.print(
        f"took: {result.took}ms, matching documents: {result.total}, "
        f"pages: {result.pages}, page: {result.page}"
    )
    for hit in result.hits:
        console.rule(f"{hit.id}  score: {hit.score:.4f}  lines matching: {hit.n_matches}")
        if explain and hit.explanation:
            console.print(hit.explanation, style="italic")
        console.print(_render_hit(hit), end="")


@app.command()
def stat(
    engine: Optional[str] = typer.Option(None, "--engine", help="Search engine URL"),
) -> None:
    """Print engine statistics."""
    config = _load_config(engine, None)
    try:
        with EngineStore(config) as store:
            stats = store.stat()
    except SourceFinderError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1)
    console.print_json(data=stats)


@app.command()
def status(
    root: Optional[Path] = typer.Option(None, "--root", help="Source root holding the status file"),
) -> None:
    """Show which revision of each sub-tree was last indexed."""
    config = _load_config(None, None, root)
    console.print(read_status(config.resolve_source_root(Path.cwd()) / config.status_name))


@app.command()
def web(
    host: str = typer.Option("127.0.0.1", help="Host interface"),
    port: int = typer.Option(8000, help="Server port"),
) -> None:
    """Start the JSON search API."""
    try:
        import uvicorn
    except ImportError as exc:  # pragma: no cover - defensive
        raise typer.BadParameter(
            "uvicorn is not installed. Install the web extras with \"python -m pip install '.[web]'\""
        ) from exc

    from sourcefinder.web.app import app as web_app

    console.print(f"Starting web interface on http://{host}:{port}")
    uvicorn.run(
        web_app,
        host=host,
        port=port,
        reload=False,
        log_level="info",
    )
