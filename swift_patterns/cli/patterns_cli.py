"""
Swift Patterns CLI - search curated Swift content from the command line.

Commands:
- search: Search all enabled sources
- pattern: Get high-quality patterns on a topic
- sources: List content sources
- enable / disable: Toggle a source
- serve: Run the HTTP API
"""

# Load environment variables before any other imports
# so that config modules see them
from pathlib import Path
from dotenv import load_dotenv

env_path = Path.cwd() / '.env'
if env_path.exists():
    load_dotenv(env_path)

# Standard library imports
import asyncio
import sys
import logging

# Third-party imports
import click
from rich.console import Console
from rich.table import Table
from rich.progress import Progress, SpinnerColumn, TextColumn

from swift_patterns.common.errors import QueryError, SourceNotConfiguredError, UnknownSourceError
from swift_patterns.config.search_config import API_CONFIG, LOG_LEVEL, SOURCES_CONFIG
from swift_patterns.ingestion.source_manager import SourceManager
from swift_patterns.search.search_engine import PatternSearchEngine, SearchOutcome
from swift_patterns.search.search_index import suggest_similar

console = Console()

# Configure logging (stderr, so result output stays clean)
logging.basicConfig(
    level=LOG_LEVEL,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    stream=sys.stderr
)


def _build_engine(config_path: str = SOURCES_CONFIG) -> PatternSearchEngine:
    return PatternSearchEngine(source_manager=SourceManager.from_config(config_path))


def _run_with_spinner(description: str, coro):
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
        transient=True
    ) as progress:
        task = progress.add_task(description, total=None)
        result = asyncio.run(coro)
        progress.remove_task(task)
    return result


def _print_outcome(outcome: SearchOutcome, engine: PatternSearchEngine, limit: int):
    results = outcome.results
    console.print(
        f"[bold green]Found {len(results)} patterns[/bold green] "
        f"(showing {min(len(results), limit)}) from {', '.join(outcome.sources) or 'no sources'}\n"
    )

    if outcome.recall.status.value == "degraded":
        console.print("[yellow]Semantic recall unavailable, showing keyword matches only[/yellow]\n")
    elif outcome.recall.documents:
        console.print(f"[blue]Semantic recall added {len(outcome.recall.documents)} results[/blue]\n")

    if not results:
        console.print("[yellow]No results found. Try a different query.[/yellow]")
        words = outcome.query.lower().split()
        suggestions = []
        for word in words:
            suggestions.extend(s for s in suggest_similar(word, engine.known_terms()) if s not in suggestions)
        if suggestions:
            console.print(f"Did you mean: {', '.join(suggestions[:3])}?")
        console.print()
        return

    for i, doc in enumerate(results[:limit], 1):
        console.print(f"[bold cyan]{i}. {doc.title}[/bold cyan]")
        console.print(f"   [dim]{doc.source_id} • {doc.publish_date}[/dim]")
        console.print(f"   [green]Relevance: {doc.relevance_score}[/green]", end="")
        if doc.has_code:
            console.print(" [yellow](code)[/yellow]", end="")
        console.print()

        if doc.topics:
            console.print(f"   Topics: {', '.join(doc.topics)}")

        excerpt = doc.excerpt
        if len(excerpt) > 150:
            excerpt = excerpt[:150] + "..."
        console.print(f"   {excerpt}")
        console.print(f"   [link={doc.url}]{doc.url}[/link]")
        console.print()

    if len(results) > limit:
        console.print(f"[dim]Showing results 1-{limit} of {len(results)} total[/dim]")
        console.print("[dim]Use --limit to see more results[/dim]\n")


@click.group()
@click.option('--config', '-c', default=SOURCES_CONFIG, help='Sources config path')
@click.pass_context
def cli(ctx, config):
    """Swift Patterns CLI - search Swift articles from curated blogs."""
    ctx.ensure_object(dict)
    ctx.obj['config'] = config


# ============================================================================
# Search Commands
# ============================================================================

@cli.command()
@click.argument('query')
@click.option('--require-code', is_flag=True, help='Only show articles with code examples')
@click.option('--limit', '-l', default=10, type=click.IntRange(min=1), help='Maximum results to show')
@click.pass_context
def search(ctx, query, require_code, limit):
    """
    Search all enabled sources.

    Example usage:
        swift-patterns search "async await"
        swift-patterns search "navigationstack" --require-code
    """
    console.print(f"\n[bold cyan]Searching for:[/bold cyan] '{query}'\n")
    engine = _build_engine(ctx.obj['config'])

    try:
        outcome = _run_with_spinner(
            "Searching...", engine.search_content(query, require_code=require_code)
        )
    except QueryError as e:
        raise click.UsageError(str(e))

    _print_outcome(outcome, engine, limit)


@cli.command()
@click.argument('topic')
@click.option('--source', '-s', default='all', help="Source ID or 'all'")
@click.option('--min-quality', '-q', default=60, type=click.IntRange(0, 100), help='Minimum relevance score')
@click.option('--limit', '-l', default=10, type=click.IntRange(min=1), help='Maximum results to show')
@click.pass_context
def pattern(ctx, topic, source, min_quality, limit):
    """
    Get high-quality patterns on a topic.

    Example usage:
        swift-patterns pattern swiftui
        swift-patterns pattern testing --source sundell --min-quality 70
    """
    console.print(f"\n[bold cyan]Patterns for:[/bold cyan] '{topic}' (min quality {min_quality})\n")
    engine = _build_engine(ctx.obj['config'])

    try:
        outcome = _run_with_spinner(
            "Fetching patterns...",
            engine.get_patterns(topic, source=source, min_quality=min_quality)
        )
    except QueryError as e:
        raise click.UsageError(str(e))
    except UnknownSourceError as e:
        raise click.BadParameter(str(e), param_hint="'--source'")

    _print_outcome(outcome, engine, limit)


# ============================================================================
# Source Commands
# ============================================================================

@cli.command()
@click.pass_context
def sources(ctx):
    """List all content sources."""
    console.print("\n[bold cyan]Content Sources[/bold cyan]\n")
    engine = _build_engine(ctx.obj['config'])

    table = Table()
    table.add_column("ID", style="cyan")
    table.add_column("Name", style="blue")
    table.add_column("Type", style="magenta")
    table.add_column("Enabled", style="green")
    table.add_column("Configured", style="yellow")

    source_list = engine.list_sources()
    for source in source_list:
        table.add_row(
            source['id'],
            source['name'],
            source['type'],
            "yes" if source['enabled'] else "no",
            "yes" if source['configured'] else "needs setup"
        )

    console.print(table)
    console.print(f"\n[green]Total sources: {len(source_list)}[/green]\n")


@cli.command()
@click.argument('source_id')
@click.pass_context
def enable(ctx, source_id):
    """Enable a source."""
    engine = _build_engine(ctx.obj['config'])

    try:
        result = engine.enable_source(source_id)
    except UnknownSourceError:
        available = ", ".join(s['id'] for s in engine.list_sources())
        raise click.BadParameter(
            f"Unknown source: {source_id!r}. Available: {available}", param_hint="'SOURCE_ID'"
        )
    except SourceNotConfiguredError as e:
        source = engine.source_manager.get_source(source_id)
        console.print(f"[yellow]{e}[/yellow]")
        if source is not None and source.auth_env:
            console.print(f"Set {source.auth_env} in your environment or .env file first.\n")
        sys.exit(1)

    engine.source_manager.save_enabled_state(ctx.obj['config'])
    console.print(f"[green]{result['name']} enabled![/green]\n")


@cli.command()
@click.argument('source_id')
@click.pass_context
def disable(ctx, source_id):
    """Disable a source."""
    engine = _build_engine(ctx.obj['config'])

    try:
        result = engine.disable_source(source_id)
    except UnknownSourceError as e:
        raise click.BadParameter(str(e), param_hint="'SOURCE_ID'")

    engine.source_manager.save_enabled_state(ctx.obj['config'])
    console.print(f"[green]{result['name']} disabled[/green]\n")


# ============================================================================
# Server
# ============================================================================

@cli.command()
@click.option('--host', default=API_CONFIG['host'], help='Bind address')
@click.option('--port', default=API_CONFIG['port'], type=int, help='Port')
@click.option('--reload', is_flag=True, default=API_CONFIG['reload'], help='Auto-reload on code changes')
def serve(host, port, reload):
    """Run the HTTP API."""
    import uvicorn

    console.print(f"\n[bold cyan]Starting API on {host}:{port}[/bold cyan]\n")
    uvicorn.run(
        "swift_patterns.api.main:build_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
        log_level=API_CONFIG['log_level']
    )


if __name__ == '__main__':
    cli()
