"""ModelCatalog CLI.

Commands:
- init: Initialize database schema
- sync: Aggregate all sources and store a snapshot (cron entry point)
- sync-history: Show recent sync operations
- stats: Show model counts for the latest completed sync
- sources: List configured catalog sources
- evaluate: Evaluate a saved filter against the live catalog
- web serve: Run the HTTP API
"""

from __future__ import annotations

import asyncio
from uuid import UUID

import typer
from rich.console import Console
from rich.table import Table

from modelcatalog.config import get_config
from modelcatalog.core.logging import configure_logging
from modelcatalog.db.connection import close_db, init_db
from modelcatalog.errors import ModelCatalogError

app = typer.Typer(
    name="modelcatalog",
    help="ModelCatalog - Aggregated AI model catalog with saved filters",
    no_args_is_help=True,
)

web_cli = typer.Typer(help="Web API")
app.add_typer(web_cli, name="web")

console = Console()


def _status_text(ok: bool, label: str) -> str:
    style = "green" if ok else "red"
    return f"[{style}]{label}[/{style}]"


@app.callback()
def main_callback(
    log_level: str | None = typer.Option(None, "--log-level", help="Override LOG_LEVEL"),
):
    configure_logging(log_level)


@app.command()
def init(
    drop: bool = typer.Option(False, "--drop", help="Drop existing tables"),
):
    """Initialize database schema."""
    config = get_config()
    console.print(f"[bold]Initializing database:[/bold] {config.db.url}")

    async def _init():
        try:
            if drop:
                console.print("[yellow]Dropping existing tables...[/yellow]")
            await init_db(drop=drop)
        finally:
            await close_db()

    asyncio.run(_init())
    console.print("[bold green]✓[/bold green] Database initialized")


@app.command()
def sync(
    deadline: float | None = typer.Option(
        None, "--deadline", help="Per-source deadline in seconds"
    ),
):
    """Aggregate every source and store the result as one sync.

    Sources fail independently; the sync still completes with whatever the
    remaining sources returned.
    """
    from modelcatalog.container import build_container

    config = get_config()
    console.print("[bold]Starting model sync[/bold]")

    async def _sync():
        container = build_container(config)
        try:
            return await container.catalog.sync(deadline or config.sync.deadline_seconds)
        finally:
            await container.cache.close()
            await close_db()

    try:
        result = asyncio.run(_sync())
    except ModelCatalogError as e:
        console.print(f"[red]Sync failed: {e}[/red]")
        raise typer.Exit(1)

    table = Table(title="Source Results")
    table.add_column("Source", style="cyan")
    table.add_column("Status", style="bold")
    table.add_column("Models", justify="right")
    table.add_column("Error")

    for source_name, count in result.per_source.items():
        table.add_row(source_name, _status_text(True, "success"), str(count), "")
    for source_name, message in result.errors.items():
        table.add_row(source_name, _status_text(False, "failed"), "0", message)

    console.print(table)
    console.print(f"Sync {result.sync_id}: {result.status.value}")
    console.print(f"Fetched {result.total_fetched}, stored {result.total_stored}")


@app.command(name="sync-history")
def sync_history(
    limit: int = typer.Option(10, "--limit", "-n", help="Show last N syncs"),
):
    """Show recent sync operations, newest first."""
    from modelcatalog.db.sync_ledger import SyncLedger

    async def _history():
        try:
            return await SyncLedger().sync_history(limit)
        finally:
            await close_db()

    syncs = asyncio.run(_history())
    if not syncs:
        console.print("[yellow]No syncs found[/yellow]")
        return

    table = Table(title="Sync History")
    table.add_column("Sync", style="cyan")
    table.add_column("Status", style="bold")
    table.add_column("Started")
    table.add_column("Fetched", justify="right")
    table.add_column("Stored", justify="right")
    table.add_column("Error")

    for op in syncs:
        ok = op.status.value != "failed"
        table.add_row(
            str(op.id),
            _status_text(ok, op.status.value),
            op.started_at.strftime("%Y-%m-%d %H:%M:%S"),
            "-" if op.total_fetched is None else str(op.total_fetched),
            "-" if op.total_stored is None else str(op.total_stored),
            op.error_message or "",
        )
    console.print(table)


@app.command()
def stats():
    """Show model counts per provider for the latest completed sync."""
    from modelcatalog.db.sync_ledger import SyncLedger

    async def _stats():
        try:
            return await SyncLedger().model_data_stats()
        finally:
            await close_db()

    data = asyncio.run(_stats())
    if data.last_sync_at is None:
        console.print("[yellow]No completed sync yet. Run 'modelcatalog sync'.[/yellow]")
        return

    table = Table(title=f"Models (synced {data.last_sync_at:%Y-%m-%d %H:%M})")
    table.add_column("Provider", style="cyan")
    table.add_column("Count", justify="right", style="green")
    for provider, count in data.model_count_by_provider.items():
        table.add_row(provider, str(count))
    table.add_row("[bold]Total[/bold]", f"[bold]{data.total_models}[/bold]")
    console.print(table)


@app.command()
def sources():
    """List configured catalog sources."""
    from modelcatalog.pipeline.config_loader import build_default_sources

    configured = build_default_sources(get_config())
    if not configured:
        console.print("[yellow]No sources configured or all disabled[/yellow]")
        return

    table = Table(title="Sources")
    table.add_column("Name", style="cyan")
    table.add_column("Type")
    table.add_column("URL")
    for source in configured:
        table.add_row(source.source_name, type(source).__name__, source.url)
    console.print(table)


@app.command()
def evaluate(
    filter_id: str = typer.Argument(..., help="Saved filter id"),
    user: str = typer.Option(..., "--user", help="Requesting user id"),
    team: str | None = typer.Option(None, "--team", help="Requesting user's team"),
    limit: int | None = typer.Option(None, "--limit", help="Maximum models to evaluate"),
):
    """Evaluate a saved filter and record the run."""
    from modelcatalog.container import build_container
    from modelcatalog.models import EvaluateFilterRequest, RequestContext

    try:
        parsed_id = UUID(filter_id)
    except ValueError:
        raise typer.BadParameter(f"Not a valid filter id: {filter_id}")

    ctx = RequestContext(user_id=user, team_id=team)

    async def _evaluate():
        container = build_container(get_config())
        try:
            response = await container.filters.evaluate(
                ctx, parsed_id, EvaluateFilterRequest(limit=limit)
            )
            await container.supervisor.drain(timeout=30)
            return response
        finally:
            await container.cache.close()
            await close_db()

    try:
        response = asyncio.run(_evaluate())
    except ModelCatalogError as e:
        console.print(f"[red]{e.__class__.__name__}: {e}[/red]")
        raise typer.Exit(1)

    table = Table(title=f"{response.filter_name} (run {response.run_id})")
    table.add_column("Model", style="cyan")
    table.add_column("Match", style="bold")
    table.add_column("Score", justify="right")
    table.add_column("Rationale")

    for result in sorted(response.results, key=lambda r: (not r.match, -r.score)):
        table.add_row(
            result.model_id,
            _status_text(result.match, "yes" if result.match else "no"),
            f"{result.score:.2f}",
            result.rationale,
        )
    console.print(table)
    console.print(f"{response.match_count}/{response.total_evaluated} models matched")


@web_cli.command("serve")
def web_serve(
    host: str = typer.Option("0.0.0.0", help="Host to bind"),
    port: int = typer.Option(8001, help="Port to bind"),
    reload: bool = typer.Option(False, help="Enable autoreload (dev only)"),
):
    """Run the FastAPI HTTP API."""
    import uvicorn

    typer.echo(f"Starting ModelCatalog API on http://{host}:{port}")
    uvicorn.run("modelcatalog.web.app:app", host=host, port=port, reload=reload, workers=1)


def main():
    """Entry point for CLI."""
    app()


if __name__ == "__main__":
    main()
