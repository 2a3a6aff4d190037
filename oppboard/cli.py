"""oppboard CLI - run the service and drive mirror syncs from the shell."""

from __future__ import annotations

import asyncio
import json
from typing import Any

import typer
from rich.console import Console
from rich.table import Table

from .config import settings
from .database import async_session_factory
from .services import custom_field_svc, ghl_svc, location_svc, pipeline_svc
from .services.errors import REMOTE_ERRORS, OppboardError, classify_remote_error
from .sync import sync_engine

app = typer.Typer(
    name="oppboard",
    help="oppboard - local GoHighLevel opportunity mirror",
    no_args_is_help=True,
)
console = Console()


def _output_result(result: dict[str, Any]) -> None:
    console.print_json(json.dumps(result, default=str))


def _fail(exc: OppboardError) -> None:
    console.print(f"[red]{exc.message}[/red]")
    if exc.detail:
        console.print(f"[dim]{exc.detail}[/dim]")
    raise typer.Exit(1)


@app.command("serve")
def serve(
    host: str = typer.Option("127.0.0.1", "--host", help="Bind address"),
    port: int = typer.Option(8000, "--port", "-p", help="Bind port"),
    reload: bool = typer.Option(False, "--reload", help="Auto-reload on code changes"),
):
    """Run the HTTP API with uvicorn."""
    import uvicorn

    uvicorn.run("oppboard.app:app", host=host, port=port, reload=reload, log_level=settings.log_level.lower())


@app.command("migrate")
def migrate(revision: str = typer.Argument("head", help="Target revision")):
    """Apply Alembic migrations to the configured database."""
    from alembic import command
    from alembic.config import Config

    cfg = Config(str(settings.base_dir / "alembic.ini"))
    command.upgrade(cfg, revision)
    console.print(f"[green]Database upgraded to {revision}[/green]")


@app.command("link")
def link(
    location_id: str = typer.Argument(..., help="GHL location id"),
    api_key: str = typer.Option(..., "--api-key", "-k", prompt=True, hide_input=True, help="Private integration token"),
):
    """Validate an API key against GHL and store it for the location."""

    async def _link():
        async with async_session_factory() as db:
            return await location_svc.store_credential(
                db, location_id, api_key, client_factory=ghl_svc.default_client_factory
            )

    try:
        asyncio.run(_link())
    except ValueError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(1)
    except OppboardError as exc:
        _fail(exc)
    console.print(f"[green]Linked location {location_id}[/green]")


@app.command("sync")
def sync(
    location_id: str = typer.Argument(..., help="GHL location id"),
    pipeline_id: str = typer.Option(None, "--pipeline", "-p", help="Only sync one pipeline"),
    json_output: bool = typer.Option(False, "--json", "-j", help="Output as JSON"),
):
    """Mirror pipelines and every opportunity for a location."""

    async def _sync():
        async with async_session_factory() as db:
            client = await ghl_svc.get_ghl_client(db, location_id, ghl_svc.default_client_factory)
            async with client as ghl:
                return await sync_engine.sync_all_opportunities(db, ghl, location_id, pipeline_id=pipeline_id)

    try:
        result = asyncio.run(_sync())
    except REMOTE_ERRORS as exc:
        _fail(classify_remote_error(exc, location_id))
    except OppboardError as exc:
        _fail(exc)

    if json_output:
        _output_result(result.model_dump())
        return

    table = Table(title=f"Sync {location_id}")
    table.add_column("Pipelines", style="cyan")
    table.add_column("Fetched", style="yellow")
    table.add_column("Synced", style="green")
    table.add_column("Errors", style="red")
    table.add_row(str(result.pipelines), str(result.total), str(result.synced), str(result.errors))
    console.print(table)
    for message in result.batches.messages:
        console.print(f"[red]{message}[/red]")


@app.command("pipelines")
def pipelines(
    location_id: str = typer.Argument(..., help="GHL location id"),
    json_output: bool = typer.Option(False, "--json", "-j", help="Output as JSON"),
):
    """List mirrored pipelines (no GHL call)."""

    async def _list():
        async with async_session_factory() as db:
            rows = await pipeline_svc.list_pipelines(db, location_id)
            return [pipeline_svc.pipeline_out(p) for p in rows]

    result = asyncio.run(_list())

    if json_output:
        _output_result({"pipelines": [p.model_dump(by_alias=True) for p in result]})
        return

    table = Table(title=f"Pipelines ({len(result)})")
    table.add_column("ID", style="dim", max_width=24)
    table.add_column("Name", style="cyan")
    table.add_column("Stages", style="yellow")
    for p in result:
        names = [s.name for s in p.stages]
        table.add_row(p.id[:24], p.name or "-", " → ".join(names[:4]) + ("..." if len(names) > 4 else ""))
    console.print(table)


@app.command("custom-fields")
def custom_fields(
    location_id: str = typer.Argument(..., help="GHL location id"),
    model: str = typer.Option("opportunity", "--model", "-m", help="opportunity or contact"),
    refresh: bool = typer.Option(False, "--refresh", "-r", help="Bypass the cache"),
    json_output: bool = typer.Option(False, "--json", "-j", help="Output as JSON"),
):
    """Show custom field definitions grouped by folder."""

    async def _fields():
        async with async_session_factory() as db:
            return await custom_field_svc.get_custom_fields(
                db, location_id, model, refresh, client_factory=ghl_svc.default_client_factory
            )

    try:
        view = asyncio.run(_fields())
    except REMOTE_ERRORS as exc:
        _fail(classify_remote_error(exc, location_id))
    except OppboardError as exc:
        _fail(exc)

    if json_output:
        _output_result(view.model_dump(by_alias=True))
        return

    folder_names = {f.id: f.name for f in view.folders}
    table = Table(title=f"Custom fields ({len(view.custom_fields)})")
    table.add_column("Key", style="cyan")
    table.add_column("Name")
    table.add_column("Type", style="yellow")
    table.add_column("Folder", style="dim")
    for f in view.custom_fields:
        table.add_row(f.field_key, f.name, f.data_type, folder_names.get(f.parent_id, "-"))
    console.print(table)


if __name__ == "__main__":
    app()
