"""CLI entry-point: browse and administer Chroma collections over v1 or v2."""

import asyncio
import json
import logging
from typing import Any

import httpx
import typer
from rich.console import Console
from rich.table import Table

from chromadmin.config import get_settings
from chromadmin.errors import ChromAdminError
from chromadmin.schemas.models import ApiVersion, Auth, AuthType, Connection, Record
from chromadmin.store import CollectionStore, get_collection_store

logger = logging.getLogger(__name__)

app = typer.Typer(help="Chroma vector database admin")
console = Console()


class _State:
    connection: Connection
    api_version: ApiVersion
    store: CollectionStore


_state = _State()


@app.callback()
def main(
    url: str = typer.Option(None, "--url", help="Chroma endpoint (default from CHROMADMIN_URL)"),
    tenant: str = typer.Option(None, "--tenant", help="Tenant (default from CHROMADMIN_TENANT)"),
    database: str = typer.Option(None, "--database", help="Database (default from CHROMADMIN_DATABASE)"),
    api_version: str = typer.Option(None, "--api-version", help="API generation: v1 | v2"),
    token: str = typer.Option("", "--token", help="Bearer token"),
    username: str = typer.Option("", "--username", help="Basic auth username"),
    password: str = typer.Option("", "--password", help="Basic auth password"),
):
    """Connection options shared by every command."""
    settings = get_settings()
    if token:
        auth = Auth(auth_type=AuthType.TOKEN, token=token)
    elif username:
        auth = Auth(auth_type=AuthType.BASIC, username=username, password=password)
    else:
        auth = Auth()
    _state.connection = Connection(
        url=url or settings.chromadmin_url,
        tenant=tenant or settings.chromadmin_tenant,
        database=database or settings.chromadmin_database,
        auth=auth,
    )
    try:
        _state.api_version = ApiVersion((api_version or settings.chromadmin_api_version).lower())
    except ValueError:
        console.print(f"[red]Error: unknown API version: {api_version}[/red]")
        raise typer.Exit(1)
    _state.store = get_collection_store(settings)


def _run(coro) -> Any:
    """Run one store call; print access-layer and transport errors and exit 1."""
    try:
        return asyncio.run(coro)
    except (ChromAdminError, httpx.HTTPError) as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)
    except Exception as e:
        logger.debug("Unexpected failure", exc_info=True)
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)


def _parse_where(where: str | None) -> dict | None:
    if not where:
        return None
    try:
        return json.loads(where)
    except json.JSONDecodeError as e:
        console.print(f"[red]Error: --where is not valid JSON: {e}[/red]")
        raise typer.Exit(1)


def _print_records(records: list[Record], title: str) -> None:
    table = Table(title=title)
    table.add_column("id")
    table.add_column("document")
    table.add_column("metadata")
    show_distance = any(r.distance is not None for r in records)
    if show_distance:
        table.add_column("distance", justify="right")
    for r in records:
        row = [r.id, r.document or "", json.dumps(r.metadata) if r.metadata else ""]
        if show_distance:
            row.append(f"{r.distance:.4f}" if r.distance is not None else "")
        table.add_row(*row)
    console.print(table)


@app.command()
def collections():
    """List collections."""
    result = _run(_state.store.fetch_collections(_state.connection, _state.api_version))
    for c in result:
        console.print(c.name)


@app.command()
def records(
    name: str = typer.Argument(..., help="Collection name"),
    page: int = typer.Option(1, "--page", min=1, help="1-based page number"),
    where: str = typer.Option(None, "--where", help="Metadata filter as JSON"),
):
    """Show one page of records (documents and metadata)."""
    filt = _parse_where(where)

    async def _load():
        rows = await _state.store.fetch_records(_state.connection, name, page, filt, _state.api_version)
        total = await _state.store.count_records(_state.connection, name, filt, _state.api_version)
        return rows, total

    rows, total = _run(_load())
    _print_records(rows, f"{name} (page {page}, {total} records)")


@app.command()
def record(
    name: str = typer.Argument(..., help="Collection name"),
    record_id: str = typer.Argument(..., help="Record id"),
):
    """Show one record including its embedding, as JSON."""
    result = _run(_state.store.fetch_record_detail(_state.connection, name, record_id, _state.api_version))
    console.print_json(json.dumps(result.model_dump(exclude_unset=True)))


@app.command()
def count(
    name: str = typer.Argument(..., help="Collection name"),
    where: str = typer.Option(None, "--where", help="Metadata filter as JSON"),
):
    """Count records, optionally matching a filter."""
    filt = _parse_where(where)
    console.print(_run(_state.store.count_records(_state.connection, name, filt, _state.api_version)))


@app.command()
def query(
    name: str = typer.Argument(..., help="Collection name"),
    vector: str = typer.Option(None, "--vector", help="Query embedding, comma-separated floats"),
    record_id: str = typer.Option(None, "--id", help="Look up a record by exact id"),
):
    """Nearest neighbours of a vector, or an exact id lookup."""
    if (vector is None) == (record_id is None):
        console.print("[red]Error: pass exactly one of --vector or --id[/red]")
        raise typer.Exit(1)
    if vector is not None:
        try:
            embedding = [float(v) for v in vector.split(",") if v.strip()]
        except ValueError:
            console.print("[red]Error: --vector must be comma-separated numbers[/red]")
            raise typer.Exit(1)
        result = _run(_state.store.query_records(_state.connection, name, embedding, _state.api_version))
    else:
        result = _run(_state.store.query_records_by_id(_state.connection, name, record_id, _state.api_version))
    _print_records(result, f"{name} query")


@app.command("delete-record")
def delete_record(
    name: str = typer.Argument(..., help="Collection name"),
    record_id: str = typer.Argument(..., help="Record id"),
):
    """Delete one record."""
    _run(_state.store.delete_record(_state.connection, name, record_id, _state.api_version))
    console.print(f"[green]Deleted record {record_id} from {name}.[/green]")


@app.command("delete-collection")
def delete_collection(
    name: str = typer.Argument(..., help="Collection name"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
):
    """Delete a whole collection."""
    if not yes:
        typer.confirm(f"Delete collection '{name}'?", abort=True)
    _run(_state.store.delete_collection(_state.connection, name, _state.api_version))
    console.print(f"[green]Deleted collection {name}.[/green]")


@app.command()
def rename(
    old_name: str = typer.Argument(..., help="Current collection name"),
    new_name: str = typer.Argument(..., help="New collection name"),
):
    """Rename a collection by copying its records into a new one."""
    console.print(f"Copying '{old_name}' to '{new_name}'...")
    result = _run(_state.store.rename_collection(_state.connection, old_name, new_name, _state.api_version))
    console.print(f"[green]Renamed to {result.new_name}.[/green]")


if __name__ == "__main__":
    app()
