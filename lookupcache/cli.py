"""lookupcache CLI - administrative commands over the lookup registry.

Commands:
- init: Create declared lookup tables that do not exist yet
- tables: Show declared lookup tables
- id-for: Resolve (or create) the id for a name
- name-for: Resolve the name for an id
- list: Show every entry of a lookup table
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import TypeVar

import structlog
import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table
from sqlalchemy.exc import SQLAlchemyError

from lookupcache.config import get_config
from lookupcache.core.logging import configure_logging
from lookupcache.db.connection import create_engine, init_db
from lookupcache.exceptions import LookupCacheError
from lookupcache.registry import LookupRegistry
from lookupcache.tables import load_tables

app = typer.Typer(
    name="lookupcache",
    help="lookupcache - name/id intern cache for lookup tables",
    no_args_is_help=True,
)

console = Console()
logger = structlog.get_logger()

T = TypeVar("T")


@app.callback()
def main() -> None:
    """Configure logging before any command runs."""
    try:
        config = get_config()
    except KeyError as e:
        console.print(f"[bold red]✗[/bold red] {escape(e.args[0])}")
        raise typer.Exit(code=1)
    configure_logging(config.log_level, json_logs=config.json_logs)


def _run_with_registry(work: Callable[[LookupRegistry], Awaitable[T]]) -> T:
    """Build a registry from config, run ``work`` against it, and close it."""

    async def _run() -> T:
        registry = LookupRegistry.from_config(get_config())
        try:
            if get_config().cache.preload:
                loaded = await registry.preload_all()
                logger.info("lookup_caches_preloaded", entries=loaded)
            return await work(registry)
        finally:
            for stats in registry.stats():
                logger.debug("lookup_cache_stats", **stats.model_dump())
            await registry.close()

    try:
        return asyncio.run(_run())
    except (LookupCacheError, KeyError) as e:
        message = e.args[0] if isinstance(e, KeyError) and e.args else str(e)
        console.print(f"[bold red]✗[/bold red] {escape(message)}")
        raise typer.Exit(code=1)
    except (SQLAlchemyError, OSError) as e:
        console.print(f"[bold red]✗ Database error:[/bold red] {escape(str(e))}")
        raise typer.Exit(code=1)


@app.command()
def init():
    """Create declared lookup tables that do not exist yet."""
    config = get_config()
    console.print(f"[bold]Initializing lookup tables:[/bold] {escape(config.db.url)}")

    try:
        tables = load_tables(config.tables_config_path)
    except LookupCacheError as e:
        console.print(f"[bold red]✗[/bold red] {escape(str(e))}")
        raise typer.Exit(code=1)

    async def _init():
        engine = create_engine(config.db)
        try:
            await init_db(engine, tables)
        finally:
            await engine.dispose()

    try:
        asyncio.run(_init())
    except LookupCacheError as e:
        console.print(f"[bold red]✗[/bold red] {escape(str(e))}")
        raise typer.Exit(code=1)
    except (SQLAlchemyError, OSError) as e:
        console.print(f"[bold red]✗ Database error:[/bold red] {escape(str(e))}")
        raise typer.Exit(code=1)

    logger.info("lookup_tables_initialized", tables=[t.name for t in tables])
    for table in tables:
        console.print(f"  [green]✓[/green] {table.name}")
    console.print("[bold green]✓[/bold green] Lookup tables ready")


@app.command(name="tables")
def tables_cmd():
    """Show declared lookup tables."""
    try:
        tables = load_tables(get_config().tables_config_path)
    except LookupCacheError as e:
        console.print(f"[bold red]✗[/bold red] {escape(str(e))}")
        raise typer.Exit(code=1)

    output = Table(title="Lookup tables")
    output.add_column("Table", style="cyan")
    output.add_column("Id column")
    output.add_column("Name column")
    output.add_column("Max length", justify="right")
    for table in tables:
        output.add_row(table.name, table.id_column, table.name_column, str(table.name_max_length))
    console.print(output)


@app.command(name="id-for")
def id_for_cmd(
    table: str = typer.Argument(..., help="Lookup table name"),
    name: str = typer.Argument(..., help="Entry name (created if missing)"),
):
    """Print the id for NAME, creating the entry if it does not exist."""

    async def _id_for(registry: LookupRegistry) -> int:
        return await registry.cache(table).id_for(name)

    entry_id = _run_with_registry(_id_for)
    console.print(entry_id)


@app.command(name="name-for")
def name_for_cmd(
    table: str = typer.Argument(..., help="Lookup table name"),
    entry_id: int = typer.Argument(..., help="Entry id"),
):
    """Print the name stored under ENTRY_ID."""

    async def _name_for(registry: LookupRegistry) -> str:
        return await registry.cache(table).name_for(entry_id)

    name = _run_with_registry(_name_for)
    console.print(name, markup=False, highlight=False)


@app.command(name="list")
def list_cmd(
    table: str = typer.Argument(..., help="Lookup table name"),
):
    """Show every entry of TABLE."""

    async def _list(registry: LookupRegistry):
        cache = registry.cache(table)
        return await registry.store.all_entries(cache.table)

    entries = _run_with_registry(_list)
    if not entries:
        console.print(f"[yellow]No entries in {table}[/yellow]")
        return

    output = Table(title=table)
    output.add_column("Id", justify="right", style="cyan")
    output.add_column("Name")
    for entry in entries:
        output.add_row(str(entry.id), entry.name)
    console.print(output)


if __name__ == "__main__":
    app()
