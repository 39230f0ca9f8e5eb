"""uplift CLI — inspect and migrate a store.

`uplift status` shows where the store stands, `uplift migrate` runs the
direct phases (store bootstrap) followed by the drain of async phases.
"""

from pathlib import Path
from typing import Optional

import aiosqlite
import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from uplift.exceptions import MigrationLockedError, StoreInitializationError
from uplift.storage.schema import get_store_version, table_exists
from uplift.types import UpdateOutcome
from uplift.updates.observer import CompositeObserver, HistoryObserver, LoggingObserver

console = Console()

app = typer.Typer(
    name="uplift",
    help="uplift -- two-phase schema and system updates for SQLite stores.",
    no_args_is_help=True,
)

_DB_OPTION = typer.Option(None, "--db", help="Store path (default: UPLIFT_DB_PATH)")
_PACKAGE_OPTION = typer.Option(
    None, "--package", "-p", help="Package holding u_NNN_*.py update modules"
)


def _context(db: Optional[Path], package: Optional[str]):
    from uplift.cli.context import UpliftContext, configure_logging
    from uplift.config import settings

    configure_logging(settings.log_level)
    return UpliftContext(db_path=db, updates_package=package)


@app.command("status")
def status(
    db: Optional[Path] = _DB_OPTION,
    package: Optional[str] = _PACKAGE_OPTION,
):
    """Show the stored version and the updates still to apply."""
    from uplift.cli.context import run_async

    ctx = _context(db, package)

    async def _version() -> int:
        if not ctx.db_path.exists():
            return 0
        async with aiosqlite.connect(str(ctx.db_path)) as conn:
            return await get_store_version(conn)

    current = run_async(_version())
    pending = ctx.catalog.applicable(current)

    console.print(Panel(
        f"Store:      {ctx.db_path}\n"
        f"Version:    {current}\n"
        f"Latest:     {ctx.catalog.latest_version}\n"
        f"Pending:    {len(pending)} update(s)",
        title="Store Status",
        border_style="cyan",
    ))

    if pending:
        table = Table(title="Pending updates")
        table.add_column("Version", style="cyan", justify="right")
        table.add_column("Description", style="white")
        for unit in pending:
            table.add_row(str(unit.version), unit.description)
        console.print(table)


@app.command("migrate")
def migrate(
    db: Optional[Path] = _DB_OPTION,
    package: Optional[str] = _PACKAGE_OPTION,
    skip_async: bool = typer.Option(
        False, "--skip-async", help="Only run direct phases, leave async phases undrained"
    ),
):
    """Bring the store up to date, then run the deferred async phases."""
    from uplift.cli.context import run_async

    ctx = _context(db, package)

    async def _migrate() -> tuple[int, int, list[UpdateOutcome]]:
        bootstrap = ctx.bootstrap()
        conn = await bootstrap.open()
        try:
            outcomes: list[UpdateOutcome] = []
            if ctx.update_system.has_updates() and not skip_async:
                observer = CompositeObserver(LoggingObserver(), HistoryObserver(conn))
                outcomes = await ctx.update_system.update(observer)
            return bootstrap.old_version, await get_store_version(conn), outcomes
        finally:
            await bootstrap.close()

    try:
        with console.status("[bold cyan]updating system...", spinner="dots"):
            old_version, new_version, outcomes = run_async(_migrate())
    except MigrationLockedError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)
    except StoreInitializationError as e:
        console.print(f"[red]Store update failed, store not usable:[/red] {e}")
        raise typer.Exit(1)

    if old_version == new_version:
        console.print(f"[green]Store is up to date at version {new_version}.[/green]")
    else:
        console.print(f"[green]Store updated: version {old_version} -> {new_version}[/green]")

    if outcomes:
        _print_outcomes(outcomes)
        failed = [o for o in outcomes if not o.success]
        if failed:
            console.print(f"[yellow]{len(failed)} async phase(s) failed (not retried).[/yellow]")


@app.command("history")
def history(
    db: Optional[Path] = _DB_OPTION,
    limit: int = typer.Option(20, "--limit", "-n", help="Max rows"),
):
    """Show recorded async phase outcomes."""
    from uplift.cli.context import run_async
    from uplift.config import settings

    db_path = Path(db or settings.store_path)

    async def _rows():
        if not db_path.exists():
            return []
        async with aiosqlite.connect(str(db_path)) as conn:
            if not await table_exists(conn, "update_history"):
                return []
            cursor = await conn.execute(
                "SELECT version, description, success, finished_at "
                "FROM update_history ORDER BY id DESC LIMIT ?",
                (limit,),
            )
            return await cursor.fetchall()

    rows = run_async(_rows())
    if not rows:
        console.print("[dim]No update history yet.[/dim]")
        return

    table = Table(title="Update history")
    table.add_column("Finished", style="dim", no_wrap=True, max_width=19)
    table.add_column("Version", style="cyan", justify="right")
    table.add_column("Description", style="white")
    table.add_column("Result")
    for version, description, success, finished_at in rows:
        table.add_row(
            finished_at[:19],
            "" if version is None else str(version),
            description,
            "[green]ok[/green]" if success else "[red]failed[/red]",
        )
    console.print(table)


@app.command("version")
def version_cmd():
    """Show uplift version."""
    from uplift import __version__
    console.print(f"uplift v{__version__}")


def _print_outcomes(outcomes: list[UpdateOutcome]) -> None:
    table = Table(title="Async phases")
    table.add_column("Version", style="cyan", justify="right")
    table.add_column("Description", style="white")
    table.add_column("Result")
    table.add_column("Error", style="dim")
    for o in outcomes:
        table.add_row(
            "" if o.version is None else str(o.version),
            o.description,
            "[green]ok[/green]" if o.success else "[red]failed[/red]",
            o.error,
        )
    console.print(table)
