"""BIMSched CLI.

Commands:
- init: Initialize the document store schema
- ingest-rooms: Import room schedules (CSV/XLSX)
- create-schedules: Build the per-department and "All Departments" schedules
- list-schedules: Show the schedules in the document with their row counts
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from bimsched.config import get_config
from bimsched.core.logging import configure_logging
from bimsched.db.connection import get_session, init_db
from bimsched.host.sql import SqlDocument
from bimsched.ingestion.rooms import ingest_rooms
from bimsched.reporting.evaluate import evaluate_schedule
from bimsched.schedules.builder import ScheduleBuilder

app = typer.Typer(
    name="bimsched",
    help="BIMSched - department schedules for BIM room data",
    no_args_is_help=True,
)

console = Console()


@app.callback()
def main() -> None:
    """Configure logging before any command runs."""
    try:
        config = get_config()
    except KeyError as exc:
        console.print(f"[red]✗[/red] Configuration error: {exc.args[0]}")
        raise typer.Exit(code=1)
    configure_logging(config.log_level, config.log_format)


@app.command()
def init(
    drop: bool = typer.Option(False, "--drop", help="Drop existing tables"),
):
    """Initialize the document store schema."""
    config = get_config()
    console.print(f"[bold]Initializing database:[/bold] {config.db.url}")
    if drop:
        console.print("[yellow]Dropping existing tables...[/yellow]")
    init_db(drop=drop)
    console.print("[bold green]✓[/bold green] Database initialized")


@app.command(name="ingest-rooms")
def ingest_rooms_cmd(
    files: list[Path] = typer.Argument(..., help="Room schedule files (CSV/XLSX)"),
    category: str | None = typer.Option(None, "--category", help="Record category"),
):
    """Import room records from CSV or XLSX schedule exports."""
    category = category or get_config().schedules.record_category
    console.print(f"[bold]Ingesting rooms:[/bold] category={category}")

    total_success = 0
    total_errors: list[str] = []

    with get_session() as session:
        for file_path in files:
            console.print(f"  Processing: {file_path}")
            try:
                success_count, errors = ingest_rooms(session, file_path, category)
            except (FileNotFoundError, ValueError) as e:
                console.print(f"    [red]✗[/red] Failed: {e}")
                total_errors.append(str(e))
                continue

            total_success += success_count
            total_errors.extend(errors)
            console.print(f"    [green]✓[/green] {success_count} rooms imported")
            if errors:
                console.print(f"    [yellow]⚠[/yellow] {len(errors)} errors")
                for err in errors[:5]:  # Show first 5 errors
                    console.print(f"      {err}", style="dim")

    console.print(f"\n[bold green]✓[/bold green] Total: {total_success} rooms imported")
    if total_errors:
        console.print(f"[yellow]⚠[/yellow] {len(total_errors)} errors (see above)")


@app.command(name="create-schedules")
def create_schedules_cmd():
    """Create one schedule per department plus an "All Departments" rollup."""
    config = get_config()

    try:
        with get_session() as session:
            result = ScheduleBuilder(SqlDocument(session), config.schedules).run()
    except Exception as e:
        # Nothing was committed: report once and fail
        console.print(f"[red]✗[/red] No schedules created: {e}")
        raise typer.Exit(code=1)

    for warning in result.warnings:
        console.print(f"[yellow]⚠[/yellow] {warning}")
    console.print(f"[bold green]✓[/bold green] {result.message}")


@app.command(name="list-schedules")
def list_schedules_cmd(
    category: str | None = typer.Option(None, "--category", help="Record category"),
):
    """List schedules with their row counts and area totals."""
    category = category or get_config().schedules.record_category

    with get_session() as session:
        document = SqlDocument(session)
        records = document.fetch_records(category)
        schedules = document.load_schedules(category)

    if not schedules:
        console.print("[yellow]No schedules found[/yellow]")
        return

    table = Table(title=f"Schedules ({category})")
    table.add_column("Name", style="cyan")
    table.add_column("Itemized")
    table.add_column("Columns")
    table.add_column("Rows", justify="right")
    table.add_column("Total Area", justify="right")

    for definition in schedules:
        evaluated = evaluate_schedule(definition, records)
        total_area = (evaluated.grand_totals or {}).get("Area")
        table.add_row(
            definition.name,
            "yes" if definition.is_itemized else "no",
            ", ".join(evaluated.columns),
            str(len(evaluated)),
            f"{total_area:,.2f}" if total_area is not None else "-",
        )

    console.print(table)


if __name__ == "__main__":
    app()
