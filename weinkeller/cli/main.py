"""Weinkeller CLI using Typer."""

import json
import logging
import os
import shutil
import sqlite3
from datetime import datetime
from pathlib import Path

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.table import Table

from weinkeller import __version__
from weinkeller.logging_config import configure_logging

# Load .env file from current directory or project root
_env_paths = [
    Path.cwd() / ".env",
    Path(__file__).parent.parent.parent / ".env",
]
for _env_path in _env_paths:
    if _env_path.exists():
        load_dotenv(_env_path)
        break

console = Console()

app = typer.Typer(
    name="weinkeller",
    help="Weinkeller - wine cellar inventory manager",
    add_completion=False,
)

DbOption = typer.Option(
    None,
    "--db",
    "-d",
    help="SQLite database file (default: DB_PATH or ./run/database/wine_inventory.db)",
)


def _is_truthy(value: str | None) -> bool:
    return (value or "").strip().lower() in ("1", "true", "yes", "on")


def _open_database(db_path: Path | None):
    """Open the database and make sure the schema exists."""
    from weinkeller.db.engine import Database

    database = Database(db_path).open()
    database.init_schema()
    return database


@app.callback()
def main() -> None:
    """Configure logging for every command."""
    configure_logging()


@app.command()
def run(
    host: str = typer.Option("127.0.0.1", "--host", "-h", help="Host to bind to"),
    port: int = typer.Option(8000, "--port", "-p", help="Port to bind to"),
    reload: bool = typer.Option(
        False, "--reload", "-r", help="Enable auto-reload for development"
    ),
) -> None:
    """Start the Weinkeller API server.

    With DB_INIT_ONLY=true the schema is initialized and the command exits
    without serving.
    """
    if _is_truthy(os.environ.get("DB_INIT_ONLY")):
        typer.echo("DB_INIT_ONLY set: initializing database and exiting")
        _open_database(None).close()
        typer.echo("Database initialized successfully!")
        return

    import uvicorn

    typer.echo(f"Starting Weinkeller on http://{host}:{port}")
    typer.echo(f"API docs at http://{host}:{port}/api-docs")
    typer.echo("Press Ctrl+C to stop the server")
    typer.echo("")

    uvicorn.run(
        "weinkeller.web.app:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
    )


@app.command()
def init_db(db_path: Path = DbOption) -> None:
    """Initialize the database (create tables, seed default tags)."""
    typer.echo("Initializing database...")
    database = _open_database(db_path)
    typer.echo(f"  Database: {database.path}")
    database.close()
    typer.echo("Database initialized successfully!")


@app.command()
def stock(db_path: Path = DbOption) -> None:
    """Show the current stock of every wine."""
    from weinkeller.services.inventory_service import InventoryService

    database = _open_database(db_path)
    try:
        with database.session() as session:
            items = InventoryService(session).get_current_stock()
    finally:
        database.close()

    if not items:
        console.print("[yellow]The cellar is empty.[/yellow]")
        return

    table = Table(title="Current Stock")
    table.add_column("ID", justify="right", style="cyan")
    table.add_column("Wine")
    table.add_column("Year", justify="right")
    table.add_column("Producer")
    table.add_column("Bottles", justify="right", style="green")
    for item in items:
        table.add_row(
            str(item.wine_id),
            item.wine_name,
            str(item.year or ""),
            item.producer_name or "",
            str(item.inventory),
        )
    console.print(table)
    console.print(f"Total bottles: {sum(i.inventory for i in items)}")


@app.command("export")
def export_json(
    output: Path = typer.Option(
        Path("wine_inventory_export.json"), "--output", "-o", help="File to write"
    ),
    db_path: Path = DbOption,
) -> None:
    """Export wines, stock, producers and tags as JSON."""
    from weinkeller.services.export_service import ExportService

    database = _open_database(db_path)
    try:
        with database.session() as session:
            content = ExportService(session).export_json(indent=2)
    finally:
        database.close()

    output.write_text(content, encoding="utf-8")
    typer.echo(f"Export written to {output}")


@app.command("import")
def import_json(
    input_file: Path = typer.Argument(..., help="JSON export file to import"),
    db_path: Path = DbOption,
) -> None:
    """Import a JSON export; failing records are reported and skipped."""
    from weinkeller.services.export_service import ExportService

    if not input_file.exists():
        typer.echo(f"Error: File not found: {input_file}", err=True)
        raise typer.Exit(1)
    try:
        data = json.loads(input_file.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        typer.echo(f"Error: Invalid JSON in {input_file}: {e}", err=True)
        raise typer.Exit(1) from None

    database = _open_database(db_path)
    try:
        with database.session() as session:
            result = ExportService(session).import_all(data)
    finally:
        database.close()

    table = Table(title="Import Summary")
    table.add_column("Entity")
    table.add_column("Created", justify="right", style="green")
    table.add_column("Updated", justify="right", style="cyan")
    for entity in ("tags", "producers", "wines", "inventory"):
        table.add_row(
            entity,
            str(getattr(result.created, entity)),
            str(getattr(result.updated, entity)),
        )
    console.print(table)

    if result.errors:
        console.print(f"[yellow]{len(result.errors)} record(s) failed:[/yellow]")
        for message in result.errors:
            console.print(f"  • {message}")
    if not result.success:
        raise typer.Exit(1)


@app.command()
def version() -> None:
    """Show the Weinkeller version."""
    typer.echo(f"Weinkeller v{__version__}")


@app.command()
def check_config() -> None:
    """Check the current configuration status."""
    from weinkeller.db.engine import get_database_path
    from weinkeller.logging_config import get_environment, get_log_level
    from weinkeller.web.app import get_frontend_dir

    typer.echo("Weinkeller Configuration")
    typer.echo("=" * 40)

    env_found = False
    for _env_path in _env_paths:
        if _env_path.exists():
            typer.echo(f"  .env file: {_env_path}")
            env_found = True
            break
    if not env_found:
        typer.echo("  .env file: Not found")

    typer.echo(f"  Environment: {get_environment()}")
    typer.echo(f"  Log level: {logging.getLevelName(get_log_level())}")
    typer.echo(f"  Database: {get_database_path()}")
    frontend_dir = get_frontend_dir()
    status = "found" if frontend_dir.is_dir() else "not found, API only"
    typer.echo(f"  Frontend: {frontend_dir} ({status})")


def _is_valid_sqlite(path: Path) -> bool:
    """Check if a file is a valid SQLite database."""
    if not path.exists():
        return False
    try:
        conn = sqlite3.connect(str(path))
        try:
            conn.execute("SELECT name FROM sqlite_master WHERE type='table' LIMIT 1")
        finally:
            conn.close()
        return True
    except sqlite3.DatabaseError:
        return False


@app.command()
def backup(
    output_dir: Path = typer.Option(
        None,
        "--output-dir",
        "-o",
        help="Directory to save backup (default: same directory as database)",
    ),
    db_path: Path = DbOption,
) -> None:
    """Create a timestamped copy of the database file."""
    from weinkeller.db.engine import get_database_path

    db_file = get_database_path(db_path)
    if not db_file.exists():
        typer.echo(f"Error: Database not found at {db_file}", err=True)
        raise typer.Exit(1)

    output_dir = Path(output_dir) if output_dir else db_file.parent
    output_dir.mkdir(parents=True, exist_ok=True)

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    backup_path = output_dir / f"weinkeller_backup_{timestamp}.db"

    typer.echo("Creating backup...")
    shutil.copy2(db_file, backup_path)
    typer.echo(f"  Backup created: {backup_path}")
    typer.echo(f"  Size: {backup_path.stat().st_size / 1024:.1f} KB")


@app.command()
def restore(
    backup_path: Path = typer.Argument(..., help="Path to the backup file to restore"),
    force: bool = typer.Option(False, "--force", "-f", help="Skip confirmation prompt"),
    db_path: Path = DbOption,
) -> None:
    """Replace the database with a backup file."""
    from weinkeller.db.engine import get_database_path

    if not backup_path.exists():
        typer.echo(f"Error: Backup file not found: {backup_path}", err=True)
        raise typer.Exit(1)
    if not _is_valid_sqlite(backup_path):
        typer.echo(f"Error: Invalid SQLite database: {backup_path}", err=True)
        raise typer.Exit(1)

    db_file = get_database_path(db_path)
    typer.echo(f"Backup file: {backup_path}")
    typer.echo(f"Target database: {db_file}")

    if db_file.exists():
        typer.echo("WARNING: This will overwrite your current database!")
        if not force and not typer.confirm("Do you want to proceed?"):
            typer.echo("Restore cancelled.")
            raise typer.Exit(0)
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        safety_backup = db_file.parent / f"weinkeller_pre_restore_{timestamp}.db"
        shutil.copy2(db_file, safety_backup)
        typer.echo(f"Safety backup created: {safety_backup}")
    else:
        db_file.parent.mkdir(parents=True, exist_ok=True)

    shutil.copy2(backup_path, db_file)
    typer.echo("Database restored successfully!")
    typer.echo("Note: Restart the server if it's running.")


if __name__ == "__main__":
    app()
