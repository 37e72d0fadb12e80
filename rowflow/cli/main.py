"""RowFlow CLI.

Thin commands over the control-flow tasks and a CSV to table dataflow. Every
command takes its connection either from ``--url`` or from a named connection
of a YAML profile (``--profile`` plus ``--connection``).
"""

from typing import Optional

import typer

from rowflow.cli.display import (
    console,
    display_error,
    display_info_panel,
    display_key_values,
    display_success,
    display_warning,
)
from rowflow.config import load_profile, load_table_definition
from rowflow.connections.manager import DbConnectionManager, connection_manager_for
from rowflow.dataflow.destinations import DEFAULT_BATCH_SIZE, DbDestination
from rowflow.dataflow.sources import CsvSource
from rowflow.logging import configure_logging, get_logger
from rowflow.tasks.create_table import CreateTableTask
from rowflow.tasks.drop import DropTableTask
from rowflow.tasks.table_tasks import RowCountTask

logger = get_logger(__name__)

app = typer.Typer(
    name="rowflow",
    help="RowFlow - move rows between files and relational databases",
    add_completion=False,
)

URL_OPTION = typer.Option(None, "--url", "-u", help="SQLAlchemy database URL")
PROFILE_OPTION = typer.Option(None, "--profile", "-p", help="Path to a YAML profile")
CONNECTION_OPTION = typer.Option(
    None, "--connection", "-c", help="Connection name inside the profile"
)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose output"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Only show warnings and errors"),
) -> None:
    """RowFlow - move rows between files and relational databases."""
    configure_logging(verbose=verbose, quiet=quiet)


def _resolve_manager(
    url: Optional[str], profile: Optional[str], connection: Optional[str]
) -> DbConnectionManager:
    """Build a connection manager from the command line options."""
    if url:
        return connection_manager_for(url)
    if profile and connection:
        return load_profile(profile).get_connection(connection).create_manager()
    raise typer.BadParameter("Pass either --url or both --profile and --connection")


def _fail(error: Exception, operation: str) -> None:
    display_error(f"{operation} failed: {error}")
    logger.error("%s failed: %s", operation, error)
    raise typer.Exit(1)


@app.command("create-table")
def create_table(
    definition: str = typer.Argument(..., help="YAML file with the table definition"),
    fail_if_exists: bool = typer.Option(
        False, "--fail-if-exists", help="Fail when the table already exists"
    ),
    url: Optional[str] = URL_OPTION,
    profile: Optional[str] = PROFILE_OPTION,
    connection: Optional[str] = CONNECTION_OPTION,
) -> None:
    """Create a table from a YAML definition."""
    try:
        table = load_table_definition(definition)
        with _resolve_manager(url, profile, connection) as cm:
            created = CreateTableTask(cm, table, throw_error_if_exists=fail_if_exists).create()
    except typer.BadParameter:
        raise
    except Exception as e:
        _fail(e, "Create table")
    if created:
        display_success(f"Table {table.name} created")
    else:
        display_warning(f"Table {table.name} already exists, left unchanged")


@app.command("drop-table")
def drop_table(
    table: str = typer.Argument(..., help="Table to drop"),
    if_exists: bool = typer.Option(False, "--if-exists", help="Ignore a missing table"),
    url: Optional[str] = URL_OPTION,
    profile: Optional[str] = PROFILE_OPTION,
    connection: Optional[str] = CONNECTION_OPTION,
) -> None:
    """Drop a table."""
    try:
        with _resolve_manager(url, profile, connection) as cm:
            task = DropTableTask(cm, table)
            if if_exists:
                dropped = task.drop_if_exists()
            else:
                task.drop()
                dropped = True
    except typer.BadParameter:
        raise
    except Exception as e:
        _fail(e, "Drop table")
    if dropped:
        display_success(f"Table {table} dropped")
    else:
        display_warning(f"Table {table} does not exist")


@app.command("load-csv")
def load_csv(
    csv_file: str = typer.Argument(..., help="CSV file with a header row"),
    table: str = typer.Argument(..., help="Destination table"),
    batch_size: int = typer.Option(DEFAULT_BATCH_SIZE, "--batch-size", "-b", min=1),
    delimiter: str = typer.Option(",", "--delimiter", "-d"),
    url: Optional[str] = URL_OPTION,
    profile: Optional[str] = PROFILE_OPTION,
    connection: Optional[str] = CONNECTION_OPTION,
) -> None:
    """Load a CSV file into an existing table, matching columns by name."""
    try:
        cm = _resolve_manager(url, profile, connection)
        source = CsvSource(csv_file, delimiter=delimiter)
        destination = DbDestination(cm, table, batch_size=batch_size)
        source.link_to(destination)
        source.execute()
        destination.wait()
    except typer.BadParameter:
        raise
    except Exception as e:
        _fail(e, "Load CSV")
    display_info_panel(
        "CSV loaded",
        f"File: {csv_file}\nTable: {table}\nRows: {destination.progress_count}\n"
        f"Batches: {destination.flush_count}",
        "green",
    )


@app.command("row-count")
def row_count(
    table: str = typer.Argument(..., help="Table to count"),
    where: Optional[str] = typer.Option(None, "--where", "-w", help="WHERE condition"),
    url: Optional[str] = URL_OPTION,
    profile: Optional[str] = PROFILE_OPTION,
    connection: Optional[str] = CONNECTION_OPTION,
) -> None:
    """Print the number of rows of a table."""
    try:
        with _resolve_manager(url, profile, connection) as cm:
            count = RowCountTask(cm, table, condition=where, disable_logging=True).count()
    except typer.BadParameter:
        raise
    except Exception as e:
        _fail(e, "Row count")
    console.print(f"{table}: [cyan]{count}[/cyan] rows")


@app.command("test-connection")
def test_connection(
    url: Optional[str] = URL_OPTION,
    profile: Optional[str] = PROFILE_OPTION,
    connection: Optional[str] = CONNECTION_OPTION,
) -> None:
    """Open a connection and report the outcome."""
    try:
        with _resolve_manager(url, profile, connection) as cm:
            cm.open()
            details = {
                "Dialect": cm.dialect.name,
                "Database": cm.connection_string.database_name or "-",
                "Login attempts": str(cm.max_login_attempts),
            }
    except typer.BadParameter:
        raise
    except Exception as e:
        _fail(e, "Connection test")
    display_success("Connection successful")
    display_key_values(str(cm.connection_string), details)


if __name__ == "__main__":
    app()
