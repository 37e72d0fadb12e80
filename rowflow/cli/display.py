"""Rich output helpers for the RowFlow CLI."""

from typing import Dict

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

console = Console()


def display_success(message: str) -> None:
    console.print(f"✅ [bold green]{message}[/bold green]")


def display_warning(message: str) -> None:
    console.print(f"⚠️  [yellow]{message}[/yellow]")


def display_error(message: str) -> None:
    console.print(f"❌ [bold red]{message}[/bold red]")


def display_info_panel(title: str, content: str, style: str = "blue") -> None:
    console.print(Panel(content, title=title, border_style=style))


def display_key_values(title: str, values: Dict[str, str]) -> None:
    """Print a two-column property table."""
    table = Table(show_header=True, header_style="bold blue")
    table.add_column("Property", style="cyan")
    table.add_column("Value", style="white")
    for key, value in values.items():
        table.add_row(key, value)
    console.print(f"[bold blue]{title}[/bold blue]")
    console.print(table)
