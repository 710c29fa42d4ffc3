"""Rich console output utilities for the Volcano installer CLI."""

from pathlib import Path

from rich.console import Console
from rich.table import Table


console = Console()
error_console = Console(stderr=True)


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[green]✓[/green] {message}")


def print_error(message: str) -> None:
    """Print an error message to stderr."""
    error_console.print(f"[red]✗[/red] {message}")


def print_warning(message: str) -> None:
    """Print a warning message."""
    console.print(f"[yellow]![/yellow] {message}")


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[blue]→[/blue] {message}")


def print_packages(packages: dict[str, str | Path], title: str = "Volcano Packages") -> None:
    """Print a namespace -> path mapping as a table."""
    if not packages:
        print_info("No packages found.")
        return

    table = Table(title=title, show_header=True, header_style="bold")
    table.add_column("Namespace", style="cyan")
    table.add_column("Path")

    for namespace, path in packages.items():
        table.add_row(namespace, str(path))

    console.print(table)
    console.print(f"\n[dim]Total: {len(packages)} packages[/dim]")
