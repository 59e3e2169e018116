"""
chatlateral CLI - Rich Output Helpers

Utility functions for consistent command-line output using Rich.

Functions:
    print_table    - Print a formatted table
    print_json     - Print formatted JSON
    print_error    - Print error message
    print_success  - Print success message
    print_warning  - Print warning message
"""

from __future__ import annotations

import json
import logging
from typing import Optional

from rich.console import Console
from rich.json import JSON
from rich.logging import RichHandler
from rich.table import Table

# Create console instances
console = Console()
err_console = Console(stderr=True)


def configure_logging(level: str | int = "INFO") -> None:
    """Route log records through Rich on stderr."""
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, rich_tracebacks=True)],
        force=True,
    )


def print_table(
    title: str,
    columns: list[str],
    rows: list[list[str]],
    styles: Optional[list[str]] = None,
    show_lines: bool = False,
) -> None:
    """
    Print a rich table.

    Args:
        title: Table title
        columns: Column headers
        rows: Table rows (list of lists)
        styles: Optional column styles
        show_lines: Whether to show row separator lines
    """
    table = Table(title=title, show_lines=show_lines)

    for i, col in enumerate(columns):
        style = styles[i] if styles and i < len(styles) else None
        table.add_column(col, style=style)

    for row in rows:
        # Ensure row has correct number of columns
        padded_row = list(row) + [""] * (len(columns) - len(row))
        table.add_row(*padded_row[:len(columns)])

    console.print(table)


def print_json(data: dict | list, indent: int = 2) -> None:
    """Print highlighted JSON."""
    console.print(JSON(json.dumps(data, indent=indent, ensure_ascii=False, default=str)))


def print_error(message: str, hint: Optional[str] = None) -> None:
    err_console.print(f"[bold red]Error:[/bold red] {message}")
    if hint:
        err_console.print(f"[yellow]Hint:[/yellow] {hint}")


def print_success(message: str) -> None:
    console.print(f"[bold green]Success:[/bold green] {message}")


def print_warning(message: str) -> None:
    console.print(f"[bold yellow]Warning:[/bold yellow] {message}")
