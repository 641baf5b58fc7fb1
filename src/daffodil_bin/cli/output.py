"""Rich console output utilities for daffodil-bin.

Colored success/error/warning messages that respect the NO_COLOR
environment variable and the --no-color flag.
"""

from __future__ import annotations

import os
from typing import Any

from rich.console import Console
from rich.table import Table

# Rich respects NO_COLOR itself, the flag is handled by set_no_color()
_force_no_color = os.environ.get("NO_COLOR") is not None


def create_console(no_color: bool = False) -> Console:
    """Create a Rich Console instance with appropriate color settings.

    Args:
        no_color: If True, disable colored output. Also respects NO_COLOR env var.

    Returns:
        Configured Console instance.
    """
    force_terminal = None
    if no_color or _force_no_color:
        force_terminal = False
    return Console(force_terminal=force_terminal, no_color=no_color or _force_no_color)


console = create_console()


def success(message: str, **kwargs: Any) -> None:
    """Print a success message with green checkmark.

    Example:
        >>> success("Saved target/dfdl-png-1.0.0-daffodil360.bin")
        ✓ Saved target/dfdl-png-1.0.0-daffodil360.bin
    """
    console.print(f"[green]✓[/green] {message}", **kwargs)


def error(message: str, **kwargs: Any) -> None:
    """Print an error message with red X."""
    console.print(f"[red]✗[/red] {message}", **kwargs)


def warning(message: str, **kwargs: Any) -> None:
    """Print a warning message with yellow triangle."""
    console.print(f"[yellow]⚠[/yellow] {message}", **kwargs)


def info(message: str, **kwargs: Any) -> None:
    console.print(message, **kwargs, highlight=False)


def print_table(title: str, columns: list[str], rows: list[list[str]]) -> None:
    """Print rows as a Rich table.

    Args:
        title: Table title.
        columns: Column headers.
        rows: Cell values, one list per row.
    """
    table = Table(title=title)
    for column in columns:
        table.add_column(column, overflow="fold")
    for row in rows:
        table.add_row(*row)
    console.print(table)


def set_no_color(no_color: bool) -> None:
    """Update the global console to enable/disable colors."""
    global console
    console = create_console(no_color=no_color)
