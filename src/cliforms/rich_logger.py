"""Rich-based console messages and summaries for form runs.

Status lines go to stderr so they never mix with JSON written to stdout.
"""

from __future__ import annotations

import json
from typing import Any, Optional

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text
from rich.tree import Tree

from .keys import KEY_HELP
from .results import FormResult

# Global console instance for logging
console = Console(stderr=True)


def _safe_json_format(data: Any, max_length: int = 2000) -> str:
    """Format data as JSON with truncation."""
    json_str = json.dumps(data, indent=2, default=str, ensure_ascii=False)
    if len(json_str) > max_length:
        json_str = json_str[:max_length] + "\n... (truncated)"
    return json_str


def _print_with_details(text: Text, border_style: str, details: dict[str, Any], title: Optional[str] = None) -> None:
    console.print(text)
    if details:
        console.print(
            Panel(
                _safe_json_format(details, max_length=500),
                border_style=border_style,
                box=box.ROUNDED,
                title=title,
            )
        )


def log_info(message: str, **kwargs) -> None:
    """Log an informational message with Rich formatting."""
    _print_with_details(Text(f"INFO  {message}", style="bold cyan"), "cyan", kwargs)


def log_warning(message: str, **kwargs) -> None:
    """Log a warning message with Rich formatting."""
    _print_with_details(Text(f"⚠  {message}", style="bold yellow"), "yellow", kwargs)


def log_error(message: str, error: Optional[Exception] = None, **kwargs) -> None:
    """Log an error message with Rich formatting."""
    error_data = kwargs.copy()
    if error:
        error_data["error_type"] = type(error).__name__
        error_data["error_message"] = str(error)
    _print_with_details(Text(f"✗ {message}", style="bold red"), "red", error_data, "[bold red]Error Details[/bold red]")


def log_success(message: str, **kwargs) -> None:
    """Log a success message with Rich formatting."""
    _print_with_details(Text(f"✓ {message}", style="bold green"), "green", kwargs)


def create_result_panel(title: str, result: FormResult, skipped: int = 0) -> Panel:
    """Summarize a completed form as a tree of answers."""
    tree = Tree(f"📝 [bold bright_white]{escape(title)}[/bold bright_white]")
    for answer in result:
        branch = tree.add(f"[bold cyan]{escape(answer.id)}[/bold cyan] [dim]({answer.kind})[/dim]")  # ids are user data
        value = answer.value
        if isinstance(value, list):
            if not value:
                branch.add("[dim]nothing selected[/dim]")
            for item in value:
                branch.add(f"[white]{escape(item)}[/white]")
        else:
            branch.add(f"[white]{escape(str(value))}[/white]")
    if skipped:
        tree.add(f"[yellow]{skipped} question(s) skipped[/yellow]")

    return Panel(
        tree,
        title="[bold white on blue]Form Result[/bold white on blue]",
        border_style="bright_blue",
        box=box.DOUBLE,
        padding=(1, 2),
    )


def create_key_table() -> Table:
    """Table of the navigation keys understood by form pages."""
    table = Table(
        box=box.HEAVY_HEAD,
        border_style="bright_blue",
        header_style="bold bright_white on bright_blue",
        title="[bold bright_yellow]Form Keys[/bold bright_yellow]",
    )
    table.add_column("Key", style="bold cyan")
    table.add_column("Action", style="white")
    for keys, action in KEY_HELP:
        table.add_row(keys, action)
    return table
