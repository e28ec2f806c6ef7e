"""Rich console formatting utilities.

Provides consistent formatting for CLI output using Rich.
"""

from __future__ import annotations

import sys
from typing import TYPE_CHECKING

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from droidctl.core.theme import get_theme

if TYPE_CHECKING:
    from droidctl.models.action import ActionRecord
    from droidctl.models.package import Package


def _detect_color_system() -> str | None:
    """Return "truecolor" for interactive terminals, None to let Rich decide."""
    if sys.stdout.isatty():
        return "truecolor"
    return None


# Shared console instances (theme loaded once at import)
console = Console(theme=get_theme(), color_system=_detect_color_system())
err_console = Console(theme=get_theme(), stderr=True, color_system=_detect_color_system())


def create_package_table(title: str = "Packages") -> Table:
    """Create a pre-configured table for displaying packages."""
    table = Table(
        title=title,
        show_header=True,
        header_style="bold_header",
        border_style="border",
        row_styles=["", "on grey7"],
    )
    table.add_column("Package", no_wrap=True)
    table.add_column("State")
    table.add_column("Tier")
    table.add_column("Sys", justify="center", width=3)
    table.add_column("Description", style="text", overflow="ellipsis")
    return table


def format_package_row(pkg: Package) -> tuple[str, str, str, str, str]:
    """Format a package as a table row with Rich markup."""
    state = pkg.state.label
    tier = pkg.tier.value
    description = pkg.description.splitlines()[0] if pkg.description else "-"
    return (
        f"[text]{pkg.identifier}[/]",
        f"[state.{state}]{state}[/]",
        f"[tier.{tier}]{tier}[/]",
        "●" if pkg.system else "",
        escape(description),
    )


def create_record_table(title: str = "Journal") -> Table:
    """Create a pre-configured table for displaying action records."""
    table = Table(
        title=title,
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("ID", style="muted", no_wrap=True)
    table.add_column("Date", style="muted", no_wrap=True)
    table.add_column("Profile", no_wrap=True)
    table.add_column("Action")
    table.add_column("Package", no_wrap=True)
    table.add_column("Outcome")
    table.add_column("Retries", justify="right")
    return table


def format_outcome(record: ActionRecord) -> str:
    """Format a record outcome with color markup."""
    styles = {"succeeded": "success", "failed": "error", "cancelled": "warning"}
    outcome = record.outcome.value
    return f"[{styles.get(outcome, 'text')}]{outcome}[/]"


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[info]{escape(message)}[/]")


def print_warning(message: str) -> None:
    """Print a warning message."""
    err_console.print(f"[warning]Warning:[/] {escape(message)}")


def print_error(message: str) -> None:
    """Print an error message."""
    err_console.print(f"[error]Error:[/] {escape(message)}")


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[success]{escape(message)}[/]")
