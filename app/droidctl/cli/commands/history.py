"""History command for viewing the undo journal.

This module provides the `droidctl history` command for viewing the
actions recorded by droidctl.
"""

import json
from datetime import datetime
from typing import Annotated

import typer

from droidctl.core.journal import UndoJournal
from droidctl.models.action import ActionRecord
from droidctl.utils.formatting import console, create_record_table, format_outcome, print_info

app = typer.Typer(
    name="history",
    help="View the journal of past actions.",
    invoke_without_command=True,
)


@app.callback(invoke_without_command=True)
def history(
    ctx: typer.Context,
    limit: Annotated[
        int,
        typer.Option(
            "--limit",
            "-n",
            help="Maximum number of records to show.",
        ),
    ] = 20,
    device: Annotated[
        str | None,
        typer.Option(
            "--device",
            "-d",
            help="Only show records for this device serial.",
        ),
    ] = None,
    package: Annotated[
        str | None,
        typer.Option(
            "--package",
            "-p",
            help="Only show records for this package.",
        ),
    ] = None,
    json_output: Annotated[
        bool,
        typer.Option(
            "--json",
            help="Output as JSON.",
        ),
    ] = False,
) -> None:
    """Show the journal of past actions, newest first.

    Examples:
        droidctl history                 # Show last 20 records
        droidctl history -n 50 -d ABC123
        droidctl history -p com.facebook.katana --json
    """
    if ctx.invoked_subcommand is not None:
        return

    records = UndoJournal().history()
    if device is not None:
        records = [r for r in records if r.request.device_serial == device]
    if package is not None:
        records = [r for r in records if r.request.identifier == package]
    records = records[:limit]

    if not records:
        print_info("No journal records found.")
        return

    if json_output:
        console.print_json(json.dumps([r.to_dict() for r in records]))
    else:
        _print_table(records)


def _print_table(records: list[ActionRecord]) -> None:
    """Print records as a Rich table."""
    table = create_record_table()
    for record in records:
        table.add_row(
            record.id[:8],
            _format_timestamp(record.timestamp),
            record.request.profile.key,
            record.request.kind.value,
            record.request.identifier,
            format_outcome(record),
            str(record.retry_count),
        )
    console.print(table)


def _format_timestamp(iso_timestamp: str) -> str:
    """Format an ISO 8601 timestamp as YYYY-MM-DD HH:MM."""
    dt = datetime.fromisoformat(iso_timestamp.replace("Z", "+00:00"))
    return dt.strftime("%Y-%m-%d %H:%M")
