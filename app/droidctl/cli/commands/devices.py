"""Devices command implementation.

Lists devices reported by the transport with their state and users.
"""

import json
from typing import Annotated

import typer
from rich.table import Table

from droidctl.cli.types import build_engine
from droidctl.core.errors import TransportError
from droidctl.models.device import DeviceState
from droidctl.utils.formatting import console, print_error, print_info

app = typer.Typer(
    help="List connected Android devices.",
    invoke_without_command=True,
)

_STATE_STYLES: dict[DeviceState, str] = {
    DeviceState.CONNECTED: "success",
    DeviceState.AUTHORIZATION_PENDING: "warning",
    DeviceState.CONNECTING: "info",
    DeviceState.FAILED: "error",
    DeviceState.DISCONNECTED: "muted",
}


@app.callback(invoke_without_command=True)
def devices(
    ctx: typer.Context,
    json_output: Annotated[
        bool,
        typer.Option(
            "--json",
            help="Output as JSON.",
        ),
    ] = False,
) -> None:
    """List connected Android devices.

    Examples:
        droidctl devices
        droidctl devices --json
    """
    if ctx.invoked_subcommand is not None:
        return

    engine = build_engine()
    try:
        found = sorted(engine.registry.discover(), key=lambda d: d.serial)
    except TransportError as e:
        print_error(f"Cannot list devices: {e}")
        raise typer.Exit(code=1) from e

    if json_output:
        data = [
            {
                "serial": d.serial,
                "state": d.state.value,
                "users": [p.user_id for p in d.profiles],
            }
            for d in found
        ]
        console.print_json(json.dumps(data))
        return

    if not found:
        print_info("No devices found.")
        return

    table = Table(
        title="Devices",
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("Serial", no_wrap=True)
    table.add_column("State")
    table.add_column("Users", style="muted")
    for device in found:
        style = _STATE_STYLES[device.state]
        users = ", ".join(str(p.user_id) for p in device.profiles) or "-"
        table.add_row(device.serial, f"[{style}]{device.state.value}[/]", users)
    console.print(table)
