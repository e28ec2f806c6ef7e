"""ADB diagnostics command.

Reports which adb binary is used and whether it runs.
"""

import typer

from droidctl.core.config import ConfigError, load_config_or_default
from droidctl.core.errors import TransportError
from droidctl.transport.adb import AdbTransport
from droidctl.utils.formatting import console, print_error

app = typer.Typer(
    help="Check the adb installation.",
    invoke_without_command=True,
)


@app.callback(invoke_without_command=True)
def adb(ctx: typer.Context) -> None:
    """Show the adb binary in use and its version.

    Examples:
        droidctl adb
    """
    if ctx.invoked_subcommand is not None:
        return

    try:
        config = load_config_or_default()
    except ConfigError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    transport = AdbTransport(adb_path=config.adb_path, timeout=config.command_timeout)
    if not transport.is_available():
        print_error(f"'{transport.adb_path}' not found. Install the Android platform tools.")
        raise typer.Exit(code=1)

    try:
        version = transport.version()
    except TransportError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    console.print(f"[muted]Binary:[/] {transport.adb_path}")
    for line in version.splitlines():
        console.print(f"[text]{line}[/]")
