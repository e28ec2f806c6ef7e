"""Main CLI application entry point.

Defines the Typer application and global options.
"""

import logging
from typing import Annotated

import typer
from rich.logging import RichHandler

from droidctl import __version__
from droidctl.cli.commands import actions, adb, config, devices, history, info, packages
from droidctl.utils.formatting import err_console

# Create main Typer app
app = typer.Typer(
    name="droidctl",
    help="Debloat Android devices over adb.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"droidctl version {__version__}")
        raise typer.Exit()


def setup_logging(verbose: bool, quiet: bool) -> None:
    """Route library logging through Rich on stderr."""
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.ERROR
    else:
        level = logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=verbose, markup=False)],
        force=True,
    )


@app.callback()
def main(
    ctx: typer.Context,
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Enable verbose output.",
        ),
    ] = False,
    quiet: Annotated[
        bool,
        typer.Option(
            "--quiet",
            "-q",
            help="Suppress non-essential output.",
        ),
    ] = False,
) -> None:
    """droidctl - Debloat Android devices over adb.

    Uninstall, disable and restore packages per device user, with every
    change recorded so it can be undone.
    """
    setup_logging(verbose, quiet)
    # Store options in context for subcommands
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet


# Register commands
app.add_typer(devices.app, name="devices")
app.add_typer(packages.app, name="list")
app.command("uninstall")(actions.uninstall)
app.command("disable")(actions.disable)
app.command("enable")(actions.enable)
app.command("clear")(actions.clear)
app.command("restore")(actions.restore)
app.command("info")(info.info)
app.add_typer(history.app, name="history")
app.add_typer(adb.app, name="adb")
app.add_typer(config.app, name="config")


if __name__ == "__main__":
    app()
