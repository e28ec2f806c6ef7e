"""Configuration commands.

Provides commands to show the effective configuration and to write a
default config file.
"""

import json
from typing import Annotated

import typer
from rich.table import Table

from droidctl.core.config import (
    ConfigError,
    DroidctlConfig,
    load_config_or_default,
    save_config,
)
from droidctl.core.paths import get_config_path
from droidctl.utils.formatting import console, print_error, print_info, print_success

app = typer.Typer(
    help="Show or initialize the configuration.",
    no_args_is_help=True,
)


@app.command()
def show(
    json_output: Annotated[
        bool,
        typer.Option(
            "--json",
            help="Output as JSON.",
        ),
    ] = False,
) -> None:
    """Show the effective configuration.

    Values missing from the config file are shown with their defaults.
    """
    try:
        config = load_config_or_default()
    except ConfigError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    data = config.model_dump(mode="json")
    if json_output:
        console.print_json(json.dumps(data))
        return

    path = get_config_path()
    source = str(path) if path.exists() else "defaults"
    table = Table(
        title=f"Configuration ({source})",
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("Key", style="text", no_wrap=True)
    table.add_column("Value")
    for key, value in data.items():
        table.add_row(key, "-" if value is None else str(value))
    console.print(table)


@app.command()
def init(
    force: Annotated[
        bool,
        typer.Option(
            "--force",
            "-f",
            help="Overwrite an existing config file.",
        ),
    ] = False,
) -> None:
    """Write a config file with default values."""
    path = get_config_path()
    if path.exists() and not force:
        print_info(f"Config already exists: {path} (use --force to overwrite)")
        return

    try:
        saved = save_config(DroidctlConfig(), path)
    except ConfigError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e
    print_success(f"Config written to {saved}")
