"""List command implementation.

Lists the packages of a device profile with their state and safety tier.
"""

import json
from typing import Annotated

import typer

from droidctl.cli.types import StateChoice, build_engine, resolve_device, resolve_profile
from droidctl.core.errors import TransportError
from droidctl.core.inventory import filter_packages
from droidctl.models.package import Tier
from droidctl.utils.formatting import (
    console,
    create_package_table,
    format_package_row,
    print_error,
    print_info,
)

app = typer.Typer(
    help="List packages on a device.",
    invoke_without_command=True,
)


@app.callback(invoke_without_command=True)
def list_packages(
    ctx: typer.Context,
    device: Annotated[
        str | None,
        typer.Option("--device", "-d", help="Device serial (default: first device)."),
    ] = None,
    user: Annotated[
        int,
        typer.Option("--user", "-u", help="Android user id."),
    ] = 0,
    tier: Annotated[
        Tier | None,
        typer.Option("--tier", "-t", help="Only show packages of this tier."),
    ] = None,
    state: Annotated[
        StateChoice | None,
        typer.Option("--state", "-s", help="Only show packages in this state."),
    ] = None,
    search: Annotated[
        str | None,
        typer.Option("--search", "-q", help="Match package name or description."),
    ] = None,
    list_name: Annotated[
        str | None,
        typer.Option("--list", "-l", help="Only show packages of this list (e.g. Oem, Google)."),
    ] = None,
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output as JSON."),
    ] = False,
) -> None:
    """List packages on a device profile.

    Examples:
        droidctl list
        droidctl list --tier recommended --state enabled
        droidctl list -d ABC123 -u 10 -q facebook
        droidctl list --list oem
    """
    if ctx.invoked_subcommand is not None:
        return

    engine = build_engine()
    target = resolve_device(engine, device)
    profile = resolve_profile(target, user)

    try:
        packages = engine.inventory.refresh(profile)
    except TransportError as e:
        print_error(f"Cannot list packages on {profile.key}: {e}")
        raise typer.Exit(code=1) from e

    shown = filter_packages(
        packages,
        tier=tier,
        state=state.value if state is not None else None,
        search=search,
        list_name=list_name,
    )

    if json_output:
        data = [
            {
                "package": p.identifier,
                "installed": p.installed,
                "enabled": p.enabled,
                "system": p.system,
                "tier": p.tier.value,
                "list": p.list_name,
                "description": p.description,
            }
            for p in shown
        ]
        console.print_json(json.dumps(data))
        return

    if not shown:
        print_info("No packages match.")
        return

    table = create_package_table(title=f"Packages on {profile.key}")
    for pkg in shown:
        table.add_row(*format_package_row(pkg))
    console.print(table)
    console.print(f"[muted]{len(shown)} of {len(packages)} package(s)[/]")
