"""Info command implementation.

Shows what the recommendation database knows about one package and,
when a device is given, its state on that device.
"""

import json
from typing import Annotated

import typer
from rich.markup import escape
from rich.table import Table

from droidctl.cli.types import build_engine, resolve_device, resolve_profile
from droidctl.core.errors import TransportError
from droidctl.models.package import Package, Recommendation, Tier
from droidctl.utils.formatting import console, print_error, print_info


def info(
    package: Annotated[
        str,
        typer.Argument(help="Package name.", show_default=False),
    ],
    device: Annotated[
        str | None,
        typer.Option("--device", "-d", help="Also show the package state on this device."),
    ] = None,
    user: Annotated[
        int,
        typer.Option("--user", "-u", help="Android user id."),
    ] = 0,
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output as JSON."),
    ] = False,
) -> None:
    """Show detailed information about a package.

    Examples:
        droidctl info com.facebook.katana
        droidctl info com.facebook.katana -d ABC123 --json
    """
    engine = build_engine()
    recommendation = engine.inventory.lookup.lookup(package)

    found: Package | None = None
    if device is not None:
        target = resolve_device(engine, device)
        profile = resolve_profile(target, user)
        try:
            engine.inventory.refresh(profile)
        except TransportError as e:
            print_error(f"Cannot list packages on {profile.key}: {e}")
            raise typer.Exit(code=1) from e
        found = engine.inventory.get(profile, package)
        if found is None:
            print_error(f"Package {package} not found on {profile.key}.")
            raise typer.Exit(code=1)

    if json_output:
        data: dict[str, object] = {
            "package": package,
            "tier": recommendation.tier.value,
            "description": recommendation.description,
            "list": recommendation.list_name,
            "dependencies": list(recommendation.dependencies),
            "needed_by": list(recommendation.needed_by),
            "labels": list(recommendation.labels),
        }
        if found is not None:
            data["device"] = found.profile.device_serial
            data["user"] = found.profile.user_id
            data["state"] = found.state.label
            data["system"] = found.system
        console.print_json(json.dumps(data))
        return

    _print_details(package, recommendation, found)
    if recommendation.tier == Tier.UNLISTED:
        print_info("Not in the recommendation database.")


def _print_details(
    package: str,
    recommendation: Recommendation,
    found: Package | None,
) -> None:
    table = Table(
        title=package,
        show_header=False,
        border_style="border",
    )
    table.add_column("Key", style="muted", no_wrap=True)
    table.add_column("Value")

    tier = recommendation.tier.value
    table.add_row("Tier", f"[tier.{tier}]{tier}[/]")
    table.add_row("List", escape(recommendation.list_name or "-"))
    if found is not None:
        table.add_row("Device", found.profile.key)
        table.add_row("State", found.state.label)
        table.add_row("System", "yes" if found.system else "no")
    table.add_row("Dependencies", _join(recommendation.dependencies))
    table.add_row("Needed by", _join(recommendation.needed_by))
    table.add_row("Labels", _join(recommendation.labels))
    table.add_row("Description", escape(recommendation.description or "-"))
    console.print(table)


def _join(values: tuple[str, ...]) -> str:
    return escape(", ".join(values)) if values else "-"
