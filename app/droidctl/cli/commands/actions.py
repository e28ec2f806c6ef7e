"""Debloat action commands.

Implements ``uninstall``, ``disable``, ``enable``, ``clear`` and ``restore``.
Every command refreshes the profile, plans the selection, shows a preview,
then runs the plan as a batch session.
"""

from collections.abc import Callable
from typing import Annotated

import typer
from rich.markup import escape
from rich.table import Table

from droidctl.cli.types import build_engine, resolve_device, resolve_profile
from droidctl.core.engine import Engine
from droidctl.core.errors import PlanningError, TransportError
from droidctl.models.action import ActionKind, ActionRecord, Plan
from droidctl.models.device import UserProfile
from droidctl.models.package import Package, Tier
from droidctl.utils.formatting import (
    console,
    format_outcome,
    print_error,
    print_info,
    print_success,
    print_warning,
)

_VERBS: dict[ActionKind, str] = {
    ActionKind.UNINSTALL: "Uninstall",
    ActionKind.DISABLE: "Disable",
    ActionKind.ENABLE: "Enable",
    ActionKind.CLEAR_DATA: "Clear data of",
    ActionKind.RESTORE: "Restore",
}


def run_action(
    kind: ActionKind,
    packages: list[str],
    device: str | None,
    user: int,
    dry_run: bool,
    yes: bool,
) -> None:
    """Plan and execute one action kind for a list of packages."""
    engine = build_engine()
    target = resolve_device(engine, device)
    profile = resolve_profile(target, user)

    try:
        engine.inventory.refresh(profile)
    except TransportError as e:
        print_error(f"Cannot list packages on {profile.key}: {e}")
        raise typer.Exit(code=1) from e

    selection = _select(engine, profile, packages, kind)

    try:
        plan = engine.planner.plan(selection, profile)
    except PlanningError as e:
        print_error(e.reason)
        raise typer.Exit(code=1) from e

    for item in plan.skipped:
        print_info(f"Skipping {item.package.identifier}: {item.reason}")

    if plan.is_empty:
        print_info("Nothing to do.")
        return

    _show_preview(plan, kind, profile)

    if dry_run:
        print_info("Dry run: no changes made.")
        return

    if not yes:
        confirm = typer.confirm(f"{_VERBS[kind]} {len(plan.requests)} package(s)?")
        if not confirm:
            print_info("Cancelled.")
            return

    records = _run_session(engine, plan)
    _show_results(records)

    if any(r.failed for r in records):
        raise typer.Exit(code=1)


def _select(
    engine: Engine,
    profile: UserProfile,
    names: list[str],
    kind: ActionKind,
) -> list[tuple[Package, ActionKind]]:
    """Resolve package names against the refreshed snapshot.

    Exits with code 1 if any name is unknown on the profile.
    """
    selection: list[tuple[Package, ActionKind]] = []
    missing: list[str] = []
    for name in names:
        pkg = engine.inventory.get(profile, name)
        if pkg is None:
            missing.append(name)
        else:
            selection.append((pkg, kind))

    if missing:
        print_error(f"Unknown package(s) on {profile.key}: {', '.join(missing)}")
        raise typer.Exit(code=1)
    return selection


def _show_preview(plan: Plan, kind: ActionKind, profile: UserProfile) -> None:
    """Display the planned actions."""
    table = Table(
        title=f"{_VERBS[kind]} on {profile.key}",
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("Package", no_wrap=True)
    table.add_column("Current")
    table.add_column("After")
    table.add_column("Tier")
    for request in plan.requests:
        pkg = request.package
        table.add_row(
            pkg.identifier,
            pkg.state.label,
            request.expected_state.label,
            f"[tier.{pkg.tier.value}]{pkg.tier.value}[/]",
        )
    console.print(table)

    risky = [r.identifier for r in plan.requests if r.package.tier == Tier.UNSAFE]
    if risky and kind != ActionKind.RESTORE:
        print_warning(f"Unsafe package(s) selected: {', '.join(risky)}")
    unlisted = [r.identifier for r in plan.requests if r.package.tier == Tier.UNLISTED]
    if unlisted and kind != ActionKind.RESTORE:
        print_warning(f"{len(unlisted)} package(s) are not in the recommendation database.")


def _run_session(engine: Engine, plan: Plan) -> tuple[ActionRecord, ...]:
    """Run the plan, cancelling queued actions on Ctrl+C."""
    handle = engine.sessions.submit(plan.requests, on_record=_print_record)
    try:
        with console.status(f"Running {len(plan.requests)} action(s)..."):
            records = engine.sessions.wait(handle)
    except KeyboardInterrupt:
        print_warning("Cancelling; running actions will finish first.")
        engine.sessions.cancel(handle)
        records = engine.sessions.wait(handle)
    engine.sessions.discard(handle)
    return records


def _print_record(record: ActionRecord) -> None:
    """Print one finished record as it comes in."""
    line = f"  {record.request.identifier}: {format_outcome(record)}"
    if record.retry_count:
        line += f" [muted](retries: {record.retry_count})[/]"
    if record.error:
        line += f" [muted]{escape(record.error)}[/]"
    console.print(line)


def _show_results(records: tuple[ActionRecord, ...]) -> None:
    """Summarize a finished session."""
    succeeded = sum(1 for r in records if r.succeeded)
    if succeeded == len(records):
        print_success(f"{succeeded} action(s) succeeded.")
    else:
        print_warning(f"{succeeded} of {len(records)} action(s) succeeded.")


def make_command(kind: ActionKind, help_text: str) -> Callable[..., None]:
    """Build a command function running ``kind`` on the given packages."""

    def command(
        packages: Annotated[
            list[str],
            typer.Argument(help="Package names.", show_default=False),
        ],
        device: Annotated[
            str | None,
            typer.Option("--device", "-d", help="Device serial (default: first device)."),
        ] = None,
        user: Annotated[
            int,
            typer.Option("--user", "-u", help="Android user id."),
        ] = 0,
        dry_run: Annotated[
            bool,
            typer.Option("--dry-run", "-n", help="Show what would be done without executing."),
        ] = False,
        yes: Annotated[
            bool,
            typer.Option("--yes", "-y", help="Skip confirmation prompt."),
        ] = False,
    ) -> None:
        run_action(kind, packages, device, user, dry_run, yes)

    command.__doc__ = help_text
    return command


uninstall = make_command(ActionKind.UNINSTALL, "Uninstall packages for a user (data kept).")
disable = make_command(ActionKind.DISABLE, "Disable packages for a user.")
enable = make_command(ActionKind.ENABLE, "Enable packages, reinstalling them when needed.")
clear = make_command(ActionKind.CLEAR_DATA, "Clear application data of packages.")
restore = make_command(
    ActionKind.RESTORE, "Restore packages to their state before the last debloat action."
)
