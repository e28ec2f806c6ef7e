"""Action planning.

Turns a user selection of ``(package, action kind)`` pairs into a validated,
ordered list of requests. Planning never touches a device: a selection is
either fully accepted (minus no-op entries) or rejected with
:class:`PlanningError`.
"""

import logging
from collections.abc import Iterable

from droidctl.core.errors import PlanningError
from droidctl.core.journal import UndoJournal
from droidctl.models.action import ActionKind, ActionRequest, Plan, SkippedAction
from droidctl.models.device import UserProfile
from droidctl.models.package import Package

logger = logging.getLogger(__name__)


class ActionPlanner:
    """Validates selections against package state and the undo journal."""

    def __init__(self, journal: UndoJournal) -> None:
        self._journal = journal

    def plan(
        self,
        selection: Iterable[tuple[Package, ActionKind]],
        profile: UserProfile,
    ) -> Plan:
        """Build a plan for one profile.

        Duplicate ``(package, kind)`` entries keep their first occurrence;
        everything else stays in submission order.

        Args:
            selection: Ordered ``(package, kind)`` pairs.
            profile: Profile every selected package must belong to.

        Returns:
            Plan with the requests to execute and the skipped no-op entries.

        Raises:
            PlanningError: If any entry is invalid (e.g. uninstalling a
                system package, or a package from another profile).
            NoPriorState: If a restore has no journal record to restore from.
        """
        requests: list[ActionRequest] = []
        skipped: list[SkippedAction] = []
        seen: set[tuple[str, ActionKind]] = set()

        for package, kind in selection:
            key = (package.identifier, kind)
            if key in seen:
                logger.debug("Dropping duplicate %s of %s", kind.value, package.identifier)
                continue
            seen.add(key)

            if package.profile != profile:
                msg = (
                    f"{package.identifier} belongs to {package.profile.key}, "
                    f"not {profile.key}"
                )
                raise PlanningError(msg)

            if kind == ActionKind.RESTORE:
                request = self._journal.restore(package, profile)
                if request.target == package.state:
                    skipped.append(
                        SkippedAction(package, kind, f"already {package.state.label}")
                    )
                else:
                    requests.append(request)
                continue

            reason = self._noop_reason(package, kind)
            if reason is not None:
                skipped.append(SkippedAction(package, kind, reason))
                continue

            if kind == ActionKind.UNINSTALL and package.system:
                msg = (
                    f"{package.identifier} is a system package and cannot be "
                    "uninstalled without root; disable it instead"
                )
                raise PlanningError(msg)

            requests.append(ActionRequest(package=package, kind=kind))

        logger.info(
            "Planned %d action(s) on %s, skipped %d",
            len(requests),
            profile.key,
            len(skipped),
        )
        return Plan(requests=tuple(requests), skipped=tuple(skipped))

    @staticmethod
    def _noop_reason(package: Package, kind: ActionKind) -> str | None:
        """Return why an action would not change anything, or None."""
        if kind == ActionKind.UNINSTALL and not package.installed:
            return "already uninstalled"
        if kind == ActionKind.DISABLE and not package.installed:
            return "not installed"
        if kind == ActionKind.DISABLE and not package.enabled:
            return "already disabled"
        if kind == ActionKind.ENABLE and package.installed and package.enabled:
            return "already enabled"
        if kind == ActionKind.CLEAR_DATA and not package.installed:
            return "not installed"
        return None
