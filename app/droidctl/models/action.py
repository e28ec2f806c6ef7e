"""Action models for debloat operations.

This module defines data structures for representing debloat actions
(uninstall, disable, enable, clear data, restore), their planned form and
the append-only records produced by executing them.
"""

from __future__ import annotations

import json
import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from droidctl.models.device import UserProfile
from droidctl.models.package import Package, PackageState


class ActionKind(str, Enum):
    """Type of debloat action.

    Attributes:
        UNINSTALL: Uninstall for the user, keeping data (``pm uninstall -k``).
        DISABLE: Disable for the user (``pm disable-user``).
        ENABLE: Enable, reinstalling for the user when needed.
        CLEAR_DATA: Clear application data (``pm clear``).
        RESTORE: Return to the state recorded before the last debloat action.
    """

    UNINSTALL = "uninstall"
    DISABLE = "disable"
    ENABLE = "enable"
    CLEAR_DATA = "clear_data"
    RESTORE = "restore"

    @property
    def is_debloat(self) -> bool:
        """Check if this kind is a forward action (anything but restore)."""
        return self != ActionKind.RESTORE


class Outcome(str, Enum):
    """Outcome of an action.

    ``PENDING`` and ``RUNNING`` are only used by batch sessions; records
    written to the journal always carry a terminal outcome.
    """

    PENDING = "pending"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        """Check if the outcome is final."""
        return self in (Outcome.SUCCEEDED, Outcome.FAILED, Outcome.CANCELLED)


@dataclass(frozen=True, slots=True)
class ActionRequest:
    """A single planned action.

    Attributes:
        package: Snapshot of the target package at planning time.
        kind: What to do with the package.
        target: Desired end state; only set for restores.
    """

    package: Package
    kind: ActionKind
    target: PackageState | None = None

    def __post_init__(self) -> None:
        """Validate request data after initialization."""
        if self.kind == ActionKind.RESTORE and self.target is None:
            msg = "Restore requests need a target state"
            raise ValueError(msg)

    @property
    def profile(self) -> UserProfile:
        """Profile the action targets."""
        return self.package.profile

    @property
    def device_serial(self) -> str:
        """Serial of the device the action targets."""
        return self.package.profile.device_serial

    @property
    def identifier(self) -> str:
        """Identifier of the target package."""
        return self.package.identifier

    @property
    def expected_state(self) -> PackageState:
        """State the package is left in when the action succeeds."""
        current = self.package.state
        if self.kind == ActionKind.UNINSTALL:
            return PackageState(installed=False, enabled=current.enabled)
        if self.kind == ActionKind.DISABLE:
            return PackageState(installed=current.installed, enabled=False)
        if self.kind == ActionKind.ENABLE:
            return PackageState(installed=True, enabled=True)
        if self.kind == ActionKind.RESTORE and self.target is not None:
            return self.target
        return current

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for JSON storage."""
        result: dict[str, Any] = {
            "package": self.package.identifier,
            "device": self.profile.device_serial,
            "user": self.profile.user_id,
            "system": self.package.system,
            "kind": self.kind.value,
        }
        if self.target is not None:
            result["target"] = self.target.to_dict()
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any], previous: PackageState) -> ActionRequest:
        """Deserialize from dictionary.

        The package snapshot is rebuilt from the previous state stored
        alongside the request.

        Raises:
            KeyError: If required fields are missing.
            ValueError: If kind is invalid.
        """
        profile = UserProfile(device_serial=data["device"], user_id=int(data["user"]))
        package = Package(
            identifier=data["package"],
            profile=profile,
            installed=previous.installed,
            enabled=previous.enabled,
            system=bool(data.get("system", False)),
        )
        target = data.get("target")
        return cls(
            package=package,
            kind=ActionKind(data["kind"]),
            target=PackageState.from_dict(target) if target is not None else None,
        )


@dataclass(frozen=True, slots=True)
class ActionRecord:
    """Append-only record of an executed (or cancelled) action.

    Attributes:
        id: Unique identifier (12-character hex string from UUID).
        request: The request that was executed.
        previous: Package state before the action.
        timestamp: When the action finished (ISO 8601 format with timezone).
        outcome: Terminal outcome.
        retry_count: Transport attempts beyond the first.
        error: Error message for failed actions.
    """

    id: str
    request: ActionRequest
    previous: PackageState
    timestamp: str
    outcome: Outcome
    retry_count: int = 0
    error: str | None = field(default=None)

    def __post_init__(self) -> None:
        """Validate record data after initialization."""
        if not self.id:
            msg = "Record ID cannot be empty"
            raise ValueError(msg)
        if not self.outcome.is_terminal:
            msg = f"Record outcome must be terminal, got {self.outcome.value}"
            raise ValueError(msg)
        if self.retry_count < 0:
            msg = "Retry count cannot be negative"
            raise ValueError(msg)

    @property
    def succeeded(self) -> bool:
        """Check if the action succeeded."""
        return self.outcome == Outcome.SUCCEEDED

    @property
    def failed(self) -> bool:
        """Check if the action failed."""
        return self.outcome == Outcome.FAILED

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for JSON storage."""
        result: dict[str, Any] = {
            "id": self.id,
            "timestamp": self.timestamp,
            "request": self.request.to_dict(),
            "previous": self.previous.to_dict(),
            "outcome": self.outcome.value,
            "retry_count": self.retry_count,
        }
        if self.error is not None:
            result["error"] = self.error
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ActionRecord:
        """Deserialize from dictionary.

        Raises:
            KeyError: If required fields are missing.
            ValueError: If kind, outcome or other data is invalid.
        """
        previous = PackageState.from_dict(data["previous"])
        return cls(
            id=data["id"],
            request=ActionRequest.from_dict(data["request"], previous),
            previous=previous,
            timestamp=data["timestamp"],
            outcome=Outcome(data["outcome"]),
            retry_count=int(data.get("retry_count", 0)),
            error=data.get("error"),
        )

    def to_json_line(self) -> str:
        """Serialize to JSON line for JSONL storage (no trailing newline)."""
        return json.dumps(self.to_dict(), separators=(",", ":"))

    @classmethod
    def from_json_line(cls, line: str) -> ActionRecord:
        """Deserialize from JSON line.

        Raises:
            json.JSONDecodeError: If line is not valid JSON.
            KeyError: If required fields are missing.
            ValueError: If data is invalid.
        """
        return cls.from_dict(json.loads(line.strip()))


def create_action_record(
    request: ActionRequest,
    outcome: Outcome,
    retry_count: int = 0,
    error: str | None = None,
) -> ActionRecord:
    """Factory function to create a new ActionRecord.

    Generates a unique ID and current timestamp. The previous state is
    taken from the request's package snapshot.

    Args:
        request: The executed request.
        outcome: Terminal outcome.
        retry_count: Attempts beyond the first.
        error: Optional error message.

    Returns:
        New ActionRecord.
    """
    return ActionRecord(
        id=uuid.uuid4().hex[:12],
        request=request,
        previous=request.package.state,
        timestamp=datetime.now(UTC).isoformat(),
        outcome=outcome,
        retry_count=retry_count,
        error=error,
    )


@dataclass(frozen=True, slots=True)
class SkippedAction:
    """A selection entry the planner dropped as a no-op."""

    package: Package
    kind: ActionKind
    reason: str


@dataclass(frozen=True, slots=True)
class Plan:
    """Validated, ordered output of the planner.

    Attributes:
        requests: Requests in submission order.
        skipped: No-op entries that will not reach the device.
    """

    requests: tuple[ActionRequest, ...] = ()
    skipped: tuple[SkippedAction, ...] = ()

    @property
    def is_empty(self) -> bool:
        """Check if there is nothing to execute."""
        return not self.requests
