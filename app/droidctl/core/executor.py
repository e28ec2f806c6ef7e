"""Action execution with retry and journaling.

The executor turns one ActionRequest into transport commands, retries
transient failures with bounded exponential backoff and writes exactly one
ActionRecord to the undo journal before returning.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING

from droidctl.core.errors import TransportError
from droidctl.models.action import (
    ActionKind,
    ActionRecord,
    ActionRequest,
    Outcome,
    create_action_record,
)
from droidctl.models.package import PackageState

if TYPE_CHECKING:
    from droidctl.core.config import DroidctlConfig
    from droidctl.core.inventory import PackageInventory
    from droidctl.core.journal import UndoJournal
    from droidctl.transport.base import Transport

logger = logging.getLogger(__name__)

# A single transport call: (serial, user_id, package) -> result
Step = Callable[[str, int, str], object]


@dataclass(frozen=True, slots=True)
class RetryPolicy:
    """Retry settings for transient failures.

    Attributes:
        max_attempts: Transport attempts before giving up (at least 1).
        backoff_base: Delay after the first failed attempt, in seconds.
        backoff_max: Upper bound for any single delay.
    """

    max_attempts: int = 3
    backoff_base: float = 0.5
    backoff_max: float = 8.0

    def __post_init__(self) -> None:
        """Validate policy data after initialization."""
        if self.max_attempts < 1:
            msg = f"max_attempts must be at least 1, got {self.max_attempts}"
            raise ValueError(msg)
        if self.backoff_base < 0 or self.backoff_max < 0:
            msg = "Backoff delays cannot be negative"
            raise ValueError(msg)

    @classmethod
    def from_config(cls, config: DroidctlConfig) -> RetryPolicy:
        """Build a policy from application configuration."""
        return cls(
            max_attempts=config.max_attempts,
            backoff_base=config.backoff_base,
            backoff_max=config.backoff_max,
        )

    def delay(self, attempt: int) -> float:
        """Delay before the attempt following ``attempt`` (1-based)."""
        return min(self.backoff_base * (2 ** (attempt - 1)), self.backoff_max)


def transition_steps(
    transport: Transport,
    current: PackageState,
    target: PackageState,
) -> list[Step]:
    """Transport calls that move a package from one state to another."""
    steps: list[Step] = []
    if not target.installed:
        if current.installed:
            steps.append(transport.uninstall)
        return steps

    if not current.installed:
        steps.append(transport.install_existing)
    if target.enabled and not current.enabled:
        steps.append(transport.enable)
    elif not target.enabled and current.enabled:
        steps.append(transport.disable)
    return steps


class ActionExecutor:
    """Runs action requests against a transport.

    Attributes:
        policy: Retry policy for transient failures.
    """

    def __init__(
        self,
        transport: Transport,
        journal: UndoJournal,
        inventory: PackageInventory | None = None,
        policy: RetryPolicy | None = None,
        *,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._transport = transport
        self._journal = journal
        self._inventory = inventory
        self._policy = policy or RetryPolicy()
        self._sleep = sleep

    @property
    def policy(self) -> RetryPolicy:
        return self._policy

    def steps(self, request: ActionRequest) -> list[Step]:
        """Transport calls needed to carry out a request."""
        t = self._transport
        current = request.package.state

        if request.kind == ActionKind.UNINSTALL:
            return [t.uninstall]
        if request.kind == ActionKind.DISABLE:
            return [t.disable]
        if request.kind == ActionKind.CLEAR_DATA:
            return [t.clear_data]
        if request.kind == ActionKind.ENABLE:
            if not current.installed:
                steps: list[Step] = [t.install_existing]
                if not current.enabled:
                    steps.append(t.enable)
                return steps
            return [t.enable]
        return transition_steps(t, current, request.target or current)

    def execute(
        self,
        request: ActionRequest,
        cancel: threading.Event | None = None,
    ) -> ActionRecord:
        """Execute one request and journal the outcome.

        Cancellation is checked before every attempt and during backoff; a
        command already sent to the device is never interrupted.

        Args:
            request: Request to execute.
            cancel: Optional cancellation token.

        Returns:
            The terminal ActionRecord, already written to the journal.

        Raises:
            OSError: If the journal cannot be written.
        """
        request = self._current(request)
        serial = request.device_serial
        user = request.profile.user_id
        identifier = request.identifier
        steps = self.steps(request)

        completed = 0
        attempt = 0
        outcome = Outcome.FAILED
        error: str | None = None

        while True:
            if cancel is not None and cancel.is_set():
                outcome = Outcome.CANCELLED
                error = "cancelled before execution" if attempt == 0 else "cancelled"
                break

            attempt += 1
            try:
                while completed < len(steps):
                    steps[completed](serial, user, identifier)
                    completed += 1
            except TransportError as e:
                error = str(e)
                if not e.transient:
                    logger.error(
                        "%s %s on %s failed: %s", request.kind.value, identifier, serial, e
                    )
                    outcome = Outcome.FAILED
                    break
                if attempt >= self._policy.max_attempts:
                    logger.error(
                        "%s %s on %s failed after %d attempt(s): %s",
                        request.kind.value,
                        identifier,
                        serial,
                        attempt,
                        e,
                    )
                    outcome = Outcome.FAILED
                    break

                delay = self._policy.delay(attempt)
                logger.warning(
                    "Transient failure on %s (attempt %d/%d), retrying in %.1fs: %s",
                    serial,
                    attempt,
                    self._policy.max_attempts,
                    delay,
                    e,
                )
                if self._wait(delay, cancel):
                    outcome = Outcome.CANCELLED
                    break
                continue

            outcome = Outcome.SUCCEEDED
            error = None
            break

        record = create_action_record(
            request,
            outcome,
            retry_count=max(attempt - 1, 0),
            error=error,
        )
        self._journal.record(record)

        if record.succeeded:
            logger.info("%s %s on %s succeeded", request.kind.value, identifier, serial)
            if self._inventory is not None:
                self._inventory.apply(record, request.expected_state)
        return record

    def cancelled(self, request: ActionRequest) -> ActionRecord:
        """Journal a request that was cancelled before it ran."""
        record = create_action_record(
            self._current(request), Outcome.CANCELLED, error="cancelled"
        )
        self._journal.record(record)
        return record

    def _current(self, request: ActionRequest) -> ActionRequest:
        """Rebase a request on the package state the inventory holds now.

        Earlier actions in the same batch may have changed the package since
        planning; the record must capture the state right before this one.
        """
        if self._inventory is None:
            return request
        latest = self._inventory.get(request.profile, request.identifier)
        if latest is None or latest.state == request.package.state:
            return request
        return replace(request, package=request.package.with_state(latest.state))

    def _wait(self, delay: float, cancel: threading.Event | None) -> bool:
        """Sleep for ``delay`` seconds; return True if cancelled meanwhile."""
        if cancel is not None:
            return cancel.wait(delay)
        self._sleep(delay)
        return False
