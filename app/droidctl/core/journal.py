"""Undo journal.

This module provides the UndoJournal class for persisting and querying
action records in a JSONL file, and for deriving restore requests from
them.
"""

import json
import logging
import os
import threading
from pathlib import Path

from droidctl.core.errors import NoPriorState
from droidctl.core.paths import get_state_dir
from droidctl.models.action import ActionKind, ActionRecord, ActionRequest
from droidctl.models.device import UserProfile
from droidctl.models.package import Package

logger = logging.getLogger(__name__)


class UndoJournal:
    """Append-only journal of action records.

    Storage location: ~/.local/state/droidctl/journal.jsonl

    Each line is one complete JSON object representing an ActionRecord.
    Records are never rewritten; a restore adds a new record. Appends are
    serialized by a lock and fsynced before :meth:`record` returns, so
    concurrent workers for different devices can share one journal.

    Attributes:
        state_dir: Directory containing the journal file.
    """

    JOURNAL_FILENAME = "journal.jsonl"

    def __init__(self, state_dir: Path | None = None) -> None:
        """Initialize UndoJournal.

        Args:
            state_dir: Optional override for state directory.
                      Default: ~/.local/state/droidctl
        """
        self._state_dir = state_dir if state_dir is not None else get_state_dir()
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        """Path to the journal file."""
        return self._state_dir / self.JOURNAL_FILENAME

    def record(self, record: ActionRecord) -> None:
        """Append a record to the journal.

        Creates the file and parent directories if they don't exist.

        Args:
            record: The record to append.

        Raises:
            OSError: If the file cannot be written.
        """
        line = record.to_json_line()

        with self._lock:
            self._state_dir.mkdir(parents=True, exist_ok=True)
            with self.path.open(mode="a", encoding="utf-8") as f:
                f.write(line + "\n")
                f.flush()
                os.fsync(f.fileno())

        logger.debug(
            "Journaled %s %s on %s: %s",
            record.request.kind.value,
            record.request.identifier,
            record.request.profile.key,
            record.outcome.value,
        )

    def history(self, limit: int | None = None) -> list[ActionRecord]:
        """Read records, newest first.

        Args:
            limit: Maximum number of records to return. None returns all.

        Returns:
            List of ActionRecord, newest first. Empty if the file doesn't exist.
        """
        if not self.path.exists():
            return []

        records: list[ActionRecord] = []

        with self._lock, self.path.open(encoding="utf-8") as f:
            for line_num, line in enumerate(f, start=1):
                line = line.strip()
                if not line:
                    continue

                try:
                    records.append(ActionRecord.from_json_line(line))
                except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
                    logger.warning("Skipping corrupt journal line %d: %s", line_num, str(e))
                    continue

        records.reverse()

        if limit is not None:
            return records[:limit]
        return records

    def records_for(self, identifier: str, profile: UserProfile) -> list[ActionRecord]:
        """Return every record of a package on a profile, newest first."""
        return [
            r
            for r in self.history()
            if r.request.identifier == identifier and r.request.profile == profile
        ]

    def lookup(self, package: Package | str, profile: UserProfile) -> ActionRecord | None:
        """Return the latest record of a package on a profile, or None."""
        identifier = package if isinstance(package, str) else package.identifier
        records = self.records_for(identifier, profile)
        return records[0] if records else None

    def restore(self, package: Package | str, profile: UserProfile) -> ActionRequest:
        """Build a restore request for a package.

        The target is the state captured before the most recent successful
        debloat action. Restore records are skipped, so restoring twice
        targets the same snapshot; only one level of undo exists.

        Args:
            package: Current package snapshot, or just its identifier.
            profile: Profile the package lives on.

        Returns:
            ActionRequest with kind RESTORE.

        Raises:
            NoPriorState: If no successful debloat action is on record.
        """
        identifier = package if isinstance(package, str) else package.identifier

        for record in self.records_for(identifier, profile):
            if not record.succeeded or not record.request.kind.is_debloat:
                continue
            if isinstance(package, Package):
                current = package
            else:
                # Without a fresh snapshot, assume the debloat action's result.
                current = record.request.package.with_state(record.request.expected_state)
            return ActionRequest(package=current, kind=ActionKind.RESTORE, target=record.previous)

        msg = f"No recorded action to restore for {identifier} on {profile.key}"
        raise NoPriorState(msg)

