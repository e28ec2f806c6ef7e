"""Unit tests for UndoJournal.

Tests for journal persistence, history queries and restore derivation.
"""

import json
import logging
import threading
from collections.abc import Callable
from pathlib import Path

import pytest
from droidctl.core.errors import NoPriorState, PlanningError
from droidctl.core.journal import UndoJournal
from droidctl.models.action import (
    ActionKind,
    ActionRecord,
    ActionRequest,
    Outcome,
    create_action_record,
)
from droidctl.models.device import UserProfile
from droidctl.models.package import Package, PackageState


def _record(
    package: Package,
    kind: ActionKind,
    outcome: Outcome = Outcome.SUCCEEDED,
    target: PackageState | None = None,
) -> ActionRecord:
    return create_action_record(ActionRequest(package, kind, target=target), outcome)


class TestJournalInit:
    """Tests for UndoJournal initialization."""

    def test_path_property(self, tmp_path: Path) -> None:
        """path points at journal.jsonl in the state directory."""
        journal = UndoJournal(state_dir=tmp_path)
        assert journal.path == tmp_path / "journal.jsonl"

    def test_default_state_dir(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Without an override, the XDG state directory is used."""
        monkeypatch.setenv("XDG_STATE_HOME", str(tmp_path))
        assert UndoJournal().path == tmp_path / "droidctl" / "journal.jsonl"


class TestRecord:
    """Tests for UndoJournal.record."""

    def test_creates_directories(
        self, tmp_path: Path, make_package: Callable[..., Package]
    ) -> None:
        """record creates missing parent directories."""
        journal = UndoJournal(state_dir=tmp_path / "deep" / "state")
        journal.record(_record(make_package(), ActionKind.UNINSTALL))
        assert journal.path.exists()

    def test_appends_one_line_per_record(
        self, journal: UndoJournal, make_package: Callable[..., Package]
    ) -> None:
        """Every record is one JSON line; earlier lines are never rewritten."""
        first = _record(make_package(), ActionKind.UNINSTALL)
        journal.record(first)
        before = journal.path.read_text()

        journal.record(_record(make_package(), ActionKind.DISABLE))

        content = journal.path.read_text()
        assert content.startswith(before)
        lines = content.splitlines()
        assert len(lines) == 2
        assert json.loads(lines[0])["id"] == first.id

    def test_concurrent_appends_stay_whole(
        self, journal: UndoJournal, make_package: Callable[..., Package]
    ) -> None:
        """Appends from many threads never interleave."""

        def write(n: int) -> None:
            for _ in range(10):
                journal.record(_record(make_package(f"com.example.p{n}"), ActionKind.DISABLE))

        threads = [threading.Thread(target=write, args=(n,)) for n in range(5)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(journal.history()) == 50


class TestHistory:
    """Tests for UndoJournal.history."""

    def test_empty_when_missing(self, journal: UndoJournal) -> None:
        """A journal that was never written has no history."""
        assert journal.history() == []

    def test_newest_first_and_limit(
        self, journal: UndoJournal, make_package: Callable[..., Package]
    ) -> None:
        """history returns newest records first, capped by limit."""
        records = [
            _record(make_package(f"com.example.p{n}"), ActionKind.DISABLE) for n in range(3)
        ]
        for record in records:
            journal.record(record)

        history = journal.history(limit=2)

        assert [r.id for r in history] == [records[2].id, records[1].id]

    def test_skips_corrupt_lines(
        self,
        journal: UndoJournal,
        make_package: Callable[..., Package],
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        """Corrupt lines are skipped with a warning; the rest still load."""
        good = _record(make_package(), ActionKind.UNINSTALL)
        journal.record(good)
        with journal.path.open("a") as f:
            f.write("{not json\n")
            f.write('{"id": "x"}\n')
            f.write("\n")

        with caplog.at_level(logging.WARNING):
            history = journal.history()

        assert [r.id for r in history] == [good.id]
        assert "corrupt journal line 2" in caplog.text
        assert "corrupt journal line 3" in caplog.text

    def test_records_for_filters_by_profile(
        self, journal: UndoJournal, make_package: Callable[..., Package], profile: UserProfile
    ) -> None:
        """Records of the same package on other profiles are excluded."""
        other = UserProfile(profile.device_serial, 10)
        journal.record(_record(make_package(), ActionKind.UNINSTALL))
        journal.record(_record(make_package(profile=other), ActionKind.UNINSTALL))

        records = journal.records_for("com.facebook.katana", profile)

        assert len(records) == 1
        assert records[0].request.profile == profile

    def test_lookup_returns_latest(
        self, journal: UndoJournal, make_package: Callable[..., Package], profile: UserProfile
    ) -> None:
        """lookup returns the newest record of a package."""
        journal.record(_record(make_package(), ActionKind.DISABLE))
        latest = _record(make_package(), ActionKind.UNINSTALL, Outcome.FAILED)
        journal.record(latest)

        assert journal.lookup("com.facebook.katana", profile).id == latest.id
        assert journal.lookup("com.unknown", profile) is None


class TestRestore:
    """Tests for UndoJournal.restore."""

    def test_targets_state_before_last_success(
        self, journal: UndoJournal, make_package: Callable[..., Package], profile: UserProfile
    ) -> None:
        """Restore targets the previous state of the latest successful action."""
        journal.record(_record(make_package(), ActionKind.UNINSTALL))
        current = make_package(installed=False)

        request = journal.restore(current, profile)

        assert request.kind == ActionKind.RESTORE
        assert request.target == PackageState(installed=True, enabled=True)
        assert request.package == current

    def test_skips_failed_and_cancelled_records(
        self, journal: UndoJournal, make_package: Callable[..., Package], profile: UserProfile
    ) -> None:
        """Only succeeded records define the prior state."""
        journal.record(_record(make_package(), ActionKind.DISABLE))
        journal.record(_record(make_package(enabled=False), ActionKind.UNINSTALL, Outcome.FAILED))
        journal.record(
            _record(make_package(enabled=False), ActionKind.UNINSTALL, Outcome.CANCELLED)
        )

        request = journal.restore("com.facebook.katana", profile)

        assert request.target == PackageState(installed=True, enabled=True)

    def test_restore_records_are_not_restore_points(
        self, journal: UndoJournal, make_package: Callable[..., Package], profile: UserProfile
    ) -> None:
        """Restoring twice targets the same snapshot."""
        journal.record(_record(make_package(), ActionKind.UNINSTALL))
        journal.record(
            _record(
                make_package(installed=False),
                ActionKind.RESTORE,
                target=PackageState(installed=True, enabled=True),
            )
        )

        request = journal.restore(make_package(), profile)

        assert request.target == PackageState(installed=True, enabled=True)

    def test_identifier_only_assumes_action_result(
        self, journal: UndoJournal, make_package: Callable[..., Package], profile: UserProfile
    ) -> None:
        """Without a snapshot the package is assumed to be in the post-action state."""
        journal.record(_record(make_package(), ActionKind.DISABLE))

        request = journal.restore("com.facebook.katana", profile)

        assert request.package.state == PackageState(installed=True, enabled=False)

    def test_no_prior_state_raises(self, journal: UndoJournal, profile: UserProfile) -> None:
        """A package never acted on has nothing to restore."""
        with pytest.raises(NoPriorState):
            journal.restore("com.facebook.katana", profile)

    def test_no_prior_state_is_planning_error(self) -> None:
        """NoPriorState is reported like any other planning rejection."""
        assert issubclass(NoPriorState, PlanningError)
