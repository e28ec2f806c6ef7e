"""Unit tests for history command.

Tests for the CLI history command implementation.
"""

import json
from collections.abc import Callable
from unittest.mock import patch

import pytest
from droidctl.cli.main import app
from droidctl.core.journal import UndoJournal
from droidctl.models.action import ActionKind, ActionRecord, ActionRequest, Outcome
from droidctl.models.device import UserProfile
from droidctl.models.package import Package, PackageState
from typer.testing import CliRunner

runner = CliRunner()


@pytest.fixture
def sample_records(make_package: Callable[..., Package]) -> list[ActionRecord]:
    """Three records on two devices, oldest first."""
    other = UserProfile("XYZ789", 0)
    return [
        ActionRecord(
            id="abc123456789",
            timestamp="2026-01-26T14:25:00+00:00",
            request=ActionRequest(make_package(), ActionKind.UNINSTALL),
            previous=PackageState(installed=True, enabled=True),
            outcome=Outcome.SUCCEEDED,
        ),
        ActionRecord(
            id="def678901234",
            timestamp="2026-01-26T14:30:00+00:00",
            request=ActionRequest(make_package("com.example.news"), ActionKind.DISABLE),
            previous=PackageState(installed=True, enabled=True),
            outcome=Outcome.FAILED,
            retry_count=2,
            error="Failure [DELETE_FAILED_INTERNAL_ERROR]",
        ),
        ActionRecord(
            id="ghi234567890",
            timestamp="2026-01-26T14:35:00+00:00",
            request=ActionRequest(
                make_package("com.example.news", profile=other), ActionKind.DISABLE
            ),
            previous=PackageState(installed=True, enabled=True),
            outcome=Outcome.SUCCEEDED,
        ),
    ]


@pytest.fixture
def filled_journal(journal: UndoJournal, sample_records: list[ActionRecord]) -> UndoJournal:
    for record in sample_records:
        journal.record(record)
    return journal


def _invoke(journal: UndoJournal, *args: str):
    with patch("droidctl.cli.commands.history.UndoJournal", return_value=journal):
        return runner.invoke(app, ["history", *args])


class TestHistoryCommand:
    """Tests for the history command."""

    def test_help(self) -> None:
        """History help lists its options."""
        result = runner.invoke(app, ["history", "--help"])
        assert result.exit_code == 0
        assert "--limit" in result.stdout
        assert "--package" in result.stdout

    def test_empty_journal(self, journal: UndoJournal) -> None:
        """An empty journal is reported."""
        result = _invoke(journal)
        assert result.exit_code == 0
        assert "No journal records found" in result.stdout

    def test_json_newest_first(self, filled_journal: UndoJournal) -> None:
        """--json prints records newest first."""
        result = _invoke(filled_journal, "--json")

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert [d["id"] for d in data] == ["ghi234567890", "def678901234", "abc123456789"]
        assert data[1]["retry_count"] == 2
        assert data[1]["error"] == "Failure [DELETE_FAILED_INTERNAL_ERROR]"

    def test_filter_by_device(self, filled_journal: UndoJournal) -> None:
        """--device keeps records of one device."""
        result = _invoke(filled_journal, "--device", "XYZ789", "--json")
        assert [d["id"] for d in json.loads(result.stdout)] == ["ghi234567890"]

    def test_filter_by_package(self, filled_journal: UndoJournal) -> None:
        """--package keeps records of one package."""
        result = _invoke(filled_journal, "-p", "com.facebook.katana", "--json")
        assert [d["id"] for d in json.loads(result.stdout)] == ["abc123456789"]

    def test_limit(self, filled_journal: UndoJournal) -> None:
        """--limit caps the number of records."""
        result = _invoke(filled_journal, "-n", "1", "--json")
        assert len(json.loads(result.stdout)) == 1

    def test_table(self, filled_journal: UndoJournal) -> None:
        """The default output is a table with short ids and timestamps."""
        result = _invoke(filled_journal)

        assert result.exit_code == 0
        assert "ghi23456" in result.stdout
        assert "2026-01-26 14:35" in result.stdout

    def test_no_match(self, filled_journal: UndoJournal) -> None:
        """Filters matching nothing report an empty journal."""
        result = _invoke(filled_journal, "-d", "NOPE")
        assert "No journal records found" in result.stdout
