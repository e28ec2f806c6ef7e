"""Unit tests for console formatting helpers."""

from droidctl.models.action import ActionKind, ActionRequest, Outcome, create_action_record
from droidctl.models.device import UserProfile
from droidctl.models.package import Package, Tier
from droidctl.utils.formatting import (
    create_package_table,
    create_record_table,
    format_outcome,
    format_package_row,
)


class TestPackageRows:
    """Tests for package table helpers."""

    def test_table_columns(self) -> None:
        """The package table has one column per row field."""
        table = create_package_table()
        assert [c.header for c in table.columns] == [
            "Package",
            "State",
            "Tier",
            "Sys",
            "Description",
        ]

    def test_format_row(self) -> None:
        """Rows carry state and tier styles."""
        pkg = Package(
            "com.android.chrome",
            UserProfile("ABC123"),
            enabled=False,
            system=True,
            tier=Tier.UNSAFE,
            description="Default browser\nSecond line",
        )

        name, state, tier, system, description = format_package_row(pkg)

        assert "com.android.chrome" in name
        assert state == "[state.disabled]disabled[/]"
        assert tier == "[tier.unsafe]unsafe[/]"
        assert system == "●"
        assert description == "Default browser"

    def test_format_row_without_description(self) -> None:
        """Missing descriptions show a dash."""
        row = format_package_row(Package("com.x", UserProfile("ABC123")))
        assert row[4] == "-"
        assert row[3] == ""


class TestRecordRows:
    """Tests for record table helpers."""

    def test_record_table_columns(self) -> None:
        """The record table lists id, date, profile, action, package, outcome and retries."""
        assert len(create_record_table().columns) == 7

    def test_format_outcome(self) -> None:
        """Outcomes are colored by result."""
        request = ActionRequest(Package("com.x", UserProfile("ABC123")), ActionKind.DISABLE)
        assert format_outcome(create_action_record(request, Outcome.FAILED)) == (
            "[error]failed[/]"
        )
        assert format_outcome(create_action_record(request, Outcome.SUCCEEDED)) == (
            "[success]succeeded[/]"
        )
