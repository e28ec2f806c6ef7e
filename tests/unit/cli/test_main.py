"""Unit tests for the main application and global options."""

import logging

import pytest
from droidctl import __version__
from droidctl.cli.main import app, setup_logging
from typer.testing import CliRunner

runner = CliRunner()


class TestMainApp:
    """Tests for the top-level application."""

    def test_version(self) -> None:
        """--version prints the version and exits."""
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert f"droidctl version {__version__}" in result.stdout

    def test_help_lists_commands(self) -> None:
        """--help lists every command."""
        result = runner.invoke(app, ["--help"])

        assert result.exit_code == 0
        for command in (
            "devices",
            "list",
            "uninstall",
            "disable",
            "enable",
            "clear",
            "restore",
            "info",
            "history",
            "adb",
            "config",
        ):
            assert command in result.stdout


class TestSetupLogging:
    """Tests for setup_logging."""

    @pytest.mark.parametrize(
        ("verbose", "quiet", "level"),
        [
            (False, False, logging.WARNING),
            (True, False, logging.DEBUG),
            (False, True, logging.ERROR),
            (True, True, logging.DEBUG),
        ],
    )
    def test_levels(self, verbose: bool, quiet: bool, level: int) -> None:
        """Verbosity flags pick the root log level."""
        setup_logging(verbose, quiet)
        assert logging.getLogger().level == level
