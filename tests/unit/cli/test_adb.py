"""Unit tests for the adb diagnostics command."""

from unittest.mock import MagicMock, patch

from droidctl.cli.main import app
from droidctl.core.errors import TransportUnavailable
from typer.testing import CliRunner

runner = CliRunner()


def _transport(available: bool = True) -> MagicMock:
    transport = MagicMock()
    transport.adb_path = "adb"
    transport.is_available.return_value = available
    transport.version.return_value = "Android Debug Bridge version 1.0.41\nVersion 35.0.1"
    return transport


class TestAdbCommand:
    """Tests for the adb command."""

    def test_shows_version(self) -> None:
        """The binary and its version are printed."""
        with patch("droidctl.cli.commands.adb.AdbTransport", return_value=_transport()):
            result = runner.invoke(app, ["adb"])

        assert result.exit_code == 0
        assert "Binary:" in result.stdout
        assert "Android Debug Bridge version 1.0.41" in result.stdout

    def test_missing_binary(self) -> None:
        """A missing adb binary exits with code 1."""
        with patch("droidctl.cli.commands.adb.AdbTransport", return_value=_transport(False)):
            result = runner.invoke(app, ["adb"])

        assert result.exit_code == 1
        assert "platform tools" in result.output

    def test_version_failure(self) -> None:
        """A broken adb binary exits with code 1."""
        transport = _transport()
        transport.version.side_effect = TransportUnavailable("exec format error")
        with patch("droidctl.cli.commands.adb.AdbTransport", return_value=transport):
            result = runner.invoke(app, ["adb"])

        assert result.exit_code == 1
        assert "exec format error" in result.output
