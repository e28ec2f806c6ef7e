"""ADB transport implementation.

Drives devices through the system ``adb`` binary.
"""

import logging
import subprocess

from droidctl.core.errors import TransientCommandFailure, TransportUnavailable
from droidctl.transport.base import Transport
from droidctl.utils.shell import CommandResult, command_exists, run_command

logger = logging.getLogger(__name__)


class AdbTransport(Transport):
    """Transport backed by the system ``adb`` binary.

    Attributes:
        adb_path: adb executable to invoke.
        timeout: Seconds before a command counts as timed out.
    """

    def __init__(self, adb_path: str = "adb", timeout: float = 30.0) -> None:
        """Initialize the transport.

        Args:
            adb_path: adb executable to invoke.
            timeout: Seconds before a command counts as timed out.
        """
        self._adb_path = adb_path
        self._timeout = timeout

    @property
    def adb_path(self) -> str:
        """adb executable in use."""
        return self._adb_path

    @property
    def timeout(self) -> float:
        """Command timeout in seconds."""
        return self._timeout

    def is_available(self) -> bool:
        """Check if the adb binary can be found."""
        return command_exists(self._adb_path)

    def version(self) -> str:
        """Return the ``adb version`` output.

        Raises:
            TransportUnavailable: If adb cannot be run.
        """
        result = self._adb(["version"])
        if not result.success:
            raise TransportUnavailable(result.output or "adb version failed")
        return result.stdout.strip()

    def devices(self) -> list[tuple[str, str]]:
        """List attached devices via ``adb devices``.

        Raises:
            TransportUnavailable: If the adb server cannot be reached.
        """
        result = self._adb(["devices"])
        if not result.success:
            raise TransportUnavailable(result.output or "adb devices failed")

        devices: list[tuple[str, str]] = []
        for line in result.stdout.splitlines()[1:]:  # header
            if "\t" not in line:
                continue
            serial, state = line.split("\t", 1)
            devices.append((serial.strip(), state.strip()))
        return devices

    def shell(self, serial: str, command: list[str]) -> CommandResult:
        """Run ``adb -s SERIAL shell COMMAND``."""
        args = ["-s", serial, "shell", *command] if serial else ["shell", *command]
        return self._adb(args, serial=serial)

    def _adb(self, args: list[str], serial: str | None = None) -> CommandResult:
        """Run adb with the given arguments.

        Raises:
            TransportUnavailable: If adb is missing or cannot be executed.
            TransientCommandFailure: If the command timed out.
        """
        cmd = [self._adb_path, *args]
        logger.info("Running command: %s", " ".join(cmd))
        try:
            return run_command(cmd, timeout=self._timeout)
        except subprocess.TimeoutExpired as e:
            msg = f"Command timed out after {self._timeout:g}s: {' '.join(cmd)}"
            raise TransientCommandFailure(msg, serial=serial) from e
        except FileNotFoundError as e:
            msg = f"Cannot run {self._adb_path}, likely not installed"
            raise TransportUnavailable(msg, serial=serial) from e
        except OSError as e:
            raise TransportUnavailable(f"Cannot run {self._adb_path}: {e}", serial=serial) from e
