"""Subprocess helpers for driving the adb binary.

AdbTransport runs every adb invocation through ``run_command``; the raw
streams are returned untouched so the transport can classify failures
that adb reports on either stream.
"""

import shutil
import subprocess
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class CommandResult:
    """Raw outcome of one adb (or device shell) command.

    Attributes:
        stdout: Standard output, decoded with replacement for invalid bytes.
        stderr: Standard error, decoded the same way.
        returncode: Exit status; ``pm`` may exit 0 on failure.
    """

    stdout: str
    stderr: str
    returncode: int

    @property
    def success(self) -> bool:
        """Check if the command exited with status 0."""
        return self.returncode == 0

    @property
    def output(self) -> str:
        """Combined stdout and stderr, stripped.

        adb prints some errors on stdout, so both streams are inspected.
        """
        return "\n".join(part for part in (self.stdout.strip(), self.stderr.strip()) if part)


def run_command(args: list[str], *, timeout: float | None = 60.0) -> CommandResult:
    """Run a command to completion and capture its output.

    stdin is closed: ``adb shell`` would otherwise read from the terminal.

    Args:
        args: Executable and arguments, e.g. ``["adb", "-s", serial, "shell", ...]``.
        timeout: Seconds before the command is killed.

    Returns:
        CommandResult with stdout, stderr and returncode.

    Raises:
        subprocess.TimeoutExpired: If the command exceeds ``timeout``.
        FileNotFoundError: If the executable is not found.
    """
    result = subprocess.run(
        args,
        stdin=subprocess.DEVNULL,
        capture_output=True,
        text=True,
        errors="replace",
        check=False,
        timeout=timeout,
    )
    return CommandResult(
        stdout=result.stdout,
        stderr=result.stderr,
        returncode=result.returncode,
    )


def command_exists(name: str) -> bool:
    """Check if an executable (by name or path) can be found."""
    return shutil.which(name) is not None
