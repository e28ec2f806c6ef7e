"""Abstract base class for device transports.

This module defines the Transport interface used to talk to devices, and
implements the package-manager verbs on top of a single ``shell`` primitive.
Every verb either returns a confirmed result or raises one of the errors in
:mod:`droidctl.core.errors`.
"""

import logging
from abc import ABC, abstractmethod

from droidctl.core.errors import (
    CommandFailed,
    PackageNotFound,
    PermissionDenied,
    TransientCommandFailure,
    TransportUnavailable,
)
from droidctl.utils.shell import CommandResult

logger = logging.getLogger(__name__)

PACKAGE_PREFIX = "package:"

# Output markers, matched case-insensitively against non-listing lines.
_UNAUTHORIZED_MARKERS = ("device unauthorized", "unauthorized")
_UNAVAILABLE_MARKERS = (
    "device offline",
    "no devices/emulators found",
    "device not found",
)
_TRANSIENT_MARKERS = ("error: closed", "protocol fault", "connection reset")
_NOT_FOUND_MARKERS = (
    "unknown package",
    "doesn't exist",
    "does not exist",
    "not installed for",
    "namenotfoundexception",
)
_PERMISSION_MARKERS = (
    "securityexception",
    "permission denial",
    "not allowed",
    "delete_failed_user_restricted",
    "delete_failed_device_policy_manager",
    "cannot disable",
)
_FAILURE_MARKERS = ("failure", "error:", "exception", "failed")


class Transport(ABC):
    """Abstract base class for device transports.

    Transports run shell commands on a device keyed by serial and expose
    the package-manager verbs the engine needs. They do not retry; retry is
    the executor's job.

    Example:
        >>> transport = AdbTransport()
        >>> for serial, state in transport.devices():
        ...     print(serial, state)
    """

    @abstractmethod
    def devices(self) -> list[tuple[str, str]]:
        """List attached devices as ``(serial, state)`` pairs.

        State is the raw transport state (``device``, ``unauthorized``,
        ``offline``, ...).

        Raises:
            TransportUnavailable: If the transport itself cannot be reached.
        """

    @abstractmethod
    def shell(self, serial: str, command: list[str]) -> CommandResult:
        """Run a shell command on a device.

        Args:
            serial: Device serial.
            command: Command and arguments.

        Returns:
            Raw CommandResult, not yet checked for success.

        Raises:
            TransportUnavailable: If the device or transport is unreachable.
            TransientCommandFailure: If the command timed out.
        """

    def check_result(
        self,
        serial: str,
        result: CommandResult,
        command: list[str] | None = None,
    ) -> CommandResult:
        """Confirm a command result or raise the matching error.

        The exit status alone under-reports failures (``pm`` exits 0 on
        several failures), so the output is scanned for failure markers as
        well. Lines of package listings are ignored, and package names from
        ``command`` are masked since ``pm`` echoes them back.

        Args:
            serial: Device serial the command ran on.
            result: Raw command result.
            command: The command that produced the result.

        Returns:
            The same result when the command is confirmed successful.

        Raises:
            TransientCommandFailure: Momentary unauthorization or dropped connection.
            TransportUnavailable: Device offline or gone.
            PackageNotFound: Target package unknown for the user.
            PermissionDenied: Device refused the command.
            CommandFailed: Any other reported failure.
        """
        text = "\n".join(
            line
            for line in result.output.splitlines()
            if not line.strip().startswith(PACKAGE_PREFIX)
        )
        message = text.strip() or f"command exited with status {result.returncode}"
        for arg in command or ():
            if "." in arg and not arg.startswith("-"):
                text = text.replace(arg, "<package>")
        lowered = text.lower()

        if any(marker in lowered for marker in _UNAUTHORIZED_MARKERS):
            raise TransientCommandFailure(message, serial=serial)
        if any(marker in lowered for marker in _UNAVAILABLE_MARKERS) or (
            "error: device" in lowered and "not found" in lowered
        ):
            raise TransportUnavailable(message, serial=serial)
        if any(marker in lowered for marker in _TRANSIENT_MARKERS):
            raise TransientCommandFailure(message, serial=serial)
        if any(marker in lowered for marker in _NOT_FOUND_MARKERS):
            raise PackageNotFound(message, serial=serial)
        if any(marker in lowered for marker in _PERMISSION_MARKERS):
            raise PermissionDenied(message, serial=serial)
        if not result.success or any(marker in lowered for marker in _FAILURE_MARKERS):
            raise CommandFailed(message, serial=serial)
        return result

    def run(self, serial: str, command: list[str]) -> CommandResult:
        """Run a shell command and confirm its result."""
        return self.check_result(serial, self.shell(serial, command), command)

    def list_packages(
        self,
        serial: str,
        user_id: int | None = None,
        flags: tuple[str, ...] = (),
    ) -> list[str]:
        """Run ``pm list packages`` with the ``package:`` prefix stripped.

        Args:
            serial: Device serial.
            user_id: Restrict to a user; None lets the device pick.
            flags: Extra ``pm list packages`` flags (``-u``, ``-d``, ``-e``, ``-s``).

        Returns:
            Package identifiers in device order. Not guaranteed unique.
        """
        command = ["pm", "list", "packages", *flags]
        if user_id is not None:
            command.extend(["--user", str(user_id)])
        result = self.run(serial, command)

        packages: list[str] = []
        for line in result.stdout.splitlines():
            line = line.strip()
            if not line.startswith(PACKAGE_PREFIX):
                continue
            identifier = line[len(PACKAGE_PREFIX) :].strip()
            if identifier:
                packages.append(identifier)
        return packages

    def list_users(self, serial: str) -> list[int]:
        """Run ``pm list users`` and return the user ids.

        Expected line shape: ``UserInfo{<id>:<name>:<flags>} running``.
        """
        result = self.run(serial, ["pm", "list", "users"])

        users: list[int] = []
        for line in result.stdout.splitlines():
            line = line.strip()
            if not line.startswith("UserInfo{"):
                continue
            head = line[len("UserInfo{") :].split(":", 1)[0]
            try:
                users.append(int(head))
            except ValueError:
                logger.debug("Skipping malformed user line: %r", line[:100])
        return users

    def uninstall(self, serial: str, user_id: int, package: str) -> CommandResult:
        """Uninstall a package for one user, keeping its data."""
        return self.run(serial, ["pm", "uninstall", "-k", "--user", str(user_id), package])

    def disable(self, serial: str, user_id: int, package: str) -> CommandResult:
        """Disable a package for one user."""
        return self.run(serial, ["pm", "disable-user", "--user", str(user_id), package])

    def enable(self, serial: str, user_id: int, package: str) -> CommandResult:
        """Enable a package for one user."""
        return self.run(serial, ["pm", "enable", "--user", str(user_id), package])

    def clear_data(self, serial: str, user_id: int, package: str) -> CommandResult:
        """Clear a package's application data for one user."""
        return self.run(serial, ["pm", "clear", "--user", str(user_id), package])

    def install_existing(self, serial: str, user_id: int, package: str) -> CommandResult:
        """Reinstall a package that is still present on the system image."""
        return self.run(
            serial,
            ["cmd", "package", "install-existing", "--user", str(user_id), package],
        )
