"""Error taxonomy for device operations and planning.

Transport errors are raised by transport verbs and captured per record by
the executor. Planning errors are raised before any device is touched.
"""


class DroidctlError(Exception):
    """Base exception for droidctl errors."""


class TransportError(DroidctlError):
    """Base exception for errors reported by the device transport.

    Attributes:
        serial: Serial of the device the command targeted, if any.
    """

    #: Whether the executor may retry the command.
    transient: bool = False

    def __init__(self, message: str, serial: str | None = None) -> None:
        super().__init__(message)
        self.serial = serial


class TransportUnavailable(TransportError):
    """Raised when the device (or the transport itself) is unreachable."""


class TransientCommandFailure(TransportError):
    """Raised for failures worth retrying (timeouts, momentary unauthorization)."""

    transient = True


class PermissionDenied(TransportError):
    """Raised when the device refuses the command for lack of permission."""


class PackageNotFound(TransportError):
    """Raised when the target package does not exist for the user."""


class CommandFailed(TransportError):
    """Raised when the device rejects a command for any other reason."""


class PlanningError(DroidctlError):
    """Raised when a selection cannot be turned into a plan.

    Attributes:
        reason: Human-readable reason for the rejection.
    """

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


class NoPriorState(PlanningError):
    """Raised when a restore is requested without a journal record to restore from."""
