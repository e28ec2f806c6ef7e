"""Device and user profile models.

Devices are owned by the registry and keyed by serial. Profiles refer back
to their device through the serial only, so no object holds a reference to
its owner.
"""

from dataclasses import dataclass, field
from enum import Enum


class DeviceState(str, Enum):
    """Connection state of a device.

    Attributes:
        DISCONNECTED: Not reported by the transport (or explicitly unplugged).
        CONNECTING: Authorization in progress.
        CONNECTED: Reachable and authorized.
        AUTHORIZATION_PENDING: Waiting for the user to accept the debug prompt.
        FAILED: Authorization timed out or the device reported an unusable state.
    """

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    AUTHORIZATION_PENDING = "authorization_pending"
    FAILED = "failed"


@dataclass(frozen=True, slots=True, order=True)
class UserProfile:
    """An Android user (multi-user account) on a device.

    Attributes:
        device_serial: Serial of the owning device.
        user_id: Numeric Android user id (0 is the primary user).
    """

    device_serial: str
    user_id: int = 0

    def __post_init__(self) -> None:
        """Validate profile data after initialization."""
        if not self.device_serial:
            msg = "Device serial cannot be empty"
            raise ValueError(msg)
        if self.user_id < 0:
            msg = f"User id must be non-negative, got {self.user_id}"
            raise ValueError(msg)

    @property
    def key(self) -> str:
        """Stable string key, e.g. ``ABC123/0``."""
        return f"{self.device_serial}/{self.user_id}"


@dataclass(frozen=True, slots=True)
class Device:
    """A device known to the registry.

    Attributes:
        serial: Transport serial identifier.
        state: Current connection state.
        profiles: User profiles in the order reported by the device.
    """

    serial: str
    state: DeviceState = DeviceState.DISCONNECTED
    profiles: tuple[UserProfile, ...] = field(default=())

    def __post_init__(self) -> None:
        """Validate device data after initialization."""
        if not self.serial:
            msg = "Device serial cannot be empty"
            raise ValueError(msg)

    @property
    def is_connected(self) -> bool:
        """Check if the device can accept commands."""
        return self.state == DeviceState.CONNECTED

    def profile(self, user_id: int = 0) -> UserProfile:
        """Return the profile with the given user id.

        Raises:
            KeyError: If the device has no such profile.
        """
        for profile in self.profiles:
            if profile.user_id == user_id:
                return profile
        msg = f"Device {self.serial} has no user {user_id}"
        raise KeyError(msg)
