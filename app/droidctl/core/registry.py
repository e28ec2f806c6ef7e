"""Device registry.

Tracks the devices reported by the transport, their connection state and
their user profiles. The registry owns every :class:`Device` by value,
keyed by serial; everything else refers to a device through its serial.
"""

import logging
import threading
import time
from collections.abc import Callable

from droidctl.core.errors import TransportError
from droidctl.models.device import Device, DeviceState, UserProfile
from droidctl.transport.base import Transport

logger = logging.getLogger(__name__)

# Raw transport states mapped to registry states. Anything else is FAILED.
_STATE_MAP: dict[str, DeviceState] = {
    "device": DeviceState.CONNECTED,
    "unauthorized": DeviceState.AUTHORIZATION_PENDING,
    "authorizing": DeviceState.CONNECTING,
    "connecting": DeviceState.CONNECTING,
}

# States worth polling again while waiting for authorization.
_WAITING_STATES = frozenset(
    {DeviceState.AUTHORIZATION_PENDING, DeviceState.CONNECTING, DeviceState.FAILED}
)


def map_transport_state(raw: str) -> DeviceState:
    """Translate a raw transport device state."""
    return _STATE_MAP.get(raw.strip().lower(), DeviceState.FAILED)


class DeviceRegistry:
    """Registry of discovered devices.

    Devices that disappear from a poll are marked DISCONNECTED rather than
    dropped, so a flaky cable does not lose their profiles.

    Attributes:
        authorization_timeout: Seconds :meth:`authorize` waits for approval.
        poll_interval: Seconds between authorization polls.
    """

    def __init__(
        self,
        transport: Transport,
        authorization_timeout: float = 30.0,
        poll_interval: float = 1.0,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._transport = transport
        self._authorization_timeout = authorization_timeout
        self._poll_interval = poll_interval
        self._clock = clock
        self._sleep = sleep
        self._devices: dict[str, Device] = {}
        self._lock = threading.Lock()

    @property
    def authorization_timeout(self) -> float:
        return self._authorization_timeout

    @property
    def poll_interval(self) -> float:
        return self._poll_interval

    def discover(self) -> set[Device]:
        """Poll the transport and update every known device.

        Safe to call repeatedly.

        Returns:
            All known devices, including disconnected ones.

        Raises:
            TransportUnavailable: If the transport cannot list devices.
        """
        reported = dict(self._transport.devices())

        for serial, raw_state in reported.items():
            if not serial:
                continue
            self._update(serial, map_transport_state(raw_state))

        with self._lock:
            missing = [s for s in self._devices if s not in reported]
        for serial in missing:
            self.mark_disconnected(serial)

        logger.debug("Discovered %d device(s), %d missing", len(reported), len(missing))
        return set(self.devices())

    def authorize(self, serial: str, cancel: threading.Event | None = None) -> DeviceState:
        """Wait for a device to become usable.

        Polls the transport until the device reports as connected, the
        authorization timeout elapses, or ``cancel`` is set.

        Args:
            serial: Device serial.
            cancel: Optional cancellation token, checked between polls.

        Returns:
            CONNECTED, AUTHORIZATION_PENDING (cancelled while waiting) or FAILED.
        """
        self._set_state(serial, DeviceState.CONNECTING)
        deadline = self._clock() + self._authorization_timeout

        while True:
            try:
                reported = dict(self._transport.devices())
            except TransportError as e:
                logger.warning("Device poll failed while authorizing %s: %s", serial, e)
                reported = {}

            state = map_transport_state(reported[serial]) if serial in reported else None
            if state == DeviceState.CONNECTED:
                self._update(serial, DeviceState.CONNECTED)
                logger.info("Device %s authorized", serial)
                return DeviceState.CONNECTED

            if state is not None and state in _WAITING_STATES:
                self._set_state(serial, DeviceState.AUTHORIZATION_PENDING)

            if self._clock() >= deadline:
                logger.warning(
                    "Authorization of %s timed out after %.1fs",
                    serial,
                    self._authorization_timeout,
                )
                self._set_state(serial, DeviceState.FAILED)
                return DeviceState.FAILED

            if cancel is not None:
                if cancel.wait(self._poll_interval):
                    self._set_state(serial, DeviceState.AUTHORIZATION_PENDING)
                    return DeviceState.AUTHORIZATION_PENDING
            else:
                self._sleep(self._poll_interval)

    def get(self, serial: str) -> Device | None:
        """Return a device by serial."""
        with self._lock:
            return self._devices.get(serial)

    def devices(self) -> list[Device]:
        """Return all known devices sorted by serial."""
        with self._lock:
            return [self._devices[s] for s in sorted(self._devices)]

    def connected(self) -> list[Device]:
        """Return connected devices sorted by serial."""
        return [d for d in self.devices() if d.is_connected]

    def profiles(self, serial: str) -> tuple[UserProfile, ...]:
        """Return the profiles of a device.

        Raises:
            KeyError: If the device is unknown.
        """
        device = self.get(serial)
        if device is None:
            msg = f"Unknown device: {serial}"
            raise KeyError(msg)
        return device.profiles

    def mark_disconnected(self, serial: str) -> None:
        """Mark a device as disconnected (unplugged or unreachable)."""
        self._set_state(serial, DeviceState.DISCONNECTED)

    def forget(self, serial: str) -> None:
        """Drop a device from the registry."""
        with self._lock:
            self._devices.pop(serial, None)

    def _update(self, serial: str, state: DeviceState) -> None:
        """Store a new state, reloading profiles for connected devices."""
        with self._lock:
            previous = self._devices.get(serial)
        profiles = previous.profiles if previous is not None else ()

        if state == DeviceState.CONNECTED:
            profiles = self._load_profiles(serial, profiles)

        with self._lock:
            self._devices[serial] = Device(serial=serial, state=state, profiles=profiles)

    def _set_state(self, serial: str, state: DeviceState) -> None:
        with self._lock:
            previous = self._devices.get(serial)
            profiles = previous.profiles if previous is not None else ()
            if previous is not None and previous.state == state:
                return
            self._devices[serial] = Device(serial=serial, state=state, profiles=profiles)

    def _load_profiles(
        self,
        serial: str,
        fallback: tuple[UserProfile, ...],
    ) -> tuple[UserProfile, ...]:
        """List user profiles, keeping the previous ones if the device won't say."""
        try:
            user_ids = self._transport.list_users(serial)
        except TransportError as e:
            logger.warning("Cannot list users on %s: %s", serial, e)
            return fallback or (UserProfile(device_serial=serial, user_id=0),)

        if not user_ids:
            user_ids = [0]
        return tuple(UserProfile(device_serial=serial, user_id=uid) for uid in user_ids)
