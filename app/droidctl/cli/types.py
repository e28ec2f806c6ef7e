"""Shared types and helpers for CLI commands.

This module provides the engine factory and device/profile resolution used
across command modules.
"""

from enum import Enum

import typer

from droidctl.core.config import ConfigError, load_config_or_default
from droidctl.core.engine import Engine, create_engine
from droidctl.core.errors import TransportError
from droidctl.core.recommendations import RecommendationsError
from droidctl.models.device import Device, DeviceState, UserProfile
from droidctl.utils.formatting import print_error, print_info


class StateChoice(str, Enum):
    """Package states accepted by ``--state``."""

    ENABLED = "enabled"
    DISABLED = "disabled"
    UNINSTALLED = "uninstalled"


def build_engine() -> Engine:
    """Create the engine from the user's configuration.

    Exits with code 1 if the configuration or recommendation file is invalid.
    """
    try:
        config = load_config_or_default()
        return create_engine(config)
    except (ConfigError, RecommendationsError) as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e


def resolve_device(engine: Engine, serial: str | None) -> Device:
    """Pick the device a command targets.

    Discovers devices, picks ``serial`` (or the first connected device) and
    waits for on-device authorization when needed.

    Exits with code 1 if no usable device is found.
    """
    try:
        devices = engine.registry.discover()
    except TransportError as e:
        print_error(f"Cannot list devices: {e}")
        raise typer.Exit(code=1) from e

    if serial is None:
        candidates = sorted(
            (d for d in devices if d.state != DeviceState.DISCONNECTED),
            key=lambda d: (not d.is_connected, d.serial),
        )
        if not candidates:
            print_error("No device found. Connect a device with USB debugging enabled.")
            raise typer.Exit(code=1)
        device = candidates[0]
    else:
        found = engine.registry.get(serial)
        if found is None or found.state == DeviceState.DISCONNECTED:
            print_error(f"Device '{serial}' not found.")
            raise typer.Exit(code=1)
        device = found

    if device.state == DeviceState.AUTHORIZATION_PENDING:
        print_info(f"Accept the USB debugging prompt on {device.serial}...")
        state = engine.registry.authorize(device.serial)
        if state != DeviceState.CONNECTED:
            print_error(f"Device {device.serial} was not authorized.")
            raise typer.Exit(code=1)
        device = engine.registry.get(device.serial) or device

    if not device.is_connected:
        print_error(f"Device {device.serial} is {device.state.value}.")
        raise typer.Exit(code=1)
    return device


def resolve_profile(device: Device, user: int) -> UserProfile:
    """Return the profile of ``device`` for ``user``.

    Exits with code 1 if the device has no such user.
    """
    try:
        return device.profile(user)
    except KeyError as e:
        users = ", ".join(str(p.user_id) for p in device.profiles) or "none"
        print_error(f"Device {device.serial} has no user {user} (users: {users}).")
        raise typer.Exit(code=1) from e
