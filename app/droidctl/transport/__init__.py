"""Device transports.

This module exports the transport interface and the adb-backed implementation.
"""

from droidctl.transport.adb import AdbTransport
from droidctl.transport.base import Transport

__all__ = ["AdbTransport", "Transport"]
