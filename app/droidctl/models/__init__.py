"""Data models for droidctl.

This module exports the core data structures used throughout the application.
"""

from droidctl.models.action import (
    ActionKind,
    ActionRecord,
    ActionRequest,
    Outcome,
    Plan,
    SkippedAction,
    create_action_record,
)
from droidctl.models.device import Device, DeviceState, UserProfile
from droidctl.models.package import Package, PackageState, Recommendation, Tier
from droidctl.models.session import SessionHandle, SessionProgress

__all__ = [
    "ActionKind",
    "ActionRecord",
    "ActionRequest",
    "Device",
    "DeviceState",
    "Outcome",
    "Package",
    "PackageState",
    "Plan",
    "Recommendation",
    "SessionHandle",
    "SessionProgress",
    "SkippedAction",
    "Tier",
    "UserProfile",
    "create_action_record",
]
