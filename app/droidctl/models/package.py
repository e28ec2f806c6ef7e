"""Package models for device inventory and classification.

This module defines the snapshot of an installed Android package on one
user profile, and the safety tier attached to it by the recommendation
lookup.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any

from droidctl.models.device import UserProfile


class Tier(str, Enum):
    """Curated safety classification of a package's removability.

    Attributes:
        RECOMMENDED: Safe to remove for nearly everyone.
        ADVANCED: Removal disables some expected features.
        EXPERT: Removal may break important functionality.
        UNSAFE: Removal can soft-brick the device.
        UNLISTED: No entry in the recommendation database.
    """

    RECOMMENDED = "recommended"
    ADVANCED = "advanced"
    EXPERT = "expert"
    UNSAFE = "unsafe"
    UNLISTED = "unlisted"


@dataclass(frozen=True, slots=True)
class PackageState:
    """Installed/enabled flags of a package on one profile.

    This is the snapshot stored in journal records and targeted by restores.
    """

    installed: bool
    enabled: bool

    def to_dict(self) -> dict[str, bool]:
        """Serialize to dictionary for JSON storage."""
        return {"installed": self.installed, "enabled": self.enabled}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PackageState:
        """Deserialize from dictionary.

        Raises:
            KeyError: If a flag is missing.
        """
        return cls(installed=bool(data["installed"]), enabled=bool(data["enabled"]))

    @property
    def label(self) -> str:
        """Short human-readable state name."""
        if not self.installed:
            return "uninstalled"
        return "enabled" if self.enabled else "disabled"


@dataclass(frozen=True, slots=True)
class Package:
    """Represents a package discovered on a user profile.

    Immutable snapshot data. The inventory replaces snapshots wholesale on
    refresh; only the executor produces a changed copy after a successful
    action.

    Attributes:
        identifier: Android package name (e.g., 'com.example.bloat').
        profile: User profile this snapshot belongs to.
        installed: Whether the package is installed for the profile.
        enabled: Whether the package is enabled for the profile.
        system: Whether the package ships on the system image.
        label: Human label (defaults to the identifier).
        tier: Safety tier attached at refresh time.
        description: Recommendation description attached at refresh time.
        list_name: Curated list the recommendation comes from.
    """

    identifier: str
    profile: UserProfile
    installed: bool = True
    enabled: bool = True
    system: bool = False
    label: str = ""
    tier: Tier = Tier.UNLISTED
    description: str | None = field(default=None)
    list_name: str | None = None

    def __post_init__(self) -> None:
        """Validate package data after initialization."""
        if not self.identifier:
            msg = "Package identifier cannot be empty"
            raise ValueError(msg)
        if not self.label:
            object.__setattr__(self, "label", self.identifier)

    @property
    def state(self) -> PackageState:
        """Current installed/enabled flags."""
        return PackageState(installed=self.installed, enabled=self.enabled)

    @property
    def is_listed(self) -> bool:
        """Check if the recommendation database knows this package."""
        return self.tier != Tier.UNLISTED

    def with_state(self, state: PackageState) -> Package:
        """Return a copy carrying the given installed/enabled flags."""
        return replace(self, installed=state.installed, enabled=state.enabled)


@dataclass(frozen=True, slots=True)
class Recommendation:
    """Entry of the curated recommendation database.

    Attributes:
        tier: Safety tier.
        description: Free-text description of the package.
        list_name: Curated list the entry belongs to (e.g., 'Oem', 'Google').
        dependencies: Packages this one depends on.
        needed_by: Packages depending on this one.
        labels: Free-form tags.
    """

    tier: Tier
    description: str | None = None
    list_name: str | None = None
    dependencies: tuple[str, ...] = ()
    needed_by: tuple[str, ...] = ()
    labels: tuple[str, ...] = ()

    @classmethod
    def unlisted(cls) -> Recommendation:
        """Null entry for packages missing from the database."""
        return cls(tier=Tier.UNLISTED)
