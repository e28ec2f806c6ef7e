"""Pytest configuration and shared fixtures.

This module contains fixtures used across all test modules.
"""

from collections.abc import Callable
from pathlib import Path

import pytest
from droidctl.core.config import DroidctlConfig
from droidctl.core.engine import Engine, create_engine
from droidctl.core.journal import UndoJournal
from droidctl.core.recommendations import StaticRecommendations
from droidctl.models.device import UserProfile
from droidctl.models.package import Package, Recommendation, Tier
from fakes import SERIAL, FakeTransport


@pytest.fixture
def transport() -> FakeTransport:
    """A fake device ABC123 with a handful of packages on user 0."""
    fake = FakeTransport()
    fake.add_device(SERIAL)
    fake.add_package(SERIAL, "com.facebook.katana")
    fake.add_package(SERIAL, "com.samsung.android.bixby.agent", system=True)
    fake.add_package(SERIAL, "com.android.chrome", system=True)
    fake.add_package(SERIAL, "com.example.sleepy", enabled=False)
    return fake


@pytest.fixture
def recommendations() -> StaticRecommendations:
    """Lookup with a few curated entries."""
    return StaticRecommendations(
        {
            "com.facebook.katana": Recommendation(
                tier=Tier.RECOMMENDED,
                description="Facebook app",
                list_name="Misc",
                needed_by=("com.facebook.orca",),
                labels=("social",),
            ),
            "com.samsung.android.bixby.agent": Recommendation(
                tier=Tier.ADVANCED, description="Bixby voice assistant", list_name="Oem"
            ),
            "com.android.chrome": Recommendation(
                tier=Tier.UNSAFE, description="Default browser", list_name="Google"
            ),
        }
    )


@pytest.fixture
def journal(tmp_path: Path) -> UndoJournal:
    """Journal in a temporary state directory."""
    return UndoJournal(state_dir=tmp_path / "state")


@pytest.fixture
def fast_config() -> DroidctlConfig:
    """Config without backoff delays."""
    return DroidctlConfig(backoff_base=0.0, backoff_max=0.0, authorization_timeout=0.0)


@pytest.fixture
def engine(
    transport: FakeTransport,
    journal: UndoJournal,
    recommendations: StaticRecommendations,
    fast_config: DroidctlConfig,
) -> Engine:
    """Engine wired to the fake transport."""
    return create_engine(
        fast_config,
        transport=transport,
        journal=journal,
        lookup=recommendations,
    )


@pytest.fixture
def profile() -> UserProfile:
    """User 0 of ABC123."""
    return UserProfile(device_serial=SERIAL, user_id=0)


@pytest.fixture
def make_package(profile: UserProfile) -> Callable[..., Package]:
    """Factory for packages on the default profile."""

    def _make(identifier: str = "com.facebook.katana", **kwargs: object) -> Package:
        kwargs.setdefault("profile", profile)
        return Package(identifier=identifier, **kwargs)  # type: ignore[arg-type]

    return _make
