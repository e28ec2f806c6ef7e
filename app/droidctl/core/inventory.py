"""Per-profile package inventory.

Snapshots are rebuilt from the device on every refresh and swapped in
whole, so readers never see a half-refreshed list. Tiers are attached from
the recommendation lookup at refresh time and never stored anywhere else.
"""

import logging
import threading
from collections.abc import Iterable
from dataclasses import replace

from droidctl.core.recommendations import RecommendationLookup
from droidctl.models.action import ActionRecord
from droidctl.models.device import UserProfile
from droidctl.models.package import Package, PackageState, Tier
from droidctl.transport.base import Transport

logger = logging.getLogger(__name__)


class PackageInventory:
    """Package snapshots keyed by user profile.

    Single writer per profile (refresh or executor update), many readers.
    """

    def __init__(self, transport: Transport, lookup: RecommendationLookup) -> None:
        self._transport = transport
        self._lookup = lookup
        self._snapshots: dict[UserProfile, tuple[Package, ...]] = {}
        self._lock = threading.Lock()

    @property
    def lookup(self) -> RecommendationLookup:
        """Recommendation lookup used to attach tiers."""
        return self._lookup

    def refresh(self, profile: UserProfile) -> tuple[Package, ...]:
        """Rebuild the snapshot of a profile from the device.

        An empty profile yields an empty snapshot, not an error.

        Args:
            profile: Profile to scan.

        Returns:
            Packages sorted by identifier.

        Raises:
            TransportError: If any listing fails; the previous snapshot is kept.
        """
        serial = profile.device_serial
        user = profile.user_id

        # -u includes packages uninstalled for the user but kept on the system image
        every = self._transport.list_packages(serial, user, ("-u",))
        installed = set(self._transport.list_packages(serial, user))
        disabled = set(self._transport.list_packages(serial, user, ("-d",)))
        system = set(self._transport.list_packages(serial, user, ("-s", "-u")))

        packages = tuple(
            self._classify(
                Package(
                    identifier=identifier,
                    profile=profile,
                    installed=identifier in installed,
                    enabled=identifier not in disabled,
                    system=identifier in system,
                )
            )
            for identifier in sorted(set(every) | installed)
        )

        with self._lock:
            self._snapshots[profile] = packages

        logger.info("Refreshed %s: %d package(s)", profile.key, len(packages))
        return packages

    def reclassify(self, profile: UserProfile) -> tuple[Package, ...]:
        """Reattach tiers from the current lookup without touching the device."""
        with self._lock:
            current = self._snapshots.get(profile, ())
            packages = tuple(self._classify(pkg) for pkg in current)
            self._snapshots[profile] = packages
        return packages

    def snapshot(self, profile: UserProfile) -> tuple[Package, ...]:
        """Return the latest complete snapshot (empty if never refreshed)."""
        with self._lock:
            return self._snapshots.get(profile, ())

    def get(self, profile: UserProfile, identifier: str) -> Package | None:
        """Return one package from the latest snapshot."""
        for pkg in self.snapshot(profile):
            if pkg.identifier == identifier:
                return pkg
        return None

    def profiles(self) -> list[UserProfile]:
        """Return the profiles that have a snapshot."""
        with self._lock:
            return sorted(self._snapshots)

    def apply(self, record: ActionRecord, state: PackageState) -> None:
        """Store the post-action state of a package.

        Only the executor calls this, after a confirmed success.

        Args:
            record: The record of the successful action.
            state: State the package is now in.
        """
        profile = record.request.profile
        identifier = record.request.identifier

        with self._lock:
            current = self._snapshots.get(profile)
            if current is None:
                return
            updated: list[Package] = []
            found = False
            for pkg in current:
                if pkg.identifier == identifier:
                    updated.append(pkg.with_state(state))
                    found = True
                else:
                    updated.append(pkg)
            if not found:
                updated.append(self._classify(record.request.package.with_state(state)))
                updated.sort(key=lambda p: p.identifier)
            self._snapshots[profile] = tuple(updated)

    def _classify(self, pkg: Package) -> Package:
        recommendation = self._lookup.lookup(pkg.identifier)
        return replace(
            pkg,
            tier=recommendation.tier,
            description=recommendation.description,
            list_name=recommendation.list_name,
        )


def filter_packages(
    packages: Iterable[Package],
    *,
    tier: Tier | None = None,
    state: str | None = None,
    search: str | None = None,
    list_name: str | None = None,
) -> list[Package]:
    """Filter packages for listing.

    Args:
        packages: Packages to filter.
        tier: Keep only this tier.
        state: Keep only 'enabled', 'disabled' or 'uninstalled' packages.
        search: Case-insensitive substring of identifier or description.
        list_name: Keep only packages of this curated list (case-insensitive).

    Returns:
        Matching packages, order preserved.
    """
    needle = search.lower() if search else None
    wanted_list = list_name.lower() if list_name else None
    result: list[Package] = []
    for pkg in packages:
        if tier is not None and pkg.tier != tier:
            continue
        if state is not None and pkg.state.label != state:
            continue
        if wanted_list is not None and (pkg.list_name or "").lower() != wanted_list:
            continue
        if needle is not None and needle not in pkg.identifier.lower() and (
            not pkg.description or needle not in pkg.description.lower()
        ):
            continue
        result.append(pkg)
    return result
