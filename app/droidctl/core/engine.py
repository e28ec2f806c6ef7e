"""Wiring of the orchestration components.

Builds the registry, inventory, journal, planner, executor and session
manager around one transport, from application configuration.
"""

import logging
from dataclasses import dataclass

from droidctl.core.config import DroidctlConfig
from droidctl.core.executor import ActionExecutor, RetryPolicy
from droidctl.core.inventory import PackageInventory
from droidctl.core.journal import UndoJournal
from droidctl.core.planner import ActionPlanner
from droidctl.core.recommendations import (
    RecommendationLookup,
    StaticRecommendations,
    load_recommendations,
)
from droidctl.core.registry import DeviceRegistry
from droidctl.core.session import SessionManager
from droidctl.transport.adb import AdbTransport
from droidctl.transport.base import Transport

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Engine:
    """All components sharing one transport and one journal."""

    config: DroidctlConfig
    transport: Transport
    registry: DeviceRegistry
    inventory: PackageInventory
    journal: UndoJournal
    planner: ActionPlanner
    executor: ActionExecutor
    sessions: SessionManager


def create_engine(
    config: DroidctlConfig | None = None,
    *,
    transport: Transport | None = None,
    journal: UndoJournal | None = None,
    lookup: RecommendationLookup | None = None,
) -> Engine:
    """Create an engine from configuration.

    Args:
        config: Application configuration. Defaults to DroidctlConfig().
        transport: Transport override. Defaults to the adb binary.
        journal: Journal override. Defaults to the XDG state journal.
        lookup: Recommendation lookup override. Defaults to the configured
            local file, or an empty lookup.

    Returns:
        Wired Engine.

    Raises:
        RecommendationsError: If the configured recommendation file is invalid.
    """
    config = config or DroidctlConfig()
    transport = transport or AdbTransport(config.adb_path, timeout=config.command_timeout)
    journal = journal or UndoJournal()

    if lookup is None:
        if config.recommendations_path is not None:
            lookup = load_recommendations(config.recommendations_path)
        else:
            logger.debug("No recommendation database configured; all packages unlisted")
            lookup = StaticRecommendations()

    registry = DeviceRegistry(
        transport,
        authorization_timeout=config.authorization_timeout,
        poll_interval=config.poll_interval,
    )
    inventory = PackageInventory(transport, lookup)
    executor = ActionExecutor(
        transport,
        journal,
        inventory,
        RetryPolicy.from_config(config),
    )
    return Engine(
        config=config,
        transport=transport,
        registry=registry,
        inventory=inventory,
        journal=journal,
        planner=ActionPlanner(journal),
        executor=executor,
        sessions=SessionManager(executor, config.max_parallel),
    )
