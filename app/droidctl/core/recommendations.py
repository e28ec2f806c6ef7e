"""Recommendation lookup.

Maps package identifiers to a safety tier and description. The engine only
ever calls :meth:`RecommendationLookup.lookup`; where the entries come from
is up to the implementation. A local JSON file in the curated list format
can be loaded with :func:`load_recommendations`::

    {
      "com.example.bloat": {
        "list": "Oem",
        "description": "Preinstalled store",
        "dependencies": [],
        "neededBy": [],
        "labels": [],
        "removal": "Recommended"
      }
    }
"""

import json
import logging
from abc import ABC, abstractmethod
from collections.abc import Mapping
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from droidctl.models.package import Recommendation, Tier

logger = logging.getLogger(__name__)


class RecommendationLookup(ABC):
    """Abstract lookup from package identifier to recommendation."""

    @abstractmethod
    def lookup(self, identifier: str) -> Recommendation:
        """Return the recommendation for a package.

        Unknown packages yield :meth:`Recommendation.unlisted`, never an error.
        """


class StaticRecommendations(RecommendationLookup):
    """Dictionary-backed lookup.

    Entries can be replaced at runtime with :meth:`update`; inventories pick
    up the change on their next refresh or reclassification.
    """

    def __init__(self, entries: Mapping[str, Recommendation] | None = None) -> None:
        self._entries: dict[str, Recommendation] = dict(entries or {})

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, identifier: object) -> bool:
        return identifier in self._entries

    def lookup(self, identifier: str) -> Recommendation:
        return self._entries.get(identifier, Recommendation.unlisted())

    def update(self, entries: Mapping[str, Recommendation]) -> None:
        """Replace all entries."""
        self._entries = dict(entries)


class RecommendationEntry(BaseModel):
    """One entry of the curated list file."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    list_name: str | None = Field(default=None, alias="list")
    description: str | None = None
    dependencies: list[str] = Field(default_factory=list)
    needed_by: list[str] = Field(default_factory=list, alias="neededBy")
    labels: list[str] = Field(default_factory=list)
    removal: Tier = Tier.UNLISTED

    def to_recommendation(self) -> Recommendation:
        """Convert to the engine's immutable model."""
        return Recommendation(
            tier=self.removal,
            description=self.description,
            list_name=self.list_name,
            dependencies=tuple(self.dependencies),
            needed_by=tuple(self.needed_by),
            labels=tuple(self.labels),
        )


class RecommendationsError(Exception):
    """Raised when the recommendation file cannot be loaded."""


def parse_recommendations(data: object) -> dict[str, Recommendation]:
    """Validate decoded list data.

    Tier names are matched case-insensitively (``"Recommended"`` and
    ``"recommended"`` are equivalent). Invalid entries are skipped with a
    warning.

    Raises:
        RecommendationsError: If the top-level value is not an object.
    """
    if not isinstance(data, dict):
        msg = "Recommendation data must be a JSON object keyed by package"
        raise RecommendationsError(msg)

    entries: dict[str, Recommendation] = {}
    for identifier, raw in data.items():
        if isinstance(raw, dict) and isinstance(raw.get("removal"), str):
            raw = {**raw, "removal": raw["removal"].lower()}
        try:
            entries[identifier] = RecommendationEntry.model_validate(raw).to_recommendation()
        except ValidationError as e:
            logger.warning("Skipping invalid recommendation for %s: %s", identifier, e)
    return entries


def load_recommendations(path: Path) -> StaticRecommendations:
    """Load a local recommendation file.

    Args:
        path: JSON file in the curated list format.

    Returns:
        Lookup populated with the valid entries.

    Raises:
        RecommendationsError: If the file cannot be read or decoded.
    """
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise RecommendationsError(f"Invalid JSON in {path}: {e}") from e
    except OSError as e:
        raise RecommendationsError(f"Failed to read {path}: {e}") from e

    entries = parse_recommendations(data)
    logger.debug("Loaded %d recommendation(s) from %s", len(entries), path)
    return StaticRecommendations(entries)
