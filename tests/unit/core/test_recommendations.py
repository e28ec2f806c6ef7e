"""Unit tests for recommendation loading and lookup."""

import json
import logging
from pathlib import Path

import pytest
from droidctl.core.recommendations import (
    RecommendationsError,
    StaticRecommendations,
    load_recommendations,
    parse_recommendations,
)
from droidctl.models.package import Recommendation, Tier

SAMPLE = {
    "com.facebook.katana": {
        "list": "Misc",
        "description": "Facebook app",
        "dependencies": [],
        "neededBy": ["com.facebook.services"],
        "labels": ["social"],
        "removal": "Recommended",
    },
    "com.android.systemui": {
        "list": "Aosp",
        "description": "System UI",
        "removal": "Unsafe",
    },
}


class TestStaticRecommendations:
    """Tests for StaticRecommendations."""

    def test_unknown_package_is_unlisted(self) -> None:
        """Missing identifiers yield the unlisted recommendation."""
        lookup = StaticRecommendations()
        assert lookup.lookup("com.nope").tier == Tier.UNLISTED
        assert "com.nope" not in lookup

    def test_update_replaces_entries(self) -> None:
        """update swaps the whole table."""
        lookup = StaticRecommendations({"a": Recommendation(tier=Tier.EXPERT)})
        lookup.update({"b": Recommendation(tier=Tier.ADVANCED)})

        assert len(lookup) == 1
        assert lookup.lookup("a").tier == Tier.UNLISTED
        assert lookup.lookup("b").tier == Tier.ADVANCED


class TestParseRecommendations:
    """Tests for parse_recommendations."""

    def test_parses_curated_format(self) -> None:
        """Aliased keys and capitalized tiers are accepted."""
        entries = parse_recommendations(SAMPLE)

        fb = entries["com.facebook.katana"]
        assert fb.tier == Tier.RECOMMENDED
        assert fb.list_name == "Misc"
        assert fb.needed_by == ("com.facebook.services",)
        assert fb.labels == ("social",)
        assert entries["com.android.systemui"].tier == Tier.UNSAFE

    def test_invalid_entries_are_skipped(self, caplog: pytest.LogCaptureFixture) -> None:
        """Entries with an unknown tier are dropped with a warning."""
        data = {**SAMPLE, "com.bad": {"removal": "Nuke"}}

        with caplog.at_level(logging.WARNING):
            entries = parse_recommendations(data)

        assert "com.bad" not in entries
        assert len(entries) == 2
        assert "com.bad" in caplog.text

    def test_missing_removal_is_unlisted(self) -> None:
        """Entries without a removal tier count as unlisted."""
        entries = parse_recommendations({"com.x": {"description": "x"}})
        assert entries["com.x"].tier == Tier.UNLISTED

    def test_top_level_must_be_object(self) -> None:
        """A JSON array is rejected."""
        with pytest.raises(RecommendationsError):
            parse_recommendations([1, 2])


class TestLoadRecommendations:
    """Tests for load_recommendations."""

    def test_loads_file(self, tmp_path: Path) -> None:
        """A curated list file becomes a populated lookup."""
        path = tmp_path / "uad_lists.json"
        path.write_text(json.dumps(SAMPLE))

        lookup = load_recommendations(path)

        assert len(lookup) == 2
        assert lookup.lookup("com.facebook.katana").description == "Facebook app"

    def test_invalid_json(self, tmp_path: Path) -> None:
        """Malformed JSON raises RecommendationsError."""
        path = tmp_path / "broken.json"
        path.write_text("{oops")
        with pytest.raises(RecommendationsError, match="Invalid JSON"):
            load_recommendations(path)

    def test_missing_file(self, tmp_path: Path) -> None:
        """A missing file raises RecommendationsError."""
        with pytest.raises(RecommendationsError, match="Failed to read"):
            load_recommendations(tmp_path / "missing.json")
