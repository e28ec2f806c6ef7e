"""Unit tests for theme module.

Tests for theme loading, validation, and Rich theme generation.
"""

# pyright: reportPrivateUsage=false

from pathlib import Path

import pytest
from droidctl.core.theme import ThemeColors, _load_toml_colors, get_rich_theme, load_theme
from rich.theme import Theme


class TestThemeColors:
    """Tests for ThemeColors Pydantic model."""

    def test_default_values(self) -> None:
        """ThemeColors has sensible defaults."""
        colors = ThemeColors()
        assert colors.text == "#ffffff"
        assert colors.tier_unsafe == "#f53263"

    def test_short_hex_accepted(self) -> None:
        """#RGB colors are valid."""
        assert ThemeColors(muted="#abc").muted == "#abc"

    @pytest.mark.parametrize(
        ("value", "message"),
        [
            ("ffffff", "must start with '#'"),
            ("#ff", "must be #RGB or #RRGGBB"),
            ("#gggggg", "invalid hex color"),
        ],
    )
    def test_invalid_colors(self, value: str, message: str) -> None:
        """Malformed colors are rejected."""
        with pytest.raises(ValueError, match=message):
            ThemeColors(text=value)


class TestLoadTheme:
    """Tests for theme file loading."""

    def test_missing_file_gives_defaults(self, tmp_path: Path) -> None:
        """Without a theme file, defaults are used."""
        assert load_theme(tmp_path / "theme.toml") == ThemeColors()

    def test_user_overrides(self, tmp_path: Path) -> None:
        """Colors from the file override the defaults."""
        path = tmp_path / "theme.toml"
        path.write_text('[colors]\ntier_unsafe = "#ff0000"\n')

        colors = load_theme(path)

        assert colors.tier_unsafe == "#ff0000"
        assert colors.text == "#ffffff"

    def test_invalid_colors_fall_back(self, tmp_path: Path) -> None:
        """An invalid override falls back to the defaults."""
        path = tmp_path / "theme.toml"
        path.write_text('[colors]\ntext = "red"\n')
        assert load_theme(path) == ThemeColors()

    def test_broken_toml(self, tmp_path: Path) -> None:
        """Unparseable files are ignored."""
        path = tmp_path / "theme.toml"
        path.write_text("[colors\n")
        assert _load_toml_colors(path) is None


class TestGetRichTheme:
    """Tests for Rich theme generation."""

    def test_has_tier_and_state_styles(self) -> None:
        """Every tier and package state has a style."""
        theme = get_rich_theme(ThemeColors())

        assert isinstance(theme, Theme)
        for name in ("recommended", "advanced", "expert", "unsafe", "unlisted"):
            assert f"tier.{name}" in theme.styles
        for name in ("enabled", "disabled", "uninstalled"):
            assert f"state.{name}" in theme.styles
        assert "bold_header" in theme.styles
