"""Unit tests for DroidctlConfig and related functions.

Tests for the configuration model and its TOML I/O.
"""

import tomllib
from pathlib import Path

import pytest
from droidctl.core.config import (
    ConfigError,
    ConfigNotFoundError,
    ConfigParseError,
    DroidctlConfig,
    load_config,
    load_config_or_default,
    save_config,
)
from pydantic import ValidationError


class TestDroidctlConfig:
    """Tests for DroidctlConfig Pydantic model."""

    def test_default_values(self) -> None:
        """DroidctlConfig has correct default values."""
        config = DroidctlConfig()

        assert config.adb_path == "adb"
        assert config.command_timeout == 30.0
        assert config.max_attempts == 3
        assert config.backoff_base == 0.5
        assert config.backoff_max == 8.0
        assert config.max_parallel == 4
        assert config.recommendations_path is None

    def test_rejects_unknown_keys(self) -> None:
        """Typos in config keys are errors."""
        with pytest.raises(ValidationError):
            DroidctlConfig.model_validate({"max_paralel": 2})

    @pytest.mark.parametrize(
        "values",
        [
            {"max_attempts": 0},
            {"max_parallel": 0},
            {"command_timeout": 0},
            {"adb_path": ""},
        ],
    )
    def test_rejects_out_of_range(self, values: dict[str, object]) -> None:
        """Bounds are enforced."""
        with pytest.raises(ValidationError):
            DroidctlConfig.model_validate(values)

    def test_backoff_max_below_base_rejected(self) -> None:
        """backoff_max cannot be smaller than backoff_base."""
        with pytest.raises(ValidationError, match="backoff_max"):
            DroidctlConfig(backoff_base=4.0, backoff_max=1.0)


class TestLoadConfig:
    """Tests for load_config and load_config_or_default."""

    def test_missing_file_raises(self, tmp_path: Path) -> None:
        """load_config raises ConfigNotFoundError for missing files."""
        with pytest.raises(ConfigNotFoundError):
            load_config(tmp_path / "config.toml")

    def test_missing_file_gives_defaults(self, tmp_path: Path) -> None:
        """load_config_or_default falls back to defaults."""
        assert load_config_or_default(tmp_path / "config.toml") == DroidctlConfig()

    def test_loads_values(self, tmp_path: Path) -> None:
        """Values from the file override defaults."""
        path = tmp_path / "config.toml"
        path.write_text('adb_path = "/opt/platform-tools/adb"\nmax_parallel = 2\n')

        config = load_config(path)

        assert config.adb_path == "/opt/platform-tools/adb"
        assert config.max_parallel == 2
        assert config.max_attempts == 3

    def test_invalid_toml(self, tmp_path: Path) -> None:
        """Syntax errors raise ConfigParseError."""
        path = tmp_path / "config.toml"
        path.write_text("max_parallel = [\n")
        with pytest.raises(ConfigParseError):
            load_config_or_default(path)

    def test_invalid_content(self, tmp_path: Path) -> None:
        """Schema errors raise ConfigError."""
        path = tmp_path / "config.toml"
        path.write_text("max_attempts = 99\n")
        with pytest.raises(ConfigError, match="Invalid config content"):
            load_config(path)

    def test_default_path_uses_xdg(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Without a path, the XDG config location is read."""
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))
        (tmp_path / "droidctl").mkdir()
        (tmp_path / "droidctl" / "config.toml").write_text("max_parallel = 7\n")

        assert load_config().max_parallel == 7


class TestSaveConfig:
    """Tests for save_config."""

    def test_save_and_load(self, tmp_path: Path) -> None:
        """Saved configs load back unchanged."""
        config = DroidctlConfig(
            max_parallel=8,
            recommendations_path=tmp_path / "uad_lists.json",
        )
        path = save_config(config, tmp_path / "nested" / "config.toml")

        assert load_config(path) == config

    def test_omits_unset_optionals(self, tmp_path: Path) -> None:
        """TOML has no null; unset optional values are left out."""
        path = save_config(DroidctlConfig(), tmp_path / "config.toml")

        with open(path, "rb") as f:
            data = tomllib.load(f)
        assert "recommendations_path" not in data
        assert data["adb_path"] == "adb"

    def test_no_temp_files_left(self, tmp_path: Path) -> None:
        """The atomic write cleans up after itself."""
        save_config(DroidctlConfig(), tmp_path / "config.toml")
        assert [p.name for p in tmp_path.iterdir()] == ["config.toml"]
