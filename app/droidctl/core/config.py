"""Application configuration and settings.

This module provides the configuration model and I/O functions for the
orchestration engine: transport settings, retry policy, parallelism and
the location of the local recommendation database.

Configuration is stored in ~/.config/droidctl/config.toml
"""

import os
import tomllib
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Annotated

import tomli_w
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from droidctl.core.paths import get_config_path


class DroidctlConfig(BaseModel):
    """Configuration for device orchestration.

    Attributes:
        adb_path: adb executable to invoke.
        command_timeout: Seconds before a transport command counts as timed out.
        max_attempts: Transport attempts per action before giving up.
        backoff_base: First retry delay in seconds; doubles every attempt.
        backoff_max: Upper bound for a single retry delay.
        max_parallel: Devices processed concurrently by a batch session.
        authorization_timeout: Seconds to wait for on-device USB debugging approval.
        poll_interval: Seconds between authorization polls.
        recommendations_path: Local JSON recommendation database, if any.
    """

    model_config = ConfigDict(extra="forbid")

    adb_path: Annotated[
        str,
        Field(min_length=1, description="adb executable"),
    ] = "adb"
    command_timeout: Annotated[
        float,
        Field(gt=0, le=600, description="Transport command timeout in seconds"),
    ] = 30.0
    max_attempts: Annotated[
        int,
        Field(ge=1, le=10, description="Transport attempts per action"),
    ] = 3
    backoff_base: Annotated[
        float,
        Field(ge=0, le=60, description="Initial retry delay in seconds"),
    ] = 0.5
    backoff_max: Annotated[
        float,
        Field(ge=0, le=300, description="Maximum retry delay in seconds"),
    ] = 8.0
    max_parallel: Annotated[
        int,
        Field(ge=1, le=64, description="Devices processed concurrently"),
    ] = 4
    authorization_timeout: Annotated[
        float,
        Field(ge=0, le=600, description="Authorization wait in seconds"),
    ] = 30.0
    poll_interval: Annotated[
        float,
        Field(gt=0, le=60, description="Authorization poll interval in seconds"),
    ] = 1.0
    recommendations_path: Annotated[
        Path | None,
        Field(description="Local recommendation database (JSON)"),
    ] = None

    @model_validator(mode="after")
    def _check_backoff(self) -> "DroidctlConfig":
        if self.backoff_max < self.backoff_base:
            msg = "backoff_max must be greater than or equal to backoff_base"
            raise ValueError(msg)
        return self


class ConfigError(Exception):
    """Base exception for configuration errors."""


class ConfigNotFoundError(ConfigError):
    """Raised when the config file is not found."""


class ConfigParseError(ConfigError):
    """Raised when the config file cannot be parsed."""


def load_config(path: Path | None = None) -> DroidctlConfig:
    """Load configuration from a TOML file.

    Args:
        path: Path to the config file. If None, uses the default config path.

    Returns:
        Validated DroidctlConfig object.

    Raises:
        ConfigNotFoundError: If the config file doesn't exist.
        ConfigParseError: If the TOML syntax is invalid.
        ConfigError: If the content doesn't match the schema.
    """
    config_path = path or get_config_path()

    if not config_path.exists():
        raise ConfigNotFoundError(f"Config not found: {config_path}")

    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigParseError(f"Invalid TOML syntax: {e}") from e
    except OSError as e:
        raise ConfigError(f"Failed to read config: {e}") from e

    try:
        return DroidctlConfig.model_validate(data)
    except (ValueError, ValidationError) as e:
        raise ConfigError(f"Invalid config content: {e}") from e


def load_config_or_default(path: Path | None = None) -> DroidctlConfig:
    """Load configuration, falling back to defaults when no file exists.

    Raises:
        ConfigParseError: If the TOML syntax is invalid.
        ConfigError: If the content doesn't match the schema.
    """
    try:
        return load_config(path)
    except ConfigNotFoundError:
        return DroidctlConfig()


def save_config(config: DroidctlConfig, path: Path | None = None) -> Path:
    """Save configuration to a TOML file.

    The file is written atomically by first writing to a temporary file
    and then using os.replace() for atomic rename.

    Args:
        config: The DroidctlConfig object to save.
        path: Path to save the config. If None, uses the default config path.

    Returns:
        Path where the config was saved.

    Raises:
        ConfigError: If the file cannot be written.
    """
    config_path = path or get_config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)

    data = _config_to_dict(config)

    tmp_path: Path | None = None
    try:
        with NamedTemporaryFile(
            mode="wb",
            dir=config_path.parent,
            delete=False,
            suffix=".tmp",
        ) as f:
            tmp_path = Path(f.name)
            tomli_w.dump(data, f)
        os.replace(str(tmp_path), str(config_path))
    except OSError as e:
        if tmp_path is not None and tmp_path.exists():
            tmp_path.unlink()
        raise ConfigError(f"Failed to write config: {e}") from e

    return config_path


def _config_to_dict(config: DroidctlConfig) -> dict[str, object]:
    """Convert DroidctlConfig to a dictionary for TOML serialization.

    TOML has no null, so unset optional values are left out.
    """
    data = config.model_dump(mode="json", exclude_none=True)
    return dict(data)
