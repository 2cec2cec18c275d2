# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Configuration models and helpers for the pkgdist archive builder."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Final

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

DEFAULT_FORMAT: Final[str] = "zip"
DEFAULT_DIRECTORY: Final[str] = "dist"
SUPPORTED_FORMATS: Final[tuple[str, ...]] = ("zip", "tar", "tar.gz", "tar.bz2")
_FORMAT_ALIASES: Final[dict[str, str]] = {"tgz": "tar.gz", "tbz2": "tar.bz2"}


class ConfigError(Exception):
    """Raised when configuration input is invalid."""


class ArchiveConfig(BaseModel):
    """The ``archive`` section: how and where package archives are produced."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    format: str = DEFAULT_FORMAT
    directory: str = DEFAULT_DIRECTORY
    absolute_directory: Path | None = Field(default=None, alias="absolute-directory")
    prefix_url: str | None = Field(default=None, alias="prefix-url")
    checksum: bool = True
    ignore_filters: bool = Field(default=False, alias="ignore-filters")
    override_dist_type: bool = Field(default=False, alias="override-dist-type")
    skip_dev: bool = Field(default=False, alias="skip-dev")
    whitelist: tuple[str, ...] = Field(default_factory=tuple)
    blacklist: tuple[str, ...] = Field(default_factory=tuple)
    passthrough_types: tuple[str, ...] = Field(default=("pear-library",), alias="passthrough-types")

    @field_validator("format")
    @classmethod
    def _normalise_format(cls, value: str) -> str:
        fmt = _FORMAT_ALIASES.get(value.lower(), value.lower())
        if fmt not in SUPPORTED_FORMATS:
            raise ValueError(f"unsupported archive format '{value}' (expected one of {', '.join(SUPPORTED_FORMATS)})")
        return fmt

    @field_validator("directory")
    @classmethod
    def _strip_directory(cls, value: str) -> str:
        return value.strip("/")


class BuildConfig(BaseModel):
    """Top-level build settings, immutable for the duration of a run."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    homepage: str | None = None
    output_dir: Path = Field(default=Path("build"), alias="output-dir")
    archive: ArchiveConfig = Field(default_factory=ArchiveConfig)
    scripts: dict[str, tuple[str, ...]] = Field(default_factory=dict)

    @field_validator("scripts", mode="before")
    @classmethod
    def _coerce_scripts(cls, value: object) -> object:
        if not isinstance(value, dict):
            return value
        return {name: (commands,) if isinstance(commands, str) else commands for name, commands in value.items()}

    @property
    def endpoint(self) -> str:
        """Return the public base URL archives are published under."""

        base = self.archive.prefix_url or self.homepage or ""
        return base.rstrip("/")

    @property
    def base_dir(self) -> Path:
        """Return the directory archives are written to."""

        if self.archive.absolute_directory is not None:
            return self.archive.absolute_directory
        return self.output_dir / self.archive.directory

    @property
    def url_root(self) -> str:
        """Return ``{endpoint}/{directory}``, the URL prefix of every archive."""

        return f"{self.endpoint}/{self.archive.directory}"

    def with_output_dir(self, output_dir: Path) -> BuildConfig:
        """Return a copy of the configuration writing below ``output_dir``."""

        return self.model_copy(update={"output_dir": output_dir})


def load_config(path: Path, *, output_dir: Path | None = None) -> BuildConfig:
    """Load a JSON configuration file.

    Args:
        path: Location of the JSON configuration.
        output_dir: Optional override for the ``output-dir`` setting.

    Returns:
        BuildConfig: Validated configuration.

    Raises:
        ConfigError: If the file cannot be read or fails validation.
    """

    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise ConfigError(f"Unable to read configuration '{path}': {exc}") from exc
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Invalid JSON in '{path}': {exc}") from exc
    if not isinstance(raw, dict):
        raise ConfigError(f"Configuration '{path}' must contain a JSON object")
    try:
        config = BuildConfig.model_validate(raw)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration '{path}': {exc}") from exc
    if output_dir is not None:
        config = config.with_output_dir(output_dir)
    return config


__all__ = [
    "DEFAULT_DIRECTORY",
    "DEFAULT_FORMAT",
    "SUPPORTED_FORMATS",
    "ArchiveConfig",
    "BuildConfig",
    "ConfigError",
    "load_config",
]
