# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Tests for build configuration loading."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from pkgdist.config import ArchiveConfig, BuildConfig, ConfigError, load_config


def _write(tmp_path: Path, payload: object) -> Path:
    path = tmp_path / "pkgdist.json"
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


def test_defaults() -> None:
    config = BuildConfig()

    assert config.archive.format == "zip"
    assert config.archive.directory == "dist"
    assert config.archive.checksum is True
    assert config.archive.passthrough_types == ("pear-library",)
    assert config.base_dir == Path("build") / "dist"
    assert config.url_root == "/dist"


def test_load_config_reads_dashed_keys(tmp_path: Path) -> None:
    path = _write(
        tmp_path,
        {
            "homepage": "https://repo.example.org/",
            "output-dir": str(tmp_path / "site"),
            "archive": {
                "format": "TGZ",
                "directory": "/downloads/",
                "prefix-url": "https://cdn.example.org/",
                "checksum": False,
                "override-dist-type": True,
                "skip-dev": True,
                "blacklist": ["acme/legacy"],
            },
            "scripts": {"pre-archive-dump": "make dist-clean"},
        },
    )

    config = load_config(path)

    assert config.archive.format == "tar.gz"
    assert config.archive.directory == "downloads"
    assert config.archive.override_dist_type
    assert config.archive.skip_dev
    assert config.archive.blacklist == ("acme/legacy",)
    assert config.endpoint == "https://cdn.example.org"
    assert config.url_root == "https://cdn.example.org/downloads"
    assert config.base_dir == tmp_path / "site" / "downloads"
    assert config.scripts == {"pre-archive-dump": ("make dist-clean",)}


def test_output_dir_override_and_absolute_directory(tmp_path: Path) -> None:
    path = _write(tmp_path, {"archive": {"absolute-directory": str(tmp_path / "abs")}})

    config = load_config(path, output_dir=tmp_path / "other")

    assert config.output_dir == tmp_path / "other"
    assert config.base_dir == tmp_path / "abs"


def test_homepage_used_when_no_prefix_url() -> None:
    config = BuildConfig(homepage="https://repo.example.org/")

    assert config.url_root == "https://repo.example.org/dist"


def test_unsupported_format_rejected() -> None:
    with pytest.raises(ValidationError, match="unsupported archive format"):
        ArchiveConfig(format="rar")


@pytest.mark.parametrize(
    ("content", "message"),
    [
        ("{not json", "Invalid JSON"),
        ("[]", "must contain a JSON object"),
        ('{"archive": {"format": "7z"}}', "Invalid configuration"),
    ],
)
def test_load_config_errors(tmp_path: Path, content: str, message: str) -> None:
    path = tmp_path / "pkgdist.json"
    path.write_text(content, encoding="utf-8")

    with pytest.raises(ConfigError, match=message):
        load_config(path)


def test_missing_config_file(tmp_path: Path) -> None:
    with pytest.raises(ConfigError, match="Unable to read configuration"):
        load_config(tmp_path / "missing.json")


def test_config_is_immutable() -> None:
    config = BuildConfig()

    with pytest.raises(ValidationError):
        config.homepage = "https://changed.example.org"  # type: ignore[misc]
