# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Shared pytest fixtures."""

from __future__ import annotations

import io
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest
from rich.console import Console

from pkgdist.config import ArchiveConfig, BuildConfig
from pkgdist.console import OutputSink
from pkgdist.models import DistRecord, Package, SourceRecord


@pytest.fixture
def output() -> OutputSink:
    """Return an output sink rendering into an in-memory console."""

    console = Console(file=io.StringIO(), width=240, color_system=None, force_terminal=False)
    return OutputSink(console, use_color=False)


@pytest.fixture
def make_config(tmp_path: Path) -> Callable[..., BuildConfig]:
    """Return a factory for build configurations writing below ``tmp_path``."""

    def _factory(**archive: Any) -> BuildConfig:
        return BuildConfig(
            homepage="https://repo.example.org",
            output_dir=tmp_path / "out",
            archive=ArchiveConfig(**archive),
        )

    return _factory


@pytest.fixture
def make_package() -> Callable[..., Package]:
    """Return a factory for packages with a git source and a remote dist."""

    def _factory(name: str = "acme/widget", version: str = "1.2.3", **overrides: Any) -> Package:
        data: dict[str, Any] = {
            "name": name,
            "version": f"{version}.0" if version[:1].isdigit() else version,
            "pretty_version": version,
            "source": SourceRecord(type="git", url=f"https://git.example.org/{name}.git", reference="abc123"),
            "dist": DistRecord(
                type="zip",
                url=f"https://dist.example.org/{name}/{version}.zip",
                reference="abc123",
            ),
        }
        data.update(overrides)
        return Package(**data)

    return _factory

