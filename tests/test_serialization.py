# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Tests for reading and writing package lists."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from pkgdist.models import DistRecord
from pkgdist.serialization import (
    PackageLoadError,
    deserialize_package,
    dump_packages,
    load_packages,
    serialize_package,
)

COMPOSER_PACKAGE = {
    "name": "acme/widget",
    "version": "v1.2.3",
    "version_normalized": "1.2.3.0",
    "type": "library",
    "source": {"type": "git", "url": "https://git.example.org/acme/widget.git", "reference": "abc123"},
    "dist": {"type": "zip", "url": "https://dist.example.org/widget.zip", "reference": "abc123", "shasum": ""},
    "replace": {"acme/old-widget": "self.version"},
    "archive": {"exclude": ["/tests"]},
    "require": {"php": ">=8.1"},
}


def test_deserialize_maps_composer_fields() -> None:
    package = deserialize_package(COMPOSER_PACKAGE)

    assert package.pretty_version == "v1.2.3"
    assert package.version == "1.2.3.0"
    assert package.replaces == {"acme/old-widget": "self.version"}
    assert package.names == ("acme/widget", "acme/old-widget")
    assert package.archive_excludes == ("/tests",)
    assert package.dist is not None
    assert package.dist.shasum is None
    assert package.extra == {"require": {"php": ">=8.1"}}


def test_serialize_keeps_unknown_keys() -> None:
    package = deserialize_package(COMPOSER_PACKAGE)
    package.apply_dist(DistRecord(type="zip", url="https://repo.example.org/dist/a.zip", shasum="f" * 40))

    data = serialize_package(package)

    assert data["version"] == "v1.2.3"
    assert data["dist"] == {
        "type": "zip",
        "url": "https://repo.example.org/dist/a.zip",
        "reference": None,
        "shasum": "f" * 40,
    }
    assert data["require"] == {"php": ">=8.1"}
    assert data["replace"] == {"acme/old-widget": "self.version"}


def test_fields_other_than_dist_survive_a_round_trip() -> None:
    payload = {
        "name": "acme/widget",
        "version": "1.0.0",
        "version_normalized": "1.0.0.0",
        "type": "library",
        "source": {
            "type": "git",
            "url": "https://git.example.org/acme/widget.git",
            "reference": "abc123",
            "mirrors": [{"url": "https://mirror.example.org/%package%.git", "preferred": True}],
        },
        "dist": {
            "type": "zip",
            "url": "https://dist.example.org/widget.zip",
            "reference": "abc123",
            "shasum": "e" * 40,
            "mirrors": [{"url": "https://mirror.example.org/%package%/%reference%.%type%", "preferred": False}],
        },
        "replace": {"old/pkg": "1.0.*"},
        "provide": {"psr/log-implementation": "^3.0"},
        "archive": {"exclude": ["/tests"], "name": "widget-archive"},
        "autoload": {"psr-4": {"Acme\\Widget\\": "src/"}},
    }

    assert serialize_package(deserialize_package(payload)) == payload


def test_non_mapping_replace_is_rejected(tmp_path: Path) -> None:
    path = tmp_path / "packages.json"
    path.write_text(json.dumps([{"name": "a/b", "version": "1.0.0", "replace": ["old/pkg"]}]), encoding="utf-8")

    with pytest.raises(PackageLoadError, match="'replace' must map"):
        load_packages(path)


@pytest.mark.parametrize(
    "payload",
    [
        [COMPOSER_PACKAGE],
        {"packages": [COMPOSER_PACKAGE]},
        {"packages": {"acme/widget": {"v1.2.3": COMPOSER_PACKAGE}}},
    ],
)
def test_load_packages_accepts_supported_layouts(tmp_path: Path, payload: object) -> None:
    path = tmp_path / "packages.json"
    path.write_text(json.dumps(payload), encoding="utf-8")

    [package] = load_packages(path)

    assert package.name == "acme/widget"


@pytest.mark.parametrize("content", ["{broken", '"just a string"', "[1, 2]", '[{"name": "a", "dist": {"type": 1}}]'])
def test_load_packages_rejects_malformed_input(tmp_path: Path, content: str) -> None:
    path = tmp_path / "packages.json"
    path.write_text(content, encoding="utf-8")

    with pytest.raises(PackageLoadError):
        load_packages(path)


def test_dump_packages_sorts_by_name_and_version(tmp_path: Path, make_package) -> None:
    path = tmp_path / "out" / "packages.json"

    dump_packages([make_package("acme/b"), make_package("acme/a", "2.0.0"), make_package("acme/a")], path)

    written = json.loads(path.read_text(encoding="utf-8"))
    assert [(entry["name"], entry["version"]) for entry in written] == [
        ("acme/a", "1.2.3"),
        ("acme/a", "2.0.0"),
        ("acme/b", "1.2.3"),
    ]
