# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Helpers for converting packages to and from composer-style JSON."""

from __future__ import annotations

import json
from collections.abc import Iterable, Mapping, Sequence
from pathlib import Path
from typing import Any, Final, TypeAlias

from pydantic import ValidationError

from .models import DistRecord, Package, SourceRecord

JsonObject: TypeAlias = dict[str, Any]

_KNOWN_KEYS: Final[frozenset[str]] = frozenset(
    {"name", "version", "version_normalized", "type", "source", "dist", "replace", "provide", "archive"},
)


class PackageLoadError(ValueError):
    """Raised when a package list cannot be parsed."""


def _links(value: object, key: str) -> dict[str, str]:
    if not value:
        return {}
    if not isinstance(value, Mapping):
        raise PackageLoadError(f"'{key}' must map package names to constraints")
    return {str(name): str(constraint) for name, constraint in value.items()}


def deserialize_package(data: Mapping[str, Any]) -> Package:
    """Build a :class:`Package` from a composer package mapping."""

    pretty_version = str(data.get("version", ""))
    source = data.get("source")
    dist = data.get("dist")
    archive = data.get("archive")
    return Package(
        name=str(data.get("name", "")),
        version=str(data.get("version_normalized") or pretty_version),
        pretty_version=pretty_version,
        type=str(data.get("type") or "library"),
        source=SourceRecord.model_validate(source) if isinstance(source, Mapping) else None,
        dist=DistRecord.model_validate(dist) if isinstance(dist, Mapping) else None,
        replaces=_links(data.get("replace"), "replace"),
        provides=_links(data.get("provide"), "provide"),
        archive=dict(archive) if isinstance(archive, Mapping) else {},
        extra={key: value for key, value in data.items() if key not in _KNOWN_KEYS},
    )


def serialize_package(package: Package) -> JsonObject:
    """Convert ``package`` back into a composer package mapping.

    Fields other than ``dist`` keep the values they were read with.
    """

    data: JsonObject = {
        "name": package.name,
        "version": package.pretty_version,
        "version_normalized": package.version,
        "type": package.type,
    }
    if package.source is not None:
        data["source"] = package.source.model_dump()
    if package.dist is not None:
        data["dist"] = package.dist.model_dump()
    if package.replaces:
        data["replace"] = dict(package.replaces)
    if package.provides:
        data["provide"] = dict(package.provides)
    if package.archive:
        data["archive"] = dict(package.archive)
    data.update(package.extra)
    return data


def _iter_entries(raw: object) -> Iterable[Mapping[str, Any]]:
    if isinstance(raw, Mapping) and "packages" in raw:
        raw = raw["packages"]
    if isinstance(raw, Sequence) and not isinstance(raw, str):
        for entry in raw:
            if not isinstance(entry, Mapping):
                raise PackageLoadError("package entries must be JSON objects")
            yield entry
        return
    if isinstance(raw, Mapping):
        for versions in raw.values():
            if not isinstance(versions, Mapping):
                raise PackageLoadError("expected a mapping of versions per package")
            yield from versions.values()
        return
    raise PackageLoadError("expected a list of packages or a composer 'packages' mapping")


def load_packages(path: Path) -> list[Package]:
    """Read packages from a JSON list or a composer repository ``packages`` mapping.

    Raises:
        PackageLoadError: If the file is unreadable or malformed.
    """

    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise PackageLoadError(f"Unable to read packages from '{path}': {exc}") from exc
    try:
        return [deserialize_package(entry) for entry in _iter_entries(raw)]
    except ValidationError as exc:
        raise PackageLoadError(f"Invalid package data in '{path}': {exc}") from exc


def dump_packages(packages: Iterable[Package], path: Path) -> None:
    """Write ``packages`` as a JSON list sorted by name and version."""

    ordered = sorted(packages, key=lambda package: (package.name, package.version))
    payload = [serialize_package(package) for package in ordered]
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload, indent=4, sort_keys=False) + "\n", encoding="utf-8")


__all__ = [
    "PackageLoadError",
    "deserialize_package",
    "dump_packages",
    "load_packages",
    "serialize_package",
]
