# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Placement of package archives below the output directory."""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Final
from urllib.parse import urlsplit

from .config import BuildConfig
from .errors import DownloadError
from .interfaces import ArchiveBackend
from .models import PASSTHROUGH_DIST_TYPE, Package

_UNSAFE_DIR_CHARS: Final[re.Pattern[str]] = re.compile(r"[^a-z0-9\-_/]", re.IGNORECASE)


def sanitize_package_dir(name: str) -> str:
    """Return ``name`` with every character outside ``[A-Za-z0-9-_/]`` replaced by ``-``."""

    return _UNSAFE_DIR_CHARS.sub("-", name)


def dist_url_basename(url: str) -> str:
    """Return the file name component of a dist URL or path."""

    return PurePosixPath(urlsplit(url).path).name


def dist_url_extension(url: str) -> str:
    """Return the last extension (without the dot) of a dist URL or path."""

    return PurePosixPath(urlsplit(url).path).suffix.lstrip(".")


@dataclass(frozen=True, slots=True)
class ArchivePlan:
    """Where a package's archive lives and what it will be advertised as.

    ``final_path`` is known up front for pass-through packages and under
    ``override-dist-type``; otherwise the backend chooses it.
    """

    package_dir: str
    target_dir: Path
    dist_type: str
    final_path: Path | None = None
    passthrough: bool = False


class PathPlanner:
    """Derive target directories and final paths for packages."""

    def __init__(self, config: BuildConfig, backend: ArchiveBackend) -> None:
        """Create a planner for ``config``.

        Args:
            config: Build configuration.
            backend: Archive backend owning the archive naming convention.
        """

        self._config = config
        self._backend = backend
        self._base_dir = config.base_dir

    @property
    def base_dir(self) -> Path:
        """Return the directory all archives are written below."""

        return self._base_dir

    def is_passthrough(self, package: Package) -> bool:
        """Return ``True`` when ``package``'s dist is already an installable archive."""

        return package.type in self._config.archive.passthrough_types

    def target_dir(self, package_dir: str) -> Path:
        """Return the directory for ``package_dir`` below the base directory.

        Empty segments are dropped so a leading ``/`` never escapes the base.
        """

        return self._base_dir.joinpath(*(part for part in package_dir.split("/") if part))

    def plan(self, package: Package) -> ArchivePlan:
        """Return the :class:`ArchivePlan` for ``package``.

        Raises:
            DownloadError: If a pass-through package has no dist URL.
        """

        package_dir = sanitize_package_dir(package.name)
        target_dir = self.target_dir(package_dir)
        archive = self._config.archive

        if self.is_passthrough(package):
            url = package.dist_url
            if not url:
                raise DownloadError(package.pretty_string, "no dist URL to pass through")
            filename = f"{self._backend.filename(package)}.{dist_url_extension(url)}"
            return ArchivePlan(
                package_dir=package_dir,
                target_dir=target_dir,
                dist_type=PASSTHROUGH_DIST_TYPE,
                final_path=target_dir / filename,
                passthrough=True,
            )

        if archive.override_dist_type:
            viewed = package.viewed_with_dist_type(archive.format)
            filename = f"{self._backend.filename(viewed)}.{archive.format}"
            return ArchivePlan(
                package_dir=package_dir,
                target_dir=target_dir,
                dist_type=archive.format,
                final_path=target_dir / filename,
            )

        return ArchivePlan(package_dir=package_dir, target_dir=target_dir, dist_type=archive.format)

    def local_path_for_url(self, url: str) -> Path | None:
        """Map a published dist URL back to its file below the base directory.

        Returns:
            Path | None: Local path, or ``None`` when ``url`` was not published
            by this configuration.
        """

        prefix = f"{self._config.url_root}/"
        if not url.startswith(prefix):
            return None
        relative = url[len(prefix) :]
        parts = [part for part in relative.split("/") if part]
        if not parts or any(part in {".", ".."} for part in parts):
            return None
        return self._base_dir.joinpath(*parts)


__all__ = [
    "ArchivePlan",
    "PathPlanner",
    "dist_url_basename",
    "dist_url_extension",
    "sanitize_package_dir",
]
