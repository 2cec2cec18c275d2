# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Point packages at their freshly produced archives."""

from __future__ import annotations

import hashlib
from pathlib import Path
from typing import Final

from .config import BuildConfig
from .models import DistRecord, Package
from .paths import ArchivePlan

_CHUNK_SIZE: Final[int] = 1024 * 1024


def file_sha1(path: Path) -> str:
    """Return the hex SHA-1 digest of the bytes at ``path``."""

    hasher = hashlib.sha1(usedforsecurity=False)
    with path.open("rb") as handle:
        for chunk in iter(lambda: handle.read(_CHUNK_SIZE), b""):
            hasher.update(chunk)
    return hasher.hexdigest()


class DistMetadataWriter:
    """Build and apply the :class:`DistRecord` describing a produced archive."""

    def __init__(self, config: BuildConfig) -> None:
        self._config = config

    def build_record(self, package: Package, plan: ArchivePlan, path: Path, dist_type: str) -> DistRecord:
        """Return the record advertising ``path`` for ``package``.

        Extra keys of the current dist (``mirrors`` and the like) are carried over.
        """

        url = f"{self._config.url_root}/{plan.package_dir}/{path.name}"
        shasum = file_sha1(path) if self._config.archive.checksum else None
        reference = package.source_reference
        if reference is None and package.dist is not None:
            reference = package.dist.reference
        carried = dict(package.dist.model_extra or {}) if package.dist is not None else {}
        return DistRecord(**carried, type=dist_type, url=url, reference=reference, shasum=shasum)

    def apply(self, package: Package, plan: ArchivePlan, path: Path, dist_type: str) -> DistRecord:
        """Replace ``package``'s dist with the record for ``path`` and return it.

        The record is fully built before the package is touched, so a failing
        checksum leaves the previous dist in place.
        """

        record = self.build_record(package, plan, path, dist_type)
        package.apply_dist(record)
        return record


__all__ = ["DistMetadataWriter", "file_sha1"]
