# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Contracts for the collaborators the archive builder depends on."""

from __future__ import annotations

from abc import abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from .models import Package


@runtime_checkable
class ArchiveBackend(Protocol):
    """Turn a package's source tree into a compressed archive."""

    @abstractmethod
    def filename(self, package: Package) -> str:
        """Return the archive basename (without extension) for ``package``.

        Args:
            package: Package whose archive is being named.

        Returns:
            str: Filesystem-safe basename.
        """
        raise NotImplementedError

    @abstractmethod
    def prepare(self, package: Package, fmt: str, target_dir: Path) -> tuple[Path, bool]:
        """Prepare archiving ``package`` into ``target_dir``.

        Repeated calls for an unchanged package/format pair must be idempotent.

        Args:
            package: Package to archive.
            fmt: Archive format identifier.
            target_dir: Directory the archive will be written to.

        Returns:
            tuple[Path, bool]: Either the existing archive and ``True`` when it
            can be reused, or the prepared source directory and ``False``.
        """
        raise NotImplementedError

    @abstractmethod
    def dump(
        self,
        package: Package,
        fmt: str,
        target_dir: Path,
        prepared: Path,
        ignore_filters: bool,
    ) -> Path:
        """Write the archive for ``package`` from the prepared source tree.

        Args:
            package: Package to archive.
            fmt: Archive format identifier.
            target_dir: Directory the archive is written to.
            prepared: Path returned by :meth:`prepare`.
            ignore_filters: When ``True`` export-ignore and package exclude rules
                are not applied.

        Returns:
            Path: Location of the written archive.
        """
        raise NotImplementedError


@runtime_checkable
class Downloader(Protocol):
    """Fetch a package's original distribution or source checkout."""

    @abstractmethod
    def fetch(self, package: Package, destination: Path, prefer_source: bool = False) -> Path:
        """Download ``package`` into ``destination``.

        Args:
            package: Package to download.
            destination: Existing directory receiving the download.
            prefer_source: Fetch the VCS checkout instead of the dist file.

        Returns:
            Path: Downloaded file (dist) or checkout directory (source).
        """
        raise NotImplementedError


@runtime_checkable
class EventSink(Protocol):
    """Deliver named events to interested listeners."""

    @abstractmethod
    def dispatch(self, event_name: str, event: object) -> None:
        """Dispatch ``event`` to the listeners registered for ``event_name``.

        Args:
            event_name: Identifier of the event.
            event: Event payload.
        """
        raise NotImplementedError


__all__ = ["ArchiveBackend", "Downloader", "EventSink"]
