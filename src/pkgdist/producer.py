# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Produce or reuse the archive file for a single package."""

from __future__ import annotations

import os
import shutil
import tempfile
from contextlib import suppress
from dataclasses import dataclass
from pathlib import Path

from .config import BuildConfig
from .console import OutputSink
from .errors import ArchiveBackendError, ArchiveError, DownloadError, FilesystemError, HookError, failures_as
from .events import PRE_ARCHIVE_DUMP, PreArchiveDumpEvent
from .interfaces import ArchiveBackend, Downloader, EventSink
from .models import Package
from .paths import ArchivePlan


@dataclass(frozen=True, slots=True)
class ProducedArchive:
    """Archive file ready to be advertised as a package's dist."""

    path: Path
    dist_type: str
    reused: bool = False


def _publish(source: Path, destination: Path) -> None:
    """Move ``source`` to ``destination`` so the destination appears complete or not at all."""

    destination.parent.mkdir(parents=True, exist_ok=True)
    staging = destination.with_name(f".{destination.name}.part")
    try:
        shutil.move(str(source), str(staging))
        os.replace(staging, destination)
    finally:
        staging.unlink(missing_ok=True)


class ArchiveProducer:
    """Obtain the archive bytes for a package.

    Pass-through packages (types whose dist is already installable, such as
    ``pear-library``) are downloaded and relocated verbatim. Every other
    package goes through the backend's prepare/dump protocol, with the
    ``pre-archive-dump`` event fired between the two phases.
    """

    def __init__(
        self,
        config: BuildConfig,
        *,
        backend: ArchiveBackend,
        downloader: Downloader,
        events: EventSink,
        output: OutputSink,
        temp_root: Path | None = None,
    ) -> None:
        """Create a producer bound to its collaborators.

        Args:
            config: Build configuration.
            backend: Archive backend used for synthesis.
            downloader: Downloader used for pass-through packages.
            events: Event sink receiving the pre-archive hook.
            output: Output sink for progress chatter.
            temp_root: Parent directory for per-package download directories.
        """

        self._config = config
        self._backend = backend
        self._downloader = downloader
        self._events = events
        self._output = output
        self._temp_root = temp_root

    def produce(self, package: Package, plan: ArchivePlan) -> ProducedArchive:
        """Return the archive for ``package`` placed according to ``plan``.

        Raises:
            ArchiveError: If downloading, archiving, the hook, or a filesystem
                operation fails.
        """

        if plan.final_path is None:
            path, reused = self._synthesize(package, plan.target_dir)
            return ProducedArchive(path=path, dist_type=plan.dist_type, reused=reused)
        if plan.passthrough:
            return self._passthrough(package, plan.final_path, plan.dist_type)
        return self._override(package, plan.final_path, plan.target_dir, plan.dist_type)

    def _existing(self, package: Package, final_path: Path) -> bool:
        with failures_as(FilesystemError, package.pretty_string):
            return final_path.is_file()

    def _passthrough(self, package: Package, final_path: Path, dist_type: str) -> ProducedArchive:
        if self._existing(package, final_path):
            return ProducedArchive(path=final_path, dist_type=dist_type, reused=True)

        name = package.pretty_string
        with failures_as(FilesystemError, name):
            download_dir = Path(tempfile.mkdtemp(prefix="pkgdist-", dir=self._temp_root))
        try:
            with failures_as(DownloadError, name):
                downloaded = self._downloader.fetch(package, download_dir, prefer_source=False)
            with failures_as(FilesystemError, name):
                _publish(downloaded, final_path)
        finally:
            shutil.rmtree(download_dir, ignore_errors=True)
        return ProducedArchive(path=final_path, dist_type=dist_type)

    def _override(self, package: Package, final_path: Path, target_dir: Path, dist_type: str) -> ProducedArchive:
        if self._existing(package, final_path):
            return ProducedArchive(path=final_path, dist_type=dist_type, reused=True)

        produced, reused = self._synthesize(package, target_dir)
        if produced != final_path:
            with failures_as(FilesystemError, package.pretty_string):
                _publish(produced, final_path)
        return ProducedArchive(path=final_path, dist_type=dist_type, reused=reused)

    def _synthesize(self, package: Package, target_dir: Path) -> tuple[Path, bool]:
        fmt = self._config.archive.format
        name = package.pretty_string
        with failures_as(FilesystemError, name):
            target_dir.mkdir(parents=True, exist_ok=True)
        with failures_as(ArchiveBackendError, name):
            prepared, is_target = self._backend.prepare(package, fmt, target_dir)
            if is_target:
                self._output.info(f"Reusing existing target: '{prepared}'.")
                return prepared, True
            expected = target_dir / f"{self._backend.filename(package)}.{fmt}"
        with failures_as(FilesystemError, name):
            pre_existing = expected.exists()

        self._output.info(f"Executing pre-archive-dump-cmd on '{prepared}'.")
        try:
            with failures_as(HookError, name):
                self._events.dispatch(PRE_ARCHIVE_DUMP, PreArchiveDumpEvent(name=PRE_ARCHIVE_DUMP, path=prepared))
            with failures_as(ArchiveBackendError, name):
                path = self._backend.dump(package, fmt, target_dir, prepared, self._config.archive.ignore_filters)
        except ArchiveError:
            if not pre_existing:
                with suppress(OSError):
                    expected.unlink(missing_ok=True)
            raise
        return path, False


__all__ = ["ArchiveProducer", "ProducedArchive"]
