# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Archive backend snapshotting package sources into zip or tar files."""

from __future__ import annotations

import fnmatch
import hashlib
import os
import re
import shutil
import tarfile
import tempfile
import zipfile
from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from types import TracebackType
from typing import Final

from ..interfaces import Downloader
from ..models import Package

VCS_DIRECTORIES: Final[frozenset[str]] = frozenset({".git", ".hg", ".svn", ".bzr", "CVS", "_darcs"})
_SHA1_REF_RE: Final[re.Pattern[str]] = re.compile(r"^[a-f0-9]{40}$")
_UNSAFE_FILENAME_CHARS: Final[re.Pattern[str]] = re.compile(r"[^a-z0-9\-_.]", re.IGNORECASE)
_TAR_MODES: Final[dict[str, str]] = {"tar": "w", "tar.gz": "w:gz", "tar.bz2": "w:bz2"}


def package_filename(package: Package) -> str:
    """Return the archive basename for ``package``.

    The name joins the sanitised package name with either the 40-hex dist
    reference and dist type, or the pretty version and dist reference, then the
    first six hex digits of the SHA-1 of the source reference. Empty parts are
    dropped.
    """

    parts: list[str | None] = [_UNSAFE_FILENAME_CHARS.sub("-", package.name)]
    dist_reference = package.dist.reference if package.dist is not None else None
    if dist_reference is not None and _SHA1_REF_RE.match(dist_reference):
        parts.extend([dist_reference, package.dist_type])
    else:
        parts.extend([package.pretty_version, dist_reference])
    source_reference = package.source_reference
    if source_reference is not None:
        parts.append(hashlib.sha1(source_reference.encode("utf-8"), usedforsecurity=False).hexdigest()[:6])
    joined = "-".join(part for part in parts if part)
    return _UNSAFE_FILENAME_CHARS.sub("-", joined)


@dataclass(frozen=True, slots=True)
class _ExcludeRule:
    glob: str
    anchored: bool
    negated: bool

    @classmethod
    def parse(cls, pattern: str) -> _ExcludeRule | None:
        text = pattern.strip()
        negated = text.startswith("!")
        text = text.lstrip("!")
        anchored = text.startswith("/")
        text = text.strip("/")
        if not text:
            return None
        return cls(glob=text, anchored=anchored, negated=negated)

    def matches(self, relative: PurePosixPath) -> bool:
        candidates = [relative, *relative.parents[:-1]]
        for candidate in candidates:
            value = candidate.as_posix()
            if fnmatch.fnmatchcase(value, self.glob):
                return True
            if not self.anchored and fnmatch.fnmatchcase(candidate.name, self.glob):
                return True
        return False


class ExcludeFilter:
    """Gitignore-like exclusion rules; the last matching rule wins."""

    def __init__(self, patterns: Sequence[str] = ()) -> None:
        self._rules = [rule for rule in map(_ExcludeRule.parse, patterns) if rule is not None]

    @classmethod
    def for_source(cls, root: Path, package: Package) -> ExcludeFilter:
        """Build the filter from ``.gitattributes`` export-ignore entries and the package's excludes."""

        return cls([*_export_ignore_patterns(root / ".gitattributes"), *package.archive_excludes])

    def excluded(self, relative: PurePosixPath) -> bool:
        """Return ``True`` when ``relative`` must not enter the archive."""

        verdict = False
        for rule in self._rules:
            if rule.matches(relative):
                verdict = not rule.negated
        return verdict


def _export_ignore_patterns(attributes: Path) -> list[str]:
    if not attributes.is_file():
        return []
    patterns: list[str] = []
    for line in attributes.read_text(encoding="utf-8").splitlines():
        fields = line.split()
        if len(fields) < 2 or fields[0].startswith("#"):
            continue
        if "export-ignore" in fields[1:]:
            patterns.append(fields[0])
        elif "-export-ignore" in fields[1:]:
            patterns.append(f"!{fields[0]}")
    return patterns


def iter_archivable_files(root: Path, exclude: ExcludeFilter | None) -> Iterator[tuple[Path, str]]:
    """Yield ``(path, archive name)`` pairs for files below ``root`` in sorted order.

    VCS metadata directories are always skipped.
    """

    for current, dirs, files in os.walk(root):
        dirs[:] = sorted(name for name in dirs if name not in VCS_DIRECTORIES)
        base = Path(current)
        for name in sorted(files):
            path = base / name
            relative = PurePosixPath(path.relative_to(root).as_posix())
            if exclude is not None and exclude.excluded(relative):
                continue
            yield path, relative.as_posix()


def write_archive(root: Path, destination: Path, fmt: str, exclude: ExcludeFilter | None) -> Path:
    """Write the archivable files below ``root`` to ``destination`` in ``fmt``.

    The archive is staged next to ``destination`` and renamed into place, so a
    failure never leaves a truncated archive under the final name.
    """

    staging = destination.with_name(f".{destination.name}.part")
    try:
        if fmt == "zip":
            with zipfile.ZipFile(staging, "w", compression=zipfile.ZIP_DEFLATED) as archive:
                for path, name in iter_archivable_files(root, exclude):
                    archive.write(path, name)
        elif fmt in _TAR_MODES:
            with tarfile.open(staging, _TAR_MODES[fmt]) as archive:
                for path, name in iter_archivable_files(root, exclude):
                    archive.add(path, arcname=name, recursive=False)
        else:
            raise ValueError(f"unsupported archive format '{fmt}'")
        os.replace(staging, destination)
    finally:
        staging.unlink(missing_ok=True)
    return destination


class LocalArchiveBackend:
    """Archive backend fetching sources with a downloader and packing them locally.

    ``prepare`` reuses an existing archive or checks the source out into a
    private temporary directory; ``dump`` packs that directory and removes it.
    Use the backend as a context manager to clean up checkouts left behind by
    failed hooks.
    """

    def __init__(self, downloader: Downloader, *, temp_root: Path | None = None, overwrite: bool = False) -> None:
        """Create the backend.

        Args:
            downloader: Downloader used to obtain package sources.
            temp_root: Parent directory for temporary checkouts.
            overwrite: Rebuild archives even when the target already exists.
        """

        self._downloader = downloader
        self._temp_root = temp_root
        self._overwrite = overwrite
        self._workdirs: dict[Path, Path] = {}

    def __enter__(self) -> LocalArchiveBackend:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.close()

    def filename(self, package: Package) -> str:
        return package_filename(package)

    def prepare(self, package: Package, fmt: str, target_dir: Path) -> tuple[Path, bool]:
        target = target_dir / f"{self.filename(package)}.{fmt}"
        if target.is_file() and not self._overwrite:
            return target, True

        workdir = Path(tempfile.mkdtemp(prefix="pkgdist-src-", dir=self._temp_root))
        try:
            checkout = self._downloader.fetch(package, workdir, prefer_source=True)
        except BaseException:
            shutil.rmtree(workdir, ignore_errors=True)
            raise
        self._workdirs[checkout] = workdir
        return checkout, False

    def dump(self, package: Package, fmt: str, target_dir: Path, prepared: Path, ignore_filters: bool) -> Path:
        target = target_dir / f"{self.filename(package)}.{fmt}"
        try:
            exclude = None if ignore_filters else ExcludeFilter.for_source(prepared, package)
            return write_archive(prepared, target, fmt, exclude)
        finally:
            self._discard(prepared)

    def close(self) -> None:
        """Remove every temporary checkout still held by the backend."""

        for prepared in list(self._workdirs):
            self._discard(prepared)

    def _discard(self, prepared: Path) -> None:
        workdir = self._workdirs.pop(prepared, None)
        if workdir is not None:
            shutil.rmtree(workdir, ignore_errors=True)


__all__ = [
    "ExcludeFilter",
    "LocalArchiveBackend",
    "VCS_DIRECTORIES",
    "iter_archivable_files",
    "package_filename",
    "write_archive",
]
