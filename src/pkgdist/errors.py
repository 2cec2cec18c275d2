# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Exceptions raised while producing package archives."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager


class ArchiveError(RuntimeError):
    """Raised when a single package cannot be archived.

    The error carries the package identity and the underlying cause so the
    builder can report it without inspecting the concrete subclass.
    """

    kind = "archive"

    def __init__(self, package: str, cause: BaseException | str) -> None:
        """Initialise the error for ``package``.

        Args:
            package: Pretty string (``name version``) of the failing package.
            cause: Underlying exception or human-readable reason.
        """

        reason = str(cause) or type(cause).__name__
        super().__init__(f"{package}: {reason}")
        self.package = package
        self.cause = cause


class DownloadError(ArchiveError):
    """Raised when the original distribution or source cannot be fetched."""

    kind = "download"


class ArchiveBackendError(ArchiveError):
    """Raised when the archive backend fails to prepare or dump an archive."""

    kind = "backend"


class FilesystemError(ArchiveError):
    """Raised for permission, missing path, or disk-full conditions."""

    kind = "filesystem"


class HookError(ArchiveError):
    """Raised when a pre-archive hook listener fails."""

    kind = "hook"


@contextmanager
def failures_as(error_type: type[ArchiveError], package: str) -> Iterator[None]:
    """Re-raise any non-:class:`ArchiveError` failure as ``error_type`` for ``package``.

    Args:
        error_type: Subclass used to wrap foreign exceptions.
        package: Pretty string of the package being processed.
    """

    try:
        yield
    except ArchiveError:
        raise
    except Exception as exc:
        raise error_type(package, exc) from exc


__all__ = [
    "ArchiveBackendError",
    "ArchiveError",
    "DownloadError",
    "FilesystemError",
    "HookError",
    "failures_as",
]
