# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Default archive backend and downloader implementations."""

from __future__ import annotations

from .archive import ExcludeFilter, LocalArchiveBackend, package_filename
from .download import LocalDownloader

__all__ = ["ExcludeFilter", "LocalArchiveBackend", "LocalDownloader", "package_filename"]
