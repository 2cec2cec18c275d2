# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Test doubles for the archive backend, downloader and event sink."""

from __future__ import annotations

import io
from pathlib import Path

from pkgdist.backends.archive import package_filename
from pkgdist.console import OutputSink, Verbosity
from pkgdist.models import Package
from pkgdist.paths import dist_url_basename


class FakeBackend:
    """Archive backend writing deterministic bytes and recording calls."""

    def __init__(self, *, fail_for: tuple[str, ...] = (), output: OutputSink | None = None) -> None:
        self.fail_for = fail_for
        self.output = output
        self.prepared: list[str] = []
        self.dumped: list[str] = []
        self.dump_verbosity: list[Verbosity] = []

    def filename(self, package: Package) -> str:
        return package_filename(package)

    def prepare(self, package: Package, fmt: str, target_dir: Path) -> tuple[Path, bool]:
        self.prepared.append(package.name)
        target = target_dir / f"{self.filename(package)}.{fmt}"
        if target.exists():
            return target, True
        return target_dir / f".{package_filename(package)}-src", False

    def dump(self, package: Package, fmt: str, target_dir: Path, prepared: Path, ignore_filters: bool) -> Path:
        self.dumped.append(package.name)
        if self.output is not None:
            self.dump_verbosity.append(self.output.verbosity)
        target = target_dir / f"{self.filename(package)}.{fmt}"
        if package.name in self.fail_for:
            target.write_bytes(b"partial")
            raise RuntimeError(f"cannot archive {package.name}")
        target.write_bytes(f"{package.name}:{package.pretty_version}:{fmt}:{ignore_filters}".encode())
        return target


class FakeDownloader:
    """Downloader writing a fixed payload named after the dist URL."""

    def __init__(self, payload: bytes = b"original-dist-bytes", *, fail: bool = False) -> None:
        self.payload = payload
        self.fail = fail
        self.destinations: list[Path] = []

    def fetch(self, package: Package, destination: Path, prefer_source: bool = False) -> Path:
        self.destinations.append(destination)
        if self.fail:
            raise ConnectionError("connection reset")
        assert package.dist is not None
        target = destination / dist_url_basename(package.dist.url)
        target.write_bytes(self.payload)
        return target


class RecordingEvents:
    """Event sink recording dispatched events, optionally failing."""

    def __init__(self, *, error: Exception | None = None) -> None:
        self.error = error
        self.events: list[tuple[str, object]] = []

    def dispatch(self, event_name: str, event: object) -> None:
        self.events.append((event_name, event))
        if self.error is not None:
            raise self.error


def console_text(sink: OutputSink) -> str:
    """Return everything printed to ``sink``'s in-memory console."""

    file = sink.console.file
    assert isinstance(file, io.StringIO)
    return file.getvalue()
