# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Progress rendering for archive builds."""

from __future__ import annotations

from abc import abstractmethod
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable

from rich.progress import BarColumn, Progress, TaskID, TaskProgressColumn, TextColumn

from .console import OutputSink, Verbosity
from .models import Package


@runtime_checkable
class ProgressReporter(Protocol):
    """Per-package progress feedback."""

    @property
    @abstractmethod
    def rich(self) -> bool:
        """Return ``True`` when ancillary output must be suppressed during packages."""
        raise NotImplementedError

    @abstractmethod
    def start(self, package: Package) -> None:
        """Report that ``package`` is about to be processed."""
        raise NotImplementedError

    @abstractmethod
    def advance(self) -> None:
        """Record that the current package has been processed."""
        raise NotImplementedError

    @abstractmethod
    def finish(self) -> None:
        """Close the progress display."""
        raise NotImplementedError


@dataclass(slots=True)
class LogProgressReporter:
    """Print one line per package before it is processed."""

    output: OutputSink

    @property
    def rich(self) -> bool:
        return False

    def start(self, package: Package) -> None:
        self.output.info(f"Dumping package '{package.name}' in version '{package.pretty_version}'.")

    def advance(self) -> None:
        return None

    def finish(self) -> None:
        return None


@dataclass(slots=True)
class RichProgressReporter:
    """Render a single progress bar with the package currently being archived.

    The bar writes straight to the sink's console so it keeps rendering while
    the sink itself is suppressed.
    """

    output: OutputSink
    total: int
    progress_factory: Callable[..., Progress] | None = None
    _progress: Progress | None = field(init=False, default=None)
    _task_id: TaskID | None = field(init=False, default=None)

    @property
    def rich(self) -> bool:
        return True

    def _ensure_started(self) -> tuple[Progress, TaskID]:
        if self._progress is None or self._task_id is None:
            factory = self.progress_factory or Progress
            progress = factory(
                TextColumn("{task.completed}/{task.total}"),
                BarColumn(),
                TaskProgressColumn(),
                TextColumn("- Installing {task.fields[package]} ({task.fields[version]})"),
                console=self.output.console,
            )
            self._task_id = progress.add_task("archives", total=self.total, package="", version="")
            progress.start()
            self._progress = progress
        return self._progress, self._task_id

    def start(self, package: Package) -> None:
        progress, task_id = self._ensure_started()
        progress.update(task_id, package=package.name, version=package.pretty_version)

    def advance(self) -> None:
        progress, task_id = self._ensure_started()
        progress.advance(task_id)

    def finish(self) -> None:
        if self._progress is not None:
            self._progress.stop()
            self._progress = None
            self._task_id = None


def build_progress_reporter(output: OutputSink, *, stats: bool, total: int) -> ProgressReporter:
    """Return the reporter matching the requested display.

    Args:
        output: Output sink for messages and the progress console.
        stats: Whether the rich progress bar was requested.
        total: Number of packages that will be processed.

    Returns:
        ProgressReporter: Rich bar at normal verbosity when requested, one log
        line per package otherwise.
    """

    if wants_rich_progress(output, stats=stats):
        return RichProgressReporter(output=output, total=total)
    return LogProgressReporter(output=output)


def wants_rich_progress(output: OutputSink, *, stats: bool) -> bool:
    """Return ``True`` when :func:`build_progress_reporter` would render a bar."""

    return stats and output.verbosity == Verbosity.NORMAL


__all__ = [
    "LogProgressReporter",
    "ProgressReporter",
    "RichProgressReporter",
    "build_progress_reporter",
    "wants_rich_progress",
]
