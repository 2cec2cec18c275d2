# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""High level orchestration for building the archives of a package repository."""

from __future__ import annotations

import random
from collections.abc import Sequence
from contextlib import AbstractContextManager, nullcontext
from dataclasses import dataclass, field
from pathlib import Path

from .cancellation import CancellationToken
from .config import BuildConfig
from .console import OutputSink
from .errors import ArchiveBackendError, ArchiveError, FilesystemError, failures_as
from .interfaces import ArchiveBackend, Downloader, EventSink
from .metadata import DistMetadataWriter
from .models import BuildOutcome, BuildResult, OutcomeKind, Package
from .paths import PathPlanner
from .producer import ArchiveProducer
from .progress import ProgressReporter, build_progress_reporter
from .skip import SkipPolicy


@dataclass(frozen=True)
class ArchiveBuilderDeps:
    """Collaborators required to construct an :class:`ArchiveBuilder`."""

    backend: ArchiveBackend
    downloader: Downloader
    events: EventSink
    output: OutputSink
    rng: random.Random = field(default_factory=random.Random)
    cancellation: CancellationToken = field(default_factory=CancellationToken)
    temp_root: Path | None = None


class ArchiveBuilder:
    """Produce a downloadable archive for every package and repoint its dist.

    Packages are visited in a random order. Skippable packages are filtered
    once up front so the progress total is exact. Each remaining package is
    planned, produced, and has its dist replaced; a failure either aborts the
    run or, with ``skip_errors``, is reported and recorded as a failed outcome.
    """

    def __init__(
        self,
        config: BuildConfig,
        deps: ArchiveBuilderDeps,
        *,
        skip_errors: bool = False,
        stats: bool = False,
    ) -> None:
        """Create a builder with all collaborators bound.

        Args:
            config: Build configuration for the run.
            deps: Archive backend, downloader, events, output and run controls.
            skip_errors: Report per-package failures and continue instead of aborting.
            stats: Render a progress bar instead of one line per package.
        """

        self._config = config
        self._output = deps.output
        self._rng = deps.rng
        self._cancellation = deps.cancellation
        self._skip_errors = skip_errors
        self._stats = stats
        self._planner = PathPlanner(config, deps.backend)
        self._skip_policy = SkipPolicy(config, self._planner, deps.output)
        self._producer = ArchiveProducer(
            config,
            backend=deps.backend,
            downloader=deps.downloader,
            events=deps.events,
            output=deps.output,
            temp_root=deps.temp_root,
        )
        self._writer = DistMetadataWriter(config)

    @property
    def planner(self) -> PathPlanner:
        """Return the path planner used by the builder."""

        return self._planner

    def dump(self, packages: Sequence[Package]) -> BuildResult:
        """Archive ``packages``, updating each processed package's dist in place.

        Args:
            packages: Resolved packages to archive.

        Returns:
            BuildResult: Outcome per visited package.

        Raises:
            ArchiveError: On the first package failure when ``skip_errors`` is off.
                Packages processed before the failure keep their new dist.
        """

        base_dir = self._planner.base_dir
        base_dir.mkdir(parents=True, exist_ok=True)
        self._output.info(f"Creating local downloads in '{base_dir}'")

        ordered = list(packages)
        self._rng.shuffle(ordered)
        decisions = [(package, self._skip_policy.should_skip(package)) for package in ordered]
        total = sum(1 for _, skip in decisions if not skip)
        reporter = build_progress_reporter(self._output, stats=self._stats, total=total)

        result = BuildResult()
        try:
            for package, skip in decisions:
                if skip:
                    result.register(BuildOutcome(package=package.pretty_string, kind=OutcomeKind.SKIPPED))
                    continue
                if self._cancellation.is_cancelled():
                    result.cancelled = True
                    self._output.warn("Archive build cancelled; remaining packages were not processed.")
                    break
                result.register(self._archive_one(package, reporter))
                reporter.advance()
        finally:
            reporter.finish()
        return result

    def _archive_one(self, package: Package, reporter: ProgressReporter) -> BuildOutcome:
        reporter.start(package)
        scope: AbstractContextManager[None] = self._output.suppressed() if reporter.rich else nullcontext()
        try:
            with scope:
                return self._process(package)
        except ArchiveError as exc:
            if not self._skip_errors:
                raise
            self._output.fail(f"Skipping Exception '{exc}'.")
            return BuildOutcome(package=package.pretty_string, kind=OutcomeKind.FAILED, error=exc)

    def _process(self, package: Package) -> BuildOutcome:
        name = package.pretty_string
        with failures_as(ArchiveBackendError, name):
            plan = self._planner.plan(package)
        produced = self._producer.produce(package, plan)
        with failures_as(FilesystemError, name):
            self._writer.apply(package, plan, produced.path, produced.dist_type)
        kind = OutcomeKind.REUSED if produced.reused else OutcomeKind.PRODUCED
        self._output.debug(f"package={package.name} outcome={kind.value} path={produced.path}")
        return BuildOutcome(package=package.pretty_string, kind=kind, path=produced.path)


__all__ = ["ArchiveBuilder", "ArchiveBuilderDeps"]
