# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Decide which packages need no archiving work."""

from __future__ import annotations

from .config import BuildConfig
from .console import OutputSink
from .models import METAPACKAGE_TYPE, PASSTHROUGH_DIST_TYPE, Package
from .paths import PathPlanner


class SkipPolicy:
    """Cheap, side-effect free predicate run once per package before any work.

    A package is skipped when it has nothing to archive, is filtered out by
    the ``skip-dev``/``whitelist``/``blacklist`` settings, or already carries
    a dist produced by a previous run with the same format and checksum
    policy whose file still exists.
    """

    def __init__(self, config: BuildConfig, planner: PathPlanner, output: OutputSink) -> None:
        self._config = config
        self._planner = planner
        self._output = output

    def should_skip(self, package: Package) -> bool:
        """Return ``True`` when ``package`` needs no archive work."""

        if package.type == METAPACKAGE_TYPE:
            return True

        archive = self._config.archive
        name = package.pretty_string
        if archive.skip_dev and package.is_dev:
            self._output.info(f"Skipping '{name}' (is dev)")
            return True
        names = set(package.names)
        if archive.whitelist and not names.intersection(archive.whitelist):
            self._output.info(f"Skipping '{name}' (is not in whitelist)")
            return True
        if archive.blacklist and names.intersection(archive.blacklist):
            self._output.info(f"Skipping '{name}' (is in blacklist)")
            return True

        return self.is_already_archived(package)

    def is_already_archived(self, package: Package) -> bool:
        """Return ``True`` when ``package``'s dist is a still-present artifact of this configuration."""

        dist = package.dist
        if dist is None:
            return False
        expected_type = PASSTHROUGH_DIST_TYPE if self._planner.is_passthrough(package) else self._config.archive.format
        if dist.type != expected_type:
            return False
        if self._config.archive.checksum != (dist.shasum is not None):
            return False
        local = self._planner.local_path_for_url(dist.url)
        return local is not None and local.is_file()


__all__ = ["SkipPolicy"]
