# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Core data models shared across the pkgdist package."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Final

from pydantic import BaseModel, ConfigDict, Field, field_validator

PASSTHROUGH_DIST_TYPE: Final[str] = "file"
METAPACKAGE_TYPE: Final[str] = "metapackage"

_DEV_VERSION_RE: Final[re.Pattern[str]] = re.compile(r"(^dev-|-dev$)", re.IGNORECASE)


class SourceRecord(BaseModel):
    """Version-control coordinates of a package checkout.

    Unknown keys (such as ``mirrors``) are kept so they survive a round trip.
    """

    model_config = ConfigDict(frozen=True, extra="allow")

    type: str
    url: str
    reference: str | None = None


class DistRecord(BaseModel):
    """Downloadable artifact advertised for a package version.

    Records are immutable; a package's dist is replaced as a whole so readers
    never observe a half-updated record. Unknown keys are kept as extras.
    """

    model_config = ConfigDict(frozen=True, extra="allow")

    type: str
    url: str
    reference: str | None = None
    shasum: str | None = None

    @field_validator("shasum")
    @classmethod
    def _blank_shasum_to_none(cls, value: str | None) -> str | None:
        return value or None


class Package(BaseModel):
    """Resolved package version handed over by the upstream resolver."""

    model_config = ConfigDict(validate_assignment=True)

    name: str
    version: str
    pretty_version: str
    type: str = "library"
    source: SourceRecord | None = None
    dist: DistRecord | None = None
    replaces: dict[str, str] = Field(default_factory=dict)
    provides: dict[str, str] = Field(default_factory=dict)
    archive: dict[str, Any] = Field(default_factory=dict)
    extra: dict[str, Any] = Field(default_factory=dict)

    @property
    def pretty_string(self) -> str:
        """Return ``"name version"`` as used in user-facing messages."""

        return f"{self.name} {self.pretty_version}"

    @property
    def names(self) -> tuple[str, ...]:
        """Return the package name followed by replaced and provided names."""

        return (self.name, *self.replaces, *self.provides)

    @property
    def archive_excludes(self) -> tuple[str, ...]:
        """Return the ``archive.exclude`` patterns of the package."""

        return tuple(self.archive.get("exclude") or ())

    @property
    def is_dev(self) -> bool:
        """Return ``True`` for branch (``dev-*`` / ``*-dev``) versions."""

        return bool(_DEV_VERSION_RE.search(self.version)) or bool(_DEV_VERSION_RE.search(self.pretty_version))

    @property
    def source_reference(self) -> str | None:
        """Return the VCS reference of the source checkout, if any."""

        return self.source.reference if self.source is not None else None

    @property
    def dist_type(self) -> str | None:
        """Return the current dist type, if a dist is recorded."""

        return self.dist.type if self.dist is not None else None

    @property
    def dist_url(self) -> str | None:
        """Return the current dist URL, if a dist is recorded."""

        return self.dist.url if self.dist is not None else None

    def apply_dist(self, record: DistRecord) -> None:
        """Replace the package's dist with ``record`` in a single assignment."""

        self.dist = record

    def viewed_with_dist_type(self, dist_type: str) -> Package:
        """Return a detached copy whose dist advertises ``dist_type``.

        The copy is used for filename planning under ``override-dist-type``;
        the original package keeps its dist untouched.
        """

        if self.dist is None:
            dist = DistRecord(type=dist_type, url="", reference=self.source_reference)
        else:
            dist = self.dist.model_copy(update={"type": dist_type})
        return self.model_copy(update={"dist": dist})


class OutcomeKind(str, Enum):
    """Per-package result of a build run."""

    PRODUCED = "produced"
    REUSED = "reused"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(slots=True)
class BuildOutcome:
    """Outcome of archiving one package."""

    package: str
    kind: OutcomeKind
    path: Path | None = None
    error: Exception | None = None


@dataclass(slots=True)
class BuildResult:
    """Aggregate of per-package outcomes for one build run."""

    outcomes: list[BuildOutcome] = field(default_factory=list)
    cancelled: bool = False

    def register(self, outcome: BuildOutcome) -> None:
        """Append ``outcome`` to the result."""

        self.outcomes.append(outcome)

    def count(self, kind: OutcomeKind) -> int:
        """Return the number of outcomes of ``kind``."""

        return sum(1 for outcome in self.outcomes if outcome.kind is kind)

    @property
    def failures(self) -> list[BuildOutcome]:
        """Return outcomes for packages that failed."""

        return [outcome for outcome in self.outcomes if outcome.kind is OutcomeKind.FAILED]

    @property
    def failed(self) -> bool:
        """Return ``True`` when at least one package failed."""

        return bool(self.failures)

    @property
    def exit_code(self) -> int:
        """Return the process exit status summarising the run."""

        return 1 if self.failed or self.cancelled else 0


__all__ = [
    "METAPACKAGE_TYPE",
    "PASSTHROUGH_DIST_TYPE",
    "BuildOutcome",
    "BuildResult",
    "DistRecord",
    "OutcomeKind",
    "Package",
    "SourceRecord",
]
