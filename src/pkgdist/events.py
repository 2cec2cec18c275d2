# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Event dispatching for archive lifecycle hooks."""

from __future__ import annotations

import os
import shlex
from collections import defaultdict
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Final

from .console import OutputSink, Verbosity
from .process_utils import run_command

PRE_ARCHIVE_DUMP: Final[str] = "pre-archive-dump"

Listener = Callable[[object], None]


@dataclass(frozen=True, slots=True)
class PreArchiveDumpEvent:
    """Fired right before a prepared source tree is snapshotted into an archive."""

    name: str
    path: Path


class EventDispatcher:
    """Deliver events to listeners registered per event name, in order."""

    def __init__(self) -> None:
        self._listeners: defaultdict[str, list[Listener]] = defaultdict(list)

    def add_listener(self, event_name: str, listener: Listener) -> None:
        """Register ``listener`` for ``event_name``."""

        self._listeners[event_name].append(listener)

    def listeners(self, event_name: str) -> tuple[Listener, ...]:
        """Return the listeners registered for ``event_name``."""

        return tuple(self._listeners.get(event_name, ()))

    def dispatch(self, event_name: str, event: object) -> None:
        """Call each listener of ``event_name`` with ``event``.

        Listener exceptions propagate to the caller unchanged.
        """

        for listener in self.listeners(event_name):
            listener(event)


@dataclass(slots=True)
class ScriptListener:
    """Run a configured shell command when an archive event fires.

    The command runs inside the event path when it is a directory (the
    prepared source tree) and receives the path as ``PKGDIST_ARCHIVE_PATH``.
    """

    command: str
    output: OutputSink

    def __call__(self, event: object) -> None:
        path = getattr(event, "path", None)
        env = dict(os.environ)
        cwd: Path | None = None
        if isinstance(path, Path):
            env["PKGDIST_ARCHIVE_PATH"] = str(path)
            cwd = path if path.is_dir() else None
        self.output.debug(f"hook command={self.command!r} cwd={cwd}")
        completed = run_command(shlex.split(self.command), cwd=cwd, env=env)
        if completed.stdout:
            self.output.write(completed.stdout.rstrip(), level=Verbosity.VERBOSE)


def build_dispatcher(scripts: Mapping[str, Sequence[str]], output: OutputSink) -> EventDispatcher:
    """Return a dispatcher with script listeners for each configured event."""

    dispatcher = EventDispatcher()
    for event_name, commands in scripts.items():
        for command in commands:
            dispatcher.add_listener(event_name, ScriptListener(command=command, output=output))
    return dispatcher


__all__ = [
    "PRE_ARCHIVE_DUMP",
    "EventDispatcher",
    "PreArchiveDumpEvent",
    "ScriptListener",
    "build_dispatcher",
]
