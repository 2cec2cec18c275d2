# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Console output with verbosity levels and scoped suppression."""

from __future__ import annotations

import sys
from collections.abc import Iterator
from contextlib import contextmanager
from enum import IntEnum
from typing import Literal

from rich.console import Console
from rich.text import Text


class Verbosity(IntEnum):
    """Ordered output levels; a message prints when its level is <= the sink's."""

    QUIET = 0
    NORMAL = 1
    VERBOSE = 2
    VERY_VERBOSE = 3
    DEBUG = 4


def detect_tty() -> bool:
    """Return ``True`` when stdout appears to be backed by a terminal.

    Returns:
        bool: ``True`` when ``sys.stdout`` reports TTY support, ``False`` otherwise.
    """

    try:
        return sys.stdout.isatty()
    except (AttributeError, ValueError):
        return False


def build_console(*, color: bool, emoji: bool) -> Console:
    """Return a Rich console configured for ``color`` and ``emoji`` preferences.

    Args:
        color: ``True`` when ANSI colour output should be enabled.
        emoji: ``True`` when Rich should render emoji glyphs.

    Returns:
        Console: Console honouring the presentation flags and TTY detection.
    """

    tty = detect_tty()
    color_system: Literal["auto", "standard", "256", "truecolor", "windows"] | None = (
        "auto" if color and tty else None
    )
    return Console(
        color_system=color_system,
        force_terminal=tty,
        no_color=not (color and tty),
        emoji=emoji,
        soft_wrap=True,
    )


class OutputSink:
    """User-facing output channel shared by the builder and its collaborators.

    Messages carry a minimum verbosity. ``suppressed()`` temporarily drops the
    sink to :attr:`Verbosity.QUIET` so nothing but the progress display reaches
    the terminal, restoring the previous level on every exit path.
    """

    def __init__(
        self,
        console: Console | None = None,
        *,
        verbosity: Verbosity = Verbosity.NORMAL,
        use_emoji: bool = False,
        use_color: bool = True,
    ) -> None:
        """Create a sink writing to ``console``.

        Args:
            console: Rich console; a TTY-aware console is built when omitted.
            verbosity: Initial verbosity level.
            use_emoji: Whether status helpers prefix messages with emoji.
            use_color: Whether status helpers apply colour styles.
        """

        self.console = console or build_console(color=use_color, emoji=use_emoji)
        self._verbosity = verbosity
        self._use_emoji = use_emoji
        self._use_color = use_color
        self._suppressed = False

    @property
    def verbosity(self) -> Verbosity:
        """Return the current verbosity level."""

        return self._verbosity

    @verbosity.setter
    def verbosity(self, value: Verbosity) -> None:
        self._verbosity = Verbosity(value)

    def enabled_for(self, level: Verbosity) -> bool:
        """Return ``True`` when messages at ``level`` are currently printed."""

        return self._verbosity >= level > Verbosity.QUIET

    @contextmanager
    def suppressed(self) -> Iterator[None]:
        """Silence ancillary output for the duration of the ``with`` block."""

        previous = (self._verbosity, self._suppressed)
        self._verbosity = Verbosity.QUIET
        self._suppressed = True
        try:
            yield
        finally:
            self._verbosity, self._suppressed = previous

    def write(self, message: str, *, level: Verbosity = Verbosity.NORMAL, style: str | None = None) -> None:
        """Print ``message`` when the sink is at least ``level``."""

        if self.enabled_for(level):
            self._print(message, style)

    def _print(self, message: str, style: str | None) -> None:
        text = Text(message)
        if style and self._use_color:
            text.stylize(style)
        self.console.print(text)

    def _prefixed(self, symbol: str, message: str) -> str:
        return f"{symbol}{message}" if self._use_emoji else message

    def info(self, message: str, *, level: Verbosity = Verbosity.NORMAL) -> None:
        """Emit an informational message."""

        self.write(self._prefixed("ℹ️ ", message), level=level, style="cyan")

    def ok(self, message: str) -> None:
        """Emit a success message."""

        self.write(self._prefixed("✅ ", message), style="green")

    def warn(self, message: str) -> None:
        """Emit a warning message."""

        self.write(self._prefixed("⚠️ ", message), style="yellow")

    def fail(self, message: str) -> None:
        """Emit an error message.

        Errors print at every verbosity, including QUIET, but not inside a
        :meth:`suppressed` block.
        """

        if not self._suppressed:
            self._print(self._prefixed("❌ ", message), "red")

    def debug(self, message: str) -> None:
        """Emit a debug message."""

        self.write(f"[debug] {message}", level=Verbosity.DEBUG, style="dim")


__all__ = ["OutputSink", "Verbosity", "build_console", "detect_tty"]
