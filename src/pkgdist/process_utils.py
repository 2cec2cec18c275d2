# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Safe wrappers around ``subprocess`` execution for git and hook commands."""

from __future__ import annotations

import shutil

# Bandit: commands are built from argument lists; ``shell=True`` is never used.
import subprocess  # nosec B404
from collections.abc import Mapping, Sequence
from pathlib import Path


class SubprocessExecutionError(RuntimeError):
    """Raised when a subprocess exits with a non-zero status while ``check`` is true."""

    def __init__(self, command: Sequence[str], returncode: int, stderr: str | None) -> None:
        super().__init__(
            f"Command '{' '.join(command)}' exited with status {returncode}. stderr: {stderr or '<none>'}",
        )
        self.command = tuple(command)
        self.returncode = returncode
        self.stderr = stderr


def _resolve_executable(args: Sequence[str]) -> list[str]:
    if not args:
        raise ValueError("subprocess command requires at least one argument")

    head, *rest = args
    if Path(head).is_absolute():
        return [head, *rest]
    resolved = shutil.which(head)
    if resolved is None:
        raise FileNotFoundError(f"Executable '{head}' was not found on PATH")
    return [resolved, *rest]


def run_command(
    args: Sequence[str],
    *,
    cwd: Path | None = None,
    env: Mapping[str, str] | None = None,
    check: bool = True,
    timeout: float | None = None,
) -> subprocess.CompletedProcess[str]:
    """Execute ``args`` with captured text output.

    Args:
        args: Command and arguments; the executable is resolved on ``PATH``.
        cwd: Working directory for the command.
        env: Complete environment for the child process.
        check: Raise :class:`SubprocessExecutionError` on a non-zero exit.
        timeout: Seconds before the command is treated as failed.

    Returns:
        CompletedProcess[str]: Completed process with captured output.
    """

    command = _resolve_executable(args)
    try:
        # Bandit: argument list without shell expansion.
        completed = subprocess.run(  # nosec B603
            command,
            cwd=str(cwd) if cwd is not None else None,
            env=dict(env) if env is not None else None,
            check=False,
            capture_output=True,
            text=True,
            timeout=timeout,
            stdin=subprocess.DEVNULL,
        )
    except subprocess.TimeoutExpired as exc:
        completed = subprocess.CompletedProcess(
            args=command,
            returncode=124,
            stdout="",
            stderr=f"Command timed out after {exc.timeout:.1f}s",
        )

    if check and completed.returncode != 0:
        raise SubprocessExecutionError(command, completed.returncode, completed.stderr)
    return completed


__all__ = ["SubprocessExecutionError", "run_command"]
