# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Command-line entry point for building repository archives."""

from __future__ import annotations

import random
import signal
from collections.abc import Iterator
from contextlib import ExitStack, contextmanager
from pathlib import Path
from types import FrameType
from typing import Annotated

import typer

from .backends import LocalArchiveBackend, LocalDownloader
from .builder import ArchiveBuilder, ArchiveBuilderDeps
from .cancellation import CancellationToken
from .config import ConfigError, load_config
from .console import OutputSink, Verbosity
from .errors import ArchiveError
from .events import build_dispatcher
from .models import BuildResult, OutcomeKind
from .serialization import PackageLoadError, dump_packages, load_packages

app = typer.Typer(
    help="Build downloadable archives for a static package repository.",
    add_completion=False,
    no_args_is_help=True,
)


class CLIError(RuntimeError):
    """Error raised when a CLI command fails and should exit with a status code."""

    def __init__(self, message: str, *, exit_code: int = 1) -> None:
        """Initialise the error with a message and exit code.

        Args:
            message: Human-readable error message shown to the user.
            exit_code: Exit status associated with the failure.
        """

        super().__init__(message)
        self.exit_code = exit_code


@app.callback()
def main() -> None:
    """Build downloadable archives for a static package repository."""


def resolve_verbosity(*, verbose: int, quiet: bool) -> Verbosity:
    """Map ``-v`` repetitions and ``--quiet`` onto a :class:`Verbosity`."""

    if quiet:
        return Verbosity.QUIET
    return Verbosity(min(Verbosity.NORMAL + verbose, Verbosity.DEBUG))


@contextmanager
def cancel_on_interrupt(token: CancellationToken, output: OutputSink) -> Iterator[None]:
    """Turn the first Ctrl-C into a cancellation request; the second one aborts."""

    previous = signal.getsignal(signal.SIGINT)

    def _handler(signum: int, frame: FrameType | None) -> None:
        if token.is_cancelled():
            signal.signal(signal.SIGINT, previous)
            raise KeyboardInterrupt
        output.warn("Interrupt received; finishing the current package before stopping.")
        token.cancel()

    signal.signal(signal.SIGINT, _handler)
    try:
        yield
    finally:
        signal.signal(signal.SIGINT, previous)


def _summarise(result: BuildResult, output: OutputSink) -> None:
    output.ok(
        f"Archives: {result.count(OutcomeKind.PRODUCED)} produced, "
        f"{result.count(OutcomeKind.REUSED)} reused, {result.count(OutcomeKind.SKIPPED)} skipped.",
    )
    for failure in result.failures:
        output.fail(f"Failed: {failure.error}")


@app.command("build")
def build(
    config_file: Annotated[Path, typer.Argument(help="JSON build configuration.")],
    packages_file: Annotated[Path, typer.Argument(help="JSON list of resolved packages.")],
    output_dir: Annotated[
        Path | None,
        typer.Option("--output-dir", "-o", help="Override the configured output directory."),
    ] = None,
    packages_out: Annotated[
        Path | None,
        typer.Option("--packages-out", help="Write updated packages here instead of PACKAGES_FILE."),
    ] = None,
    stats: Annotated[bool, typer.Option("--stats", help="Render a progress bar.")] = False,
    skip_errors: Annotated[
        bool,
        typer.Option("--skip-errors", help="Report failing packages and continue."),
    ] = False,
    seed: Annotated[int | None, typer.Option("--seed", help="Seed for the package visiting order.")] = None,
    verbose: Annotated[int, typer.Option("--verbose", "-v", count=True, help="Increase verbosity.")] = 0,
    quiet: Annotated[bool, typer.Option("--quiet", "-q", help="Only report errors.")] = False,
    emoji: Annotated[bool, typer.Option("--emoji/--no-emoji", help="Prefix messages with emoji.")] = False,
    color: Annotated[bool, typer.Option("--color/--no-color", help="Colour output.")] = True,
) -> None:
    """Archive every package and repoint its dist at the produced file."""

    output = OutputSink(verbosity=resolve_verbosity(verbose=verbose, quiet=quiet), use_emoji=emoji, use_color=color)
    try:
        result = _run_build(
            config_file,
            packages_file,
            output,
            output_dir=output_dir,
            packages_out=packages_out or packages_file,
            stats=stats,
            skip_errors=skip_errors,
            seed=seed,
        )
    except CLIError as exc:
        output.fail(str(exc))
        raise typer.Exit(code=exc.exit_code) from exc
    raise typer.Exit(code=result.exit_code)


def _run_build(
    config_file: Path,
    packages_file: Path,
    output: OutputSink,
    *,
    output_dir: Path | None,
    packages_out: Path,
    stats: bool,
    skip_errors: bool,
    seed: int | None,
) -> BuildResult:
    try:
        config = load_config(config_file, output_dir=output_dir)
        packages = load_packages(packages_file)
    except (ConfigError, PackageLoadError) as exc:
        raise CLIError(str(exc), exit_code=2) from exc

    token = CancellationToken()
    with ExitStack() as stack:
        downloader = stack.enter_context(LocalDownloader())
        backend = stack.enter_context(LocalArchiveBackend(downloader))
        stack.enter_context(cancel_on_interrupt(token, output))
        deps = ArchiveBuilderDeps(
            backend=backend,
            downloader=downloader,
            events=build_dispatcher(config.scripts, output),
            output=output,
            rng=random.Random(seed),
            cancellation=token,
        )
        builder = ArchiveBuilder(config, deps, skip_errors=skip_errors, stats=stats)
        try:
            result = builder.dump(packages)
        except ArchiveError as exc:
            raise CLIError(f"Archiving failed: {exc}", exit_code=1) from exc
        finally:
            # Written even after an abort; finished packages keep their new dist.
            dump_packages(packages, packages_out)

    _summarise(result, output)
    return result


__all__ = ["CLIError", "app", "build", "resolve_verbosity"]
