# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Downloader fetching dist files and source checkouts."""

from __future__ import annotations

import shutil
import tarfile
import zipfile
from pathlib import Path
from types import TracebackType
from typing import Final
from urllib.parse import unquote, urlsplit

import httpx

from ..metadata import file_sha1
from ..models import Package
from ..paths import dist_url_basename
from ..process_utils import run_command

DEFAULT_TIMEOUT: Final[float] = 60.0
_CHUNK_SIZE: Final[int] = 1024 * 64
_REMOTE_SCHEMES: Final[frozenset[str]] = frozenset({"http", "https"})


def _local_path(url: str) -> Path | None:
    """Return the filesystem path behind ``url`` when it is local."""

    parts = urlsplit(url)
    if parts.scheme == "file":
        return Path(unquote(parts.path))
    if parts.scheme in _REMOTE_SCHEMES:
        return None
    if len(parts.scheme) == 1:
        # Windows drive letter parsed as a scheme.
        return Path(url)
    if parts.scheme:
        return None
    return Path(url)


def _single_root(directory: Path) -> Path:
    """Return the only child directory of ``directory``, or ``directory`` itself."""

    children = list(directory.iterdir())
    if len(children) == 1 and children[0].is_dir():
        return children[0]
    return directory


class LocalDownloader:
    """Fetch dist files over HTTP(S) or from the local filesystem, and sources via git.

    Dist downloads are verified against the recorded ``shasum`` when present.
    Source checkouts fall back to unpacking the dist when the package has no
    usable source.
    """

    def __init__(self, client: httpx.Client | None = None, *, timeout: float = DEFAULT_TIMEOUT) -> None:
        """Create the downloader.

        Args:
            client: HTTP client to reuse; one is created (and owned) when omitted.
            timeout: Request timeout in seconds for the owned client.
        """

        self._owns_client = client is None
        self._client = client or httpx.Client(timeout=timeout, follow_redirects=True)

    def __enter__(self) -> LocalDownloader:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.close()

    def close(self) -> None:
        """Close the HTTP client when it is owned by the downloader."""

        if self._owns_client:
            self._client.close()

    def fetch(self, package: Package, destination: Path, prefer_source: bool = False) -> Path:
        if prefer_source:
            return self.checkout(package, destination)
        return self.download_dist(package, destination)

    def download_dist(self, package: Package, destination: Path) -> Path:
        """Download ``package``'s dist file into ``destination`` and return it.

        Raises:
            ValueError: If the package has no dist or the checksum does not match.
            httpx.HTTPError: If the remote download fails.
            OSError: If a local dist cannot be copied.
        """

        dist = package.dist
        if dist is None or not dist.url:
            raise ValueError(f"package {package.pretty_string} has no dist URL")
        target = destination / (dist_url_basename(dist.url) or "dist")
        local = _local_path(dist.url)
        if local is not None:
            shutil.copyfile(local, target)
        else:
            self._stream(dist.url, target)
        if dist.shasum and file_sha1(target) != dist.shasum:
            raise ValueError(f"checksum mismatch for {dist.url}")
        return target

    def checkout(self, package: Package, destination: Path) -> Path:
        """Materialise ``package``'s source tree below ``destination`` and return it."""

        checkout = destination / "source"
        source = package.source
        if source is not None and source.type == "git":
            run_command(["git", "clone", "--quiet", source.url, str(checkout)])
            if source.reference:
                run_command(["git", "-C", str(checkout), "checkout", "--quiet", source.reference])
            return checkout
        if source is not None and source.type == "path":
            local = _local_path(source.url)
            if local is not None and local.is_dir():
                shutil.copytree(local, checkout, symlinks=True)
                return checkout

        archive = self.download_dist(package, destination)
        checkout.mkdir()
        _extract(archive, checkout)
        archive.unlink()
        return _single_root(checkout)

    def _stream(self, url: str, target: Path) -> None:
        with self._client.stream("GET", url) as response:
            response.raise_for_status()
            with target.open("wb") as handle:
                for chunk in response.iter_bytes(_CHUNK_SIZE):
                    handle.write(chunk)


def _extract(archive: Path, destination: Path) -> None:
    if zipfile.is_zipfile(archive):
        with zipfile.ZipFile(archive) as bundle:
            bundle.extractall(destination)
        return
    if tarfile.is_tarfile(archive):
        with tarfile.open(archive) as bundle:
            bundle.extractall(destination, filter="data")
        return
    raise ValueError(f"cannot unpack dist archive '{archive.name}'")


__all__ = ["LocalDownloader"]
