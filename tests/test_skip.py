# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Tests for the skip policy."""

from __future__ import annotations

from pathlib import Path

from pkgdist.config import BuildConfig
from pkgdist.models import DistRecord, Package
from pkgdist.paths import PathPlanner
from pkgdist.skip import SkipPolicy
from tests.helpers.fakes import FakeBackend, console_text


def _policy(config: BuildConfig, output) -> SkipPolicy:
    return SkipPolicy(config, PathPlanner(config, FakeBackend()), output)


def _published(config: BuildConfig, package: Package, *, shasum: str | None = "0" * 40) -> Path:
    path = config.base_dir / "acme" / "widget" / "acme-widget-1.2.3.zip"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"zip")
    package.apply_dist(
        DistRecord(
            type=config.archive.format,
            url=f"{config.url_root}/acme/widget/{path.name}",
            reference="abc123",
            shasum=shasum,
        ),
    )
    return path


def test_fresh_package_is_not_skipped(make_config, make_package, output) -> None:
    assert not _policy(make_config(), output).should_skip(make_package())


def test_metapackage_is_skipped_silently(make_config, make_package, output) -> None:
    assert _policy(make_config(), output).should_skip(make_package(type="metapackage"))
    assert console_text(output) == ""


def test_dev_versions_skipped_when_configured(make_config, make_package, output) -> None:
    policy = _policy(make_config(**{"skip-dev": True}), output)

    assert policy.should_skip(make_package(version="dev-main"))
    assert not policy.should_skip(make_package(version="1.0.0"))
    assert "(is dev)" in console_text(output)


def test_whitelist_and_blacklist_match_any_package_name(make_config, make_package, output) -> None:
    whitelisted = _policy(make_config(whitelist=("acme/widget",)), output)
    assert not whitelisted.should_skip(make_package())
    assert not whitelisted.should_skip(make_package("acme/fork", replaces={"acme/widget": "self.version"}))
    assert whitelisted.should_skip(make_package("other/thing"))

    blacklisted = _policy(make_config(blacklist=("acme/widget",)), output)
    assert blacklisted.should_skip(make_package())
    assert not blacklisted.should_skip(make_package("other/thing"))
    assert "(is in blacklist)" in console_text(output)


def test_already_published_archive_is_skipped(make_config, make_package, output) -> None:
    config = make_config()
    package = make_package()
    _published(config, package)

    assert _policy(config, output).should_skip(package)


def test_missing_file_forces_rebuild(make_config, make_package, output) -> None:
    config = make_config()
    package = make_package()
    _published(config, package).unlink()

    assert not _policy(config, output).should_skip(package)


def test_format_or_checksum_policy_change_forces_rebuild(make_config, make_package, output) -> None:
    package = make_package()
    _published(make_config(), package)

    assert not _policy(make_config(format="tar"), output).should_skip(package)
    assert not _policy(make_config(checksum=False), output).should_skip(package)


def test_checksum_disabled_matches_dist_without_checksum(make_config, make_package, output) -> None:
    config = make_config(checksum=False)
    package = make_package()
    _published(config, package, shasum=None)

    assert _policy(config, output).should_skip(package)


def test_foreign_dist_url_is_not_skipped(make_config, make_package, output) -> None:
    # The fixture package points at an upstream zip, which this run never produced.
    assert not _policy(make_config(), output).should_skip(make_package())
