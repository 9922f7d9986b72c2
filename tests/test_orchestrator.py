"""Tests for orchestrator.py - run-level composition."""

from unittest.mock import patch

import pytest

from native_release import orchestrator
from native_release.builds.runner import BuildExecutionError
from native_release.config import Settings
from native_release.deploy.device import AdbChannel
from native_release.types import DEBUG, RELEASE, DeployStatus, RevisionInfo
from native_release.version import VersionUnavailableError

REVISION = RevisionInfo(commit_count=42, short_hash="a1b2c3d")


class TestPackage:
    """Tests for orchestrator.package."""

    def test_builds_before_packaging(self, built_release: Settings):
        """The native build must run before the archive is written."""
        order: list[str] = []

        def fake_build(variant, settings):
            order.append("build")
            return []

        real_package = orchestrator.package_variant

        def tracking_package(variant, revision, settings):
            order.append("package")
            return real_package(variant, revision, settings)

        with (
            patch.object(orchestrator, "build_variant", side_effect=fake_build),
            patch.object(
                orchestrator, "package_variant", side_effect=tracking_package
            ),
        ):
            archive = orchestrator.package(RELEASE, built_release, revision=REVISION)

        assert order == ["build", "package"]
        assert archive.file_name == "magic_mount-a1b2c3d-42-release.zip"

    def test_build_failure_prevents_packaging(self, built_release: Settings):
        """A failed build should stop before packaging."""
        with patch.object(
            orchestrator,
            "build_variant",
            side_effect=BuildExecutionError("boom", code="build_failed"),
        ):
            with pytest.raises(BuildExecutionError):
                orchestrator.package(RELEASE, built_release, revision=REVISION)

        assert not built_release.release_dir.exists()

    def test_skip_build(self, built_release: Settings):
        """skip_build should not invoke the toolchain."""
        with patch.object(orchestrator, "build_variant") as mock_build:
            orchestrator.package(
                RELEASE, built_release, revision=REVISION, skip_build=True
            )
        mock_build.assert_not_called()

    def test_derives_revision_when_missing(self, built_release: Settings):
        """Without a revision, git should be queried."""
        with patch.object(
            orchestrator, "derive_revision_info", return_value=REVISION
        ) as mock_rev:
            archive = orchestrator.package(RELEASE, built_release, skip_build=True)

        mock_rev.assert_called_once()
        assert archive.revision == REVISION

    def test_version_unavailable_is_fatal(self, built_release: Settings):
        with patch.object(
            orchestrator,
            "derive_revision_info",
            side_effect=VersionUnavailableError("not a git repository"),
        ):
            with pytest.raises(VersionUnavailableError):
                orchestrator.package(RELEASE, built_release, skip_build=True)


class TestRelease:
    """Tests for orchestrator.release."""

    def test_single_revision_for_all_variants(self, built_release: Settings, make_tree):
        """All variants of a run should share one revision query."""
        make_tree(built_release, DEBUG)
        with patch.object(
            orchestrator, "derive_revision_info", return_value=REVISION
        ) as mock_rev:
            archives = orchestrator.release(
                [DEBUG, RELEASE], built_release, skip_build=True
            )

        mock_rev.assert_called_once()
        assert [a.file_name for a in archives] == [
            "magic_mount-a1b2c3d-42-debug.zip",
            "magic_mount-a1b2c3d-42-release.zip",
        ]


class TestInstall:
    """Tests for orchestrator.install."""

    def test_install_with_channel(self, built_release: Settings, make_channel):
        with patch.object(orchestrator, "build_variant") as mock_build:
            report = orchestrator.install(
                RELEASE, built_release, channel=make_channel()
            )

        mock_build.assert_called_once_with(RELEASE, built_release)
        assert report.results[0].status == DeployStatus.DEPLOYED

    def test_build_failure_prevents_deploy(self, built_release: Settings, make_channel):
        channel = make_channel()
        with patch.object(
            orchestrator,
            "build_variant",
            side_effect=BuildExecutionError("boom"),
        ):
            with pytest.raises(BuildExecutionError):
                orchestrator.install(RELEASE, built_release, channel=channel)
        assert channel.calls == []

    def test_default_channel_from_settings(self, tmp_path):
        settings = Settings(
            project_dir=tmp_path,
            adb_path="/opt/adb",
            adb_serial="abc",
            command_timeout=9,
        )
        channel = orchestrator.default_channel(settings)
        assert isinstance(channel, AdbChannel)
        assert (channel.adb_path, channel.serial, channel.timeout) == ("/opt/adb", "abc", 9)
