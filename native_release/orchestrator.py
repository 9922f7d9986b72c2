"""Run-level orchestration.

This module provides the high-level API used by the CLI:
- package(): build a variant, then zip it under the release directory
- install(): build a variant, then deploy it to the connected device
- release(): package several variants under one revision

Every packaging or deployment step waits for the variant's native build;
nothing runs concurrently. Revision info is derived once per run and
passed down explicitly.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable

from native_release.builds.runner import build_variant
from native_release.config import Settings
from native_release.deploy.device import AdbChannel, DeviceChannel
from native_release.deploy.service import DeploymentReport, deploy_variant
from native_release.packaging.archive import PackagedArchive, package_variant
from native_release.types import BuildVariant, RevisionInfo
from native_release.version import derive_revision_info

logger = logging.getLogger(__name__)


def current_revision(settings: Settings) -> RevisionInfo:
    """Derive revision info for the project working tree."""
    return derive_revision_info(
        settings.project_dir,
        git=settings.git_path,
        timeout=settings.timeout_or_none(settings.command_timeout),
    )


def ensure_built(variant: BuildVariant, settings: Settings, skip_build: bool) -> None:
    """Run the native build for a variant unless told it already ran.

    Raises:
        BuildExecutionError: If any ABI fails to build.
    """
    if skip_build:
        logger.info("Skipping native build of %s", variant.name)
        return
    build_variant(variant, settings)


def default_channel(settings: Settings) -> AdbChannel:
    return AdbChannel(
        adb_path=settings.adb_path,
        serial=settings.adb_serial,
        timeout=settings.timeout_or_none(settings.command_timeout),
    )


def package(
    variant: BuildVariant,
    settings: Settings,
    *,
    revision: RevisionInfo | None = None,
    skip_build: bool = False,
) -> PackagedArchive:
    """Build (unless skipped) and package one variant.

    Args:
        variant: Variant to package.
        settings: Application settings.
        revision: Revision for the archive name; derived from git if None.
        skip_build: Assume the native build already completed.

    Returns:
        The written archive.

    Raises:
        VersionUnavailableError: Revision could not be derived.
        BuildExecutionError: Native build failed.
        PackagingFailedError: Archive could not be produced.
    """
    if revision is None:
        revision = current_revision(settings)
    ensure_built(variant, settings, skip_build)
    archive = package_variant(variant, revision, settings)
    logger.info("Packaged %s as %s", variant.name, archive.path)
    return archive


def release(
    variants: Iterable[BuildVariant],
    settings: Settings,
    *,
    skip_build: bool = False,
) -> list[PackagedArchive]:
    """Package several variants under one revision.

    Revision info is derived once, so all archives carry the same version
    even if HEAD moves during the run.
    """
    revision = current_revision(settings)
    return [
        package(variant, settings, revision=revision, skip_build=skip_build)
        for variant in variants
    ]


def install(
    variant: BuildVariant,
    settings: Settings,
    *,
    channel: DeviceChannel | None = None,
    skip_build: bool = False,
    strict_abi: bool | None = None,
    fail_on_primary_error: bool | None = None,
    cancel_event: threading.Event | None = None,
) -> DeploymentReport:
    """Build (unless skipped) and deploy one variant to the device.

    Args:
        variant: Variant to deploy.
        settings: Application settings.
        channel: Device channel; an AdbChannel from settings if None.
        skip_build: Assume the native build already completed.
        strict_abi: Raise on unknown device ABIs (defaults to settings).
        fail_on_primary_error: Raise if the primary ABI failed (defaults to settings).
        cancel_event: Checked before each ABI transfer.

    Returns:
        DeploymentReport for the run.
    """
    ensure_built(variant, settings, skip_build)
    if channel is None:
        channel = default_channel(settings)
    return deploy_variant(
        variant,
        channel,
        settings,
        strict_abi=strict_abi,
        fail_on_primary_error=fail_on_primary_error,
        cancel_event=cancel_event,
    )


__all__ = [
    "current_revision",
    "default_channel",
    "ensure_built",
    "install",
    "package",
    "release",
]
