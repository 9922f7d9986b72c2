"""Deployment of a built variant onto a connected device.

This module provides the install flow:
- Discover the device's primary ABI and supported ABI list
- Remove a previous installation (plain, then through su); never fatal
- For each supported ABI, in device order, push the matching binary and
  mark it executable

The primary ABI is installed under the plain executable name; every other
ABI gets an ``_<abi>`` suffix. Per-ABI outcomes are collected into a
DeploymentReport instead of being raised.
"""

from __future__ import annotations

import logging
import posixpath
import threading
from dataclasses import dataclass, field

from native_release.builds import layout
from native_release.config import Settings
from native_release.deploy.device import (
    ABI_LIST_PROPERTY,
    PRIMARY_ABI_PROPERTY,
    DeviceChannel,
    DeviceCommandError,
)
from native_release.types import Architecture, BuildVariant, DeployStatus

logger = logging.getLogger(__name__)

EXECUTABLE_MODE = "+x"


class DeployError(Exception):
    """Base exception for deployment errors."""

    def __init__(self, message: str, error_code: str) -> None:
        super().__init__(message)
        self.message = message
        self.error_code = error_code


class UnsupportedArchitectureError(DeployError):
    """Device reported an ABI outside the allow-list (strict mode only)."""

    def __init__(self, abi: str) -> None:
        super().__init__(
            f"Device reports unsupported ABI: {abi}",
            error_code="UNSUPPORTED_ARCHITECTURE",
        )
        self.abi = abi


class PrimaryDeployFailedError(DeployError):
    """The device's primary ABI could not be installed."""

    def __init__(self, report: DeploymentReport) -> None:
        primary = report.primary_result
        reason = primary.reason if primary else "primary ABI not deployed"
        super().__init__(
            f"Primary ABI {report.profile.primary_abi} was not deployed: {reason}",
            error_code="PRIMARY_DEPLOY_FAILED",
        )
        self.report = report


class DeploymentCancelledError(DeployError):
    """Deployment was cancelled between two ABI transfers."""

    def __init__(self, report: DeploymentReport) -> None:
        super().__init__(
            f"Deployment cancelled after {len(report.results)} ABI entries",
            error_code="DEPLOYMENT_CANCELLED",
        )
        self.report = report


@dataclass(frozen=True)
class DeviceProfile:
    """ABI information reported by the device.

    Attributes:
        primary_abi: Value of ro.product.cpu.abi.
        supported_abis: Entries of ro.product.cpu.abilist, in device order.
            May contain ABIs this project does not build.
    """

    primary_abi: str
    supported_abis: tuple[str, ...]


@dataclass(frozen=True)
class RemovalStrategy:
    """One way of removing the previous installation."""

    name: str
    escalate: bool


REMOVAL_STRATEGIES: tuple[RemovalStrategy, ...] = (
    RemovalStrategy(name="shell", escalate=False),
    RemovalStrategy(name="su", escalate=True),
)


@dataclass
class AbiDeployResult:
    """Outcome for one entry of the device ABI list."""

    abi: str
    status: DeployStatus
    device_path: str | None = None
    reason: str | None = None


@dataclass
class DeploymentReport:
    """Result of a deployment that ran to completion.

    Attributes:
        variant: Deployed variant.
        profile: Device ABI profile used for resolution.
        cleanup_succeeded: Whether a previous installation was removed.
        results: One entry per device ABI, in device order.
    """

    variant: BuildVariant
    profile: DeviceProfile
    cleanup_succeeded: bool
    results: list[AbiDeployResult] = field(default_factory=list)

    def _with_status(self, status: DeployStatus) -> list[AbiDeployResult]:
        return [r for r in self.results if r.status == status]

    @property
    def deployed(self) -> list[AbiDeployResult]:
        return self._with_status(DeployStatus.DEPLOYED)

    @property
    def skipped(self) -> list[AbiDeployResult]:
        return self._with_status(DeployStatus.SKIPPED_UNSUPPORTED)

    @property
    def failed(self) -> list[AbiDeployResult]:
        return self._with_status(DeployStatus.TRANSFER_FAILED)

    @property
    def any_deployed(self) -> bool:
        return bool(self.deployed)

    @property
    def primary_result(self) -> AbiDeployResult | None:
        for result in self.results:
            if result.abi == self.profile.primary_abi:
                return result
        return None

    def summary(self) -> str:
        """One-line human readable summary."""
        if not self.any_deployed:
            return (
                f"No ABI was deployed for {self.variant.name} "
                f"({len(self.skipped)} skipped, {len(self.failed)} failed)"
            )
        return (
            f"Deployed {len(self.deployed)} of {len(self.results)} ABI entries "
            f"for {self.variant.name} "
            f"({len(self.skipped)} skipped, {len(self.failed)} failed)"
        )

    def to_dict(self) -> dict[str, object]:
        return {
            "variant": self.variant.name,
            "primary_abi": self.profile.primary_abi,
            "supported_abis": list(self.profile.supported_abis),
            "cleanup_succeeded": self.cleanup_succeeded,
            "any_deployed": self.any_deployed,
            "results": [
                {
                    "abi": r.abi,
                    "status": r.status.value,
                    "device_path": r.device_path,
                    "reason": r.reason,
                }
                for r in self.results
            ],
        }


def parse_abi_list(raw: str) -> tuple[str, ...]:
    """Split a comma-delimited ABI list, dropping blanks."""
    return tuple(part.strip() for part in raw.split(",") if part.strip())


def discover_device_profile(channel: DeviceChannel) -> DeviceProfile:
    """Query the device for its primary and supported ABIs.

    Raises:
        DeviceUnreachableError: If the device cannot be queried.
    """
    primary = channel.get_property(PRIMARY_ABI_PROPERTY).strip()
    supported = parse_abi_list(channel.get_property(ABI_LIST_PROPERTY))
    logger.info("Device primary ABI: %s, supported: %s", primary, ",".join(supported))
    return DeviceProfile(primary_abi=primary, supported_abis=supported)


def cleanup_previous_install(
    channel: DeviceChannel,
    device_path: str,
    strategies: tuple[RemovalStrategy, ...] = REMOVAL_STRATEGIES,
) -> bool:
    """Remove a previous installation, trying each strategy in order.

    Failure is expected when nothing was installed and is never raised.

    Returns:
        True if some strategy removed the file.
    """
    for strategy in strategies:
        if channel.remove_file(device_path, escalate=strategy.escalate):
            logger.debug("Removed %s via %s", device_path, strategy.name)
            return True
    logger.info("No previous installation removed at %s", device_path)
    return False


def resolve_install_path(
    abi: str,
    primary_abi: str,
    executable_name: str,
    device_dir: str = "/data/local/tmp",
) -> str:
    """Return the device path for an ABI's binary.

    The primary ABI uses the plain executable name; others are suffixed
    with ``_<abi>``.
    """
    name = executable_name if abi == primary_abi else f"{executable_name}_{abi}"
    return posixpath.join(device_dir, name)


def check_supported_abis(profile: DeviceProfile) -> None:
    """Raise on the first device ABI this project does not build.

    Raises:
        UnsupportedArchitectureError: If an entry is not a known ABI.
    """
    for entry in profile.supported_abis:
        if Architecture.parse(entry) is None:
            raise UnsupportedArchitectureError(entry)


def _deploy_abi(
    entry: str,
    variant: BuildVariant,
    profile: DeviceProfile,
    channel: DeviceChannel,
    settings: Settings,
) -> AbiDeployResult:
    abi = Architecture.parse(entry)
    if abi is None:
        logger.info("ignore unknown abi %s", entry)
        return AbiDeployResult(abi=entry, status=DeployStatus.SKIPPED_UNSUPPORTED)

    device_path = resolve_install_path(
        entry, profile.primary_abi, settings.executable_name, settings.device_dir
    )
    local_path = layout.binary_path(
        settings.build_dir, variant, abi, settings.executable_name
    )

    if not local_path.is_file():
        reason = f"binary not found: {local_path}"
        logger.warning("Cannot deploy %s: %s", entry, reason)
        return AbiDeployResult(
            abi=entry,
            status=DeployStatus.TRANSFER_FAILED,
            device_path=device_path,
            reason=reason,
        )

    try:
        channel.push_file(local_path, device_path)
        channel.chmod(device_path, EXECUTABLE_MODE)
    except DeviceCommandError as e:
        logger.warning("Failed to deploy %s to %s: %s", entry, device_path, e.detail)
        return AbiDeployResult(
            abi=entry,
            status=DeployStatus.TRANSFER_FAILED,
            device_path=device_path,
            reason=e.detail,
        )

    logger.info("Deployed %s to %s", entry, device_path)
    return AbiDeployResult(
        abi=entry, status=DeployStatus.DEPLOYED, device_path=device_path
    )


def deploy_variant(
    variant: BuildVariant,
    channel: DeviceChannel,
    settings: Settings,
    *,
    strict_abi: bool | None = None,
    fail_on_primary_error: bool | None = None,
    cancel_event: threading.Event | None = None,
) -> DeploymentReport:
    """Install a built variant's binaries on the connected device.

    The native build for the variant must already have completed.

    Args:
        variant: Variant to deploy.
        channel: Device channel.
        settings: Application settings.
        strict_abi: Raise on unknown device ABIs (defaults to settings).
        fail_on_primary_error: Raise if the primary ABI was not deployed
            (defaults to settings). All ABIs are still attempted first.
        cancel_event: When set, stop before the next ABI transfer.

    Returns:
        DeploymentReport with one result per device ABI entry.

    Raises:
        DeviceUnreachableError: Discovery failed; nothing was transferred.
        UnsupportedArchitectureError: Unknown ABI in strict mode; raised
            before cleanup, so the device is left untouched.
        PrimaryDeployFailedError: Primary ABI failed and fail_on_primary_error.
        DeploymentCancelledError: cancel_event was set mid-deployment.
    """
    if strict_abi is None:
        strict_abi = settings.strict_abi
    if fail_on_primary_error is None:
        fail_on_primary_error = settings.fail_on_primary_error

    logger.info("Deploying %s", variant.name)
    profile = discover_device_profile(channel)
    if strict_abi:
        check_supported_abis(profile)

    canonical_path = posixpath.join(settings.device_dir, settings.executable_name)
    cleaned = cleanup_previous_install(channel, canonical_path)

    report = DeploymentReport(
        variant=variant, profile=profile, cleanup_succeeded=cleaned
    )
    for entry in profile.supported_abis:
        if cancel_event is not None and cancel_event.is_set():
            logger.warning("Deployment of %s cancelled", variant.name)
            raise DeploymentCancelledError(report)
        report.results.append(
            _deploy_abi(entry, variant, profile, channel, settings)
        )

    if report.any_deployed:
        logger.info(report.summary())
    else:
        logger.warning(report.summary())

    if fail_on_primary_error:
        primary = report.primary_result
        if primary is None or primary.status != DeployStatus.DEPLOYED:
            raise PrimaryDeployFailedError(report)

    return report


__all__ = [
    "EXECUTABLE_MODE",
    "REMOVAL_STRATEGIES",
    "AbiDeployResult",
    "DeployError",
    "DeploymentCancelledError",
    "DeploymentReport",
    "DeviceProfile",
    "PrimaryDeployFailedError",
    "RemovalStrategy",
    "UnsupportedArchitectureError",
    "check_supported_abis",
    "cleanup_previous_install",
    "deploy_variant",
    "discover_device_profile",
    "parse_abi_list",
    "resolve_install_path",
]
