"""Device deployment module.

This module handles:
- Device ABI discovery over adb
- Removal of a previous installation with a root fallback
- Per-ABI push and chmod with primary/suffixed install paths

Deployment never retries on its own; re-running it overwrites in place.
"""

from native_release.deploy.device import (
    AdbChannel,
    DeviceChannel,
    DeviceCommandError,
    DeviceError,
    DeviceUnreachableError,
)
from native_release.deploy.service import (
    AbiDeployResult,
    DeployError,
    DeploymentCancelledError,
    DeploymentReport,
    DeviceProfile,
    PrimaryDeployFailedError,
    UnsupportedArchitectureError,
    check_supported_abis,
    deploy_variant,
    resolve_install_path,
)

__all__ = [
    # Device channel
    "AdbChannel",
    "DeviceChannel",
    "DeviceCommandError",
    "DeviceError",
    "DeviceUnreachableError",
    # Service
    "AbiDeployResult",
    "DeployError",
    "DeploymentCancelledError",
    "DeploymentReport",
    "DeviceProfile",
    "PrimaryDeployFailedError",
    "UnsupportedArchitectureError",
    "check_supported_abis",
    "deploy_variant",
    "resolve_install_path",
]
