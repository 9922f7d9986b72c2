"""Device channel for installing binaries on an Android device.

This module wraps the four device operations deployment needs:
- Reading system properties (ABI discovery)
- Removing a file, optionally through a root shell
- Pushing a file
- Changing file mode

AdbChannel implements them with the adb command line tool. Tests and
alternative transports provide their own DeviceChannel.
"""

from __future__ import annotations

import logging
import shlex
import subprocess
from pathlib import Path
from typing import Protocol, runtime_checkable

logger = logging.getLogger(__name__)

PRIMARY_ABI_PROPERTY = "ro.product.cpu.abi"
ABI_LIST_PROPERTY = "ro.product.cpu.abilist"


class DeviceError(Exception):
    """Base exception for device channel errors."""

    def __init__(self, message: str, error_code: str) -> None:
        super().__init__(message)
        self.message = message
        self.error_code = error_code


class DeviceUnreachableError(DeviceError):
    """No device could be reached over the channel."""

    def __init__(self, detail: str) -> None:
        super().__init__(
            f"Device unreachable: {detail}", error_code="DEVICE_UNREACHABLE"
        )
        self.detail = detail


class DeviceCommandError(DeviceError):
    """A device command ran but failed."""

    def __init__(self, command: str, detail: str) -> None:
        super().__init__(
            f"Device command failed: {command}: {detail}",
            error_code="DEVICE_COMMAND_FAILED",
        )
        self.command = command
        self.detail = detail


@runtime_checkable
class DeviceChannel(Protocol):
    """Operations deployment performs against a device."""

    def get_property(self, key: str) -> str:
        """Return a system property; raise DeviceUnreachableError on failure."""
        ...

    def remove_file(self, path: str, escalate: bool = False) -> bool:
        """Remove a file; return False instead of raising on failure."""
        ...

    def push_file(self, local_path: Path, device_path: str) -> None:
        """Copy a local file to the device; raise DeviceCommandError on failure."""
        ...

    def chmod(self, path: str, mode: str) -> None:
        """Change a device file's mode; raise DeviceCommandError on failure."""
        ...


class AdbChannel:
    """DeviceChannel backed by the adb command line tool.

    Attributes:
        adb_path: adb executable.
        serial: Optional device serial passed as ``adb -s``.
        timeout: Per-command timeout in seconds (None = no timeout).
    """

    def __init__(
        self,
        adb_path: str = "adb",
        serial: str | None = None,
        timeout: int | None = None,
    ) -> None:
        self.adb_path = adb_path
        self.serial = serial
        self.timeout = timeout

    def _command(self, *args: str) -> list[str]:
        cmd = [self.adb_path]
        if self.serial:
            cmd.extend(["-s", self.serial])
        cmd.extend(args)
        return cmd

    def _run(self, cmd: list[str]) -> subprocess.CompletedProcess[str]:
        logger.debug("Executing: %s", shlex.join(cmd))
        return subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            timeout=self.timeout,
            check=False,
        )

    def get_property(self, key: str) -> str:
        cmd = self._command("shell", "getprop", key)
        try:
            result = self._run(cmd)
        except subprocess.TimeoutExpired as e:
            raise DeviceUnreachableError(
                f"getprop {key} timed out after {self.timeout}s"
            ) from e
        except OSError as e:
            raise DeviceUnreachableError(f"failed to run adb: {e}") from e

        if result.returncode != 0:
            detail = (result.stderr or result.stdout).strip() or (
                f"exit code {result.returncode}"
            )
            raise DeviceUnreachableError(detail)
        return result.stdout.strip()

    def remove_file(self, path: str, escalate: bool = False) -> bool:
        remote = f"rm {shlex.quote(path)}"
        if escalate:
            remote = f"su -c {shlex.quote(remote)}"
        cmd = self._command("shell", remote)
        try:
            result = self._run(cmd)
        except (subprocess.TimeoutExpired, OSError) as e:
            logger.debug("Removal of %s failed to run: %s", path, e)
            return False
        if result.returncode != 0:
            logger.debug(
                "Removal of %s exited %d: %s",
                path,
                result.returncode,
                (result.stderr or result.stdout).strip(),
            )
            return False
        return True

    def _checked(self, cmd: list[str]) -> None:
        cmd_str = shlex.join(cmd)
        try:
            result = self._run(cmd)
        except subprocess.TimeoutExpired as e:
            raise DeviceCommandError(cmd_str, f"timed out after {self.timeout}s") from e
        except OSError as e:
            raise DeviceCommandError(cmd_str, str(e)) from e
        if result.returncode != 0:
            detail = (result.stderr or result.stdout).strip()
            raise DeviceCommandError(
                cmd_str, detail or f"exit code {result.returncode}"
            )

    def push_file(self, local_path: Path, device_path: str) -> None:
        self._checked(self._command("push", str(local_path), device_path))

    def chmod(self, path: str, mode: str) -> None:
        self._checked(self._command("shell", "chmod", mode, path))


__all__ = [
    "ABI_LIST_PROPERTY",
    "PRIMARY_ABI_PROPERTY",
    "AdbChannel",
    "DeviceChannel",
    "DeviceCommandError",
    "DeviceError",
    "DeviceUnreachableError",
]
