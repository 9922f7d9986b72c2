"""Build runner for the native CMake/NDK toolchain.

This module handles:
- Composing CMake configure and build commands per variant and ABI
- Executing them with subprocess
- Capturing stdout/stderr to log files
- Enforcing build timeouts

The toolchain itself is opaque; only its output layout (see layout.py)
is relied upon downstream.
"""

from __future__ import annotations

import logging
import shlex
import subprocess
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING

from native_release.builds import layout
from native_release.types import Architecture, BuildVariant

if TYPE_CHECKING:
    from collections.abc import Iterable

    from native_release.config import Settings

logger = logging.getLogger(__name__)

DEFAULT_CFLAGS = [
    "-Wall",
    "-Wno-unused",
    "-Wno-unused-parameter",
    "-Wno-vla-cxx-extension",
    "-fno-rtti",
    "-fno-exceptions",
    "-fno-stack-protector",
    "-fomit-frame-pointer",
    "-Wno-builtin-macro-redefined",
    "-D__FILE__=__FILE_NAME__",
]

RELEASE_FLAGS = [
    "-O3",
    "-flto",
    "-fvisibility=hidden",
    "-fvisibility-inlines-hidden",
    "-Wl,--exclude-libs,ALL",
    "-Wl,--gc-sections",
]

C_STANDARD = "-std=c18"
CXX_STANDARD = "-std=c++20"


class BuildExecutionError(Exception):
    """Raised when build execution fails."""

    def __init__(
        self,
        message: str,
        exit_code: int | None = None,
        code: str = "build_error",
    ) -> None:
        super().__init__(message)
        self.message = message
        self.exit_code = exit_code
        self.code = code


@dataclass
class BuildResult:
    """Result of building one variant for one ABI.

    Attributes:
        success: Whether configure and build both succeeded.
        exit_code: Exit code of the last command run.
        variant: Variant that was built.
        abi: ABI that was built.
        obj_dir: Directory containing the produced binary.
        log_path: Path to the build log file.
        started_at: Build start time.
        finished_at: Build finish time.
        commands: The commands that were executed.
        error_message: Error message if build failed.
    """

    success: bool
    exit_code: int
    variant: BuildVariant
    abi: Architecture
    obj_dir: Path
    log_path: Path
    started_at: datetime
    finished_at: datetime
    commands: list[str]
    error_message: str | None = None


def compose_compiler_flags(variant: BuildVariant, standard: str) -> str:
    """Compose CMAKE_C_FLAGS / CMAKE_CXX_FLAGS for a variant."""
    flags = [standard, *DEFAULT_CFLAGS]
    if not variant.is_debug:
        flags.extend(RELEASE_FLAGS)
    return " ".join(flags)


def compose_configure_command(
    variant: BuildVariant,
    abi: Architecture,
    settings: Settings,
) -> list[str]:
    """Compose the CMake configure command for one variant/ABI pair.

    Args:
        variant: Build variant.
        abi: Target ABI.
        settings: Application settings (paths, toolchain, SDK level).

    Returns:
        Command as list of strings suitable for subprocess.
    """
    cmd = [
        settings.cmake_path,
        "-S",
        str(settings.source_dir),
        "-B",
        str(layout.cmake_work_dir(settings.build_dir, variant, abi)),
        f"-DCMAKE_BUILD_TYPE={variant.cmake_build_type}",
        f"-DANDROID_ABI={abi.value}",
        f"-DANDROID_PLATFORM=android-{settings.min_sdk}",
        "-DANDROID_STL=none",
        f"-DCMAKE_C_FLAGS={compose_compiler_flags(variant, C_STANDARD)}",
        f"-DCMAKE_CXX_FLAGS={compose_compiler_flags(variant, CXX_STANDARD)}",
        f"-DCMAKE_RUNTIME_OUTPUT_DIRECTORY="
        f"{layout.obj_dir(settings.build_dir, variant, abi)}",
        f"-DDEBUG_SYMBOLS_PATH={layout.symbols_dir(settings.build_dir, variant)}",
    ]

    if settings.ndk_dir is not None:
        toolchain = settings.ndk_dir / "build" / "cmake" / "android.toolchain.cmake"
        cmd.append(f"-DCMAKE_TOOLCHAIN_FILE={toolchain}")
        cmd.append(f"-DANDROID_NDK={settings.ndk_dir}")

    return cmd


def compose_build_command(
    variant: BuildVariant,
    abi: Architecture,
    settings: Settings,
) -> list[str]:
    """Compose the `cmake --build` command for one variant/ABI pair."""
    return [
        settings.cmake_path,
        "--build",
        str(layout.cmake_work_dir(settings.build_dir, variant, abi)),
        "--target",
        settings.executable_name,
    ]


def run_build(
    variant: BuildVariant,
    abi: Architecture,
    settings: Settings,
) -> BuildResult:
    """Configure and build the executable for one variant and ABI.

    Args:
        variant: Build variant.
        abi: Target ABI.
        settings: Application settings.

    Returns:
        BuildResult with execution details.

    Raises:
        BuildExecutionError: If the toolchain fails to start or times out.
    """
    log_path = layout.log_path(settings.build_dir, variant, abi)
    log_path.parent.mkdir(parents=True, exist_ok=True)
    out_dir = layout.obj_dir(settings.build_dir, variant, abi)
    out_dir.mkdir(parents=True, exist_ok=True)
    layout.symbols_dir(settings.build_dir, variant).mkdir(parents=True, exist_ok=True)

    timeout = settings.timeout_or_none(settings.build_timeout)
    commands = [
        compose_configure_command(variant, abi, settings),
        compose_build_command(variant, abi, settings),
    ]
    command_strs = [shlex.join(cmd) for cmd in commands]

    logger.info("Building %s for %s", variant.name, abi.value)
    logger.info("Output directory: %s", out_dir)

    started_at = datetime.now(timezone.utc)
    error_message: str | None = None
    exit_code = 0

    with log_path.open("w") as log_file:
        log_file.write(f"# Variant: {variant.name}\n")
        log_file.write(f"# ABI: {abi.value}\n")
        log_file.write(f"# Started: {started_at.isoformat()}\n")
        log_file.write("# " + "=" * 70 + "\n\n")
        log_file.flush()

        for cmd, cmd_str in zip(commands, command_strs):
            logger.debug("Executing: %s", cmd_str)
            log_file.write(f"# Command: {cmd_str}\n")
            log_file.flush()

            try:
                result = subprocess.run(
                    cmd,
                    cwd=settings.project_dir,
                    stdout=log_file,
                    stderr=subprocess.STDOUT,
                    timeout=timeout,
                    check=False,
                )
            except subprocess.TimeoutExpired as e:
                error_message = f"Build timed out after {timeout} seconds"
                logger.error("%s. See log: %s", error_message, log_path)
                log_file.write(f"\n# TIMEOUT after {timeout} seconds\n")
                raise BuildExecutionError(
                    error_message,
                    exit_code=-1,
                    code="build_timeout",
                ) from e
            except OSError as e:
                error_message = f"Failed to execute build: {e}"
                logger.error(error_message)
                raise BuildExecutionError(
                    error_message,
                    exit_code=None,
                    code="execution_error",
                ) from e

            exit_code = result.returncode
            if exit_code != 0:
                error_message = f"Build failed with exit code {exit_code}"
                logger.error(
                    "%s (%s/%s). See log: %s",
                    error_message,
                    variant.name,
                    abi.value,
                    log_path,
                )
                break

        finished_at = datetime.now(timezone.utc)
        log_file.write(f"\n# Finished: {finished_at.isoformat()}\n")
        log_file.write(f"# Exit code: {exit_code}\n")
        duration = (finished_at - started_at).total_seconds()
        log_file.write(f"# Duration: {duration:.1f}s\n")

    return BuildResult(
        success=exit_code == 0,
        exit_code=exit_code,
        variant=variant,
        abi=abi,
        obj_dir=out_dir,
        log_path=log_path,
        started_at=started_at,
        finished_at=finished_at,
        commands=command_strs,
        error_message=error_message,
    )


def build_variant(
    variant: BuildVariant,
    settings: Settings,
    abis: Iterable[Architecture] | None = None,
) -> list[BuildResult]:
    """Build a variant for every requested ABI, one after another.

    Args:
        variant: Build variant.
        settings: Application settings.
        abis: ABIs to build (defaults to settings.abis).

    Returns:
        One BuildResult per ABI, all successful.

    Raises:
        BuildExecutionError: On the first ABI that fails to build.
    """
    targets = list(abis) if abis is not None else list(settings.abis)
    results: list[BuildResult] = []

    for abi in targets:
        result = run_build(variant, abi, settings)
        if not result.success:
            raise BuildExecutionError(
                f"Native build of {variant.name} for {abi.value} failed: "
                f"{result.error_message}. See log: {result.log_path}",
                exit_code=result.exit_code,
                code="build_failed",
            )
        results.append(result)

    logger.info("Built %s for %d ABIs", variant.name, len(results))
    return results


__all__ = [
    "C_STANDARD",
    "CXX_STANDARD",
    "DEFAULT_CFLAGS",
    "RELEASE_FLAGS",
    "BuildExecutionError",
    "BuildResult",
    "build_variant",
    "compose_build_command",
    "compose_compiler_flags",
    "compose_configure_command",
    "run_build",
]
