"""Native build module.

This module handles:
- Output path conventions for binaries and debug symbols
- Running the CMake/NDK toolchain per variant and ABI
"""

from native_release.builds.runner import BuildExecutionError, BuildResult

__all__ = ["BuildExecutionError", "BuildResult"]
