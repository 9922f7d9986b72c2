"""Native Release - build, package and deploy a multi-ABI native executable.

This package provides orchestration around CMake/NDK builds for versioned
release archives and adb installation onto a connected Android device.
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
