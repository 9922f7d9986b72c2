"""Build output path conventions.

Binaries land in ``<build>/intermediates/cmake/<variant>/obj/<abi>/`` and
debug symbols in ``<build>/symbols/<build_type>/``. Packaging and deployment
only ever read these paths.
"""

from pathlib import Path

from native_release.types import Architecture, BuildVariant


def obj_root(build_dir: Path, variant: BuildVariant) -> Path:
    """Directory holding one subfolder per built ABI."""
    return build_dir / "intermediates" / "cmake" / variant.lowered / "obj"


def obj_dir(build_dir: Path, variant: BuildVariant, abi: Architecture) -> Path:
    return obj_root(build_dir, variant) / abi.value


def binary_path(
    build_dir: Path,
    variant: BuildVariant,
    abi: Architecture,
    executable_name: str,
) -> Path:
    return obj_dir(build_dir, variant, abi) / executable_name


def symbols_dir(build_dir: Path, variant: BuildVariant) -> Path:
    return build_dir / "symbols" / variant.build_type


def cmake_work_dir(build_dir: Path, variant: BuildVariant, abi: Architecture) -> Path:
    """CMake binary (configure) directory for one variant/ABI pair."""
    return build_dir / "cmake" / variant.lowered / abi.value


def log_path(build_dir: Path, variant: BuildVariant, abi: Architecture) -> Path:
    return build_dir / "logs" / f"{variant.lowered}-{abi.value}.log"


__all__ = [
    "binary_path",
    "cmake_work_dir",
    "log_path",
    "obj_dir",
    "obj_root",
    "symbols_dir",
]
