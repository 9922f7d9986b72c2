"""Shared type definitions for native_release.

This module contains dataclasses and enums shared across subpackages
to avoid circular imports.
"""

from dataclasses import dataclass
from enum import Enum


class Architecture(str, Enum):
    """Target ABIs the native build produces."""

    ARMEABI_V7A = "armeabi-v7a"
    ARM64_V8A = "arm64-v8a"
    X86_64 = "x86_64"
    X86 = "x86"

    @classmethod
    def parse(cls, value: str) -> "Architecture | None":
        """Return the matching member, or None for an unknown ABI string."""
        try:
            return cls(value.strip())
        except ValueError:
            return None


# Build order for all ABIs, same as the device-facing allow-list.
ALL_ARCHITECTURES: tuple[Architecture, ...] = (
    Architecture.ARMEABI_V7A,
    Architecture.ARM64_V8A,
    Architecture.X86_64,
    Architecture.X86,
)


class DeployStatus(str, Enum):
    """Outcome of deploying one ABI entry to a device."""

    DEPLOYED = "deployed"
    SKIPPED_UNSUPPORTED = "skipped_unsupported"
    TRANSFER_FAILED = "transfer_failed"


@dataclass(frozen=True)
class RevisionInfo:
    """Revision metadata used for artifact naming.

    Attributes:
        commit_count: Number of commits reachable from HEAD.
        short_hash: Abbreviated HEAD commit hash.
    """

    commit_count: int
    short_hash: str

    def __post_init__(self) -> None:
        if self.commit_count < 0:
            raise ValueError(f"commit_count must be >= 0, got {self.commit_count}")
        if not self.short_hash:
            raise ValueError("short_hash must not be empty")

    @property
    def version_string(self) -> str:
        return f"{self.short_hash}-{self.commit_count}"


@dataclass(frozen=True)
class BuildVariant:
    """A named build profile (e.g. debug, release).

    Attributes:
        name: Variant name as configured.
        is_debug: Whether the variant is built without release optimisations.
        build_type: Build type used for the symbols directory name.
    """

    name: str
    is_debug: bool
    build_type: str = ""

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("variant name must not be empty")
        if not self.build_type:
            object.__setattr__(self, "build_type", self.name.lower())

    @classmethod
    def from_name(cls, name: str) -> "BuildVariant":
        """Create a variant from its name; names containing 'debug' are debug."""
        return cls(name=name, is_debug="debug" in name.lower())

    @property
    def lowered(self) -> str:
        return self.name.lower()

    @property
    def cmake_build_type(self) -> str:
        return "Debug" if self.is_debug else "Release"


DEBUG = BuildVariant(name="debug", is_debug=True)
RELEASE = BuildVariant(name="release", is_debug=False)


@dataclass
class ArtifactInfo:
    """Information about a packaged artifact."""

    filename: str
    relative_path: str
    size_bytes: int
    sha256: str
    kind: str | None = None


__all__ = [
    "ALL_ARCHITECTURES",
    "DEBUG",
    "RELEASE",
    "Architecture",
    "ArtifactInfo",
    "BuildVariant",
    "DeployStatus",
    "RevisionInfo",
]
