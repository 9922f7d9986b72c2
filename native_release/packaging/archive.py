"""Versioned release archives.

This module handles:
- Deterministic archive naming from revision and variant
- Collecting per-ABI binaries and the variant's debug symbols
- Writing the zip archive to the release directory
- Generating a JSON manifest sidecar with member checksums
"""

from __future__ import annotations

import hashlib
import json
import logging
import os
import zipfile
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

from native_release.builds import layout
from native_release.config import Settings
from native_release.types import ArtifactInfo, BuildVariant, RevisionInfo

logger = logging.getLogger(__name__)

# Fixed member timestamp so identical inputs give identical archives
ZIP_EPOCH = (1980, 1, 1, 0, 0, 0)

HASH_CHUNK_SIZE = 64 * 1024  # 64KB

MANIFEST_VERSION = "1.0"


class PackagingFailedError(Exception):
    """Raised when a variant cannot be packaged."""

    def __init__(self, message: str, error_code: str = "PACKAGING_FAILED") -> None:
        super().__init__(message)
        self.message = message
        self.error_code = error_code


class MissingSourceDirError(PackagingFailedError):
    """A declared source directory does not exist (incomplete build)."""

    def __init__(self, path: Path, what: str) -> None:
        super().__init__(
            f"Missing {what} directory: {path}. Was the native build completed?",
            error_code="MISSING_SOURCE_DIR",
        )
        self.path = path
        self.what = what


@dataclass
class PackagedArchive:
    """A written release archive.

    Attributes:
        path: Absolute path of the zip file.
        file_name: Archive file name.
        variant: Packaged variant.
        revision: Revision encoded in the name.
        members: Sorted archive member names.
        artifacts: Size and checksum per member.
        manifest_path: Path of the JSON sidecar, if written.
    """

    path: Path
    file_name: str
    variant: BuildVariant
    revision: RevisionInfo
    members: list[str]
    artifacts: list[ArtifactInfo] = field(default_factory=list)
    manifest_path: Path | None = None


def archive_name(
    executable_name: str,
    revision: RevisionInfo,
    variant: BuildVariant,
) -> str:
    """Return ``<executable>-<hash>-<count>-<variant>.zip``."""
    return (
        f"{executable_name}-{revision.short_hash}-{revision.commit_count}"
        f"-{variant.lowered}.zip"
    )


def classify_member(member: str, executable_name: str) -> str:
    """Classify an archive member by name (binary, symbols, other)."""
    name = Path(member).name
    if name == executable_name:
        return "binary"
    if name.endswith((".debug", ".sym", ".dbg")) or name.startswith(
        f"{executable_name}."
    ):
        return "symbols"
    return "other"


def compute_file_hash(
    file_path: Path,
    chunk_size: int = HASH_CHUNK_SIZE,
) -> str:
    """Compute SHA-256 hash of a file.

    Args:
        file_path: Path to the file.
        chunk_size: Size of chunks for streaming hash.

    Returns:
        SHA-256 hex digest.
    """
    sha256 = hashlib.sha256()
    with file_path.open("rb") as f:
        while chunk := f.read(chunk_size):
            sha256.update(chunk)
    return sha256.hexdigest()


def _add_tree(members: dict[str, Path], root: Path, prefix: str = "") -> None:
    for path in sorted(root.rglob("*")):
        if path.is_file():
            members[prefix + path.relative_to(root).as_posix()] = path


def collect_members(variant: BuildVariant, settings: Settings) -> dict[str, Path]:
    """Map archive member names to source files for a variant.

    Per-ABI output keeps its ``<abi>/`` subfolder; the symbols directory is
    layered on top at the archive root and wins on name clashes.

    Args:
        variant: Build variant.
        settings: Application settings.

    Returns:
        Ordered mapping of member name to source path.

    Raises:
        MissingSourceDirError: If an ABI output or the symbols directory is missing.
    """
    members: dict[str, Path] = {}
    for abi in settings.abis:
        abi_dir = layout.obj_dir(settings.build_dir, variant, abi)
        if not abi_dir.is_dir():
            raise MissingSourceDirError(abi_dir, f"{abi.value} output")
        _add_tree(members, abi_dir, prefix=f"{abi.value}/")

    sym_dir = layout.symbols_dir(settings.build_dir, variant)
    if not sym_dir.is_dir():
        raise MissingSourceDirError(sym_dir, "symbols")
    _add_tree(members, sym_dir)

    return dict(sorted(members.items()))


def write_zip(members: dict[str, Path], archive_path: Path) -> None:
    """Write members to a zip file, replacing any existing archive.

    Args:
        members: Member name to source path, written in iteration order.
        archive_path: Destination zip path.
    """
    archive_path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = archive_path.with_name(archive_path.name + ".tmp")

    try:
        with zipfile.ZipFile(tmp_path, "w") as zf:
            for name, source in members.items():
                info = zipfile.ZipInfo(name, date_time=ZIP_EPOCH)
                info.compress_type = zipfile.ZIP_DEFLATED
                info.external_attr = (source.stat().st_mode & 0o777) << 16
                with source.open("rb") as src, zf.open(info, "w") as dst:
                    while chunk := src.read(HASH_CHUNK_SIZE):
                        dst.write(chunk)
        os.replace(tmp_path, archive_path)
    except OSError as e:
        tmp_path.unlink(missing_ok=True)
        raise PackagingFailedError(f"Failed to write {archive_path}: {e}") from e


def generate_manifest(archive: PackagedArchive) -> dict[str, Any]:
    """Generate a manifest describing a packaged archive.

    No timestamp is recorded so the manifest is stable across repeated
    packaging of the same revision.

    Args:
        archive: The packaged archive.

    Returns:
        Manifest dictionary suitable for JSON serialization.
    """
    return {
        "version": MANIFEST_VERSION,
        "archive": archive.file_name,
        "variant": archive.variant.name,
        "revision": {
            "commit_count": archive.revision.commit_count,
            "short_hash": archive.revision.short_hash,
        },
        "artifacts": [asdict(a) for a in archive.artifacts],
        "summary": {
            "total_artifacts": len(archive.artifacts),
            "total_size_bytes": sum(a.size_bytes for a in archive.artifacts),
            "kinds": sorted({a.kind for a in archive.artifacts if a.kind}),
        },
    }


def write_manifest(manifest: dict[str, Any], output_path: Path) -> Path:
    """Write manifest to a JSON file."""
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with output_path.open("w", encoding="utf-8") as f:
        json.dump(manifest, f, indent=2, sort_keys=True)
    logger.info("Wrote manifest to %s", output_path)
    return output_path


def package_variant(
    variant: BuildVariant,
    revision: RevisionInfo,
    settings: Settings,
    *,
    with_manifest: bool = True,
) -> PackagedArchive:
    """Package a built variant into a versioned zip archive.

    The native build for the variant must already have completed.

    Args:
        variant: Build variant to package.
        revision: Revision info derived once for the run.
        settings: Application settings.
        with_manifest: Also write ``<archive>.json`` next to the archive.

    Returns:
        PackagedArchive describing the written archive.

    Raises:
        PackagingFailedError: If sources are missing or the archive cannot be written.
    """
    name = archive_name(settings.executable_name, revision, variant)
    archive_path = settings.release_dir / name
    members = collect_members(variant, settings)

    logger.info("Packaging %d files into %s", len(members), archive_path)
    write_zip(members, archive_path)

    artifacts = [
        ArtifactInfo(
            filename=source.name,
            relative_path=member,
            size_bytes=source.stat().st_size,
            sha256=compute_file_hash(source),
            kind=classify_member(member, settings.executable_name),
        )
        for member, source in members.items()
    ]

    archive = PackagedArchive(
        path=archive_path,
        file_name=name,
        variant=variant,
        revision=revision,
        members=list(members),
        artifacts=artifacts,
    )

    if with_manifest:
        manifest_path = archive_path.with_name(name + ".json")
        write_manifest(generate_manifest(archive), manifest_path)
        archive.manifest_path = manifest_path

    return archive


__all__ = [
    "HASH_CHUNK_SIZE",
    "MANIFEST_VERSION",
    "ZIP_EPOCH",
    "MissingSourceDirError",
    "PackagedArchive",
    "PackagingFailedError",
    "archive_name",
    "classify_member",
    "collect_members",
    "compute_file_hash",
    "generate_manifest",
    "package_variant",
    "write_manifest",
    "write_zip",
]
