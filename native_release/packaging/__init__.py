"""Release packaging module.

Bundles a built variant's per-ABI binaries and debug symbols into a
versioned zip archive under the release directory.
"""

from native_release.packaging.archive import (
    PackagedArchive,
    PackagingFailedError,
    archive_name,
    package_variant,
)

__all__ = [
    "PackagedArchive",
    "PackagingFailedError",
    "archive_name",
    "package_variant",
]
