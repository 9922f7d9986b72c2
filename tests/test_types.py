"""Tests for shared type definitions."""

import pytest

from native_release.types import (
    ALL_ARCHITECTURES,
    DEBUG,
    RELEASE,
    Architecture,
    BuildVariant,
    DeployStatus,
    RevisionInfo,
)


class TestArchitecture:
    """Tests for the Architecture allow-list."""

    def test_allow_list_values(self):
        """Allow-list should contain exactly the four built ABIs."""
        assert [a.value for a in ALL_ARCHITECTURES] == [
            "armeabi-v7a",
            "arm64-v8a",
            "x86_64",
            "x86",
        ]

    def test_parse_known(self):
        """Known ABI strings should parse to members."""
        assert Architecture.parse("arm64-v8a") is Architecture.ARM64_V8A
        assert Architecture.parse(" x86 ") is Architecture.X86

    def test_parse_unknown(self):
        """Unknown ABI strings should parse to None, not raise."""
        assert Architecture.parse("riscv64") is None
        assert Architecture.parse("armeabi") is None
        assert Architecture.parse("") is None


class TestRevisionInfo:
    """Tests for RevisionInfo."""

    def test_version_string(self):
        """version_string should join hash and count."""
        rev = RevisionInfo(commit_count=42, short_hash="a1b2c3d")
        assert rev.version_string == "a1b2c3d-42"

    def test_zero_commits_allowed(self):
        """A commit count of zero is valid."""
        assert RevisionInfo(commit_count=0, short_hash="abc").commit_count == 0

    def test_negative_count_rejected(self):
        """Negative commit counts should be rejected."""
        with pytest.raises(ValueError):
            RevisionInfo(commit_count=-1, short_hash="abc")

    def test_empty_hash_rejected(self):
        """Empty hashes should be rejected."""
        with pytest.raises(ValueError):
            RevisionInfo(commit_count=1, short_hash="")

    def test_immutable(self):
        """RevisionInfo should be frozen."""
        rev = RevisionInfo(commit_count=1, short_hash="abc")
        with pytest.raises(AttributeError):
            rev.commit_count = 2  # type: ignore[misc]


class TestBuildVariant:
    """Tests for BuildVariant."""

    def test_known_variants(self):
        """DEBUG and RELEASE should carry the right debug flag."""
        assert DEBUG.is_debug is True
        assert RELEASE.is_debug is False
        assert DEBUG.cmake_build_type == "Debug"
        assert RELEASE.cmake_build_type == "Release"

    def test_from_name(self):
        """from_name should detect debug variants case-insensitively."""
        assert BuildVariant.from_name("Debug").is_debug is True
        assert BuildVariant.from_name("release").is_debug is False

    def test_lowered(self):
        """lowered should give the lowercase variant name."""
        variant = BuildVariant.from_name("Release")
        assert variant.lowered == "release"

    def test_build_type_defaults_to_lowered_name(self):
        """build_type defaults to the lowercased name."""
        assert BuildVariant.from_name("Release").build_type == "release"
        assert BuildVariant("release", False, build_type="rel").build_type == "rel"

    def test_empty_name_rejected(self):
        """Empty variant names should be rejected."""
        with pytest.raises(ValueError):
            BuildVariant(name="", is_debug=False)


class TestDeployStatus:
    """Tests for DeployStatus."""

    def test_values(self):
        """Status values should be stable strings."""
        assert DeployStatus.DEPLOYED.value == "deployed"
        assert DeployStatus.SKIPPED_UNSUPPORTED.value == "skipped_unsupported"
        assert DeployStatus.TRANSFER_FAILED.value == "transfer_failed"
