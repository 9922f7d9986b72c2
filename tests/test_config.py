"""Tests for configuration module."""

import json
import os
from pathlib import Path
from unittest.mock import patch

import pytest

from native_release.config import Settings, get_settings, print_settings_json
from native_release.types import ALL_ARCHITECTURES, Architecture


class TestSettings:
    """Test Settings class."""

    def test_default_settings(self, tmp_path: Path) -> None:
        """Settings should have sensible defaults."""
        settings = Settings(project_dir=tmp_path)

        assert settings.executable_name == "magic_mount"
        assert settings.abis == list(ALL_ARCHITECTURES)
        assert settings.device_dir == "/data/local/tmp"
        assert settings.min_sdk == 25
        assert settings.strict_abi is False
        assert settings.fail_on_primary_error is False
        assert settings.log_level == "INFO"

    def test_derived_paths(self, tmp_path: Path) -> None:
        """Unset paths should derive from project_dir."""
        settings = Settings(project_dir=tmp_path)

        assert settings.build_dir == tmp_path / "build"
        assert settings.release_dir == tmp_path / "release"
        assert settings.source_dir == tmp_path / "src" / "main" / "cpp"

    def test_explicit_paths_kept(self, tmp_path: Path) -> None:
        """Explicit paths should not be overridden."""
        settings = Settings(project_dir=tmp_path, release_dir=tmp_path / "out")
        assert settings.release_dir == tmp_path / "out"

    def test_relative_project_dir_made_absolute(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """A relative project_dir should be anchored at the working directory."""
        monkeypatch.chdir(tmp_path)
        settings = Settings(project_dir=Path("app"))

        assert settings.project_dir.is_absolute()
        assert settings.project_dir == Path.cwd() / "app"
        assert settings.source_dir == settings.project_dir / "src" / "main" / "cpp"
        assert settings.build_dir == settings.project_dir / "build"
        assert settings.release_dir == settings.project_dir / "release"

    def test_relative_explicit_paths_under_project_dir(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Relative source/build/release dirs should live under project_dir."""
        monkeypatch.chdir(tmp_path)
        settings = Settings(
            project_dir=Path("app"), build_dir=Path("out"), source_dir=Path("native")
        )

        assert settings.build_dir == Path.cwd() / "app" / "out"
        assert settings.source_dir == Path.cwd() / "app" / "native"
        assert settings.release_dir.is_absolute()

    def test_settings_from_env(self, tmp_path: Path) -> None:
        """Settings should be loadable from environment variables."""
        with patch.dict(
            os.environ,
            {
                "NATIVE_REL_EXECUTABLE_NAME": "tool",
                "NATIVE_REL_STRICT_ABI": "true",
                "NATIVE_REL_LOG_LEVEL": "DEBUG",
                "NATIVE_REL_ADB_SERIAL": "emulator-5554",
            },
        ):
            settings = Settings(project_dir=tmp_path)
            assert settings.executable_name == "tool"
            assert settings.strict_abi is True
            assert settings.log_level == "DEBUG"
            assert settings.adb_serial == "emulator-5554"

    def test_abis_from_comma_separated_env(self, tmp_path: Path) -> None:
        """ABIs should accept a comma-separated env value."""
        with patch.dict(os.environ, {"NATIVE_REL_ABIS": "arm64-v8a, x86_64"}):
            settings = Settings(project_dir=tmp_path)
            assert settings.abis == [Architecture.ARM64_V8A, Architecture.X86_64]

    def test_timeout_or_none(self, tmp_path: Path) -> None:
        """Zero timeouts should map to None."""
        settings = Settings(project_dir=tmp_path)
        assert settings.timeout_or_none(0) is None
        assert settings.timeout_or_none(30) == 30


class TestGetSettings:
    """Test get_settings function."""

    def test_get_settings_returns_settings(self) -> None:
        """get_settings should return a Settings instance."""
        assert isinstance(get_settings(), Settings)

    def test_none_overrides_ignored(self, tmp_path: Path) -> None:
        """None overrides should fall through to defaults."""
        settings = get_settings(project_dir=tmp_path, adb_serial=None)
        assert settings.project_dir == tmp_path
        assert settings.adb_serial is None

    def test_overrides_applied(self, tmp_path: Path) -> None:
        """Non-None overrides should win."""
        settings = get_settings(project_dir=tmp_path, strict_abi=True)
        assert settings.strict_abi is True


class TestPrintSettingsJson:
    """Test print_settings_json function."""

    def test_print_settings_json(self, tmp_path: Path) -> None:
        """print_settings_json should return valid JSON."""
        parsed = json.loads(print_settings_json(Settings(project_dir=tmp_path)))

        assert parsed["executable_name"] == "magic_mount"
        assert parsed["abis"] == ["armeabi-v7a", "arm64-v8a", "x86_64", "x86"]
        assert "release_dir" in parsed
