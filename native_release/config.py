"""Configuration settings for native_release.

Uses pydantic-settings for config parsing from environment variables
and defaults. Configuration precedence: CLI flags > env vars > defaults.
"""

from pathlib import Path
from typing import Annotated, Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from native_release.types import ALL_ARCHITECTURES, Architecture


class Settings(BaseSettings):
    """Application settings.

    Settings are loaded from environment variables with the NATIVE_REL_ prefix.
    CLI flags can override these at runtime.
    """

    model_config = SettingsConfigDict(
        env_prefix="NATIVE_REL_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Paths
    project_dir: Path = Field(
        default_factory=Path.cwd,
        description="Project root (git working tree)",
    )
    # Relative paths below are taken relative to project_dir
    source_dir: Path = Field(
        default=Path("src/main/cpp"),
        description="CMake source directory",
    )
    build_dir: Path = Field(
        default=Path("build"),
        description="Build output root",
    )
    release_dir: Path = Field(
        default=Path("release"),
        description="Archive output directory",
    )

    # Executable
    executable_name: str = Field(
        default="magic_mount",
        min_length=1,
        description="Name of the native executable",
    )
    abis: Annotated[list[Architecture], NoDecode] = Field(
        default_factory=lambda: list(ALL_ARCHITECTURES),
        description="ABIs to build and package",
    )

    # Toolchain
    git_path: str = Field(default="git", description="git executable")
    cmake_path: str = Field(default="cmake", description="cmake executable")
    ndk_dir: Path | None = Field(
        default=None,
        description="Android NDK root (required for builds)",
    )
    min_sdk: int = Field(default=25, ge=16, description="Minimum Android API level")

    # Device
    adb_path: str = Field(default="adb", description="adb executable")
    adb_serial: str | None = Field(
        default=None,
        description="Target device serial (adb -s); uses the only device if unset",
    )
    device_dir: str = Field(
        default="/data/local/tmp",
        description="Install directory on the device",
    )

    # Deployment policy
    strict_abi: bool = Field(
        default=False,
        description="Fail instead of skipping unknown device ABIs",
    )
    fail_on_primary_error: bool = Field(
        default=False,
        description="Fail the deployment if the primary ABI could not be installed",
    )

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )

    # Timeouts (in seconds, 0 disables)
    command_timeout: int = Field(
        default=0,
        ge=0,
        description="Timeout for git/adb commands",
    )
    build_timeout: int = Field(
        default=3600,
        ge=0,
        description="Timeout for each CMake invocation",
    )

    @field_validator("abis", mode="before")
    @classmethod
    def _split_abis(cls, value: object) -> object:
        if isinstance(value, str):
            return [part.strip() for part in value.split(",") if part.strip()]
        return value

    @model_validator(mode="after")
    def _resolve_paths(self) -> "Settings":
        self.project_dir = self.project_dir.absolute()
        self.source_dir = self.project_dir / self.source_dir
        self.build_dir = self.project_dir / self.build_dir
        self.release_dir = self.project_dir / self.release_dir
        return self

    def timeout_or_none(self, value: int) -> int | None:
        """Map a 0 timeout setting to None (no timeout)."""
        return value or None


def get_settings(**overrides: object) -> Settings:
    """Get the application settings.

    Args:
        overrides: Field values taking precedence over env and defaults.

    Returns:
        Settings instance loaded from environment.
    """
    return Settings(**{k: v for k, v in overrides.items() if v is not None})


def print_settings_json(settings: Settings | None = None) -> str:
    """Render effective settings as JSON.

    Args:
        settings: Optional settings instance; uses default if not provided.

    Returns:
        JSON string of effective settings.
    """
    if settings is None:
        settings = get_settings()
    return settings.model_dump_json(indent=2)


__all__ = ["Settings", "get_settings", "print_settings_json"]
