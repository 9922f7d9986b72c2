"""Shared fixtures for native_release tests."""

from pathlib import Path

import pytest

from native_release.builds import layout
from native_release.config import Settings
from native_release.deploy.device import DeviceCommandError, DeviceUnreachableError
from native_release.types import ALL_ARCHITECTURES, RELEASE, BuildVariant


class FakeChannel:
    """In-memory DeviceChannel recording every call."""

    def __init__(
        self,
        primary_abi: str = "arm64-v8a",
        abilist: str = "arm64-v8a,armeabi-v7a",
        *,
        reachable: bool = True,
        removable_with: set[bool] | None = None,
        push_failures: set[str] | None = None,
        chmod_failures: set[str] | None = None,
    ) -> None:
        self.properties = {
            "ro.product.cpu.abi": primary_abi,
            "ro.product.cpu.abilist": abilist,
        }
        self.reachable = reachable
        self.removable_with = removable_with if removable_with is not None else set()
        self.push_failures = push_failures or set()
        self.chmod_failures = chmod_failures or set()
        self.calls: list[tuple] = []

    def get_property(self, key: str) -> str:
        self.calls.append(("getprop", key))
        if not self.reachable:
            raise DeviceUnreachableError("error: no devices/emulators found")
        return self.properties[key]

    def remove_file(self, path: str, escalate: bool = False) -> bool:
        self.calls.append(("rm", path, escalate))
        return escalate in self.removable_with

    def push_file(self, local_path: Path, device_path: str) -> None:
        self.calls.append(("push", local_path, device_path))
        if device_path in self.push_failures:
            raise DeviceCommandError(f"adb push {local_path}", "remote write failed")

    def chmod(self, path: str, mode: str) -> None:
        self.calls.append(("chmod", path, mode))
        if path in self.chmod_failures:
            raise DeviceCommandError(f"adb shell chmod {mode} {path}", "denied")

    def pushed_paths(self) -> list[str]:
        return [c[2] for c in self.calls if c[0] == "push"]


def make_build_tree(
    settings: Settings,
    variant: BuildVariant,
    abis=ALL_ARCHITECTURES,
    *,
    with_symbols: bool = True,
) -> None:
    """Create fake native build output for a variant."""
    assert settings.build_dir is not None
    for abi in abis:
        binary = layout.binary_path(
            settings.build_dir, variant, abi, settings.executable_name
        )
        binary.parent.mkdir(parents=True, exist_ok=True)
        binary.write_bytes(f"ELF-{abi.value}".encode())
    if with_symbols:
        sym_dir = layout.symbols_dir(settings.build_dir, variant)
        for abi in abis:
            sym = sym_dir / abi.value / f"{settings.executable_name}.debug"
            sym.parent.mkdir(parents=True, exist_ok=True)
            sym.write_bytes(f"DWARF-{abi.value}".encode())


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings rooted in a temporary project directory."""
    return Settings(project_dir=tmp_path)


@pytest.fixture
def built_release(settings: Settings) -> Settings:
    """Settings with a complete release build tree."""
    make_build_tree(settings, RELEASE)
    return settings


@pytest.fixture
def fake_channel() -> FakeChannel:
    return FakeChannel()


@pytest.fixture
def make_channel():
    """Factory for FakeChannel instances."""
    return FakeChannel


@pytest.fixture
def make_tree():
    """Factory creating fake build output trees."""
    return make_build_tree
