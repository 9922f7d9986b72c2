"""Thin CLI wrapper for native_release.

This module provides the command-line interface using Typer.
All business logic is delegated to core modules.
"""

import json
from pathlib import Path
from typing import Annotated, Any

import typer
from rich.console import Console

from native_release import __version__
from native_release.config import Settings, get_settings, print_settings_json
from native_release.log import configure_logging
from native_release.types import Architecture, BuildVariant

app = typer.Typer(
    name="native-release",
    help="Native Release - build, package and install a multi-ABI executable",
    no_args_is_help=True,
)
console = Console()


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"native-release version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
    project_dir: Annotated[
        Path | None,
        typer.Option("--project-dir", "-C", help="Project root (git working tree)"),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable debug logging"),
    ] = False,
) -> None:
    """Native Release - build, package and install a multi-ABI executable."""
    ctx.obj = {"project_dir": project_dir, "verbose": verbose}


def _settings(ctx: typer.Context, **overrides: Any) -> Settings:
    """Load settings with CLI overrides and configure logging."""
    obj = ctx.obj or {}
    settings = get_settings(project_dir=obj.get("project_dir"), **overrides)
    configure_logging("DEBUG" if obj.get("verbose") else settings.log_level)
    return settings


def _echo_json(data: Any) -> None:
    typer.echo(json.dumps(data, indent=2))


@app.command()
def config(
    ctx: typer.Context,
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output as JSON"),
    ] = False,
) -> None:
    """Show effective configuration."""
    settings = _settings(ctx)
    if json_output:
        typer.echo(print_settings_json(settings))
        return

    serial_display = settings.adb_serial or "(only connected device)"
    ndk_display = str(settings.ndk_dir) if settings.ndk_dir else "(not set)"
    console.print("[bold]Effective Configuration:[/bold]")
    console.print()
    console.print("[bold]Paths:[/bold]")
    console.print(f"  Project directory:   {settings.project_dir}")
    console.print(f"  Source directory:    {settings.source_dir}")
    console.print(f"  Build directory:     {settings.build_dir}")
    console.print(f"  Release directory:   {settings.release_dir}")
    console.print()
    console.print("[bold]Build:[/bold]")
    console.print(f"  Executable:          {settings.executable_name}")
    console.print(f"  ABIs:                {', '.join(a.value for a in settings.abis)}")
    console.print(f"  NDK directory:       {ndk_display}")
    console.print(f"  Min SDK:             {settings.min_sdk}")
    console.print()
    console.print("[bold]Device:[/bold]")
    console.print(f"  adb:                 {settings.adb_path}")
    console.print(f"  Serial:              {serial_display}")
    console.print(f"  Install directory:   {settings.device_dir}")
    console.print(f"  Strict ABI:          {settings.strict_abi}")
    console.print(f"  Fail on primary:     {settings.fail_on_primary_error}")
    console.print()
    console.print("[bold]Timeouts (seconds, 0 = none):[/bold]")
    console.print(f"  Command timeout:     {settings.command_timeout}")
    console.print(f"  Build timeout:       {settings.build_timeout}")
    console.print()
    console.print(f"  Log level:           {settings.log_level}")


@app.command()
def revision(
    ctx: typer.Context,
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output as JSON"),
    ] = False,
) -> None:
    """Show the revision used for archive names."""
    from native_release.orchestrator import current_revision
    from native_release.version import VersionUnavailableError

    settings = _settings(ctx)
    try:
        rev = current_revision(settings)
    except VersionUnavailableError as e:
        console.print(f"[red]Revision unavailable: {e.message}[/red]")
        raise typer.Exit(code=1) from None

    if json_output:
        _echo_json(
            {
                "commit_count": rev.commit_count,
                "short_hash": rev.short_hash,
                "version": rev.version_string,
            }
        )
    else:
        console.print(f"{rev.short_hash} ({rev.commit_count} commits)")


@app.command()
def build(
    ctx: typer.Context,
    variant: Annotated[str, typer.Argument(help="Build variant (debug/release)")],
    abi: Annotated[
        list[Architecture] | None,
        typer.Option("--abi", "-a", help="ABI to build (repeatable, default: all)"),
    ] = None,
) -> None:
    """Run the native build for a variant."""
    from native_release.builds.runner import BuildExecutionError, build_variant

    settings = _settings(ctx)
    build_var = BuildVariant.from_name(variant)
    try:
        results = build_variant(build_var, settings, abis=abi or None)
    except BuildExecutionError as e:
        console.print(f"[red]✗ Build failed: {e.message}[/red]")
        raise typer.Exit(code=1) from None

    console.print(f"[green]✓ Built {build_var.name}[/green]")
    for result in results:
        console.print(f"  {result.abi.value}: {result.obj_dir}")


def _archive_dict(archive: Any) -> dict[str, Any]:
    return {
        "path": str(archive.path),
        "file_name": archive.file_name,
        "variant": archive.variant.name,
        "commit_count": archive.revision.commit_count,
        "short_hash": archive.revision.short_hash,
        "members": archive.members,
        "manifest_path": str(archive.manifest_path) if archive.manifest_path else None,
    }


@app.command("package")
def package_cmd(
    ctx: typer.Context,
    variant: Annotated[str, typer.Argument(help="Build variant (debug/release)")],
    skip_build: Annotated[
        bool,
        typer.Option("--skip-build", help="Assume the native build already ran"),
    ] = False,
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output as JSON"),
    ] = False,
) -> None:
    """Build and zip a variant into the release directory."""
    from native_release.builds.runner import BuildExecutionError
    from native_release.orchestrator import package
    from native_release.packaging.archive import PackagingFailedError
    from native_release.version import VersionUnavailableError

    settings = _settings(ctx)
    try:
        archive = package(
            BuildVariant.from_name(variant), settings, skip_build=skip_build
        )
    except (VersionUnavailableError, PackagingFailedError) as e:
        console.print(f"[red]✗ Packaging failed: {e.message}[/red]")
        raise typer.Exit(code=1) from None
    except BuildExecutionError as e:
        console.print(f"[red]✗ Build failed: {e.message}[/red]")
        raise typer.Exit(code=1) from None

    if json_output:
        _echo_json(_archive_dict(archive))
    else:
        console.print(f"[green]✓ Packaged {archive.file_name}[/green]")
        console.print(f"  Path:    {archive.path}")
        console.print(f"  Members: {len(archive.members)}")


@app.command("release")
def release_cmd(
    ctx: typer.Context,
    variants: Annotated[
        list[str] | None,
        typer.Argument(help="Variants to package (default: debug release)"),
    ] = None,
    skip_build: Annotated[
        bool,
        typer.Option("--skip-build", help="Assume the native builds already ran"),
    ] = False,
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output as JSON"),
    ] = False,
) -> None:
    """Package several variants under a single revision."""
    from native_release.builds.runner import BuildExecutionError
    from native_release.orchestrator import release
    from native_release.packaging.archive import PackagingFailedError
    from native_release.version import VersionUnavailableError

    settings = _settings(ctx)
    names = variants or ["debug", "release"]
    try:
        archives = release(
            [BuildVariant.from_name(n) for n in names],
            settings,
            skip_build=skip_build,
        )
    except (VersionUnavailableError, PackagingFailedError, BuildExecutionError) as e:
        console.print(f"[red]✗ Release failed: {e.message}[/red]")
        raise typer.Exit(code=1) from None

    if json_output:
        _echo_json([_archive_dict(a) for a in archives])
    else:
        for archive in archives:
            console.print(f"[green]✓ {archive.path}[/green]")


@app.command()
def install(
    ctx: typer.Context,
    variant: Annotated[str, typer.Argument(help="Build variant (debug/release)")],
    skip_build: Annotated[
        bool,
        typer.Option("--skip-build", help="Assume the native build already ran"),
    ] = False,
    serial: Annotated[
        str | None,
        typer.Option("--serial", "-s", help="Device serial (adb -s)"),
    ] = None,
    strict_abi: Annotated[
        bool,
        typer.Option("--strict-abi", help="Fail on ABIs this project does not build"),
    ] = False,
    fail_on_primary_error: Annotated[
        bool,
        typer.Option(
            "--fail-on-primary-error",
            help="Fail if the device's primary ABI could not be installed",
        ),
    ] = False,
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output as JSON"),
    ] = False,
) -> None:
    """Build and install a variant on the connected device."""
    from native_release.builds.runner import BuildExecutionError
    from native_release.deploy.device import DeviceError
    from native_release.deploy.service import DeployError
    from native_release.orchestrator import install as install_variant
    from native_release.types import DeployStatus

    settings = _settings(
        ctx,
        adb_serial=serial,
        strict_abi=strict_abi or None,
        fail_on_primary_error=fail_on_primary_error or None,
    )
    try:
        report = install_variant(
            BuildVariant.from_name(variant), settings, skip_build=skip_build
        )
    except (DeviceError, DeployError, BuildExecutionError) as e:
        console.print(f"[red]✗ Install failed: {e.message}[/red]")
        raise typer.Exit(code=1) from None

    if json_output:
        _echo_json(report.to_dict())
        return

    for result in report.results:
        if result.status == DeployStatus.DEPLOYED:
            console.print(f"  [green]✓ {result.abi}[/green] -> {result.device_path}")
        elif result.status == DeployStatus.SKIPPED_UNSUPPORTED:
            console.print(f"  [yellow]- {result.abi}[/yellow] skipped (unsupported)")
        else:
            console.print(f"  [red]✗ {result.abi}[/red] {result.reason}")

    color = "green" if report.any_deployed else "yellow"
    console.print(f"[{color}]{report.summary()}[/{color}]")


if __name__ == "__main__":
    app()
