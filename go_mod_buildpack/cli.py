"""Thin CLI wrapper for go_mod_buildpack.

This module provides the command-line interface using Typer.
All business logic is delegated to core modules.
"""

import json
import logging
from pathlib import Path
from typing import Annotated, NoReturn

import typer
from rich.console import Console

from go_mod_buildpack import __version__
from go_mod_buildpack.config import Settings, get_settings, print_settings_json
from go_mod_buildpack.errors import BuildpackError

app = typer.Typer(
    name="go-mod-build",
    help="Go module buildpack - compile a Go app and stage its binary for launch",
    no_args_is_help=True,
)
console = Console()


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"go-mod-buildpack version {__version__}")
        raise typer.Exit()


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=settings.log_level,
        format="%(levelname)s %(name)s: %(message)s",
    )


def fail(error: BuildpackError, json_output: bool) -> NoReturn:
    """Report a buildpack error and exit with code 1."""
    if json_output:
        console.print(
            json.dumps(error.to_dict(), indent=2), soft_wrap=True, markup=False
        )
    else:
        console.print(f"[red]{error.message}[/red]")
    raise typer.Exit(code=1) from error


@app.callback()
def main(
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
) -> None:
    """Go module buildpack - compile a Go app and stage its binary for launch."""


@app.command()
def config(
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output as JSON"),
    ] = False,
) -> None:
    """Show effective configuration."""
    settings = get_settings()
    if json_output:
        console.print(
            print_settings_json(settings), soft_wrap=True, markup=False
        )
    else:
        targets_display = settings.go_targets or "(from buildpack.yml)"
        timeout_display = (
            str(settings.build_timeout) if settings.build_timeout else "(none)"
        )
        console.print("[bold]Effective Configuration:[/bold]")
        console.print()
        console.print("[bold]Toolchain:[/bold]")
        console.print(f"  Go binary:           {settings.go_binary}")
        console.print(f"  Build mode:          {settings.build_mode}")
        console.print(f"  Build tags:          {settings.build_tags}")
        console.print(f"  Build timeout:       {timeout_display}")
        console.print(f"  Targets:             {targets_display}")
        console.print()
        console.print("[bold]Operational:[/bold]")
        console.print(f"  Reuse cache:         {settings.reuse_cache}")
        console.print(f"  Log level:           {settings.log_level}")


@app.command()
def targets(
    app_root: Annotated[
        Path,
        typer.Option("--app-root", "-a", help="Application source root"),
    ] = Path("."),
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output as JSON"),
    ] = False,
) -> None:
    """Show the build targets `go install` will receive."""
    from go_mod_buildpack.mod.targets import resolve_targets

    try:
        resolved = resolve_targets(app_root, get_settings())
    except BuildpackError as e:
        fail(e, json_output)

    if json_output:
        console.print(
            json.dumps(list(resolved), indent=2), soft_wrap=True, markup=False
        )
    elif not resolved:
        console.print("[yellow]No targets; building the module package[/yellow]")
    else:
        for target in resolved:
            console.print(f"  {target}")


@app.command()
def build(
    layers_dir: Annotated[
        Path,
        typer.Option("--layers", "-l", help="Directory holding the layers"),
    ],
    app_root: Annotated[
        Path,
        typer.Option("--app-root", "-a", help="Application source root"),
    ] = Path("."),
    cleanup_source: Annotated[
        bool,
        typer.Option("--cleanup", help="Remove the application source afterwards"),
    ] = False,
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output as JSON"),
    ] = False,
) -> None:
    """Compile the app and stage its binary and start command."""
    from go_mod_buildpack.layers import Layers
    from go_mod_buildpack.mod import Contributor
    from go_mod_buildpack.mod.runner import SubprocessRunner

    settings = get_settings()
    configure_logging(settings)

    contributor = Contributor(
        app_root=app_root,
        layers=Layers(layers_dir),
        runner=SubprocessRunner(timeout=settings.build_timeout),
        settings=settings,
    )

    try:
        contributor.contribute()
        if cleanup_source:
            contributor.cleanup()
    except BuildpackError as e:
        fail(e, json_output)

    layers = contributor.layers
    binary = str(contributor.binary_path.absolute())
    launch_metadata = layers.read_application_metadata()
    processes = launch_metadata.process_map() if launch_metadata else {}
    if json_output:
        output = {
            "app_name": contributor.app_name,
            "targets": list(contributor.targets),
            "binary": binary,
            "processes": processes,
        }
        console.print(
            json.dumps(output, indent=2), soft_wrap=True, markup=False
        )
    else:
        console.print(f"[green]Built {contributor.app_name}[/green]")
        console.print(f"  Binary:        {binary}")
        for process_type, command in processes.items():
            console.print(f"  Start command: {process_type} -> {command}")


@app.command()
def cleanup(
    app_root: Annotated[
        Path,
        typer.Option("--app-root", "-a", help="Application source root"),
    ],
    yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Confirm deletion"),
    ] = False,
) -> None:
    """Delete everything inside the application root."""
    from go_mod_buildpack.mod.contributor import cleanup_app_root

    if not yes:
        console.print(f"[red]Refusing to empty {app_root} without --yes[/red]")
        raise typer.Exit(code=1)

    if not app_root.is_dir():
        console.print(f"[red]Not a directory: {app_root}[/red]")
        raise typer.Exit(code=1)

    try:
        cleanup_app_root(app_root)
    except BuildpackError as e:
        fail(e, False)
    console.print(f"[green]Emptied {app_root}[/green]")


if __name__ == "__main__":
    app()
