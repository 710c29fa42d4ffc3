"""Volcano installer CLI.

Main command-line interface. Register the dump hook in the application's
``composer.json``::

    "scripts": {
        "post-autoload-dump": ["volcano-installer dump"]
    }
"""

import logging
from pathlib import Path
from typing import Optional

import typer

from cli.volcano.output import (
    console,
    print_error,
    print_info,
    print_packages,
    print_success,
    print_warning,
)

app = typer.Typer(
    name="volcano-installer",
    help="Keep vendor/volcano-packages.php in sync with the project's Volcano packages.",
    no_args_is_help=True,
)

from cli.commands.package_map import map_app

app.add_typer(map_app, name="map")


PROJECT_OPTION = typer.Option(
    None,
    "--project",
    "-p",
    help="Composer project root (default: current directory)",
)


@app.callback()
def main_options(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug output"),
    config_path: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to volcano.toml",
    ),
) -> None:
    """Load configuration and set up logging."""
    from installer.config import get_config, reload_config

    config = reload_config(config_path) if config_path else get_config()

    level = logging.DEBUG if verbose else getattr(logging, config.logging.level.upper(), logging.WARNING)
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
    )

    ctx.obj = {"verbose": verbose, "config_path": config_path}


def load_project(ctx: typer.Context, project: Optional[Path]):
    """Load the Composer project a command works on.

    Without ``--config``, a ``--project`` directory also decides which
    volcano.toml applies: the search starts there instead of the working
    directory.
    """
    from installer import ComposerProject
    from installer.config import reload_config

    if project is not None and not (ctx.obj and ctx.obj.get("config_path")):
        reload_config(search_from=project)

    return ComposerProject.load(project or Path.cwd())


@app.command()
def dump(
    ctx: typer.Context,
    project: Optional[Path] = PROJECT_OPTION,
) -> None:
    """Rebuild the package map (the post-autoload-dump hook).

    Examples:
        volcano-installer dump
        volcano-installer dump --project /var/www/app
    """
    from installer import (
        AutoloadDumpEvent,
        ConsoleIO,
        ManifestError,
        MapFileError,
        PackageInstaller,
        ResolutionError,
    )

    verbose = bool(ctx.obj and ctx.obj.get("verbose"))

    try:
        event = AutoloadDumpEvent(project=load_project(ctx, project), io=ConsoleIO(console, verbose=verbose))
        config_file = PackageInstaller.post_autoload_dump(event)
    except (ResolutionError, ManifestError, MapFileError) as e:
        print_error(str(e))
        raise typer.Exit(1)

    print_success(f"Package map written to {config_file}")


@app.command("list")
def list_packages(
    ctx: typer.Context,
    project: Optional[Path] = PROJECT_OPTION,
) -> None:
    """List the Volcano packages of a project and their namespaces.

    Example:
        volcano-installer list
    """
    from installer import ManifestError, ResolutionError, determine_plugins
    from installer.config import get_config

    try:
        composer_project = load_project(ctx, project)
        config = get_config()
        vendor_dir = composer_project.vendor_dir
        packages = determine_plugins(
            composer_project.get_packages(),
            config.packages_dir_for(vendor_dir.parent),
            vendor_dir,
            package_type=config.installer.package_type,
        )
    except (ResolutionError, ManifestError) as e:
        print_error(str(e))
        raise typer.Exit(1)

    print_packages(packages)


@app.command()
def resolve(
    manifest: Path = typer.Argument(..., help="composer.json, or the package directory holding it"),
) -> None:
    """Print the primary namespace of a package.

    Example:
        volcano-installer resolve packages/Blog
    """
    from installer import ManifestError, PackageDescriptor, ResolutionError, primary_namespace
    from installer.manifest import MANIFEST_FILE

    if manifest.is_dir():
        manifest = manifest / MANIFEST_FILE

    try:
        namespace = primary_namespace(PackageDescriptor.from_json(manifest))
    except (ResolutionError, ManifestError) as e:
        print_error(str(e))
        raise typer.Exit(1)

    console.print(namespace, markup=False, highlight=False)


@app.command()
def check(
    ctx: typer.Context,
    project: Optional[Path] = PROJECT_OPTION,
) -> None:
    """Check that the project registers the dump hook.

    Example:
        volcano-installer check
    """
    from installer import ConsoleIO, InstallerSession, ManifestError, PackageInstaller

    try:
        installer = PackageInstaller(ConsoleIO(console), load_project(ctx, project), InstallerSession())
    except ManifestError as e:
        print_error(str(e))
        raise typer.Exit(1)

    if installer.project.package.type != "project":
        print_info(f"{installer.project.package.name} is not an application; nothing to check")
    elif installer.usage_warned:
        print_warning("post-autoload-dump hook is missing")
        raise typer.Exit(1)
    else:
        print_success("post-autoload-dump hook is registered")


@app.command()
def version() -> None:
    """Show the installer version."""
    from cli.volcano import __version__

    console.print(f"Volcano installer v{__version__}")


def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
