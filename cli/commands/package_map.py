"""Package map CLI commands.

Edit single entries of ``vendor/volcano-packages.php``. The ``dump`` command
rebuilds the whole file and should be preferred; these commands exist for the
per-package install/update/uninstall flow.
"""

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

console = Console()
error_console = Console(stderr=True)

map_app = typer.Typer(
    name="map",
    help="Inspect and edit the generated package map.",
    no_args_is_help=True,
)

PROJECT_OPTION = typer.Option(
    None,
    "--project",
    "-p",
    help="Composer project root (default: current directory)",
)


def get_installer(ctx: typer.Context, project_dir: Optional[Path]):
    """Get a package installer for a project.

    The hook advisory is left to ``volcano-installer check``.
    """
    from cli.volcano.cli import load_project
    from installer import ConsoleIO, InstallerSession, PackageInstaller

    project = load_project(ctx, project_dir)
    return PackageInstaller(ConsoleIO(console), project, InstallerSession(usage_checked=True))


def _fail(error: Exception) -> None:
    error_console.print(f"[red]✗[/red] {error}", markup=True, highlight=False)
    raise typer.Exit(1)


@map_app.command("set")
def set_package(
    ctx: typer.Context,
    namespace: str = typer.Argument(..., help="Package namespace, e.g. Acme/Plugin"),
    path: Path = typer.Argument(..., help="Package directory"),
    project: Optional[Path] = PROJECT_OPTION,
) -> None:
    """Set the path of one package.

    Example:
        volcano-installer map set Acme/Plugin vendor/acme/plugin
    """
    from installer import ManifestError, MapFileError

    try:
        installer = get_installer(ctx, project)
        target = path if path.is_absolute() else Path.cwd() / path
        installer.update_config(namespace, target.resolve())
    except (ManifestError, MapFileError) as e:
        _fail(e)

    console.print(f"[green]✓[/green] {namespace} -> {path}")


@map_app.command("remove")
def remove_package(
    ctx: typer.Context,
    namespace: str = typer.Argument(..., help="Package namespace"),
    project: Optional[Path] = PROJECT_OPTION,
) -> None:
    """Remove one package from the map.

    Example:
        volcano-installer map remove Acme/Plugin
    """
    from installer import ManifestError, MapFileError

    try:
        installer = get_installer(ctx, project)
        installer.update_config(namespace, None)
    except (ManifestError, MapFileError) as e:
        _fail(e)

    console.print(f"[green]✓[/green] Removed {namespace}")


@map_app.command("show")
def show(
    ctx: typer.Context,
    project: Optional[Path] = PROJECT_OPTION,
) -> None:
    """Show the current contents of the package map."""
    from cli.volcano.cli import load_project
    from installer import ManifestError, MapFileError
    from installer.config import get_config
    from installer.package_map import get_config_file, read_package_map

    try:
        composer_project = load_project(ctx, project)
        config_file = get_config_file(composer_project.vendor_dir, get_config().installer.map_file)
        if not config_file.exists():
            console.print(f"[yellow]No package map at {config_file}[/yellow]")
            console.print("[dim]Generate it with: volcano-installer dump[/dim]")
            return
        packages = read_package_map(config_file)
    except (ManifestError, MapFileError) as e:
        _fail(e)

    table = Table(title=str(config_file))
    table.add_column("Namespace", style="cyan")
    table.add_column("Path")
    for namespace, path in packages.items():
        table.add_row(namespace, path)

    console.print(table)
