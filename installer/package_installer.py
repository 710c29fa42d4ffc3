"""Volcano package installer.

Composer-side hooks for packages of type ``volcano-package``. The
post-autoload-dump hook rebuilds ``vendor/volcano-packages.php`` from
scratch; the per-package install/update/uninstall hooks only touch a single
entry and are kept for projects that still call them.
"""

import logging
import textwrap
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

from rich.console import Console

from .config import Config, get_config
from .manifest import PackageDescriptor
from .package_map import MapFileError, ensure_config_file, get_config_file, regenerate, upsert
from .repository import ComposerProject
from .resolver import primary_namespace

logger = logging.getLogger(__name__)

POST_AUTOLOAD_DUMP = "post-autoload-dump"

ERROR_STYLE = "bold white on red"

WARNING_WIDTH = 75
WRAP_WIDTH = 68


class InstallerIO(Protocol):
    """Output channel the installer reports to."""

    def write(self, messages: str | list[str], style: str | None = None) -> None: ...

    def is_verbose(self) -> bool: ...


class ConsoleIO:
    """InstallerIO backed by a rich console."""

    def __init__(self, console: Console | None = None, verbose: bool = False) -> None:
        self.console = console or Console()
        self.verbose = verbose

    def write(self, messages: str | list[str], style: str | None = None) -> None:
        if isinstance(messages, str):
            messages = [messages]
        for message in messages:
            self.console.print(message, style=style if message else None, markup=False, highlight=False)

    def is_verbose(self) -> bool:
        return self.verbose


@dataclass
class InstallerSession:
    """State shared by the installers created during one Composer run."""

    usage_checked: bool = False


@dataclass
class AutoloadDumpEvent:
    """The host's post-autoload-dump event."""

    project: ComposerProject
    io: InstallerIO = field(default_factory=ConsoleIO)
    name: str = POST_AUTOLOAD_DUMP


class PackageInstaller:
    """Installer for packages of the plugin type.

    Example:
        >>> project = ComposerProject.load(".")
        >>> installer = PackageInstaller(ConsoleIO(), project, InstallerSession())
        >>> installer.install(package)
    """

    def __init__(
        self,
        io: InstallerIO,
        project: ComposerProject,
        session: InstallerSession | None = None,
        config: Config | None = None,
    ) -> None:
        """Create the installer and check how the project uses it.

        Args:
            io: Output channel for messages.
            project: The Composer project being installed.
            session: Tracks whether the usage check already ran. A fresh
                session is used when none is given.
            config: Installer configuration (default: global config).
        """
        self.io = io
        self.project = project
        self.config = config or get_config()
        self.vendor_dir = project.vendor_dir

        self.usage_warned = self.check_usage(project, session or InstallerSession())

    def check_usage(self, project: ComposerProject, session: InstallerSession) -> bool:
        """Check that the project registers the post-autoload-dump hook.

        Only applications (type ``project``) are checked, so plugins under
        development stay quiet. Runs at most once per session.

        Returns:
            True if the user was warned.
        """
        if session.usage_checked:
            return False

        session.usage_checked = True

        if project.package.type != "project":
            return False

        hook = self.config.installer.hook_command
        if hook in project.package.get_scripts(POST_AUTOLOAD_DUMP):
            return False

        self.warn_user(
            "Action required!",
            "Please update your application composer.json file to add the post-autoload-dump hook"
            f' ("{hook}").',
        )
        return True

    def warn_user(self, title: str, text: str) -> list[str]:
        """Warn the developer of action they need to take.

        Returns:
            The framed lines that were written.
        """

        def wrap(line: str) -> str:
            return "     " + line.ljust(WARNING_WIDTH)

        lines = []
        for paragraph in text.split("\n"):
            lines.extend(
                textwrap.wrap(paragraph, WRAP_WIDTH, break_long_words=False, break_on_hyphens=False) or [""]
            )

        framed = [wrap(""), wrap(title), wrap("")]
        framed.extend(wrap(line) for line in lines)
        framed.append(wrap(""))

        self.io.write(["", ""])
        self.io.write(framed, style=ERROR_STYLE)
        self.io.write(["", ""])
        return framed

    def supports(self, package_type: str) -> bool:
        """Only packages of the configured plugin type are handled."""
        return package_type == self.config.installer.package_type

    def get_install_path(self, package: PackageDescriptor) -> Path:
        """Where Composer puts the package."""
        return self.vendor_dir / package.pretty_name

    @property
    def config_file(self) -> Path:
        return get_config_file(self.vendor_dir, self.config.installer.map_file)

    def install(self, package: PackageDescriptor) -> None:
        """Register a freshly installed package in the package map.

        Superseded by the post-autoload-dump hook.
        """
        namespace = primary_namespace(package)
        self.update_config(namespace, self.get_install_path(package))

    def update(self, initial: PackageDescriptor, target: PackageDescriptor) -> None:
        """Replace an updated package's entry in the package map.

        Superseded by the post-autoload-dump hook.
        """
        self.update_config(primary_namespace(initial), None)
        self.update_config(primary_namespace(target), self.get_install_path(target))

    def uninstall(self, package: PackageDescriptor) -> None:
        """Remove an uninstalled package from the package map.

        Superseded by the post-autoload-dump hook.
        """
        self.update_config(primary_namespace(package), None)

    def update_config(self, name: str, path: Path | str | None) -> None:
        """Set or remove (``path=None``) the path of one package.

        Raises:
            MapFileError: If the existing package map is invalid; the file is
                left as it was.
        """
        config_file = self.config_file

        if ensure_config_file(config_file):
            if self.io.is_verbose():
                self.io.write(f"Created {config_file}")
        elif self.io.is_verbose():
            self.io.write(f"{config_file} exists.")

        try:
            upsert(config_file, name, path)
        except MapFileError:
            self.io.write(
                f"ERROR - `{config_file}` file is invalid. Packages path configuration not updated.",
                style="red",
            )
            raise

    @staticmethod
    def post_autoload_dump(event: AutoloadDumpEvent, config: Config | None = None) -> Path:
        """Called whenever Composer (re)generates the autoloader.

        Recreates the package map from the installed packages and the
        project's local packages directory.

        Returns:
            Path of the written package map.
        """
        config = config or get_config()
        project = event.project

        vendor_dir = project.vendor_dir.resolve()
        packages_dir = config.packages_dir_for(vendor_dir.parent)

        config_file = regenerate(
            project.get_packages(),
            packages_dir,
            vendor_dir,
            package_type=config.installer.package_type,
            map_file=config.installer.map_file,
        )

        if event.io.is_verbose():
            event.io.write(f"Generated {config_file}")
        return config_file
