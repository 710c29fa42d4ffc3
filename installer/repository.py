"""Read the host project the way Composer sees it.

Gives the installer the root package (type and scripts), the vendor
directory and the list of installed packages from
``vendor/composer/installed.json``. Nothing here installs or downloads
anything; that stays with Composer.
"""

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .manifest import MANIFEST_FILE, ManifestError, PackageDescriptor, read_manifest

logger = logging.getLogger(__name__)

INSTALLED_FILE = Path("composer") / "installed.json"
DEFAULT_VENDOR_DIR = "vendor"


@dataclass
class RootPackage:
    """The project's own ``composer.json``."""

    name: str = "__root__"
    type: str = "library"
    scripts: dict[str, list[str]] = field(default_factory=dict)
    config: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RootPackage":
        """Create from a decoded ``composer.json``."""
        raw_scripts = data.get("scripts")
        if not isinstance(raw_scripts, dict):
            raw_scripts = {}

        scripts: dict[str, list[str]] = {}
        for event, commands in raw_scripts.items():
            # Composer accepts a single command as a plain string.
            if isinstance(commands, str):
                commands = [commands]
            scripts[event] = [c for c in commands if isinstance(c, str)]

        config = data.get("config")
        return cls(
            name=data.get("name") or "__root__",
            type=data.get("type") or "library",
            scripts=scripts,
            config=config if isinstance(config, dict) else {},
        )

    def get_scripts(self, event: str) -> list[str]:
        """Commands registered for an event."""
        return self.scripts.get(event, [])


@dataclass
class ComposerProject:
    """A Composer project on disk."""

    root_dir: Path
    package: RootPackage = field(default_factory=RootPackage)

    @classmethod
    def load(cls, root_dir: Path | str) -> "ComposerProject":
        """Load a project from its root directory.

        A missing ``composer.json`` gives a default root package.

        Raises:
            ManifestError: If ``composer.json`` exists but is invalid.
        """
        root_dir = Path(root_dir).resolve()
        manifest_path = root_dir / MANIFEST_FILE

        if manifest_path.exists():
            package = RootPackage.from_dict(read_manifest(manifest_path))
        else:
            logger.debug("No %s in %s", MANIFEST_FILE, root_dir)
            package = RootPackage()

        return cls(root_dir=root_dir, package=package)

    @property
    def vendor_dir(self) -> Path:
        """Vendor directory, honouring ``COMPOSER_VENDOR_DIR`` and ``config.vendor-dir``."""
        vendor = os.getenv("COMPOSER_VENDOR_DIR") or self.package.config.get("vendor-dir")
        path = Path(vendor or DEFAULT_VENDOR_DIR).expanduser()
        if not path.is_absolute():
            path = self.root_dir / path
        return path

    @property
    def installed_file(self) -> Path:
        return self.vendor_dir / INSTALLED_FILE

    def get_packages(self) -> list[PackageDescriptor]:
        """Installed packages, as recorded by Composer.

        Returns an empty list if nothing has been installed yet.

        Raises:
            ManifestError: If ``installed.json`` is invalid.
        """
        installed_file = self.installed_file
        if not installed_file.exists():
            logger.debug("No installed packages: %s not found", installed_file)
            return []

        data = read_installed(installed_file)
        packages = []
        for entry in data:
            install_path = None
            if entry.get("install-path"):
                install_path = (installed_file.parent / entry["install-path"]).resolve()
            packages.append(PackageDescriptor.from_dict(entry, install_path=install_path))

        logger.debug("Found %d installed package(s)", len(packages))
        return packages


def read_installed(installed_file: Path) -> list[dict[str, Any]]:
    """Read ``installed.json`` in either Composer 1 or Composer 2 format."""
    try:
        with open(installed_file, encoding="utf-8") as f:
            data = json.load(f)
    except OSError as e:
        raise ManifestError(f"Cannot read {installed_file}: {e}")
    except json.JSONDecodeError as e:
        raise ManifestError(f"Invalid JSON in {installed_file}: {e}")

    # Composer 2 wraps the list: {"packages": [...], "dev": true, ...}
    if isinstance(data, dict):
        data = data.get("packages", [])

    if not isinstance(data, list) or not all(isinstance(entry, dict) for entry in data):
        raise ManifestError(f"Unexpected structure in {installed_file}")

    return data
