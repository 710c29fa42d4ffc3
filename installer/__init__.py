"""Volcano installer.

Keeps ``vendor/volcano-packages.php`` in sync with the plugin packages of a
Composer project.

Plugin packages are regular Composer packages of type ``volcano-package``,
installed under ``vendor/`` or developed locally under ``packages/``:

    project/
    ├── composer.json          # "post-autoload-dump": ["volcano-installer dump"]
    ├── packages/
    │   └── Blog/
    │       └── composer.json  # "type": "volcano-package"
    └── vendor/
        ├── acme/plugin/
        └── volcano-packages.php

Each package is registered under the primary namespace of its ``psr-4``
autoload section.
"""

from .manifest import ManifestError, PackageDescriptor
from .package_installer import (
    AutoloadDumpEvent,
    ConsoleIO,
    InstallerSession,
    PackageInstaller,
)
from .package_map import MapFileError, determine_plugins, regenerate, upsert
from .repository import ComposerProject
from .resolver import ResolutionError, primary_namespace

__all__ = [
    "AutoloadDumpEvent",
    "ComposerProject",
    "ConsoleIO",
    "InstallerSession",
    "ManifestError",
    "MapFileError",
    "PackageDescriptor",
    "PackageInstaller",
    "ResolutionError",
    "determine_plugins",
    "primary_namespace",
    "regenerate",
    "upsert",
]
