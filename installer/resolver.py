"""Primary namespace resolution for plugin packages.

A plugin package is registered under one namespace, taken from the ``psr-4``
section of its autoload declaration. The rules are tried in order and the
first one that yields a namespace wins:

1. A single ``psr-4`` entry: its namespace, whatever the path.
2. The first entry pointing at a ``src`` directory (``src``, ``src/``,
   ``./src``, ``./src/``).
3. The entry pointing at the package root (``""`` or ``"."``). When several
   do, the last one in declaration order wins.

Loader types other than ``psr-4`` are ignored.
"""

import logging
import re
from collections.abc import Callable, Mapping
from typing import Any

from .manifest import PackageDescriptor

logger = logging.getLogger(__name__)

PSR4 = "psr-4"

SRC_DIR_PATTERN = re.compile(r"^(\./)?src/?$")
ROOT_PATHS = ("", ".")

README_URL = "https://github.com/nico2dev/volcano-installer"


class ResolutionError(RuntimeError):
    """Raised when a package's primary namespace cannot be determined."""

    def __init__(self, package_name: str) -> None:
        self.package_name = package_name
        super().__init__(
            f"Unable to get primary namespace for package {package_name}."
            "\nEnsure you have added proper 'autoload' section to your package's composer.json"
            f" as stated in README on {README_URL}"
        )


def _paths(value: Any) -> list[str]:
    """Autoload paths may be a single string or a list of strings."""
    if isinstance(value, str):
        return [value]
    if isinstance(value, (list, tuple)):
        return [item for item in value if isinstance(item, str)]
    return []


def _single_entry(path_map: Mapping[str, Any]) -> str | None:
    if len(path_map) == 1:
        return next(iter(path_map))
    return None


def _src_directory(path_map: Mapping[str, Any]) -> str | None:
    for namespace, value in path_map.items():
        if any(SRC_DIR_PATTERN.match(path) for path in _paths(value)):
            return namespace
    return None


def _package_root(path_map: Mapping[str, Any]) -> str | None:
    # Last match wins: a later root entry overrides an earlier one.
    found = None
    for namespace, value in path_map.items():
        if any(path in ROOT_PATHS for path in _paths(value)):
            found = namespace
    return found


NAMESPACE_RULES: tuple[tuple[str, Callable[[Mapping[str, Any]], str | None]], ...] = (
    ("single entry", _single_entry),
    ("src directory", _src_directory),
    ("package root", _package_root),
)


def normalize_namespace(namespace: str) -> str:
    """Use ``/`` separators and trim leading and trailing separators."""
    return namespace.replace("\\", "/").strip("/")


def _autoload_of(package: PackageDescriptor | Mapping[str, Any]) -> tuple[str, Mapping[str, Any]]:
    if isinstance(package, PackageDescriptor):
        return package.name, package.autoload

    name = str(package.get("name", "<unnamed>"))
    autoload = package.get("autoload") or {}
    if not isinstance(autoload, Mapping):
        autoload = {}
    return name, autoload


def primary_namespace(package: PackageDescriptor | Mapping[str, Any]) -> str:
    """Get the primary namespace for a plugin package.

    Args:
        package: A package descriptor or a raw ``composer.json`` mapping.

    Returns:
        The normalized namespace, e.g. ``Acme/Plugin``.

    Raises:
        ResolutionError: When no rule yields a namespace.
    """
    name, autoload = _autoload_of(package)

    namespace = None
    for loader_type, path_map in autoload.items():
        if loader_type != PSR4:
            continue

        if isinstance(path_map, Mapping):
            for rule, match in NAMESPACE_RULES:
                namespace = match(path_map)
                if namespace is not None:
                    logger.debug("Resolved %s to %r by %s rule", name, namespace, rule)
                    break
        break

    if namespace is None or not normalize_namespace(namespace):
        raise ResolutionError(name)

    return normalize_namespace(namespace)
