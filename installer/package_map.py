"""Generated package map (``vendor/volcano-packages.php``).

The host application includes this file at runtime to find plugin packages::

    <?php

    $baseDir = dirname(dirname(__FILE__));

    return array(
        'packages' => array(
            'Acme/Plugin' => $baseDir . '/vendor/acme/plugin/',
        ),
    );

Paths below the project root are written relative to ``$baseDir`` so the
project can be moved. The file is always rewritten as a whole, through a
temporary file that is renamed into place.
"""

import logging
import os
import re
import stat
import tempfile
from collections.abc import Iterable, Mapping
from pathlib import Path

from .manifest import MANIFEST_FILE, PLUGIN_PACKAGE_TYPE, ManifestError, PackageDescriptor, read_manifest
from .resolver import normalize_namespace, primary_namespace

logger = logging.getLogger(__name__)

MAP_FILE = "volcano-packages.php"

_HEADER = """<?php

$baseDir = dirname(dirname(__FILE__));

return array(
"""

_EMPTY_PACKAGES = "    'packages' => array(),\n"

_FOOTER = ");\n"

_PHP_STRING = r"'((?:[^'\\]|\\.)*)'"

_ENTRY_PATTERN = re.compile(
    rf"^\s*{_PHP_STRING}\s*=>\s*(\$baseDir\s*\.\s*)?{_PHP_STRING}\s*,?\s*$"
)
_BASE_DIR_PATTERN = re.compile(r"^\$baseDir\s*=\s*dirname\(\s*dirname\(\s*__FILE__\s*\)\s*\);$")
_RETURN_PATTERN = re.compile(r"^return\s+array\($")
_EMPTY_PATTERN = re.compile(r"^'packages'\s*=>\s*array\(\s*\),?$")
_OPEN_PATTERN = re.compile(r"^'packages'\s*=>\s*array\($")
_CLOSE_PATTERN = re.compile(r"^\),?$")
_END_PATTERN = re.compile(r"^\);$")


class MapFileError(OSError):
    """Raised when the package map cannot be read or written."""

    pass


def get_config_file(vendor_dir: Path, map_file: str = MAP_FILE) -> Path:
    """Path of the package map inside the vendor directory."""
    return Path(vendor_dir) / map_file


def normalize_path(path: str | Path) -> str:
    """Forward slashes, no duplicate or trailing separators."""
    normalized = re.sub(r"/{2,}", "/", str(path).replace("\\", "/"))
    return normalized.rstrip("/")


def _php_quote(value: str) -> str:
    return "'" + value.replace("\\", "\\\\").replace("'", "\\'") + "'"


def _php_unquote(value: str) -> str:
    return re.sub(r"\\([\\'])", r"\1", value)


def render_package_map(packages: Mapping[str, str | Path], root: str | Path) -> str:
    """Render the PHP source for a namespace -> path mapping.

    Entries are sorted by namespace so the output only depends on the
    mapping's content.
    """
    root_prefix = normalize_path(root)

    entries = {normalize_namespace(name): normalize_path(path) + "/" for name, path in packages.items()}
    if not entries:
        return _HEADER + _EMPTY_PACKAGES + _FOOTER

    lines = []
    for name in sorted(entries):
        path = entries[name]
        if root_prefix and path.startswith(root_prefix + "/"):
            value = "$baseDir . " + _php_quote(path[len(root_prefix):])
        else:
            value = _php_quote(path)
        lines.append(f"        {_php_quote(name)} => {value},\n")

    return _HEADER + "    'packages' => array(\n" + "".join(lines) + "    ),\n" + _FOOTER


def parse_package_map(contents: str, root: str | Path) -> dict[str, str]:
    """Parse a generated package map back into namespace -> absolute path.

    Only the generated shape is accepted: ``<?php``, the optional
    ``$baseDir`` line, ``return array(`` holding the ``packages`` section
    and nothing else, then ``);``. Blank lines and indentation are ignored.

    Raises:
        MapFileError: If the contents do not have the generated structure.
    """
    lines = [line.strip() for line in contents.splitlines() if line.strip()]

    if not lines or lines[0] != "<?php":
        raise MapFileError("package map does not start with <?php")
    lines = lines[1:]

    if lines and _BASE_DIR_PATTERN.match(lines[0]):
        lines = lines[1:]

    if not lines or not _RETURN_PATTERN.match(lines[0]):
        raise MapFileError("package map does not return an array")
    if len(lines) < 2 or not _END_PATTERN.match(lines[-1]):
        raise MapFileError("package map array is not closed")

    body = lines[1:-1]
    if len(body) == 1 and _EMPTY_PATTERN.match(body[0]):
        return {}

    if not body or not _OPEN_PATTERN.match(body[0]):
        raise MapFileError("package map must only hold a 'packages' section")
    if len(body) < 2 or not _CLOSE_PATTERN.match(body[-1]):
        raise MapFileError("package map 'packages' section is not closed")

    root_prefix = normalize_path(root)
    packages: dict[str, str] = {}
    for line in body[1:-1]:
        match = _ENTRY_PATTERN.match(line)
        if not match:
            raise MapFileError(f"unexpected line in package map: {line}")

        name, relative, path = match.groups()
        path = _php_unquote(path)
        packages[_php_unquote(name)] = root_prefix + path if relative else path

    return packages


def read_package_map(config_file: Path, root: str | Path | None = None) -> dict[str, str]:
    """Read an existing package map.

    Args:
        config_file: The generated file.
        root: Directory ``$baseDir`` refers to. Defaults to the parent of
            the directory holding the file.
    """
    config_file = Path(config_file)
    root = config_file.parent.parent if root is None else root

    try:
        contents = config_file.read_text(encoding="utf-8")
    except OSError as e:
        raise MapFileError(f"Cannot read {config_file}: {e}") from e

    try:
        return parse_package_map(contents, root)
    except MapFileError as e:
        raise MapFileError(f"{config_file} is invalid: {e}") from e


def _file_mode(path: Path) -> int:
    """Mode for a rewritten file: the existing one, else 0666 minus the umask."""
    try:
        return stat.S_IMODE(path.stat().st_mode)
    except FileNotFoundError:
        umask = os.umask(0)
        os.umask(umask)
        return 0o666 & ~umask


def _atomic_write(path: Path, contents: str) -> None:
    """Write ``contents`` to a temp file next to ``path`` and rename it over.

    The temp file is created 0600; it gets the mode the file would have had
    if written in place before it is renamed.
    """
    tmp_path: Path | None = None
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(
            "w",
            encoding="utf-8",
            dir=str(path.parent),
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
        ) as f:
            tmp_path = Path(f.name)
            f.write(contents)
            f.flush()
            os.fsync(f.fileno())

        os.chmod(tmp_path, _file_mode(path))
        os.replace(tmp_path, path)
        tmp_path = None
    except OSError as e:
        raise MapFileError(f"Cannot write {path}: {e}") from e
    finally:
        if tmp_path is not None and tmp_path.exists():
            tmp_path.unlink()


def write_config_file(
    config_file: Path,
    packages: Mapping[str, str | Path],
    root: str | Path | None = None,
) -> None:
    """Rewrite the package map with the complete list of packages.

    Raises:
        MapFileError: If the file cannot be written.
    """
    config_file = Path(config_file)
    root = config_file.parent.parent if root is None else root

    _atomic_write(config_file, render_package_map(packages, root))
    logger.info("Wrote %d package(s) to %s", len(packages), config_file)


def ensure_config_file(config_file: Path) -> bool:
    """Create an empty package map if none exists.

    Returns:
        True if the file was created.
    """
    config_file = Path(config_file)
    if config_file.exists():
        logger.debug("%s exists", config_file)
        return False

    write_config_file(config_file, {})
    logger.debug("Created %s", config_file)
    return True


def upsert(
    config_file: Path,
    namespace: str,
    path: str | Path | None,
    root: str | Path | None = None,
) -> dict[str, str]:
    """Set or remove (``path=None``) a single package in an existing map.

    The file is created empty first if missing. A file that cannot be parsed
    is left untouched.

    Returns:
        The mapping that was written.

    Raises:
        MapFileError: If the existing file is invalid or cannot be written.
    """
    config_file = Path(config_file)
    ensure_config_file(config_file)

    packages = read_package_map(config_file, root)

    name = normalize_namespace(namespace)
    if path is None:
        if packages.pop(name, None) is not None:
            logger.debug("Removed %s from %s", name, config_file)
    else:
        packages[name] = str(path)
        logger.debug("Set %s -> %s in %s", name, path, config_file)

    write_config_file(config_file, packages, root)
    return packages


def _local_packages(packages_dir: Path, package_type: str) -> Iterable[tuple[str, Path]]:
    for subdir in sorted(packages_dir.iterdir()):
        if not subdir.is_dir():
            continue

        manifest_path = subdir / MANIFEST_FILE
        try:
            data = read_manifest(manifest_path)
        except ManifestError as e:
            logger.debug("Skipping %s: %s", subdir.name, e)
            continue

        if data.get("type") != package_type:
            logger.debug("Skipping %s: type is %r", subdir.name, data.get("type"))
            continue

        yield primary_namespace({"name": subdir.name, **data}), subdir


def determine_plugins(
    packages: Iterable[PackageDescriptor],
    packages_dir: Path | None,
    vendor_dir: Path,
    package_type: str = PLUGIN_PACKAGE_TYPE,
) -> dict[str, Path]:
    """Find all available plugin packages.

    Installed packages of the plugin type are found at
    ``vendor_dir/<pretty name>``; every subdirectory of ``packages_dir``
    whose ``composer.json`` declares the plugin type is added after them,
    so a local package replaces an installed one with the same namespace.

    Returns:
        Namespace-indexed package paths, sorted by namespace.

    Raises:
        ResolutionError: If a plugin package's namespace cannot be resolved.
    """
    results: dict[str, Path] = {}

    for package in packages:
        if package.type != package_type:
            continue

        namespace = primary_namespace(package)
        results[namespace] = Path(vendor_dir) / package.pretty_name
        logger.debug("Installed plugin %s -> %s", namespace, results[namespace])

    if packages_dir is not None and Path(packages_dir).is_dir():
        for namespace, path in _local_packages(Path(packages_dir), package_type):
            if namespace in results:
                logger.debug("Local package %s replaces %s", path, results[namespace])
            results[namespace] = path

    return dict(sorted(results.items()))


def regenerate(
    packages: Iterable[PackageDescriptor],
    packages_dir: Path | None,
    vendor_dir: Path,
    package_type: str = PLUGIN_PACKAGE_TYPE,
    map_file: str = MAP_FILE,
) -> Path:
    """Rebuild the package map from scratch.

    Returns:
        Path of the written file.
    """
    plugins = determine_plugins(packages, packages_dir, vendor_dir, package_type)

    config_file = get_config_file(vendor_dir, map_file)
    write_config_file(config_file, plugins)
    return config_file
