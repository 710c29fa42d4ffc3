"""Configuration management for the Volcano installer.

Loads configuration from:
1. volcano.toml (defaults)
2. Environment variables (overrides)
"""

import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

from dotenv import load_dotenv

from .manifest import PLUGIN_PACKAGE_TYPE
from .package_map import MAP_FILE

CONFIG_FILE = "volcano.toml"

DEFAULT_HOOK_COMMAND = "volcano-installer dump"


@dataclass
class InstallerConfig:
    """Package discovery and map generation settings."""

    package_type: str = PLUGIN_PACKAGE_TYPE
    packages_dir: str = "packages"  # Local packages, relative to the vendor directory's parent
    map_file: str = MAP_FILE  # Generated inside the vendor directory

    # Command the project must register under post-autoload-dump
    hook_command: str = DEFAULT_HOOK_COMMAND


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "WARNING"


@dataclass
class Config:
    """Main configuration container."""

    installer: InstallerConfig = field(default_factory=InstallerConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Config":
        """Create Config from dictionary."""
        installer_data = data.get("installer", {})
        logging_data = data.get("logging", {})

        return cls(
            installer=InstallerConfig(**installer_data),
            logging=LoggingConfig(**logging_data),
        )

    def packages_dir_for(self, root_dir: Path) -> Path:
        """Local packages directory below a project root."""
        path = Path(self.installer.packages_dir).expanduser()
        return path if path.is_absolute() else root_dir / path


def find_config_file(start: Path | None = None) -> Path | None:
    """Find volcano.toml in the start directory or its parents.

    Returns:
        Path to volcano.toml or None if not found.
    """
    current = (start or Path.cwd()).resolve()

    for directory in [current, *current.parents]:
        config_path = directory / CONFIG_FILE
        if config_path.exists():
            return config_path

    return None


def load_config(
    config_path: Path | str | None = None,
    search_from: Path | str | None = None,
) -> Config:
    """Load configuration from file and environment.

    Args:
        config_path: Optional explicit path to volcano.toml
        search_from: Where to start looking for volcano.toml when no path is
            given (default: current directory)

    Returns:
        Config object with merged settings.
    """
    load_dotenv()

    config_data: dict[str, Any] = {}

    if config_path is None:
        config_path = find_config_file(Path(search_from) if search_from is not None else None)

    if config_path is not None:
        path = Path(config_path)
        if path.exists():
            with open(path, "rb") as f:
                config_data = tomllib.load(f)

    env_overrides = {
        "installer": {
            "package_type": os.getenv("VOLCANO_PACKAGE_TYPE"),
            "packages_dir": os.getenv("VOLCANO_PACKAGES_DIR"),
            "map_file": os.getenv("VOLCANO_MAP_FILE"),
        },
        "logging": {
            "level": os.getenv("VOLCANO_LOG_LEVEL"),
        },
    }

    # Merge env overrides (only non-None values)
    for section, values in env_overrides.items():
        if section not in config_data:
            config_data[section] = {}
        for key, value in values.items():
            if value is not None:
                config_data[section][key] = value

    return Config.from_dict(config_data)


# Global config instance (lazy loaded)
_config: Config | None = None


def get_config() -> Config:
    """Get the global configuration instance.

    Returns:
        Config object (loaded once, cached).
    """
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reload_config(
    config_path: Path | str | None = None,
    search_from: Path | str | None = None,
) -> Config:
    """Force reload of configuration."""
    global _config
    _config = load_config(config_path, search_from)
    return _config
