"""Package descriptor schema.

Describes the subset of a Composer package (``composer.json`` or an
``installed.json`` entry) the installer needs to register plugin packages.
"""

import json
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

PLUGIN_PACKAGE_TYPE = "volcano-package"
MANIFEST_FILE = "composer.json"


class ManifestError(Exception):
    """Raised when a manifest cannot be read or validated."""

    pass


class PackageDescriptor(BaseModel):
    """A package as seen by the installer."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str = Field(..., description="Package name (vendor/package)")
    pretty_name: str = Field("", alias="pretty-name", description="Name as declared")
    type: str = Field("library", description="Declared package type")
    version: str = Field("", description="Installed version")
    autoload: dict[str, Any] = Field(
        default_factory=dict,
        description="Autoload declaration: loader type -> namespace -> path(s)",
    )
    install_path: Path | None = Field(None, description="Where the package lives on disk")

    @field_validator("name", mode="before")
    @classmethod
    def validate_name(cls, v: Any) -> str:
        """Require a non-empty string name."""
        if not isinstance(v, str) or not v.strip():
            raise ValueError("name must be a non-empty string")
        return v.strip()

    @field_validator("autoload", mode="before")
    @classmethod
    def validate_autoload(cls, v: Any) -> dict[str, Any]:
        """Composer writes an empty autoload section as ``[]``."""
        if v is None or v == []:
            return {}
        return v

    @model_validator(mode="before")
    @classmethod
    def default_pretty_name(cls, data: Any) -> Any:
        """Fall back to the package name when no pretty name is given."""
        if isinstance(data, dict) and not (data.get("pretty_name") or data.get("pretty-name")):
            data = {**data, "pretty_name": data.get("name")}
        return data

    @property
    def is_plugin(self) -> bool:
        """Whether the package declares the plugin marker type."""
        return self.type == PLUGIN_PACKAGE_TYPE

    @classmethod
    def from_dict(
        cls, data: dict[str, Any], install_path: Path | None = None
    ) -> "PackageDescriptor":
        """Build a descriptor from a manifest mapping.

        Raises:
            ManifestError: If required fields are missing or invalid.
        """
        if not isinstance(data, dict):
            raise ManifestError("Manifest must be a JSON object")

        try:
            return cls(
                name=data.get("name", ""),
                pretty_name=data.get("pretty-name") or data.get("name", ""),
                type=data.get("type") or "library",
                version=str(data.get("version", "")),
                autoload=data.get("autoload"),
                install_path=install_path,
            )
        except ValidationError as e:
            raise ManifestError(f"Invalid manifest data: {e}")

    @classmethod
    def from_json(cls, manifest_path: Path) -> "PackageDescriptor":
        """Load a descriptor from a ``composer.json`` file.

        The package directory becomes the install path.
        """
        return cls.from_dict(read_manifest(manifest_path), install_path=manifest_path.parent)


def read_manifest(manifest_path: Path) -> dict[str, Any]:
    """Read a JSON manifest into a mapping.

    Raises:
        ManifestError: If the file is missing, unreadable or not a JSON object.
    """
    try:
        with open(manifest_path, encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        raise ManifestError(f"Manifest not found: {manifest_path}")
    except OSError as e:
        raise ManifestError(f"Cannot read manifest {manifest_path}: {e}")
    except json.JSONDecodeError as e:
        raise ManifestError(f"Invalid JSON in {manifest_path}: {e}")

    if not isinstance(data, dict):
        raise ManifestError(f"Manifest must be a JSON object: {manifest_path}")

    return data
