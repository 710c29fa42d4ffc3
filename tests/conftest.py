from __future__ import annotations

from pathlib import Path

import pytest

from installer.config import Config
from tests._fixtures.project_builder import ProjectBuilder


@pytest.fixture
def project_builder(tmp_path: Path) -> ProjectBuilder:
    """Provide a Composer project rooted at the pytest tmp_path."""
    return ProjectBuilder(tmp_path)


@pytest.fixture
def config() -> Config:
    """Default configuration, independent of any volcano.toml on disk."""
    return Config()


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "COMPOSER_VENDOR_DIR",
        "VOLCANO_PACKAGE_TYPE",
        "VOLCANO_PACKAGES_DIR",
        "VOLCANO_MAP_FILE",
        "VOLCANO_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)
