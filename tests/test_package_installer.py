"""Installer hooks and the usage advisory."""

from __future__ import annotations

import io

import pytest
from rich.console import Console

from installer.config import Config
from installer.manifest import PackageDescriptor
from installer.package_installer import (
    AutoloadDumpEvent,
    ConsoleIO,
    InstallerSession,
    PackageInstaller,
)
from installer.package_map import MapFileError, read_package_map
from tests._fixtures.project_builder import ProjectBuilder, plugin_manifest


class RecordingIO:
    """InstallerIO that keeps every message."""

    def __init__(self, verbose: bool = False) -> None:
        self.messages: list[tuple[str, str | None]] = []
        self.verbose = verbose

    def write(self, messages, style=None) -> None:
        if isinstance(messages, str):
            messages = [messages]
        self.messages.extend((message, style) for message in messages)

    def is_verbose(self) -> bool:
        return self.verbose

    @property
    def text(self) -> str:
        return "\n".join(message for message, _ in self.messages)


def _installer(project_builder: ProjectBuilder, config: Config, io: RecordingIO | None = None) -> PackageInstaller:
    return PackageInstaller(io or RecordingIO(), project_builder.load(), InstallerSession(), config)


def _plugin(name: str, namespace: str) -> PackageDescriptor:
    return PackageDescriptor.from_dict(plugin_manifest(name, {namespace: "src/"}))


def test_warns_application_without_hook(project_builder: ProjectBuilder, config: Config) -> None:
    project_builder.composer_json(type="project", scripts={"post-autoload-dump": ["@php artisan"]})
    io = RecordingIO()

    installer = _installer(project_builder, config, io)

    assert installer.usage_warned is True
    assert "Action required!" in io.text
    assert "volcano-installer dump" in io.text


def test_quiet_when_hook_registered(project_builder: ProjectBuilder, config: Config) -> None:
    project_builder.composer_json(type="project", scripts={"post-autoload-dump": "volcano-installer dump"})
    io = RecordingIO()

    installer = _installer(project_builder, config, io)

    assert installer.usage_warned is False
    assert io.messages == []


def test_quiet_for_libraries(project_builder: ProjectBuilder, config: Config) -> None:
    project_builder.composer_json(type="volcano-package")
    io = RecordingIO()

    assert _installer(project_builder, config, io).usage_warned is False
    assert io.messages == []


def test_usage_checked_once_per_session(project_builder: ProjectBuilder, config: Config) -> None:
    project_builder.composer_json(type="project")
    project = project_builder.load()
    session = InstallerSession()
    io = RecordingIO()

    first = PackageInstaller(io, project, session, config)
    second = PackageInstaller(io, project, session, config)

    assert session.usage_checked is True
    assert first.usage_warned is True
    assert second.usage_warned is False
    assert sum(1 for message, _ in io.messages if "Action required!" in message) == 1


def test_separate_sessions_check_again(project_builder: ProjectBuilder, config: Config) -> None:
    project_builder.composer_json(type="project")
    project = project_builder.load()

    assert PackageInstaller(RecordingIO(), project, InstallerSession(), config).usage_warned
    assert PackageInstaller(RecordingIO(), project, InstallerSession(), config).usage_warned


def test_warn_user_frames_message(project_builder: ProjectBuilder, config: Config) -> None:
    io = RecordingIO()
    installer = _installer(project_builder, config, io)

    framed = installer.warn_user("Title", "word " * 39)

    assert io.messages[:2] == [("", None), ("", None)]
    assert io.messages[-2:] == [("", None), ("", None)]
    assert all(len(line) == 80 for line in framed)
    assert all(line.startswith("     ") for line in framed)
    assert framed[1].strip() == "Title"
    body = [line.strip() for line in framed[3:-1]]
    assert len(body) == 3
    assert all(len(line) <= 68 for line in body)


def test_console_io_writes_lines() -> None:
    buffer = io.StringIO()
    console_io = ConsoleIO(Console(file=buffer, width=120, color_system=None), verbose=True)

    console_io.write(["first [not markup]", "second"])

    assert buffer.getvalue() == "first [not markup]\nsecond\n"
    assert console_io.is_verbose()


def test_supports_only_plugin_type(project_builder: ProjectBuilder, config: Config) -> None:
    installer = _installer(project_builder, config)

    assert installer.supports("volcano-package")
    assert not installer.supports("library")


def test_install_update_uninstall(project_builder: ProjectBuilder, config: Config) -> None:
    installer = _installer(project_builder, config)
    root = project_builder.root.resolve().as_posix()

    installer.install(_plugin("acme/plugin", "Acme\\Plugin\\"))
    installer.install(_plugin("acme/blog", "Blog\\"))
    assert read_package_map(installer.config_file) == {
        "Acme/Plugin": f"{root}/vendor/acme/plugin/",
        "Blog": f"{root}/vendor/acme/blog/",
    }

    installer.update(_plugin("acme/blog", "Blog\\"), _plugin("acme/blog", "News\\"))
    assert list(read_package_map(installer.config_file)) == ["Acme/Plugin", "News"]

    installer.uninstall(_plugin("acme/plugin", "Acme\\Plugin\\"))
    assert read_package_map(installer.config_file) == {"News": f"{root}/vendor/acme/blog/"}


def test_update_config_reports_verbose(project_builder: ProjectBuilder, config: Config) -> None:
    io = RecordingIO(verbose=True)
    installer = _installer(project_builder, config, io)

    installer.update_config("Blog", project_builder.root / "packages" / "Blog")
    installer.update_config("Blog", None)

    assert "Created" in io.messages[0][0]
    assert io.messages[1][0].endswith("exists.")


def test_update_config_invalid_map(project_builder: ProjectBuilder, config: Config) -> None:
    io = RecordingIO()
    installer = _installer(project_builder, config, io)
    installer.config_file.parent.mkdir(parents=True)
    installer.config_file.write_text("<?php return [];", encoding="utf-8")

    with pytest.raises(MapFileError):
        installer.install(_plugin("acme/plugin", "Acme\\Plugin\\"))

    assert installer.config_file.read_text(encoding="utf-8") == "<?php return [];"
    assert "Packages path configuration not updated" in io.text


def test_post_autoload_dump(project_builder: ProjectBuilder, config: Config) -> None:
    project_builder.composer_json(type="project", scripts={"post-autoload-dump": ["volcano-installer dump"]})
    project_builder.installed(
        plugin_manifest("acme/plugin", {"Acme\\Plugin\\": "src/"}),
        {"name": "psr/log", "type": "library"},
    )
    project_builder.local_package("Blog", plugin_manifest("app/blog", {"Blog\\": "src/"}))
    io = RecordingIO(verbose=True)

    config_file = PackageInstaller.post_autoload_dump(AutoloadDumpEvent(project_builder.load(), io), config)

    assert config_file == project_builder.map_file.resolve()
    contents = config_file.read_text(encoding="utf-8")
    assert "'Acme/Plugin' => $baseDir . '/vendor/acme/plugin/'," in contents
    assert "'Blog' => $baseDir . '/packages/Blog/'," in contents
    assert io.messages == [(f"Generated {config_file}", None)]


def test_post_autoload_dump_replaces_incremental_state(project_builder: ProjectBuilder, config: Config) -> None:
    project_builder.installed(plugin_manifest("acme/plugin", {"Acme\\Plugin\\": "src/"}))
    installer = _installer(project_builder, config)
    installer.install(_plugin("acme/plugin", "Acme\\Plugin\\"))
    installer.install(_plugin("acme/gone", "Gone\\"))

    config_file = PackageInstaller.post_autoload_dump(AutoloadDumpEvent(project_builder.load(), RecordingIO()), config)

    assert list(read_package_map(config_file)) == ["Acme/Plugin"]


def test_post_autoload_dump_honours_config(project_builder: ProjectBuilder) -> None:
    config = Config.from_dict(
        {"installer": {"package_type": "custom-plugin", "map_file": "plugins.php", "packages_dir": "modules"}}
    )
    module = project_builder.root / "modules" / "Shop"
    module.mkdir(parents=True)
    (module / "composer.json").write_text(
        '{"type": "custom-plugin", "autoload": {"psr-4": {"Shop\\\\": "src/"}}}', encoding="utf-8"
    )

    config_file = PackageInstaller.post_autoload_dump(AutoloadDumpEvent(project_builder.load(), RecordingIO()), config)

    assert config_file.name == "plugins.php"
    assert list(read_package_map(config_file)) == ["Shop"]
