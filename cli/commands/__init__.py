"""CLI command modules for the Volcano installer."""

from cli.commands.package_map import map_app

__all__ = ["map_app"]
