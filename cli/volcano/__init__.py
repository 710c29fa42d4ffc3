"""Volcano installer CLI.

Command-line hooks a Composer project wires into its ``scripts`` section.
"""

__version__ = "1.0.0"

from cli.volcano.cli import app, main

__all__ = ["__version__", "app", "main"]
