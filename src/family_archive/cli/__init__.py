"""
CLI package for family_archive.

Provides the Typer application entrypoint and shared CLI utilities.
"""

from family_archive.cli.app import app, main

__all__ = [
    "app",
    "main",
]
