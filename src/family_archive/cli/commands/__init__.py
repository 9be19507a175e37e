"""
CLI command modules for family_archive.

Each command module defines a single Typer-compatible command function.
"""

from family_archive.cli.commands.import_cmd import import_command
from family_archive.cli.commands.push import push_command
from family_archive.cli.commands.stats import stats_command

__all__ = [
    "import_command",
    "push_command",
    "stats_command",
]
