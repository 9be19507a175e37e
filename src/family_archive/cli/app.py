from __future__ import annotations

import typer
from rich.console import Console

from family_archive.cli.commands.import_cmd import import_command
from family_archive.cli.commands.push import push_command
from family_archive.cli.commands.stats import stats_command

app = typer.Typer(
    name="family-archive",
    help="Import GEDCOM files into a family archive and sync them to the store",
    add_completion=False,
)

console = Console()

app.command("import")(import_command)
app.command("stats")(stats_command)
app.command("push")(push_command)


def main():
    app()


if __name__ == "__main__":
    main()
