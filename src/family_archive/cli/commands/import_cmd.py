from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from family_archive.cli.utils import load_import, result_to_dict, write_json
from family_archive.core.exceptions import ParseError

console = Console(stderr=True)


def import_command(
    gedcom: Path = typer.Argument(..., exists=True, readable=True),
    owner: str = typer.Option(..., "--owner", help="Account id that will own the imported rows"),
    generations: Optional[int] = typer.Option(
        None,
        "--generations",
        "-g",
        min=0,
        help="Parent/child hops to follow from the start (default from config)",
    ),
    anchor: Optional[str] = typer.Option(
        None,
        "--anchor",
        help="Pointer of the starting individual, e.g. @I7@",
    ),
    all_roots: bool = typer.Option(
        False,
        "--all",
        help="Start from every individual in the file",
    ),
    out: Optional[Path] = typer.Option(
        None,
        "--out",
        "-o",
        help="Write output to file instead of stdout",
    ),
    pretty: bool = typer.Option(
        False,
        "--pretty",
        help="Pretty-print JSON",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable rich logging",
    ),
):
    """
    Import a GEDCOM file and print the resulting people and tree as JSON.
    """
    try:
        result = load_import(
            gedcom,
            owner,
            generations=generations,
            anchor=anchor,
            all_roots=all_roots,
            verbose=verbose,
        )
    except ParseError as exc:
        console.print(f"[red]Import failed:[/red] {exc}")
        raise typer.Exit(code=1)

    write_json(result_to_dict(result), out=out, pretty=pretty)

    if verbose:
        console.log("Import complete")
