from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from family_archive.loader import build_tree, tokenize_file
from family_archive.registry.build_registry import build_graph

console = Console()


def stats_command(
    gedcom: Path = typer.Argument(..., exists=True, readable=True),
):
    """
    Show summary statistics for a GEDCOM file.
    """
    tree = build_tree(tokenize_file(gedcom))
    graph = build_graph(tree)

    events = sum(len(i.events) for i in graph.individuals.values())
    events += sum(len(f.events) for f in graph.families.values())
    unlinked = sum(1 for ptr in graph.individuals if ptr not in graph.links)

    table = Table(title="GEDCOM Statistics")
    table.add_column("Entity", style="bold")
    table.add_column("Count", justify="right")

    table.add_row("Records", str(len(tree.records)))
    table.add_row("Individuals", str(len(graph.individuals)))
    table.add_row("Families", str(len(graph.families)))
    table.add_row("Events", str(events))
    table.add_row("Unlinked individuals", str(unlinked))

    console.print(table)
