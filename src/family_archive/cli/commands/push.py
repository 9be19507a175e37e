from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from family_archive.cache.reconcile import ReconciliationCache
from family_archive.cli.utils import load_import
from family_archive.config import get_config
from family_archive.core.exceptions import ArchiveError, ParseError
from family_archive.importer.commit import commit_import
from family_archive.importer.engine import ImportResult
from family_archive.models import EntityKind
from family_archive.store import store_from_config
from family_archive.store.base import RemoteStore

console = Console()


async def push_import(
    store: RemoteStore,
    owner: str,
    result: ImportResult,
    home: Optional[str] = None,
) -> ReconciliationCache:
    """
    Load the owner's current state, commit ``result`` into it and wait for
    every push. The returned cache is closed; its ``errors`` list is intact.
    """
    cache = ReconciliationCache(store, owner)
    await cache.load()

    if home is None:
        home = result.people[0].id

    commit_import(cache, result, home)
    await cache.flush()
    cache.close()
    return cache


def push_command(
    gedcom: Path = typer.Argument(..., exists=True, readable=True),
    owner: str = typer.Option(..., "--owner", help="Account id that will own the imported rows"),
    home: Optional[str] = typer.Option(
        None,
        "--home",
        help="Person id to anchor the tree on (default: the starting individual)",
    ),
    generations: Optional[int] = typer.Option(None, "--generations", "-g", min=0),
    anchor: Optional[str] = typer.Option(None, "--anchor"),
    access_token: Optional[str] = typer.Option(
        None,
        "--token",
        envvar="FAMILY_ARCHIVE_TOKEN",
        help="Session token for the REST store",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
):
    """
    Import a GEDCOM file and push the new people and tree to the store.
    """
    try:
        result = load_import(gedcom, owner, generations=generations, anchor=anchor, verbose=verbose)
    except ParseError as exc:
        console.print(f"[red]Import failed:[/red] {exc}")
        raise typer.Exit(code=1)

    async def run() -> ReconciliationCache:
        store = store_from_config(get_config(), owner_id=owner, access_token=access_token)
        try:
            return await push_import(store, owner, result, home)
        finally:
            await store.close()

    try:
        cache = asyncio.run(run())
    except ArchiveError as exc:
        console.print(f"[red]Push failed:[/red] {exc}")
        raise typer.Exit(code=1)

    table = Table(title="Push Summary")
    table.add_column("Item", style="bold")
    table.add_column("Value", justify="right")
    table.add_row("People imported", str(len(result.people)))
    table.add_row("People cached", str(len(cache.get(EntityKind.PERSON))))
    table.add_row("Trees cached", str(len(cache.get(EntityKind.TREE))))
    table.add_row("Sync failures", str(len(cache.errors)))
    console.print(table)

    for failure in cache.errors:
        console.print(f"[red]{failure}[/red]")

    if cache.errors:
        raise typer.Exit(code=1)
