from __future__ import annotations

import json
import time
from pathlib import Path
from typing import Any, Dict, Optional

from rich.console import Console

from family_archive.importer import ImportResult, import_gedcom
from family_archive.loader import read_gedcom
from family_archive.store.rows import person_to_row, tree_to_row

console = Console()


def load_import(
    path: Path,
    owner: str,
    *,
    generations: Optional[int] = None,
    anchor: Optional[str] = None,
    all_roots: bool = False,
    verbose: bool = False,
) -> ImportResult:
    """
    Read a GEDCOM file and run the import engine over it.
    """
    t0 = time.perf_counter()

    text = read_gedcom(path)
    result = import_gedcom(
        text,
        owner,
        generations,
        anchor=anchor,
        all_roots=all_roots,
    )

    elapsed = time.perf_counter() - t0

    if verbose:
        console.log(f"Imported {len(result.people)} people in {elapsed:.2f}s")

    return result


def result_to_dict(result: ImportResult) -> Dict[str, Any]:
    """Import result in store row form."""
    return {
        "tree": tree_to_row(result.tree),
        "people": [
            {**person_to_row(p), "generation": result.generations.get(p.id)}
            for p in result.people
        ],
    }


def write_json(
    data: Dict[str, Any],
    *,
    out: Path | None,
    pretty: bool,
):
    """
    Write JSON to stdout or file.
    """
    if pretty:
        payload = json.dumps(data, indent=2, ensure_ascii=False)
    else:
        payload = json.dumps(data, separators=(",", ":"), ensure_ascii=False)

    if out:
        out.write_text(payload, encoding="utf-8")
    else:
        print(payload)
