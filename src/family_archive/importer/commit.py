from __future__ import annotations

from dataclasses import replace
from typing import Dict, List

from family_archive.cache.reconcile import ReconciliationCache
from family_archive.importer.engine import ImportResult
from family_archive.logging import get_logger
from family_archive.models import EntityKind, Person, Tree

log = get_logger(__name__)


def _merge_links(existing: Person, imported: Person) -> Person:
    """Existing person with the imported relationships added; other fields kept."""
    parents = existing.parent_ids | imported.parent_ids
    children = existing.child_ids | imported.child_ids
    spouses = existing.spouse_ids | imported.spouse_ids
    if (parents, children, spouses) == (existing.parent_ids, existing.child_ids, existing.spouse_ids):
        return existing
    return replace(existing, parent_ids=parents, child_ids=children, spouse_ids=spouses)


def commit_import(cache: ReconciliationCache, result: ImportResult, home_person_id: str) -> Tree:
    """
    Second step of an import: anchor the tree and merge it into the cache.

    People whose id is already cached (an earlier import of the same file)
    keep their local fields; only the relationships found by this import
    are added to them so links to the new people stay symmetric. The tree
    goes to the front of the tree list, replacing an earlier copy with the
    same id. Both collections are pushed to the store by the cache.
    """
    tree = result.choose_home(home_person_id)
    imported: Dict[str, Person] = {p.id: p for p in result.people}

    def merge_people(current: List[Person]) -> List[Person]:
        existing = {p.id for p in current}
        fresh = [p for p in result.people if p.id not in existing]
        log.info("Committing import: %d new, %d already present", len(fresh), len(result.people) - len(fresh))
        merged = [_merge_links(p, imported[p.id]) if p.id in imported else p for p in current]
        return merged + fresh

    cache.mutate(EntityKind.PERSON, merge_people)
    cache.mutate(EntityKind.TREE, lambda trees: [tree] + [t for t in trees if t.id != tree.id])
    return tree
