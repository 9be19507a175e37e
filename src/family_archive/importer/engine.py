"""
GEDCOM import engine.

    text -> tokens -> GEDCOMTree -> RecordGraph -> bounded traversal
         -> ImportResult(people=[Person, ...], tree=Tree)

The traversal is a 0-1 breadth-first search from the starting individual:
crossing a parent/child edge costs one generation, a spouse edge costs none.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from typing import Deque, Dict, List, Optional, Tuple

from family_archive.config import get_config
from family_archive.core.exceptions import ParseError
from family_archive.events.event import extract_year
from family_archive.identity.uuid_factory import (
    normalize_pointer,
    uuid_for_event,
    uuid_for_memory,
    uuid_for_person,
    uuid_for_tree,
)
from family_archive.loader import build_tree, tokenize_text
from family_archive.logging import get_logger
from family_archive.models import Gender, LifeEvent, Memory, Person, Tree
from family_archive.registry.build_registry import build_graph
from family_archive.registry.entities import IndividualRecord, RecordGraph

log = get_logger(__name__)

DEFAULT_TREE_NAME = "Imported Archive"
UNKNOWN_NAME = "Unknown"


@dataclass
class ImportResult:
    """People and tree produced by one import run; nothing is saved yet."""

    people: List[Person]
    tree: Tree
    generations: Dict[str, int] = field(default_factory=dict)

    def person(self, person_id: str) -> Optional[Person]:
        for p in self.people:
            if p.id == person_id:
                return p
        return None

    def choose_home(self, person_id: str) -> Tree:
        """
        Anchor the tree on one of the imported people.

        Returns a new Tree named after the home person; raises
        ValidationError if the person is not a member.
        """
        person = self.person(person_id)
        name = f"The {person.name} Archive" if person is not None else None
        return self.tree.with_home(person_id, name=name)


# ----------------------------------------------------------------------
# Traversal
# ----------------------------------------------------------------------

def _select_seeds(graph: RecordGraph, anchor: Optional[str], all_roots: bool) -> List[str]:
    if all_roots:
        return list(graph.individuals)
    if anchor:
        bare = anchor.strip().strip("@")
        candidates = (anchor, anchor.strip(), f"@{bare}@", normalize_pointer(anchor))
        ptr = next((c for c in candidates if c in graph.individuals), None)
        if ptr is None:
            raise ParseError(f"Anchor individual {anchor!r} not found")
        return [ptr]
    return [next(iter(graph.individuals))]


def _walk(graph: RecordGraph, seeds: List[str], max_generations: int) -> Dict[str, int]:
    """
    Return pointer -> generation distance for every reachable individual
    within ``max_generations``, in visit order.
    """
    distance: Dict[str, int] = {}
    queue: Deque[Tuple[str, int]] = deque((s, 0) for s in seeds)

    while queue:
        ptr, gen = queue.popleft()
        if ptr in distance:
            continue
        distance[ptr] = gen

        # Spouses share the generation: front of the queue keeps it monotone.
        for spouse in reversed(graph.spouses_of(ptr)):
            if spouse not in distance:
                queue.appendleft((spouse, gen))

        if gen >= max_generations:
            continue
        for kin in graph.parents_of(ptr) + graph.children_of(ptr):
            if kin not in distance:
                queue.append((kin, gen + 1))

    return distance


# ----------------------------------------------------------------------
# Record -> Person
# ----------------------------------------------------------------------

def _timeline(graph: RecordGraph, ind: IndividualRecord, person_id: str) -> List[LifeEvent]:
    dated = [(ev.lineno, ev, None) for ev in ind.events]

    for fam_ptr in graph.families_of(ind.pointer).as_spouse:
        fam = graph.get_family(fam_ptr)
        if fam is None:
            continue
        partner = next((s for s in fam.spouses if s != ind.pointer), None)
        partner_rec = graph.get_individual(partner) if partner else None
        spouse_name = (partner_rec.name or None) if partner_rec is not None else None
        dated.extend((ev.lineno, ev, spouse_name) for ev in fam.events)

    dated.sort(key=lambda item: item[0])

    timeline: List[LifeEvent] = []
    for seq, (_, ev, spouse_name) in enumerate(dated):
        timeline.append(
            LifeEvent(
                id=uuid_for_event(person_id, ev.tag, ev.date or "", ev.place or "", seq),
                type=ev.label,
                date=ev.date or "",
                place=ev.place or "",
                spouse_name=spouse_name,
            )
        )
    return timeline


def _to_person(graph: RecordGraph, ind: IndividualRecord, person_id: str, owner_id: str) -> Person:
    birth = ind.first_event("BIRT")
    death = ind.first_event("DEAT")

    return Person(
        id=person_id,
        owner_id=owner_id,
        name=ind.name or UNKNOWN_NAME,
        gender=Gender.from_gedcom(ind.sex),
        birth_year=extract_year(birth.date) if birth else "",
        death_year=extract_year(death.date) if death else "",
        image_url=ind.image_file or "",
        is_memorial=death is not None,
        timeline=_timeline(graph, ind, person_id),
        memories=[
            Memory(id=uuid_for_memory(person_id, note, seq), content=note)
            for seq, note in enumerate(ind.notes)
        ],
        source_citations=set(ind.sources),
    )


def _link(graph: RecordGraph, people: Dict[str, Person], ids: Dict[str, str]) -> None:
    """Fill relationship sets from family linkage, both directions at once."""
    for ptr, person in people.items():
        for parent in graph.parents_of(ptr):
            if parent in people:
                person.parent_ids.add(ids[parent])
                people[parent].child_ids.add(person.id)
        for child in graph.children_of(ptr):
            if child in people:
                person.child_ids.add(ids[child])
                people[child].parent_ids.add(person.id)
        for spouse in graph.spouses_of(ptr):
            if spouse in people:
                person.spouse_ids.add(ids[spouse])
                people[spouse].spouse_ids.add(person.id)


# ----------------------------------------------------------------------
# Public API
# ----------------------------------------------------------------------

def import_gedcom(
    text: str,
    owner_id: str,
    max_generations: Optional[int] = None,
    *,
    anchor: Optional[str] = None,
    all_roots: bool = False,
) -> ImportResult:
    """
    Parse GEDCOM ``text`` into Persons and one Tree owned by ``owner_id``.

    Args:
        text: Whole GEDCOM file content.
        owner_id: Account that will own every created row.
        max_generations: Parent/child hops allowed from the start;
            defaults to ``importer.max_generations`` from config.
        anchor: Pointer of the starting individual (e.g. "@I7@"). The
            first individual in the file is used when omitted.
        all_roots: Start from every individual (imports the whole file).

    Raises:
        ParseError: the text holds no individual records, or ``anchor`` is
            not one of them.
        ValueError: ``max_generations`` is negative.
    """
    if max_generations is None:
        max_generations = get_config().max_generations
    if max_generations < 0:
        raise ValueError("max_generations must be >= 0")

    graph = build_graph(build_tree(tokenize_text(text or "")))
    if not graph.individuals:
        raise ParseError("GEDCOM input contains no individual records")

    seeds = _select_seeds(graph, anchor, all_roots)
    distance = _walk(graph, seeds, max_generations)

    tree_id = uuid_for_tree(owner_id, text)
    ids = {ptr: uuid_for_person(owner_id, ptr, tree_id) for ptr in distance}
    people: Dict[str, Person] = {
        ptr: _to_person(graph, graph.individuals[ptr], ids[ptr], owner_id)
        for ptr in distance
    }
    _link(graph, people, ids)

    tree = Tree(
        id=tree_id,
        owner_id=owner_id,
        name=DEFAULT_TREE_NAME,
        member_ids=[ids[ptr] for ptr in distance],
    )

    log.info(
        "Imported %d of %d individuals (max_generations=%d)",
        len(people), len(graph.individuals), max_generations,
    )
    return ImportResult(
        people=list(people.values()),
        tree=tree,
        generations={ids[ptr]: gen for ptr, gen in distance.items()},
    )
