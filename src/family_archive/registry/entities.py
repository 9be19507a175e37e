from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from family_archive.events.event import EventRecord


# -----------------------------
# Records
# -----------------------------

@dataclass(slots=True)
class IndividualRecord:
    """
    GEDCOM INDI record, reduced to what a browsable tree needs.

    ``families_as_spouse`` / ``families_as_child`` hold the FAMS / FAMC
    pointers declared on the individual itself; the graph index merges them
    with the FAM side.
    """
    pointer: str
    name: str = ""
    sex: Optional[str] = None
    events: List[EventRecord] = field(default_factory=list)
    notes: List[str] = field(default_factory=list)
    sources: List[str] = field(default_factory=list)
    image_file: Optional[str] = None
    families_as_spouse: List[str] = field(default_factory=list)
    families_as_child: List[str] = field(default_factory=list)
    lineno: int = 0

    def first_event(self, tag: str) -> Optional[EventRecord]:
        for ev in self.events:
            if ev.tag == tag:
                return ev
        return None


@dataclass(slots=True)
class FamilyRecord:
    """GEDCOM FAM record: spouse pair, children, family events."""
    pointer: str
    husband: Optional[str] = None
    wife: Optional[str] = None
    children: List[str] = field(default_factory=list)
    events: List[EventRecord] = field(default_factory=list)
    lineno: int = 0

    @property
    def spouses(self) -> List[str]:
        return [p for p in (self.husband, self.wife) if p]

    @property
    def marriage(self) -> Optional[EventRecord]:
        for ev in self.events:
            if ev.tag == "MARR":
                return ev
        return None


@dataclass(slots=True)
class FamilyLinks:
    """Families an individual belongs to, split by role."""
    as_child: List[str] = field(default_factory=list)
    as_spouse: List[str] = field(default_factory=list)


def _add_unique(items: List[str], value: str) -> None:
    if value not in items:
        items.append(value)


# -----------------------------
# Graph
# -----------------------------

@dataclass(slots=True)
class RecordGraph:
    """
    Individuals and families of one GEDCOM text, keyed by pointer, plus the
    individual -> family index used for traversal.

    Dict insertion order is file order.
    """
    individuals: Dict[str, IndividualRecord] = field(default_factory=dict)
    families: Dict[str, FamilyRecord] = field(default_factory=dict)
    links: Dict[str, FamilyLinks] = field(default_factory=dict)

    def register_individual(self, ind: IndividualRecord) -> None:
        self.individuals.setdefault(ind.pointer, ind)

    def register_family(self, fam: FamilyRecord) -> None:
        self.families.setdefault(fam.pointer, fam)

    def link_child(self, individual: str, family: str) -> None:
        _add_unique(self.links.setdefault(individual, FamilyLinks()).as_child, family)

    def link_spouse(self, individual: str, family: str) -> None:
        _add_unique(self.links.setdefault(individual, FamilyLinks()).as_spouse, family)

    def get_individual(self, pointer: str) -> Optional[IndividualRecord]:
        return self.individuals.get(pointer)

    def get_family(self, pointer: str) -> Optional[FamilyRecord]:
        return self.families.get(pointer)

    def families_of(self, pointer: str) -> FamilyLinks:
        return self.links.get(pointer) or FamilyLinks()

    # ------------------------------------------------------------------ #
    # Neighbour queries (only individuals present in the graph)
    # ------------------------------------------------------------------ #

    def _present(self, pointers: List[str], exclude: str) -> List[str]:
        out: List[str] = []
        for p in pointers:
            if p != exclude and p in self.individuals:
                _add_unique(out, p)
        return out

    def parents_of(self, pointer: str) -> List[str]:
        found: List[str] = []
        for fam_ptr in self.families_of(pointer).as_child:
            fam = self.families.get(fam_ptr)
            if fam is not None:
                found.extend(fam.spouses)
        return self._present(found, pointer)

    def children_of(self, pointer: str) -> List[str]:
        found: List[str] = []
        for fam_ptr in self.families_of(pointer).as_spouse:
            fam = self.families.get(fam_ptr)
            if fam is not None:
                found.extend(fam.children)
        return self._present(found, pointer)

    def spouses_of(self, pointer: str) -> List[str]:
        found: List[str] = []
        for fam_ptr in self.families_of(pointer).as_spouse:
            fam = self.families.get(fam_ptr)
            if fam is not None:
                found.extend(fam.spouses)
        return self._present(found, pointer)
