"""
Symmetric relationship edits over a list of Persons.

Every function is pure: it returns a new list with fresh copies of the
touched Persons and leaves untouched ones shared.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Dict, Iterable, List, Tuple

from family_archive.core.exceptions import ValidationError
from family_archive.models import Person, Tree


def _index(people: Iterable[Person]) -> Dict[str, Person]:
    return {p.id: p for p in people}


def _require(index: Dict[str, Person], *ids: str) -> None:
    missing = [i for i in ids if i not in index]
    if missing:
        raise ValidationError(f"Unknown person id(s): {', '.join(missing)}")


def _copy(person: Person) -> Person:
    return replace(
        person,
        parent_ids=set(person.parent_ids),
        child_ids=set(person.child_ids),
        spouse_ids=set(person.spouse_ids),
    )


def _apply(people: List[Person], changed: Dict[str, Person]) -> List[Person]:
    return [changed.get(p.id, p) for p in people]


def link_parent_child(people: List[Person], parent_id: str, child_id: str) -> List[Person]:
    index = _index(people)
    _require(index, parent_id, child_id)
    if parent_id == child_id:
        raise ValidationError("A person cannot be their own parent")

    parent, child = _copy(index[parent_id]), _copy(index[child_id])
    parent.child_ids.add(child_id)
    child.parent_ids.add(parent_id)
    return _apply(people, {parent_id: parent, child_id: child})


def link_spouses(people: List[Person], a_id: str, b_id: str) -> List[Person]:
    index = _index(people)
    _require(index, a_id, b_id)
    if a_id == b_id:
        raise ValidationError("A person cannot be their own spouse")

    a, b = _copy(index[a_id]), _copy(index[b_id])
    a.spouse_ids.add(b_id)
    b.spouse_ids.add(a_id)
    return _apply(people, {a_id: a, b_id: b})


def unlink(people: List[Person], a_id: str, b_id: str) -> List[Person]:
    """Drop every relationship between two persons, both directions."""
    index = _index(people)
    _require(index, a_id, b_id)

    a, b = _copy(index[a_id]), _copy(index[b_id])
    for left, right in ((a, b_id), (b, a_id)):
        left.parent_ids.discard(right)
        left.child_ids.discard(right)
        left.spouse_ids.discard(right)
    return _apply(people, {a_id: a, b_id: b})


def remove_person(people: List[Person], person_id: str) -> List[Person]:
    """Remove a person and every reference to them from the others."""
    changed: Dict[str, Person] = {}
    for p in people:
        if p.id == person_id:
            continue
        if person_id in p.parent_ids or person_id in p.child_ids or person_id in p.spouse_ids:
            c = _copy(p)
            c.parent_ids.discard(person_id)
            c.child_ids.discard(person_id)
            c.spouse_ids.discard(person_id)
            changed[p.id] = c
    return [changed.get(p.id, p) for p in people if p.id != person_id]


def remove_member(trees: List[Tree], person_id: str) -> List[Tree]:
    """Drop a person from every tree's members, clearing home if needed."""
    out: List[Tree] = []
    for t in trees:
        if person_id not in t.member_ids:
            out.append(t)
            continue
        out.append(
            replace(
                t,
                member_ids=[m for m in t.member_ids if m != person_id],
                home_person_id=None if t.home_person_id == person_id else t.home_person_id,
            )
        )
    return out


def check_symmetry(people: Iterable[Person]) -> List[Tuple[str, str, str]]:
    """
    Return (person_id, relation, other_id) for every one-sided link.
    Links to ids outside ``people`` are not reported.
    """
    index = _index(people)
    problems: List[Tuple[str, str, str]] = []
    for p in index.values():
        for cid in sorted(p.child_ids):
            other = index.get(cid)
            if other is not None and p.id not in other.parent_ids:
                problems.append((p.id, "child", cid))
        for pid in sorted(p.parent_ids):
            other = index.get(pid)
            if other is not None and p.id not in other.child_ids:
                problems.append((p.id, "parent", pid))
        for sid in sorted(p.spouse_ids):
            other = index.get(sid)
            if other is not None and p.id not in other.spouse_ids:
                problems.append((p.id, "spouse", sid))
    return problems
