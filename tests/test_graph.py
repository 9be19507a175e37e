# tests/test_graph.py

from __future__ import annotations

import pytest

from family_archive.core.exceptions import ValidationError
from family_archive.graph import (
    check_symmetry,
    link_parent_child,
    link_spouses,
    remove_member,
    remove_person,
    unlink,
)
from family_archive.models import Person, Tree


def _people(*ids: str):
    return [Person(id=i, owner_id="o", name=i.upper()) for i in ids]


def _get(people, pid):
    return next(p for p in people if p.id == pid)


def test_link_parent_child_is_symmetric_and_pure() -> None:
    before = _people("a", "b")
    after = link_parent_child(before, "a", "b")

    assert _get(after, "a").child_ids == {"b"}
    assert _get(after, "b").parent_ids == {"a"}
    assert check_symmetry(after) == []
    # Input list untouched.
    assert _get(before, "a").child_ids == set()


def test_link_spouses_and_unlink() -> None:
    people = link_spouses(_people("a", "b", "c"), "a", "b")
    assert _get(people, "b").spouse_ids == {"a"}

    people = link_parent_child(people, "a", "c")
    people = unlink(people, "a", "b")
    assert _get(people, "a").spouse_ids == set()
    assert _get(people, "b").spouse_ids == set()
    assert _get(people, "a").child_ids == {"c"}
    assert check_symmetry(people) == []


def test_untouched_people_are_shared() -> None:
    before = _people("a", "b", "c")
    after = link_spouses(before, "a", "b")
    assert after[2] is before[2]


def test_invalid_links_raise() -> None:
    people = _people("a")
    with pytest.raises(ValidationError):
        link_parent_child(people, "a", "a")
    with pytest.raises(ValidationError):
        link_spouses(people, "a", "a")
    with pytest.raises(ValidationError):
        link_parent_child(people, "a", "ghost")


def test_remove_person_strips_references() -> None:
    people = link_parent_child(_people("a", "b", "c"), "a", "b")
    people = link_spouses(people, "a", "c")

    after = remove_person(people, "a")

    assert [p.id for p in after] == ["b", "c"]
    assert _get(after, "b").parent_ids == set()
    assert _get(after, "c").spouse_ids == set()
    assert check_symmetry(after) == []


def test_remove_member_clears_home() -> None:
    trees = [
        Tree(id="t1", owner_id="o", name="One", home_person_id="a", member_ids=["a", "b"]),
        Tree(id="t2", owner_id="o", name="Two", member_ids=["b"]),
    ]

    after = remove_member(trees, "a")

    assert after[0].member_ids == ["b"]
    assert after[0].home_person_id is None
    assert after[1] is trees[1]
    assert trees[0].member_ids == ["a", "b"]


def test_check_symmetry_reports_one_sided_links() -> None:
    a, b = _people("a", "b")
    a.child_ids.add("b")
    a.spouse_ids.add("b")
    b.spouse_ids.add("a")
    a.parent_ids.add("outside")

    assert check_symmetry([a, b]) == [("a", "child", "b")]


def test_tree_with_home_requires_membership() -> None:
    tree = Tree(id="t", owner_id="o", name="T", member_ids=["a"])
    assert tree.with_home("a").home_person_id == "a"
    with pytest.raises(ValidationError):
        tree.with_home("b")
