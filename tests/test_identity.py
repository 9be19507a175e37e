# tests/test_identity.py

from __future__ import annotations

import uuid

import pytest

from family_archive.identity import (
    new_id,
    normalize_pointer,
    uuid_for_event,
    uuid_for_memory,
    uuid_for_person,
    uuid_for_tree,
)


def test_normalize_pointer() -> None:
    assert normalize_pointer(" i1 ") == "@I1@"
    assert normalize_pointer("@F2@") == "@F2@"
    assert normalize_pointer("@@") is None
    assert normalize_pointer(None) is None


def test_person_ids_are_stable_and_owner_scoped() -> None:
    a = uuid_for_person("owner", "@I1@", "tree-1")
    assert a == uuid_for_person("owner", " @I1@ ", "tree-1")
    assert a != uuid_for_person("other", "@I1@", "tree-1")
    assert str(uuid.UUID(a)) == a

    with pytest.raises(ValueError):
        uuid_for_person("owner", "  ")
    with pytest.raises(ValueError):
        uuid_for_person("owner", "@@")


def test_person_ids_depend_on_scope_and_pointer_case() -> None:
    a = uuid_for_person("owner", "@I1@", "tree-1")
    assert a != uuid_for_person("owner", "@I1@", "tree-2")
    assert a != uuid_for_person("owner", "@i1@", "tree-1")


def test_tree_ids_follow_file_content() -> None:
    assert uuid_for_tree("o", "0 HEAD\n") == uuid_for_tree("o", "0 HEAD\n")
    assert uuid_for_tree("o", "0 HEAD\n") != uuid_for_tree("o", "0 TRLR\n")


def test_event_and_memory_ids_include_position() -> None:
    assert uuid_for_event("p", "BIRT", "1900", "", 0) != uuid_for_event("p", "BIRT", "1900", "", 1)
    assert uuid_for_event("p", "birt", " 1900 ") == uuid_for_event("p", "BIRT", "1900")
    assert uuid_for_memory("p", "note", 0) != uuid_for_memory("p", "note", 1)


def test_new_id_is_random_uuid4() -> None:
    a, b = new_id(), new_id()
    assert a != b
    assert uuid.UUID(a).version == 4
