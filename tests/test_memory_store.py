# tests/test_memory_store.py

from __future__ import annotations

import asyncio

import pytest

from family_archive.core.exceptions import PartialTagError, StoreError
from family_archive.models import EntityKind, Person, Post, Tree
from family_archive.store import MemoryStore, store_from_config
from family_archive.config import ArchiveConfig


def _person(pid: str, name: str, owner: str = "o") -> Person:
    return Person(id=pid, owner_id=owner, name=name)


def test_create_and_list_orders_people_by_name() -> None:
    store = MemoryStore(session_owner="o")

    async def run():
        await store.create(EntityKind.PERSON, _person("1", "Zed"))
        await store.bulk_upsert(EntityKind.PERSON, [_person("2", "Amy"), _person("3", "Max")])
        return await store.list(EntityKind.PERSON, "o")

    people = asyncio.run(run())
    assert [p.name for p in people] == ["Amy", "Max", "Zed"]


def test_trees_list_newest_first() -> None:
    store = MemoryStore()

    async def run():
        await store.create(EntityKind.TREE, Tree(id="old", owner_id="o", name="Old", created_at="2024-01-01"))
        await store.create(EntityKind.TREE, Tree(id="new", owner_id="o", name="New", created_at="2024-06-01"))
        await store.create(EntityKind.TREE, Tree(id="other", owner_id="x", name="Other"))
        return await store.list(EntityKind.TREE, "o")

    assert [t.id for t in asyncio.run(run())] == ["new", "old"]


def test_create_duplicate_id_fails() -> None:
    store = MemoryStore()

    async def run():
        await store.create(EntityKind.PERSON, _person("1", "A"))
        await store.create(EntityKind.PERSON, _person("1", "A"))

    with pytest.raises(StoreError):
        asyncio.run(run())


def test_bulk_upsert_replaces_on_id() -> None:
    store = MemoryStore()

    async def run():
        await store.bulk_upsert(EntityKind.PERSON, [_person("1", "Before")])
        await store.bulk_upsert(EntityKind.PERSON, [_person("1", "After")])

    asyncio.run(run())
    assert store.rows[EntityKind.PERSON]["1"]["name"] == "After"
    assert len(store.rows[EntityKind.PERSON]) == 1


def test_row_level_security() -> None:
    store = MemoryStore(session_owner="o")

    async def foreign_create():
        await store.create(EntityKind.PERSON, _person("1", "A", owner="intruder"))

    with pytest.raises(StoreError):
        asyncio.run(foreign_create())
    assert store.rows[EntityKind.PERSON] == {}


def test_update_missing_row_is_a_noop() -> None:
    store = MemoryStore()
    asyncio.run(store.update(EntityKind.PERSON, "ghost", {"name": "X"}))
    assert store.rows[EntityKind.PERSON] == {}
    assert store.calls == [("update", EntityKind.PERSON, ["ghost"])]


def test_delete_person_cascades() -> None:
    store = MemoryStore()

    async def run():
        await store.create(EntityKind.PERSON, _person("p", "A"))
        await store.create(
            EntityKind.TREE, Tree(id="t", owner_id="o", name="T", home_person_id="p", member_ids=["p"])
        )
        await store.create(
            EntityKind.POST, Post(id="x", owner_id="o", author_label="Me", body="Hi", tagged_person_ids={"p"})
        )
        await store.tag_media("m1", ["p"], "o")
        await store.delete(EntityKind.PERSON, "p")

    asyncio.run(run())

    assert store.rows[EntityKind.TREE]["t"]["home_person_id"] is None
    assert store.post_tags == []
    assert store.media_tags == []


def test_post_tagging_is_best_effort() -> None:
    store = MemoryStore()

    async def run():
        return await store.create(
            EntityKind.POST,
            Post(id="x", owner_id="o", author_label="Me", body="Hi", tagged_person_ids={"nobody"}),
        )

    post = asyncio.run(run())
    assert post.tagged_person_ids == set()
    assert "x" in store.rows[EntityKind.POST]
    assert store.rows[EntityKind.POST]["x"]["created_at"]


def test_untag_post_removes_only_the_named_tags() -> None:
    store = MemoryStore()

    async def run():
        for pid in ("p1", "p2"):
            await store.create(EntityKind.PERSON, _person(pid, pid.upper()))
        await store.create(
            EntityKind.POST,
            Post(id="x", owner_id="o", author_label="Me", body="Hi", tagged_person_ids={"p1", "p2"}),
        )
        await store.untag_post("x", ["p1"], "o")
        return await store.list(EntityKind.POST, "o")

    (post,) = asyncio.run(run())
    assert post.tagged_person_ids == {"p2"}
    assert store.post_tags == [("x", "p2", "o")]


def test_tag_unknown_person_raises_partial_tag_error() -> None:
    store = MemoryStore()
    with pytest.raises(PartialTagError):
        asyncio.run(store.tag_media("m1", ["nobody"], "o"))


def test_store_from_config() -> None:
    assert isinstance(store_from_config(ArchiveConfig({}), owner_id="o"), MemoryStore)
    with pytest.raises(ValueError):
        store_from_config(ArchiveConfig({"store": {"backend": "carrier-pigeon"}}))
    with pytest.raises(StoreError):
        store_from_config(ArchiveConfig({"store": {"backend": "rest", "url": None}}))
