# tests/test_rest_store.py

from __future__ import annotations

import asyncio

import pytest
import requests

from family_archive.core.exceptions import PartialTagError, StoreError
from family_archive.models import EntityKind, Person, Post
from family_archive.store.rest import RestStore


class FakeResponse:
    def __init__(self, status_code=200, payload=None):
        self.status_code = status_code
        self._payload = payload
        self.content = b"" if payload is None else b"x"
        self.text = "" if payload is None else str(payload)

    def json(self):
        if self._payload is None:
            raise ValueError("no body")
        return self._payload


class FakeSession:
    """Records requests; answers from a queue of FakeResponse objects."""

    def __init__(self, *responses):
        self.headers = {}
        self.responses = list(responses)
        self.requests = []
        self.closed = False

    def request(self, method, url, **kwargs):
        self.requests.append((method, url, kwargs))
        item = self.responses.pop(0) if self.responses else FakeResponse()
        if isinstance(item, Exception):
            raise item
        return item

    def close(self):
        self.closed = True


def _store(*responses):
    session = FakeSession(*responses)
    return RestStore("https://db.example/", "anon-key", access_token="jwt", session=session), session


def _person_row(pid="p1", name="Ada"):
    return {"id": pid, "user_id": "o", "name": name, "gender": "F"}


def test_headers_carry_key_and_token() -> None:
    _, session = _store()
    assert session.headers["apikey"] == "anon-key"
    assert session.headers["Authorization"] == "Bearer jwt"


def test_create_posts_row_and_returns_entity() -> None:
    store, session = _store(FakeResponse(201, [_person_row()]))

    person = asyncio.run(store.create(EntityKind.PERSON, Person(id="p1", owner_id="o", name="Ada")))

    method, url, kwargs = session.requests[0]
    assert (method, url) == ("POST", "https://db.example/rest/v1/profiles")
    assert kwargs["headers"] == {"Prefer": "return=representation"}
    assert kwargs["json"]["user_id"] == "o"
    assert person.name == "Ada"


def test_bulk_upsert_uses_id_conflict_key() -> None:
    store, session = _store(FakeResponse(201, [_person_row("a"), _person_row("b")]))
    people = [Person(id=i, owner_id="o", name=i) for i in ("a", "b")]

    out = asyncio.run(store.bulk_upsert(EntityKind.PERSON, people))

    _, _, kwargs = session.requests[0]
    assert kwargs["params"] == {"on_conflict": "id"}
    assert "merge-duplicates" in kwargs["headers"]["Prefer"]
    assert len(kwargs["json"]) == 2
    assert [p.id for p in out] == ["a", "b"]


def test_list_filters_and_orders() -> None:
    store, session = _store(FakeResponse(200, [_person_row()]))

    asyncio.run(store.list(EntityKind.PERSON, "o"))

    _, url, kwargs = session.requests[0]
    assert url.endswith("/profiles")
    assert kwargs["params"] == {"select": "*", "user_id": "eq.o", "order": "name.asc"}


def test_list_posts_embeds_tags() -> None:
    row = {"id": "x", "user_id": "o", "author_label": "Me", "body": "Hi", "post_people": [{"profile_id": "p1"}]}
    store, session = _store(FakeResponse(200, [row]))

    posts = asyncio.run(store.list(EntityKind.POST, "o"))

    assert session.requests[0][2]["params"]["select"] == "*,post_people(profile_id)"
    assert session.requests[0][2]["params"]["order"] == "created_at.desc"
    assert posts[0].tagged_person_ids == {"p1"}


def test_update_and_delete_target_one_id() -> None:
    store, session = _store(FakeResponse(204), FakeResponse(204))

    asyncio.run(store.update(EntityKind.TREE, "t1", {"id": "t1", "name": "New"}))
    asyncio.run(store.delete(EntityKind.TREE, "t1"))

    (m1, _, k1), (m2, _, k2) = session.requests
    assert m1 == "PATCH" and k1["params"] == {"id": "eq.t1"} and k1["json"] == {"name": "New"}
    assert m2 == "DELETE" and k2["params"] == {"id": "eq.t1"}


def test_http_errors_become_store_errors() -> None:
    store, _ = _store(FakeResponse(403, {"message": "new row violates row-level security policy"}))

    with pytest.raises(StoreError) as info:
        asyncio.run(store.delete(EntityKind.PERSON, "p1"))
    assert "row-level security" in str(info.value)
    assert info.value.operation == "delete"


def test_network_errors_become_store_errors() -> None:
    store, _ = _store(requests.ConnectionError("down"))

    with pytest.raises(StoreError):
        asyncio.run(store.list(EntityKind.TREE, "o"))


def test_post_create_survives_tagging_failure() -> None:
    row = {"id": "x", "user_id": "o", "author_label": "Me", "body": "Hi"}
    store, session = _store(FakeResponse(201, [row]), FakeResponse(409, {"message": "fk violation"}))
    post = Post(id="x", owner_id="o", author_label="Me", body="Hi", tagged_person_ids={"ghost"})

    created = asyncio.run(store.create(EntityKind.POST, post))

    assert created.id == "x"
    assert created.tagged_person_ids == set()
    assert session.requests[1][1].endswith("/post_people")


def test_untag_post_deletes_join_rows() -> None:
    store, session = _store(FakeResponse(204), FakeResponse(500, {"message": "boom"}))

    asyncio.run(store.untag_post("x", ["p2", "p1"], "o"))
    method, url, kwargs = session.requests[0]
    assert method == "DELETE" and url.endswith("/post_people")
    assert kwargs["params"] == {"post_id": "eq.x", "profile_id": "in.(p1,p2)"}

    with pytest.raises(PartialTagError):
        asyncio.run(store.untag_post("x", ["p1"], "o"))
    asyncio.run(store.untag_post("x", [], "o"))
    assert len(session.requests) == 2


def test_close_closes_session() -> None:
    store, session = _store()
    asyncio.run(store.close())
    assert session.closed
