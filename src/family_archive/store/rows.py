"""
Row schemas and conversions at the store boundary.

Rows are the snake_case dicts the remote tables speak. Every row read back
from a store is validated against its pydantic model before it becomes a
domain entity; a malformed payload raises RowValidationError instead of
leaking half-shaped data into the cache.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, model_validator
from pydantic import ValidationError as PydanticValidationError

from family_archive.core.exceptions import RowValidationError, ValidationError
from family_archive.models import (
    EntityKind,
    Gender,
    LifeEvent,
    MediaKind,
    MediaRef,
    Memory,
    Person,
    Post,
    Tree,
)

Row = Dict[str, Any]

TABLES: Dict[EntityKind, str] = {
    EntityKind.PERSON: "profiles",
    EntityKind.TREE: "trees",
    EntityKind.POST: "posts",
}
POST_TAG_TABLE = "post_people"
MEDIA_TAG_TABLE = "media_people"

# Cache-only key holding a post's sorted tag ids; never sent as a column.
TAGS_KEY = "_tagged_person_ids"

_GENDER_CODES = {Gender.MALE: "M", Gender.FEMALE: "F", Gender.UNKNOWN: "U"}
_CODE_GENDERS = {code: gender for gender, code in _GENDER_CODES.items()}


# ----------------------------------------------------------------------
# Schemas
# ----------------------------------------------------------------------

class _RowModel(BaseModel):
    model_config = ConfigDict(extra="ignore")


class MediaRow(_RowModel):
    id: str
    name: str = ""
    kind: MediaKind = MediaKind.PHOTO
    url: str = ""


class LifeEventRow(_RowModel):
    id: str
    type: str
    date: str = ""
    place: str = ""
    spouseName: Optional[str] = None
    media: List[MediaRow] = []


class MemoryRow(_RowModel):
    id: str
    content: str
    type: str = "story"
    timestamp: str = ""


class PersonRow(_RowModel):
    id: str
    user_id: str
    name: str
    gender: Optional[Literal["M", "F", "U"]] = None
    birth_year: Optional[str] = None
    death_year: Optional[str] = None
    image_url: Optional[str] = None
    summary: Optional[str] = None
    is_memorial: bool = False
    parent_ids: List[str] = []
    child_ids: List[str] = []
    spouse_ids: List[str] = []
    timeline: List[LifeEventRow] = []
    memories: List[MemoryRow] = []
    sources: List[str] = []


class TreeRow(_RowModel):
    id: str
    user_id: str
    name: str
    home_person_id: Optional[str] = None
    member_ids: List[str] = []
    created_at: Optional[str] = None

    @model_validator(mode="after")
    def _home_is_member(self) -> "TreeRow":
        if self.home_person_id and self.home_person_id not in self.member_ids:
            raise ValueError(f"home_person_id {self.home_person_id} is not a member")
        return self


class TagRow(_RowModel):
    profile_id: str


class PostRow(_RowModel):
    id: str
    user_id: str
    author_label: str
    body: str
    attachments: List[MediaRow] = []
    created_at: Optional[str] = None
    post_people: List[TagRow] = []


def _validate(model: type[_RowModel], row: Any) -> Any:
    try:
        return model.model_validate(row)
    except PydanticValidationError as exc:
        row_id = row.get("id") if isinstance(row, dict) else None
        raise RowValidationError(
            f"Malformed {model.__name__} row {row_id!r}: {exc.error_count()} error(s)",
            operation="read",
        ) from exc


# ----------------------------------------------------------------------
# Nested values
# ----------------------------------------------------------------------

def _media_to_row(m: MediaRef) -> Row:
    return {"id": m.id, "name": m.name, "kind": m.kind.value, "url": m.url}


def _media_from_row(r: MediaRow) -> MediaRef:
    return MediaRef(id=r.id, name=r.name, kind=r.kind, url=r.url)


def _event_to_row(e: LifeEvent) -> Row:
    return {
        "id": e.id,
        "type": e.type,
        "date": e.date,
        "place": e.place,
        "spouseName": e.spouse_name,
        "media": [_media_to_row(m) for m in e.media],
    }


def _memory_to_row(m: Memory) -> Row:
    return {"id": m.id, "type": m.type, "content": m.content, "timestamp": m.timestamp}


# ----------------------------------------------------------------------
# Person
# ----------------------------------------------------------------------

def person_to_row(p: Person, tree_id: Optional[str] = None) -> Row:
    row: Row = {
        "id": p.id,
        "user_id": p.owner_id,
        "name": p.name,
        "gender": _GENDER_CODES[p.gender],
        "birth_year": p.birth_year or None,
        "death_year": p.death_year or None,
        "image_url": p.image_url or None,
        "summary": p.summary or None,
        "is_memorial": p.is_memorial,
        "parent_ids": sorted(p.parent_ids),
        "child_ids": sorted(p.child_ids),
        "spouse_ids": sorted(p.spouse_ids),
        "timeline": [_event_to_row(e) for e in p.timeline],
        "memories": [_memory_to_row(m) for m in p.memories],
        "sources": sorted(p.source_citations),
    }
    if tree_id:
        row["tree_id"] = tree_id
    return row


def row_to_person(row: Row) -> Person:
    r: PersonRow = _validate(PersonRow, row)
    return Person(
        id=r.id,
        owner_id=r.user_id,
        name=r.name,
        gender=_CODE_GENDERS.get(r.gender or "U", Gender.UNKNOWN),
        birth_year=r.birth_year or "",
        death_year=r.death_year or "",
        image_url=r.image_url or "",
        summary=r.summary or "",
        is_memorial=r.is_memorial,
        timeline=[
            LifeEvent(
                id=e.id,
                type=e.type,
                date=e.date,
                place=e.place,
                spouse_name=e.spouseName,
                media=[_media_from_row(m) for m in e.media],
            )
            for e in r.timeline
        ],
        memories=[
            Memory(id=m.id, content=m.content, type=m.type, timestamp=m.timestamp)
            for m in r.memories
        ],
        source_citations=set(r.sources),
        parent_ids=set(r.parent_ids),
        child_ids=set(r.child_ids),
        spouse_ids=set(r.spouse_ids),
    )


# ----------------------------------------------------------------------
# Tree
# ----------------------------------------------------------------------

def tree_to_row(t: Tree) -> Row:
    if t.home_person_id and t.home_person_id not in t.member_ids:
        raise ValidationError(f"Tree {t.id}: home person {t.home_person_id} is not a member")
    row: Row = {
        "id": t.id,
        "user_id": t.owner_id,
        "name": t.name,
        "home_person_id": t.home_person_id or None,
        "member_ids": list(t.member_ids),
    }
    if t.created_at:
        row["created_at"] = t.created_at
    return row


def row_to_tree(row: Row) -> Tree:
    r: TreeRow = _validate(TreeRow, row)
    return Tree(
        id=r.id,
        owner_id=r.user_id,
        name=r.name,
        home_person_id=r.home_person_id or None,
        member_ids=list(dict.fromkeys(r.member_ids)),
        created_at=r.created_at or "",
    )


# ----------------------------------------------------------------------
# Post
# ----------------------------------------------------------------------

def post_to_row(p: Post) -> Row:
    """Post columns only; tagged people live in the post_people join table."""
    row: Row = {
        "id": p.id,
        "user_id": p.owner_id,
        "author_label": p.author_label,
        "body": p.body,
        "attachments": [_media_to_row(m) for m in p.attachments],
    }
    if p.created_at:
        row["created_at"] = p.created_at
    return row


def row_to_post(row: Row, tagged_person_ids: Optional[Iterable[str]] = None) -> Post:
    r: PostRow = _validate(PostRow, row)
    tagged = set(tagged_person_ids) if tagged_person_ids is not None else {t.profile_id for t in r.post_people}
    return Post(
        id=r.id,
        owner_id=r.user_id,
        author_label=r.author_label,
        body=r.body,
        attachments=[_media_from_row(m) for m in r.attachments],
        tagged_person_ids=tagged,
        created_at=r.created_at or "",
    )


# ----------------------------------------------------------------------
# Dispatch helpers
# ----------------------------------------------------------------------

def to_row(kind: EntityKind, item: Any) -> Row:
    if kind == EntityKind.PERSON:
        return person_to_row(item)
    if kind == EntityKind.TREE:
        return tree_to_row(item)
    return post_to_row(item)


def from_row(kind: EntityKind, row: Row) -> Any:
    if kind == EntityKind.PERSON:
        return row_to_person(row)
    if kind == EntityKind.TREE:
        return row_to_tree(row)
    return row_to_post(row)


def cache_row(kind: EntityKind, item: Any) -> Row:
    """
    Row used as the cache's diff baseline: the wire row, plus the sorted
    tag ids for posts so a tag edit counts as a change.
    """
    row = to_row(kind, item)
    if kind == EntityKind.POST:
        row[TAGS_KEY] = sorted(item.tagged_person_ids)
    return row


def row_diff(old: Row, new: Row) -> Row:
    """Columns of ``new`` whose value differs from ``old`` (id and tags excluded)."""
    return {k: v for k, v in new.items() if k not in ("id", TAGS_KEY) and old.get(k) != v}
