"""
Domain entities held by the reconciliation cache and written to the store.

Relationship sets on Person are denormalised and must stay symmetric; use
the helpers in ``family_archive.graph`` rather than editing them by hand.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import List, Optional, Set, Union

from family_archive.core.exceptions import ValidationError


class Gender(str, Enum):
    MALE = "male"
    FEMALE = "female"
    UNKNOWN = "unknown"

    @classmethod
    def from_gedcom(cls, sex: Optional[str]) -> "Gender":
        code = (sex or "").strip().upper()[:1]
        if code == "M":
            return cls.MALE
        if code == "F":
            return cls.FEMALE
        return cls.UNKNOWN


class EntityKind(str, Enum):
    PERSON = "person"
    TREE = "tree"
    POST = "post"


class MediaKind(str, Enum):
    PHOTO = "photo"
    VIDEO = "video"
    AUDIO = "audio"
    DOCUMENT = "document"


@dataclass(slots=True)
class MediaRef:
    id: str
    name: str = ""
    kind: MediaKind = MediaKind.PHOTO
    url: str = ""


@dataclass(slots=True)
class LifeEvent:
    id: str
    type: str
    date: str = ""
    place: str = ""
    spouse_name: Optional[str] = None
    media: List[MediaRef] = field(default_factory=list)


@dataclass(slots=True)
class Memory:
    id: str
    content: str
    type: str = "story"
    timestamp: str = ""


@dataclass(slots=True)
class Person:
    id: str
    owner_id: str
    name: str
    gender: Gender = Gender.UNKNOWN
    birth_year: str = ""
    death_year: str = ""
    image_url: str = ""
    summary: str = ""
    is_memorial: bool = False
    timeline: List[LifeEvent] = field(default_factory=list)
    memories: List[Memory] = field(default_factory=list)
    source_citations: Set[str] = field(default_factory=set)
    parent_ids: Set[str] = field(default_factory=set)
    child_ids: Set[str] = field(default_factory=set)
    spouse_ids: Set[str] = field(default_factory=set)


@dataclass(slots=True)
class Tree:
    id: str
    owner_id: str
    name: str
    home_person_id: Optional[str] = None
    member_ids: List[str] = field(default_factory=list)
    created_at: str = ""

    def with_home(self, person_id: str, name: Optional[str] = None) -> "Tree":
        """Copy of this tree anchored on ``person_id``; must be a member."""
        if person_id not in self.member_ids:
            raise ValidationError(f"Person {person_id} is not a member of tree {self.id}")
        return replace(self, home_person_id=person_id, name=name or self.name)


@dataclass(slots=True)
class Post:
    id: str
    owner_id: str
    author_label: str
    body: str
    attachments: List[MediaRef] = field(default_factory=list)
    tagged_person_ids: Set[str] = field(default_factory=set)
    created_at: str = ""


Entity = Union[Person, Tree, Post]
