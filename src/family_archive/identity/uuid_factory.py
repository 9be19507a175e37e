# src/family_archive/identity/uuid_factory.py
from __future__ import annotations

import hashlib
import uuid
from typing import Optional


# -----------------------------
# Core deterministic hashing
# -----------------------------

def _stable_hash(key: str) -> str:
    # SHA1 is fine for identity fingerprints (not security).
    return hashlib.sha1(key.encode("utf-8")).hexdigest()


def _uuid_from_key(key: str) -> str:
    """
    Convert an arbitrary key string into a canonical UUID string (8-4-4-4-12).
    Deterministic for the same key.
    """
    return str(uuid.UUID(hex=_stable_hash(key)[:32]))


def new_id() -> str:
    """Random id for entities created interactively (posts, manual persons)."""
    return str(uuid.uuid4())


# -----------------------------
# Pointer normalization
# -----------------------------

def normalize_pointer(pointer: Optional[str]) -> Optional[str]:
    """
    Normalize a GEDCOM pointer:
      - strip whitespace
      - uppercase
      - ensure wrapped in @...@
    """
    if pointer is None:
        return None

    p = pointer.strip().upper()
    if not p or p == "@@":
        return None

    if not p.startswith("@"):
        p = "@" + p
    if not p.endswith("@"):
        p = p + "@"
    return p


# -----------------------------
# Archive identities
# -----------------------------

def uuid_for_person(owner_id: str, pointer: str, scope: str = "") -> str:
    """
    Person id for an imported individual.

    Keyed on the owner, the import scope (the tree id of the file) and the
    pointer exactly as the file spells it, so two files reusing @I1@ give two
    people and @i1@ is not @I1@. Re-importing the same file yields the same ids.
    """
    p = (pointer or "").strip()
    if not p or p == "@@":
        raise ValueError(f"Invalid pointer: {pointer!r}")
    return _uuid_from_key(f"PERSON|{owner_id}|{scope}|{p}")


def uuid_for_tree(owner_id: str, text: str) -> str:
    return _uuid_from_key(f"TREE|{owner_id}|{_stable_hash(text)}")


def uuid_for_event(person_id: str, tag: str, date: str = "", place: str = "", seq: int = 0) -> str:
    t = (tag or "").strip().upper()
    d = (date or "").strip()
    p = (place or "").strip()
    return _uuid_from_key(f"EVT|{person_id}|{t}|{d}|{p}|{seq}")


def uuid_for_memory(person_id: str, content: str, seq: int = 0) -> str:
    return _uuid_from_key(f"MEM|{person_id}|{seq}|{(content or '').strip()}")


__all__ = [
    "new_id",
    "normalize_pointer",
    "uuid_for_person",
    "uuid_for_tree",
    "uuid_for_event",
    "uuid_for_memory",
]
