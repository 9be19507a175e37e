from __future__ import annotations

import asyncio
import itertools
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Tuple

from family_archive.core.exceptions import PartialTagError, StoreError
from family_archive.logging import get_logger
from family_archive.models import EntityKind
from family_archive.store.base import RemoteStore
from family_archive.store.rows import Row, from_row, row_to_post, to_row

log = get_logger(__name__)


class MemoryStore(RemoteStore):
    """
    In-process store with the same contract as the REST store.

    Rows are kept in their wire shape and go through the same validation on
    the way out. When ``session_owner`` is set, writes to rows owned by
    someone else are refused, mirroring row-level security. Foreign-key
    behaviour follows the hosted schema: deleting a person clears
    ``trees.home_person_id`` and removes its tag rows; deleting a post
    removes its tag rows.

    ``calls`` records (operation, kind, ids) for every successful call.
    """

    def __init__(self, session_owner: Optional[str] = None, *, latency: float = 0.0):
        self.session_owner = session_owner
        self.latency = latency
        self.rows: Dict[EntityKind, Dict[str, Row]] = {k: {} for k in EntityKind}
        self.post_tags: List[Tuple[str, str, str]] = []   # (post_id, person_id, owner)
        self.media_tags: List[Tuple[str, str, str]] = []  # (media_id, person_id, owner)
        self.calls: List[Tuple[str, EntityKind, List[str]]] = []
        self._seq = itertools.count()
        self._order: Dict[str, int] = {}

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #

    async def _io(self) -> None:
        await asyncio.sleep(self.latency)

    def _check_owner(self, owner: Optional[str], operation: str) -> None:
        if self.session_owner is not None and owner != self.session_owner:
            raise StoreError(f"{operation}: row-level security violation", operation=operation)

    def _write(self, kind: EntityKind, row: Row, operation: str) -> Row:
        self._check_owner(row.get("user_id"), operation)
        existing = self.rows[kind].get(row["id"])
        if existing is not None:
            self._check_owner(existing.get("user_id"), operation)
            stored = {**existing, **row}
        else:
            stored = dict(row)
            if kind != EntityKind.PERSON and not stored.get("created_at"):
                stored["created_at"] = datetime.now(timezone.utc).isoformat()
            self._order[stored["id"]] = next(self._seq)
        self.rows[kind][stored["id"]] = stored
        return stored

    def _hydrate(self, kind: EntityKind, row: Row) -> Any:
        if kind == EntityKind.POST:
            tagged = [person for post, person, _ in self.post_tags if post == row["id"]]
            return row_to_post(row, tagged)
        return from_row(kind, row)

    # ------------------------------------------------------------------ #
    # RemoteStore
    # ------------------------------------------------------------------ #

    async def create(self, kind: EntityKind, item: Any) -> Any:
        await self._io()
        row = to_row(kind, item)
        if row["id"] in self.rows[kind]:
            raise StoreError(f"create: duplicate key {row['id']}", operation="create")
        stored = self._write(kind, row, "create")
        if kind == EntityKind.POST and item.tagged_person_ids:
            try:
                await self.tag_post(row["id"], item.tagged_person_ids, item.owner_id)
            except PartialTagError as exc:
                log.error("create post %s: tagging failed: %s", row["id"], exc)
        self.calls.append(("create", kind, [row["id"]]))
        return self._hydrate(kind, stored)

    async def bulk_upsert(self, kind: EntityKind, items: List[Any]) -> List[Any]:
        await self._io()
        rows = [to_row(kind, item) for item in items]
        for row in rows:
            self._check_owner(row.get("user_id"), "bulk_upsert")
        stored = [self._write(kind, row, "bulk_upsert") for row in rows]
        self.calls.append(("bulk_upsert", kind, [r["id"] for r in rows]))
        return [self._hydrate(kind, r) for r in stored]

    async def list(self, kind: EntityKind, owner_id: str) -> List[Any]:
        await self._io()
        rows = [r for r in self.rows[kind].values() if r.get("user_id") == owner_id]
        if kind == EntityKind.PERSON:
            rows.sort(key=lambda r: (r.get("name") or "", self._order[r["id"]]))
        else:
            rows.sort(key=lambda r: (r.get("created_at") or "", self._order[r["id"]]), reverse=True)
        self.calls.append(("list", kind, [r["id"] for r in rows]))
        return [self._hydrate(kind, r) for r in rows]

    async def update(self, kind: EntityKind, entity_id: str, fields: dict) -> None:
        await self._io()
        existing = self.rows[kind].get(entity_id)
        if existing is None:
            # PostgREST updates of missing rows touch nothing and succeed.
            log.debug("update %s %s: no such row", kind.value, entity_id)
        else:
            self._check_owner(existing.get("user_id"), "update")
            existing.update({k: v for k, v in fields.items() if k != "id"})
        self.calls.append(("update", kind, [entity_id]))

    async def delete(self, kind: EntityKind, entity_id: str) -> None:
        await self._io()
        existing = self.rows[kind].get(entity_id)
        if existing is not None:
            self._check_owner(existing.get("user_id"), "delete")
            del self.rows[kind][entity_id]
            self._cascade(kind, entity_id)
        self.calls.append(("delete", kind, [entity_id]))

    def _cascade(self, kind: EntityKind, entity_id: str) -> None:
        if kind == EntityKind.PERSON:
            self.post_tags = [t for t in self.post_tags if t[1] != entity_id]
            self.media_tags = [t for t in self.media_tags if t[1] != entity_id]
            for tree in self.rows[EntityKind.TREE].values():
                if tree.get("home_person_id") == entity_id:
                    tree["home_person_id"] = None
        elif kind == EntityKind.POST:
            self.post_tags = [t for t in self.post_tags if t[0] != entity_id]

    async def tag_post(self, post_id: str, person_ids: Iterable[str], owner_id: str) -> None:
        await self._io()
        self._insert_tags(self.post_tags, post_id, person_ids, owner_id, "tag_post")

    async def untag_post(self, post_id: str, person_ids: Iterable[str], owner_id: str) -> None:
        await self._io()
        try:
            self._check_owner(owner_id, "untag_post")
        except StoreError as exc:
            raise PartialTagError(str(exc), operation="untag_post") from exc
        ids = set(person_ids)
        self.post_tags = [t for t in self.post_tags if not (t[0] == post_id and t[1] in ids)]

    async def tag_media(self, media_id: str, person_ids: Iterable[str], owner_id: str) -> None:
        await self._io()
        self._insert_tags(self.media_tags, media_id, person_ids, owner_id, "tag_media")

    def _insert_tags(
        self,
        table: List[Tuple[str, str, str]],
        target_id: str,
        person_ids: Iterable[str],
        owner_id: str,
        operation: str,
    ) -> None:
        ids = sorted(set(person_ids))
        unknown = [pid for pid in ids if pid not in self.rows[EntityKind.PERSON]]
        if unknown:
            # Foreign-key violation: the whole insert is rejected.
            raise PartialTagError(
                f"{operation}: unknown person id(s) {', '.join(unknown)}",
                operation=operation,
            )
        try:
            self._check_owner(owner_id, operation)
        except StoreError as exc:
            raise PartialTagError(str(exc), operation=operation) from exc
        for pid in ids:
            if (target_id, pid, owner_id) not in table:
                table.append((target_id, pid, owner_id))
