"""
Reconciliation cache: the in-memory working set of Persons, Trees and Posts.

Reads are served from memory. Every mutation returns the new local state
immediately and schedules the matching remote writes as background tasks.
Per collection the cache keeps two baselines, both as wire rows:

* ``synced``: what the store has confirmed.
* ``issued``: what has been sent (or queued). New diffs are computed against
  this, so a mutation that changes nothing sends nothing even while earlier
  writes are still in flight. A failed write resets its entry to ``synced``
  so the next mutation retries it.

A failed optimistic create also bumps the id's rollback epoch; queued
writes for that id that were scheduled before the rollback are skipped.
Post tags travel as a cache-only row key and are written through the
store's tag calls after the post row itself.

Failures never propagate out of a push; they are logged, recorded in
``errors`` and handed to subscribers.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence

from family_archive.cache.diff import Diff, compute_diff
from family_archive.cache.dispatcher import PushDispatcher
from family_archive.config import get_config
from family_archive.core.exceptions import CacheClosedError, StoreError, ValidationError
from family_archive.graph import remove_member, remove_person
from family_archive.logging import get_logger
from family_archive.models import EntityKind
from family_archive.store.base import RemoteStore
from family_archive.store.rows import TAGS_KEY, Row, cache_row, row_diff

log = get_logger(__name__)


@dataclass
class SyncFailure:
    """One failed remote write, as delivered on the error channel."""

    kind: EntityKind
    operation: str
    entity_ids: List[str]
    error: StoreError
    chunk_index: Optional[int] = None
    rolled_back: bool = False

    def __str__(self) -> str:
        where = f" (chunk {self.chunk_index})" if self.chunk_index is not None else ""
        return f"{self.operation} {self.kind.value}{where} failed for {len(self.entity_ids)} item(s): {self.error}"


ErrorCallback = Callable[[SyncFailure], None]


def _as_store_error(exc: Exception, operation: str) -> StoreError:
    if isinstance(exc, StoreError):
        return exc
    err = StoreError(f"{operation}: {exc}", operation=operation)
    err.__cause__ = exc
    return err


def _chunks(items: Sequence[Any], size: int) -> List[Sequence[Any]]:
    return [items[i:i + size] for i in range(0, len(items), size)]


class ReconciliationCache:
    def __init__(self, store: RemoteStore, owner_id: str, *, chunk_size: Optional[int] = None):
        self.store = store
        self.owner_id = owner_id
        self.chunk_size = chunk_size or get_config().chunk_size
        if self.chunk_size < 1:
            raise ValueError("chunk_size must be >= 1")

        self._items: Dict[EntityKind, List[Any]] = {k: [] for k in EntityKind}
        self._synced: Dict[EntityKind, Dict[str, Row]] = {k: {} for k in EntityKind}
        self._issued: Dict[EntityKind, Dict[str, Row]] = {k: {} for k in EntityKind}
        self._epochs: Dict[EntityKind, Dict[str, int]] = {k: {} for k in EntityKind}
        self._dispatcher = PushDispatcher()
        self._subscribers: List[ErrorCallback] = []
        self.errors: List[SyncFailure] = []
        self._closed = False

    # ------------------------------------------------------------------ #
    # Reads
    # ------------------------------------------------------------------ #

    def get(self, kind: EntityKind) -> List[Any]:
        return list(self._items[EntityKind(kind)])

    def find(self, kind: EntityKind, entity_id: str) -> Optional[Any]:
        for item in self._items[EntityKind(kind)]:
            if item.id == entity_id:
                return item
        return None

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def pending(self) -> int:
        """Push jobs not yet finished."""
        return self._dispatcher.pending

    # ------------------------------------------------------------------ #
    # Error channel
    # ------------------------------------------------------------------ #

    def subscribe(self, callback: ErrorCallback) -> Callable[[], None]:
        """Register an error callback; returns a function that removes it."""
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def _report(self, failure: SyncFailure) -> None:
        if self._closed:
            log.debug("Discarding failure after teardown: %s", failure)
            return
        log.error("Sync failure: %s", failure)
        self.errors.append(failure)
        for callback in list(self._subscribers):
            try:
                callback(failure)
            except Exception:
                log.exception("Sync error subscriber raised")

    # ------------------------------------------------------------------ #
    # Loading
    # ------------------------------------------------------------------ #

    def replace_all(self, kind: EntityKind, items: Iterable[Any]) -> None:
        """Bulk load after a fetch: memory and both baselines equal ``items``."""
        kind = EntityKind(kind)
        self._ensure_open()
        loaded = list(items)
        rows = {item.id: cache_row(kind, item) for item in loaded}
        self._items[kind] = loaded
        self._synced[kind] = dict(rows)
        self._issued[kind] = dict(rows)
        log.info("Loaded %d %s item(s)", len(loaded), kind.value)

    async def load(self) -> None:
        """Fetch every collection for the owner and replace local state."""
        for kind in EntityKind:
            try:
                items = await self.store.list(kind, self.owner_id)
            except Exception as exc:
                self._report(SyncFailure(kind, "list", [], _as_store_error(exc, "list")))
                continue
            if self._closed:
                return
            self.replace_all(kind, items)

    # ------------------------------------------------------------------ #
    # Mutations
    # ------------------------------------------------------------------ #

    def mutate(self, kind: EntityKind, updater: Callable[[List[Any]], Iterable[Any]]) -> List[Any]:
        """
        Apply ``updater`` to the collection and return the new list.

        ``updater`` receives a copy of the current list and must not edit the
        items in place. Items missing from the result are dropped locally
        but never deleted remotely; use delete_entity() for that.
        """
        kind = EntityKind(kind)
        self._ensure_open()

        updated = list(updater(list(self._items[kind])))
        diff = compute_diff(kind, self._issued[kind], updated)
        self._items[kind] = updated

        if diff.empty:
            log.debug("mutate %s: nothing changed", kind.value)
            return list(updated)

        if diff.removed:
            log.debug(
                "%d %s item(s) dropped locally without delete; remote rows kept",
                len(diff.removed), kind.value,
            )
        self._push(kind, diff)
        return list(updated)

    def create_optimistic(self, kind: EntityKind, item: Any) -> Any:
        """
        Put ``item`` at the front of the collection and create it remotely.

        If the create fails the item is taken out of memory again, writes
        for it that were queued behind the create are dropped, and one
        SyncFailure (``rolled_back=True``) is reported.
        """
        kind = EntityKind(kind)
        self._ensure_open()
        if any(existing.id == item.id for existing in self._items[kind]):
            raise ValidationError(f"{kind.value} {item.id} already exists")

        row = cache_row(kind, item)
        snapshot = copy.deepcopy(item)
        self._items[kind] = [item] + self._items[kind]
        self._issued[kind][item.id] = row

        async def job() -> None:
            try:
                await self.store.create(kind, snapshot)
            except Exception as exc:
                if self._closed:
                    return
                self._items[kind] = [i for i in self._items[kind] if i.id != item.id]
                self._roll_back(kind, item.id)
                self._report(
                    SyncFailure(kind, "create", [item.id], _as_store_error(exc, "create"), rolled_back=True)
                )
                return
            if not self._closed:
                self._synced[kind][item.id] = row

        self._dispatcher.submit([self._key(kind, item.id)], job, name=f"create-{kind.value}-{item.id}")
        return item

    def delete_entity(self, kind: EntityKind, entity_id: str) -> None:
        """
        Remove an entity locally and delete it remotely.

        Deleting a Person also strips it from every other Person's
        relationship sets and from every Tree; those edits are pushed as
        updates. A failed remote delete is reported but not undone locally.
        """
        kind = EntityKind(kind)
        self._ensure_open()

        if kind == EntityKind.PERSON:
            self.mutate(EntityKind.PERSON, lambda people: remove_person(people, entity_id))
            self.mutate(EntityKind.TREE, lambda trees: remove_member(trees, entity_id))
        else:
            self._items[kind] = [i for i in self._items[kind] if i.id != entity_id]
        self._issued[kind].pop(entity_id, None)

        async def job() -> None:
            try:
                await self.store.delete(kind, entity_id)
            except Exception as exc:
                self._report(SyncFailure(kind, "delete", [entity_id], _as_store_error(exc, "delete")))
                return
            if not self._closed:
                self._synced[kind].pop(entity_id, None)

        self._dispatcher.submit([self._key(kind, entity_id)], job, name=f"delete-{kind.value}-{entity_id}")

    def tag_media(self, media_id: str, person_ids: Iterable[str]) -> None:
        """Best-effort Person<->Media tagging; failures are only logged."""
        self._ensure_open()
        ids = sorted(set(person_ids))
        if not ids:
            return

        async def job() -> None:
            try:
                await self.store.tag_media(media_id, ids, self.owner_id)
            except Exception as exc:
                log.warning("Tagging media %s failed: %s", media_id, exc)

        self._dispatcher.submit([f"media:{media_id}"], job, name=f"tag-media-{media_id}")

    async def flush(self) -> None:
        """Wait for every in-flight push."""
        await self._dispatcher.flush()

    def close(self) -> None:
        """
        Tear the cache down. In-flight pushes run to completion but their
        outcome no longer touches local state or the error channel.
        """
        if not self._closed:
            log.info("Closing cache with %d push job(s) in flight", self.pending)
        self._closed = True
        self._subscribers.clear()

    # ------------------------------------------------------------------ #
    # Push plumbing
    # ------------------------------------------------------------------ #

    @staticmethod
    def _key(kind: EntityKind, entity_id: str) -> str:
        return f"{kind.value}:{entity_id}"

    def _ensure_open(self) -> None:
        if self._closed:
            raise CacheClosedError("cache has been closed")

    def _reset_issued(self, kind: EntityKind, entity_id: str, sent: Row) -> None:
        """Undo an issued row after a failed write, unless a newer one replaced it."""
        issued = self._issued[kind]
        if issued.get(entity_id) is not sent:
            return
        confirmed = self._synced[kind].get(entity_id)
        if confirmed is None:
            issued.pop(entity_id, None)
        else:
            issued[entity_id] = confirmed

    def _roll_back(self, kind: EntityKind, entity_id: str) -> None:
        """Cancel every queued write for an id and drop its issued row."""
        epochs = self._epochs[kind]
        epochs[entity_id] = epochs.get(entity_id, 0) + 1
        confirmed = self._synced[kind].get(entity_id)
        if confirmed is None:
            self._issued[kind].pop(entity_id, None)
        else:
            self._issued[kind][entity_id] = confirmed

    def _epoch(self, kind: EntityKind, entity_id: str) -> int:
        return self._epochs[kind].get(entity_id, 0)

    async def _sync_post_tags(self, post_id: str, old: Iterable[str], new: Iterable[str]) -> None:
        """Best-effort tag delta for one post; failures are only logged."""
        before, after = set(old), set(new)
        added, removed = sorted(after - before), sorted(before - after)
        try:
            if added:
                await self.store.tag_post(post_id, added, self.owner_id)
            if removed:
                await self.store.untag_post(post_id, removed, self.owner_id)
        except Exception as exc:
            log.warning("Syncing tags of post %s failed: %s", post_id, exc)

    def _push(self, kind: EntityKind, diff: Diff) -> None:
        for item_id, row in diff.rows.items():
            self._issued[kind][item_id] = row

        if len(diff.added) > 1:
            self._push_bulk(kind, diff.added, diff.rows)
        elif diff.added:
            (item,) = diff.added
            self._push_one(kind, item, diff.rows[item.id])
        for item in diff.changed:
            self._push_one(kind, item, diff.rows[item.id])

    def _push_one(self, kind: EntityKind, item: Any, row: Row) -> None:
        """
        Create or update one entity. Whether it is a create is decided when
        the job runs, after earlier writes for the same id have finished.
        A post's tag changes are written after its columns.
        """
        snapshot = copy.deepcopy(item)
        epoch = self._epoch(kind, item.id)

        async def job() -> None:
            if self._epoch(kind, item.id) != epoch:
                log.debug("Skipping write for rolled back %s %s", kind.value, item.id)
                return
            confirmed = self._synced[kind].get(item.id)
            operation = "create" if confirmed is None else "update"
            try:
                if confirmed is None:
                    await self.store.create(kind, snapshot)
                else:
                    fields = row_diff(confirmed, row)
                    if fields:
                        await self.store.update(kind, item.id, fields)
            except Exception as exc:
                if self._closed:
                    return
                self._reset_issued(kind, item.id, row)
                self._report(SyncFailure(kind, operation, [item.id], _as_store_error(exc, operation)))
                return
            if kind == EntityKind.POST and confirmed is not None:
                await self._sync_post_tags(item.id, confirmed.get(TAGS_KEY, []), row.get(TAGS_KEY, []))
            if not self._closed:
                self._synced[kind][item.id] = row

        self._dispatcher.submit([self._key(kind, item.id)], job, name=f"put-{kind.value}-{item.id}")

    def _push_bulk(self, kind: EntityKind, items: List[Any], rows: Dict[str, Row]) -> None:
        """
        Upsert many new entities in fixed-size chunks, one call per chunk,
        in order. The first failing chunk stops the run: earlier chunks stay
        committed and the failure names the chunk index. Bulk upserts carry
        no join rows, so each committed post is tagged afterwards.
        """
        snapshot = copy.deepcopy(items)
        chunks = _chunks(snapshot, self.chunk_size)
        epochs = {i.id: self._epoch(kind, i.id) for i in items}

        async def job() -> None:
            for index, chunk in enumerate(chunks):
                live = [i for i in chunk if self._epoch(kind, i.id) == epochs[i.id]]
                if not live:
                    continue
                log.info(
                    "bulk_upsert %s: chunk %d/%d (%d item(s))",
                    kind.value, index + 1, len(chunks), len(live),
                )
                try:
                    await self.store.bulk_upsert(kind, live)
                except Exception as exc:
                    if self._closed:
                        return
                    failed = [i.id for c in chunks[index:] for i in c]
                    for item_id in failed:
                        self._reset_issued(kind, item_id, rows[item_id])
                    err = _as_store_error(exc, "bulk_upsert")
                    err.chunk_index = index
                    self._report(SyncFailure(kind, "bulk_upsert", failed, err, chunk_index=index))
                    return
                if kind == EntityKind.POST:
                    for i in live:
                        await self._sync_post_tags(i.id, [], rows[i.id].get(TAGS_KEY, []))
                if self._closed:
                    continue
                for i in live:
                    self._synced[kind][i.id] = rows[i.id]

        keys = [self._key(kind, i.id) for i in items]
        self._dispatcher.submit(keys, job, name=f"bulk-{kind.value}-{len(items)}")
