from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Iterable, List

from family_archive.models import EntityKind


class RemoteStore(ABC):
    """
    Narrow CRUD contract the reconciliation cache writes through.

    Every method may raise StoreError. Implementations apply owner-scoped
    access control; the cache never filters by owner itself. Deleting a
    Person or Post cascades to its join rows.
    """

    @abstractmethod
    async def create(self, kind: EntityKind, item: Any) -> Any:
        """Insert one entity and return it with server-filled fields."""

    @abstractmethod
    async def bulk_upsert(self, kind: EntityKind, items: List[Any]) -> List[Any]:
        """Insert or replace ``items`` keyed on id, in one call.

        Callers are responsible for chunking.
        """

    @abstractmethod
    async def list(self, kind: EntityKind, owner_id: str) -> List[Any]:
        """
        All entities of ``kind`` owned by ``owner_id``.

        Persons come back by name ascending; Trees and Posts newest first.
        """

    @abstractmethod
    async def update(self, kind: EntityKind, entity_id: str, fields: dict) -> None:
        """Apply a partial update of row columns to one entity."""

    @abstractmethod
    async def delete(self, kind: EntityKind, entity_id: str) -> None:
        ...

    @abstractmethod
    async def tag_post(self, post_id: str, person_ids: Iterable[str], owner_id: str) -> None:
        """Write Person<->Post tag rows. Raises PartialTagError on failure."""

    @abstractmethod
    async def untag_post(self, post_id: str, person_ids: Iterable[str], owner_id: str) -> None:
        """Remove Person<->Post tag rows. Raises PartialTagError on failure."""

    @abstractmethod
    async def tag_media(self, media_id: str, person_ids: Iterable[str], owner_id: str) -> None:
        """Write Person<->Media tag rows. Raises PartialTagError on failure."""

    async def close(self) -> None:  # pragma: no cover - optional hook
        return None
