"""
PostgREST (Supabase REST) implementation of the RemoteStore contract.

HTTP is done with a ``requests.Session``; each call runs in a worker thread
via ``asyncio.to_thread`` so the event loop driving the cache never blocks.
Row-level security is enforced server-side from the bearer token, so no
owner filter is needed for writes; ``list`` still filters on ``user_id`` to
keep the query explicit.
"""

from __future__ import annotations

import asyncio
import os
from typing import Any, Dict, Iterable, List, Optional

import requests

from family_archive.core.exceptions import PartialTagError, StoreError
from family_archive.logging import get_logger
from family_archive.models import EntityKind
from family_archive.store.base import RemoteStore
from family_archive.store.rows import (
    MEDIA_TAG_TABLE,
    POST_TAG_TABLE,
    TABLES,
    Row,
    from_row,
    row_to_post,
    to_row,
)

log = get_logger(__name__)

_ORDER = {
    EntityKind.PERSON: "name.asc",
    EntityKind.TREE: "created_at.desc",
    EntityKind.POST: "created_at.desc",
}


class RestStore(RemoteStore):
    def __init__(
        self,
        base_url: str,
        api_key: str,
        *,
        access_token: Optional[str] = None,
        timeout: float = 30,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update(
            {
                "apikey": api_key,
                "Authorization": f"Bearer {access_token or api_key}",
                "Content-Type": "application/json",
            }
        )

    @classmethod
    def from_config(cls, cfg: Any, access_token: Optional[str] = None) -> "RestStore":
        store_cfg = cfg.store
        url = store_cfg.get("url")
        if not url:
            raise StoreError("store.url is not configured", operation="connect")
        key_env = store_cfg.get("api_key_env") or "FAMILY_ARCHIVE_API_KEY"
        api_key = os.environ.get(key_env)
        if not api_key:
            raise StoreError(f"{key_env} is not set", operation="connect")
        return cls(url, api_key, access_token=access_token, timeout=float(store_cfg.get("timeout", 30)))

    # ------------------------------------------------------------------ #
    # HTTP plumbing
    # ------------------------------------------------------------------ #

    def _url(self, table: str) -> str:
        return f"{self.base_url}/rest/v1/{table}"

    def _send(
        self,
        operation: str,
        method: str,
        table: str,
        *,
        params: Optional[Dict[str, str]] = None,
        json: Any = None,
        prefer: Optional[str] = None,
    ) -> Any:
        headers = {"Prefer": prefer} if prefer else None
        try:
            resp = self.session.request(
                method,
                self._url(table),
                params=params,
                json=json,
                headers=headers,
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise StoreError(f"{operation}: {exc}", operation=operation) from exc

        if resp.status_code >= 400:
            try:
                message = resp.json().get("message") or resp.text
            except ValueError:
                message = resp.text
            raise StoreError(f"{operation}: HTTP {resp.status_code} {message}", operation=operation)

        if not resp.content:
            return None
        try:
            return resp.json()
        except ValueError as exc:
            raise StoreError(f"{operation}: response is not JSON", operation=operation) from exc

    async def _call(self, *args: Any, **kwargs: Any) -> Any:
        return await asyncio.to_thread(self._send, *args, **kwargs)

    @staticmethod
    def _rows(payload: Any, operation: str) -> List[Row]:
        if payload is None:
            return []
        if not isinstance(payload, list):
            raise StoreError(f"{operation}: expected a JSON array", operation=operation)
        return payload

    # ------------------------------------------------------------------ #
    # RemoteStore
    # ------------------------------------------------------------------ #

    async def create(self, kind: EntityKind, item: Any) -> Any:
        rows = self._rows(
            await self._call("create", "POST", TABLES[kind], json=to_row(kind, item), prefer="return=representation"),
            "create",
        )
        if not rows:
            raise StoreError("create: no row returned", operation="create")

        if kind == EntityKind.POST:
            tagged = sorted(item.tagged_person_ids)
            if tagged:
                try:
                    await self.tag_post(rows[0]["id"], tagged, item.owner_id)
                except PartialTagError as exc:
                    # The post itself is saved; tags are best-effort.
                    log.error("create post %s: tagging failed: %s", rows[0]["id"], exc)
                    tagged = []
            return row_to_post(rows[0], tagged)
        return from_row(kind, rows[0])

    async def bulk_upsert(self, kind: EntityKind, items: List[Any]) -> List[Any]:
        payload = [to_row(kind, item) for item in items]
        rows = self._rows(
            await self._call(
                "bulk_upsert",
                "POST",
                TABLES[kind],
                params={"on_conflict": "id"},
                json=payload,
                prefer="resolution=merge-duplicates,return=representation",
            ),
            "bulk_upsert",
        )
        return [from_row(kind, r) for r in rows]

    async def list(self, kind: EntityKind, owner_id: str) -> List[Any]:
        select = "*,post_people(profile_id)" if kind == EntityKind.POST else "*"
        rows = self._rows(
            await self._call(
                "list",
                "GET",
                TABLES[kind],
                params={"select": select, "user_id": f"eq.{owner_id}", "order": _ORDER[kind]},
            ),
            "list",
        )
        return [from_row(kind, r) for r in rows]

    async def update(self, kind: EntityKind, entity_id: str, fields: dict) -> None:
        await self._call(
            "update",
            "PATCH",
            TABLES[kind],
            params={"id": f"eq.{entity_id}"},
            json={k: v for k, v in fields.items() if k != "id"},
        )

    async def delete(self, kind: EntityKind, entity_id: str) -> None:
        await self._call("delete", "DELETE", TABLES[kind], params={"id": f"eq.{entity_id}"})

    async def tag_post(self, post_id: str, person_ids: Iterable[str], owner_id: str) -> None:
        rows = [{"post_id": post_id, "profile_id": pid, "user_id": owner_id} for pid in person_ids]
        await self._tag("tag_post", POST_TAG_TABLE, rows)

    async def untag_post(self, post_id: str, person_ids: Iterable[str], owner_id: str) -> None:
        ids = sorted(set(person_ids))
        if not ids:
            return
        params = {"post_id": f"eq.{post_id}", "profile_id": f"in.({','.join(ids)})"}
        try:
            await self._call("untag_post", "DELETE", POST_TAG_TABLE, params=params)
        except StoreError as exc:
            raise PartialTagError(str(exc), operation="untag_post") from exc

    async def tag_media(self, media_id: str, person_ids: Iterable[str], owner_id: str) -> None:
        rows = [{"media_id": media_id, "profile_id": pid, "user_id": owner_id} for pid in person_ids]
        await self._tag("tag_media", MEDIA_TAG_TABLE, rows)

    async def _tag(self, operation: str, table: str, rows: List[Row]) -> None:
        if not rows:
            return
        try:
            await self._call(operation, "POST", table, json=rows)
        except StoreError as exc:
            raise PartialTagError(str(exc), operation=operation) from exc

    async def close(self) -> None:
        self.session.close()
