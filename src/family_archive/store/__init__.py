from __future__ import annotations

from typing import Any, Optional

from .base import RemoteStore
from .memory import MemoryStore
from .rest import RestStore


def store_from_config(cfg: Any, *, owner_id: Optional[str] = None, access_token: Optional[str] = None) -> RemoteStore:
    """Pick the store backend named by ``store.backend``."""
    backend = (cfg.store.get("backend") or "memory").lower()
    if backend == "rest":
        return RestStore.from_config(cfg, access_token=access_token)
    if backend == "memory":
        return MemoryStore(session_owner=owner_id)
    raise ValueError(f"Unknown store backend: {backend!r}")


__all__ = [
    "MemoryStore",
    "RemoteStore",
    "RestStore",
    "store_from_config",
]
