"""
Reconciliation cache and its push plumbing.

    cache = ReconciliationCache(store, owner_id)
    await cache.load()
    cache.mutate(EntityKind.PERSON, lambda people: people + [new_person])
    await cache.flush()
"""

from .diff import Diff, compute_diff
from .dispatcher import PushDispatcher
from .reconcile import ReconciliationCache, SyncFailure

__all__ = [
    "Diff",
    "PushDispatcher",
    "ReconciliationCache",
    "SyncFailure",
    "compute_diff",
]
