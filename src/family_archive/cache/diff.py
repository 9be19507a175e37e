from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping

from family_archive.logging import get_logger
from family_archive.models import EntityKind
from family_archive.store.rows import Row, cache_row

log = get_logger(__name__)


@dataclass
class Diff:
    """
    Result of comparing a collection against its baseline rows.

    ``added`` and ``changed`` keep collection order; ``rows`` holds the wire
    row of every added or changed item.
    """

    added: List[Any] = field(default_factory=list)
    changed: List[Any] = field(default_factory=list)
    removed: List[str] = field(default_factory=list)
    rows: Dict[str, Row] = field(default_factory=dict)

    @property
    def empty(self) -> bool:
        return not (self.added or self.changed or self.removed)


def compute_diff(kind: EntityKind, baseline: Mapping[str, Row], items: Iterable[Any]) -> Diff:
    """
    Set difference between ``items`` and ``baseline`` (id -> row).

    Items are compared by their cached row form, so only fields that reach
    the store (post tags included) count as changes. Duplicate ids in ``items`` keep the last one.
    """
    diff = Diff()
    seen: Dict[str, Any] = {}
    for item in items:
        if item.id in seen:
            log.warning("Duplicate %s id %s in collection; keeping the last", kind.value, item.id)
        seen[item.id] = item

    for item_id, item in seen.items():
        row = cache_row(kind, item)
        old = baseline.get(item_id)
        if old is None:
            diff.added.append(item)
            diff.rows[item_id] = row
        elif old != row:
            diff.changed.append(item)
            diff.rows[item_id] = row

    diff.removed = [item_id for item_id in baseline if item_id not in seen]
    return diff
