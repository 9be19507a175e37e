from __future__ import annotations

from .entities import (
    FamilyLinks,
    FamilyRecord,
    IndividualRecord,
    RecordGraph,
)

__all__ = [
    "FamilyLinks",
    "FamilyRecord",
    "IndividualRecord",
    "RecordGraph",
]
