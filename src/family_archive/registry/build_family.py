from __future__ import annotations

from family_archive.events.event import extract_events
from family_archive.loader.segmenter import GEDCOMNode
from family_archive.registry.entities import FamilyRecord


def build_family(node: GEDCOMNode) -> FamilyRecord:
    """
    Build a FamilyRecord from a FAM node.

    PURE FUNCTION:
      - no graph access
      - no cross-record linking

    Extra HUSB/WIFE lines after the first are ignored; CHIL lines are kept
    in order without duplicates.
    """
    if node.tag != "FAM":
        raise ValueError(f"Expected FAM node, got {node.tag}")
    if not node.pointer:
        raise ValueError("FAM node is missing pointer")

    family = FamilyRecord(pointer=node.pointer, lineno=node.lineno)

    husb = node.find_first("HUSB")
    wife = node.find_first("WIFE")
    family.husband = husb.ref if husb is not None else None
    family.wife = wife.ref if wife is not None else None

    for chil in node.find_children("CHIL"):
        if chil.ref and chil.ref not in family.children:
            family.children.append(chil.ref)

    family.events.extend(extract_events(node))
    return family
