from __future__ import annotations

import re
from typing import Optional

from family_archive.events.event import extract_events
from family_archive.loader.segmenter import GEDCOMNode
from family_archive.registry.entities import IndividualRecord

_SPACES = re.compile(r"\s+")


def clean_name(raw: Optional[str]) -> str:
    """'John /Doe/' -> 'John Doe'."""
    if not raw:
        return ""
    return _SPACES.sub(" ", raw.replace("/", " ")).strip()


def _name_from_parts(name_node: GEDCOMNode) -> str:
    given = name_node.first_value("GIVN") or ""
    surname = name_node.first_value("SURN") or ""
    return clean_name(f"{given} {surname}")


def build_individual(node: GEDCOMNode) -> IndividualRecord:
    """
    Build an IndividualRecord from an INDI node.

    Pure: no graph access, no cross-record linking.
    """
    if node.tag != "INDI":
        raise ValueError(f"Expected INDI node, got {node.tag}")
    if not node.pointer:
        raise ValueError("INDI node is missing pointer")

    individual = IndividualRecord(pointer=node.pointer, lineno=node.lineno)

    # First NAME wins; GIVN/SURN fill in when the line value is empty.
    name_node = node.find_first("NAME")
    if name_node is not None:
        individual.name = clean_name(name_node.value) or _name_from_parts(name_node)

    sex = node.first_value("SEX")
    individual.sex = sex.upper() if sex else None

    individual.events.extend(extract_events(node))

    for child in node.children:
        if child.tag == "FAMS" and child.ref:
            individual.families_as_spouse.append(child.ref)
        elif child.tag == "FAMC" and child.ref:
            individual.families_as_child.append(child.ref)
        elif child.tag == "NOTE":
            # Pointer notes (@N1@) reference shared NOTE records, skipped here.
            text = (child.value or "").strip()
            if text and not child.ref:
                individual.notes.append(text)
        elif child.tag == "SOUR":
            citation = child.ref or (child.value or "").strip()
            if citation and citation not in individual.sources:
                individual.sources.append(citation)
        elif child.tag == "OBJE" and individual.image_file is None:
            individual.image_file = child.first_value("FILE")

    return individual
