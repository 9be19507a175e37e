# src/family_archive/events/event.py

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, List, Optional

from family_archive.loader.segmenter import GEDCOMNode


# ---------------------------------------------------------------------------
# Event Tag Definitions (GEDCOM 5.5.1 common subset)
# ---------------------------------------------------------------------------

INDIVIDUAL_EVENT_TAGS: set[str] = {
    "BIRT", "CHR", "CHRA", "BAPM", "BARM", "BASM", "BLES",
    "ADOP", "CONF", "FCOM", "GRAD", "ORDN", "EMIG", "IMMI",
    "NATU", "CENS", "PROB", "WILL", "RETI", "DEAT", "BURI",
    "CREM", "OCCU", "RESI", "EVEN",
}

FAMILY_EVENT_TAGS: set[str] = {
    "MARR", "MARB", "MARC", "MARL", "MARS",
    "ENGA", "ANUL", "DIV", "DIVF",
}

EVENT_TYPE_MAP: Dict[str, str] = {
    "BIRT": "Birth",
    "CHR": "Christening",
    "CHRA": "Adult Christening",
    "BAPM": "Baptism",
    "BARM": "Bar Mitzvah",
    "BASM": "Bas Mitzvah",
    "BLES": "Blessing",
    "ADOP": "Adoption",
    "CONF": "Confirmation",
    "FCOM": "First Communion",
    "ORDN": "Ordination",
    "MARR": "Marriage",
    "MARB": "Marriage Banns",
    "MARC": "Marriage Contract",
    "MARL": "Marriage License",
    "MARS": "Marriage Settlement",
    "ENGA": "Engagement",
    "ANUL": "Annulment",
    "DIV": "Divorce",
    "DIVF": "Divorce Filed",
    "DEAT": "Death",
    "BURI": "Burial",
    "CREM": "Cremation",
    "EMIG": "Emigration",
    "IMMI": "Immigration",
    "NATU": "Naturalization",
    "CENS": "Census",
    "GRAD": "Graduation",
    "PROB": "Probate",
    "WILL": "Will",
    "OCCU": "Occupation",
    "RESI": "Residence",
    "RETI": "Retirement",
    "EVEN": "Event",
}

_YEAR_RE = re.compile(r"\b(\d{4})\b")


@dataclass(slots=True)
class EventRecord:
    """One dated life or family event as found in the file."""
    tag: str
    label: str
    date: Optional[str] = None
    place: Optional[str] = None
    value: Optional[str] = None
    lineno: int = 0


def is_event_tag(tag: Optional[str]) -> bool:
    t = (tag or "").upper()
    return t in INDIVIDUAL_EVENT_TAGS or t in FAMILY_EVENT_TAGS


def event_label(tag: str, node: Optional[GEDCOMNode] = None) -> str:
    """Readable event type; EVEN uses its TYPE child when present."""
    if node is not None and tag == "EVEN":
        custom = node.first_value("TYPE")
        if custom:
            return custom
    return EVENT_TYPE_MAP.get(tag, tag.title())


def extract_year(date: Optional[str]) -> str:
    """
    Year for display: the first four-digit year in a GEDCOM date
    ("ABT 12 MAR 1850" -> "1850"), else the trimmed raw text.
    """
    if not date:
        return ""
    m = _YEAR_RE.search(date)
    return m.group(1) if m else date.strip()


def extract_events(node: GEDCOMNode) -> List[EventRecord]:
    """
    Pull event substructures (BIRT, DEAT, MARR, ...) off a record node in
    file order. Only DATE, PLAC and the line value are kept.
    """
    events: List[EventRecord] = []
    for child in node.children:
        if not is_event_tag(child.tag):
            continue
        events.append(
            EventRecord(
                tag=child.tag,
                label=event_label(child.tag, child),
                date=child.first_value("DATE"),
                place=child.first_value("PLAC"),
                value=(child.value or "").strip() or None,
                lineno=child.lineno,
            )
        )
    return events
