from .event import (
    EVENT_TYPE_MAP,
    EventRecord,
    FAMILY_EVENT_TAGS,
    INDIVIDUAL_EVENT_TAGS,
    event_label,
    extract_events,
    extract_year,
    is_event_tag,
)

__all__ = [
    "EVENT_TYPE_MAP",
    "EventRecord",
    "FAMILY_EVENT_TAGS",
    "INDIVIDUAL_EVENT_TAGS",
    "event_label",
    "extract_events",
    "extract_year",
    "is_event_tag",
]
