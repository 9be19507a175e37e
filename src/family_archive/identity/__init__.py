from .uuid_factory import (
    new_id,
    normalize_pointer,
    uuid_for_event,
    uuid_for_memory,
    uuid_for_person,
    uuid_for_tree,
)

__all__ = [
    "new_id",
    "normalize_pointer",
    "uuid_for_event",
    "uuid_for_memory",
    "uuid_for_person",
    "uuid_for_tree",
]
