from .exceptions import (
    ArchiveError,
    CacheClosedError,
    ParseError,
    PartialTagError,
    RowValidationError,
    StoreError,
    ValidationError,
)

__all__ = [
    "ArchiveError",
    "CacheClosedError",
    "ParseError",
    "PartialTagError",
    "RowValidationError",
    "StoreError",
    "ValidationError",
]
