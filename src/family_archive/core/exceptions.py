from __future__ import annotations

from typing import Optional


class ArchiveError(Exception):
    """Base exception for family_archive failures."""


class ParseError(ArchiveError):
    """Raised when GEDCOM input is empty or holds no individuals."""


class ValidationError(ArchiveError):
    """Raised when caller input breaks an entity invariant."""


class StoreError(ArchiveError):
    """Raised when a remote store call fails."""

    def __init__(self, message: str, *, operation: str = "", chunk_index: Optional[int] = None):
        super().__init__(message)
        self.operation = operation
        self.chunk_index = chunk_index


class RowValidationError(StoreError):
    """Raised when a row read from the store does not match its schema."""


class PartialTagError(StoreError):
    """Raised when a join-relation (tagging) write fails after the primary write."""


class CacheClosedError(ArchiveError):
    """Raised when a torn-down cache is asked to mutate."""
