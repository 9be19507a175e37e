# src/family_archive/loader/__init__.py

"""
Public interface for the GEDCOM loader stack.

    from family_archive.loader import tokenize_text, build_tree

    tree = build_tree(tokenize_text(text))
"""

from __future__ import annotations

from .segmenter import GEDCOMNode, segment_lines
from .tokenizer import (
    GedcomSyntaxError,
    Token,
    read_gedcom,
    tokenize_file,
    tokenize_line,
    tokenize_text,
)
from .tree_builder import GEDCOMTree, build_tree

__all__ = [
    "Token",
    "GedcomSyntaxError",
    "GEDCOMNode",
    "GEDCOMTree",
    "read_gedcom",
    "tokenize_file",
    "tokenize_line",
    "tokenize_text",
    "segment_lines",
    "build_tree",
]
