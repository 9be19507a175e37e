# src/family_archive/loader/tree_builder.py

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, List, Optional

from .segmenter import GEDCOMNode, segment_lines
from .tokenizer import Token


@dataclass
class GEDCOMTree:
    """
    Level-0 records of one GEDCOM text, with pointer and tag indexes.

    Attributes:
        records: Level-0 GEDCOMNode instances (HEAD, INDI, FAM, SOUR, ...)
            in file order.
    """

    records: List[GEDCOMNode]

    _pointer_index: Dict[str, GEDCOMNode] = field(default_factory=dict, init=False, repr=False)
    _tag_index: Dict[str, List[GEDCOMNode]] = field(default_factory=dict, init=False, repr=False)

    def __post_init__(self) -> None:
        for rec in self.records:
            if rec.pointer:
                # First definition wins on duplicate pointers.
                self._pointer_index.setdefault(rec.pointer, rec)
            self._tag_index.setdefault(rec.tag.upper(), []).append(rec)

    def __len__(self) -> int:  # pragma: no cover - trivial wrapper
        return len(self.records)

    def __iter__(self) -> Iterator[GEDCOMNode]:  # pragma: no cover - simple
        return iter(self.records)

    def iter_nodes(self) -> Iterator[GEDCOMNode]:
        """Depth-first over every node, roots included."""
        for root in self.records:
            yield from root.iter_subtree()

    def find_by_pointer(self, pointer: str) -> Optional[GEDCOMNode]:
        if not pointer:
            return None
        return self._pointer_index.get(pointer)

    def find_records_by_tag(self, tag: str) -> List[GEDCOMNode]:
        """Level-0 records with the given tag (case-insensitive)."""
        if not tag:
            return []
        return list(self._tag_index.get(tag.upper(), []))

    def __repr__(self) -> str:  # pragma: no cover - cosmetic
        return f"<GEDCOMTree records={len(self.records)}>"


def _join_continuations(node: GEDCOMNode) -> None:
    """
    Fold CONC (append) and CONT (newline + append) children into the parent
    value and drop them from the tree. Recurses into every other child.
    """
    value = node.value or ""
    kept: List[GEDCOMNode] = []

    for child in node.children:
        if child.tag == "CONC":
            value += child.value or ""
        elif child.tag == "CONT":
            value += "\n" + (child.value or "")
        else:
            _join_continuations(child)
            kept.append(child)

    node.value = value
    node.children = kept


def build_tree(tokens: Iterable[Token]) -> GEDCOMTree:
    """
    tokens -> GEDCOMTree(records=[GEDCOMNode, ...])

    Consumes the token stream once.
    """
    records = segment_lines(tokens)
    for rec in records:
        _join_continuations(rec)
    return GEDCOMTree(records=records)
