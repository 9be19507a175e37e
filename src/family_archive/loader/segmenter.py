# src/family_archive/loader/segmenter.py

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Iterator, List, Optional

from family_archive.logging import get_logger

from .tokenizer import Token

log = get_logger(__name__)


@dataclass
class GEDCOMNode:
    """
    A hierarchical GEDCOM node produced from the flat token stream.

    Attributes:
        level: GEDCOM level number (0 for records, >0 for substructures).
        tag: The GEDCOM tag (INDI, BIRT, DATE, NOTE, ...).
        value: The tag value; CONC/CONT continuations are folded in by
            build_tree().
        pointer: The record's own @XREF@ (level-0 records only).
        lineno: Line number in the original text.
        children: Nested nodes in file order.
    """

    level: int
    tag: str
    value: str = ""
    pointer: Optional[str] = None
    lineno: int = 0
    children: List["GEDCOMNode"] = field(default_factory=list)

    @property
    def ref(self) -> Optional[str]:
        """The value when it is a cross-reference, e.g. CHIL @I3@."""
        v = (self.value or "").strip()
        if len(v) > 2 and v.startswith("@") and v.endswith("@") and " " not in v:
            return v
        return None

    def add_child(self, child: "GEDCOMNode") -> None:
        self.children.append(child)

    def find_children(self, tag: str) -> List["GEDCOMNode"]:
        """Return all direct children of this node with a given tag."""
        return [c for c in self.children if c.tag == tag]

    def find_first(self, tag: str) -> Optional["GEDCOMNode"]:
        """Return the first direct child with this tag, or None."""
        for c in self.children:
            if c.tag == tag:
                return c
        return None

    def first_value(self, tag: str) -> Optional[str]:
        child = self.find_first(tag)
        if child is None:
            return None
        return (child.value or "").strip() or None

    def iter_subtree(self) -> Iterator["GEDCOMNode"]:
        """Yield this node and all descendants in depth-first order."""
        yield self
        for child in self.children:
            yield from child.iter_subtree()

    def __repr__(self) -> str:
        ptr = f" {self.pointer}" if self.pointer else ""
        return f"<GEDCOMNode {self.level}{ptr} {self.tag}: {self.value!r}>"


def segment_lines(tokens: Iterable[Token]) -> List[GEDCOMNode]:
    """
    Convert a flat token stream into level-0 root nodes with nested children.

    Rules:
        - Level 0 tokens start a new root.
        - Level N attaches to the nearest open node at level N-1.
        - A level that jumps ahead (3 after 1) attaches to the deepest open
          node instead of failing.
        - Non-zero levels before the first root are dropped.
    """
    roots: List[GEDCOMNode] = []
    stack: List[GEDCOMNode] = []  # stack[i] = open node at depth i

    for tok in tokens:
        node = GEDCOMNode(
            level=tok.level,
            tag=tok.tag,
            value=tok.value,
            pointer=tok.pointer if tok.level == 0 else None,
            lineno=tok.lineno,
        )

        if tok.level == 0:
            roots.append(node)
            stack = [node]
            continue

        if not stack:
            log.debug("Line %d: dropping level-%d line outside any record", tok.lineno, tok.level)
            continue

        if tok.level > len(stack):
            log.debug(
                "Line %d: level jumped from %d to %d; attaching to deepest node",
                tok.lineno, len(stack) - 1, tok.level,
            )
            depth = len(stack)
        else:
            depth = tok.level

        stack = stack[:depth]
        stack[-1].add_child(node)
        stack.append(node)

    return roots
