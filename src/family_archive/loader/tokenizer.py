# src/family_archive/loader/tokenizer.py

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Optional, Union

from family_archive.logging import get_logger

log = get_logger(__name__)


@dataclass(frozen=True)
class Token:
    """
    A single GEDCOM line token.

    Attributes:
        lineno: 1-based line number in the original text.
        level: Parsed GEDCOM level (0, 1, 2, ...).
        pointer: The line's own cross-reference id, e.g. "@I1@" in
            "0 @I1@ INDI", or None.
        tag: GEDCOM tag, e.g. "INDI", "FAM", "NAME", "CONC".
        value: The raw line value (payload) as a string (may be empty).
        raw: The original line content without trailing newline characters.
    """
    lineno: int
    level: int
    pointer: Optional[str]
    tag: str
    value: str
    raw: str

    @property
    def ref(self) -> Optional[str]:
        """The value when it is itself a cross-reference ("1 FAMS @F1@")."""
        v = self.value.strip()
        if len(v) > 2 and v.startswith("@") and v.endswith("@") and " " not in v:
            return v
        return None


class GedcomSyntaxError(ValueError):
    """Raised when a GEDCOM line cannot be parsed according to basic syntax."""


def _strip_eol(line: str) -> str:
    return line.rstrip("\r\n")


def tokenize_line(line: str, lineno: int = 0) -> Token:
    """
    Parse a single GEDCOM line into a Token.

    Required order: <level> [<pointer>] <tag> [<value>]

    Examples:
        "0 HEAD"
        "0 @I1@ INDI"
        "1 NAME John /Doe/"
        "1 FAMS @F1@"
    """
    raw = _strip_eol(line)

    if lineno == 1 and raw.startswith("\ufeff"):
        raw = raw.lstrip("\ufeff")

    text = raw.lstrip()
    if not text:
        raise GedcomSyntaxError(f"Line {lineno}: empty or whitespace-only line")

    # --- 1. Level ---------------------------------------------------------
    parts = text.split(None, 1)
    level_str = parts[0]
    if not level_str.isdigit():
        raise GedcomSyntaxError(
            f"Line {lineno}: level is not numeric -> {level_str!r} in {raw!r}"
        )
    if len(parts) == 1:
        raise GedcomSyntaxError(f"Line {lineno}: missing tag (only level found) -> {raw!r}")

    level = int(level_str)
    rest = parts[1].lstrip()

    # --- 2. Optional pointer ---------------------------------------------
    pointer: Optional[str] = None
    if rest.startswith("@"):
        ptr_parts = rest.split(None, 1)
        if len(ptr_parts) == 1:
            raise GedcomSyntaxError(f"Line {lineno}: pointer present but no tag -> {raw!r}")
        pointer, rest = ptr_parts[0], ptr_parts[1].lstrip()

    # --- 3. Tag and optional value ---------------------------------------
    if " " in rest:
        tag, value = rest.split(" ", 1)
    else:
        tag, value = rest, ""

    if not tag or tag.startswith("@"):
        raise GedcomSyntaxError(f"Line {lineno}: missing tag after level/pointer -> {raw!r}")

    return Token(
        lineno=lineno,
        level=level,
        pointer=pointer,
        tag=tag.upper(),
        value=value,
        raw=raw,
    )


def tokenize_text(text: str) -> Iterator[Token]:
    """
    Yield a Token for every well-formed line of ``text``, in order.

    Blank lines and malformed lines are skipped so that minor corruption in
    an export never aborts an import. Single pass; the generator cannot be
    restarted.
    """
    skipped = 0
    for lineno, raw_line in enumerate(text.splitlines(), start=1):
        if not raw_line.strip() or raw_line.strip() == "\ufeff":
            continue
        try:
            yield tokenize_line(raw_line, lineno=lineno)
        except GedcomSyntaxError as exc:
            skipped += 1
            log.debug("Skipping malformed line: %s", exc)

    if skipped:
        log.warning("Skipped %d malformed GEDCOM line(s)", skipped)


def read_gedcom(path: Union[str, Path]) -> str:
    """Read a GEDCOM file wholesale (UTF-8, undecodable bytes replaced)."""
    file_path = Path(path)
    if not file_path.is_file():
        raise FileNotFoundError(f"GEDCOM file not found: {file_path}")
    return file_path.read_text(encoding="utf-8", errors="replace")


def tokenize_file(path: Union[str, Path]) -> Iterator[Token]:
    """Read ``path`` in full, then tokenize it with tokenize_text()."""
    return tokenize_text(read_gedcom(path))
