from .engine import ImportResult, import_gedcom

__all__ = [
    "ImportResult",
    "import_gedcom",
]
