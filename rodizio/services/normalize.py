# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Name normalization for matching free-text references against stored names.
Pure function, no I/O.
"""

import re
import unicodedata
from typing import Any

_WHITESPACE = re.compile(r"\s+")


def normalize_name(value: Any) -> str:
    """Lowercase, strip diacritics, and collapse runs of whitespace.

    >>> normalize_name("  Márcia   Conceição ")
    'marcia conceicao'
    """
    if value is None:
        return ""
    decomposed = unicodedata.normalize("NFKD", str(value))
    stripped = "".join(c for c in decomposed if not unicodedata.combining(c))
    return _WHITESPACE.sub(" ", stripped.casefold()).strip()


def names_match(reference: Any, candidate: Any, allow_substring: bool = True) -> bool:
    """True when both sides normalize equal, or the reference is contained in the candidate."""
    ref = normalize_name(reference)
    if not ref:
        return False
    cand = normalize_name(candidate)
    if ref == cand:
        return True
    return allow_substring and ref in cand
