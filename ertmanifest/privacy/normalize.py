"""Locale-independent text folding shared by the name policy and the value sniffer."""

from __future__ import annotations

import re
import unicodedata

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")
_NAME_SEPARATORS = re.compile(r"[\s\-.]+")


def fold(text: str) -> str:
    """Decompose, strip combining marks and case-fold *text*.

    ``fold("CÔTÉ") == fold("Cote") == fold("côté") == "cote"``
    """
    decomposed = unicodedata.normalize("NFKD", text)
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return stripped.casefold()


def normalize_column_name(name: str) -> str:
    """Fold a header and turn camelCase and separators into underscores."""
    split = _CAMEL_BOUNDARY.sub("_", name.strip())
    return _NAME_SEPARATORS.sub("_", fold(split))
