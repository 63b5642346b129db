from __future__ import annotations

import re
from enum import Enum
from typing import Iterable

from ertmanifest.privacy.names import PERSON_NAMES
from ertmanifest.privacy.normalize import fold


class PatternKind(str, Enum):
    """Kinds of identifying value the sniffer recognizes, in priority order."""
    EMAIL = "email"
    PHONE = "phone"
    SSN = "ssn"
    ZIP = "zip"
    POSTAL_CODE = "postal_code"
    IP_ADDRESS = "ip_address"
    URL = "url"
    MAC_ADDRESS = "mac_address"
    LONG_ID = "long_id"
    PERSON_NAME = "person_name"


# Whole-value patterns; a value matches only if the entire trimmed token fits.
_BUILTIN_PATTERNS: dict[PatternKind, str] = {
    PatternKind.EMAIL: r"^[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}$",
    PatternKind.PHONE: (
        r"^(?:(?:\+?1[-.\s]?)?\(?\d{3}\)?[-.\s]?\d{3}[-.\s]?\d{4}"
        r"|\+(?:\d[\s.-]?){7,13}\d)$"
    ),
    PatternKind.SSN: r"^\d{3}-?\d{2}-?\d{4}$",
    PatternKind.ZIP: r"^\d{5}(?:-\d{4})?$",
    PatternKind.POSTAL_CODE: r"^[A-Za-z]\d[A-Za-z][\s-]?\d[A-Za-z]\d$",
    PatternKind.IP_ADDRESS: (
        r"^(?:25[0-5]|2[0-4]\d|1?\d?\d)(?:\.(?:25[0-5]|2[0-4]\d|1?\d?\d)){3}$"
    ),
    PatternKind.URL: (
        r"^(?:(?:https?|ftp)://|www\.)\S+$"
        r"|^[A-Za-z0-9-]+(?:\.[A-Za-z0-9-]+)*"
        r"\.(?:com|org|net|edu|gov|ca|br|io|info|fr)(?:/\S*)?$"
    ),
    PatternKind.MAC_ADDRESS: r"^[0-9A-Fa-f]{2}(?:[:-][0-9A-Fa-f]{2}){5}$",
    PatternKind.LONG_ID: r"^(?=[A-Za-z0-9]*[A-Za-z])(?=[A-Za-z0-9]*\d)[A-Za-z0-9]{10,}$",
}

_TOKEN_SPLIT = re.compile(r"[\s,;/]+")
_MIN_NAME_TOKEN = 3


class ValuePhiSniffer:
    """Detect identifying values among a column's candidate export values.

    Regular expressions cover contact details and identifiers; a folded
    dictionary lookup covers person names, so ``CÔTÉ``, ``Cote`` and
    ``côté`` are all caught. Compiled patterns are shared by every instance.
    """

    _compiled: dict[PatternKind, re.Pattern] = {
        kind: re.compile(pattern) for kind, pattern in _BUILTIN_PATTERNS.items()
    }

    def __init__(self, names: frozenset[str] = PERSON_NAMES) -> None:
        self._names = names

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def scan(self, values: Iterable[str]) -> PatternKind | None:
        """Return the highest-priority pattern matched by any value, if any."""
        texts = [v.strip() for v in values if v and v.strip()]
        for kind in PatternKind:
            if any(self._matches(kind, text) for text in texts):
                return kind
        return None

    def match(
        self,
        value: str,
        *,
        include_names: bool = True,
        skip: Iterable[PatternKind] = (),
    ) -> PatternKind | None:
        """Return the first pattern a single value matches, ignoring kinds in *skip*."""
        text = value.strip()
        if not text:
            return None
        skipped = set(skip)
        if not include_names:
            skipped.add(PatternKind.PERSON_NAME)
        for kind in PatternKind:
            if kind in skipped:
                continue
            if self._matches(kind, text):
                return kind
        return None

    def is_person_name(self, value: str) -> bool:
        folded = fold(value.strip())
        if folded in self._names:
            return True
        return any(
            token in self._names
            for token in _TOKEN_SPLIT.split(folded)
            if len(token) >= _MIN_NAME_TOKEN
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _matches(self, kind: PatternKind, text: str) -> bool:
        if kind is PatternKind.PERSON_NAME:
            return self.is_person_name(text)
        return self._compiled[kind].match(text) is not None
