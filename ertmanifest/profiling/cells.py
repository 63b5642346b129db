"""Raw cell classification: missing versus a candidate typed value."""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Any

MISSING_TOKENS: frozenset[str] = frozenset(
    token.casefold()
    for token in (
        "", "NA", "N/A", "NULL", "NaN", ".", "-", "--", "missing", "None",
        "#N/A", "#VALUE!", "#REF!", "#DIV/0!", "#NUM!", "#NAME?", "#NULL!",
    )
)

_INT_RE = re.compile(r"^[+-]?\d+$")
_FLOAT_RE = re.compile(r"^[+-]?(?:\d+\.\d*|\.\d+|\d+)(?:[eE][+-]?\d+)?$")
_I64_MIN, _I64_MAX = -(2 ** 63), 2 ** 63 - 1


class CellKind(str, Enum):
    MISSING = "missing"
    INTEGER = "integer"
    FLOAT = "float"
    BOOLEAN = "boolean"
    TEXT = "text"


@dataclass(frozen=True, eq=False)
class CellValue:
    """One classified cell.

    ``text`` is the trimmed source token (or the canonical string form of a
    native typed cell); pattern checks work on it. Equality and hashing go by
    ``key``, so ``7`` and ``07`` are the same value in tallies.
    """
    kind: CellKind
    value: int | float | bool | str | None = None
    text: str = ""

    @property
    def is_missing(self) -> bool:
        return self.kind is CellKind.MISSING

    @property
    def is_numeric(self) -> bool:
        return self.kind in (CellKind.INTEGER, CellKind.FLOAT)

    @property
    def key(self) -> tuple:
        if self.kind is CellKind.TEXT:
            return (self.kind, self.text)
        return (self.kind, self.value)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CellValue):
            return NotImplemented
        return self.key == other.key

    def __hash__(self) -> int:
        return hash(self.key)


MISSING = CellValue(CellKind.MISSING)


def classify_cell(raw: Any, missing_tokens: frozenset[str] = MISSING_TOKENS) -> CellValue:
    """Classify a raw token or a native typed cell.

    Strings are trimmed and compared case-insensitively against
    *missing_tokens*; integer-looking tokens that fit in 64 bits become
    ``INTEGER``, other finite decimal tokens ``FLOAT``; everything else
    (``1e400`` included) is ``TEXT``.
    """
    if raw is None:
        return MISSING
    if isinstance(raw, bool):
        return CellValue(CellKind.BOOLEAN, raw, "true" if raw else "false")
    if isinstance(raw, int):
        return CellValue(CellKind.INTEGER, int(raw), str(int(raw)))
    if isinstance(raw, float):
        if math.isnan(raw):
            return MISSING
        if math.isinf(raw):
            return CellValue(CellKind.TEXT, str(raw), str(raw))
        return CellValue(CellKind.FLOAT, raw, repr(raw))
    if isinstance(raw, datetime):
        text = raw.isoformat()
        return CellValue(CellKind.TEXT, text, text)
    if isinstance(raw, date):
        text = raw.isoformat()
        return CellValue(CellKind.TEXT, text, text)
    if not isinstance(raw, str):
        # numpy scalars and similar reader-native types
        item = getattr(raw, "item", None)
        if callable(item):
            return classify_cell(item(), missing_tokens)
        raw = str(raw)

    text = raw.strip()
    if text.casefold() in missing_tokens:
        return MISSING
    if _INT_RE.match(text):
        try:
            number = int(text)
        except ValueError:
            # beyond the interpreter's int string-conversion limit
            return CellValue(CellKind.TEXT, text, text)
        if _I64_MIN <= number <= _I64_MAX:
            return CellValue(CellKind.INTEGER, number, text)
        try:
            return _finite_float(float(number), text)
        except OverflowError:
            return CellValue(CellKind.TEXT, text, text)
    if _FLOAT_RE.match(text):
        return _finite_float(float(text), text)
    return CellValue(CellKind.TEXT, text, text)


def _finite_float(number: float, text: str) -> CellValue:
    # 1e400 parses to inf; it is not a usable measurement
    if math.isfinite(number):
        return CellValue(CellKind.FLOAT, number, text)
    return CellValue(CellKind.TEXT, text, text)
