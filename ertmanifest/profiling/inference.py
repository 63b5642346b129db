"""Adaptive per-column type inference.

A column starts ``unknown``, is seeded from its first non-missing values and
then only ever widens. Counters cover every value observed, so a widening
decision made late in the scan sees the whole column, not just the sample.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from enum import Enum
from typing import Iterable

from ertmanifest.privacy.policy import TYPE_SAMPLE_SIZE
from ertmanifest.profiling.cells import CellKind, CellValue

TRUE_TOKENS = frozenset({"true", "t", "yes", "y", "1"})
FALSE_TOKENS = frozenset({"false", "f", "no", "n", "0"})
BOOLEAN_TOKENS = TRUE_TOKENS | FALSE_TOKENS

NUMERIC_FAILURE_TOLERANCE = 0.05
FREE_TEXT_AVG_LEN = 50

MONTH_FIRST = "mdy"
DAY_FIRST = "dmy"
_ORDERS = frozenset({MONTH_FIRST, DAY_FIRST})


class TypeState(str, Enum):
    UNKNOWN = "unknown"
    INTEGER = "integer"
    NUMERIC = "numeric"
    BOOLEAN = "boolean"
    DATE = "date"
    DATETIME = "datetime"
    STRING = "string"
    FREE_TEXT = "free_text"

    @property
    def is_temporal(self) -> bool:
        return self in (TypeState.DATE, TypeState.DATETIME)

    @property
    def is_numeric(self) -> bool:
        return self in (TypeState.INTEGER, TypeState.NUMERIC)


_S = TypeState
# States each state may still widen to (transitively closed).
_WIDER: dict[TypeState, frozenset[TypeState]] = {
    _S.UNKNOWN: frozenset(s for s in TypeState if s is not _S.UNKNOWN),
    _S.BOOLEAN: frozenset({_S.INTEGER, _S.NUMERIC, _S.STRING, _S.FREE_TEXT}),
    _S.INTEGER: frozenset({_S.NUMERIC, _S.STRING, _S.FREE_TEXT}),
    _S.NUMERIC: frozenset({_S.STRING, _S.FREE_TEXT}),
    _S.DATE: frozenset({_S.DATETIME, _S.STRING, _S.FREE_TEXT}),
    _S.DATETIME: frozenset({_S.STRING, _S.FREE_TEXT}),
    _S.STRING: frozenset({_S.FREE_TEXT}),
    _S.FREE_TEXT: frozenset(),
}


def widen(current: TypeState, candidate: TypeState) -> TypeState:
    """Least state at or above both; never moves toward a more specific type."""
    if current is candidate or current in _WIDER[candidate]:
        return current
    if candidate in _WIDER[current]:
        return candidate
    if _S.FREE_TEXT in (current, candidate):
        return _S.FREE_TEXT
    return _S.STRING


# ----------------------------------------------------------------------
# Temporal parsing
# ----------------------------------------------------------------------

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

_MONTHS = {
    name: i
    for i, names in enumerate(
        (
            ("jan", "january"), ("feb", "february"), ("mar", "march"),
            ("apr", "april"), ("may",), ("jun", "june"), ("jul", "july"),
            ("aug", "august"), ("sep", "sept", "september"),
            ("oct", "october"), ("nov", "november"), ("dec", "december"),
        ),
        start=1,
    )
    for name in names
}

_ISO_DATE = re.compile(r"^(\d{4})[-.](\d{2})[-.](\d{2})$")
_NUMERIC_DATE = re.compile(r"^(\d{1,2})([/-])(\d{1,2})\2(\d{4}|\d{2})$")
_MONTH_NAME_FIRST = re.compile(r"^([A-Za-z]{3,9})\.?\s+(\d{1,2}),?\s+(\d{4})$")
_DAY_FIRST_NAME = re.compile(r"^(\d{1,2})\s+([A-Za-z]{3,9})\.?,?\s+(\d{4})$")
_ISO_DATETIME = re.compile(
    r"^(\d{4})-(\d{2})-(\d{2})[T ](\d{2}):(\d{2})(?::(\d{2})(?:\.(\d{1,9}))?)?"
    r"(Z|[+-]\d{2}:?\d{2})?$"
)


@dataclass(frozen=True)
class TemporalReading:
    """A parsed date/datetime, with one timestamp per plausible field order.

    ``order_sensitive`` marks formats whose meaning depends on day/month order
    (``03/04/2024``), even when both readings happen to be valid.
    """
    is_datetime: bool
    readings: dict[str, float]
    order_sensitive: bool = False

    @property
    def orders(self) -> frozenset[str]:
        return frozenset(self.readings)


def _seconds(d: date | datetime) -> float:
    if isinstance(d, datetime):
        if d.tzinfo is None:
            d = d.replace(tzinfo=timezone.utc)
        return (d - _EPOCH).total_seconds()
    return float((d - _EPOCH.date()).days * 86400)


def _safe_date(year: int, month: int, day: int) -> date | None:
    try:
        return date(year, month, day)
    except ValueError:
        return None


def _expand_year(raw: str) -> int:
    year = int(raw)
    if len(raw) == 2:
        # same pivot as strptime's %y
        year += 1900 if year >= 69 else 2000
    return year


def _both(d: date | datetime) -> dict[str, float]:
    ts = _seconds(d)
    return {MONTH_FIRST: ts, DAY_FIRST: ts}


def parse_temporal(text: str) -> TemporalReading | None:
    """Parse *text* against the fixed date/datetime formats, or return None."""
    m = _ISO_DATETIME.match(text)
    if m:
        year, month, day, hour, minute = (int(g) for g in m.groups()[:5])
        second = int(m.group(6) or 0)
        micro = int((m.group(7) or "0")[:6].ljust(6, "0"))
        try:
            moment = datetime(year, month, day, hour, minute, second, micro, tzinfo=timezone.utc)
        except ValueError:
            return None
        offset = m.group(8)
        if offset and offset != "Z":
            sign = 1 if offset[0] == "+" else -1
            digits = offset[1:].replace(":", "")
            moment -= sign * timedelta(hours=int(digits[:2]), minutes=int(digits[2:]))
        return TemporalReading(True, _both(moment))

    m = _ISO_DATE.match(text)
    if m:
        d = _safe_date(int(m.group(1)), int(m.group(2)), int(m.group(3)))
        return TemporalReading(False, _both(d)) if d else None

    m = _NUMERIC_DATE.match(text)
    if m:
        first, second, year = int(m.group(1)), int(m.group(3)), _expand_year(m.group(4))
        readings: dict[str, float] = {}
        month_first = _safe_date(year, first, second)
        if month_first:
            readings[MONTH_FIRST] = _seconds(month_first)
        day_first = _safe_date(year, second, first)
        if day_first:
            readings[DAY_FIRST] = _seconds(day_first)
        return TemporalReading(False, readings, order_sensitive=True) if readings else None

    for pattern, month_group, day_group in ((_MONTH_NAME_FIRST, 1, 2), (_DAY_FIRST_NAME, 2, 1)):
        m = pattern.match(text)
        if m:
            month = _MONTHS.get(m.group(month_group).lower())
            if month is None:
                return None
            d = _safe_date(int(m.group(3)), month, int(m.group(day_group)))
            return TemporalReading(False, _both(d)) if d else None
    return None


def is_boolean_token(cell: CellValue) -> bool:
    if cell.kind is CellKind.BOOLEAN:
        return True
    return cell.text.strip().casefold() in BOOLEAN_TOKENS


# ----------------------------------------------------------------------
# Engine
# ----------------------------------------------------------------------


class TypeInferenceEngine:
    """Monotonic-widening type state machine for one column.

    ``observe`` buffers the first *sample_size* non-missing values and seeds
    from them; afterwards every value may widen the state. ``finalize`` reads
    the last state as the column's dtype.
    """

    def __init__(self, sample_size: int = TYPE_SAMPLE_SIZE) -> None:
        self.sample_size = sample_size
        self._state = TypeState.UNKNOWN
        self._samples: list[CellValue] | None = []

        self.n_observed = 0
        self._bool_ok = True
        self._numeric_seen = 0
        self._numeric_failures = 0
        self._any_decimal = False
        self._temporal_ok = True
        self._any_datetime = False
        self._order_sensitive = False
        self._orders = set(_ORDERS)
        self._total_len = 0
        self._max_len = 0

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def state(self) -> TypeState:
        return self._state

    @property
    def seeded(self) -> bool:
        return self._samples is None

    @property
    def max_length(self) -> int:
        return self._max_len

    @property
    def numeric_failures(self) -> int:
        return self._numeric_failures

    @property
    def ambiguous_dates(self) -> bool:
        """True when every value read as a date but day and month order never resolved."""
        return self._temporal_ok and self._order_sensitive and len(self._orders) > 1

    @property
    def date_order(self) -> str | None:
        """Field order the temporal values resolved to, if they resolved."""
        if not self._temporal_ok or not self._orders:
            return None
        if len(self._orders) == 1:
            return next(iter(self._orders))
        return None if self._order_sensitive else MONTH_FIRST

    def seed(self, samples: Iterable[CellValue], *, unique_capped: bool = False) -> TypeState:
        """Set the initial state from a batch of non-missing values."""
        for cell in samples:
            self._count(cell)
        self._samples = None
        self._state = widen(self._state, self._candidate(unique_capped))
        return self._state

    def observe(self, cell: CellValue, *, unique_capped: bool = False) -> TypeState:
        """Feed one non-missing value; return the (possibly widened) state."""
        if cell.is_missing:
            return self._state
        if self._samples is not None:
            self._samples.append(cell)
            if len(self._samples) >= self.sample_size:
                self.seed(self._samples, unique_capped=unique_capped)
            return self._state
        self._count(cell)
        self._state = widen(self._state, self._candidate(unique_capped))
        return self._state

    def finalize(self, *, unique_capped: bool = False) -> TypeState:
        if self._samples is not None:
            self.seed(self._samples, unique_capped=unique_capped)
        elif unique_capped:
            self._state = widen(self._state, self._candidate(unique_capped))
        return self._state

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _count(self, cell: CellValue) -> None:
        self.n_observed += 1
        length = len(cell.text)
        self._total_len += length
        self._max_len = max(self._max_len, length)

        if self._bool_ok and not is_boolean_token(cell):
            self._bool_ok = False

        if cell.is_numeric:
            self._numeric_seen += 1
            if cell.kind is CellKind.FLOAT:
                self._any_decimal = True
        else:
            self._numeric_failures += 1

        if self._temporal_ok:
            reading = parse_temporal(cell.text) if cell.kind is CellKind.TEXT else None
            if reading is None:
                self._temporal_ok = False
            else:
                self._any_datetime |= reading.is_datetime
                if reading.order_sensitive:
                    self._order_sensitive = True
                self._orders &= reading.orders
                if not self._orders:
                    self._temporal_ok = False

    def _candidate(self, unique_capped: bool) -> TypeState:
        n = self.n_observed
        if n == 0:
            return TypeState.UNKNOWN
        if self._bool_ok:
            return TypeState.BOOLEAN
        if self._numeric_seen and self._numeric_failures <= NUMERIC_FAILURE_TOLERANCE * n:
            return TypeState.NUMERIC if self._any_decimal else TypeState.INTEGER
        if self._temporal_ok:
            if self._order_sensitive and len(self._orders) > 1:
                # 03/04/2024 could be March or April; never guess.
                return TypeState.STRING
            return TypeState.DATETIME if self._any_datetime else TypeState.DATE
        if unique_capped or self._total_len / n > FREE_TEXT_AVG_LEN:
            return TypeState.FREE_TEXT
        return TypeState.STRING
