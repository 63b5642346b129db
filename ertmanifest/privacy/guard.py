from __future__ import annotations

import math
import unicodedata
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from ertmanifest.privacy.bucketing import bucket_count
from ertmanifest.privacy.phi_detector import PatternKind, ValuePhiSniffer
from ertmanifest.privacy.policy import MAX_STRING_LEN, PrivacyConfig
from ertmanifest.privacy.suppression import SuppressionDecision, SuppressionReason
from ertmanifest.profiling.cells import CellKind, CellValue
from ertmanifest.profiling.inference import TypeState

# Only this module holds the token; SafeValue refuses construction without it.
_GUARD_TOKEN = object()

_DETAIL_VALUES = frozenset(k.value for k in PatternKind) | frozenset(s.value for s in TypeState)


def check_reason(reason: str) -> str:
    """Return *reason* unchanged if it parses as ``<SuppressionReason>[: <detail>]``.

    Raises ValueError for anything outside the closed vocabulary.
    """
    head, _, detail = reason.partition(": ")
    SuppressionReason(head)
    if detail and detail not in _DETAIL_VALUES:
        raise ValueError(f"Unknown suppression detail: {detail!r}")
    return reason


class SafeValueKind(str, Enum):
    INTEGER = "integer"
    FLOAT = "float"
    BOOLEAN = "boolean"
    SHORT_STRING = "short_string"
    SUPPRESSED = "suppressed"


@dataclass(frozen=True)
class SafeValue:
    """A value cleared for the manifest.

    Instances come from :class:`SafeValueGuard` only. Building one directly
    (or through ``dataclasses.replace``) raises ``TypeError``.
    """
    kind: SafeValueKind
    value: int | float | bool | str | None = None
    reason: str | None = None
    _token: object = field(default=None, repr=False, compare=False)

    def __post_init__(self) -> None:
        if self._token is not _GUARD_TOKEN:
            raise TypeError("SafeValue can only be constructed by SafeValueGuard")
        # The token is spent on construction so copies cannot reuse it.
        object.__setattr__(self, "_token", None)

    @property
    def is_suppressed(self) -> bool:
        return self.kind is SafeValueKind.SUPPRESSED

    def to_dict(self) -> dict[str, Any]:
        if self.is_suppressed:
            return {"type": self.kind.value, "reason": self.reason}
        return {"type": self.kind.value, "value": self.value}


class SafeValueGuard:
    """The only constructor path for values that may appear in a manifest.

    Every string is length-checked, scanned for control characters and run
    through the value PHI patterns; anything failing comes back as a
    ``suppressed`` value carrying a reason from the closed vocabulary.
    """

    def __init__(
        self,
        config: PrivacyConfig | None = None,
        sniffer: ValuePhiSniffer | None = None,
    ) -> None:
        self.config = config or PrivacyConfig()
        self._sniffer = sniffer or ValuePhiSniffer()

    # ------------------------------------------------------------------
    # Primitive constructors
    # ------------------------------------------------------------------

    def integer(self, value: int) -> SafeValue:
        if isinstance(value, bool) or not isinstance(value, int):
            raise TypeError(f"Expected int, got {type(value).__name__}")
        return SafeValue(SafeValueKind.INTEGER, int(value), _token=_GUARD_TOKEN)

    def float(self, value: float) -> SafeValue:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise TypeError(f"Expected float, got {type(value).__name__}")
        if not math.isfinite(value):
            return self.suppressed(SuppressionReason.NON_FINITE)
        return SafeValue(SafeValueKind.FLOAT, float(value), _token=_GUARD_TOKEN)

    def boolean(self, value: bool) -> SafeValue:
        if not isinstance(value, bool):
            raise TypeError(f"Expected bool, got {type(value).__name__}")
        return SafeValue(SafeValueKind.BOOLEAN, value, _token=_GUARD_TOKEN)

    def short_string(self, text: str) -> SafeValue:
        return self._short_string(text)

    def column_name(self, text: str) -> SafeValue:
        """A header as a short string: every check except the long-identifier
        pattern, which headers such as ``Week12Score`` would trip.
        """
        return self._short_string(text, skip=(PatternKind.LONG_ID,))

    def _short_string(self, text: str, skip: tuple[PatternKind, ...] = ()) -> SafeValue:
        if not isinstance(text, str):
            raise TypeError(f"Expected str, got {type(text).__name__}")
        limit = min(self.config.max_string_len, MAX_STRING_LEN)
        if len(text) > limit:
            return self.suppressed(SuppressionReason.STRING_TOO_LONG)
        if any(unicodedata.category(ch).startswith("C") for ch in text):
            return self.suppressed(SuppressionReason.CONTROL_CHARACTERS)
        kind = self._sniffer.match(text, include_names=False, skip=skip)
        if kind is not None:
            return self.suppressed(SuppressionReason.VALUE_PHI_PATTERN, kind)
        return SafeValue(SafeValueKind.SHORT_STRING, text, _token=_GUARD_TOKEN)

    def suppressed(self, reason: SuppressionReason, detail: Enum | None = None) -> SafeValue:
        if not isinstance(reason, SuppressionReason):
            raise TypeError("Suppression reasons must come from SuppressionReason")
        if detail is not None and not isinstance(detail, Enum):
            raise TypeError("Suppression detail must be an enum member")
        return SafeValue(
            SafeValueKind.SUPPRESSED, reason=reason.render(detail), _token=_GUARD_TOKEN
        )

    # ------------------------------------------------------------------
    # Composite constructors
    # ------------------------------------------------------------------

    def count(self, n: int) -> SafeValue:
        """A count as a bucket label, or exact when the config allows it."""
        if self.config.bucketed:
            return self.short_string(bucket_count(n))
        return self.integer(n)

    def reason(self, reason: str) -> SafeValue:
        """Wrap an already-rendered reason string; it must parse back into the vocabulary."""
        return SafeValue(
            SafeValueKind.SUPPRESSED, reason=check_reason(reason), _token=_GUARD_TOKEN
        )

    def cleared_value(self, cell: CellValue, decision: SuppressionDecision) -> SafeValue:
        """Render a categorical value, provided the decision cleared it."""
        if not decision.exported or cell not in decision.cleared_values:
            return self.suppressed(SuppressionReason.NOT_CLEARED)
        return self.coerce(cell)

    def coerce(self, value: Any) -> SafeValue:
        """Route a scalar through the matching constructor.

        Containers are refused outright: a list, tuple or dict here means a raw
        row (or part of one) is about to be written.
        """
        if isinstance(value, SafeValue):
            return value
        if isinstance(value, (list, tuple, dict, set, frozenset)):
            raise TypeError(f"Refusing to export a raw {type(value).__name__}")
        if isinstance(value, CellValue):
            if value.kind is CellKind.BOOLEAN:
                return self.boolean(value.value)
            if value.kind is CellKind.INTEGER:
                return self.integer(value.value)
            if value.kind is CellKind.FLOAT:
                return self.float(value.value)
            if value.kind is CellKind.TEXT:
                return self.short_string(value.text)
            raise TypeError("Missing cells have no exportable value")
        if isinstance(value, bool):
            return self.boolean(value)
        if isinstance(value, int):
            return self.integer(value)
        if isinstance(value, float):
            return self.float(value)
        if isinstance(value, str):
            return self.short_string(value)
        raise TypeError(f"Cannot export value of type {type(value).__name__}")
