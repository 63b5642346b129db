"""Column-level export decision.

:class:`SuppressionEngine` runs an ordered, short-circuiting list of checks
over a finalized :class:`~ertmanifest.profiling.column.ColumnProfile`. The
first failing check supplies the reason; only a column that passes every
check has its categorical values cleared for export.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum

from ertmanifest.privacy.normalize import normalize_column_name
from ertmanifest.privacy.phi_detector import ValuePhiSniffer
from ertmanifest.privacy.policy import ColumnClassification, PrivacyConfig
from ertmanifest.profiling.cells import CellKind, CellValue
from ertmanifest.profiling.column import ColumnProfile
from ertmanifest.profiling.inference import BOOLEAN_TOKENS, TypeState

logger = logging.getLogger(__name__)


class SuppressionReason(str, Enum):
    """Closed vocabulary of reasons; a reason never carries column data."""
    COLUMN_NAME_PHI = "column name PHI match"
    NO_VALUES = "no values"
    TYPE_NOT_EXPORTABLE = "type not exportable"
    N_ROWS_BELOW_K = "n_rows below k"
    HIGH_CARDINALITY = "high cardinality"
    VALUE_COUNT_BELOW_K = "value count below k"
    STRING_TOO_LONG = "string too long"
    NOT_CODE_LIKE = "values not code-like"
    WORDS_IN_IDENTIFYING_COLUMN = "word values in identifying column"
    MIXED_ALPHANUMERIC = "mixed letter and digit values"
    VALUE_PHI_PATTERN = "value PHI pattern"
    CONTROL_CHARACTERS = "control characters"
    NON_FINITE = "non-finite number"
    NOT_CLEARED = "value not cleared for export"

    def render(self, detail: Enum | None = None) -> str:
        """``"<reason>"`` or ``"<reason>: <detail>"`` for an enum *detail*."""
        if detail is None:
            return self.value
        return f"{self.value}: {detail.value}"


_EXPORTABLE_TYPES = frozenset(
    {TypeState.INTEGER, TypeState.NUMERIC, TypeState.BOOLEAN, TypeState.STRING}
)

# Letters-only values are never code-like in columns whose names hint at people or places.
_WORD_BLOCKING_TOKENS = ("provider", "site", "name", "hospital", "physician", "nurse")

# Numeric codes may carry a single letter at either end (E11.9, 4b).
_NUMERIC_CODE = re.compile(r"^[+-]?[A-Za-z]?\d+(?:[.-]\d+)*[A-Za-z]?$")
_SINGLE_WORD = re.compile(r"^[^\W\d_]+$")
_HAS_LETTER = re.compile(r"[^\W\d_]")
_HAS_DIGIT = re.compile(r"\d")

CODE_LIKE_MIN_RATIO = 0.8
MIXED_ALNUM_MAX_RATIO = 0.3


@dataclass(frozen=True)
class SuppressionDecision:
    """Outcome for one column.

    ``cleared_values`` lists the only values the guard may render for this
    column; it is empty unless ``exported`` is true.
    """
    exported: bool
    reason: str | None
    classification: ColumnClassification
    stats_suppressed: bool = False
    stats_reason: str | None = None
    cleared_values: tuple[CellValue, ...] = ()


class SuppressionEngine:
    """Combine name policy, type, cardinality, k and value checks into one decision."""

    def __init__(self, sniffer: ValuePhiSniffer | None = None) -> None:
        self.sniffer = sniffer or ValuePhiSniffer()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def decide(self, profile: ColumnProfile, config: PrivacyConfig) -> SuppressionDecision:
        classification = profile.name_result.classification
        if profile.unique_capped:
            classification = classification.escalate(ColumnClassification.HIGH_CARDINALITY)
        if profile.dtype is TypeState.FREE_TEXT:
            classification = classification.escalate(ColumnClassification.FREE_TEXT)

        stats_suppressed, stats_reason = self._stats_suppression(profile, config)

        def suppress(reason: str, escalate_to: ColumnClassification | None = None) -> SuppressionDecision:
            final = classification.escalate(escalate_to) if escalate_to else classification
            logger.debug("Column %d not exported: %s", profile.index, reason)
            return SuppressionDecision(
                exported=False,
                reason=reason,
                classification=final,
                stats_suppressed=stats_suppressed,
                stats_reason=stats_reason,
            )

        # 1. name policy
        if profile.name_result.is_phi:
            return suppress(SuppressionReason.COLUMN_NAME_PHI.value)
        if profile.non_missing_count == 0:
            return suppress(SuppressionReason.NO_VALUES.value)

        # 2. type eligibility
        if not profile.recoded:
            if profile.dtype not in _EXPORTABLE_TYPES:
                return suppress(SuppressionReason.TYPE_NOT_EXPORTABLE.render(profile.dtype))
            if profile.dtype is TypeState.STRING and profile.max_length > config.max_string_len:
                return suppress(SuppressionReason.STRING_TOO_LONG.value)

        # 3. k on the column
        if profile.non_missing_count < config.k:
            return suppress(SuppressionReason.N_ROWS_BELOW_K.value)

        # 4. cardinality
        if profile.tally_overflowed or profile.unique_capped:
            return suppress(
                SuppressionReason.HIGH_CARDINALITY.value,
                ColumnClassification.HIGH_CARDINALITY,
            )

        # 5. k on each value
        if any(count < config.k for _, count in profile.tally):
            return suppress(SuppressionReason.VALUE_COUNT_BELOW_K.value)

        candidates = tuple(value for value, _ in profile.tally)
        if not profile.recoded:
            # 6. short-string heuristic
            if profile.dtype is TypeState.STRING or any(
                c.kind is CellKind.TEXT for c in candidates
            ):
                failure = self._short_string_failure(profile, candidates, config)
                if failure is not None:
                    reason, escalate_to = failure
                    return suppress(reason, escalate_to)

            # 7. value sniffer
            kind = self.sniffer.scan(c.text for c in candidates)
            if kind is not None:
                return suppress(
                    SuppressionReason.VALUE_PHI_PATTERN.render(kind),
                    ColumnClassification.PHI,
                )

        return SuppressionDecision(
            exported=True,
            reason=None,
            classification=classification,
            stats_suppressed=stats_suppressed,
            stats_reason=stats_reason,
            cleared_values=candidates,
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _stats_suppression(profile: ColumnProfile, config: PrivacyConfig) -> tuple[bool, str | None]:
        if profile.name_result.is_phi:
            return True, SuppressionReason.COLUMN_NAME_PHI.value
        if profile.non_missing_count < config.k:
            return True, SuppressionReason.N_ROWS_BELOW_K.value
        return False, None

    def _short_string_failure(
        self,
        profile: ColumnProfile,
        candidates: tuple[CellValue, ...],
        config: PrivacyConfig,
    ) -> tuple[str, ColumnClassification | None] | None:
        texts = [c.text for c in candidates]
        if any(len(t) > config.max_string_len for t in texts):
            return SuppressionReason.STRING_TOO_LONG.value, None

        kind = self.sniffer.scan(texts)
        if kind is not None:
            return SuppressionReason.VALUE_PHI_PATTERN.render(kind), ColumnClassification.PHI

        normalized_name = normalize_column_name(profile.name)
        words_blocked = any(token in normalized_name for token in _WORD_BLOCKING_TOKENS)
        code_like = 0
        words = 0
        mixed = 0
        for text in texts:
            if _NUMERIC_CODE.match(text) or text.casefold() in BOOLEAN_TOKENS:
                code_like += 1
            elif _SINGLE_WORD.match(text):
                words += 1
                if not words_blocked:
                    code_like += 1
            if _HAS_LETTER.search(text) and _HAS_DIGIT.search(text):
                mixed += 1

        n = len(texts)
        if code_like < CODE_LIKE_MIN_RATIO * n:
            if words_blocked and code_like + words >= CODE_LIKE_MIN_RATIO * n:
                return SuppressionReason.WORDS_IN_IDENTIFYING_COLUMN.value, None
            return SuppressionReason.NOT_CODE_LIKE.value, None
        if mixed >= MIXED_ALNUM_MAX_RATIO * n:
            return SuppressionReason.MIXED_ALPHANUMERIC.value, None
        return None
