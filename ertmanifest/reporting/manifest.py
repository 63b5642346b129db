"""Assemble manifest records from column profiles and suppression decisions.

Nothing in this module builds an output value itself: every value passes
through :class:`SafeValueGuard`, and the pydantic schema refuses anything
else.
"""

from __future__ import annotations

from ertmanifest.privacy.bucketing import bucket_count
from ertmanifest.privacy.guard import SafeValue, SafeValueGuard
from ertmanifest.privacy.policy import ColumnClassification, PrivacyConfig
from ertmanifest.privacy.suppression import SuppressionDecision, SuppressionReason
from ertmanifest.profiling.column import ColumnProfile
from ertmanifest.profiling.inference import TypeState
from ertmanifest.profiling.stats import P2_APPROX, Stats, render_timestamp
from ertmanifest.schema.base import (
    ColumnRecord,
    ColumnStatsRecord,
    Manifest,
    Notice,
    NoticeCode,
    SheetRecord,
    ValueCount,
)

MANIFEST_VERSION = "1.0"

P2_MEDIAN_NOTE = "Approximate median (P-squared streaming estimate); not an exact value."
UNIQUE_CAPPED_NOTE = "Unique count reached the tracking cap; reported value is a lower bound."


class ManifestAssembler:
    """Turn finalized columns into schema records."""

    def __init__(self, config: PrivacyConfig, guard: SafeValueGuard | None = None) -> None:
        self.config = config
        self.guard = guard or SafeValueGuard(config)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def column_record(self, profile: ColumnProfile, decision: SuppressionDecision) -> ColumnRecord:
        guard = self.guard
        if profile.name_result.is_phi:
            name = guard.suppressed(SuppressionReason.COLUMN_NAME_PHI)
        else:
            name = guard.column_name(profile.name)

        values = None
        if decision.exported:
            values = [
                ValueCount(value=guard.cleared_value(cell, decision), count=guard.count(n))
                for cell, n in profile.tally
            ]

        if profile.unique_capped:
            unique = guard.short_string(bucket_count(profile.unique_count))
        else:
            unique = guard.count(profile.unique_count)

        return ColumnRecord(
            name=name,
            index=profile.index,
            dtype=profile.dtype,
            classification=decision.classification,
            exported_values=decision.exported,
            values=values,
            stats=self._stats_record(profile.stats, profile.dtype, decision.stats_suppressed),
            stats_suppressed=decision.stats_suppressed,
            stats_suppression_reason=decision.stats_reason,
            unique_count_bucketed=unique,
            unique_count_capped=profile.unique_capped,
            unique_count_note=UNIQUE_CAPPED_NOTE if profile.unique_capped else None,
            suppression_reason=decision.reason,
            notices=self._notices(profile),
        )

    def sheet_record(self, name: str, row_count: int, columns: list[ColumnRecord]) -> SheetRecord:
        return SheetRecord(
            name=self.guard.short_string(name),
            row_count=self.guard.count(row_count),
            columns=columns,
        )

    def manifest(
        self,
        file_name: str,
        file_format: str,
        sheets: list[SheetRecord],
        file_hash: str | None = None,
    ) -> Manifest:
        return Manifest(
            version=MANIFEST_VERSION,
            file_name=self.guard.short_string(file_name),
            file_hash=file_hash,
            format=file_format,
            sheets=sheets,
            options=self.config.to_dict(),
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _stats_record(self, stats: Stats, dtype: TypeState, suppressed: bool) -> ColumnStatsRecord:
        guard = self.guard
        fields: dict[str, object] = {
            "count": guard.count(stats.count),
            "missing_count": guard.count(stats.missing_count),
        }
        if not suppressed and stats.has_summary:
            fields.update(
                min=self._point(stats.min, stats, dtype),
                max=self._point(stats.max, stats, dtype),
                mean=self._central(stats.mean, stats, dtype),
                std_dev=guard.float(stats.std_dev) if stats.std_dev is not None else None,
                median=self._central(stats.median, stats, dtype),
                median_method=stats.median_method,
                median_note=P2_MEDIAN_NOTE if stats.median_method == P2_APPROX else None,
            )
        return ColumnStatsRecord(**fields)

    def _point(self, value: float, stats: Stats, dtype: TypeState) -> SafeValue:
        if stats.temporal:
            return self.guard.short_string(render_timestamp(value, dtype))
        if dtype is TypeState.INTEGER and isinstance(value, int):
            return self.guard.integer(value)
        return self.guard.float(value)

    def _central(self, value: float | None, stats: Stats, dtype: TypeState) -> SafeValue | None:
        if value is None:
            return None
        if stats.temporal:
            return self._point(value, stats, dtype)
        return self.guard.float(value)

    @staticmethod
    def _notices(profile: ColumnProfile) -> list[Notice]:
        notices: list[Notice] = []
        result = profile.name_result
        if result.classification is ColumnClassification.PHI:
            notices.append(Notice(code=NoticeCode.NAME_PHI_PATTERN, pattern=result.matched_pattern))
        elif result.classification is ColumnClassification.WARNING:
            notices.append(Notice(code=NoticeCode.NAME_WARNING_PATTERN, pattern=result.matched_pattern))
        elif result.classification is ColumnClassification.RECODE:
            notices.append(Notice(code=NoticeCode.RECODED, pattern=result.matched_pattern))
        if profile.ambiguous_dates:
            notices.append(Notice(code=NoticeCode.AMBIGUOUS_DATE_ORDER))
        if profile.dtype.is_numeric and profile.numeric_failures:
            notices.append(Notice(code=NoticeCode.NUMERIC_PARSE_FAILURES))
        return notices