from __future__ import annotations

import logging
from dataclasses import dataclass

from ertmanifest.privacy.column_names import ColumnNamePolicy, ColumnNameResult
from ertmanifest.privacy.policy import ColumnClassification, PrivacyConfig
from ertmanifest.privacy.recoding import SiteRecoder
from ertmanifest.profiling.cells import CellKind, CellValue
from ertmanifest.profiling.inference import TypeInferenceEngine, TypeState
from ertmanifest.profiling.stats import Stats, StreamingAccumulator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ColumnProfile:
    """Immutable end-of-stream snapshot of one column.

    ``tally`` holds ``(value, count)`` pairs in first-seen order while the
    column stayed within the low-cardinality threshold, and is empty
    otherwise. For recoded columns the values are the synthetic labels.
    """
    index: int
    name: str
    name_result: ColumnNameResult
    dtype: TypeState
    stats: Stats
    unique_count: int
    unique_capped: bool
    tally: tuple[tuple[CellValue, int], ...]
    tally_overflowed: bool
    max_length: int
    date_order: str | None = None
    ambiguous_dates: bool = False
    numeric_failures: int = 0

    @property
    def recoded(self) -> bool:
        return self.name_result.classification is ColumnClassification.RECODE

    @property
    def non_missing_count(self) -> int:
        return self.stats.count

    @property
    def missing_count(self) -> int:
        return self.stats.missing_count


class Column:
    """Mutable per-column scan state: one slot of the pipeline's column arena.

    A column is owned by exactly one worker at a time; it is fed every cell in
    row order via :meth:`observe` and frozen by :meth:`finalize`.
    """

    def __init__(
        self,
        index: int,
        name: str,
        config: PrivacyConfig | None = None,
        policy: ColumnNamePolicy | None = None,
    ) -> None:
        self.index = index
        self.name = name
        self.config = config or PrivacyConfig()
        self.name_result = (policy or ColumnNamePolicy()).classify(name)
        self.engine = TypeInferenceEngine(self.config.type_sample_size)
        self.accumulator = StreamingAccumulator(self.config)
        self.recoder: SiteRecoder | None = None
        if self.name_result.classification is ColumnClassification.RECODE:
            self.recoder = SiteRecoder(
                ColumnNamePolicy.recode_prefix(name), self.config.max_unique_cap
            )
        self._profile: ColumnProfile | None = None

    @property
    def finalized(self) -> bool:
        return self._profile is not None

    def observe(self, cell: CellValue) -> None:
        if self._profile is not None:
            raise RuntimeError(f"Column {self.index} is already finalized")
        tally_key = None
        if self.recoder is not None and not cell.is_missing:
            label = self.recoder.recode(cell.text)
            if label is not None:
                tally_key = CellValue(CellKind.TEXT, label, label)
        self.accumulator.update(cell, tally_key)
        self.engine.observe(cell, unique_capped=self.accumulator.unique_capped)

    def finalize(self) -> ColumnProfile:
        """Freeze the column; a second call raises ``RuntimeError``."""
        if self._profile is not None:
            raise RuntimeError(f"Column {self.index} is already finalized")
        acc = self.accumulator
        dtype = self.engine.finalize(unique_capped=acc.unique_capped)
        date_order = self.engine.date_order if dtype.is_temporal else None
        # Recoded columns report counts only; a min/max would be a raw site value.
        summary_dtype = TypeState.UNKNOWN if self.recoder is not None else dtype
        self._profile = ColumnProfile(
            index=self.index,
            name=self.name,
            name_result=self.name_result,
            dtype=dtype,
            stats=acc.finalize(self.config, summary_dtype, date_order),
            unique_count=acc.uniques.count,
            unique_capped=acc.unique_capped,
            tally=tuple(acc.tally.items()),
            tally_overflowed=acc.tally.overflowed,
            max_length=self.engine.max_length,
            date_order=date_order,
            ambiguous_dates=self.engine.ambiguous_dates,
            numeric_failures=self.engine.numeric_failures,
        )
        logger.debug(
            "Finalized column %d: dtype=%s, non-missing=%d",
            self.index, dtype.value, acc.non_missing_count,
        )
        return self._profile
