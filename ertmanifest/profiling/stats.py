"""Bounded-memory streaming estimators for one column.

Every estimator here keeps O(1) state per column except ``ExactQuantile``,
which is only built when the caller opts into the exact median and is capped
at ``EXACT_MEDIAN_ROW_LIMIT`` values.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Hashable

import numpy as np

from ertmanifest.errors import MemoryBoundError
from ertmanifest.privacy.policy import (
    EXACT_MEDIAN_ROW_LIMIT,
    LOW_CARDINALITY_THRESHOLD,
    MAX_UNIQUE_CAP,
    PrivacyConfig,
)
from ertmanifest.profiling.cells import CellKind, CellValue
from ertmanifest.profiling.inference import (
    DAY_FIRST,
    MONTH_FIRST,
    TypeState,
    parse_temporal,
)

P2_APPROX = "p2_approx"
EXACT = "exact"
SECONDS_PER_DAY = 86400.0


# ----------------------------------------------------------------------
# Estimators
# ----------------------------------------------------------------------


class WelfordStats:
    """Running count, mean, variance, min and max in one pass."""

    def __init__(self) -> None:
        self.count = 0
        self.mean = 0.0
        self.m2 = 0.0
        self.min: float | None = None
        self.max: float | None = None

    def update(self, x: float) -> None:
        self.count += 1
        delta = x - self.mean
        self.mean += delta / self.count
        self.m2 += delta * (x - self.mean)
        if self.min is None or x < self.min:
            self.min = x
        if self.max is None or x > self.max:
            self.max = x

    @property
    def variance(self) -> float | None:
        """Sample variance (n - 1 denominator); None below two observations."""
        if self.count < 2:
            return None
        return self.m2 / (self.count - 1)

    @property
    def std_dev(self) -> float | None:
        var = self.variance
        return math.sqrt(var) if var is not None else None


def _interpolated_quantile(values: list[float], p: float) -> float:
    ordered = sorted(values)
    pos = (len(ordered) - 1) * p
    lo = math.floor(pos)
    hi = math.ceil(pos)
    return ordered[lo] + (ordered[hi] - ordered[lo]) * (pos - lo)


class P2Quantile:
    """Jain & Chlamtac P-squared quantile estimator.

    Five markers track the minimum, the p/2, p and (1+p)/2 quantiles and the
    maximum. Marker heights are adjusted with a piecewise-parabolic formula
    (falling back to linear when the parabola would break ordering).
    Until five observations have arrived the answer is exact.
    """

    def __init__(self, p: float = 0.5) -> None:
        if not 0.0 < p < 1.0:
            raise ValueError(f"Quantile must be in (0, 1), got {p}")
        self.p = p
        self.count = 0
        self._initial: list[float] = []
        self._q: list[float] = []
        self._n: list[int] = []
        self._desired: list[float] = []
        self._increments = (0.0, p / 2, p, (1 + p) / 2, 1.0)

    def update(self, x: float) -> None:
        if not math.isfinite(x):
            # no marker interval can hold inf or nan
            return
        self.count += 1
        if not self._q:
            self._initial.append(x)
            if len(self._initial) == 5:
                self._q = sorted(self._initial)
                self._n = [1, 2, 3, 4, 5]
                p = self.p
                self._desired = [1.0, 1 + 2 * p, 1 + 4 * p, 3 + 2 * p, 5.0]
                self._initial = []
            return

        q, n = self._q, self._n
        if x < q[0]:
            q[0] = x
            k = 0
        elif x >= q[4]:
            q[4] = x
            k = 3
        else:
            k = next(i for i in range(4) if q[i] <= x < q[i + 1])

        for i in range(k + 1, 5):
            n[i] += 1
        for i in range(5):
            self._desired[i] += self._increments[i]

        for i in (1, 2, 3):
            d = self._desired[i] - n[i]
            if (d >= 1 and n[i + 1] - n[i] > 1) or (d <= -1 and n[i - 1] - n[i] < -1):
                step = 1 if d > 0 else -1
                candidate = self._parabolic(i, step)
                if not q[i - 1] < candidate < q[i + 1]:
                    candidate = self._linear(i, step)
                q[i] = candidate
                n[i] += step

    def value(self) -> float | None:
        if self.count == 0:
            return None
        if not self._q:
            return _interpolated_quantile(self._initial, self.p)
        return self._q[2]

    def _parabolic(self, i: int, d: int) -> float:
        q, n = self._q, self._n
        return q[i] + d / (n[i + 1] - n[i - 1]) * (
            (n[i] - n[i - 1] + d) * (q[i + 1] - q[i]) / (n[i + 1] - n[i])
            + (n[i + 1] - n[i] - d) * (q[i] - q[i - 1]) / (n[i] - n[i - 1])
        )

    def _linear(self, i: int, d: int) -> float:
        q, n = self._q, self._n
        return q[i] + d * (q[i + d] - q[i]) / (n[i + d] - n[i])


class ExactQuantile:
    """Materializing quantile; refuses to grow past *limit* values."""

    def __init__(self, p: float = 0.5, limit: int = EXACT_MEDIAN_ROW_LIMIT) -> None:
        self.p = p
        self.limit = limit
        self._values: list[float] = []

    @property
    def count(self) -> int:
        return len(self._values)

    def update(self, x: float) -> None:
        if len(self._values) >= self.limit:
            raise MemoryBoundError(len(self._values) + 1, self.limit)
        self._values.append(x)

    def value(self) -> float | None:
        if not self._values:
            return None
        return float(np.quantile(np.asarray(self._values, dtype=float), self.p))


class CappedUniqueTracker:
    """Distinct-value counter that gives up (and frees memory) at *cap*."""

    def __init__(self, cap: int = MAX_UNIQUE_CAP) -> None:
        self.cap = cap
        self.capped = False
        self._seen: set[Hashable] | None = set()
        self._count = 0

    def add(self, key: Hashable) -> None:
        if self._seen is None:
            return
        self._seen.add(key)
        self._count = len(self._seen)
        if self._count >= self.cap:
            self.capped = True
            self._seen = None

    @property
    def count(self) -> int:
        """Distinct values seen; a lower bound once capped."""
        return self._count


class CategoricalTally:
    """Exact per-value counts, discarded outright once distinct values exceed *threshold*."""

    def __init__(self, threshold: int = LOW_CARDINALITY_THRESHOLD) -> None:
        self.threshold = threshold
        self.overflowed = False
        self._counts: dict[Hashable, int] | None = {}

    def add(self, key: Hashable) -> None:
        counts = self._counts
        if counts is None:
            return
        if key in counts:
            counts[key] += 1
        elif len(counts) >= self.threshold:
            self.overflowed = True
            self._counts = None
        else:
            counts[key] = 1

    def items(self) -> list[tuple[Hashable, int]]:
        """Counts in first-seen order; empty once overflowed."""
        if self._counts is None:
            return []
        return list(self._counts.items())

    def __len__(self) -> int:
        return 0 if self._counts is None else len(self._counts)


# ----------------------------------------------------------------------
# Snapshot
# ----------------------------------------------------------------------


@dataclass(frozen=True)
class Stats:
    """Finalized summary of one column's values.

    For date/datetime columns ``min``, ``max``, ``mean`` and ``median`` are
    UTC epoch seconds and ``std_dev`` is in days.
    """
    count: int
    missing_count: int
    min: float | None = None
    max: float | None = None
    mean: float | None = None
    std_dev: float | None = None
    median: float | None = None
    median_method: str | None = None
    temporal: bool = False

    @property
    def has_summary(self) -> bool:
        return self.min is not None


def render_timestamp(seconds: float, dtype: TypeState) -> str:
    moment = datetime.fromtimestamp(seconds, tz=timezone.utc)
    if dtype is TypeState.DATE:
        return moment.date().isoformat()
    return moment.isoformat().replace("+00:00", "Z")


class StreamingAccumulator:
    """All per-column estimators, fed one classified cell at a time."""

    def __init__(self, config: PrivacyConfig | None = None) -> None:
        config = config or PrivacyConfig()
        self.missing_count = 0
        self.non_missing_count = 0
        self.numeric = WelfordStats()
        self.median: P2Quantile | ExactQuantile = (
            ExactQuantile(limit=config.exact_median_row_limit)
            if config.exact_median
            else P2Quantile()
        )
        self.temporal = {order: WelfordStats() for order in (MONTH_FIRST, DAY_FIRST)}
        self.temporal_median = {order: P2Quantile() for order in (MONTH_FIRST, DAY_FIRST)}
        self.uniques = CappedUniqueTracker(config.max_unique_cap)
        self.tally = CategoricalTally(config.low_cardinality_threshold)
        self._temporal_live = True

    @property
    def unique_capped(self) -> bool:
        return self.uniques.capped

    def update(self, cell: CellValue, tally_key: Hashable | None = None) -> None:
        """Feed one cell. *tally_key* replaces the cell in the tally (recoded labels)."""
        if cell.is_missing:
            self.missing_count += 1
            return
        self.non_missing_count += 1
        self.uniques.add(cell)
        self.tally.add(cell if tally_key is None else tally_key)

        if cell.is_numeric:
            self.numeric.update(cell.value)
            self.median.update(cell.value)
        elif cell.kind is CellKind.TEXT and self._temporal_live:
            reading = parse_temporal(cell.text)
            if reading is None:
                self._temporal_live = False
                return
            for order, seconds in reading.readings.items():
                self.temporal[order].update(seconds)
                self.temporal_median[order].update(seconds)

    def finalize(
        self,
        config: PrivacyConfig | None = None,
        dtype: TypeState = TypeState.UNKNOWN,
        date_order: str | None = None,
    ) -> Stats:
        config = config or PrivacyConfig()
        if dtype.is_numeric and self.numeric.count:
            method = EXACT if isinstance(self.median, ExactQuantile) else P2_APPROX
            return Stats(
                count=self.non_missing_count,
                missing_count=self.missing_count,
                min=self.numeric.min,
                max=self.numeric.max,
                mean=self.numeric.mean,
                std_dev=self.numeric.std_dev,
                median=self.median.value(),
                median_method=method,
            )
        if dtype.is_temporal and date_order is not None:
            welford = self.temporal[date_order]
            if welford.count:
                std = welford.std_dev
                return Stats(
                    count=self.non_missing_count,
                    missing_count=self.missing_count,
                    min=welford.min,
                    max=welford.max,
                    mean=welford.mean,
                    std_dev=std / SECONDS_PER_DAY if std is not None else None,
                    median=self.temporal_median[date_order].value(),
                    median_method=P2_APPROX,
                    temporal=True,
                )
        return Stats(count=self.non_missing_count, missing_count=self.missing_count)
