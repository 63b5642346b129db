from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum

from ertmanifest.errors import ConfigError

# Project documentation cites both 5 and 20 as "the" k; 5 is the default and
# 20 is kept as the named stricter setting.
DEFAULT_K = 5
STRICT_K = 20

MAX_UNIQUE_CAP = 2000
MAX_STRING_LEN = 32
LOW_CARDINALITY_THRESHOLD = 10
EXACT_MEDIAN_ROW_LIMIT = 2_000_000
TYPE_SAMPLE_SIZE = 2000


class ColumnClassification(str, Enum):
    SAFE = "safe"
    WARNING = "warning"
    RECODE = "recode"
    HIGH_CARDINALITY = "high_cardinality"
    FREE_TEXT = "free_text"
    PHI = "phi"

    @property
    def strictness(self) -> int:
        return _STRICTNESS[self]

    def escalate(self, other: ColumnClassification) -> ColumnClassification:
        """Return the stricter of the two; classifications never loosen."""
        return other if other.strictness > self.strictness else self


_STRICTNESS = {c: i for i, c in enumerate(ColumnClassification)}


@dataclass(frozen=True)
class PrivacyConfig:
    """Privacy options for one scan.

    ``relaxed`` unlocks exact counts, the exact median and a k below the
    default. It never switches off the name policy, the value sniffer or the
    output guard.
    """
    k: int = DEFAULT_K
    bucket_counts: bool = True
    exact_counts: bool = False
    exact_median: bool = False
    relaxed: bool = False
    hash_file: bool = True

    max_unique_cap: int = MAX_UNIQUE_CAP
    max_string_len: int = MAX_STRING_LEN
    low_cardinality_threshold: int = LOW_CARDINALITY_THRESHOLD
    exact_median_row_limit: int = EXACT_MEDIAN_ROW_LIMIT
    type_sample_size: int = TYPE_SAMPLE_SIZE

    def validate(self) -> PrivacyConfig:
        """Raise :class:`ConfigError` for disallowed combinations; return self."""
        if isinstance(self.k, bool) or not isinstance(self.k, int) or self.k < 1:
            raise ConfigError(f"k must be a positive integer, got {self.k!r}")
        if self.k < DEFAULT_K and not self.relaxed:
            raise ConfigError(f"k below {DEFAULT_K} requires relaxed mode")
        if self.exact_counts and not self.relaxed:
            raise ConfigError("exact_counts requires relaxed mode")
        if self.exact_median and not self.relaxed:
            raise ConfigError("exact_median requires relaxed mode")
        if not self.bucket_counts and not self.exact_counts:
            raise ConfigError(
                "bucket_counts can only be disabled together with exact_counts"
            )
        return self

    @property
    def bucketed(self) -> bool:
        """Whether exported counts are range labels rather than integers."""
        return not (self.relaxed and self.exact_counts)

    def to_dict(self) -> dict:
        return {
            key: value
            for key, value in asdict(self).items()
            if key in ("k", "bucket_counts", "exact_counts", "exact_median", "relaxed", "hash_file")
        }
