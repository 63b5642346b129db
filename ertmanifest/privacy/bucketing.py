"""Count bucketing: replace exact counts with coarse disclosure-safe ranges."""

from __future__ import annotations

# (upper bound inclusive, label), ascending. Anything above the last bound
# falls into OVERFLOW_BUCKET.
_BUCKETS: tuple[tuple[int, str], ...] = (
    (0, "0"),
    (1, "1"),
    (5, "2-5"),
    (10, "6-10"),
    (20, "11-20"),
    (100, "21-100"),
    (1000, "101-1000"),
)
OVERFLOW_BUCKET = ">1000"

BUCKET_LABELS: tuple[str, ...] = tuple(label for _, label in _BUCKETS) + (OVERFLOW_BUCKET,)


def bucket_count(n: int) -> str:
    """Map a non-negative count onto its range label.

    >>> bucket_count(0), bucket_count(5), bucket_count(1001)
    ('0', '2-5', '>1000')
    """
    if isinstance(n, bool) or not isinstance(n, int):
        raise TypeError(f"bucket_count expects an int, got {type(n).__name__}")
    if n < 0:
        raise ValueError(f"Counts cannot be negative: {n}")
    for upper, label in _BUCKETS:
        if n <= upper:
            return label
    return OVERFLOW_BUCKET


def bucket_rank(label: str) -> int:
    """Position of *label* in the bucket order (useful for comparing buckets)."""
    return BUCKET_LABELS.index(label)
