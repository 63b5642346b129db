"""Exceptions raised before or around a scan.

Per-cell parse failures are never errors; they feed type inference.
"""

from __future__ import annotations


class ConfigError(ValueError):
    """The requested privacy configuration is not allowed."""


class MemoryBoundError(RuntimeError):
    """An exact computation would exceed its memory ceiling."""

    def __init__(self, n_rows: int, limit: int) -> None:
        self.n_rows = n_rows
        self.limit = limit
        super().__init__(
            f"Exact median requested for {n_rows} rows; the limit is {limit}. "
            "Re-run without exact_median to use the streaming estimate."
        )


class UnsupportedFormatError(ValueError):
    """The input file extension is not one the loader can read."""
