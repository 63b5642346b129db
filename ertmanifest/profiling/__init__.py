"""Per-column streaming profiling: cell classification, type inference and estimators."""

from ertmanifest.profiling.cells import CellKind, CellValue, classify_cell
from ertmanifest.profiling.column import Column, ColumnProfile
from ertmanifest.profiling.inference import TypeInferenceEngine, TypeState
from ertmanifest.profiling.stats import Stats, StreamingAccumulator

__all__ = [
    "CellKind",
    "CellValue",
    "Column",
    "ColumnProfile",
    "Stats",
    "StreamingAccumulator",
    "TypeInferenceEngine",
    "TypeState",
    "classify_cell",
]
