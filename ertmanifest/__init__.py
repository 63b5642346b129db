"""ert-manifest: privacy-preserving structural manifests for tabular data files.

Public entry points:
    ScanPipeline      -- stream rows through per-column profilers and finalize
    PrivacyConfig     -- suppression threshold and precision options
    DataLoader        -- lazy row readers for CSV/TSV/Parquet inputs
"""

from ertmanifest.data.loader import DataLoader
from ertmanifest.errors import ConfigError, MemoryBoundError, UnsupportedFormatError
from ertmanifest.privacy.policy import PrivacyConfig
from ertmanifest.workflow.pipeline import ScanPipeline, ScanResult

__version__ = "1.0.0"

__all__ = [
    "ConfigError",
    "DataLoader",
    "MemoryBoundError",
    "PrivacyConfig",
    "ScanPipeline",
    "ScanResult",
    "UnsupportedFormatError",
]
