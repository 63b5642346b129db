"""Privacy layer: name policy, value sniffing, suppression, recoding and the output guard."""

from ertmanifest.privacy.bucketing import bucket_count
from ertmanifest.privacy.column_names import ColumnNamePolicy, ColumnNameResult
from ertmanifest.privacy.guard import SafeValue, SafeValueGuard, SafeValueKind
from ertmanifest.privacy.phi_detector import PatternKind, ValuePhiSniffer
from ertmanifest.privacy.policy import ColumnClassification, PrivacyConfig
from ertmanifest.privacy.recoding import RecodeRegistry, SiteRecoder
from ertmanifest.privacy.suppression import (
    SuppressionDecision,
    SuppressionEngine,
    SuppressionReason,
)

__all__ = [
    "ColumnClassification",
    "ColumnNamePolicy",
    "ColumnNameResult",
    "PatternKind",
    "PrivacyConfig",
    "RecodeRegistry",
    "SafeValue",
    "SafeValueGuard",
    "SafeValueKind",
    "SiteRecoder",
    "SuppressionDecision",
    "SuppressionEngine",
    "SuppressionReason",
    "ValuePhiSniffer",
    "bucket_count",
]
