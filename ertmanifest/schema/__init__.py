from ertmanifest.schema.base import (
    ColumnRecord,
    ColumnStatsRecord,
    Manifest,
    Notice,
    NoticeCode,
    SheetRecord,
    ValueCount,
)

__all__ = [
    "ColumnRecord",
    "ColumnStatsRecord",
    "Manifest",
    "Notice",
    "NoticeCode",
    "SheetRecord",
    "ValueCount",
]
