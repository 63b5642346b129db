"""Output schema for ert-manifest files.

Every value-bearing field is typed as :class:`SafeValue`, so a raw string or
number handed to a model fails validation; the only way to populate these
fields is through :class:`~ertmanifest.privacy.guard.SafeValueGuard`.
"""

from __future__ import annotations

import re
from enum import Enum
from typing import Annotated, Literal

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    PlainSerializer,
    PlainValidator,
    field_validator,
)

from ertmanifest.privacy.column_names import KNOWN_TOKENS
from ertmanifest.privacy.guard import SafeValue, check_reason
from ertmanifest.privacy.policy import ColumnClassification
from ertmanifest.profiling.inference import TypeState


def _require_safe(value: object) -> SafeValue:
    if not isinstance(value, SafeValue):
        raise ValueError("Value-bearing fields only accept SafeValue instances")
    return value


Safe = Annotated[
    SafeValue,
    PlainValidator(_require_safe),
    PlainSerializer(lambda v: v.to_dict(), return_type=dict),
]

_SHA256 = re.compile(r"^[0-9a-f]{64}$")


class NoticeCode(str, Enum):
    NAME_PHI_PATTERN = "name_phi_pattern"
    NAME_WARNING_PATTERN = "name_warning_pattern"
    RECODED = "recoded"
    AMBIGUOUS_DATE_ORDER = "ambiguous_date_order"
    NUMERIC_PARSE_FAILURES = "numeric_parse_failures"


class _Record(BaseModel):
    model_config = ConfigDict(extra="forbid")


class Notice(_Record):
    """A flag on a column; ``pattern`` can only cite a dictionary token."""

    code: NoticeCode
    pattern: str | None = None

    @field_validator("pattern")
    @classmethod
    def _known_pattern(cls, value: str | None) -> str | None:
        if value is not None and value not in KNOWN_TOKENS:
            raise ValueError("Notice pattern must be a known dictionary token")
        return value


class ValueCount(_Record):
    value: Safe
    count: Safe


class ColumnStatsRecord(_Record):
    count: Safe
    missing_count: Safe
    min: Safe | None = None
    max: Safe | None = None
    mean: Safe | None = None
    std_dev: Safe | None = None
    median: Safe | None = None
    median_method: Literal["p2_approx", "exact"] | None = None
    median_note: str | None = None


class ColumnRecord(_Record):
    """Sanitized description of one column."""

    name: Safe
    index: int
    dtype: TypeState
    classification: ColumnClassification
    exported_values: bool
    values: list[ValueCount] | None = None
    stats: ColumnStatsRecord
    stats_suppressed: bool = False
    stats_suppression_reason: str | None = None
    unique_count_bucketed: Safe
    unique_count_capped: bool = False
    unique_count_note: str | None = None
    suppression_reason: str | None = None
    notices: list[Notice] = Field(default_factory=list)

    @field_validator("stats_suppression_reason", "suppression_reason")
    @classmethod
    def _closed_reason(cls, value: str | None) -> str | None:
        return check_reason(value) if value is not None else None


class SheetRecord(_Record):
    name: Safe
    row_count: Safe
    columns: list[ColumnRecord]


class Manifest(_Record):
    """Top-level manifest document. Holds no timestamps, so reruns are byte-identical."""

    version: str
    file_name: Safe
    file_hash: str | None = None
    format: str
    sheets: list[SheetRecord]
    options: dict[str, bool | int]

    @field_validator("file_hash")
    @classmethod
    def _hex_digest(cls, value: str | None) -> str | None:
        if value is not None and not _SHA256.match(value):
            raise ValueError("file_hash must be a lowercase SHA-256 hex digest")
        return value

    def to_json(self, indent: int | None = 2) -> str:
        return self.model_dump_json(indent=indent)
