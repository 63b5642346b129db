"""Site recoding: replace site-like values with anonymous, stable labels.

The raw-to-label mapping never enters the manifest; it is rendered as a
separate confidential file that stays with the data custodian.
"""

from __future__ import annotations

import string

from ertmanifest.privacy.policy import MAX_UNIQUE_CAP

RECODE_HEADER = (
    "# ERT-Manifest Recode Mapping\n"
    "# CONFIDENTIAL - Keep this file secure at your site\n"
)


def label_suffix(index: int) -> str:
    """Spreadsheet-style letters for a zero-based index: A..Z, AA, AB, ..."""
    if index < 0:
        raise ValueError(f"Label index cannot be negative: {index}")
    letters = ""
    index += 1
    while index:
        index, rem = divmod(index - 1, 26)
        letters = string.ascii_uppercase[rem] + letters
    return letters


class SiteRecoder:
    """Append-only raw value -> ``<prefix>_<letters>`` bijection for one column.

    Labels follow first-occurrence order, so a fixed row order always yields
    the same mapping. Once *cap* distinct values are mapped no new labels are
    assigned and :meth:`recode` returns ``None`` for unseen values.
    """

    def __init__(self, prefix: str = "Site", cap: int = MAX_UNIQUE_CAP) -> None:
        self.prefix = prefix
        self.cap = cap
        self._mapping: dict[str, str] = {}

    def recode(self, value: str) -> str | None:
        label = self._mapping.get(value)
        if label is not None:
            return label
        if len(self._mapping) >= self.cap:
            return None
        label = f"{self.prefix}_{label_suffix(len(self._mapping))}"
        self._mapping[value] = label
        return label

    @property
    def capped(self) -> bool:
        return len(self._mapping) >= self.cap

    def items(self) -> list[tuple[str, str]]:
        """``(label, raw value)`` pairs in assignment order."""
        return [(label, raw) for raw, label in self._mapping.items()]

    def __len__(self) -> int:
        return len(self._mapping)


class RecodeRegistry:
    """Recoders for every recoded column of a scan, keyed by column index."""

    def __init__(self) -> None:
        self._columns: dict[int, tuple[str, SiteRecoder]] = {}

    def register(self, index: int, column_name: str, recoder: SiteRecoder) -> None:
        if index in self._columns:
            raise KeyError(f"Column {index} already has a recoder")
        self._columns[index] = (column_name, recoder)

    def get(self, index: int) -> SiteRecoder | None:
        entry = self._columns.get(index)
        return entry[1] if entry else None

    def __len__(self) -> int:
        return len(self._columns)

    def render(self) -> str:
        """Render the confidential mapping file, columns in index order."""
        sections = [RECODE_HEADER]
        for index in sorted(self._columns):
            name, recoder = self._columns[index]
            lines = [f"## Column {index + 1}: {name}", ""]
            lines.extend(f"{label} = {raw}" for label, raw in recoder.items())
            sections.append("\n".join(lines) + "\n")
        return "\n".join(sections)
