"""Scan pipeline: stream rows into a column arena, then finalize and assemble."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, Sequence

from ertmanifest.data.loader import DataLoader, compute_file_hash
from ertmanifest.errors import MemoryBoundError
from ertmanifest.privacy.column_names import ColumnNamePolicy
from ertmanifest.privacy.guard import SafeValueGuard
from ertmanifest.privacy.phi_detector import ValuePhiSniffer
from ertmanifest.privacy.policy import PrivacyConfig
from ertmanifest.privacy.recoding import RecodeRegistry
from ertmanifest.privacy.suppression import SuppressionDecision, SuppressionEngine
from ertmanifest.profiling.cells import MISSING, MISSING_TOKENS, classify_cell
from ertmanifest.profiling.column import Column, ColumnProfile
from ertmanifest.reporting.manifest import ManifestAssembler
from ertmanifest.schema.base import ColumnRecord, Manifest

logger = logging.getLogger(__name__)


@dataclass
class ScanResult:
    """A finished scan: the shareable manifest plus the confidential recode map."""
    manifest: Manifest
    recode_map: str | None = None
    decisions: dict[int, SuppressionDecision] = field(default_factory=dict)

    @property
    def column_reasons(self) -> dict[int, str | None]:
        """Column index -> suppression reason (``None`` when values were exported)."""
        return {i: d.reason for i, d in self.decisions.items()}


class ScanPipeline:
    """Single sequential row reader fanning cells out to per-column state.

    Columns live in an index-addressed arena; each is touched by exactly one
    unit of work at a time. Finalization is pure per column and may run on a
    thread pool (``workers > 1``); results are always ordered by column index,
    so the manifest is identical whichever way it ran.
    """

    def __init__(
        self,
        config: PrivacyConfig | None = None,
        workers: int = 1,
        missing_tokens: frozenset[str] = MISSING_TOKENS,
    ) -> None:
        self.config = (config or PrivacyConfig()).validate()
        if workers < 1:
            raise ValueError(f"workers must be at least 1, got {workers}")
        self.workers = workers
        self.missing_tokens = missing_tokens
        self._policy = ColumnNamePolicy()
        self._sniffer = ValuePhiSniffer()
        self._suppression = SuppressionEngine(self._sniffer)
        self._assembler = ManifestAssembler(self.config, SafeValueGuard(self.config, self._sniffer))

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def scan(
        self,
        headers: Sequence[str],
        rows: Iterable[Sequence[Any]],
        *,
        file_name: str = "",
        file_format: str = "rows",
        sheet_name: str = "data",
        file_hash: str | None = None,
        n_rows_hint: int | None = None,
    ) -> ScanResult:
        """Scan one table given as a header row and a (lazy) row iterable."""
        self._check_exact_median(n_rows_hint)

        arena = [
            Column(i, str(name), self.config, self._policy) for i, name in enumerate(headers)
        ]
        width = len(arena)
        n_rows = 0
        for row in rows:
            if isinstance(row, (str, bytes)):
                raise TypeError("Each row must be a sequence of cells, not a string")
            n_rows += 1
            cells = list(row)
            if len(cells) != width:
                logger.debug("Row %d has %d cells; expected %d", n_rows, len(cells), width)
            for column, raw in zip(arena, cells):
                column.observe(classify_cell(raw, self.missing_tokens))
            for column in arena[len(cells):]:
                column.observe(MISSING)
        logger.info("Read %d rows across %d columns", n_rows, width)

        profiles, decisions = self._finalize(arena)

        registry = RecodeRegistry()
        for column in arena:
            if column.recoder is not None:
                registry.register(column.index, column.name, column.recoder)

        records: list[ColumnRecord] = [
            self._assembler.column_record(profile, decisions[profile.index])
            for profile in profiles
        ]
        sheet = self._assembler.sheet_record(sheet_name, n_rows, records)
        manifest = self._assembler.manifest(
            file_name=file_name,
            file_format=file_format,
            sheets=[sheet],
            file_hash=file_hash,
        )
        suppressed = sum(1 for d in decisions.values() if not d.exported)
        logger.info("Scan complete: %d of %d columns suppressed", suppressed, width)
        return ScanResult(
            manifest=manifest,
            recode_map=registry.render() if len(registry) else None,
            decisions=decisions,
        )

    def scan_file(self, path: Path | str, loader: DataLoader | None = None) -> ScanResult:
        """Open *path* with :class:`DataLoader` and scan it."""
        loader = loader or DataLoader()
        path = Path(path)
        n_rows_hint = loader.count_rows(path) if self.config.exact_median else None
        self._check_exact_median(n_rows_hint)
        source = loader.open(path)
        file_hash = compute_file_hash(path) if self.config.hash_file else None
        return self.scan(
            source.headers,
            source.rows,
            file_name=path.name,
            file_format=source.format,
            sheet_name=source.name,
            file_hash=file_hash,
            n_rows_hint=n_rows_hint,
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _check_exact_median(self, n_rows: int | None) -> None:
        limit = self.config.exact_median_row_limit
        if self.config.exact_median and n_rows is not None and n_rows > limit:
            raise MemoryBoundError(n_rows, limit)

    def _finalize_one(self, column: Column) -> tuple[ColumnProfile, SuppressionDecision]:
        profile = column.finalize()
        return profile, self._suppression.decide(profile, self.config)

    def _finalize(
        self, arena: list[Column]
    ) -> tuple[list[ColumnProfile], dict[int, SuppressionDecision]]:
        if self.workers > 1 and len(arena) > 1:
            with ThreadPoolExecutor(max_workers=self.workers) as pool:
                results = list(pool.map(self._finalize_one, arena))
        else:
            results = [self._finalize_one(column) for column in arena]
        profiles = [profile for profile, _ in results]
        decisions = {profile.index: decision for profile, decision in results}
        return profiles, decisions
