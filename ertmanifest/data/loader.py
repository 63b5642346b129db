"""Lazy row readers for delimited text and Parquet files."""

from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterator

import pandas as pd
import pyarrow.parquet as pq

from ertmanifest.errors import UnsupportedFormatError

logger = logging.getLogger(__name__)

DEFAULT_CHUNKSIZE = 50_000
_HASH_BLOCK = 1 << 20


@dataclass
class TableSource:
    """Header row plus a lazy row iterator for one table in a file."""
    name: str
    format: str
    headers: list[str]
    rows: Iterator[tuple[Any, ...]]


class DataLoader:
    """Open data files as lazy row sequences.

    Delimited files are read in chunks with every cell kept as the raw
    string token (no NA conversion); missing-value semantics are applied
    later, uniformly, by cell classification. Parquet files are read one
    record batch at a time and their cells arrive natively typed.
    """

    _FORMAT_MAP = {
        ".csv": "csv",
        ".tsv": "tsv",
        ".tab": "tsv",
        ".parquet": "parquet",
        ".pq": "parquet",
    }
    _SEPARATORS = {"csv": ",", "tsv": "\t"}

    def __init__(self, chunksize: int = DEFAULT_CHUNKSIZE) -> None:
        self.chunksize = chunksize

    def detect_format(self, filename: str) -> str:
        """Detect file format from extension.

        Raises:
            UnsupportedFormatError: If the extension is not recognized.
        """
        suffix = Path(filename).suffix.lower()
        fmt = self._FORMAT_MAP.get(suffix)
        if fmt is None:
            raise UnsupportedFormatError(
                f"Unknown file format '{suffix}'. "
                f"Supported: {sorted(self._FORMAT_MAP.keys())}"
            )
        return fmt

    def open(self, path: Path | str) -> TableSource:
        """Open *path* for streaming.

        Raises:
            FileNotFoundError: If the file does not exist.
        """
        path = self._existing(path)
        fmt = self.detect_format(path.name)
        if fmt == "parquet":
            parquet_file = pq.ParquetFile(path)
            columns = self._parquet_columns(parquet_file)
            headers = [str(c) for c in columns]
            rows = self._iter_parquet(parquet_file, columns)
        else:
            headers = [str(c) for c in self._read_delimited(path, fmt, nrows=0).columns]
            rows = self._iter_delimited(path, fmt)
        logger.info("Opened %s input with %d columns", fmt, len(headers))
        return TableSource(name=path.stem, format=fmt, headers=headers, rows=rows)

    def count_rows(self, path: Path | str) -> int:
        """Count data rows without keeping them in memory."""
        path = self._existing(path)
        fmt = self.detect_format(path.name)
        if fmt == "parquet":
            return pq.ParquetFile(path).metadata.num_rows
        return sum(
            len(chunk)
            for chunk in self._read_delimited(
                path, fmt, usecols=[0], chunksize=self.chunksize
            )
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _existing(path: Path | str) -> Path:
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"File not found: {path}")
        return path

    def _read_delimited(self, path: Path, fmt: str, **kwargs):
        return pd.read_csv(
            path,
            sep=self._SEPARATORS[fmt],
            dtype=str,
            keep_default_na=False,
            na_filter=False,
            encoding_errors="replace",
            **kwargs,
        )

    def _iter_delimited(self, path: Path, fmt: str) -> Iterator[tuple[Any, ...]]:
        for chunk in self._read_delimited(path, fmt, chunksize=self.chunksize):
            yield from chunk.itertuples(index=False, name=None)

    def _iter_parquet(
        self, parquet_file: pq.ParquetFile, columns: list[str]
    ) -> Iterator[tuple[Any, ...]]:
        for batch in parquet_file.iter_batches(batch_size=self.chunksize, columns=columns):
            chunk = self._native(batch.to_pandas(ignore_metadata=True)[columns])
            yield from chunk.itertuples(index=False, name=None)

    @staticmethod
    def _parquet_columns(parquet_file: pq.ParquetFile) -> list[str]:
        """Data columns in file order; a stored pandas index is not a column."""
        schema = parquet_file.schema_arrow
        index_columns = (schema.pandas_metadata or {}).get("index_columns", [])
        stored_index = {c for c in index_columns if isinstance(c, str)}
        return [name for name in schema.names if name not in stored_index]

    @staticmethod
    def _native(df: pd.DataFrame) -> pd.DataFrame:
        """Replace pandas missing markers (NaN, NaT, pd.NA) with ``None``."""
        return df.astype(object).where(df.notna(), None)


def compute_file_hash(path: Path | str) -> str:
    """SHA-256 of the file contents, read in 1 MiB blocks."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")
    digest = hashlib.sha256()
    with path.open("rb") as fh:
        for block in iter(lambda: fh.read(_HASH_BLOCK), b""):
            digest.update(block)
    return digest.hexdigest()
