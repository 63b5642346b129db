"""Tests for DataLoader and file hashing."""
import hashlib

import pandas as pd
import pyarrow.parquet as pq
import pytest

from ertmanifest.data.loader import DataLoader, compute_file_hash
from ertmanifest.errors import UnsupportedFormatError


class TestDetectFormat:
    @pytest.mark.parametrize("name,fmt", [
        ("a.csv", "csv"), ("a.CSV", "csv"), ("a.tsv", "tsv"), ("a.tab", "tsv"),
        ("a.parquet", "parquet"), ("a.pq", "parquet"),
    ])
    def test_known(self, name, fmt):
        assert DataLoader().detect_format(name) == fmt

    def test_unknown(self):
        with pytest.raises(UnsupportedFormatError):
            DataLoader().detect_format("a.xlsx")


class TestDataLoader:
    def test_csv_rows_are_raw_strings(self, write_table):
        path = write_table("cohort.csv", ["age", "sex"], [["30", "F"], ["NA", ""], ["41", "M"]])
        source = DataLoader(chunksize=2).open(path)
        assert source.format == "csv"
        assert source.name == "cohort"
        assert source.headers == ["age", "sex"]
        assert list(source.rows) == [("30", "F"), ("NA", ""), ("41", "M")]

    def test_tsv(self, write_table):
        path = write_table("labs.tsv", ["a", "b"], [["1", "x y"]], sep="\t")
        assert list(DataLoader().open(path).rows) == [("1", "x y")]

    def test_parquet_native_cells(self, tmp_path):
        path = tmp_path / "labs.parquet"
        pd.DataFrame({"value": [1.5, None], "flag": [True, False]}).to_parquet(path)
        source = DataLoader().open(path)
        rows = list(source.rows)
        assert source.format == "parquet"
        assert rows[0] == (1.5, True)
        assert rows[1][0] is None

    def test_parquet_read_in_batches(self, tmp_path, monkeypatch):
        path = tmp_path / "vitals.parquet"
        pd.DataFrame({"hr": [60, 72, 88, 91, 104], "unit": list("abcde")}).to_parquet(path, index=False)
        batch_sizes = []
        iter_batches = pq.ParquetFile.iter_batches

        def recording(self, *args, **kwargs):
            for batch in iter_batches(self, *args, **kwargs):
                batch_sizes.append(batch.num_rows)
                yield batch

        monkeypatch.setattr(pq.ParquetFile, "iter_batches", recording)
        source = DataLoader(chunksize=2).open(path)
        assert source.headers == ["hr", "unit"]
        assert next(source.rows) == (60, "a")
        assert batch_sizes == [2]
        rest = list(source.rows)
        assert [r[0] for r in rest] == [72, 88, 91, 104]
        assert batch_sizes == [2, 2, 1]

    def test_parquet_stored_index_is_not_a_column(self, tmp_path):
        path = tmp_path / "indexed.parquet"
        df = pd.DataFrame({"hr": [60, 72]}, index=pd.Index(["x", "y"], name="visit"))
        df.to_parquet(path)
        source = DataLoader().open(path)
        assert source.headers == ["hr"]
        assert list(source.rows) == [(60,), (72,)]

    def test_count_rows(self, write_table):
        path = write_table("c.csv", ["a"], [[i] for i in range(7)])
        assert DataLoader(chunksize=3).count_rows(path) == 7

    def test_count_rows_parquet_from_metadata(self, tmp_path):
        path = tmp_path / "c.parquet"
        pd.DataFrame({"a": range(9)}).to_parquet(path, index=False)
        assert DataLoader(chunksize=2).count_rows(path) == 9

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            DataLoader().open(tmp_path / "nope.csv")


class TestComputeFileHash:
    def test_sha256(self, tmp_path):
        path = tmp_path / "x.csv"
        path.write_bytes(b"a,b\n1,2\n")
        assert compute_file_hash(path) == hashlib.sha256(b"a,b\n1,2\n").hexdigest()

    def test_missing(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            compute_file_hash(tmp_path / "nope.csv")
