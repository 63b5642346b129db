"""Tests for the ert-manifest command line."""
import json

import pytest

from ertmanifest.cli import build_parser, main, recode_map_path
from ertmanifest.privacy.audit import AuditLog


@pytest.fixture
def cohort(write_table):
    rows = [
        [str(30 + i % 40), "mild" if i % 2 else "severe", "Vancouver General" if i % 3 else "Royal Columbian"]
        for i in range(60)
    ]
    return write_table("cohort.csv", ["age", "severity", "hospital"], rows)


class TestParser:
    def test_defaults(self):
        args = build_parser().parse_args(["scan", "x.csv"])
        assert args.k == 5
        assert args.bucket_counts is True
        assert args.hash_file is True
        assert args.workers == 1
        assert args.log_level == "WARNING"

    def test_flags(self):
        args = build_parser().parse_args([
            "--log-level", "debug", "scan", "x.csv", "--k", "20", "--relaxed",
            "--exact-counts", "--no-bucket-counts", "--exact-median", "--no-hash", "--workers", "4",
        ])
        assert args.k == 20
        assert args.relaxed and args.exact_counts and args.exact_median
        assert args.bucket_counts is False
        assert args.hash_file is False
        assert args.workers == 4

    def test_unknown_log_level_rejected(self, capsys):
        with pytest.raises(SystemExit) as exc:
            build_parser().parse_args(["--log-level", "verbose", "scan", "x.csv"])
        assert exc.value.code == 2
        assert "invalid choice" in capsys.readouterr().err

    def test_log_level_case_insensitive(self):
        assert build_parser().parse_args(["--log-level", "info", "scan", "x.csv"]).log_level == "INFO"

    def test_recode_map_path(self, tmp_path):
        assert recode_map_path(tmp_path / "data.csv") == tmp_path / "data.csv.recode.txt"


class TestMain:
    def test_scan_to_stdout(self, cohort, capsys):
        assert main(["scan", str(cohort)]) == 0
        out = capsys.readouterr()
        manifest = json.loads(out.out)
        assert manifest["version"] == "1.0"
        assert [c["index"] for c in manifest["sheets"][0]["columns"]] == [0, 1, 2]
        assert "Vancouver" not in out.out
        assert "Recode mapping" in out.err

    def test_recode_file_written(self, cohort):
        assert main(["scan", str(cohort), "--out", str(cohort.with_suffix(".json"))]) == 0
        recode = recode_map_path(cohort).read_text(encoding="utf-8")
        assert "## Column 3: hospital" in recode
        assert "Hospital_A = Royal Columbian" in recode
        manifest = json.loads(cohort.with_suffix(".json").read_text(encoding="utf-8"))
        assert manifest["file_name"]["value"] == "cohort.csv"

    def test_rerun_is_byte_identical(self, cohort, tmp_path):
        first, second = tmp_path / "one.json", tmp_path / "two.json"
        assert main(["scan", str(cohort), "-o", str(first)]) == 0
        assert main(["scan", str(cohort), "-o", str(second), "--workers", "3"]) == 0
        assert first.read_bytes() == second.read_bytes()

    def test_audit_log(self, cohort, tmp_path):
        log_path = tmp_path / "audit.jsonl"
        assert main(["scan", str(cohort), "-o", str(tmp_path / "m.json"), "--audit-log", str(log_path)]) == 0
        entries = AuditLog(log_path).get_entries()
        assert len(entries) == 1
        assert entries[0].source == "cohort.csv"
        assert entries[0].column_reasons == {"0": "high cardinality"}

    def test_config_error_exit_code(self, cohort, capsys):
        assert main(["scan", str(cohort), "--exact-counts"]) == 2
        assert "configuration error" in capsys.readouterr().err

    def test_unsupported_format(self, tmp_path, capsys):
        path = tmp_path / "data.xlsx"
        path.write_bytes(b"")
        assert main(["scan", str(path)]) == 1

    def test_missing_file(self, tmp_path):
        assert main(["scan", str(tmp_path / "nope.csv")]) == 1

    def test_ragged_csv_exit_code(self, tmp_path, capsys):
        path = tmp_path / "ragged.csv"
        path.write_text("a,b\n1,2\n3,4\n5,6,7\n", encoding="utf-8")
        assert main(["scan", str(path)]) == 1
        err = capsys.readouterr().err
        assert "could not read input" in err
        assert "Traceback" not in err

    def test_corrupt_parquet_exit_code(self, tmp_path, capsys):
        path = tmp_path / "broken.parquet"
        path.write_bytes(b"not parquet")
        assert main(["scan", str(path)]) == 1
        assert "could not read input" in capsys.readouterr().err
