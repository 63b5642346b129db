"""ert-manifest command line entry point."""

from __future__ import annotations

import argparse
import logging
import sys
import textwrap
from pathlib import Path

import pandas as pd
import pyarrow as pa

from ertmanifest.data.loader import DataLoader
from ertmanifest.errors import ConfigError, MemoryBoundError, UnsupportedFormatError
from ertmanifest.privacy.audit import AuditLog
from ertmanifest.privacy.policy import DEFAULT_K, PrivacyConfig
from ertmanifest.workflow.pipeline import ScanPipeline

logger = logging.getLogger("ertmanifest")

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def recode_map_path(input_path: Path) -> Path:
    """``data.csv`` -> ``data.csv.recode.txt``, next to the input."""
    return input_path.with_name(input_path.name + ".recode.txt")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ert-manifest",
        description="Describe a data file's structure without exporting identifying values",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent("""
        Examples:
          ert-manifest scan cohort.csv --out cohort.manifest.json
          ert-manifest scan labs.parquet --k 20 --workers 4
          ert-manifest scan small.tsv --relaxed --exact-counts --no-bucket-counts
        """),
    )
    parser.add_argument(
        "--log-level", type=str.upper, choices=LOG_LEVELS, default="WARNING", help="Logging level"
    )
    sub = parser.add_subparsers(dest="command", required=True)

    scan = sub.add_parser("scan", help="Scan a CSV, TSV or Parquet file")
    scan.add_argument("input", type=Path, help="File to scan")
    scan.add_argument("--out", "-o", type=Path, help="Write the manifest here instead of stdout")
    scan.add_argument("--k", type=int, default=DEFAULT_K, help=f"Suppression threshold (default {DEFAULT_K})")
    scan.add_argument(
        "--no-bucket-counts",
        dest="bucket_counts",
        action="store_false",
        help="Report exact counts (requires --exact-counts and --relaxed)",
    )
    scan.add_argument("--exact-counts", action="store_true", help="Allow exact counts (requires --relaxed)")
    scan.add_argument("--exact-median", action="store_true", help="Compute an exact median (requires --relaxed)")
    scan.add_argument(
        "--relaxed",
        action="store_true",
        help="Loosen count/median precision and k; PHI checks still apply",
    )
    scan.add_argument("--no-hash", dest="hash_file", action="store_false", help="Skip the SHA-256 file hash")
    scan.add_argument("--workers", type=int, default=1, help="Threads used to finalize columns")
    scan.add_argument("--audit-log", type=Path, help="Append a JSONL audit entry to this file")
    return parser


def run_scan(args: argparse.Namespace) -> int:
    config = PrivacyConfig(
        k=args.k,
        bucket_counts=args.bucket_counts,
        exact_counts=args.exact_counts,
        exact_median=args.exact_median,
        relaxed=args.relaxed,
        hash_file=args.hash_file,
    )
    pipeline = ScanPipeline(config, workers=args.workers)
    result = pipeline.scan_file(args.input, DataLoader())

    document = result.manifest.to_json() + "\n"
    if args.out is not None:
        args.out.write_text(document, encoding="utf-8")
        logger.info("Manifest written to %s", args.out)
    else:
        sys.stdout.write(document)

    if result.recode_map is not None:
        target = recode_map_path(args.input)
        target.write_text(result.recode_map, encoding="utf-8")
        print(f"Recode mapping (keep confidential): {target}", file=sys.stderr)

    if args.audit_log is not None:
        AuditLog(args.audit_log).log_scan(args.input.name, result.column_reasons)
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(level=getattr(logging, args.log_level))

    try:
        return run_scan(args)
    except (ConfigError, MemoryBoundError) as e:
        print(f"ert-manifest: configuration error: {e}", file=sys.stderr)
        return 2
    except (UnsupportedFormatError, FileNotFoundError) as e:
        print(f"ert-manifest: {e}", file=sys.stderr)
        return 1
    except (pd.errors.ParserError, pa.ArrowInvalid) as e:
        print(f"ert-manifest: could not read input: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
