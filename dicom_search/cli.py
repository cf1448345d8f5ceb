"""
dicom_search.cli

Command-line entry point for the DICOM search.

Prints every matching path on stdout (one per line); logs, progress and the
summary go to stderr. Roots, filter and options can come from the
``dicom_search`` task of a YAML config; explicit arguments win.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from common.base.logging import get_logger, setup_logging
from common.shared.loader import coerce_age, load_task_config, normalize_gender
from common.shared.report import summarize_counts, write_scan_report
from common.shared.utils import Progress

from .scanner import DEFAULT_MAX_CONCURRENCY, ScanReport, scan_tree

log = get_logger(__name__)

TASK_NAME = "dicom_search"

EXIT_OK = 0
EXIT_USAGE = 2
EXIT_INTERRUPTED = 130


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dicom-search",
        description=(
            "Recursively find DICOM files whose PatientAge and PatientSex match. "
            "Files that are not valid DICOM are DELETED unless --keep-invalid is given."
        ),
    )
    parser.add_argument(
        "roots",
        nargs="*",
        help="Directories to scan (defaults to the roots of the config file).",
    )
    parser.add_argument("--age", help="Patient age in years (e.g. 35, or 2 for '024M').")
    parser.add_argument("--gender", "--sex", dest="gender", help="Patient sex code (M, F, O).")
    parser.add_argument(
        "--config",
        "-c",
        help="Path to YAML configuration with a 'dicom_search' task.",
    )
    parser.add_argument(
        "--max-concurrency",
        type=int,
        help=f"Concurrent filesystem operations (default: {DEFAULT_MAX_CONCURRENCY}; 0 = unbounded).",
    )
    parser.add_argument(
        "--keep-invalid",
        action="store_true",
        help="Do not delete unparseable files or unlistable directories.",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Log deletions instead of performing them.",
    )
    parser.add_argument(
        "--report",
        action="store_true",
        help="Write a CSV report with the outcome of every entry.",
    )
    parser.add_argument(
        "--output-dir",
        "-o",
        help="Directory for the CSV report (defaults to cwd or the config output_dir).",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Set logging verbosity (default: INFO).",
    )
    parser.add_argument(
        "--no-progress",
        action="store_true",
        help="Disable the progress counter during scanning.",
    )
    return parser


def _resolve_options(args: argparse.Namespace) -> Dict[str, Any]:
    config: Dict[str, Any] = {}
    if args.config:
        config = load_task_config(TASK_NAME, args.config)

    roots = [str(Path(root).expanduser()) for root in args.roots] or config.get("roots") or []
    if not roots:
        raise ValueError("No root directory given (pass ROOT or --config).")

    age = args.age if args.age is not None else config.get("age")
    gender = args.gender if args.gender is not None else config.get("gender")
    if age is None or gender is None:
        raise ValueError("Both --age and --gender are required (or set them in the config).")

    max_concurrency = args.max_concurrency
    if max_concurrency is None:
        max_concurrency = config.get("max_concurrency")
    if max_concurrency is None:
        max_concurrency = DEFAULT_MAX_CONCURRENCY

    output_dir = args.output_dir or config.get("output_dir")
    return {
        "roots": roots,
        "age": coerce_age(age),
        "gender": normalize_gender(gender),
        "max_concurrency": max_concurrency,
        "delete_invalid": not args.keep_invalid and config.get("delete_invalid", True),
        "dry_run": args.dry_run or config.get("dry_run", False),
        "report": args.report or config.get("report", False),
        "output_dir": Path(output_dir).expanduser() if output_dir else None,
        "logging": config.get("__logging__", {}),
    }


def _configure_logging(logging_cfg: Dict[str, Any], level_override: Optional[str]) -> None:
    setup_logging(
        level=level_override or logging_cfg.get("level"),
        use_rich=logging_cfg.get("use_rich"),
        log_dir=logging_cfg.get("log_dir"),
        file_prefix=logging_cfg.get("file_prefix"),
    )


async def _scan_roots(options: Dict[str, Any], show_progress: bool) -> ScanReport:
    combined = ScanReport()
    with Progress(desc="Scanning", unit="entry", disable=not show_progress) as progress:
        for root in options["roots"]:
            report = await scan_tree(
                root,
                options["age"],
                options["gender"],
                max_concurrency=options["max_concurrency"],
                delete_invalid=options["delete_invalid"],
                dry_run=options["dry_run"],
                progress=progress,
            )
            combined.extend(report)
    return combined


def cli(argv: Optional[Iterable[str]] = None) -> int:
    """Command-line entry point for the DICOM search."""

    parser = build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    try:
        options = _resolve_options(args)
    except (ValueError, FileNotFoundError) as exc:
        parser.print_usage(sys.stderr)
        print(f"dicom-search: error: {exc}", file=sys.stderr)
        return EXIT_USAGE

    _configure_logging(options["logging"], args.log_level)
    log.info(
        "🚀 Searching %s for age=%s gender=%s",
        ", ".join(options["roots"]),
        options["age"],
        options["gender"],
    )

    try:
        report = asyncio.run(_scan_roots(options, show_progress=not args.no_progress))
    except KeyboardInterrupt:
        log.warning("⚠️ Operation cancelled by user.")
        return EXIT_INTERRUPTED

    matches: List[str] = report.matches
    for path in matches:
        print(path)

    log.info("Read patient tags from %d DICOM file(s)", report.scanned)
    log.info(summarize_counts("Scan Summary", report.counts()))
    if options["report"]:
        write_scan_report(report, options["output_dir"])
    return EXIT_OK


def main() -> None:
    raise SystemExit(cli())


if __name__ == "__main__":
    main()
