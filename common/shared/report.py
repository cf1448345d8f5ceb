"""
common.shared.report

Reporting utilities for the DICOM search tools.

 - Timestamped CSV filenames
 - CSV writer with dry-run simulation
 - Human-readable count summaries
 - Per-entry scan report export
"""

from __future__ import annotations

import csv
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Sequence

from common.base.file_io import open_file
from common.base.fs import ensure_dir
from common.base.logging import get_logger

if TYPE_CHECKING:
    from dicom_search.scanner import ScanReport

log = get_logger(__name__)

SCAN_REPORT_BASE_NAME = "dicom_search"
SCAN_REPORT_COLUMNS = ["path", "outcome", "age", "gender", "detail"]


# ----------------------------------------------------------------------
# TIMESTAMPED FILENAMES
# ----------------------------------------------------------------------

def timestamped_filename(base_name: str, ext: str = "csv", output_dir: Optional[Path] = None) -> Path:
    """
    Generate a timestamped output filename (e.g., dicom_search_2025-10-06_103000.csv)
    """
    ts = datetime.now().strftime("%Y-%m-%d_%H%M%S")
    name = f"{base_name}_{ts}.{ext}"
    output_dir = ensure_dir(output_dir or Path.cwd())
    return output_dir / name


# ----------------------------------------------------------------------
# CSV WRITERS
# ----------------------------------------------------------------------

def write_csv(
    data: List[Dict[str, Any]],
    output_path: Path,
    fieldnames: Optional[Sequence[str]] = None,
    dry_run: bool = False,
) -> Path:
    """
    Write structured data to a CSV file.
    Respects dry-run (simulates write if enabled).
    """
    if not data:
        log.warning("No data provided for CSV export.")
        return output_path

    if dry_run:
        log.info(f"[DRY-RUN] Would write CSV: {output_path}")
        return output_path

    ensure_dir(output_path.parent)
    try:
        with open_file(output_path, "w", newline="") as handle:
            writer = csv.DictWriter(handle, fieldnames=list(fieldnames or data[0].keys()))
            writer.writeheader()
            writer.writerows(data)
        log.debug(f"📊 CSV report saved → {output_path}")
        return output_path
    except OSError as e:
        log.error(f"Failed to write CSV report: {e}")
        raise


# ----------------------------------------------------------------------
# HUMAN-READABLE SUMMARY
# ----------------------------------------------------------------------

def summarize_counts(title: str, summary: Dict[str, int]) -> str:
    """
    Return a formatted, human-readable summary string.
    Example:
        summarize_counts("Scan Summary", {"matched": 12, "deleted": 3})
    """
    lines = [f"\n===== {title.upper()} ====="]
    for key, val in summary.items():
        lines.append(f"{key}: {val}")
    lines.append("=====================\n")
    return "\n".join(lines)


# ----------------------------------------------------------------------
# SCAN REPORT EXPORT
# ----------------------------------------------------------------------

def scan_report_rows(report: "ScanReport") -> List[Dict[str, str]]:
    rows: List[Dict[str, str]] = []
    for entry in report.outcomes:
        rows.append(
            {
                "path": entry.path,
                "outcome": entry.outcome.value,
                "age": entry.tags.raw_age if entry.tags else "",
                "gender": entry.tags.raw_gender if entry.tags else "",
                "detail": f"[dry-run] {entry.detail}" if entry.dry_run else entry.detail,
            }
        )
    return rows


def write_scan_report(
    report: "ScanReport",
    output_dir: Optional[Path] = None,
    *,
    base_name: str = SCAN_REPORT_BASE_NAME,
    dry_run: bool = False,
) -> Optional[Path]:
    """Write one CSV row per scanned entry. Returns None when there is nothing to write."""
    rows = scan_report_rows(report)
    if not rows:
        log.warning("No entries captured — skipping export.")
        return None
    path = timestamped_filename(base_name, "csv", output_dir)
    written = write_csv(rows, path, fieldnames=SCAN_REPORT_COLUMNS, dry_run=dry_run)
    log.info(f"📄 CSV written to: {written}")
    return written
