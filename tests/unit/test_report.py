from __future__ import annotations

import csv
from pathlib import Path

from common.shared.report import summarize_counts, write_csv, write_scan_report
from dicom_search.scanner import EntryOutcome, Outcome, ScanReport
from dicom_search.tags import PatientTags


def _sample_report() -> ScanReport:
    return ScanReport(
        [
            EntryOutcome("/data/a.dcm", Outcome.MATCHED, tags=PatientTags("035Y", "M", 35, "M")),
            EntryOutcome("/data/junk.txt", Outcome.DELETED, "not a DICOM file", dry_run=True),
            EntryOutcome("/data/link", Outcome.SKIPPED, "stat failed"),
        ]
    )


def test_write_scan_report_writes_one_row_per_entry(tmp_path: Path) -> None:
    path = write_scan_report(_sample_report(), tmp_path)

    assert path is not None
    assert path.parent == tmp_path
    assert path.suffix == ".csv"
    assert path.name.startswith("dicom_search_")

    with path.open(encoding="utf-8", newline="") as handle:
        rows = list(csv.DictReader(handle))

    assert [row["outcome"] for row in rows] == ["matched", "deleted", "skipped"]
    assert rows[0]["age"] == "035Y"
    assert rows[0]["gender"] == "M"
    assert rows[1]["detail"] == "[dry-run] not a DICOM file"
    assert rows[2]["age"] == ""


def test_write_scan_report_skips_empty_report(tmp_path: Path) -> None:
    assert write_scan_report(ScanReport(), tmp_path) is None
    assert list(tmp_path.iterdir()) == []


def test_write_csv_dry_run_does_not_touch_disk(tmp_path: Path) -> None:
    target = tmp_path / "out" / "rows.csv"

    result = write_csv([{"value": 1}], target, dry_run=True)

    assert result == target
    assert not target.exists()


def test_summarize_counts_lists_every_key() -> None:
    text = summarize_counts("Scan Summary", _sample_report().counts())

    assert "===== SCAN SUMMARY =====" in text
    assert "matched: 1" in text
    assert "deleted: 1" in text
    assert "failed: 0" in text
