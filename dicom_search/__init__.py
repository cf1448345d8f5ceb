"""
DICOM search: find medical images by patient age and sex.

Modules:
  age.py      : DICOM Age String conversion to fractional years
  tags.py     : PatientAge / PatientSex extraction via pydicom
  scanner.py  : async recursive traversal, filtering and cleanup
  cli.py      : `dicom-search` command-line entry point
"""

from .age import DAYS_PER_YEAR, parse_age, parse_gender
from .scanner import (
    DicomScanner,
    EntryOutcome,
    Outcome,
    ScanReport,
    get_dicom_files,
    scan_tree,
    search_dicom_files,
)
from .tags import Filter, PatientTags, TagExtractionError, parse_tags, read_patient_tags

__all__ = [
    "DAYS_PER_YEAR",
    "DicomScanner",
    "EntryOutcome",
    "Filter",
    "Outcome",
    "PatientTags",
    "ScanReport",
    "TagExtractionError",
    "get_dicom_files",
    "parse_age",
    "parse_gender",
    "parse_tags",
    "read_patient_tags",
    "scan_tree",
    "search_dicom_files",
]
