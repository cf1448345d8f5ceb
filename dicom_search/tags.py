"""
dicom_search.tags

Patient metadata extraction on top of pydicom.

The parser is treated as a black box: raw bytes in, a dataset out, or an
exception when the bytes are not a DICOM file. Only ``PatientAge`` and
``PatientSex`` are read.
"""

from __future__ import annotations

from dataclasses import dataclass
from io import BytesIO
from pathlib import Path
from typing import Optional

import pydicom
from pydicom.errors import InvalidDicomError

from common.base.file_io import read_bytes_async

from .age import Age, parse_age, parse_gender

AGE_TAG = "PatientAge"
GENDER_TAG = "PatientSex"


class TagExtractionError(ValueError):
    """Raised when a file cannot yield the patient tags."""


@dataclass(frozen=True)
class PatientTags:
    raw_age: str
    raw_gender: str
    age: Optional[Age]
    gender: str


@dataclass(frozen=True)
class Filter:
    """Exact (age, gender) selection applied to every file of a scan."""

    age: Age
    gender: str

    def __post_init__(self) -> None:
        if isinstance(self.age, bool) or not isinstance(self.age, (int, float)):
            raise ValueError(f"Filter age must be a number, got {self.age!r}")
        if not isinstance(self.gender, str) or len(self.gender) != 1:
            raise ValueError(f"Filter gender must be a single character, got {self.gender!r}")

    def matches(self, tags: PatientTags) -> bool:
        if tags.age is None:
            return False
        return tags.age == self.age and tags.gender == self.gender


def _read_tag(dataset: pydicom.Dataset, keyword: str) -> str:
    if keyword not in dataset:
        raise TagExtractionError(f"missing tag {keyword}")
    value = dataset.get(keyword)
    return "" if value is None else str(value)


def parse_tags(data: bytes) -> PatientTags:
    """
    Parse raw DICOM bytes and extract the patient tags.

    Raises:
        TagExtractionError: when the bytes are not DICOM, the parser fails,
            or either tag is absent.
    """
    try:
        dataset = pydicom.dcmread(BytesIO(data), stop_before_pixels=True)
        # Element values are converted lazily, so reads stay inside the guard.
        raw_age = _read_tag(dataset, AGE_TAG)
        raw_gender = _read_tag(dataset, GENDER_TAG)
    except TagExtractionError:
        raise
    except InvalidDicomError as exc:
        raise TagExtractionError(f"not a DICOM file: {exc}") from exc
    except Exception as exc:
        raise TagExtractionError(f"DICOM parse failed: {exc}") from exc

    return PatientTags(
        raw_age=raw_age,
        raw_gender=raw_gender,
        age=parse_age(raw_age),
        gender=parse_gender(raw_gender),
    )


async def read_patient_tags(path: Path | str) -> PatientTags:
    """Read a whole file and extract its patient tags."""
    data = await read_bytes_async(path)
    return parse_tags(data)
