from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Optional

import pytest
from pydicom.dataset import Dataset, FileMetaDataset
from pydicom.uid import ExplicitVRLittleEndian, generate_uid

from common.base.logging import ROOT_LOGGER_NAME

SECONDARY_CAPTURE_SOP_CLASS = "1.2.840.10008.5.1.4.1.1.7"

DicomWriter = Callable[..., Path]


def write_dicom_file(path: Path, age: Optional[str] = "035Y", sex: Optional[str] = "M") -> Path:
    meta = FileMetaDataset()
    meta.MediaStorageSOPClassUID = SECONDARY_CAPTURE_SOP_CLASS
    meta.MediaStorageSOPInstanceUID = generate_uid()
    meta.TransferSyntaxUID = ExplicitVRLittleEndian

    ds = Dataset()
    ds.file_meta = meta
    ds.SOPClassUID = meta.MediaStorageSOPClassUID
    ds.SOPInstanceUID = meta.MediaStorageSOPInstanceUID
    ds.PatientName = "Test^Patient"
    ds.PatientID = "TEST-001"
    if age is not None:
        ds.PatientAge = age
    if sex is not None:
        ds.PatientSex = sex

    path.parent.mkdir(parents=True, exist_ok=True)
    ds.save_as(path, enforce_file_format=True)
    return path


@pytest.fixture
def write_dicom() -> DicomWriter:
    return write_dicom_file


@pytest.fixture(autouse=True)
def reset_package_logger():
    yield
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger._initialized = False  # type: ignore[attr-defined]
    logger.propagate = True
