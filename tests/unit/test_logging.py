from __future__ import annotations

import logging
from pathlib import Path

from common.base.logging import ROOT_LOGGER_NAME, get_logger, normalize_level, setup_logging


def test_get_logger_namespaces_under_package_root() -> None:
    assert get_logger("dicom_search.scanner").name == "dicom_search.scanner"
    assert get_logger("common.base.ops").name == f"{ROOT_LOGGER_NAME}.common.base.ops"
    assert get_logger().name == ROOT_LOGGER_NAME


def test_setup_logging_writes_log_file(tmp_path: Path) -> None:
    logger = setup_logging("DEBUG", use_rich=False, log_dir=tmp_path, file_prefix="run")

    get_logger("dicom_search.scanner").warning("something odd")
    for handler in logger.handlers:
        handler.flush()

    assert logger.rich_enabled is False
    assert logger.log_file is not None
    assert logger.log_file.parent == tmp_path
    assert logger.log_file.name.startswith("run_")
    content = logger.log_file.read_text(encoding="utf-8")
    assert "[WARNING] dicom_search.scanner: something odd" in content


def test_setup_logging_without_log_dir_has_console_only() -> None:
    logger = setup_logging("INFO", use_rich=False)

    assert logger.log_file is None
    assert len(logger.handlers) == 1
    assert logger.level == logging.INFO


def test_normalize_level_falls_back_to_info() -> None:
    assert normalize_level("debug") == "DEBUG"
    assert normalize_level(logging.ERROR) == "ERROR"
    assert normalize_level("loud") == "INFO"
    assert normalize_level(None) == "INFO"
