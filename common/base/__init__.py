"""Low-level shared utilities for the DICOM search tools."""

from .logging import get_logger, setup_logging, ScanLogger

__all__ = [
    "get_logger",
    "setup_logging",
    "ScanLogger",
]
