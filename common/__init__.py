"""Shared infrastructure for the DICOM search tools."""
