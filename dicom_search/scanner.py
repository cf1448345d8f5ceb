"""
dicom_search.scanner

Async recursive scanner that selects DICOM files by patient age and sex.

Each directory level fans out over its entries concurrently and waits for all
of them. Subdirectories are scanned recursively; regular files are parsed and
compared against the filter. Every entry yields an ``EntryOutcome`` so callers
can tell "no matches" apart from "everything failed".

Side effect: files that cannot be parsed as DICOM are deleted from disk
unless ``delete_invalid`` is off. This cannot be undone. A path that cannot
be listed because it is missing, not a directory or not permitted is
unlinked when it is a file and removed only when it is an empty directory;
directories are never removed recursively. Other listing errors leave the
directory in place and report it as FAILED.

Concurrency: a semaphore of ``max_concurrency`` slots guards each I/O step
(list, stat, read, delete). Recursion itself holds no slot, so deep trees
cannot starve their own children. ``max_concurrency <= 0`` disables the
bound and launches every sibling at once, which can exhaust file
descriptors on very wide directories.
"""

from __future__ import annotations

import asyncio
import errno
import stat
from contextlib import nullcontext
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, AsyncContextManager, Dict, List, Optional, Protocol

from common.base.fs import is_hidden
from common.base.logging import get_logger
from common.base.ops import list_dir, remove_path, stat_path

from .age import Age
from .tags import Filter, PatientTags, TagExtractionError, read_patient_tags

log = get_logger(__name__)

DEFAULT_MAX_CONCURRENCY = 64

# Listing errors that mark a path as invalid. Anything else (EMFILE, ENOMEM,
# EIO, ...) is reported as FAILED and the directory is left alone.
DISCARDABLE_ERRNOS = frozenset({errno.ENOENT, errno.ENOTDIR, errno.EACCES, errno.EPERM})


class Outcome(str, Enum):
    MATCHED = "matched"
    MISMATCHED = "mismatched"
    DELETED = "deleted"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True)
class EntryOutcome:
    path: str
    outcome: Outcome
    detail: str = ""
    tags: Optional[PatientTags] = None
    dry_run: bool = False


@dataclass
class ScanReport:
    """Flat, ordered outcomes of one traversal (or one subtree of it)."""

    outcomes: List[EntryOutcome] = field(default_factory=list)

    def add(self, outcome: EntryOutcome) -> None:
        self.outcomes.append(outcome)

    def extend(self, other: "ScanReport") -> None:
        self.outcomes.extend(other.outcomes)

    def _paths(self, outcome: Outcome) -> List[str]:
        return [entry.path for entry in self.outcomes if entry.outcome is outcome]

    @property
    def matches(self) -> List[str]:
        return self._paths(Outcome.MATCHED)

    @property
    def deleted(self) -> List[str]:
        return self._paths(Outcome.DELETED)

    @property
    def skipped(self) -> List[str]:
        return self._paths(Outcome.SKIPPED)

    @property
    def failed(self) -> List[str]:
        return self._paths(Outcome.FAILED)

    @property
    def scanned(self) -> int:
        """Number of files whose tags were read successfully."""
        return sum(1 for entry in self.outcomes if entry.tags is not None)

    def counts(self) -> Dict[str, int]:
        summary = {outcome.value: 0 for outcome in Outcome}
        for entry in self.outcomes:
            summary[entry.outcome.value] += 1
        return summary


class ProgressSink(Protocol):
    def update(self, n: int = 1) -> Any: ...


class DicomScanner:
    """One traversal: an immutable filter plus the options applied to every branch."""

    def __init__(
        self,
        age: Age,
        gender: str,
        *,
        max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
        delete_invalid: bool = True,
        dry_run: bool = False,
        progress: Optional[ProgressSink] = None,
    ) -> None:
        self.filter = Filter(age, gender)
        self.max_concurrency = max_concurrency
        self.delete_invalid = delete_invalid
        self.dry_run = dry_run
        self.progress = progress
        self._limit: Optional[AsyncContextManager[Any]] = None

    async def scan(self, directory: Path | str) -> ScanReport:
        # Semaphores are created inside the running loop.
        if self.max_concurrency > 0:
            self._limit = asyncio.Semaphore(self.max_concurrency)
        else:
            self._limit = nullcontext()
        return await self._scan_dir(Path(directory))

    # ------------------------------------------------------------------
    # TRAVERSAL
    # ------------------------------------------------------------------

    def _slot(self) -> AsyncContextManager[Any]:
        assert self._limit is not None, "scan() not started"
        return self._limit

    async def _scan_dir(self, directory: Path) -> ScanReport:
        report = ScanReport()
        try:
            async with self._slot():
                names = await list_dir(directory)
        except OSError as exc:
            if exc.errno not in DISCARDABLE_ERRNOS:
                log.error("❌ Cannot list directory %s: %s", directory, exc)
                report.add(EntryOutcome(str(directory), Outcome.FAILED, f"cannot list directory: {exc}"))
                return report
            log.warning("⚠️ Cannot list directory %s: %s", directory, exc)
            report.add(await self._discard(directory, f"unlistable directory: {exc}"))
            return report

        entries = [directory / name for name in sorted(names) if not is_hidden(name)]
        results = await asyncio.gather(
            *(self._scan_entry(entry) for entry in entries),
            return_exceptions=True,
        )
        for entry, result in zip(entries, results):
            if isinstance(result, Exception):
                log.error("❌ Unexpected error scanning %s", entry, exc_info=result)
                report.add(EntryOutcome(str(entry), Outcome.FAILED, f"unexpected error: {result!r}"))
            elif isinstance(result, BaseException):
                raise result
            else:
                report.extend(result)
        return report

    async def _scan_entry(self, path: Path) -> ScanReport:
        try:
            async with self._slot():
                info = await stat_path(path)
        except OSError as exc:
            log.warning("⚠️ Skipping unreadable entry %s: %s", path, exc)
            return self._single(EntryOutcome(str(path), Outcome.SKIPPED, f"stat failed: {exc}"))

        if stat.S_ISDIR(info.st_mode):
            return await self._scan_dir(path)
        if stat.S_ISREG(info.st_mode):
            return self._single(await self._check_file(path))

        log.warning("⚠️ Skipping %s: not a file or directory", path)
        return self._single(EntryOutcome(str(path), Outcome.SKIPPED, "not a file or directory"))

    def _single(self, outcome: EntryOutcome) -> ScanReport:
        if self.progress is not None:
            self.progress.update(1)
        return ScanReport([outcome])

    # ------------------------------------------------------------------
    # FILE EVALUATION
    # ------------------------------------------------------------------

    async def _check_file(self, path: Path) -> EntryOutcome:
        try:
            async with self._slot():
                tags = await read_patient_tags(path)
        except (OSError, TagExtractionError) as exc:
            return await self._discard(path, str(exc))

        if self.filter.matches(tags):
            log.debug("✅ Match: %s (age=%s sex=%s)", path, tags.raw_age, tags.raw_gender)
            return EntryOutcome(str(path), Outcome.MATCHED, tags=tags)

        log.debug("Mismatch: %s (age=%s sex=%s)", path, tags.raw_age, tags.raw_gender)
        return EntryOutcome(str(path), Outcome.MISMATCHED, tags=tags)

    async def _discard(self, path: Path, reason: str) -> EntryOutcome:
        if not self.delete_invalid:
            log.warning("⚠️ Keeping invalid entry %s (%s)", path, reason)
            return EntryOutcome(str(path), Outcome.SKIPPED, reason)

        async with self._slot():
            removed = await remove_path(path, dry_run=self.dry_run)
        if removed:
            return EntryOutcome(str(path), Outcome.DELETED, reason, dry_run=self.dry_run)
        return EntryOutcome(str(path), Outcome.FAILED, f"{reason}; delete failed")


# ----------------------------------------------------------------------
# ENTRY POINTS
# ----------------------------------------------------------------------

async def scan_tree(
    directory: Path | str,
    age: Age,
    gender: str,
    *,
    max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
    delete_invalid: bool = True,
    dry_run: bool = False,
    progress: Optional[ProgressSink] = None,
) -> ScanReport:
    """
    Scan ``directory`` recursively and report the outcome of every entry.

    Never raises for filesystem or parse failures; those appear in the
    report as DELETED, SKIPPED or FAILED entries.
    """
    scanner = DicomScanner(
        age,
        gender,
        max_concurrency=max_concurrency,
        delete_invalid=delete_invalid,
        dry_run=dry_run,
        progress=progress,
    )
    report = await scanner.scan(directory)
    counts = report.counts()
    log.info(
        "Scan of %s finished: %d matched, %d mismatched, %d deleted, %d skipped, %d failed",
        directory,
        counts[Outcome.MATCHED.value],
        counts[Outcome.MISMATCHED.value],
        counts[Outcome.DELETED.value],
        counts[Outcome.SKIPPED.value],
        counts[Outcome.FAILED.value],
    )
    return report


async def get_dicom_files(directory: Path | str, age: Age, gender: str, **options: Any) -> List[str]:
    """Paths of the DICOM files under ``directory`` whose age and sex equal the filter."""
    report = await scan_tree(directory, age, gender, **options)
    return report.matches


def search_dicom_files(directory: Path | str, age: Age, gender: str, **options: Any) -> List[str]:
    """Blocking wrapper around ``get_dicom_files``."""
    return asyncio.run(get_dicom_files(directory, age, gender, **options))
