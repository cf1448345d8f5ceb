"""
common.base.ops

Async filesystem operations for the DICOM search tools.

 - Every call is awaitable so a traversal never blocks the event loop
 - Dry-run support for destructive operations
 - Removal failures are logged and reported as False, never raised
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import List

import aiofiles.os

from .logging import get_logger

log = get_logger(__name__)


# ----------------------------------------------------------------------
# LISTING / METADATA
# ----------------------------------------------------------------------

async def list_dir(path: Path | str) -> List[str]:
    """Return the entry names of a directory. Raises OSError when unlistable."""
    return await aiofiles.os.listdir(path)


async def stat_path(path: Path | str) -> os.stat_result:
    """Stat a path, following symlinks."""
    return await aiofiles.os.stat(path)


# ----------------------------------------------------------------------
# REMOVAL
# ----------------------------------------------------------------------

async def remove_file(path: Path | str, dry_run: bool = False) -> bool:
    """
    Remove a single file. Returns True if removed (or would be on dry-run).
    """
    p = Path(path)
    if dry_run:
        log.info("[DRY-RUN] Would delete file: %s", p)
        return True

    try:
        await aiofiles.os.remove(p)
    except FileNotFoundError:
        log.debug("File not found (skip delete): %s", p)
        return False
    except OSError as exc:
        log.error("Failed to remove %s: %s", p, exc)
        return False
    log.info("🗑️ Deleted file: %s", p)
    return True


async def remove_dir(path: Path | str, dry_run: bool = False) -> bool:
    """
    Remove an empty directory. A directory that still has entries is kept
    and counts as not removed.
    """
    p = Path(path)
    if dry_run:
        log.info("[DRY-RUN] Would delete directory: %s", p)
        return True

    try:
        await aiofiles.os.rmdir(p)
    except FileNotFoundError:
        log.debug("Directory not found (skip delete): %s", p)
        return False
    except OSError as exc:
        log.error("Failed to remove directory %s: %s", p, exc)
        return False
    log.info("🗑️ Deleted directory: %s", p)
    return True


async def remove_path(path: Path | str, dry_run: bool = False) -> bool:
    """
    Remove whatever lives at ``path``: an empty directory or a single file.

    Directories are never removed recursively. Symlinks are unlinked rather
    than followed. A path that does not exist counts as not removed.
    """
    p = Path(path)
    is_link = await aiofiles.os.path.islink(p)
    if not is_link and await aiofiles.os.path.isdir(p):
        return await remove_dir(p, dry_run=dry_run)
    if not is_link and not await aiofiles.os.path.exists(p):
        log.debug("Path not found (skip delete): %s", p)
        return False
    return await remove_file(p, dry_run=dry_run)
