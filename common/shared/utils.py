"""
common.shared.utils

Progress helpers shared across the DICOM search tools.
"""

from __future__ import annotations

import sys
from typing import Any

from tqdm import tqdm


# ----------------------------------------------------------------------
# PROGRESS
# ----------------------------------------------------------------------

class Progress:
    """
    Open-ended tqdm counter that closes automatically when used as a
    context manager. Output goes to stderr.
    """

    def __init__(self, desc: str = "Processing", unit: str = "it", disable: bool = False):
        self._tqdm = tqdm(
            desc=desc,
            unit=unit,
            ncols=100,
            leave=False,
            dynamic_ncols=True,
            file=sys.stderr,
            disable=disable,
        )

    def __enter__(self) -> "Progress":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def update(self, n: int = 1) -> None:
        self._tqdm.update(n)

    def close(self) -> None:
        self._tqdm.close()
