"""
Directory-level HAL inference.

A source directory that holds at least one MMIO function reached by
``HAL_DIRECTORY_THRESHOLD`` or more distinct callers is taken to implement
a HAL or driver module.  Every MMIO function in such a directory is then
classified as HAL, whatever its own call pressure: support routines of a
driver are often called from a single place, or not at all.

This over-approximates on purpose.  Directories that mix driver and
application code will have their application functions classified as HAL.
"""

from __future__ import annotations

import logging
from typing import FrozenSet, Iterable

from halbypass.mmio import MMIOFunc

logger = logging.getLogger(__name__)

HAL_DIRECTORY_THRESHOLD = 10


def infer_hal_directories(funcs: Iterable[MMIOFunc]) -> FrozenSet[str]:
    """Directories containing a function with enough transitive callers."""
    dirs = frozenset(
        f.source_directory for f in funcs
        if f.source_directory is not None
        and f.trans_closure_in_degree >= HAL_DIRECTORY_THRESHOLD
    )
    logger.debug("HAL directories: %s", sorted(dirs))
    return dirs


def apply_directory_inference(
    funcs: Iterable[MMIOFunc],
    hal_dirs: FrozenSet[str],
) -> None:
    """Set ``is_hal_by_directory`` on every function, in place."""
    for f in funcs:
        f.is_hal_by_directory = (
            f.source_directory is not None
            and f.source_directory in hal_dirs
        )
