"""
Lexical HAL detection.

A function is taken to belong to the hardware-abstraction layer when its
name, linkage name, source file or source directory mentions one of the
usual HAL vocabulary words.  The match is a case-insensitive substring
test; ``"hal"`` is ignored inside ``"halt"`` so that ``wait_halted`` and
friends stay application code.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from halbypass.callgraph import CallGraphNode

logger = logging.getLogger(__name__)

HAL_KEYWORDS: Tuple[str, ...] = ("driver", "arch", "soc", "cmsis")


def is_hal_name(s: str) -> bool:
    """Return True if *s* looks like HAL code."""
    low = s.lower()
    if "hal" in low and "halt" not in low:
        return True
    return any(kw in low for kw in HAL_KEYWORDS)


def is_hal_function(
    func: CallGraphNode,
    warnings: Optional[List[str]] = None,
) -> bool:
    """Classify *func* by its debug metadata.

    Without a subprogram the heuristic cannot run: a warning is logged
    (and appended to *warnings* when given) and the function counts as
    application code.
    """
    sp = func.subprogram
    if sp is None:
        msg = f"is_hal_function: no debug info for {func.name!r}"
        logger.warning(msg)
        if warnings is not None:
            warnings.append(msg)
        return False

    candidates = [sp.name, sp.linkage_name]
    if sp.file is not None:
        # derived source directory, not the bare compilation directory
        candidates += [sp.file.filename, sp.file.source_directory]
    if any(is_hal_name(c) for c in candidates if c):
        logger.debug("HAL function by name: %s (%s)", sp.name,
                     sp.file.filename if sp.file else "?")
        return True
    return False
