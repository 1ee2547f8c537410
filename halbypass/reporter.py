"""
halbypass/reporter.py
═════════════════════

Renders a :class:`~halbypass.analysis.HALBypassResult` as a two-section
report: application MMIO functions (the HAL bypasses) and HAL MMIO
functions.

Output formats
──────────────
  • Text : one line per function, section titles coloured with termcolor
  • JSON : the same content as a stable, sorted-key document

Partitioning
────────────
The sections are split on ``is_hal`` (the name heuristic) by default.
``is_hal_by_directory`` is always shown as a column; pass
``PartitionKey.BY_DIRECTORY`` to split on it instead.

Usage
─────
    from halbypass.reporter import render_text

    render_text(result, sys.stdout)
"""

from __future__ import annotations

import enum
import json
import sys
from dataclasses import dataclass
from typing import Any, Dict, List, TextIO

from termcolor import colored

from halbypass.analysis import HALBypassResult
from halbypass.mmio import MMIOFunc

RULE = "================================================="
THIN_RULE = "-------------------------------------------------"
COLUMNS = (
    "Function, Location of MMIO inst, InDegree, TransClosureInDeg, "
    "IsHalByDirectory"
)


# ═════════════════════════════════════════════════════════════════════════
#  PARTITIONING
# ═════════════════════════════════════════════════════════════════════════

class PartitionKey(enum.Enum):
    """Which classification splits application from HAL functions."""

    BY_NAME = "name"
    BY_DIRECTORY = "directory"

    def is_hal(self, f: MMIOFunc) -> bool:
        if self is PartitionKey.BY_DIRECTORY:
            return f.is_hal_by_directory
        return f.is_hal


@dataclass
class Section:
    title: str
    color: str
    functions: List[MMIOFunc]


def partition(
    result: HALBypassResult,
    key: PartitionKey = PartitionKey.BY_NAME,
) -> List[Section]:
    """Split *result* into the application and HAL sections, in order."""
    app: List[MMIOFunc] = []
    hal: List[MMIOFunc] = []
    for f in result:
        (hal if key.is_hal(f) else app).append(f)
    return [
        Section("Application MMIO functions", "red", app),
        Section("HAL MMIO functions", "green", hal),
    ]


def format_function(f: MMIOFunc) -> str:
    """``name location in_degree trans_in_degree is_hal_by_directory``."""
    return (
        f"{f.name} {f.location} {f.in_degree} "
        f"{f.trans_closure_in_degree} {int(f.is_hal_by_directory)}"
    )


# ═════════════════════════════════════════════════════════════════════════
#  TEXT RENDERER
# ═════════════════════════════════════════════════════════════════════════

class _TextRenderer:
    """Render sections as plain or coloured text."""

    def __init__(self, stream: TextIO = sys.stdout, color: bool = True) -> None:
        self._stream = stream
        self._color = color

    def _title(self, section: Section) -> str:
        text = f"{section.title} (# = {len(section.functions)})"
        if self._color:
            return colored(text, section.color, attrs=["bold"])
        return text

    def render(self, sections: List[Section]) -> None:
        lines: List[str] = []
        for section in sections:
            lines.append(RULE)
            lines.append(self._title(section))
            lines.append(COLUMNS)
            lines.append(THIN_RULE)
            lines.extend(format_function(f) for f in section.functions)
            lines.append(THIN_RULE)
            lines.append("")
        self._stream.write("\n".join(lines) + "\n")
        self._stream.flush()


# ═════════════════════════════════════════════════════════════════════════
#  JSON BUILDER
# ═════════════════════════════════════════════════════════════════════════

def _function_payload(f: MMIOFunc) -> Dict[str, Any]:
    return {
        "name": f.name,
        "location": str(f.location),
        "in_degree": f.in_degree,
        "trans_closure_in_degree": f.trans_closure_in_degree,
        "is_hal_by_name": f.is_hal,
        "is_hal_by_directory": f.is_hal_by_directory,
        "source_directory": f.source_directory,
    }


def to_payload(
    result: HALBypassResult,
    key: PartitionKey = PartitionKey.BY_NAME,
) -> Dict[str, Any]:
    return {
        "partition": key.value,
        "hal_directories": sorted(result.hal_directories),
        "warnings": list(result.warnings),
        "sections": [
            {
                "title": s.title,
                "count": len(s.functions),
                "functions": [_function_payload(f) for f in s.functions],
            }
            for s in partition(result, key)
        ],
    }


def to_json(
    result: HALBypassResult,
    key: PartitionKey = PartitionKey.BY_NAME,
) -> str:
    return json.dumps(to_payload(result, key), indent=2, sort_keys=True)


# ═════════════════════════════════════════════════════════════════════════
#  PUBLIC API
# ═════════════════════════════════════════════════════════════════════════

def render_text(
    result: HALBypassResult,
    stream: TextIO = sys.stdout,
    key: PartitionKey = PartitionKey.BY_NAME,
    color: bool = False,
) -> None:
    _TextRenderer(stream, color=color).render(partition(result, key))


def render_json(
    result: HALBypassResult,
    stream: TextIO = sys.stdout,
    key: PartitionKey = PartitionKey.BY_NAME,
) -> None:
    stream.write(to_json(result, key) + "\n")
    stream.flush()
