"""
halbypass — HAL-bypass detection over a program's call graph
============================================================

Flags functions that access memory-mapped I/O from application code
instead of going through the hardware-abstraction layer.

Modules
-------
callgraph
    Call graph of one unit, with a single synthetic external node.
mmio
    MMIO registry and the enriched per-function record.
name_heuristics
    Lexical HAL classification of function names and paths.
adjacency
    Dense node index and bitset adjacency matrix.
degrees
    Direct call-site in-degree.
closure
    Transitive reachability closure and transitive in-degree.
inference
    Directory-level HAL inference.
analysis
    The end-to-end pipeline, :func:`analyze`.
reporter
    Text and JSON reports.
loader
    JSON input descriptions.

Quick start
-----------
>>> from halbypass import CallGraph, DIFile, DebugLoc, Subprogram, analyze
>>> cg = CallGraph()
>>> f = cg.add_function("uart_write", Subprogram("uart_write",
...                     file=DIFile("uart.c", "/app")))
>>> result = analyze(cg, {f: DebugLoc("uart.c", "/app", 10, 3)})
>>> [m.name for m in result.application_functions()]
['uart_write']
"""

from __future__ import annotations

import logging
from typing import List

__version__ = "0.1.0"
__license__ = "MIT"

from halbypass.analysis import HALBypassFinder, HALBypassResult, analyze
from halbypass.callgraph import (
    CallGraph,
    CallGraphEdge,
    CallGraphNode,
    CallResolutionKind,
    DIFile,
    NodeKind,
    Subprogram,
)
from halbypass.closure import ClosureMethod
from halbypass.errors import CallGraphError, HALBypassError, LoadError
from halbypass.inference import HAL_DIRECTORY_THRESHOLD
from halbypass.mmio import DebugLoc, MMIOFunc, MMIORegistry, build_registry
from halbypass.name_heuristics import is_hal_name

__all__: List[str] = [
    "analyze",
    "build_registry",
    "is_hal_name",
    "CallGraph",
    "CallGraphEdge",
    "CallGraphError",
    "CallGraphNode",
    "CallResolutionKind",
    "ClosureMethod",
    "DebugLoc",
    "DIFile",
    "HAL_DIRECTORY_THRESHOLD",
    "HALBypassError",
    "HALBypassFinder",
    "HALBypassResult",
    "LoadError",
    "MMIOFunc",
    "MMIORegistry",
    "NodeKind",
    "Subprogram",
]

logging.getLogger(__name__).addHandler(logging.NullHandler())
