# tests/conftest.py
"""
Shared helpers for building small call graphs and MMIO registries.
"""

from __future__ import annotations

from typing import Dict, Iterable, Optional, Tuple

import pytest

from halbypass.callgraph import CallGraph, CallGraphNode, DIFile, Subprogram
from halbypass.mmio import DebugLoc, MMIORegistry


def add_func(
    cg: CallGraph,
    name: str,
    directory: str = "/app",
    filename: Optional[str] = None,
    debug: bool = True,
    linkage_name: str = "",
) -> CallGraphNode:
    """Add a function defined in ``directory/filename`` (default ``name.c``)."""
    subprogram = None
    if debug:
        subprogram = Subprogram(
            name=name,
            linkage_name=linkage_name,
            file=DIFile(filename or f"{name.lower()}.c", directory),
        )
    return cg.add_function(name, subprogram=subprogram)


def mmio_loc(
    func: CallGraphNode,
    line: int = 1,
    column: int = 0,
    inlined_at: Optional[DebugLoc] = None,
) -> DebugLoc:
    """An MMIO instruction location inside *func*'s own file."""
    sp = func.subprogram
    if sp is None or sp.file is None:
        return DebugLoc(f"{func.name}.c", "", line, column, inlined_at)
    return DebugLoc(sp.file.filename, sp.file.directory, line, column,
                    inlined_at)


def graph_from_edges(
    names: Iterable[str],
    edges: Iterable[Tuple[str, str]],
) -> Tuple[CallGraph, Dict[str, CallGraphNode]]:
    """Build a graph of functions in ``/app`` with the given direct calls."""
    cg = CallGraph()
    nodes = {n: add_func(cg, n) for n in names}
    for caller, callee in edges:
        cg.add_call(nodes[caller], nodes[callee])
    return cg, nodes


def make_scenario(num_roots: int = 8):
    """``num_roots`` roots call A, A -> B -> C.

    C and D are MMIO functions in ``/drv``; D is never called.  E is an
    isolated MMIO function in ``/app``.  C is reached by ``num_roots + 2``
    distinct functions.
    """
    cg = CallGraph()
    a = add_func(cg, "A")
    b = add_func(cg, "B")
    c = add_func(cg, "C", directory="/drv")
    d = add_func(cg, "D", directory="/drv")
    e = add_func(cg, "E")
    for i in range(num_roots):
        root = add_func(cg, f"root{i}")
        cg.add_call(root, a)
    cg.add_call(a, b)
    cg.add_call(b, c)
    registry: MMIORegistry = {
        c: mmio_loc(c, 10, 5),
        d: mmio_loc(d, 20),
        e: mmio_loc(e, 30, 2),
    }
    return cg, registry


@pytest.fixture
def scenario():
    return make_scenario()
