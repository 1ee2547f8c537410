"""Direct call-site in-degree of MMIO functions."""

from __future__ import annotations

from typing import Dict, Mapping

from halbypass.callgraph import CallGraph, CallGraphNode


def compute_in_degrees(
    cg: CallGraph,
    targets: Mapping[CallGraphNode, object],
) -> Dict[CallGraphNode, int]:
    """Count the call sites of *cg* whose resolved callee is in *targets*.

    Every edge counts, so repeated calls from one caller add up.  Indirect
    calls land on the external node and therefore never count towards a
    concrete function.
    """
    degrees = {f: 0 for f in targets}
    for edge in cg.edges:
        if edge.callee in degrees:
            degrees[edge.callee] += 1
    return degrees
