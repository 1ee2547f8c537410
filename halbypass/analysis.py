"""
halbypass.analysis
==================

The HAL-bypass pipeline: given a call graph and the registry of functions
that touch MMIO, decide which of those functions belong to the
hardware-abstraction layer and which are application code poking hardware
registers directly.

Stages, in order:

1. **Name classification** — :func:`~halbypass.name_heuristics.is_hal_function`
   on each registry member.
2. **Adjacency** — dense index and matrix of the call graph.
3. **Direct in-degree** — call sites targeting each registry member.
4. **Transitive closure** — distinct nodes reaching each registry member.
5. **Directory inference** — directories of high-traffic members, and the
   ``is_hal_by_directory`` flag for every member.

Typical usage::

    from halbypass.analysis import analyze

    result = analyze(cg, registry)
    for f in result.application_functions():
        print(f.name, f.location)

Each call builds fresh state; nothing is cached between runs.
"""

from __future__ import annotations

import logging
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import FrozenSet, Iterator, List, Optional

from halbypass.adjacency import build_adjacency
from halbypass.callgraph import CallGraph, CallGraphNode
from halbypass.closure import (
    ClosureMethod,
    transitive_closure,
    transitive_in_degrees,
)
from halbypass.degrees import compute_in_degrees
from halbypass.errors import CallGraphError
from halbypass.inference import (
    apply_directory_inference,
    infer_hal_directories,
)
from halbypass.mmio import MMIOFunc, MMIORegistry
from halbypass.name_heuristics import is_hal_function

__all__ = [
    "HALBypassResult",
    "HALBypassFinder",
    "analyze",
]

logger = logging.getLogger(__name__)


@dataclass
class HALBypassResult:
    """The enriched registry produced by one run.

    Attributes
    ----------
    functions : OrderedDict[CallGraphNode, MMIOFunc]
        One entry per registry member, in registry order.
    hal_directories : frozenset[str]
        Directories inferred to implement HAL code.
    warnings : list[str]
        Non-fatal problems met during the run (missing debug info).
    """

    functions: "OrderedDict[CallGraphNode, MMIOFunc]" = field(
        default_factory=OrderedDict)
    hal_directories: FrozenSet[str] = frozenset()
    warnings: List[str] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.functions)

    def __iter__(self) -> Iterator[MMIOFunc]:
        return iter(self.functions.values())

    def __getitem__(self, func: CallGraphNode) -> MMIOFunc:
        return self.functions[func]

    def by_name(self, name: str) -> Optional[MMIOFunc]:
        for f in self.functions.values():
            if f.name == name:
                return f
        return None

    def application_functions(self) -> List[MMIOFunc]:
        """Registry members not classified as HAL by name."""
        return [f for f in self if not f.is_hal]

    def hal_functions(self) -> List[MMIOFunc]:
        return [f for f in self if f.is_hal]


class HALBypassFinder:
    """Runs the five stages over one call graph and registry.

    Parameters
    ----------
    closure_method : ClosureMethod
        Strategy for the reachability closure.
    """

    def __init__(
        self,
        closure_method: ClosureMethod = ClosureMethod.WARSHALL,
    ) -> None:
        self.closure_method = closure_method

    def run(self, cg: CallGraph, registry: MMIORegistry) -> HALBypassResult:
        result = HALBypassResult()

        # Stage 1: name-based classification
        for func, loc in registry.items():
            if func not in cg or func.is_external:
                raise CallGraphError(
                    f"MMIO function {func.name!r} is not a function of "
                    f"the analysed call graph")
            mf = MMIOFunc.from_registry_entry(func, loc)
            mf.is_hal = is_hal_function(func, result.warnings)
            result.functions[func] = mf

        # Stages 2-5: call-graph based classification
        self._call_graph_hal_ident(cg, result)
        return result

    def _call_graph_hal_ident(
        self, cg: CallGraph, result: HALBypassResult,
    ) -> None:
        funcs = result.functions

        for func, deg in compute_in_degrees(cg, funcs).items():
            funcs[func].in_degree = deg

        adj = build_adjacency(cg)
        reach = transitive_closure(adj, self.closure_method)
        for func, deg in transitive_in_degrees(reach, funcs).items():
            funcs[func].trans_closure_in_degree = deg

        result.hal_directories = infer_hal_directories(funcs.values())
        apply_directory_inference(funcs.values(), result.hal_directories)
        logger.debug(
            "%d MMIO functions, %d HAL by name, %d HAL by directory",
            len(funcs),
            sum(1 for f in funcs.values() if f.is_hal),
            sum(1 for f in funcs.values() if f.is_hal_by_directory),
        )


def analyze(
    cg: CallGraph,
    registry: MMIORegistry,
    closure_method: ClosureMethod = ClosureMethod.WARSHALL,
) -> HALBypassResult:
    """Classify every function of *registry* against the call graph *cg*."""
    return HALBypassFinder(closure_method=closure_method).run(cg, registry)
