"""
halbypass.mmio
==============

The MMIO registry handed to the analysis and the enriched per-function
record the analysis fills in.

The registry is produced by an external detector: it maps every function
that touches memory-mapped I/O to the debug location of one representative
MMIO instruction.  :func:`build_registry` keeps the first location seen for
a function, so detectors may stream every instruction they find.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, Optional, Tuple

from halbypass.callgraph import CallGraphNode, directory_of


@dataclass(frozen=True)
class DebugLoc:
    """Source location of an instruction.

    ``inlined_at`` points at the location the enclosing scope was inlined
    into, forming a chain that ends with ``None``.
    """

    filename: str
    directory: str = ""
    line: int = 0
    column: int = 0
    inlined_at: Optional["DebugLoc"] = None

    @property
    def full_path(self) -> str:
        if not self.directory:
            return self.filename
        return f"{self.directory}/{self.filename}"

    @property
    def source_directory(self) -> str:
        return directory_of(self.full_path)

    def __str__(self) -> str:
        text = f"{self.full_path}:{self.line}"
        if self.column:
            text += f":{self.column}"
        if self.inlined_at is not None:
            text += f" @[ {self.inlined_at} ]"
        return text


MMIORegistry = Dict[CallGraphNode, DebugLoc]


def build_registry(
    entries: Iterable[Tuple[CallGraphNode, DebugLoc]],
) -> MMIORegistry:
    """Build a registry from ``(function, location)`` pairs.

    Only the first location for each function is retained.
    """
    registry: MMIORegistry = {}
    for func, loc in entries:
        registry.setdefault(func, loc)
    return registry


@dataclass
class MMIOFunc:
    """One MMIO-touching function, enriched by the analysis stages.

    Attributes
    ----------
    function : CallGraphNode
        The function, as a node of the analysed call graph.
    location : DebugLoc
        The representative MMIO instruction.
    source_directory : str or None
        Directory of the function's source file; ``None`` when no debug
        information resolves it.
    is_hal : bool
        HAL-by-name classification.
    is_hal_by_directory : bool
        HAL-by-directory classification (call-pressure inference).
    in_degree : int
        Number of direct call sites targeting the function.
    trans_closure_in_degree : int
        Number of distinct nodes that reach the function through one or
        more direct calls.
    """

    function: CallGraphNode
    location: DebugLoc
    source_directory: Optional[str] = None
    is_hal: bool = False
    is_hal_by_directory: bool = False
    in_degree: int = 0
    trans_closure_in_degree: int = 0

    @property
    def name(self) -> str:
        return self.function.name

    @classmethod
    def from_registry_entry(
        cls, function: CallGraphNode, location: DebugLoc,
    ) -> MMIOFunc:
        sp = function.subprogram
        if sp is not None and sp.file is not None:
            directory: Optional[str] = sp.file.source_directory
        elif location.filename:
            # No file on the subprogram; the instruction's own scope is the
            # best remaining evidence of where the function lives.
            directory = location.source_directory
        else:
            directory = None
        return cls(function=function, location=location,
                   source_directory=directory)
