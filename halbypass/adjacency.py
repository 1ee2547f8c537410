"""
Dense adjacency representation of a :class:`~halbypass.callgraph.CallGraph`.

Every node, the external node included, gets an index in ``[0, N)`` in the
graph's insertion order.  Row ``i`` of the matrix is stored as a Python
integer used as a bitset: bit ``j`` is set iff node ``i`` has at least one
direct call site targeting node ``j``.  Memory is O(N²) bits, which is fine
for the functions of a single unit.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterator, List

from halbypass.callgraph import CallGraph, CallGraphNode

logger = logging.getLogger(__name__)


class AdjacencyMatrix:
    """An N×N boolean matrix over the nodes of a call graph.

    Attributes
    ----------
    nodes : list[CallGraphNode]
        Index -> node.
    index : dict[CallGraphNode, int]
        Node -> index.
    rows : list[int]
        Row bitsets.
    """

    __slots__ = ("nodes", "index", "rows")

    def __init__(self, nodes: List[CallGraphNode]) -> None:
        self.nodes: List[CallGraphNode] = list(nodes)
        self.index: Dict[CallGraphNode, int] = {
            n: i for i, n in enumerate(self.nodes)
        }
        self.rows: List[int] = [0] * len(self.nodes)

    def __len__(self) -> int:
        return len(self.nodes)

    def __getitem__(self, ij) -> bool:
        i, j = ij
        return bool(self.rows[i] >> j & 1)

    def set(self, i: int, j: int) -> None:
        self.rows[i] |= 1 << j

    def row(self, i: int) -> Iterator[int]:
        """Yield the column indices set in row *i*."""
        bits = self.rows[i]
        while bits:
            low = bits & -bits
            yield low.bit_length() - 1
            bits ^= low

    def column_count(self, j: int) -> int:
        """Number of rows with bit *j* set."""
        mask = 1 << j
        return sum(1 for r in self.rows if r & mask)

    def copy(self) -> AdjacencyMatrix:
        other = AdjacencyMatrix.__new__(AdjacencyMatrix)
        other.nodes = self.nodes
        other.index = self.index
        other.rows = list(self.rows)
        return other

    def __eq__(self, other) -> bool:
        if isinstance(other, AdjacencyMatrix):
            return self.nodes == other.nodes and self.rows == other.rows
        return NotImplemented

    def __repr__(self) -> str:
        return f"AdjacencyMatrix(n={len(self.nodes)})"


def build_adjacency(cg: CallGraph) -> AdjacencyMatrix:
    """Index every node of *cg* and mark one bit per (caller, callee) pair.

    Self-calls set the diagonal; nothing else does.
    """
    matrix = AdjacencyMatrix(list(cg))
    for edge in cg.edges:
        matrix.set(matrix.index[edge.caller], matrix.index[edge.callee])
    logger.debug("#vertices=%d #edges=%d", len(matrix), len(cg.edges))
    return matrix
