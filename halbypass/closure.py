"""
halbypass.closure
=================

Transitive (non-reflexive) reachability over the call graph and the
*transitive in-degree* derived from it.

``reach[i][j]`` holds iff node ``i`` reaches node ``j`` through one or more
call edges.  The diagonal is set only for nodes that lie on a cycle.

Two strategies produce the same matrix:

``ClosureMethod.WARSHALL``
    Dynamic-programming closure.  For each intermediate ``k`` in index
    order and every pair ``(i, j)``::

        reach[i][j] = reach[i][j] or (reach[i][k] and reach[k][j])

    With rows held as bitsets the inner ``j`` loop collapses into one
    ``|=`` per row.  O(N³) time, O(N²) space.

``ClosureMethod.PER_SOURCE_BFS``
    A breadth-first search from the successors of every node.  Cheaper on
    sparse graphs; the rows are independent of each other.
"""

from __future__ import annotations

import enum
import logging
from collections import deque
from typing import Deque, Dict, Iterable

from halbypass.adjacency import AdjacencyMatrix
from halbypass.callgraph import CallGraphNode

logger = logging.getLogger(__name__)


class ClosureMethod(enum.Enum):
    """Algorithm used to compute the reachability closure."""

    WARSHALL       = "warshall"
    PER_SOURCE_BFS = "bfs"


def warshall_closure(adj: AdjacencyMatrix) -> AdjacencyMatrix:
    """Return the transitive closure of *adj*; *adj* is left untouched."""
    reach = adj.copy()
    rows = reach.rows
    n = len(rows)
    for k in range(n):
        kbit = 1 << k
        row_k = rows[k]
        for i in range(n):
            if rows[i] & kbit:
                # i == k ORs row k into itself, so row_k stays current
                rows[i] |= row_k
    return reach


def bfs_closure(adj: AdjacencyMatrix) -> AdjacencyMatrix:
    """Return the transitive closure of *adj* by one traversal per node."""
    reach = AdjacencyMatrix(adj.nodes)
    for src in range(len(adj)):
        seen = 0
        worklist: Deque[int] = deque(adj.row(src))
        while worklist:
            j = worklist.popleft()
            bit = 1 << j
            if seen & bit:
                continue
            seen |= bit
            worklist.extend(adj.row(j))
        reach.rows[src] = seen
    return reach


def transitive_closure(
    adj: AdjacencyMatrix,
    method: ClosureMethod = ClosureMethod.WARSHALL,
) -> AdjacencyMatrix:
    logger.debug("transitive closure over %d vertices (%s)",
                 len(adj), method.value)
    if method is ClosureMethod.PER_SOURCE_BFS:
        return bfs_closure(adj)
    return warshall_closure(adj)


def transitive_in_degrees(
    reach: AdjacencyMatrix,
    targets: Iterable[CallGraphNode],
) -> Dict[CallGraphNode, int]:
    """For each node in *targets*, count the nodes that reach it."""
    return {
        f: reach.column_count(reach.index[f])
        for f in targets
    }
