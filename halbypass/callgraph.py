"""
halbypass.callgraph
===================

The call graph of one analysed unit, as consumed by the HAL-bypass analysis.

The call graph is a directed graph where:
- **Nodes** are the functions defined or declared in the unit, plus exactly
  one synthetic *external* node that stands for every call target that
  could not be resolved statically.
- **Edges** are call sites.  One edge is created per call instruction, so a
  caller that invokes the same callee three times contributes three edges.

Resolution kinds
----------------
``DIRECT``
    The callee is statically known (ordinary function call).
``INDIRECT``
    The call goes through a function pointer.  Such calls never produce an
    edge to any concrete callee; they are recorded as an edge to the
    external node.

Each function node may carry debug metadata (a :class:`Subprogram`, which
holds the source :class:`DIFile`).  Functions compiled without debug info
simply have ``subprogram = None``.

Public API
----------
    DIFile              - a source file (filename + compilation directory)
    Subprogram          - debug metadata of a function
    CallGraphNode       - a node in the call graph
    CallGraphEdge       - a directed edge (call site)
    CallGraph           - the whole-unit call graph
    CallResolutionKind  - enum of resolution methods
    NodeKind            - enum of node kinds

Typical usage::

    from halbypass.callgraph import CallGraph, DIFile, Subprogram

    cg = CallGraph()
    init = cg.add_function(
        "HAL_Init", Subprogram("HAL_Init", file=DIFile("hal.c", "/drv")))
    main = cg.add_function("main")
    cg.add_call(main, init, line=12)
    cg.add_indirect_call(main)
"""

from __future__ import annotations

import enum
from collections import OrderedDict, deque
from dataclasses import dataclass
from typing import (
    Deque,
    Dict,
    Iterator,
    List,
    Optional,
    Set,
)

from halbypass.errors import CallGraphError


# ---------------------------------------------------------------------------
# Resolution kinds
# ---------------------------------------------------------------------------

class CallResolutionKind(enum.Enum):
    """How a call edge was resolved."""

    DIRECT   = "direct"
    INDIRECT = "indirect"


# ---------------------------------------------------------------------------
# Node kinds
# ---------------------------------------------------------------------------

class NodeKind(enum.Enum):
    """Classification of a call-graph node."""

    FUNCTION = "function"      # A function defined or declared in the unit
    EXTERNAL = "external"      # Synthetic target of unresolved/indirect calls


# ---------------------------------------------------------------------------
# Debug metadata
# ---------------------------------------------------------------------------

def directory_of(path: str) -> str:
    """Return *path* up to (not including) its last ``/`` or ``\\``.

    A path without any separator has an empty directory.
    """
    cut = max(path.rfind("/"), path.rfind("\\"))
    if cut < 0:
        return ""
    return path[:cut]


@dataclass(frozen=True)
class DIFile:
    """A source file as recorded in debug info."""

    filename: str
    directory: str = ""

    @property
    def full_path(self) -> str:
        if not self.directory:
            return self.filename
        return f"{self.directory}/{self.filename}"

    @property
    def source_directory(self) -> str:
        """Longest prefix of :attr:`full_path` up to the last separator."""
        return directory_of(self.full_path)


@dataclass(frozen=True)
class Subprogram:
    """Debug metadata of one function.

    Attributes
    ----------
    name : str
        Source-level name.
    linkage_name : str
        Mangled / link-time name (often empty for C functions).
    file : DIFile or None
        Where the function is defined.
    """

    name: str
    linkage_name: str = ""
    file: Optional[DIFile] = None


# ---------------------------------------------------------------------------
# CallGraphNode
# ---------------------------------------------------------------------------

class CallGraphNode:
    """A node in the call graph.

    Attributes
    ----------
    id : str
        Unique identifier within the graph.
    name : str
        Symbol name of the function.
    kind : NodeKind
        What this node represents.
    subprogram : Subprogram or None
        Debug metadata, ``None`` when the function has none.
    out_edges : list[CallGraphEdge]
        Outgoing call edges (this function calls …).
    in_edges : list[CallGraphEdge]
        Incoming call edges (… calls this function).
    """

    __slots__ = ("id", "name", "kind", "subprogram", "out_edges", "in_edges")

    def __init__(
        self,
        node_id: str,
        name: str,
        kind: NodeKind = NodeKind.FUNCTION,
        subprogram: Optional[Subprogram] = None,
    ) -> None:
        self.id: str = node_id
        self.name: str = name
        self.kind: NodeKind = kind
        self.subprogram: Optional[Subprogram] = subprogram
        self.out_edges: List[CallGraphEdge] = []
        self.in_edges: List[CallGraphEdge] = []

    # ----- queries ----------------------------------------------------------

    @property
    def callers(self) -> List[CallGraphNode]:
        """All direct predecessor nodes, one entry per call site."""
        return [e.caller for e in self.in_edges]

    @property
    def is_root(self) -> bool:
        return len(self.in_edges) == 0

    @property
    def is_external(self) -> bool:
        return self.kind is NodeKind.EXTERNAL

    def __repr__(self) -> str:
        return f"CallGraphNode({self.name!r}, kind={self.kind.value})"

    def __hash__(self) -> int:
        return hash(self.id)

    def __eq__(self, other) -> bool:
        if isinstance(other, CallGraphNode):
            return self.id == other.id
        return NotImplemented


# ---------------------------------------------------------------------------
# CallGraphEdge
# ---------------------------------------------------------------------------

class CallGraphEdge:
    """A directed edge in the call graph representing one call site.

    Attributes
    ----------
    caller : CallGraphNode
        The calling function.
    callee : CallGraphNode
        The called function, or the external node for indirect calls.
    resolution : CallResolutionKind
        How this call was resolved.
    line : int or None
        Source line of the call site, when known.
    """

    __slots__ = ("caller", "callee", "resolution", "line")

    def __init__(
        self,
        caller: CallGraphNode,
        callee: CallGraphNode,
        resolution: CallResolutionKind = CallResolutionKind.DIRECT,
        line: Optional[int] = None,
    ) -> None:
        self.caller = caller
        self.callee = callee
        self.resolution = resolution
        self.line = line

    def __repr__(self) -> str:
        loc = f" @ line {self.line}" if self.line else ""
        return (
            f"CallGraphEdge({self.caller.name} -> {self.callee.name}, "
            f"{self.resolution.value}{loc})"
        )


# ---------------------------------------------------------------------------
# CallGraph
# ---------------------------------------------------------------------------

class CallGraph:
    """Call graph of one analysed unit.

    Attributes
    ----------
    nodes : OrderedDict[str, CallGraphNode]
        All nodes keyed by id, in insertion order.  The external node is
        always present and always first.
    edges : list[CallGraphEdge]
        All edges (call sites), in insertion order.
    external : CallGraphNode
        The synthetic node targeted by unresolved and indirect calls.
    """

    EXTERNAL_ID = "__EXTERNAL__"

    def __init__(self) -> None:
        self.nodes: OrderedDict[str, CallGraphNode] = OrderedDict()
        self.edges: List[CallGraphEdge] = []
        self.external = CallGraphNode(
            node_id=self.EXTERNAL_ID,
            name="<external>",
            kind=NodeKind.EXTERNAL,
        )
        self.nodes[self.external.id] = self.external

    def __len__(self) -> int:
        return len(self.nodes)

    def __iter__(self) -> Iterator[CallGraphNode]:
        return iter(self.nodes.values())

    def __contains__(self, node: object) -> bool:
        if not isinstance(node, CallGraphNode):
            return False
        return self.nodes.get(node.id) is node

    # ----- node management --------------------------------------------------

    def add_function(
        self,
        name: str,
        subprogram: Optional[Subprogram] = None,
        node_id: Optional[str] = None,
    ) -> CallGraphNode:
        """Return the node with id *node_id* (default *name*), creating it.

        When the node already exists it is returned unchanged.
        """
        nid = node_id or name
        if nid == self.EXTERNAL_ID:
            raise CallGraphError(f"node id {nid!r} is reserved")
        existing = self.nodes.get(nid)
        if existing is not None:
            return existing
        node = CallGraphNode(
            node_id=nid, name=name, kind=NodeKind.FUNCTION,
            subprogram=subprogram,
        )
        self.nodes[nid] = node
        return node

    # ----- edge management --------------------------------------------------

    def _check_member(self, node: CallGraphNode) -> None:
        if node not in self:
            raise CallGraphError(f"{node!r} is not a node of this call graph")

    def add_call(
        self,
        caller: CallGraphNode,
        callee: CallGraphNode,
        line: Optional[int] = None,
    ) -> CallGraphEdge:
        """Record one direct call site from *caller* to *callee*."""
        self._check_member(caller)
        self._check_member(callee)
        return self._add_edge(caller, callee, CallResolutionKind.DIRECT, line)

    def add_indirect_call(
        self,
        caller: CallGraphNode,
        line: Optional[int] = None,
    ) -> CallGraphEdge:
        """Record a call through a function pointer.

        The edge always targets :attr:`external`, never a concrete callee.
        """
        self._check_member(caller)
        return self._add_edge(
            caller, self.external, CallResolutionKind.INDIRECT, line)

    def _add_edge(
        self,
        caller: CallGraphNode,
        callee: CallGraphNode,
        resolution: CallResolutionKind,
        line: Optional[int],
    ) -> CallGraphEdge:
        edge = CallGraphEdge(caller, callee, resolution=resolution, line=line)
        self.edges.append(edge)
        caller.out_edges.append(edge)
        callee.in_edges.append(edge)
        return edge

    # ----- lookups ----------------------------------------------------------

    @property
    def functions(self) -> List[CallGraphNode]:
        """All non-synthetic nodes."""
        return [n for n in self.nodes.values() if not n.is_external]

    def get(self, node_id: str) -> Optional[CallGraphNode]:
        return self.nodes.get(node_id)

    @property
    def roots(self) -> List[CallGraphNode]:
        """Functions with no callers."""
        return [n for n in self.functions if n.is_root]

    # ----- whole-graph queries ----------------------------------------------

    def transitive_callers(self, node: CallGraphNode) -> Set[CallGraphNode]:
        """Return all nodes that reach *node* through one or more calls.

        *node* itself is included only when it lies on a cycle.
        """
        visited: Set[CallGraphNode] = set()
        worklist: Deque[CallGraphNode] = deque(node.callers)
        while worklist:
            n = worklist.popleft()
            if n in visited:
                continue
            visited.add(n)
            worklist.extend(n.callers)
        return visited

    def statistics(self) -> Dict[str, int]:
        direct = sum(
            1 for e in self.edges
            if e.resolution is CallResolutionKind.DIRECT
        )
        return {
            "functions": len(self.functions),
            "total_nodes": len(self.nodes),
            "total_edges": len(self.edges),
            "direct_calls": direct,
            "indirect_calls": len(self.edges) - direct,
            "root_functions": len(self.roots),
        }


def callgraph_summary(cg: CallGraph) -> str:
    """Return a human-readable multi-line summary."""
    stats = cg.statistics()
    return "\n".join([
        "Call Graph Summary",
        f"  Functions:            {stats['functions']}",
        f"  Total nodes:          {stats['total_nodes']}",
        f"  Total edges:          {stats['total_edges']}",
        f"  Direct calls:         {stats['direct_calls']}",
        f"  Indirect calls:       {stats['indirect_calls']}",
        f"  Root functions:       {stats['root_functions']}",
    ])
