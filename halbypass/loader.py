"""
halbypass.loader
================

Reads a call graph, the debug metadata of its functions and the MMIO
registry from a JSON description.

Format
------
::

    {
      "functions": [
        {"id": "f0", "name": "HAL_GPIO_Init", "linkage_name": "HAL_GPIO_Init",
         "file": "gpio.c", "directory": "/proj/drivers"},
        {"id": "f1", "name": "main", "debug": false}
      ],
      "calls": [
        {"caller": "f1", "callee": "f0", "line": 12},
        {"caller": "f1", "indirect": true}
      ],
      "mmio": [
        {"function": "f0",
         "location": {"file": "gpio.c", "directory": "/proj/drivers",
                      "line": 40, "column": 7, "inlined_at": null}}
      ]
    }

``id`` and ``linkage_name`` default to ``name``.  ``"debug": false`` marks a
function without debug info.  A call with ``"indirect": true`` or without a
``callee`` goes to the external node.  Duplicate ``mmio`` entries keep the
first location.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from halbypass.callgraph import CallGraph, CallGraphNode, DIFile, Subprogram
from halbypass.errors import LoadError
from halbypass.mmio import DebugLoc, MMIORegistry, build_registry

logger = logging.getLogger(__name__)


def _require(obj: Mapping[str, Any], key: str, typ: type, path: str) -> Any:
    if key not in obj:
        raise LoadError(f"missing required key {key!r}", path=path)
    value = obj[key]
    if not isinstance(value, typ) or isinstance(value, bool) and typ is int:
        raise LoadError(
            f"{key!r} must be {typ.__name__}, got {type(value).__name__}",
            path=f"{path}.{key}",
        )
    return value


def _optional(
    obj: Mapping[str, Any], key: str, typ: type, path: str, default: Any,
) -> Any:
    if obj.get(key) is None:
        return default
    return _require(obj, key, typ, path)


def _as_list(doc: Mapping[str, Any], key: str) -> list:
    value = doc.get(key, [])
    if not isinstance(value, list):
        raise LoadError(f"{key!r} must be a list", path=key)
    return value


def _as_object(value: Any, path: str) -> Mapping[str, Any]:
    if not isinstance(value, dict):
        raise LoadError("expected an object", path=path)
    return value


def _parse_function(cg: CallGraph, raw: Any, path: str) -> CallGraphNode:
    obj = _as_object(raw, path)
    name = _require(obj, "name", str, path)
    node_id = _optional(obj, "id", str, path, name)
    if node_id in cg.nodes:
        raise LoadError(f"duplicate function id {node_id!r}", path=path)

    subprogram: Optional[Subprogram] = None
    if _optional(obj, "debug", bool, path, True):
        filename = _optional(obj, "file", str, path, "")
        directory = _optional(obj, "directory", str, path, "")
        subprogram = Subprogram(
            name=name,
            linkage_name=_optional(obj, "linkage_name", str, path, name),
            file=DIFile(filename, directory) if filename else None,
        )
    return cg.add_function(name, subprogram=subprogram, node_id=node_id)


def _lookup(cg: CallGraph, node_id: str, path: str) -> CallGraphNode:
    node = cg.get(node_id)
    if node is None or node.is_external:
        raise LoadError(f"unknown function id {node_id!r}", path=path)
    return node


def _parse_call(cg: CallGraph, raw: Any, path: str) -> None:
    obj = _as_object(raw, path)
    caller = _lookup(cg, _require(obj, "caller", str, path), f"{path}.caller")
    line = _optional(obj, "line", int, path, None)
    callee_id = _optional(obj, "callee", str, path, None)
    if obj.get("indirect", False) or callee_id is None:
        cg.add_indirect_call(caller, line=line)
    else:
        callee = _lookup(cg, callee_id, f"{path}.callee")
        cg.add_call(caller, callee, line=line)


def parse_debug_loc(raw: Any, path: str) -> DebugLoc:
    obj = _as_object(raw, path)
    inlined = obj.get("inlined_at")
    return DebugLoc(
        filename=_require(obj, "file", str, path),
        directory=_optional(obj, "directory", str, path, ""),
        line=_optional(obj, "line", int, path, 0),
        column=_optional(obj, "column", int, path, 0),
        inlined_at=(
            parse_debug_loc(inlined, f"{path}.inlined_at")
            if inlined is not None else None
        ),
    )


def load_dict(doc: Any) -> Tuple[CallGraph, MMIORegistry]:
    """Build the call graph and MMIO registry from a decoded document."""
    doc = _as_object(doc, "$")
    cg = CallGraph()

    for i, raw in enumerate(_as_list(doc, "functions")):
        _parse_function(cg, raw, f"functions[{i}]")
    for i, raw in enumerate(_as_list(doc, "calls")):
        _parse_call(cg, raw, f"calls[{i}]")

    entries = []
    for i, raw in enumerate(_as_list(doc, "mmio")):
        path = f"mmio[{i}]"
        obj = _as_object(raw, path)
        func = _lookup(cg, _require(obj, "function", str, path),
                       f"{path}.function")
        loc = parse_debug_loc(_require(obj, "location", dict, path),
                              f"{path}.location")
        entries.append((func, loc))
    registry = build_registry(entries)

    logger.debug("loaded %d functions, %d calls, %d MMIO functions",
                 len(cg.functions), len(cg.edges), len(registry))
    return cg, registry


def load(source: Union[str, Path]) -> Tuple[CallGraph, MMIORegistry]:
    """Read and parse the JSON description at *source*."""
    path = Path(source)
    try:
        doc: Dict[str, Any] = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise LoadError(f"invalid JSON: {exc}", source=str(path)) from exc
    try:
        return load_dict(doc)
    except LoadError as exc:
        exc.source = str(path)
        raise
