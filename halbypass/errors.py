# halbypass/errors.py
"""
Error types raised by the HAL-bypass analysis.

Hierarchy:
──────────
    HALBypassError (base)
    ├── CallGraphError   - structural misuse of the call-graph API
    └── LoadError        - malformed JSON input description

The analysis itself is a pure computation over already-valid inputs and
raises nothing for empty graphs or registries.  Missing debug metadata is
not an error either; it is logged and recorded on the result.
"""

from __future__ import annotations

from typing import Optional


class HALBypassError(Exception):
    """Base class for every error raised by :mod:`halbypass`."""


class CallGraphError(HALBypassError):
    """A call-graph operation was given nodes it cannot accept."""


class LoadError(HALBypassError):
    """The input description could not be turned into a graph and registry.

    Attributes
    ----------
    path : str or None
        A JSON-pointer-like path to the offending value, e.g.
        ``"calls[3].callee"``.
    source : str or None
        The file the description was read from, when known.
    """

    def __init__(
        self,
        message: str,
        path: Optional[str] = None,
        source: Optional[str] = None,
    ) -> None:
        self.message = message
        self.path = path
        self.source = source
        super().__init__(str(self))

    def __str__(self) -> str:
        prefix = ""
        if self.source:
            prefix = f"{self.source}: "
        if self.path:
            prefix += f"{self.path}: "
        return f"{prefix}{self.message}"
