#!/usr/bin/env python3
"""
halbypass/__main__.py
=====================

Command-line front end.

Usage
-----
    python -m halbypass [options] <graph.json>
    hal-bypass [options] <graph.json>

The input is the JSON description read by :mod:`halbypass.loader`.  The
report goes to stdout (or ``--output``); diagnostics go to stderr.

Exit status
-----------
    0   report written
    1   the input could not be read
    2   internal error
    130 interrupted
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
import textwrap
import traceback
from typing import Optional, Sequence, TextIO

from halbypass import __version__
from halbypass.analysis import analyze
from halbypass.callgraph import callgraph_summary
from halbypass.closure import ClosureMethod
from halbypass.errors import LoadError
from halbypass.loader import load
from halbypass.reporter import PartitionKey, render_json, render_text

logger = logging.getLogger("halbypass")


def _use_color(args: argparse.Namespace, stream: TextIO) -> bool:
    if args.no_color or "NO_COLOR" in os.environ:
        return False
    return hasattr(stream, "isatty") and stream.isatty()


def _configure_logging(verbosity: int) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(name)s: %(message)s",
        stream=sys.stderr,
    )


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the hal-bypass CLI."""
    parser = argparse.ArgumentParser(
        prog="hal-bypass",
        description=(
            "Report functions that access MMIO directly instead of "
            "through the hardware-abstraction layer."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent("""\
            examples:
              %(prog)s firmware.json
              %(prog)s firmware.json --format json -o report.json
              %(prog)s firmware.json --closure bfs --partition directory
        """),
    )
    parser.add_argument(
        "input",
        help="JSON description of the call graph and MMIO registry",
    )
    parser.add_argument(
        "--format",
        choices=("text", "json"),
        default="text",
        help="Report format (default: text)",
    )
    parser.add_argument(
        "-o", "--output",
        default=None,
        help="Write the report to FILE instead of stdout",
    )
    parser.add_argument(
        "--closure",
        choices=[m.value for m in ClosureMethod],
        default=ClosureMethod.WARSHALL.value,
        help="Reachability algorithm (default: warshall)",
    )
    parser.add_argument(
        "--partition",
        choices=[k.value for k in PartitionKey],
        default=PartitionKey.BY_NAME.value,
        help="Classification that splits the report sections (default: name)",
    )
    parser.add_argument(
        "--no-color",
        action="store_true",
        default=False,
        help="Disable coloured output",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase log verbosity (repeatable)",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    return parser


def run(args: argparse.Namespace, stdout: TextIO) -> int:
    try:
        cg, registry = load(args.input)
    except (LoadError, OSError) as e:
        sys.stderr.write(f"hal-bypass: error: {e}\n")
        return 1

    if args.verbose:
        logger.info("%s", callgraph_summary(cg))

    result = analyze(cg, registry, closure_method=ClosureMethod(args.closure))
    key = PartitionKey(args.partition)

    if args.output:
        try:
            with open(args.output, "w", encoding="utf-8") as fh:
                _write_report(args, result, key, fh, color=False)
        except OSError as e:
            sys.stderr.write(f"hal-bypass: error: {e}\n")
            return 1
    else:
        _write_report(args, result, key, stdout,
                      color=_use_color(args, stdout))
    return 0


def _write_report(args, result, key, stream: TextIO, color: bool) -> None:
    if args.format == "json":
        render_json(result, stream, key=key)
    else:
        render_text(result, stream, key=key, color=color)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point for the hal-bypass CLI.

    Parameters
    ----------
    argv : sequence of str, optional
        Command-line arguments. Defaults to sys.argv[1:].

    Returns
    -------
    int
        Exit code (0 = success, non-zero = failure).
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)

    try:
        return run(args, sys.stdout)
    except KeyboardInterrupt:
        sys.stderr.write("\nInterrupted.\n")
        return 130
    except BrokenPipeError:
        # Handle piping to head, etc.
        devnull = os.open(os.devnull, os.O_WRONLY)
        os.dup2(devnull, sys.stdout.fileno())
        return 0
    except Exception as e:
        sys.stderr.write(f"hal-bypass: internal error: {e}\n")
        traceback.print_exc()
        return 2


if __name__ == "__main__":
    sys.exit(main())
