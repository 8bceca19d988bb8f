"""
Command-line entry point.

Usage:
    stackcollapse-jstack [options] [infile ...] > outfile

Reads the appended output of many jstack runs from the given files (or
stdin) and writes folded stacks for flame-graph rendering:

    i=0; while (( i++ < 200 )); do jstack PID >> out.jstacks; sleep 10; done
    stackcollapse-jstack out.jstacks > out.stacks-folded

jstack itself has overhead: test before use, or use a real profiler.
"""

import argparse
import sys
from contextlib import ExitStack
from typing import List, Optional, TextIO, Tuple

from . import __version__
from .collapser import StackAggregator, StackCollapser, StateTally
from .config import CollapseConfig, resolve_states
from .logger import DiagnosticsLogger


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="stackcollapse-jstack",
        description="Collapse jstack samples into single lines for flame graphs.",
        epilog="eg, stackcollapse-jstack --no-include-tname stacks.txt > collapsed.txt",
    )

    parser.add_argument(
        "infiles",
        nargs="*",
        metavar="infile",
        help="Thread dump files ('-' or none for stdin)"
    )
    parser.add_argument(
        "--include-tname",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Include/omit thread names in stacks (default: include)"
    )
    parser.add_argument(
        "--include-tid",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Include/omit thread IDs in stacks (default: omit)"
    )
    parser.add_argument(
        "--collapse-frame",
        action="append",
        metavar="PATTERN",
        help="Collapse frames matching this regular expression into "
             "'PATTERN...'. Can be repeated (default: none)"
    )
    parser.add_argument(
        "--shorten-pkgs",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="(Don't) shorten package names (default: don't shorten)"
    )
    parser.add_argument(
        "--state",
        action="append",
        metavar="STATE",
        help="Also include this thread state. Can be repeated (RUNNABLE is "
             "always included). Special states: BACKGROUND, NETWORK, "
             "NETWORK_WAITING"
    )
    parser.add_argument(
        "--stats",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Emit thread state statistics on stderr"
    )
    parser.add_argument(
        "--quiet",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Suppress warnings, only emit errors"
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}"
    )

    return parser


def resolve_config(args: argparse.Namespace, base: CollapseConfig) -> CollapseConfig:
    """Apply command-line flags on top of the environment configuration."""
    return base.with_overrides(
        include_thread_name=args.include_tname,
        include_thread_id=args.include_tid,
        shorten_pkgs=args.shorten_pkgs,
        collapse_frames=tuple(args.collapse_frame) if args.collapse_frame else None,
        states=base.states | resolve_states(args.state) if args.state else None,
        stats=args.stats,
        quiet=args.quiet,
    )


def run(
    inputs: List[TextIO],
    config: CollapseConfig,
    logger: DiagnosticsLogger
) -> Tuple[StackAggregator, StateTally]:
    """
    Collapse each input independently and merge the results.

    A thread entry never spans two inputs: each one is finalized at its own
    end.

    Returns:
        Tuple of merged (stack aggregator, state tally)
    """
    aggregator = StackAggregator()
    tally = StateTally()

    for stream in inputs:
        collapser = StackCollapser(config, logger=logger)
        collapser.collapse(stream)
        aggregator.merge(collapser.aggregator)
        tally.merge(collapser.tally)

    return aggregator, tally


def _stdin() -> TextIO:
    """Standard input, decoded like file inputs (UTF-8, undecodable bytes replaced)."""
    if hasattr(sys.stdin, "reconfigure"):
        sys.stdin.reconfigure(encoding="utf-8", errors="replace")
    return sys.stdin


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = resolve_config(args, CollapseConfig.from_env())
    except ValueError as e:
        parser.error(str(e))

    logger = DiagnosticsLogger(quiet=config.quiet)
    paths = args.infiles or ["-"]

    with ExitStack() as stack:
        inputs = []
        for path in paths:
            if path == "-":
                inputs.append(_stdin())
                continue
            try:
                inputs.append(stack.enter_context(
                    open(path, "r", encoding="utf-8", errors="replace")
                ))
            except OSError as e:
                logger.error(f"Cannot read {path}: {e.strerror or e}")
                return 1

        aggregator, tally = run(inputs, config, logger)

    for line in aggregator.format_lines():
        sys.stdout.write(line + "\n")
    sys.stdout.flush()

    if config.stats:
        logger.print_stats(tally.format_lines())

    return 0


if __name__ == "__main__":
    sys.exit(main())
