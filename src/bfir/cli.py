from __future__ import annotations

import argparse
import logging
import sys
import time
from typing import List, Optional

from .api import RunOptions, load_program, make_executor, run_executor
from .errors import BFError
from .executor import EOFPolicy, OutputMode
from .nodes import emit
from .optimizer import MAX_LEVEL
from .tape import DEFAULT_INITIAL_CELLS, DEFAULT_MAX_CELLS

logger = logging.getLogger(__name__)


def init_logging(verbose: bool = False) -> None:
    """Configure the package logger to write to stderr.

    WARNING by default; with verbose=True everything down to DEBUG, which
    includes phase timings and tape growth.
    """
    pkg_logger = logging.getLogger("bfir")
    for h in list(pkg_logger.handlers):
        pkg_logger.removeHandler(h)
    lvl = logging.DEBUG if verbose else logging.WARNING
    pkg_logger.setLevel(lvl)

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(lvl)
    handler.setFormatter(logging.Formatter("%(levelname)5s %(name)s: %(message)s"))
    pkg_logger.addHandler(handler)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bfir",
        description="Optimizing brainfuck interpreter with 32-bit cells and a growable tape.",
    )
    parser.add_argument("files", nargs="+", metavar="FILE", help="source file(s) to run, in order")
    parser.add_argument("--level", type=int, default=MAX_LEVEL, help=f"optimization level 0..{MAX_LEVEL} (default {MAX_LEVEL})")
    parser.add_argument("--max-cells", type=int, default=DEFAULT_MAX_CELLS, help=f"tape size limit (default {DEFAULT_MAX_CELLS})")
    parser.add_argument(
        "--eof",
        choices=[p.value for p in EOFPolicy],
        default=EOFPolicy.ZERO.value,
        help="what ',' does at end of input (default: zero)",
    )
    parser.add_argument("--unicode", action="store_true", help="print cells as UTF-8 encoded code points instead of bytes")
    parser.add_argument("--emit", action="store_true", help="print the optimized program instead of running it")
    parser.add_argument("--dump-tape", action="store_true", help="print the used tape cells to stderr after each run")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging to stderr")
    return parser


def _read_source(path: str) -> Optional[str]:
    try:
        with open(path, 'r', encoding='utf-8') as f:
            return f.read()
    except FileNotFoundError:
        print(f"Couldn't find file {path}", file=sys.stderr)
    except (OSError, UnicodeDecodeError) as e:
        print(f"Couldn't read file {path}: {e}", file=sys.stderr)
    return None


def run_file_cli(path: str, args: argparse.Namespace, options: RunOptions) -> int:
    source = _read_source(path)
    if source is None:
        return 1

    start = time.perf_counter()
    try:
        program = load_program(source, level=options.optimize_level)
    except BFError as e:
        print(f"{path}: {e}", file=sys.stderr)
        return 1
    logger.info("%s: compiled in %.2f ms", path, (time.perf_counter() - start) * 1000)

    if args.emit:
        sys.stdout.write(emit(program) + "\n")
        return 0

    executor = make_executor(program, sys.stdout.buffer, sys.stdin.buffer, options=options)
    status = 0
    try:
        run_executor(executor)
    except BFError as e:
        print(f"\n{path}: {e}", file=sys.stderr)
        status = 1

    try:
        sys.stdout.flush()
    except OSError as e:
        if status == 0:
            print(f"{path}: failed to flush output: {e}", file=sys.stderr)
            status = 1
        else:
            logger.debug("%s: flush after failed run: %s", path, e)

    if args.dump_tape:
        print(executor.tape.dump(), file=sys.stderr)
    return status


def main(argv: Optional[List[str]] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    if args.max_cells < 1:
        parser.error("--max-cells must be at least 1")
    init_logging(args.verbose)

    options = RunOptions(
        optimize_level=args.level,
        initial_cells=min(DEFAULT_INITIAL_CELLS, args.max_cells),
        max_cells=args.max_cells,
        eof=EOFPolicy(args.eof),
        output_mode=OutputMode.UTF8 if args.unicode else OutputMode.BYTE,
    )

    for path in args.files:
        status = run_file_cli(path, args, options)
        if status != 0:
            return status
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
