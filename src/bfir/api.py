from __future__ import annotations

import io
import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from .executor import EOFPolicy, Executor, OutputMode
from .nodes import Program
from .optimizer import optimize
from .parser import parse
from .tape import DEFAULT_INITIAL_CELLS, DEFAULT_MAX_CELLS, Tape

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RunOptions:
    optimize_level: int = 1
    initial_cells: int = DEFAULT_INITIAL_CELLS
    max_cells: int = DEFAULT_MAX_CELLS
    eof: EOFPolicy = EOFPolicy.ZERO
    output_mode: OutputMode = OutputMode.BYTE


@dataclass(frozen=True)
class RunResult:
    output: bytes
    cells: List[int]
    cursor: int
    steps: int


def load_program(source: str, *, level: int = 1) -> Program:
    start = time.perf_counter()
    program = optimize(parse(source), level=level)
    logger.info("parsed and optimized in %.2f ms", (time.perf_counter() - start) * 1000)
    return program


def make_executor(program: Program, sink, source=None, *, options: Optional[RunOptions] = None) -> Executor:
    opts = options or RunOptions()
    tape = Tape(initial_cells=opts.initial_cells, max_cells=opts.max_cells)
    return Executor(program, sink, source, tape=tape, eof=opts.eof, output_mode=opts.output_mode)


def run_executor(executor: Executor) -> Executor:
    start = time.perf_counter()
    try:
        executor.run()
    finally:
        logger.info(
            "executed %d steps in %.2f ms", executor.steps, (time.perf_counter() - start) * 1000
        )
    return executor


def run_program(program: Program, sink, source=None, *, options: Optional[RunOptions] = None) -> Executor:
    return run_executor(make_executor(program, sink, source, options=options))


def run_string(source: str, *, stdin: bytes = b"", options: Optional[RunOptions] = None) -> RunResult:
    opts = options or RunOptions()
    program = load_program(source, level=opts.optimize_level)
    out = io.BytesIO()
    executor = run_program(program, out, io.BytesIO(stdin), options=opts)
    return RunResult(
        output=out.getvalue(),
        cells=executor.tape.snapshot(),
        cursor=executor.tape.cursor,
        steps=executor.steps,
    )


def run_file(path: str | Path, *, stdin: bytes = b"", options: Optional[RunOptions] = None, encoding: str = "utf-8") -> RunResult:
    p = Path(path)
    return run_string(p.read_text(encoding=encoding), stdin=stdin, options=options)
