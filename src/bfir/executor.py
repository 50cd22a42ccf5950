from __future__ import annotations

import enum
import logging
from typing import Any, List, Optional

from .errors import BFIOError, BFRuntimeError, InputExhausted
from .nodes import Add, Input, Loop, MoveLeft, MoveRight, Output, Program, Set, Sub
from .tape import Tape

logger = logging.getLogger(__name__)


class EOFPolicy(enum.Enum):
    ZERO = 'zero'            # store 0 in the cell
    UNCHANGED = 'unchanged'  # leave the cell as it is
    ERROR = 'error'          # raise InputExhausted


class OutputMode(enum.Enum):
    BYTE = 'byte'  # low 8 bits of the cell
    UTF8 = 'utf8'  # cell as a Unicode scalar, UTF-8 encoded


def _encode_utf8(value: int) -> bytes:
    if value > 0x10FFFF or 0xD800 <= value <= 0xDFFF:
        return b' '
    return chr(value).encode('utf-8')


class Executor:
    """
    Runs an optimized program against a Tape.

    Execution walks an explicit stack of [body, index] frames instead of
    recursing, so deeply nested loops do not hit the interpreter's
    recursion limit. A frame whose index points at a Loop is inside that
    loop's body; when the body frame finishes, the loop re-tests its cell.

    Args:
        program: root instruction sequence; not modified.
        sink: object with write(bytes) and optionally flush().
        source: object with read(n) -> bytes, or None for no input.
        tape: tape to run on; a fresh one is created when omitted.
        eof: what Input does once the source is exhausted.
        output_mode: how Output turns a cell into bytes.
    """

    def __init__(
        self,
        program: Program,
        sink: Any,
        source: Any = None,
        *,
        tape: Optional[Tape] = None,
        eof: EOFPolicy = EOFPolicy.ZERO,
        output_mode: OutputMode = OutputMode.BYTE,
    ):
        self.program = program
        self.sink = sink
        self.source = source
        self.tape = tape if tape is not None else Tape()
        self.eof = EOFPolicy(eof)
        self.output_mode = OutputMode(output_mode)
        self.steps = 0

    def run(self) -> Tape:
        tape = self.tape
        frames: List[list] = [[self.program, 0]]

        while frames:
            frame = frames[-1]
            body, i = frame
            if i >= len(body):
                frames.pop()
                if frames:
                    # Finished one pass over a loop body: re-test the loop.
                    parent = frames[-1]
                    self.steps += 1
                    if tape.read() != 0:
                        frames.append([parent[0][parent[1]].body, 0])
                    else:
                        parent[1] += 1
                continue

            node = body[i]
            self.steps += 1
            try:
                if isinstance(node, Loop):
                    if tape.read() != 0:
                        frames.append([node.body, 0])
                        continue
                elif isinstance(node, Add):
                    tape.apply_delta(node.delta)
                elif isinstance(node, Sub):
                    tape.apply_delta(-node.delta)
                elif isinstance(node, MoveRight):
                    tape.move(node.count)
                elif isinstance(node, MoveLeft):
                    tape.move(-node.count)
                elif isinstance(node, Set):
                    tape.write(node.value)
                elif isinstance(node, Output):
                    self._output(tape.read())
                elif isinstance(node, Input):
                    self._input()
                else:
                    raise TypeError(f"unknown instruction {node!r}")
            except BFRuntimeError as err:
                err.locate(type(node).__name__, self._fault_position(node))
                raise
            frame[1] = i + 1

        self._flush()
        logger.debug("program finished after %d steps, cursor at %d", self.steps, tape.cursor)
        return tape

    def _fault_position(self, node):
        # Failed moves leave the cursor in place, so the step that crossed
        # the tape bound can be worked out from it.
        if isinstance(node, MoveLeft):
            return node.position_at(self.tape.cursor)
        if isinstance(node, MoveRight):
            return node.position_at(self.tape.max_cells - self.tape.cursor - 1)
        return node.pos

    # ===== I/O =====

    def _output(self, value: int) -> None:
        if self.output_mode is OutputMode.UTF8:
            data = _encode_utf8(value)
        else:
            data = bytes((value & 0xFF,))
        try:
            self.sink.write(data)
        except OSError as e:
            raise BFIOError(message=f"failed to write output: {e}") from e

    def _input(self) -> None:
        self._flush()
        data = b''
        if self.source is not None:
            try:
                data = self.source.read(1)
            except OSError as e:
                raise BFIOError(message=f"failed to read input: {e}") from e
        if data:
            self.tape.write(data[0])
        elif self.eof is EOFPolicy.ZERO:
            self.tape.write(0)
        elif self.eof is EOFPolicy.ERROR:
            raise InputExhausted(message="end of input reached")

    def _flush(self) -> None:
        flush = getattr(self.sink, 'flush', None)
        if flush is None:
            return
        try:
            flush()
        except OSError as e:
            raise BFIOError(message=f"failed to flush output: {e}") from e


def execute(program: Program, sink: Any, source: Any = None, **kwargs) -> Tape:
    """Run `program` once and return the final tape."""
    return Executor(program, sink, source, **kwargs).run()
