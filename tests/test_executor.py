"""
Executor tests: loop semantics, cell arithmetic, I/O policies and
error reporting.
"""

import sys
import os
sys.path.append(os.path.join(os.path.dirname(__file__), '..', 'src'))

import io

import pytest

from bfir.errors import BFIOError, InputExhausted, OutOfMemory, PointerUnderflow
from bfir.executor import EOFPolicy, Executor, OutputMode, execute
from bfir.lexer import Position
from bfir.nodes import CELL_MODULUS, Output, Set
from bfir.optimizer import optimize
from bfir.parser import parse
from bfir.tape import Tape

HELLO = "++++++++[>++++[>++>+++>+++>+<<<<-]>+>+>->>+[<]<-]>>.>---.+++++++..+++."
SWAP = "+++++>+++++++>++++<<>>[-]<<[->>+<<]>[-<+>]>[-<+>]<<.>.>."


def run(code, stdin=b"", level=0, **kwargs):
    out = io.BytesIO()
    executor = Executor(optimize(parse(code), level=level), out, io.BytesIO(stdin), **kwargs)
    tape = executor.run()
    return out.getvalue(), tape, executor


def test_hello():
    out, _, _ = run(HELLO)
    assert out == b"Hello"


def test_swap_via_temporary_cell():
    out, tape, _ = run(SWAP)
    assert out == bytes([7, 5, 0])
    assert tape.snapshot(3) == [7, 5, 0]
    assert tape.cursor == 2


def test_lone_move_left_underflows():
    with pytest.raises(PointerUnderflow) as exc:
        run("<")
    err = exc.value
    assert err.kind == "MoveLeft"
    assert err.position == Position(1, 1)
    assert "line 1 col 1" in str(err)


def test_underflow_points_at_offending_symbol():
    with pytest.raises(PointerUnderflow) as exc:
        run(">\n<<")
    assert exc.value.position == Position(2, 2)


def test_underflow_inside_loop():
    with pytest.raises(PointerUnderflow) as exc:
        run("+[<]")
    assert exc.value.kind == "MoveLeft"


def test_output_before_failure_is_kept():
    out = io.BytesIO()
    with pytest.raises(PointerUnderflow):
        execute(parse("+++.<"), out)
    assert out.getvalue() == b"\x03"


def test_loop_skipped_on_zero_cell():
    out, _, executor = run("[.]")
    assert out == b""


def test_empty_loop_on_zero_cell_terminates():
    out, tape, _ = run("[]+.")
    assert out == b"\x01"


def test_loop_repeats_until_zero():
    out, tape, _ = run("+++[>++<-]>.")
    assert out == b"\x06"
    assert tape.snapshot(2) == [0, 6]


def test_cells_are_32_bit():
    out, tape, _ = run("+" * 256 + ".")
    assert tape.read() == 256
    assert out == b"\x00"


def test_decrement_wraps():
    out, tape, _ = run("-.")
    assert tape.read() == CELL_MODULUS - 1
    assert out == b"\xff"


def test_set_instruction():
    out = io.BytesIO()
    tape = execute([Set(65), Output()], out)
    assert out.getvalue() == b"A"
    assert tape.read() == 65


def test_echo_input():
    out, _, _ = run(",.,.", stdin=b"AB")
    assert out == b"AB"


def test_cat_until_eof():
    out, _, _ = run(",[.,]", stdin=b"hello")
    assert out == b"hello"


def test_eof_stores_zero_by_default():
    out, _, _ = run("+,.")
    assert out == b"\x00"


def test_eof_unchanged():
    out, _, _ = run("+,.", eof=EOFPolicy.UNCHANGED)
    assert out == b"\x01"


def test_eof_error():
    with pytest.raises(InputExhausted) as exc:
        run(",", eof=EOFPolicy.ERROR)
    assert exc.value.kind == "Input"
    assert isinstance(exc.value, BFIOError)


def test_no_input_source_behaves_as_empty():
    out = io.BytesIO()
    execute(parse("+,."), out)
    assert out.getvalue() == b"\x00"


def test_policies_accept_plain_values():
    out, _, _ = run("+,.", eof="unchanged", output_mode="byte")
    assert out == b"\x01"


def test_utf8_output():
    out, _, _ = run("+" * 0x263A + ".", output_mode=OutputMode.UTF8, level=0)
    assert out == "☺".encode("utf-8")


def test_utf8_output_invalid_scalar_is_space():
    out = io.BytesIO()
    execute([Set(0xD800), Output(), Set(0x110000), Output()], out, output_mode=OutputMode.UTF8)
    assert out.getvalue() == b"  "


class _BrokenSink:
    def write(self, data):
        raise BrokenPipeError("pipe closed")


class _BrokenSource:
    def read(self, n):
        raise OSError("device gone")


def test_output_failure_is_wrapped():
    with pytest.raises(BFIOError) as exc:
        execute(parse("."), _BrokenSink())
    assert exc.value.kind == "Output"
    assert isinstance(exc.value.__cause__, BrokenPipeError)


def test_input_failure_is_wrapped():
    with pytest.raises(BFIOError) as exc:
        execute(parse(","), io.BytesIO(), _BrokenSource())
    assert exc.value.kind == "Input"
    assert isinstance(exc.value.__cause__, OSError)


def test_out_of_memory():
    tape = Tape(initial_cells=4, max_cells=8)
    with pytest.raises(OutOfMemory) as exc:
        execute(parse(">>>>>>>>"), io.BytesIO(), tape=tape)
    assert exc.value.kind == "MoveRight"


def test_optimized_program_takes_fewer_steps():
    code = "+" * 200 + "[-]"
    _, _, raw = run(code, level=0)
    out = io.BytesIO()
    fast = Executor(optimize(parse(code), level=1), out)
    fast.run()
    assert fast.steps < raw.steps


def test_deep_nesting_does_not_recurse():
    code = "+" + "[" * 3000 + "-" + "]" * 3000
    tape = execute(parse(code), io.BytesIO())
    assert tape.read() == 0


def test_run_returns_supplied_tape():
    tape = Tape()
    assert execute(parse(">+"), io.BytesIO(), tape=tape) is tape
    assert tape.snapshot() == [0, 1]


def test_merged_move_left_reports_crossing_symbol():
    # `<<<<` is one MoveLeft(4) after optimization; the cursor is at 1,
    # so the second `<` (col 4) is the one that leaves the tape.
    with pytest.raises(PointerUnderflow) as exc:
        run(">.<<<<")
    assert exc.value.kind == "MoveLeft"
    assert exc.value.position == Position(1, 4)


def test_merged_move_left_after_cancellation():
    with pytest.raises(PointerUnderflow) as exc:
        run("+>><<\n<<")
    assert exc.value.position == Position(2, 1)


def test_merged_move_right_reports_crossing_symbol():
    tape = Tape(initial_cells=4, max_cells=8)
    with pytest.raises(OutOfMemory) as exc:
        Executor(optimize(parse("+" + ">" * 9)), io.BytesIO(), tape=tape).run()
    assert exc.value.kind == "MoveRight"
    assert exc.value.position == Position(1, 9)
    assert tape.cursor == 0
