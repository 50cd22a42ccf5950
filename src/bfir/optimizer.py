# Run-merging optimizer.
#
# Levels:
#   0: merge runs of </> into one move and +/- into one delta, drop runs that
#      cancel out. Input, output and loops are run boundaries.
#   1: level 0 + clear-loop recognition ([-], [+], any single odd delta) into
#      Set(0), folding later deltas into the Set.
#
# Loop bodies are optimized before the enclosing sequence is merged.
from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from .lexer import Position
from .nodes import (
    CELL_MODULUS,
    Add,
    Loop,
    MoveLeft,
    MoveRight,
    Node,
    Program,
    Set,
    Sub,
    count_instructions,
)

logger = logging.getLogger(__name__)

MAX_LEVEL = 1
_CELL_OPS = (Add, Sub, Set)


# ---------------- Basic utilities ----------------
def _move_offset(n: Optional[Node]) -> Optional[int]:
    if isinstance(n, MoveRight):
        return n.count
    if isinstance(n, MoveLeft):
        return -n.count
    return None


def _trail(n: Node) -> Tuple[Position, ...]:
    return n.trail if len(n.trail) == n.count else ()


def _make_move(offset: int, pos, trail: Tuple[Position, ...] = ()) -> Optional[Node]:
    if offset > 0:
        return MoveRight(offset, pos, trail)
    if offset < 0:
        return MoveLeft(-offset, pos, trail)
    return None


def _merge_moves(prev: Node, n: Node) -> Optional[Node]:
    a, b = _move_offset(prev), _move_offset(n)
    ta, tb = _trail(prev), _trail(n)
    net = a + b
    if net == 0:
        return None
    if (a > 0) == (b > 0):
        trail = ta + tb if ta and tb else ()
        return _make_move(net, prev.pos, trail)
    if abs(a) > abs(b):
        # The earlier run survives; its last symbols were cancelled.
        return _make_move(net, prev.pos, ta[:abs(net)])
    # The later run survives; its first symbols were cancelled.
    trail = tb[abs(b) - abs(net):]
    return _make_move(net, trail[0] if trail else n.pos, trail)


def _delta(n: Node) -> int:
    return n.delta if isinstance(n, Add) else -n.delta


def _make_delta(net: int, pos) -> Optional[Node]:
    if net % CELL_MODULUS == 0:
        return None
    if net > 0:
        return Add(net % CELL_MODULUS, pos)
    return Sub(-net % CELL_MODULUS, pos)


def _combine_cell(prev: Optional[Node], n: Node) -> Optional[Node]:
    """Merge cell op `n` into `prev` (which may be None)."""
    if isinstance(n, Set):
        # Anything written before an assignment is dead.
        return Set(n.value % CELL_MODULUS, n.pos)
    if isinstance(prev, Set):
        return Set((prev.value + _delta(n)) % CELL_MODULUS, prev.pos)
    if prev is None:
        return _make_delta(_delta(n), n.pos)
    return _make_delta(_delta(prev) + _delta(n), prev.pos)


def is_clear_loop(body: Program) -> bool:
    # An odd step is a unit modulo 2**32, so the loop always reaches zero.
    return (
        len(body) == 1
        and isinstance(body[0], (Add, Sub))
        and body[0].delta % 2 == 1
    )


# ---------------- Merge pass ----------------
def _append(out: List[Node], n: Node) -> None:
    """Add non-loop node `n` to `out`, merging it into the last node."""
    prev = out[-1] if out else None

    offset = _move_offset(n)
    if offset is not None:
        if _move_offset(prev) is not None:
            out.pop()
            merged = _merge_moves(prev, n)
        else:
            merged = _make_move(offset, n.pos, _trail(n))
        if merged is not None:
            out.append(merged)
        return

    if isinstance(n, _CELL_OPS):
        if isinstance(prev, _CELL_OPS):
            out.pop()
            merged = _combine_cell(prev, n)
        else:
            merged = _combine_cell(None, n)
        if merged is not None:
            out.append(merged)
        return

    out.append(n)


def _merge(nodes: Program, level: int) -> Program:
    # Frames are [body, index, out]. A frame whose index points at a Loop
    # is waiting for that loop's body to finish merging.
    root: List[Node] = []
    frames: List[list] = [[nodes, 0, root]]

    while frames:
        frame = frames[-1]
        body, i, out = frame
        if i >= len(body):
            frames.pop()
            if frames:
                parent = frames[-1]
                loop = parent[0][parent[1]]
                if level >= 1 and is_clear_loop(out):
                    _append(parent[2], Set(0, loop.pos))
                else:
                    parent[2].append(Loop(out, loop.pos))
                parent[1] += 1
            continue

        n = body[i]
        if isinstance(n, Loop):
            frames.append([n.body, 0, []])
            continue
        _append(out, n)
        frame[1] = i + 1
    return root


def optimize(program: Program, level: int = 0) -> Program:
    """Return a compacted copy of `program`; the input tree is not modified.

    A cancelled run is popped before the next instruction is considered, so
    its neighbours still merge (`+><-` becomes empty). The result is a fixed
    point: optimizing it again at the same level returns an equal program.
    """
    level = max(0, min(int(level), MAX_LEVEL))
    out = _merge(program, level)
    if logger.isEnabledFor(logging.DEBUG):
        logger.debug(
            "optimized %d -> %d instructions (level %d)",
            count_instructions(program), count_instructions(out), level,
        )
    return out
