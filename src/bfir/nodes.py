from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Tuple, Union

from .lexer import Position

CELL_BITS = 32
CELL_MODULUS = 1 << CELL_BITS
CELL_MASK = CELL_MODULUS - 1


# ---------------- IR Nodes ----------------
# `pos` points at the first source symbol a node was built from. It is left
# out of equality so merged and re-parsed programs compare structurally.
# Moves also keep `trail`, one position per uncancelled symbol of the run, so
# a failing step can be traced to the exact symbol.

@dataclass(frozen=True)
class MoveLeft:
    count: int
    pos: Optional[Position] = field(default=None, compare=False, repr=False)
    trail: Tuple[Position, ...] = field(default=(), compare=False, repr=False)

    def position_at(self, step: int) -> Optional[Position]:
        if len(self.trail) == self.count and 0 <= step < self.count:
            return self.trail[step]
        return self.pos


@dataclass(frozen=True)
class MoveRight:
    count: int
    pos: Optional[Position] = field(default=None, compare=False, repr=False)
    trail: Tuple[Position, ...] = field(default=(), compare=False, repr=False)

    def position_at(self, step: int) -> Optional[Position]:
        if len(self.trail) == self.count and 0 <= step < self.count:
            return self.trail[step]
        return self.pos


@dataclass(frozen=True)
class Add:
    delta: int
    pos: Optional[Position] = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class Sub:
    delta: int
    pos: Optional[Position] = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class Set:
    value: int  # assigns the current cell; produced from clear loops
    pos: Optional[Position] = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class Output:
    pos: Optional[Position] = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class Input:
    pos: Optional[Position] = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class Loop:
    body: List["Node"]
    pos: Optional[Position] = field(default=None, compare=False, repr=False)


Node = Union[MoveLeft, MoveRight, Add, Sub, Set, Output, Input, Loop]
Program = List[Node]


# ---------------- Emit + counts ----------------
# These walk explicit stacks so nesting depth is not bounded by the
# interpreter's recursion limit.

def _emit_simple(n: Node) -> str:
    if isinstance(n, MoveRight):
        return ">" * n.count
    if isinstance(n, MoveLeft):
        return "<" * n.count
    if isinstance(n, Add):
        return "+" * n.delta
    if isinstance(n, Sub):
        return "-" * n.delta
    if isinstance(n, Set):
        # Values past the halfway point are shorter to reach by counting down.
        if n.value > CELL_MODULUS // 2:
            return "[-]" + "-" * (CELL_MODULUS - n.value)
        return "[-]" + "+" * n.value
    if isinstance(n, Output):
        return "."
    if isinstance(n, Input):
        return ","
    raise TypeError(f"unknown instruction {n!r}")


def emit(nodes: Program) -> str:
    """Render a program back to plain source symbols."""
    out: List[str] = []
    stack = [iter(nodes)]
    while stack:
        n = next(stack[-1], None)
        if n is None:
            stack.pop()
            if stack:
                out.append("]")
        elif isinstance(n, Loop):
            out.append("[")
            stack.append(iter(n.body))
        else:
            out.append(_emit_simple(n))
    return "".join(out)


def depth(nodes: Program) -> int:
    """Maximum loop nesting depth; a flat program has depth 0."""
    best = 0
    stack = [(nodes, 0)]
    while stack:
        body, level = stack.pop()
        best = max(best, level)
        for n in body:
            if isinstance(n, Loop):
                stack.append((n.body, level + 1))
    return best


def count_instructions(nodes: Program) -> int:
    c = 0
    stack = [nodes]
    while stack:
        body = stack.pop()
        c += len(body)
        stack.extend(n.body for n in body if isinstance(n, Loop))
    return c
