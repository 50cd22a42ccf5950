from __future__ import annotations

from typing import List, Optional, Tuple

from .errors import UnmatchedClose, UnmatchedOpen, make_syntax_error
from .lexer import Token, tokenize
from .nodes import Add, Input, Loop, MoveLeft, MoveRight, Node, Output, Program, Sub

_SIMPLE = {
    '>': lambda pos: MoveRight(1, pos, (pos,)),
    '<': lambda pos: MoveLeft(1, pos, (pos,)),
    '+': lambda pos: Add(1, pos),
    '-': lambda pos: Sub(1, pos),
    '.': lambda pos: Output(pos),
    ',': lambda pos: Input(pos),
}


# ---------------- Parser: tokens -> tree ----------------
def parse_tokens(tokens: List[Token], source: Optional[str] = None) -> Program:
    """Build the instruction tree from lexed tokens.

    `source` is only used to quote the offending line in syntax errors.
    """
    root: List[Node] = []
    # Each pending loop keeps its opening token for error reporting.
    stack: List[Tuple[List[Node], Token]] = []

    for tok in tokens:
        current = stack[-1][0] if stack else root
        if tok.kind == '[':
            stack.append(([], tok))
        elif tok.kind == ']':
            if not stack:
                raise make_syntax_error(
                    UnmatchedClose,
                    message="Unmatched ']'",
                    source=source,
                    line=tok.line,
                    col=tok.col,
                )
            body, opener = stack.pop()
            parent = stack[-1][0] if stack else root
            parent.append(Loop(body, opener.position))
        else:
            current.append(_SIMPLE[tok.kind](tok.position))

    if stack:
        _, opener = stack[-1]
        raise make_syntax_error(
            UnmatchedOpen,
            message="Unmatched '['",
            source=source,
            line=opener.line,
            col=opener.col,
        )
    return root


def parse(code: str) -> Program:
    return parse_tokens(tokenize(code), source=code)
