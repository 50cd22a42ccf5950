from __future__ import annotations

from dataclasses import dataclass
from typing import List

BF_OPS = frozenset('<>+-.,[]')


@dataclass(frozen=True)
class Position:
    line: int
    col: int

    def __str__(self) -> str:
        return f"{self.line}:{self.col}"


@dataclass(frozen=True)
class Token:
    kind: str
    line: int
    col: int

    @property
    def position(self) -> Position:
        return Position(self.line, self.col)


def tokenize(code: str) -> List[Token]:
    """Split source text into tokens, dropping every non-command character.

    Lines and columns are 1-based; each character (comments included)
    advances the column, and a newline starts the next line.
    """
    tokens: List[Token] = []
    line = 1
    col = 1
    for ch in code:
        if ch in BF_OPS:
            tokens.append(Token(ch, line, col))
        if ch == '\n':
            line += 1
            col = 1
        else:
            col += 1
    return tokens
