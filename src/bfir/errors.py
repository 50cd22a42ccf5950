from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, List, Optional

if TYPE_CHECKING:
    from .lexer import Position


def _build_context(lines: List[str], line_no_1: int, col: int, *, context: int = 2) -> str:
    idx = max(1, min(line_no_1, len(lines)))
    start = max(1, idx - context)
    end = min(len(lines), idx + context)

    out: List[str] = []
    for i in range(start, end + 1):
        prefix = '>' if i == idx else ' '
        out.append(f"{prefix} {i:4d} | {lines[i - 1]}")
        if i == idx and col >= 1:
            out.append(f"       | {' ' * (col - 1)}^")
    return "\n".join(out)


def _hint_for(kind: str) -> Optional[str]:
    if kind == 'UnmatchedOpen':
        return 'Every "[" needs a matching "]" later in the program.'
    if kind == 'UnmatchedClose':
        return 'This "]" has no "[" before it. Remove it or add the missing "[".'
    return None


@dataclass(eq=False)
class BFError(Exception):
    message: str

    def __str__(self) -> str:
        return self.message


@dataclass(eq=False)
class BFSyntaxError(BFError):
    line: int
    col: int
    context: str = ''


class UnmatchedOpen(BFSyntaxError):
    pass


class UnmatchedClose(BFSyntaxError):
    pass


@dataclass(eq=False)
class BFRuntimeError(BFError):
    kind: Optional[str] = None
    position: Optional[Position] = None

    def locate(self, kind: str, position: Optional[Position]) -> None:
        # Innermost location wins; the executor only fills in what is missing.
        if self.kind is None:
            self.kind = kind
        if self.position is None:
            self.position = position

    def __str__(self) -> str:
        where = []
        if self.kind is not None:
            where.append(f"in {self.kind}")
        if self.position is not None:
            where.append(f"at line {self.position.line} col {self.position.col}")
        suffix = f" ({' '.join(where)})" if where else ''
        return f"{type(self).__name__}: {self.message}{suffix}"


class PointerUnderflow(BFRuntimeError):
    pass


class OutOfMemory(BFRuntimeError):
    pass


class BFIOError(BFRuntimeError):
    pass


class InputExhausted(BFIOError):
    pass


def make_syntax_error(cls, *, message: str, source: Optional[str], line: int, col: int) -> BFSyntaxError:
    ctx = _build_context(source.split('\n'), line, col) if source is not None else ''
    hint = _hint_for(cls.__name__)
    ctx_block = f"\n{ctx}" if ctx else ""
    hint_block = f"\nHint: {hint}" if hint else ""
    return cls(
        message=f"SyntaxError: {message} (line {line} col {col}){ctx_block}{hint_block}",
        line=line,
        col=col,
        context=ctx,
    )
