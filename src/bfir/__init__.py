from .api import (
    RunOptions,
    RunResult,
    load_program,
    make_executor,
    run_executor,
    run_file,
    run_program,
    run_string,
)
from .errors import (
    BFError,
    BFIOError,
    BFRuntimeError,
    BFSyntaxError,
    InputExhausted,
    OutOfMemory,
    PointerUnderflow,
    UnmatchedClose,
    UnmatchedOpen,
)
from .executor import EOFPolicy, Executor, OutputMode, execute
from .lexer import Position, Token, tokenize
from .nodes import Add, Input, Loop, MoveLeft, MoveRight, Output, Set, Sub, emit
from .optimizer import optimize
from .parser import parse, parse_tokens
from .tape import Tape

__all__ = [
    'Add', 'Input', 'Loop', 'MoveLeft', 'MoveRight', 'Output', 'Set', 'Sub', 'emit',
    'Position', 'Token', 'tokenize',
    'parse', 'parse_tokens',
    'optimize',
    'Tape',
    'EOFPolicy', 'Executor', 'OutputMode', 'execute',
    'RunOptions', 'RunResult', 'load_program', 'make_executor', 'run_executor',
    'run_file', 'run_program', 'run_string',
    'BFError', 'BFSyntaxError', 'UnmatchedOpen', 'UnmatchedClose',
    'BFRuntimeError', 'PointerUnderflow', 'OutOfMemory', 'BFIOError', 'InputExhausted',
]
