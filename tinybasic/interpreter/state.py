"""
Runtime state for one program run.

Everything a run mutates lives here: scalar variables, dimensioned arrays,
FOR loop contexts, the GO SUB return stack, the DATA queue and the current
statement address. The interpreter receives a RuntimeState explicitly, so
independent runs never share state.
"""

from dataclasses import dataclass, field
from typing import Dict, List, NamedTuple, Optional, Tuple

from ..errors import BasicRuntimeError
from ..lexer import Token, TokenType
from ..parser.ast_nodes import DataStatement, Expression, Program
from ..values import Value, StringValue, ZERO, type_name


class Address(NamedTuple):
    """Location of the next statement to execute."""
    line_index: int
    statement_index: int = 0


def variable_key(token: Token) -> str:
    """Table key for a variable token: 'X' for numbers, 'A$' for strings."""
    if token.type == TokenType.SVAR:
        return token.text + '$'
    return token.text


@dataclass
class LoopContext:
    """Per-variable FOR loop record consulted by NEXT."""
    resume: Address
    limit: Expression
    step: Optional[Expression] = None
    reached: bool = False


class DimArray:
    """Dimensioned array with sparse storage.

    Cells are keyed by 1-based index tuples and materialize to a default on
    first read: 0 for numeric arrays, a single space for string arrays.
    String arrays hold one character per cell; addressing a string array
    with one subscript fewer than declared reads or writes a whole row.
    """

    def __init__(self, name: str, sizes: Tuple[int, ...], is_string: bool):
        self.name = name
        self.sizes = sizes
        self.is_string = is_string
        self.cells: Dict[Tuple[int, ...], Value] = {}

    @property
    def default(self) -> Value:
        return StringValue(' ') if self.is_string else ZERO

    def _check_bounds(self, indices: Tuple[int, ...]):
        for index, size in zip(indices, self.sizes):
            if index < 1 or index > size:
                raise BasicRuntimeError(
                    f"subscript out of range: {self.name}{self._format(indices)}"
                )

    @staticmethod
    def _format(indices: Tuple[int, ...]) -> str:
        return '(' + ','.join(str(i) for i in indices) + ')'

    def _is_row(self, indices: Tuple[int, ...]) -> bool:
        return self.is_string and len(indices) == len(self.sizes) - 1

    def _wrong_count(self, indices: Tuple[int, ...]):
        raise BasicRuntimeError(
            f"wrong number of subscripts for {self.name}: "
            f"expected {len(self.sizes)}, got {len(indices)}"
        )

    def get(self, indices: Tuple[int, ...]) -> Value:
        """Read a cell (or a whole row of a string array)."""
        if len(indices) == len(self.sizes):
            self._check_bounds(indices)
            return self.cells.get(indices, self.default)
        if self._is_row(indices):
            self._check_bounds(indices)
            row_length = self.sizes[-1]
            chars = [self.cells.get(indices + (i,), self.default).value
                     for i in range(1, row_length + 1)]
            return StringValue(''.join(chars))
        self._wrong_count(indices)

    def set(self, indices: Tuple[int, ...], value: Value):
        """Write a cell (or a whole row of a string array)."""
        if value.is_string != self.is_string:
            raise BasicRuntimeError(
                f"type mismatch: cannot store {type_name(value)} in {self.name}"
            )

        if len(indices) == len(self.sizes):
            self._check_bounds(indices)
            if self.is_string:
                # One character per cell
                value = StringValue(value.value[:1] or ' ')
            self.cells[indices] = value
        elif self._is_row(indices):
            self._check_bounds(indices)
            row_length = self.sizes[-1]
            text = value.value[:row_length].ljust(row_length)
            for i, ch in enumerate(text, start=1):
                self.cells[indices + (i,)] = StringValue(ch)
        else:
            self._wrong_count(indices)


class DataQueue:
    """All DATA literals of a program flattened into one ordered queue.

    `line_offsets` maps each DATA line number to the queue offset where that
    line's values begin, in program order, for RESTORE.
    """

    def __init__(self, values: Optional[List[Value]] = None,
                 line_offsets: Optional[List[Tuple[int, int]]] = None):
        self.values: List[Value] = values or []
        self.line_offsets: List[Tuple[int, int]] = line_offsets or []
        self.cursor = 0

    @classmethod
    def from_program(cls, program: Program) -> 'DataQueue':
        """Scan a program's DATA statements once, before execution."""
        queue = cls()
        for line in program.lines:
            for statement in line.statements:
                if isinstance(statement, DataStatement):
                    if not queue.line_offsets or queue.line_offsets[-1][0] != line.number:
                        queue.line_offsets.append((line.number, len(queue.values)))
                    queue.values.extend(statement.values)
        return queue

    def __len__(self):
        return len(self.values)

    def read(self) -> Value:
        if self.cursor >= len(self.values):
            raise BasicRuntimeError("out of DATA")
        value = self.values[self.cursor]
        self.cursor += 1
        return value

    def restore(self, line_number: Optional[int] = None):
        """Move the cursor to the start, or to the first DATA line >= line_number."""
        if line_number is None:
            self.cursor = 0
            return
        for number, offset in self.line_offsets:
            if number >= line_number:
                self.cursor = offset
                return
        raise BasicRuntimeError(f"RESTORE {line_number}: no DATA at or after that line")


@dataclass
class RuntimeState:
    """Mutable state owned by one run of one program."""
    program: Program
    data: DataQueue
    variables: Dict[str, Value] = field(default_factory=dict)
    arrays: Dict[str, DimArray] = field(default_factory=dict)
    loops: Dict[str, LoopContext] = field(default_factory=dict)
    return_stack: List[Address] = field(default_factory=list)
    address: Address = Address(0, 0)
    line_number: Optional[int] = None
    steps: int = 0

    @classmethod
    def for_program(cls, program: Program) -> 'RuntimeState':
        return cls(program=program, data=DataQueue.from_program(program))
