"""
Abstract Syntax Tree node definitions for BASIC.

The tree is built once by the parser and never mutated: every node is a
frozen dataclass and every sequence is a tuple. All mutation during a run
happens in interpreter-owned state.

Expression nodes follow the grammar levels:
Comparison -> Expression -> Term -> Unary -> Primary.
"""

from dataclasses import dataclass
from typing import Optional, Tuple, Union

from ..lexer import Token, TokenType
from ..values import Value


# ---------------------------------------------------------------------------
# Expressions
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class IndexList:
    """Subscript or argument list: NAME(e1, e2, ...)."""
    expressions: Tuple['Expression', ...]


@dataclass(frozen=True)
class Slice:
    """1-based substring reference: (start TO finish), either bound optional."""
    start: Optional['Expression'] = None
    finish: Optional['Expression'] = None


Qualifier = Union[IndexList, Slice]


@dataclass(frozen=True)
class Primary:
    """Literal, variable reference or parenthesized expression.

    `token` is a NUMBER, STRING, VAR or SVAR token; it is None for a
    parenthesized group, in which case `group` holds the inner expression.
    """
    token: Optional[Token]
    qualifier: Optional[Qualifier] = None
    group: Optional['Expression'] = None


@dataclass(frozen=True)
class Unary:
    """Optionally signed primary."""
    op: Optional[Token]
    primary: Primary


@dataclass(frozen=True)
class Term:
    """unary { ('*' | '/') unary }, evaluated left to right."""
    first: Unary
    rest: Tuple[Tuple[Token, Unary], ...] = ()


@dataclass(frozen=True)
class Expression:
    """term [ ('+' | '-') expression ], a right-associative chain."""
    term: Term
    op: Optional[Token] = None
    rest: Optional['Expression'] = None


@dataclass(frozen=True)
class Comparison:
    """expression relop expression."""
    left: Expression
    op: Token
    right: Expression


# ---------------------------------------------------------------------------
# Statement parts
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Target:
    """Assignable reference: scalar variable or subscripted array element."""
    token: Token
    indices: Optional[Tuple[Expression, ...]] = None

    @property
    def name(self) -> str:
        return self.token.text

    @property
    def is_string(self) -> bool:
        return self.token.type == TokenType.SVAR


@dataclass(frozen=True)
class PrintItem:
    """One PRINT item and the separator that followed it (if any)."""
    expression: Expression
    separator: Optional[TokenType] = None


@dataclass(frozen=True)
class InputPrompt:
    """Prompt string inside an INPUT statement."""
    text: str
    separator: TokenType


# ---------------------------------------------------------------------------
# Statements
# ---------------------------------------------------------------------------

class Statement:
    """Base class for all statements."""
    pass


@dataclass(frozen=True)
class PrintStatement(Statement):
    items: Tuple[PrintItem, ...] = ()


@dataclass(frozen=True)
class IfStatement(Statement):
    condition: Comparison
    then: Statement


@dataclass(frozen=True)
class LetStatement(Statement):
    target: Target
    expression: Expression


@dataclass(frozen=True)
class DimStatement(Statement):
    token: Token
    sizes: Tuple[Expression, ...]

    @property
    def name(self) -> str:
        return self.token.text

    @property
    def is_string(self) -> bool:
        return self.token.type == TokenType.SVAR


@dataclass(frozen=True)
class InputStatement(Statement):
    items: Tuple[Union[InputPrompt, Target], ...]


@dataclass(frozen=True)
class ForStatement(Statement):
    variable: Token
    start: Expression
    limit: Expression
    step: Optional[Expression] = None


@dataclass(frozen=True)
class NextStatement(Statement):
    variable: Token


@dataclass(frozen=True)
class GoStatement(Statement):
    """GO TO / GO SUB (and the GOTO / GOSUB spellings)."""
    target: Expression
    subroutine: bool = False


@dataclass(frozen=True)
class ReturnStatement(Statement):
    pass


@dataclass(frozen=True)
class StopStatement(Statement):
    pass


@dataclass(frozen=True)
class RemStatement(Statement):
    pass


@dataclass(frozen=True)
class ClsStatement(Statement):
    pass


@dataclass(frozen=True)
class DataStatement(Statement):
    """DATA holds literal values only, typed at parse time."""
    values: Tuple[Value, ...]


@dataclass(frozen=True)
class RestoreStatement(Statement):
    line_number: Optional[int] = None


@dataclass(frozen=True)
class ReadStatement(Statement):
    targets: Tuple[Target, ...]


# Every concrete statement kind. The interpreter checks its dispatch table
# against this tuple so a new kind cannot be added without a handler.
STATEMENT_TYPES = (
    PrintStatement,
    IfStatement,
    LetStatement,
    DimStatement,
    InputStatement,
    ForStatement,
    NextStatement,
    GoStatement,
    ReturnStatement,
    StopStatement,
    RemStatement,
    ClsStatement,
    DataStatement,
    RestoreStatement,
    ReadStatement,
)


# ---------------------------------------------------------------------------
# Program
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Line:
    """A numbered program line with one or more ':'-separated statements."""
    number: int
    statements: Tuple[Statement, ...]

    def __repr__(self):
        return f"Line({self.number}, {len(self.statements)} statements)"


@dataclass(frozen=True)
class Program:
    """Lines in the order they were declared."""
    lines: Tuple[Line, ...] = ()

    def __len__(self):
        return len(self.lines)

    def find_line_index(self, target: int) -> Optional[int]:
        """Index of the first line whose number is >= target, or None."""
        for index, line in enumerate(self.lines):
            if line.number >= target:
                return index
        return None
