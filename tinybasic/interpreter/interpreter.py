"""
Tree-walking interpreter.

Executes a parsed Program statement by statement. Control flow is driven by
an explicit statement address (line index, statement index); every
statement handler returns either None (fall through to the next
statement), an Address to jump to, or HALT.

All mutable state lives in a RuntimeState passed to every call.
"""

import math
import operator
import re
from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional, Tuple

from ..errors import BasicRuntimeError
from ..lexer import TokenType
from ..parser.ast_nodes import *
from ..values import NumberValue, StringValue, Value, format_value, type_name
from .builtins import BUILTINS, call_builtin
from .console import Console
from .state import Address, DimArray, LoopContext, RuntimeState, variable_key


class ExecutionState(Enum):
    """Program execution states."""
    RUNNING = auto()
    HALTED_NORMAL = auto()
    HALTED_ERROR = auto()


@dataclass
class RunResult:
    """Outcome of a run that halted normally."""
    state: ExecutionState
    stopped: bool               # True for STOP, False for running off the end
    line_number: Optional[int]  # line being executed when the run halted
    steps: int                  # statements executed


HALT = object()

# Same shape as a NUMBER literal, with an optional sign
NUMBER_INPUT = re.compile(r"\s*[+-]?[0-9]+(\.[0-9]+)?\s*\Z")

COMPARATORS = {
    TokenType.EQ: operator.eq,
    TokenType.NOTEQ: operator.ne,
    TokenType.GT: operator.gt,
    TokenType.GTEQ: operator.ge,
    TokenType.LT: operator.lt,
    TokenType.LTEQ: operator.le,
}

# Statement class -> handler method name
HANDLERS = {
    PrintStatement: 'exec_print',
    IfStatement: 'exec_if',
    LetStatement: 'exec_let',
    DimStatement: 'exec_dim',
    InputStatement: 'exec_input',
    ForStatement: 'exec_for',
    NextStatement: 'exec_next',
    GoStatement: 'exec_go',
    ReturnStatement: 'exec_return',
    StopStatement: 'exec_stop',
    RemStatement: 'exec_nothing',
    ClsStatement: 'exec_cls',
    DataStatement: 'exec_nothing',
    RestoreStatement: 'exec_restore',
    ReadStatement: 'exec_read',
}


def _check_handlers():
    """Fail at import time if a statement kind has no handler."""
    missing = [cls.__name__ for cls in STATEMENT_TYPES if cls not in HANDLERS]
    if missing:
        raise TypeError(f"No interpreter handler for: {', '.join(missing)}")


_check_handlers()


class Interpreter:
    """Executes BASIC programs."""

    def __init__(self, console: Optional[Console] = None, max_steps: Optional[int] = None):
        self.console = console or Console()
        self.max_steps = max_steps
        self.execution_state: Optional[ExecutionState] = None

    def run(self, program: Program, state: Optional[RuntimeState] = None) -> RunResult:
        """Run a program until STOP, the end of the program, or an error.

        Args:
            program: Parsed program
            state: Runtime state to use (a fresh one if None)

        Returns:
            RunResult describing the normal halt

        Raises:
            BasicRuntimeError: on any fatal runtime condition; the error's
                line_number is the BASIC line being executed
        """
        if state is None:
            state = RuntimeState.for_program(program)
        self.execution_state = ExecutionState.RUNNING
        stopped = False

        try:
            while state.address.line_index < len(program.lines):
                line = program.lines[state.address.line_index]
                state.line_number = line.number
                statement = line.statements[state.address.statement_index]

                state.steps += 1
                if self.max_steps is not None and state.steps > self.max_steps:
                    raise BasicRuntimeError(f"statement limit of {self.max_steps} exceeded")

                outcome = self.execute(statement, state)
                if outcome is HALT:
                    stopped = True
                    break
                if outcome is None:
                    outcome = self.next_address(state, state.address)
                state.address = outcome
        except BasicRuntimeError as e:
            if e.line_number is None:
                e.line_number = state.line_number
            self.execution_state = ExecutionState.HALTED_ERROR
            raise

        self.execution_state = ExecutionState.HALTED_NORMAL
        return RunResult(self.execution_state, stopped, state.line_number, state.steps)

    def next_address(self, state: RuntimeState, address: Address) -> Address:
        """Address of the statement after `address` (possibly past the last line)."""
        line = state.program.lines[address.line_index]
        if address.statement_index + 1 < len(line.statements):
            return Address(address.line_index, address.statement_index + 1)
        return Address(address.line_index + 1, 0)

    def execute(self, statement: Statement, state: RuntimeState):
        """Execute one statement and return None, an Address, or HALT."""
        handler = getattr(self, HANDLERS[type(statement)])
        return handler(statement, state)

    # ------------------------------------------------------------------
    # Statements
    # ------------------------------------------------------------------

    def exec_print(self, statement: PrintStatement, state: RuntimeState):
        if not statement.items:
            self.console.write_line()
            return None

        # Evaluate everything first so a failing item produces no output
        texts = [format_value(self.evaluate(item.expression, state)) for item in statement.items]
        for item, text in zip(statement.items, texts):
            if item.separator == TokenType.SEMICOLON:
                self.console.write(text)
            else:
                self.console.write_line(text)
        return None

    def exec_if(self, statement: IfStatement, state: RuntimeState):
        if self.evaluate_comparison(statement.condition, state):
            return self.execute(statement.then, state)
        # Skip the rest of the line, including ':'-chained statements
        return Address(state.address.line_index + 1, 0)

    def exec_let(self, statement: LetStatement, state: RuntimeState):
        self.assign(statement.target, self.evaluate(statement.expression, state), state)
        return None

    def exec_dim(self, statement: DimStatement, state: RuntimeState):
        sizes = tuple(self.evaluate_integer(e, state, "array size") for e in statement.sizes)
        key = variable_key(statement.token)
        for size in sizes:
            if size < 1:
                raise BasicRuntimeError(f"invalid array size for {key}: {size}")
        state.arrays[key] = DimArray(key, sizes, statement.is_string)
        return None

    def exec_input(self, statement: InputStatement, state: RuntimeState):
        for item in statement.items:
            if isinstance(item, InputPrompt):
                if item.separator == TokenType.SEMICOLON:
                    self.console.write(item.text)
                else:
                    self.console.write_line(item.text)
                continue

            text = self.console.read_line()
            if text is None:
                raise BasicRuntimeError("end of input")
            if item.is_string:
                value = StringValue(text)
            else:
                if not NUMBER_INPUT.match(text):
                    raise BasicRuntimeError(f"invalid number: {text!r}")
                value = NumberValue(float(text))
            self.assign(item, value, state)
        return None

    def exec_for(self, statement: ForStatement, state: RuntimeState):
        key = variable_key(statement.variable)
        start = self.evaluate_number(statement.start, state, "FOR start value")
        self.evaluate_number(statement.limit, state, "FOR limit")
        state.variables[key] = NumberValue(start)
        # A new FOR on the same variable replaces any active loop on it
        state.loops[key] = LoopContext(
            resume=self.next_address(state, state.address),
            limit=statement.limit,
            step=statement.step,
        )
        return None

    def exec_next(self, statement: NextStatement, state: RuntimeState):
        key = variable_key(statement.variable)
        context = state.loops.get(key)
        if context is None:
            raise BasicRuntimeError(f"NEXT without FOR: {key}")
        if context.reached:
            return None

        step = 1.0
        if context.step is not None:
            step = self.evaluate_number(context.step, state, "STEP")
        current = self.lookup_scalar(key, state)
        value = current.value + step
        state.variables[key] = NumberValue(value)

        # Exact match only: a step that jumps over the limit never ends the loop
        if value == self.evaluate_number(context.limit, state, "FOR limit"):
            context.reached = True
        return context.resume

    def exec_go(self, statement: GoStatement, state: RuntimeState):
        target = self.evaluate_integer(statement.target, state, "line number")
        line_index = state.program.find_line_index(target)
        if line_index is None:
            raise BasicRuntimeError(f"line {target} not found")
        if statement.subroutine:
            state.return_stack.append(self.next_address(state, state.address))
        return Address(line_index, 0)

    def exec_return(self, statement: ReturnStatement, state: RuntimeState):
        if not state.return_stack:
            raise BasicRuntimeError("RETURN without GO SUB")
        return state.return_stack.pop()

    def exec_stop(self, statement: StopStatement, state: RuntimeState):
        return HALT

    def exec_nothing(self, statement: Statement, state: RuntimeState):
        return None

    def exec_cls(self, statement: ClsStatement, state: RuntimeState):
        self.console.clear()
        return None

    def exec_restore(self, statement: RestoreStatement, state: RuntimeState):
        state.data.restore(statement.line_number)
        return None

    def exec_read(self, statement: ReadStatement, state: RuntimeState):
        for target in statement.targets:
            self.assign(target, state.data.read(), state)
        return None

    # ------------------------------------------------------------------
    # Variables
    # ------------------------------------------------------------------

    def assign(self, target: Target, value: Value, state: RuntimeState):
        """Store a value in a scalar variable or an array element."""
        key = variable_key(target.token)

        if target.indices is None:
            if value.is_string != target.is_string:
                raise BasicRuntimeError(
                    f"type mismatch: cannot assign {type_name(value)} to {key}"
                )
            state.variables[key] = value
            return

        array = state.arrays.get(key)
        if array is None:
            raise BasicRuntimeError(f"no such array: {key}")
        array.set(self.evaluate_indices(target.indices, state), value)

    def lookup_scalar(self, key: str, state: RuntimeState) -> Value:
        value = state.variables.get(key)
        if value is None:
            raise BasicRuntimeError(f"no such identifier: {key}")
        return value

    def resolve_variable(self, primary: Primary, state: RuntimeState) -> Value:
        """Resolve a variable reference: scalar, then array, then built-in."""
        token = primary.token
        key = variable_key(token)
        qualifier = primary.qualifier

        value = state.variables.get(key)
        if value is not None and (qualifier is None or token.type == TokenType.SVAR):
            return self.apply_qualifier(value, qualifier, state)

        array = state.arrays.get(key)
        if array is not None:
            if isinstance(qualifier, Slice):
                return self.apply_qualifier(array.get(()), qualifier, state)
            indices = ()
            if qualifier is not None:
                indices = self.evaluate_indices(qualifier.expressions, state)
            return array.get(indices)

        if token.type == TokenType.VAR and key in BUILTINS:
            args = []
            if qualifier is not None:
                args = [self.evaluate(e, state) for e in qualifier.expressions]
            return call_builtin(key, args)

        raise BasicRuntimeError(f"no such identifier: {key}")

    def apply_qualifier(self, value: Value, qualifier: Optional[Qualifier],
                        state: RuntimeState) -> Value:
        """Apply a slice or single subscript to a string value."""
        if qualifier is None:
            return value
        if not value.is_string:
            raise BasicRuntimeError("type mismatch: cannot slice a number")

        if isinstance(qualifier, Slice):
            start = 1
            finish = len(value.value)
            if qualifier.start is not None:
                start = self.evaluate_integer(qualifier.start, state, "slice start")
            if qualifier.finish is not None:
                finish = self.evaluate_integer(qualifier.finish, state, "slice end")
        else:
            if len(qualifier.expressions) != 1:
                raise BasicRuntimeError("string subscript takes exactly one index")
            start = finish = self.evaluate_integer(qualifier.expressions[0], state, "subscript")

        return self._slice(value.value, start, finish)

    @staticmethod
    def _slice(text: str, start: int, finish: int) -> Value:
        if start > finish:
            return StringValue('')
        if start < 1 or finish > len(text):
            raise BasicRuntimeError(
                f"subscript out of range: ({start} TO {finish}) on string of length {len(text)}"
            )
        return StringValue(text[start - 1:finish])

    # ------------------------------------------------------------------
    # Expressions
    # ------------------------------------------------------------------

    def evaluate_comparison(self, comparison: Comparison, state: RuntimeState) -> bool:
        left = self.evaluate(comparison.left, state)
        right = self.evaluate(comparison.right, state)
        if left.is_string != right.is_string:
            raise BasicRuntimeError(
                f"type mismatch: cannot compare {type_name(left)} with {type_name(right)}"
            )
        return COMPARATORS[comparison.op.type](left.value, right.value)

    def evaluate(self, expression: Expression, state: RuntimeState) -> Value:
        """Evaluate a right-associative +/- chain."""
        left = self.evaluate_term(expression.term, state)
        if expression.op is None:
            return left
        right = self.evaluate(expression.rest, state)

        if expression.op.type == TokenType.PLUS:
            if left.is_string and right.is_string:
                return StringValue(left.value + right.value)
            if not left.is_string and not right.is_string:
                return NumberValue(left.value + right.value)
            raise BasicRuntimeError(
                f"type mismatch: cannot add {type_name(left)} and {type_name(right)}"
            )

        self._require_numbers('-', left, right)
        return NumberValue(left.value - right.value)

    def evaluate_term(self, term: Term, state: RuntimeState) -> Value:
        """Evaluate a left-to-right * / chain."""
        value = self.evaluate_unary(term.first, state)
        for op, unary in term.rest:
            right = self.evaluate_unary(unary, state)
            self._require_numbers(op.text, value, right)
            if op.type == TokenType.ASTERISK:
                value = NumberValue(value.value * right.value)
            else:
                if right.value == 0:
                    raise BasicRuntimeError("division by zero")
                value = NumberValue(value.value / right.value)
        return value

    def evaluate_unary(self, unary: Unary, state: RuntimeState) -> Value:
        value = self.evaluate_primary(unary.primary, state)
        if unary.op is None:
            return value
        if value.is_string:
            raise BasicRuntimeError(f"type mismatch: unary '{unary.op.text}' requires a number")
        if unary.op.type == TokenType.MINUS:
            return NumberValue(-value.value)
        return value

    def evaluate_primary(self, primary: Primary, state: RuntimeState) -> Value:
        token = primary.token
        if token is None:
            return self.evaluate(primary.group, state)
        if token.type == TokenType.NUMBER:
            return NumberValue(float(token.text))
        if token.type == TokenType.STRING:
            return self.apply_qualifier(StringValue(token.text), primary.qualifier, state)
        return self.resolve_variable(primary, state)

    def evaluate_number(self, expression: Expression, state: RuntimeState, what: str) -> float:
        value = self.evaluate(expression, state)
        if value.is_string:
            raise BasicRuntimeError(f"type mismatch: {what} must be a number")
        return value.value

    def evaluate_integer(self, expression: Expression, state: RuntimeState, what: str) -> int:
        number = self.evaluate_number(expression, state, what)
        if not math.isfinite(number):
            raise BasicRuntimeError(f"invalid {what}: {number}")
        return int(number)

    def evaluate_indices(self, expressions: Tuple[Expression, ...],
                         state: RuntimeState) -> Tuple[int, ...]:
        return tuple(self.evaluate_integer(e, state, "subscript") for e in expressions)

    @staticmethod
    def _require_numbers(symbol: str, left: Value, right: Value):
        if left.is_string or right.is_string:
            raise BasicRuntimeError(
                f"type mismatch: '{symbol}' requires numbers, got "
                f"{type_name(left)} and {type_name(right)}"
            )
