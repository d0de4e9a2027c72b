"""
Program listing - deterministic re-serialization of the program tree.

The listing normalizes spacing and spelling (GOTO becomes GO TO, remark text
is dropped) but re-parses to a tree equal to the one it was produced from.
"""

from decimal import Decimal
from typing import List

from ..lexer import TokenType
from ..values import Value, format_number
from .ast_nodes import *


SEPARATOR_TEXT = {
    TokenType.SEMICOLON: ';',
    TokenType.COMMA: ',',
}


def format_program(program: Program) -> str:
    """Render a whole program, one numbered line per source line."""
    return ''.join(format_line(line) + '\n' for line in program.lines)


def format_line(line: Line) -> str:
    return f"{line.number} " + ': '.join(format_statement(s) for s in line.statements)


def format_statement(statement: Statement) -> str:
    """Render a single statement."""
    if isinstance(statement, PrintStatement):
        if not statement.items:
            return 'PRINT'
        parts = []
        for item in statement.items:
            parts.append(format_expression(item.expression))
            if item.separator is not None:
                parts.append(SEPARATOR_TEXT[item.separator])
        return 'PRINT ' + ''.join(parts)
    elif isinstance(statement, IfStatement):
        return f"IF {format_comparison(statement.condition)} THEN {format_statement(statement.then)}"
    elif isinstance(statement, LetStatement):
        return f"LET {format_target(statement.target)}={format_expression(statement.expression)}"
    elif isinstance(statement, DimStatement):
        sizes = ','.join(format_expression(e) for e in statement.sizes)
        return f"DIM {_variable_text(statement.token)}({sizes})"
    elif isinstance(statement, InputStatement):
        parts: List[str] = []
        for index, item in enumerate(statement.items):
            if isinstance(item, InputPrompt):
                parts.append(f'"{item.text}"{SEPARATOR_TEXT[item.separator]}')
            else:
                parts.append(format_target(item))
                if index + 1 < len(statement.items):
                    parts.append(',')
        return 'INPUT ' + ''.join(parts)
    elif isinstance(statement, ForStatement):
        text = (f"FOR {statement.variable.text}={format_expression(statement.start)}"
                f" TO {format_expression(statement.limit)}")
        if statement.step is not None:
            text += f" STEP {format_expression(statement.step)}"
        return text
    elif isinstance(statement, NextStatement):
        return f"NEXT {statement.variable.text}"
    elif isinstance(statement, GoStatement):
        keyword = 'GO SUB' if statement.subroutine else 'GO TO'
        return f"{keyword} {format_expression(statement.target)}"
    elif isinstance(statement, ReturnStatement):
        return 'RETURN'
    elif isinstance(statement, StopStatement):
        return 'STOP'
    elif isinstance(statement, RemStatement):
        return 'REM'
    elif isinstance(statement, ClsStatement):
        return 'CLS'
    elif isinstance(statement, DataStatement):
        return 'DATA ' + ','.join(_format_literal(v) for v in statement.values)
    elif isinstance(statement, RestoreStatement):
        if statement.line_number is None:
            return 'RESTORE'
        return f"RESTORE {statement.line_number}"
    elif isinstance(statement, ReadStatement):
        return 'READ ' + ','.join(format_target(t) for t in statement.targets)

    raise TypeError(f"Cannot format {type(statement).__name__}")


def format_comparison(comparison: Comparison) -> str:
    return (f"{format_expression(comparison.left)}{comparison.op.text}"
            f"{format_expression(comparison.right)}")


def format_expression(expression: Expression) -> str:
    """Render an expression without redundant spaces."""
    text = format_term(expression.term)
    if expression.op is not None:
        text += expression.op.text + format_expression(expression.rest)
    return text


def format_term(term: Term) -> str:
    text = format_unary(term.first)
    for op, unary in term.rest:
        text += op.text + format_unary(unary)
    return text


def format_unary(unary: Unary) -> str:
    sign = unary.op.text if unary.op is not None else ''
    return sign + format_primary(unary.primary)


def format_primary(primary: Primary) -> str:
    if primary.token is None:
        return f"({format_expression(primary.group)})"

    token = primary.token
    if token.type == TokenType.STRING:
        text = f'"{token.text}"'
    elif token.type in (TokenType.VAR, TokenType.SVAR):
        text = _variable_text(token)
    else:
        text = token.text

    qualifier = primary.qualifier
    if isinstance(qualifier, IndexList):
        text += '(' + ','.join(format_expression(e) for e in qualifier.expressions) + ')'
    elif isinstance(qualifier, Slice):
        start = format_expression(qualifier.start) + ' ' if qualifier.start is not None else ''
        finish = ' ' + format_expression(qualifier.finish) if qualifier.finish is not None else ''
        text += f"({start}TO{finish})"
    return text


def format_target(target: Target) -> str:
    text = _variable_text(target.token)
    if target.indices is not None:
        text += '(' + ','.join(format_expression(e) for e in target.indices) + ')'
    return text


def _variable_text(token) -> str:
    if token.type == TokenType.SVAR:
        return token.text + '$'
    return token.text


def _format_literal(value: Value) -> str:
    if value.is_string:
        return f'"{value.value}"'
    text = format_number(value.value)
    if 'e' in text:
        # The lexer has no exponent syntax
        text = format(Decimal(repr(value.value)), 'f')
    return text
