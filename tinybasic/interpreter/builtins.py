"""
Built-in functions.

Looked up by name after scalar variables and arrays, so a program that
assigns to INT or dimensions ABS shadows the built-in.
"""

import math
from dataclasses import dataclass
from typing import Callable, Dict, List, Tuple

from ..errors import BasicRuntimeError
from ..values import NumberValue, Value, type_name


@dataclass(frozen=True)
class Builtin:
    """A built-in function and its parameter tags (True = string)."""
    name: str
    parameters: Tuple[bool, ...]
    function: Callable


def _int(x: float) -> Value:
    if not math.isfinite(x):
        return NumberValue(x)
    return NumberValue(float(math.floor(x)))


def _sgn(x: float) -> Value:
    return NumberValue(float((x > 0) - (x < 0)))


def _sqr(x: float) -> Value:
    if x < 0:
        raise BasicRuntimeError(f"SQR of negative number: {x}")
    return NumberValue(math.sqrt(x))


def _code(s: str) -> Value:
    return NumberValue(float(ord(s[0])) if s else 0.0)


BUILTINS: Dict[str, Builtin] = {
    'INT': Builtin('INT', (False,), _int),
    'ABS': Builtin('ABS', (False,), lambda x: NumberValue(abs(x))),
    'SGN': Builtin('SGN', (False,), _sgn),
    'SQR': Builtin('SQR', (False,), _sqr),
    'LEN': Builtin('LEN', (True,), lambda s: NumberValue(float(len(s)))),
    'CODE': Builtin('CODE', (True,), _code),
}


def call_builtin(name: str, args: List[Value]) -> Value:
    """Check arity and argument tags, then apply the built-in."""
    builtin = BUILTINS[name]
    if len(args) != len(builtin.parameters):
        raise BasicRuntimeError(
            f"{name} expects {len(builtin.parameters)} argument(s), got {len(args)}"
        )
    for arg, wants_string in zip(args, builtin.parameters):
        if arg.is_string != wants_string:
            expected = "string" if wants_string else "number"
            raise BasicRuntimeError(
                f"type mismatch: {name} expects a {expected}, got {type_name(arg)}"
            )
    return builtin.function(*(arg.value for arg in args))
