"""
Runtime values.

BASIC has exactly two value types: double-precision numbers and strings.
Values are immutable; operators dispatch on the tag and reject mismatched
operands (see the interpreter).
"""

import math
from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class NumberValue:
    """Numeric value (always a float)."""
    value: float

    @property
    def is_string(self) -> bool:
        return False

    def __repr__(self):
        return f"Number({self.value!r})"


@dataclass(frozen=True)
class StringValue:
    """String value."""
    value: str

    @property
    def is_string(self) -> bool:
        return True

    def __repr__(self):
        return f"String({self.value!r})"


Value = Union[NumberValue, StringValue]

ZERO = NumberValue(0.0)


def type_name(value: Value) -> str:
    """Name of a value's tag, for error messages."""
    return "string" if value.is_string else "number"


def format_number(number: float) -> str:
    """Display text for a number.

    Integral values print without the trailing ".0"; this is a presentation
    rule only, the stored value stays a float.
    """
    if math.isfinite(number) and number.is_integer():
        return str(int(number))
    return str(number)


def format_value(value: Value) -> str:
    """Display text for any value, as PRINT shows it."""
    if value.is_string:
        return value.value
    return format_number(value.value)
