"""
Error types raised by the lexer, parser and interpreter.

None of the stages recover from an error: each one is terminal for the run
and propagates to the caller.
"""

from typing import Optional


class BasicError(Exception):
    """Base class for all TinyBasic errors."""
    pass


class BasicSyntaxError(BasicError, SyntaxError):
    """Error with a source position (file, line, column)."""

    def __init__(self, message: str, filename: str = "<input>", line: int = 0, column: int = 0):
        super().__init__(f"{filename}:{line}:{column}: {message}")
        self.message = message
        self.filename = filename
        self.line = line
        self.column = column

    def __str__(self):
        return f"{self.filename}:{self.line}:{self.column}: {self.message}"


class LexError(BasicSyntaxError):
    """Malformed character sequence in the program text."""
    pass


class ParseError(BasicSyntaxError):
    """Grammar violation in the token stream."""
    pass


class BasicRuntimeError(BasicError):
    """Fatal condition raised while executing a program."""

    def __init__(self, message: str, line_number: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.line_number = line_number

    def __str__(self):
        if self.line_number is None:
            return self.message
        return f"line {self.line_number}: {self.message}"
