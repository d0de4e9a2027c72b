"""
Console input/output used by PRINT, INPUT and CLS.

Wraps a pair of text streams so the interpreter never touches sys.stdin or
sys.stdout directly; tests pass StringIO objects.
"""

import sys
from typing import Optional, TextIO


CLEAR_SCREEN = "\x1b[2J\x1b[H"


class Console:
    """Line-oriented console over text streams."""

    def __init__(self, stdin: Optional[TextIO] = None, stdout: Optional[TextIO] = None):
        self.stdin = stdin if stdin is not None else sys.stdin
        self.stdout = stdout if stdout is not None else sys.stdout

    def write(self, text: str):
        """Write text without a line terminator."""
        self.stdout.write(text)

    def write_line(self, text: str = ""):
        """Write text followed by a line terminator."""
        self.stdout.write(text + "\n")

    def clear(self):
        self.stdout.write(CLEAR_SCREEN)

    def read_line(self) -> Optional[str]:
        """Read one line of input without its terminator, or None at end of stream."""
        self.stdout.flush()
        line = self.stdin.readline()
        if line == "":
            return None
        return line.rstrip("\r\n")
