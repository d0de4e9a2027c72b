"""
Test fixtures and helpers for TinyBasic tests.

The key abstractions are:

- run_source(): parses and runs a program against in-memory console streams
- ExecutionResult: output, success flag and error of one run
- AssertProgram(): fluent assertions over a program's behaviour
"""

import pytest
import sys
from dataclasses import dataclass
from io import StringIO
from pathlib import Path
from typing import List, Optional, Sequence, Type

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from tinybasic.errors import BasicError, BasicRuntimeError, BasicSyntaxError
from tinybasic.interpreter import Console, ExecutionState, Interpreter
from tinybasic.parser import parse


DEFAULT_MAX_STEPS = 10000


@dataclass
class ExecutionResult:
    """Result of running a BASIC program."""
    output: str = ""
    success: bool = True
    error: Optional[BasicRuntimeError] = None
    state: Optional[ExecutionState] = None
    stopped: bool = False
    steps: int = 0


def source_of(*lines: str) -> str:
    """Join program lines into source text."""
    return "\n".join(lines) + "\n"


def make_console(inputs: Sequence[str] = ()) -> Console:
    stdin = StringIO("".join(line + "\n" for line in inputs))
    return Console(stdin, StringIO())


def run_source(source: str, inputs: Sequence[str] = (),
               max_steps: Optional[int] = DEFAULT_MAX_STEPS) -> ExecutionResult:
    """Parse and run source text. Syntax errors propagate; runtime errors are captured."""
    program = parse(source)
    console = make_console(inputs)
    interpreter = Interpreter(console, max_steps=max_steps)
    try:
        result = interpreter.run(program)
    except BasicRuntimeError as e:
        return ExecutionResult(
            output=console.stdout.getvalue(),
            success=False,
            error=e,
            state=interpreter.execution_state,
        )
    return ExecutionResult(
        output=console.stdout.getvalue(),
        state=result.state,
        stopped=result.stopped,
        steps=result.steps,
    )


class ProgramAssertion:
    """
    Fluent assertion helper for testing BASIC programs.

    Usage:
        AssertProgram('10 PRINT "HI"', '20 STOP').outputs("HI\\n")
        AssertProgram('10 INPUT X', '20 PRINT X').with_input("5").outputs("5\\n")
        AssertProgram('10 PRINT X').fails_at_line(10, "no such identifier")
        AssertProgram('10 LET = 5').does_not_parse()
    """

    def __init__(self, source: str):
        self.source = source
        self.inputs: List[str] = []
        self.max_steps: Optional[int] = DEFAULT_MAX_STEPS

    def with_input(self, *lines: str) -> 'ProgramAssertion':
        self.inputs.extend(lines)
        return self

    def with_max_steps(self, max_steps: Optional[int]) -> 'ProgramAssertion':
        self.max_steps = max_steps
        return self

    def run(self) -> ExecutionResult:
        return run_source(self.source, self.inputs, self.max_steps)

    def runs(self) -> ExecutionResult:
        """Assert that the program halts normally."""
        result = self.run()
        assert result.success, f"Expected program to run, but got error: {result.error}"
        assert result.state == ExecutionState.HALTED_NORMAL
        return result

    def outputs(self, expected: str) -> ExecutionResult:
        """Assert that the program halts normally with exactly this output."""
        result = self.runs()
        assert result.output == expected, \
            f"Expected output {expected!r}, got {result.output!r}"
        return result

    def fails_at_line(self, line_number: int, fragment: Optional[str] = None) -> ExecutionResult:
        """Assert that the program halts with a runtime error on a given line."""
        result = self.run()
        assert not result.success, f"Expected a runtime error, but the program ran: {result.output!r}"
        assert result.state == ExecutionState.HALTED_ERROR
        assert result.error.line_number == line_number, \
            f"Expected error at line {line_number}, got {result.error}"
        if fragment is not None:
            assert fragment in str(result.error), \
                f"Expected {fragment!r} in error, got {result.error}"
        return result

    def does_not_parse(self, error_type: Type[BasicError] = BasicSyntaxError,
                       fragment: Optional[str] = None) -> BasicError:
        """Assert that lexing or parsing the program fails."""
        with pytest.raises(error_type) as excinfo:
            parse(self.source)
        if fragment is not None:
            assert fragment in str(excinfo.value), \
                f"Expected {fragment!r} in error, got {excinfo.value}"
        return excinfo.value


def AssertProgram(*lines: str) -> ProgramAssertion:
    """Create a program assertion from numbered source lines."""
    return ProgramAssertion(source_of(*lines))


# Pytest fixtures
@pytest.fixture
def console():
    """Console with empty input and captured output."""
    return make_console()


@pytest.fixture
def interpreter(console):
    """Interpreter writing to the captured console."""
    return Interpreter(console, max_steps=DEFAULT_MAX_STEPS)
