"""
Main TinyBasic runner.

Coordinates lexing, parsing and interpretation, and provides the
command-line interface.
"""

import sys
from typing import List, Optional

from .errors import BasicRuntimeError, BasicSyntaxError
from .interpreter import Console, Interpreter, RunResult
from .lexer import Lexer, Token, tokenize
from .parser import Parser, Program, format_program


class BasicRunner:
    """Main TinyBasic runner class."""

    def __init__(self, verbose: bool = False, max_steps: Optional[int] = None,
                 console: Optional[Console] = None):
        self.verbose = verbose
        self.max_steps = max_steps
        self.console = console or Console()

    def log(self, message: str):
        """Print log message if verbose mode is enabled."""
        if self.verbose:
            print(f"[tinybasic] {message}", file=sys.stderr)

    def read_source(self, input_path: str) -> str:
        self.log(f"Reading {input_path}...")
        with open(input_path, 'r', encoding='utf-8') as f:
            return f.read()

    def tokenize_string(self, source: str, filename: str = "<input>") -> List[Token]:
        tokens = tokenize(source, filename)
        self.log(f"Lexed {len(tokens)} tokens")
        return tokens

    def parse_string(self, source: str, filename: str = "<input>") -> Program:
        """Parse BASIC source text into a program tree.

        Raises:
            LexError / ParseError on the first malformed token or grammar violation
        """
        program = Parser(Lexer(source, filename), filename).parse_program()
        self.log(f"Parsed {len(program)} lines")
        return program

    def run_program(self, program: Program) -> RunResult:
        """Run a parsed program on this runner's console."""
        interpreter = Interpreter(self.console, max_steps=self.max_steps)
        self.log("Running...")
        result = interpreter.run(program)
        how = "STOP" if result.stopped else "end of program"
        self.log(f"Halted at {how} after {result.steps} statements")
        return result

    def run_string(self, source: str, filename: str = "<input>") -> RunResult:
        """Parse and run BASIC source text. Errors propagate to the caller."""
        return self.run_program(self.parse_string(source, filename))

    def run_file(self, input_path: str) -> bool:
        """
        Run a BASIC program file.

        Args:
            input_path: Path to the program text

        Returns:
            True if the program halted normally, False otherwise
        """
        try:
            source = self.read_source(input_path)
            self.run_string(source, str(input_path))
            return True
        except BasicSyntaxError as e:
            print(f"Syntax error: {e}", file=sys.stderr)
            self._print_traceback()
        except BasicRuntimeError as e:
            print(f"Runtime error: {e}", file=sys.stderr)
            self._print_traceback()
        except OSError as e:
            print(f"Cannot read {input_path}: {e}", file=sys.stderr)
        return False

    def _print_traceback(self):
        if self.verbose:
            import traceback
            traceback.print_exc()

    def list_file(self, input_path: str) -> bool:
        """Print the normalized listing of a program file without running it."""
        try:
            program = self.parse_string(self.read_source(input_path), str(input_path))
        except BasicSyntaxError as e:
            print(f"Syntax error: {e}", file=sys.stderr)
            return False
        except OSError as e:
            print(f"Cannot read {input_path}: {e}", file=sys.stderr)
            return False
        self.console.write(format_program(program))
        return True

    def dump_tokens(self, input_path: str) -> bool:
        """Print the token stream of a program file."""
        try:
            tokens = self.tokenize_string(self.read_source(input_path), str(input_path))
        except BasicSyntaxError as e:
            print(f"Syntax error: {e}", file=sys.stderr)
            return False
        except OSError as e:
            print(f"Cannot read {input_path}: {e}", file=sys.stderr)
            return False
        for token in tokens:
            self.console.write_line(repr(token))
        return True


def main(argv: Optional[List[str]] = None):
    """Command-line interface for the interpreter."""
    import argparse

    parser = argparse.ArgumentParser(
        description='TinyBasic - Run a line-numbered BASIC program'
    )
    parser.add_argument('input', help='BASIC program file')
    parser.add_argument('--max-steps', type=int, default=None, metavar='N',
                        help='Abort after N executed statements (default: unlimited)')
    parser.add_argument('--list', action='store_true',
                        help='Print the normalized program listing instead of running it')
    parser.add_argument('--tokens', action='store_true',
                        help='Print the token stream instead of running the program')
    parser.add_argument('--verbose', action='store_true',
                        help='Verbose output')

    args = parser.parse_args(argv)

    runner = BasicRunner(verbose=args.verbose, max_steps=args.max_steps)

    if args.tokens:
        success = runner.dump_tokens(args.input)
    elif args.list:
        success = runner.list_file(args.input)
    else:
        success = runner.run_file(args.input)

    sys.exit(0 if success else 1)


if __name__ == '__main__':
    main()
