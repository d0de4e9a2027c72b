"""
BASIC Lexer - Tokenizes BASIC program text into tokens.

Handles:
- Line numbers and numeric literals (123, 4.5)
- Quoted strings
- Numeric variables (X, TOTAL2) and string variables (A$)
- Upper-case keywords, including REM which swallows the rest of its line
- One- and two-character operators
- Newlines, which are significant (they end a program line)
"""

import string
from enum import Enum, auto
from dataclasses import dataclass, field
from typing import Optional, List

from ..errors import LexError


class TokenType(Enum):
    """BASIC token types."""
    # Literals and names
    NUMBER = auto()      # 10, 3.25
    STRING = auto()      # "text"
    VAR = auto()         # numeric variable (or built-in function name)
    SVAR = auto()        # A$ (string variable, single letter)

    # Keywords
    PRINT = auto()
    IF = auto()
    THEN = auto()
    LET = auto()
    DIM = auto()
    INPUT = auto()
    FOR = auto()
    TO = auto()
    STEP = auto()
    NEXT = auto()
    GO = auto()
    GOTO = auto()
    GOSUB = auto()
    SUB = auto()
    RETURN = auto()
    STOP = auto()
    REM = auto()
    DATA = auto()
    READ = auto()
    RESTORE = auto()
    CLS = auto()

    # Operators
    EQ = auto()          # =
    NOTEQ = auto()       # <>
    GT = auto()          # >
    GTEQ = auto()        # >=
    LT = auto()          # <
    LTEQ = auto()        # <=
    PLUS = auto()        # +
    MINUS = auto()       # -
    ASTERISK = auto()    # *
    SLASH = auto()       # /

    # Punctuation
    LPAREN = auto()      # (
    RPAREN = auto()      # )
    COMMA = auto()       # ,
    COLON = auto()       # :
    SEMICOLON = auto()   # ;

    # Line structure
    NEWLINE = auto()
    EOF = auto()


KEYWORDS = {
    'PRINT': TokenType.PRINT,
    'IF': TokenType.IF,
    'THEN': TokenType.THEN,
    'LET': TokenType.LET,
    'DIM': TokenType.DIM,
    'INPUT': TokenType.INPUT,
    'FOR': TokenType.FOR,
    'TO': TokenType.TO,
    'STEP': TokenType.STEP,
    'NEXT': TokenType.NEXT,
    'GO': TokenType.GO,
    'GOTO': TokenType.GOTO,
    'GOSUB': TokenType.GOSUB,
    'SUB': TokenType.SUB,
    'RETURN': TokenType.RETURN,
    'STOP': TokenType.STOP,
    'REM': TokenType.REM,
    'DATA': TokenType.DATA,
    'READ': TokenType.READ,
    'RESTORE': TokenType.RESTORE,
    'CLS': TokenType.CLS,
}

SINGLE_CHAR_TOKENS = {
    ':': TokenType.COLON,
    ',': TokenType.COMMA,
    '(': TokenType.LPAREN,
    ')': TokenType.RPAREN,
    ';': TokenType.SEMICOLON,
    '*': TokenType.ASTERISK,
    '/': TokenType.SLASH,
    '+': TokenType.PLUS,
    '-': TokenType.MINUS,
    '=': TokenType.EQ,
}

DIGITS = string.digits
LETTERS = string.ascii_letters


@dataclass(frozen=True)
class Token:
    """Represents a single token."""
    type: TokenType
    text: str
    # Position is not part of token identity, so re-parsed trees compare equal
    line: int = field(compare=False)
    column: int = field(compare=False)

    def __repr__(self):
        return f"Token({self.type.name}, {self.text!r}, {self.line}:{self.column})"


class Lexer:
    """Tokenizes BASIC source code on demand.

    Tokens are produced one at a time by next_token(); the sequence is
    forward-only. Once the end of input is reached a single EOF token is
    produced and has_more() turns false.
    """

    def __init__(self, source: str, filename: str = "<input>"):
        self.source = source
        self.filename = filename
        self.pos = 0
        self.line = 1
        self.column = 1
        self.finished = False

    def error(self, message: str, line: Optional[int] = None, column: Optional[int] = None):
        """Raise a lexer error with location information."""
        raise LexError(
            message,
            self.filename,
            self.line if line is None else line,
            self.column if column is None else column,
        )

    def peek(self, offset: int = 0) -> Optional[str]:
        """Peek at character at current position + offset."""
        pos = self.pos + offset
        if pos < len(self.source):
            return self.source[pos]
        return None

    def advance(self) -> Optional[str]:
        """Consume and return current character."""
        if self.pos >= len(self.source):
            return None

        ch = self.source[self.pos]
        self.pos += 1

        if ch == '\n':
            self.line += 1
            self.column = 1
        else:
            self.column += 1

        return ch

    def skip_whitespace(self):
        """Skip spaces and tabs. Newlines are tokens, not whitespace."""
        while self.peek() is not None and self.peek() in ' \t\r':
            self.advance()

    def has_more(self) -> bool:
        """True until the EOF token has been produced."""
        return not self.finished

    def next_token(self) -> Token:
        """Produce the next token."""
        self.skip_whitespace()

        line = self.line
        col = self.column
        ch = self.peek()

        if ch is None:
            self.finished = True
            return Token(TokenType.EOF, '', line, col)

        if ch == '\n':
            self.advance()
            return Token(TokenType.NEWLINE, '\n', line, col)

        if ch in SINGLE_CHAR_TOKENS:
            self.advance()
            return Token(SINGLE_CHAR_TOKENS[ch], ch, line, col)

        if ch == '>':
            self.advance()
            if self.peek() == '=':
                self.advance()
                return Token(TokenType.GTEQ, '>=', line, col)
            return Token(TokenType.GT, '>', line, col)

        if ch == '<':
            self.advance()
            if self.peek() == '>':
                self.advance()
                return Token(TokenType.NOTEQ, '<>', line, col)
            if self.peek() == '=':
                self.advance()
                return Token(TokenType.LTEQ, '<=', line, col)
            return Token(TokenType.LT, '<', line, col)

        if ch in DIGITS:
            return Token(TokenType.NUMBER, self.read_number(), line, col)

        if ch in LETTERS:
            return self.read_word(line, col)

        if ch == '"':
            return Token(TokenType.STRING, self.read_string(), line, col)

        self.error(f"Unexpected character {ch!r}")

    def read_number(self) -> str:
        """Read a numeric literal: digits, optionally '.' and more digits."""
        chars = []
        while self.peek() is not None and self.peek() in DIGITS:
            chars.append(self.advance())

        # Only a '.' followed by a digit belongs to the number
        nxt = self.peek(1)
        if self.peek() == '.' and nxt is not None and nxt in DIGITS:
            chars.append(self.advance())
            while self.peek() is not None and self.peek() in DIGITS:
                chars.append(self.advance())

        return ''.join(chars)

    def read_word(self, line: int, col: int) -> Token:
        """Read a keyword, numeric variable or string variable."""
        chars = []
        while self.peek() is not None and (self.peek() in LETTERS or self.peek() in DIGITS):
            chars.append(self.advance())
        word = ''.join(chars)

        keyword = KEYWORDS.get(word)
        if keyword is not None:
            if keyword == TokenType.REM:
                # Remark runs to end of line; the newline itself stays a token
                while self.peek() is not None and self.peek() != '\n':
                    self.advance()
            return Token(keyword, word, line, col)

        if self.peek() == '$':
            if len(word) != 1:
                self.error(f"String variable name must be a single letter: {word}$", line, col)
            self.advance()  # $
            return Token(TokenType.SVAR, word, line, col)

        return Token(TokenType.VAR, word, line, col)

    def read_string(self) -> str:
        """Read a string literal (no escape sequences)."""
        start_line = self.line
        start_col = self.column

        self.advance()  # opening "
        chars = []
        while self.peek() is not None and self.peek() != '"':
            chars.append(self.advance())

        if self.peek() != '"':
            self.error(f"Unterminated string starting at {start_line}:{start_col}")

        self.advance()  # closing "
        return ''.join(chars)

    def tokenize(self) -> List[Token]:
        """Tokenize the remaining source code, EOF token included."""
        tokens = []
        while self.has_more():
            tokens.append(self.next_token())
        return tokens


def tokenize(source: str, filename: str = "<input>") -> List[Token]:
    """Convenience function to tokenize BASIC source code."""
    lexer = Lexer(source, filename)
    return lexer.tokenize()
