"""
BASIC Parser - Builds the program tree from tokens.

Recursive descent over a two-token window (current token plus one token of
lookahead) pulled lazily from the lexer. The first grammar violation aborts
the parse; no partial program is produced.
"""

from typing import List, Optional

from ..errors import ParseError
from ..lexer import Lexer, Token, TokenType
from ..values import NumberValue, StringValue, Value
from .ast_nodes import *


RELATIONAL_OPERATORS = (
    TokenType.EQ,
    TokenType.NOTEQ,
    TokenType.GT,
    TokenType.GTEQ,
    TokenType.LT,
    TokenType.LTEQ,
)

STATEMENT_END = (TokenType.COLON, TokenType.NEWLINE, TokenType.EOF)


class Parser:
    """Parses BASIC tokens into a Program."""

    def __init__(self, lexer: Lexer, filename: Optional[str] = None):
        self.lexer = lexer
        self.filename = filename or lexer.filename
        self._last_token: Optional[Token] = None
        self.current_token = self._pull()
        self.peek_token = self._pull()

    def _pull(self) -> Token:
        """Fetch the next token from the lexer, repeating EOF once exhausted."""
        if self.lexer.has_more():
            self._last_token = self.lexer.next_token()
            return self._last_token
        last = self._last_token
        return Token(TokenType.EOF, '', last.line if last else 1, last.column if last else 1)

    def error(self, message: str, token: Optional[Token] = None):
        """Raise a parser error with location information."""
        token = token or self.current_token
        raise ParseError(message, self.filename, token.line, token.column)

    def advance(self) -> Token:
        """Consume and return current token."""
        token = self.current_token
        self.current_token = self.peek_token
        self.peek_token = self._pull()
        return token

    def check(self, *token_types: TokenType) -> bool:
        """True if the current token is one of the given types."""
        return self.current_token.type in token_types

    def expect(self, token_type: TokenType, what: Optional[str] = None) -> Token:
        """Consume token of expected type or raise error."""
        if self.current_token.type != token_type:
            expected = what or token_type.name
            self.error(f"Expected {expected}, got {self._describe(self.current_token)}")
        return self.advance()

    @staticmethod
    def _describe(token: Token) -> str:
        if token.type in (TokenType.NEWLINE, TokenType.EOF):
            return token.type.name
        return f"{token.type.name} ({token.text!r})"

    # ------------------------------------------------------------------
    # Program structure
    # ------------------------------------------------------------------

    def parse_program(self) -> Program:
        """Parse the entire program."""
        lines: List[Line] = []
        seen = set()

        while not self.check(TokenType.EOF):
            # Blank lines between numbered lines
            if self.check(TokenType.NEWLINE):
                self.advance()
                continue

            number_token = self.current_token
            line = self.parse_line()
            if line.number in seen:
                self.error(f"Duplicate line number {line.number}", number_token)
            seen.add(line.number)
            lines.append(line)

        return Program(tuple(lines))

    def parse_line(self) -> Line:
        """line ::= NUMBER statement { ':' statement } (NEWLINE | EOF)"""
        number_token = self.expect(TokenType.NUMBER, "line number")
        if not number_token.text.isdigit():
            self.error(f"Line number must be an integer: {number_token.text}", number_token)

        statements = [self.parse_statement()]
        while self.check(TokenType.COLON):
            self.advance()
            statements.append(self.parse_statement())

        if not self.check(TokenType.NEWLINE, TokenType.EOF):
            self.error(f"Expected end of line, got {self._describe(self.current_token)}")
        if self.check(TokenType.NEWLINE):
            self.advance()

        return Line(int(number_token.text), tuple(statements))

    def at_statement_end(self) -> bool:
        return self.check(*STATEMENT_END)

    # ------------------------------------------------------------------
    # Statements
    # ------------------------------------------------------------------

    def parse_statement(self) -> Statement:
        """Parse a single statement, dispatching on its keyword."""
        token_type = self.current_token.type

        if token_type == TokenType.PRINT:
            return self.parse_print()
        elif token_type == TokenType.IF:
            return self.parse_if()
        elif token_type == TokenType.LET:
            return self.parse_let()
        elif token_type == TokenType.DIM:
            return self.parse_dim()
        elif token_type == TokenType.INPUT:
            return self.parse_input()
        elif token_type == TokenType.FOR:
            return self.parse_for()
        elif token_type == TokenType.NEXT:
            self.advance()
            return NextStatement(self.expect(TokenType.VAR, "loop variable"))
        elif token_type in (TokenType.GO, TokenType.GOTO, TokenType.GOSUB):
            return self.parse_go()
        elif token_type == TokenType.RETURN:
            self.advance()
            return ReturnStatement()
        elif token_type == TokenType.STOP:
            self.advance()
            return StopStatement()
        elif token_type == TokenType.REM:
            # The lexer has already discarded the remark text
            self.advance()
            return RemStatement()
        elif token_type == TokenType.CLS:
            self.advance()
            return ClsStatement()
        elif token_type == TokenType.DATA:
            return self.parse_data()
        elif token_type == TokenType.RESTORE:
            return self.parse_restore()
        elif token_type == TokenType.READ:
            self.advance()
            return ReadStatement(tuple(self.parse_target_list()))

        self.error(f"Unexpected {self._describe(self.current_token)} at start of statement")

    def parse_print(self) -> PrintStatement:
        """PRINT [ expression { (';' | ',') expression } [';' | ','] ]"""
        self.advance()  # PRINT
        items = []
        while not self.at_statement_end():
            expression = self.parse_expression()
            if self.check(TokenType.SEMICOLON, TokenType.COMMA):
                items.append(PrintItem(expression, self.advance().type))
            else:
                items.append(PrintItem(expression))
                break
        return PrintStatement(tuple(items))

    def parse_if(self) -> IfStatement:
        """IF comparison THEN statement"""
        self.advance()  # IF
        condition = self.parse_comparison()
        self.expect(TokenType.THEN)
        return IfStatement(condition, self.parse_statement())

    def parse_let(self) -> LetStatement:
        """LET target '=' expression"""
        self.advance()  # LET
        target = self.parse_target()
        self.expect(TokenType.EQ, "'='")
        return LetStatement(target, self.parse_expression())

    def parse_dim(self) -> DimStatement:
        """DIM var '(' expression { ',' expression } ')'"""
        self.advance()  # DIM
        if not self.check(TokenType.VAR, TokenType.SVAR):
            self.error(f"Expected array name, got {self._describe(self.current_token)}")
        token = self.advance()
        self.expect(TokenType.LPAREN, "'('")
        sizes = self.parse_expression_list()
        self.expect(TokenType.RPAREN, "')'")
        return DimStatement(token, tuple(sizes))

    def parse_input(self) -> InputStatement:
        """INPUT { prompt (';' | ',') } target { ',' ... }"""
        self.advance()  # INPUT
        items = []
        while True:
            if self.check(TokenType.STRING):
                text = self.advance().text
                if not self.check(TokenType.SEMICOLON, TokenType.COMMA):
                    self.error(f"Expected ';' or ',' after INPUT prompt, got {self._describe(self.current_token)}")
                items.append(InputPrompt(text, self.advance().type))
                continue
            items.append(self.parse_target())
            if self.check(TokenType.COMMA):
                self.advance()
                continue
            break
        return InputStatement(tuple(items))

    def parse_for(self) -> ForStatement:
        """FOR var '=' expression TO expression [STEP expression]"""
        self.advance()  # FOR
        variable = self.expect(TokenType.VAR, "numeric loop variable")
        self.expect(TokenType.EQ, "'='")
        start = self.parse_expression()
        self.expect(TokenType.TO)
        limit = self.parse_expression()
        step = None
        if self.check(TokenType.STEP):
            self.advance()
            step = self.parse_expression()
        return ForStatement(variable, start, limit, step)

    def parse_go(self) -> GoStatement:
        """GO TO expression | GO SUB expression | GOTO ... | GOSUB ..."""
        keyword = self.advance()
        if keyword.type == TokenType.GOTO:
            subroutine = False
        elif keyword.type == TokenType.GOSUB:
            subroutine = True
        elif self.check(TokenType.TO):
            self.advance()
            subroutine = False
        elif self.check(TokenType.SUB):
            self.advance()
            subroutine = True
        else:
            self.error(f"Expected TO or SUB after GO, got {self._describe(self.current_token)}")
        return GoStatement(self.parse_expression(), subroutine)

    def parse_data(self) -> DataStatement:
        """DATA literal { ',' literal }"""
        self.advance()  # DATA
        values = [self.parse_data_literal()]
        while self.check(TokenType.COMMA):
            self.advance()
            values.append(self.parse_data_literal())
        return DataStatement(tuple(values))

    def parse_data_literal(self) -> Value:
        """A DATA item: optionally signed NUMBER, or STRING."""
        sign = None
        if self.check(TokenType.PLUS, TokenType.MINUS):
            sign = self.advance()

        if self.check(TokenType.NUMBER):
            number = float(self.advance().text)
            if sign is not None and sign.type == TokenType.MINUS:
                number = -number
            return NumberValue(number)
        if self.check(TokenType.STRING) and sign is None:
            return StringValue(self.advance().text)

        self.error(f"Expected DATA literal, got {self._describe(self.current_token)}")

    def parse_restore(self) -> RestoreStatement:
        """RESTORE [NUMBER]"""
        self.advance()  # RESTORE
        if self.check(TokenType.NUMBER):
            token = self.advance()
            if not token.text.isdigit():
                self.error(f"RESTORE target must be a line number: {token.text}", token)
            return RestoreStatement(int(token.text))
        return RestoreStatement()

    def parse_target(self) -> Target:
        """var [ '(' expression { ',' expression } ')' ]"""
        if not self.check(TokenType.VAR, TokenType.SVAR):
            self.error(f"Expected variable, got {self._describe(self.current_token)}")
        token = self.advance()
        indices = None
        if self.check(TokenType.LPAREN):
            self.advance()
            indices = tuple(self.parse_expression_list())
            self.expect(TokenType.RPAREN, "')'")
        return Target(token, indices)

    def parse_target_list(self) -> List[Target]:
        targets = [self.parse_target()]
        while self.check(TokenType.COMMA):
            self.advance()
            targets.append(self.parse_target())
        return targets

    # ------------------------------------------------------------------
    # Expressions
    # ------------------------------------------------------------------

    def parse_comparison(self) -> Comparison:
        """comparison ::= expression relop expression"""
        left = self.parse_expression()
        if not self.check(*RELATIONAL_OPERATORS):
            self.error(f"Expected comparison operator, got {self._describe(self.current_token)}")
        op = self.advance()
        return Comparison(left, op, self.parse_expression())

    def parse_expression(self) -> Expression:
        """expression ::= term [ ('+' | '-') expression ]"""
        term = self.parse_term()
        if self.check(TokenType.PLUS, TokenType.MINUS):
            op = self.advance()
            return Expression(term, op, self.parse_expression())
        return Expression(term)

    def parse_term(self) -> Term:
        """term ::= unary { ('*' | '/') unary }"""
        first = self.parse_unary()
        rest = []
        while self.check(TokenType.ASTERISK, TokenType.SLASH):
            op = self.advance()
            rest.append((op, self.parse_unary()))
        return Term(first, tuple(rest))

    def parse_unary(self) -> Unary:
        """unary ::= ['+' | '-'] primary"""
        op = None
        if self.check(TokenType.PLUS, TokenType.MINUS):
            op = self.advance()
        return Unary(op, self.parse_primary())

    def parse_primary(self) -> Primary:
        """primary ::= NUMBER | STRING [qualifier] | var [qualifier] | '(' expression ')'"""
        token = self.current_token

        if token.type == TokenType.NUMBER:
            self.advance()
            return Primary(token)

        if token.type in (TokenType.STRING, TokenType.SVAR):
            self.advance()
            qualifier = None
            if self.check(TokenType.LPAREN):
                qualifier = self.parse_string_qualifier()
            return Primary(token, qualifier)

        if token.type == TokenType.VAR:
            self.advance()
            qualifier = None
            if self.check(TokenType.LPAREN):
                self.advance()
                qualifier = IndexList(tuple(self.parse_expression_list()))
                self.expect(TokenType.RPAREN, "')'")
            return Primary(token, qualifier)

        if token.type == TokenType.LPAREN:
            self.advance()
            group = self.parse_expression()
            self.expect(TokenType.RPAREN, "')'")
            return Primary(None, group=group)

        self.error(f"Expected number, string, variable or '(', got {self._describe(token)}")

    def parse_string_qualifier(self) -> Qualifier:
        """Disambiguate '(' [expr] TO [expr] ')' from '(' expr { ',' expr } ')'.

        The token after the first inner expression decides: TO means a
        slice, ',' or ')' means a subscript list.
        """
        self.advance()  # (

        if self.check(TokenType.TO):
            self.advance()
            return Slice(None, self._parse_slice_finish())

        first = self.parse_expression()
        if self.check(TokenType.TO):
            self.advance()
            return Slice(first, self._parse_slice_finish())

        expressions = [first]
        while self.check(TokenType.COMMA):
            self.advance()
            expressions.append(self.parse_expression())
        self.expect(TokenType.RPAREN, "')'")
        return IndexList(tuple(expressions))

    def _parse_slice_finish(self) -> Optional[Expression]:
        finish = None
        if not self.check(TokenType.RPAREN):
            finish = self.parse_expression()
        self.expect(TokenType.RPAREN, "')'")
        return finish

    def parse_expression_list(self) -> List[Expression]:
        expressions = [self.parse_expression()]
        while self.check(TokenType.COMMA):
            self.advance()
            expressions.append(self.parse_expression())
        return expressions


def parse(source: str, filename: str = "<input>") -> Program:
    """Convenience function to parse BASIC source code."""
    return Parser(Lexer(source, filename), filename).parse_program()
