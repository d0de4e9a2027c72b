"""Tests for the BASIC parser."""

import pytest

from tinybasic.errors import LexError, ParseError
from tinybasic.lexer import Lexer, TokenType
from tinybasic.parser import Parser, parse
from tinybasic.parser.ast_nodes import *
from tinybasic.values import NumberValue, StringValue

from .conftest import AssertProgram, source_of


def first_statement(line: str) -> Statement:
    return parse(line).lines[0].statements[0]


class TestProgramStructure:
    """Tests for lines, line numbers and statement separators."""

    def test_lines_in_declared_order(self):
        """Lines keep the order they were written in."""
        program = parse(source_of('20 PRINT "B"', '10 PRINT "A"', '30 STOP'))
        assert [line.number for line in program.lines] == [20, 10, 30]

    def test_colon_separated_statements(self):
        program = parse("10 LET A=1: LET B=2: PRINT A")
        statements = program.lines[0].statements
        assert [type(s) for s in statements] == [LetStatement, LetStatement, PrintStatement]

    def test_blank_lines_are_ignored(self):
        program = parse("\n10 STOP\n\n\n20 STOP\n")
        assert [line.number for line in program.lines] == [10, 20]

    def test_last_line_without_newline(self):
        program = parse("10 PRINT 1\n20 STOP")
        assert len(program) == 2

    def test_empty_program(self):
        assert len(parse("")) == 0

    def test_find_line_index_uses_first_line_at_or_after(self):
        program = parse(source_of("10 STOP", "20 STOP", "30 STOP"))
        assert program.find_line_index(10) == 0
        assert program.find_line_index(15) == 1
        assert program.find_line_index(30) == 2
        assert program.find_line_index(31) is None

    def test_tree_is_immutable(self):
        program = parse("10 STOP")
        with pytest.raises(AttributeError):
            program.lines[0].number = 20


class TestStatements:
    """Tests for each statement form."""

    def test_print_items_and_separators(self):
        statement = first_statement('10 PRINT "A";B,C')
        assert isinstance(statement, PrintStatement)
        assert [item.separator for item in statement.items] == [
            TokenType.SEMICOLON, TokenType.COMMA, None,
        ]

    def test_print_trailing_semicolon(self):
        statement = first_statement('10 PRINT "A";')
        assert len(statement.items) == 1
        assert statement.items[0].separator == TokenType.SEMICOLON

    def test_empty_print(self):
        assert first_statement("10 PRINT").items == ()

    def test_if_then_statement(self):
        statement = first_statement('10 IF X>1 THEN PRINT "Y"')
        assert isinstance(statement, IfStatement)
        assert statement.condition.op.type == TokenType.GT
        assert isinstance(statement.then, PrintStatement)

    def test_if_then_keeps_following_statements_on_line(self):
        statements = parse('10 IF X=1 THEN PRINT "A": PRINT "B"').lines[0].statements
        assert [type(s) for s in statements] == [IfStatement, PrintStatement]

    def test_let_scalar_and_element(self):
        scalar = first_statement("10 LET X=5")
        assert scalar.target.name == "X"
        assert scalar.target.indices is None

        element = first_statement('10 LET B$(2,3)="Q"')
        assert element.target.is_string
        assert len(element.target.indices) == 2

    def test_dim(self):
        statement = first_statement("10 DIM A(10,5)")
        assert isinstance(statement, DimStatement)
        assert statement.name == "A"
        assert not statement.is_string
        assert len(statement.sizes) == 2
        assert first_statement("10 DIM B$(3)").is_string

    def test_input_with_prompt(self):
        statement = first_statement('10 INPUT "NAME";N$,A')
        assert statement.items[0] == InputPrompt("NAME", TokenType.SEMICOLON)
        assert [item.name for item in statement.items[1:]] == ["N", "A"]
        assert statement.items[1].is_string

    def test_for_with_and_without_step(self):
        with_step = first_statement("10 FOR I=10 TO 1 STEP -1")
        assert with_step.variable.text == "I"
        assert with_step.step is not None

        without_step = first_statement("10 FOR I=1 TO 3")
        assert without_step.step is None

    def test_next(self):
        assert first_statement("10 NEXT I").variable.text == "I"

    @pytest.mark.parametrize("source,subroutine", [
        ("10 GO TO 100", False),
        ("10 GO SUB 100", True),
        ("10 GOTO 100", False),
        ("10 GOSUB 100", True),
    ])
    def test_go_forms(self, source, subroutine):
        statement = first_statement(source)
        assert isinstance(statement, GoStatement)
        assert statement.subroutine == subroutine

    def test_go_spellings_parse_identically(self):
        assert parse("10 GOSUB 100") == parse("10 GO SUB 100")

    def test_simple_keywords(self):
        statements = parse("10 RETURN: STOP: CLS: REM the end").lines[0].statements
        assert [type(s) for s in statements] == [
            ReturnStatement, StopStatement, ClsStatement, RemStatement,
        ]

    def test_data_literals_are_typed_values(self):
        statement = first_statement('10 DATA 1, -2.5, +3, "X"')
        assert statement.values == (
            NumberValue(1.0), NumberValue(-2.5), NumberValue(3.0), StringValue("X"),
        )

    def test_restore(self):
        assert first_statement("10 RESTORE").line_number is None
        assert first_statement("10 RESTORE 100").line_number == 100

    def test_read_targets(self):
        statement = first_statement("10 READ A, B$(2)")
        assert [t.name for t in statement.targets] == ["A", "B"]
        assert statement.targets[1].indices is not None


class TestExpressions:
    """Tests for expression structure."""

    def expression(self, text):
        return first_statement(f"10 LET X={text}").expression

    def test_additive_chain_is_right_associative(self):
        expression = self.expression("1-2-3")
        assert expression.op.type == TokenType.MINUS
        assert expression.rest.op.type == TokenType.MINUS
        assert expression.rest.rest.op is None

    def test_multiplicative_chain_is_flat(self):
        term = self.expression("2*3/4").term
        assert [op.type for op, _ in term.rest] == [TokenType.ASTERISK, TokenType.SLASH]

    def test_unary_sign(self):
        unary = self.expression("-Y").term.first
        assert unary.op.type == TokenType.MINUS
        assert unary.primary.token.text == "Y"

    def test_parenthesized_group(self):
        primary = self.expression("(1+2)*3").term.first.primary
        assert primary.token is None
        assert primary.group.op.type == TokenType.PLUS

    def test_function_call_is_index_list(self):
        primary = self.expression("INT(Y)").term.first.primary
        assert isinstance(primary.qualifier, IndexList)
        assert len(primary.qualifier.expressions) == 1

    def test_comparison_operators(self):
        for op, token_type in [("=", TokenType.EQ), ("<>", TokenType.NOTEQ),
                               (">", TokenType.GT), (">=", TokenType.GTEQ),
                               ("<", TokenType.LT), ("<=", TokenType.LTEQ)]:
            statement = first_statement(f"10 IF A{op}B THEN STOP")
            assert statement.condition.op.type == token_type


class TestSliceDisambiguation:
    """Tests for '(' after string variables and literals."""

    def qualifier(self, text):
        return first_statement(f"10 PRINT {text}").items[0].expression.term.first.primary.qualifier

    def test_full_slice(self):
        qualifier = self.qualifier("A$(2 TO 3)")
        assert isinstance(qualifier, Slice)
        assert qualifier.start is not None and qualifier.finish is not None

    def test_open_start(self):
        qualifier = self.qualifier("A$(TO 3)")
        assert isinstance(qualifier, Slice)
        assert qualifier.start is None

    def test_open_finish(self):
        qualifier = self.qualifier("A$(2 TO)")
        assert isinstance(qualifier, Slice)
        assert qualifier.finish is None

    def test_open_both(self):
        assert self.qualifier("A$(TO)") == Slice(None, None)

    def test_single_index(self):
        qualifier = self.qualifier("A$(2)")
        assert isinstance(qualifier, IndexList)
        assert len(qualifier.expressions) == 1

    def test_index_list(self):
        qualifier = self.qualifier("A$(1,2)")
        assert isinstance(qualifier, IndexList)
        assert len(qualifier.expressions) == 2

    def test_slice_of_string_literal(self):
        assert isinstance(self.qualifier('"HELLO"(2 TO 3)'), Slice)


class TestParseErrors:
    """Tests for grammar violations."""

    def test_missing_line_number(self):
        error = AssertProgram('PRINT "X"').does_not_parse(ParseError, "Expected line number")
        assert (error.line, error.column) == (1, 1)

    def test_missing_equals(self):
        AssertProgram("10 LET X 5").does_not_parse(ParseError, "Expected '='")

    def test_error_reports_position(self):
        error = AssertProgram("10 STOP", "20 LET X 5").does_not_parse(ParseError)
        assert str(error).startswith("<input>:2:10:")

    def test_duplicate_line_number(self):
        AssertProgram("10 STOP", "10 STOP").does_not_parse(ParseError, "Duplicate line number 10")

    def test_fractional_line_number(self):
        AssertProgram("10.5 STOP").does_not_parse(ParseError, "integer")

    def test_go_without_to_or_sub(self):
        AssertProgram("10 GO 100").does_not_parse(ParseError, "Expected TO or SUB")

    def test_for_needs_numeric_variable(self):
        AssertProgram("10 FOR A$=1 TO 2").does_not_parse(ParseError)

    def test_if_needs_comparison(self):
        AssertProgram("10 IF X THEN STOP").does_not_parse(ParseError, "comparison operator")

    def test_if_needs_then(self):
        AssertProgram("10 IF X=1 STOP").does_not_parse(ParseError, "Expected THEN")

    def test_data_rejects_expressions(self):
        AssertProgram("10 DATA 1+2").does_not_parse(ParseError)

    def test_data_rejects_variables(self):
        AssertProgram("10 DATA X").does_not_parse(ParseError, "DATA literal")

    def test_empty_statement(self):
        AssertProgram("10").does_not_parse(ParseError, "at start of statement")

    def test_trailing_garbage(self):
        AssertProgram("10 STOP STOP").does_not_parse(ParseError, "end of line")

    def test_unclosed_parenthesis(self):
        AssertProgram("10 PRINT (1+2").does_not_parse(ParseError, "Expected ')'")

    def test_lex_errors_propagate(self):
        AssertProgram('10 PRINT "oops').does_not_parse(LexError)

    def test_one_bad_line_aborts_whole_parse(self):
        AssertProgram('10 PRINT "OK"', "20 LET", '30 PRINT "OK"').does_not_parse(ParseError)


class TestTokenWindow:
    """Tests for the parser's lazy two-token window."""

    def test_parser_pulls_tokens_lazily(self):
        lexer = Lexer(source_of("10 STOP", "20 STOP", "30 STOP"))
        parser = Parser(lexer)
        assert parser.current_token.type == TokenType.NUMBER
        assert parser.peek_token.type == TokenType.STOP
        assert lexer.has_more()

        parser.parse_program()
        assert not lexer.has_more()
