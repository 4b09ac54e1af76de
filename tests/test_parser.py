import pytest

from loxc.ast_nodes import (
    Binary,
    BinaryOperator,
    Grouping,
    Literal,
    LiteralKind,
    Unary,
    UnaryOperator,
    print_ast,
)
from loxc.errors import ParseError, ScanError
from loxc.parser import Parser, parse_expression
from loxc.scanner import Scanner


def _p(source: str) -> str:
    return print_ast(parse_expression(source))


@pytest.mark.parametrize(
    "source, expected",
    [
        ("123", "123"),
        ("-123 * (45.67)", "(* (- 123) (group 45.67))"),
        ("1 + 2 * 3", "(+ 1 (* 2 3))"),
        ("(1 + 2) * 3", "(* (group (+ 1 2)) 3)"),
        ("8 - 4 - 2", "(- (- 8 4) 2)"),
        ("8 / 4 / 2", "(/ (/ 8 4) 2)"),
        ("!!true", "(! (! true))"),
        ("--1", "(- (- 1))"),
        ("1 < 2 == 3 >= 4", "(== (< 1 2) (>= 3 4))"),
        ("1 != 2 != 3", "(!= (!= 1 2) 3)"),
        ("-1 + -2", "(+ (- 1) (- 2))"),
        ("nil == false", "(== nil false)"),
        ('"hi" + "there"', "(+ hi there)"),
        ("((1))", "(group (group 1))"),
    ],
)
def test_prefix_form(source, expected):
    assert _p(source) == expected


def test_tree_shape():
    expr = parse_expression("-1 + 2")
    assert expr == Binary(
        left=Unary(operator=UnaryOperator.MINUS, operand=Literal(LiteralKind.NUMBER, "1")),
        operator=BinaryOperator.PLUS,
        right=Literal(LiteralKind.NUMBER, "2"),
    )


def test_string_quotes_are_stripped():
    expr = parse_expression('"abc"')
    assert expr == Literal(LiteralKind.STRING, "abc")


def test_keyword_literals():
    assert parse_expression("true").kind == LiteralKind.TRUE
    assert parse_expression("false").kind == LiteralKind.FALSE
    assert parse_expression("nil").kind == LiteralKind.NIL


def test_nodes_record_lines():
    expr = parse_expression("1\n+\n2")
    assert isinstance(expr, Binary)
    assert expr.line == 2
    assert expr.right.line == 3


def test_parse_is_deterministic():
    assert _p("1 + 2 * (3 - 4)") == _p("1 + 2 * (3 - 4)")


def test_parser_accepts_scanner():
    expr = Parser(Scanner("(1)")).parse()
    assert isinstance(expr, Grouping)


def test_expression_leaves_rest_of_input():
    scanner = Scanner("1 2")
    expr = Parser(scanner).expression()
    assert expr == Literal(LiteralKind.NUMBER, "1")
    assert next(scanner).lexeme == "2"


class TestParseErrors:
    def test_missing_closing_paren_at_end(self):
        with pytest.raises(ParseError) as exc:
            parse_expression("(1 + 2")
        assert exc.value.message == "Expect ')' after expression."
        assert exc.value.location == " at end"
        assert str(exc.value) == "[line 1] Error  at end: Expect ')' after expression."

    def test_missing_closing_paren_names_token(self):
        with pytest.raises(ParseError) as exc:
            parse_expression("(1 + 2 ;")
        assert exc.value.message == "Expect ')' after expression."
        assert exc.value.location == ";"

    def test_empty_input(self):
        with pytest.raises(ParseError) as exc:
            parse_expression("")
        assert exc.value.message == "Expect expression."
        assert exc.value.location == " at end"

    def test_dangling_operator(self):
        with pytest.raises(ParseError) as exc:
            parse_expression("1 +")
        assert exc.value.message == "Expect expression."

    @pytest.mark.parametrize("source", ["+ 1", "foo", ")", "var", "{"])
    def test_token_cannot_start_expression(self, source):
        with pytest.raises(ParseError) as exc:
            parse_expression(source)
        assert exc.value.message == "Expect expression."
        assert exc.value.location == source.split()[0]

    def test_trailing_tokens(self):
        with pytest.raises(ParseError) as exc:
            parse_expression("1 2")
        assert exc.value.message == "Expect end of expression."
        assert exc.value.location == "2"

    def test_error_line(self):
        with pytest.raises(ParseError) as exc:
            parse_expression("1 +\n\n)")
        assert exc.value.line == 3


class TestScanErrorsPropagate:
    def test_scan_error_in_operand(self):
        with pytest.raises(ScanError):
            parse_expression("1 + @")

    def test_scan_error_in_lookahead(self):
        # the error is hit while peeking for a binary operator
        with pytest.raises(ScanError) as exc:
            parse_expression("1 @")
        assert "'@'" in exc.value.message

    def test_unterminated_string_in_group(self):
        with pytest.raises(ScanError) as exc:
            parse_expression('("abc')
        assert exc.value.message == "Unterminated string."


class TestDeepInput:
    def test_long_chain_parses_and_prints(self):
        expr = parse_expression(" + ".join(["1"] * 2000))
        out = print_ast(expr)
        assert out.startswith("(+ " * 1999 + "1 1)")
        assert out.endswith(" 1)")
        assert out.count("(") == 1999

    def test_deep_nesting_is_a_parse_error(self):
        depth = 5000
        with pytest.raises(ParseError) as exc:
            parse_expression("(" * depth + "1" + ")" * depth)
        assert exc.value.message == "Expression nesting too deep."
        assert exc.value.location == "("
        assert str(exc.value).startswith("[line 1] Error (: ")

    def test_deep_unary_is_a_parse_error(self):
        with pytest.raises(ParseError) as exc:
            parse_expression("-" * 5000 + "1")
        assert exc.value.message == "Expression nesting too deep."

    def test_moderate_nesting_still_parses(self):
        expr = parse_expression("(" * 40 + "7" + ")" * 40)
        assert print_ast(expr) == "(group " * 40 + "7" + ")" * 40
