"""loxc.parser

Recursive-descent parser for single expressions.

Precedence, lowest to highest, one method per tier:

- equality:   == !=
- comparison: > >= < <=
- term:       + -
- factor:     * /
- unary:      ! -   (prefix, right-associative)
- primary:    literals and parenthesized expressions

Binary tiers are left-associative. Tokens are pulled from the scanner on
demand with a single token of lookahead; the first error aborts the parse.
"""

from __future__ import annotations

from typing import Dict, Optional, Union

from loxc.errors import ParseError
from loxc.scanner import Scanner, Token, TokenType
from loxc.ast_nodes import (
    Binary,
    BinaryOperator,
    Expression,
    Grouping,
    Literal,
    LiteralKind,
    Unary,
    UnaryOperator,
)


EQUALITY_OPS: Dict[TokenType, BinaryOperator] = {
    TokenType.EQUAL_EQUAL: BinaryOperator.EQUAL_EQUAL,
    TokenType.BANG_EQUAL: BinaryOperator.BANG_EQUAL,
}

COMPARISON_OPS: Dict[TokenType, BinaryOperator] = {
    TokenType.GREATER: BinaryOperator.GREATER,
    TokenType.GREATER_EQUAL: BinaryOperator.GREATER_EQUAL,
    TokenType.LESS: BinaryOperator.LESS,
    TokenType.LESS_EQUAL: BinaryOperator.LESS_EQUAL,
}

TERM_OPS: Dict[TokenType, BinaryOperator] = {
    TokenType.PLUS: BinaryOperator.PLUS,
    TokenType.MINUS: BinaryOperator.MINUS,
}

FACTOR_OPS: Dict[TokenType, BinaryOperator] = {
    TokenType.STAR: BinaryOperator.STAR,
    TokenType.SLASH: BinaryOperator.SLASH,
}

UNARY_OPS: Dict[TokenType, UnaryOperator] = {
    TokenType.BANG: UnaryOperator.BANG,
    TokenType.MINUS: UnaryOperator.MINUS,
}

LITERAL_KINDS: Dict[TokenType, LiteralKind] = {
    TokenType.FALSE: LiteralKind.FALSE,
    TokenType.TRUE: LiteralKind.TRUE,
    TokenType.NIL: LiteralKind.NIL,
    TokenType.NUMBER: LiteralKind.NUMBER,
    TokenType.STRING: LiteralKind.STRING,
}


class Parser:
    """Parser for a single expression"""

    def __init__(self, source: Union[str, Scanner]):
        self.scanner = Scanner(source) if isinstance(source, str) else source

    def parse(self) -> Expression:
        """Parse one expression and require the input to end after it"""
        try:
            expr = self.expression()
        except RecursionError:
            # Each nesting level (parenthesis or prefix operator) costs
            # several frames of the precedence cascade.
            raise self._error("Expression nesting too deep.") from None
        if self.scanner.peek() is not None:
            raise self._error("Expect end of expression.")
        return expr

    def expression(self) -> Expression:
        return self._parse_equality()

    # -----------------
    # Helpers
    # -----------------

    def _error(self, msg: str) -> ParseError:
        """ParseError located at the lookahead token, or at end of input"""
        tok = self.scanner.peek()
        if tok is None:
            return ParseError(msg, self.scanner.line, " at end")
        return ParseError(msg, tok.line, tok.lexeme)

    def _match(self, ops: Dict[TokenType, object]) -> Optional[Token]:
        """Consume and return the lookahead when its type is in ``ops``"""
        tok = self.scanner.peek()
        if tok is None or tok.type not in ops:
            return None
        return next(self.scanner)

    def _expect(self, t: TokenType, msg: str) -> Token:
        tok = self.scanner.peek()
        if tok is None or tok.type != t:
            raise self._error(msg)
        return next(self.scanner)

    def _parse_binary(self, ops: Dict[TokenType, BinaryOperator], operand) -> Expression:
        expr = operand()
        while True:
            op = self._match(ops)
            if op is None:
                return expr
            rhs = operand()
            expr = Binary(left=expr, operator=ops[op.type], right=rhs, line=op.line)

    # -----------------
    # Precedence tiers
    # -----------------

    def _parse_equality(self) -> Expression:
        return self._parse_binary(EQUALITY_OPS, self._parse_comparison)

    def _parse_comparison(self) -> Expression:
        return self._parse_binary(COMPARISON_OPS, self._parse_term)

    def _parse_term(self) -> Expression:
        return self._parse_binary(TERM_OPS, self._parse_factor)

    def _parse_factor(self) -> Expression:
        return self._parse_binary(FACTOR_OPS, self._parse_unary)

    def _parse_unary(self) -> Expression:
        op = self._match(UNARY_OPS)
        if op is not None:
            operand = self._parse_unary()
            return Unary(operator=UNARY_OPS[op.type], operand=operand, line=op.line)
        return self._parse_primary()

    def _parse_primary(self) -> Expression:
        tok = self.scanner.peek()
        if tok is None:
            raise ParseError("Expect expression.", self.scanner.line, " at end")

        if tok.type in LITERAL_KINDS:
            next(self.scanner)
            value = tok.lexeme
            if tok.type == TokenType.STRING:
                value = value[1:-1]
            return Literal(kind=LITERAL_KINDS[tok.type], value=value, line=tok.line)

        if tok.type == TokenType.LEFT_PAREN:
            next(self.scanner)
            expr = self.expression()
            self._expect(TokenType.RIGHT_PAREN, "Expect ')' after expression.")
            return Grouping(expression=expr, line=tok.line)

        raise ParseError("Expect expression.", tok.line, tok.lexeme)


def parse_expression(source: str) -> Expression:
    """Parse ``source`` as exactly one expression"""
    return Parser(source).parse()
