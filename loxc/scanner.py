"""
Lexical Analyzer (Scanner)

Turns source text into a lazy stream of tokens for the parser.

The scanner is an iterator: each ``next()`` scans exactly one token, raising
``ScanError`` for bad input and ``StopIteration`` once only whitespace and
comments remain. ``peek()`` scans ahead without moving the cursor.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Dict, Iterator, List, NamedTuple, Optional, Tuple, Union

from loxc.errors import ScanError


class TokenType(Enum):
    """Token types"""
    # Single-character tokens
    LEFT_PAREN = auto()          # (
    RIGHT_PAREN = auto()         # )
    LEFT_BRACE = auto()          # {
    RIGHT_BRACE = auto()         # }
    COMMA = auto()               # ,
    DOT = auto()                 # .
    MINUS = auto()               # -
    PLUS = auto()                # +
    SEMICOLON = auto()           # ;
    SLASH = auto()               # /
    STAR = auto()                # *

    # One or two character tokens
    BANG = auto()                # !
    BANG_EQUAL = auto()          # !=
    EQUAL = auto()               # =
    EQUAL_EQUAL = auto()         # ==
    GREATER = auto()             # >
    GREATER_EQUAL = auto()       # >=
    LESS = auto()                # <
    LESS_EQUAL = auto()          # <=

    # Literals
    IDENTIFIER = auto()
    STRING = auto()
    NUMBER = auto()

    # Keywords
    AND = auto()
    CLASS = auto()
    ELSE = auto()
    FALSE = auto()
    FOR = auto()
    FUN = auto()
    IF = auto()
    NIL = auto()
    OR = auto()
    PRINT = auto()
    RETURN = auto()
    SUPER = auto()
    THIS = auto()
    TRUE = auto()
    VAR = auto()
    WHILE = auto()


@dataclass(frozen=True)
class Token:
    """Represents a lexical token"""
    type: TokenType
    lexeme: str
    line: int

    def __repr__(self) -> str:
        return f"Token({self.type.name}, {self.lexeme!r}, line {self.line})"


class _Cursor(NamedTuple):
    start: int
    current: int
    line: int


def _is_digit(c: str) -> bool:
    return "0" <= c <= "9"


class Scanner:
    """Single-pass scanner over an in-memory source string"""

    KEYWORDS: Dict[str, TokenType] = {
        "and": TokenType.AND,
        "class": TokenType.CLASS,
        "else": TokenType.ELSE,
        "false": TokenType.FALSE,
        "for": TokenType.FOR,
        "fun": TokenType.FUN,
        "if": TokenType.IF,
        "nil": TokenType.NIL,
        "or": TokenType.OR,
        "print": TokenType.PRINT,
        "return": TokenType.RETURN,
        "super": TokenType.SUPER,
        "this": TokenType.THIS,
        "true": TokenType.TRUE,
        "var": TokenType.VAR,
        "while": TokenType.WHILE,
    }

    SINGLE_CHAR: Dict[str, TokenType] = {
        "(": TokenType.LEFT_PAREN,
        ")": TokenType.RIGHT_PAREN,
        "{": TokenType.LEFT_BRACE,
        "}": TokenType.RIGHT_BRACE,
        ",": TokenType.COMMA,
        ".": TokenType.DOT,
        "-": TokenType.MINUS,
        "+": TokenType.PLUS,
        ";": TokenType.SEMICOLON,
        "*": TokenType.STAR,
    }

    # char -> (type without '=', type with trailing '=')
    ONE_OR_TWO_CHAR: Dict[str, Tuple[TokenType, TokenType]] = {
        "!": (TokenType.BANG, TokenType.BANG_EQUAL),
        "=": (TokenType.EQUAL, TokenType.EQUAL_EQUAL),
        "<": (TokenType.LESS, TokenType.LESS_EQUAL),
        ">": (TokenType.GREATER, TokenType.GREATER_EQUAL),
    }

    def __init__(self, source: str):
        self.source = source
        self._cursor = _Cursor(0, 0, 1)

    @property
    def line(self) -> int:
        """Current source line (1-based)"""
        return self._cursor.line

    def __iter__(self) -> Iterator[Token]:
        return self

    def __next__(self) -> Token:
        result, self._cursor = self._scan(self._cursor)
        if isinstance(result, ScanError):
            raise result
        if result is None:
            raise StopIteration
        return result

    def peek(self) -> Optional[Token]:
        """Return the next token without consuming it (None at end).

        A scan error is raised here as well, and the cursor is left where it
        was so the following ``next()`` raises the same error.
        """
        result, _ = self._scan(self._cursor)
        if isinstance(result, ScanError):
            raise result
        return result

    def at_end(self) -> bool:
        """True when only whitespace and comments remain"""
        pos, _ = self._skip_trivia(self._cursor.current, self._cursor.line)
        return pos >= len(self.source)

    # -----------------
    # Scanning
    # -----------------

    def _char(self, pos: int) -> Optional[str]:
        if pos >= len(self.source):
            return None
        return self.source[pos]

    def _skip_trivia(self, pos: int, line: int) -> Tuple[int, int]:
        """Skip whitespace and // comments, counting newlines"""
        while pos < len(self.source):
            c = self.source[pos]
            if c == "\n":
                line += 1
                pos += 1
            elif c.isspace():
                pos += 1
            elif c == "/" and self._char(pos + 1) == "/":
                # comment runs up to, not including, the newline
                while pos < len(self.source) and self.source[pos] != "\n":
                    pos += 1
            else:
                break
        return pos, line

    def _scan(self, cursor: _Cursor) -> Tuple[Union[Token, ScanError, None], _Cursor]:
        """Scan one token starting at ``cursor``.

        Returns the token (or the error, or None at end of input) together
        with the cursor to resume from. Errors are returned rather than
        raised so ``peek()`` can discard the resume cursor.
        """
        pos, line = self._skip_trivia(cursor.current, cursor.line)
        if pos >= len(self.source):
            return None, _Cursor(pos, pos, line)

        start = pos
        char = self.source[pos]
        pos += 1

        def make(token_type: TokenType, end: int) -> Tuple[Token, _Cursor]:
            return Token(token_type, self.source[start:end], line), _Cursor(start, end, line)

        if char in self.SINGLE_CHAR:
            return make(self.SINGLE_CHAR[char], pos)

        if char in self.ONE_OR_TWO_CHAR:
            single, double = self.ONE_OR_TWO_CHAR[char]
            if self._char(pos) == "=":
                return make(double, pos + 1)
            return make(single, pos)

        if char == "/":
            return make(TokenType.SLASH, pos)

        if char == '"':
            return self._string(start, pos, line)

        if _is_digit(char):
            return make(TokenType.NUMBER, self._number_end(pos))

        if char.isalpha():
            while pos < len(self.source) and self.source[pos].isalnum():
                pos += 1
            text = self.source[start:pos]
            return make(self.KEYWORDS.get(text, TokenType.IDENTIFIER), pos)

        # The bad character is consumed so callers may keep pulling tokens.
        return ScanError(f"Unexpected character '{char}'.", line), _Cursor(start, pos, line)

    def _string(self, start: int, pos: int, line: int) -> Tuple[Union[Token, ScanError], _Cursor]:
        start_line = line
        while pos < len(self.source) and self.source[pos] != '"':
            if self.source[pos] == "\n":
                line += 1
            pos += 1

        if pos >= len(self.source):
            return ScanError("Unterminated string.", start_line), _Cursor(start, pos, line)

        # the closing quote
        pos += 1
        return Token(TokenType.STRING, self.source[start:pos], line), _Cursor(start, pos, line)

    def _number_end(self, pos: int) -> int:
        while pos < len(self.source) and _is_digit(self.source[pos]):
            pos += 1
        # A '.' only belongs to the number when a digit follows it.
        nxt = self._char(pos + 1)
        if self._char(pos) == "." and nxt is not None and _is_digit(nxt):
            pos += 1
            while pos < len(self.source) and _is_digit(self.source[pos]):
                pos += 1
        return pos


def scan_tokens(source: str) -> Tuple[List[Token], List[ScanError]]:
    """Scan the whole source, collecting every token and every error"""
    scanner = Scanner(source)
    tokens: List[Token] = []
    errors: List[ScanError] = []
    while True:
        try:
            tokens.append(next(scanner))
        except StopIteration:
            break
        except ScanError as e:
            errors.append(e)
    return tokens, errors
