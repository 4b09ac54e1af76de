"""
Abstract Syntax Tree (AST) Node Definitions

Expression tree shared by the parser, the code generator and the printer.
Each node owns its children; trees are never shared or cyclic.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import List, Union


class LiteralKind(Enum):
    NUMBER = auto()
    STRING = auto()
    TRUE = auto()
    FALSE = auto()
    NIL = auto()


class UnaryOperator(Enum):
    BANG = "!"
    MINUS = "-"


class BinaryOperator(Enum):
    EQUAL_EQUAL = "=="
    BANG_EQUAL = "!="
    LESS = "<"
    LESS_EQUAL = "<="
    GREATER = ">"
    GREATER_EQUAL = ">="
    PLUS = "+"
    MINUS = "-"
    STAR = "*"
    SLASH = "/"


# ============== Expression Nodes ==============
#
# ``line`` is the source line of the node's token (the operator for unary and
# binary nodes). It is not part of equality, so trees compare structurally.

@dataclass
class Literal:
    """Literal value; ``value`` is the raw source text (quotes stripped)"""
    kind: LiteralKind
    value: str = ""
    line: int = field(default=0, compare=False)

    def __str__(self) -> str:
        if self.kind in (LiteralKind.NUMBER, LiteralKind.STRING):
            return self.value
        return self.kind.name.lower()

@dataclass
class Unary:
    """Prefix unary operation"""
    operator: UnaryOperator
    operand: Expression
    line: int = field(default=0, compare=False)

    def __str__(self) -> str:
        return print_ast(self)


@dataclass
class Binary:
    """Binary operation"""
    left: Expression
    operator: BinaryOperator
    right: Expression
    line: int = field(default=0, compare=False)

    def __str__(self) -> str:
        return print_ast(self)


@dataclass
class Grouping:
    """Parenthesized expression"""
    expression: Expression
    line: int = field(default=0, compare=False)

    def __str__(self) -> str:
        return print_ast(self)


Expression = Union[Literal, Unary, Binary, Grouping]


# ============== Utility Functions ==============

def print_ast(node: Expression) -> str:
    """Fully parenthesized prefix form, e.g. ``(* (- 123) (group 45.67))``

    Walks the tree with an explicit stack, so long operator chains and deep
    nesting print without hitting the interpreter's recursion limit.
    """
    out: List[str] = []
    # Items are nodes still to print or literal text to copy out.
    work: List[Union[Expression, str]] = [node]
    while work:
        item = work.pop()
        if isinstance(item, str):
            out.append(item)
        elif isinstance(item, Literal):
            out.append(str(item))
        elif isinstance(item, Unary):
            out.append(f"({item.operator.value} ")
            work.extend([")", item.operand])
        elif isinstance(item, Binary):
            out.append(f"({item.operator.value} ")
            work.extend([")", item.right, " ", item.left])
        elif isinstance(item, Grouping):
            out.append("(group ")
            work.extend([")", item.expression])
        else:
            out.append(item.__class__.__name__)
    return "".join(out)
