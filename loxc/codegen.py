"""loxc.codegen

x86-64 code generator (Linux, NASM syntax).

Expressions are evaluated on the machine stack: every operand blob leaves
exactly one 64-bit value pushed, and every operator blob pops its operands
into scratch registers (right into ``rbx``, left into ``rax``), computes
into ``rax`` and pushes the result. The final value is popped and handed to
the ``exit`` syscall, so the process status is the value's low byte.

Stack effects of the blobs below:

- ``constant``                      +1
- ``negate``, ``logical_not``        0
- ``add``/``sub``/``mul``/``div``/``compare``   -1
- ``*_v`` immediate forms            0 (result left in ``rax``)

Assumptions (current stage):
- only integer values; ``true``/``false``/``nil`` lower to 1/0/0
- numeric literals must fit an unsigned 32-bit immediate
- ``/`` is unsigned (``xor rdx,rdx`` then ``div``) while ``neg`` and the
  comparisons (``setl``/``setg``/...) are signed, so a quotient is only
  meaningful for non-negative operands: ``-7 / 2`` divides 2**64 - 7
- a literal zero divisor is rejected at compile time
"""

from __future__ import annotations

from typing import Callable, Dict, List, Optional, Tuple, Union

from loxc import x86_64 as x86
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
from loxc.errors import CodegenError
from loxc.ir import ENTRY_POINT, Blob, Program, Section
from loxc.x86_64 import Condition, Immediate, Register, Syscall


RAX = Register.RAX
RBX = Register.RBX
RDX = Register.RDX
RDI = Register.RDI
AL = Register.AL


# -----------------
# Instruction idioms
# -----------------

def constant(value: int) -> Blob:
    """Materialize ``value`` into the accumulator and push it"""
    return Blob([
        x86.mov(RAX, Immediate(value)),
        x86.push(RAX),
    ])


def _binary(apply: x86.OpCode) -> Blob:
    return Blob([
        x86.pop(RBX),    # right operand
        x86.pop(RAX),    # left operand
        apply,
        x86.push(RAX),
    ])


def add() -> Blob:
    return _binary(x86.add(RAX, RBX))


def sub() -> Blob:
    """left - right"""
    return _binary(x86.sub(RAX, RBX))


def mul() -> Blob:
    return _binary(x86.imul(RAX, RBX))


def div() -> Blob:
    """left / right: dividend in rdx:rax, divisor in rbx"""
    return Blob([
        x86.pop(RBX),           # divisor (right operand, pushed last)
        x86.pop(RAX),           # dividend
        x86.xor(RDX, RDX),      # div reads rdx:rax
        x86.div(RBX),
        x86.push(RAX),
    ])


def compare(cond: Condition) -> Blob:
    """Push 1 when ``left <cond> right`` holds, else 0 (signed)"""
    return Blob([
        x86.pop(RBX),
        x86.pop(RAX),
        x86.cmp(RAX, RBX),
        x86.setcc(cond, AL),
        x86.movzx(RAX, AL),
        x86.push(RAX),
    ])


def negate() -> Blob:
    return Blob([
        x86.pop(RAX),
        x86.neg(RAX),
        x86.push(RAX),
    ])


def logical_not() -> Blob:
    return Blob([
        x86.pop(RAX),
        x86.cmp(RAX, Immediate(0)),
        x86.setcc(Condition.E, AL),
        x86.movzx(RAX, AL),
        x86.push(RAX),
    ])


def add_v(a: int, b: int) -> Blob:
    """rax = a + b"""
    return Blob([
        x86.mov(RAX, Immediate(a)),
        x86.mov(RBX, Immediate(b)),
        x86.add(RAX, RBX),
    ])


def sub_v(a: int, b: int) -> Blob:
    """rax = a - b"""
    return Blob([
        x86.mov(RAX, Immediate(a)),
        x86.mov(RBX, Immediate(b)),
        x86.sub(RAX, RBX),
    ])


def mul_v(a: int, b: int) -> Blob:
    """rax = a * b"""
    return Blob([
        x86.mov(RAX, Immediate(a)),
        x86.mov(RBX, Immediate(b)),
        x86.imul(RAX, RBX),
    ])


def div_v(a: int, b: int) -> Blob:
    """rax = a / b"""
    return Blob([
        x86.mov(RAX, Immediate(a)),     # dividend
        x86.mov(RBX, Immediate(b)),     # divisor
        x86.xor(RDX, RDX),
        x86.div(RBX),
    ])


def sys_exit(code: Union[Register, Immediate]) -> Blob:
    """Terminate the process with ``code`` as status"""
    if code == Immediate(0):
        set_code = x86.xor(RDI, RDI)
    else:
        set_code = x86.mov(RDI, code)
    return Blob([
        set_code,
        x86.mov(RAX, Syscall.EXIT.immediate()),
        x86.syscall(),
    ])


BINARY_BLOBS: Dict[BinaryOperator, Callable[[], Blob]] = {
    BinaryOperator.PLUS: add,
    BinaryOperator.MINUS: sub,
    BinaryOperator.STAR: mul,
    BinaryOperator.SLASH: div,
    BinaryOperator.EQUAL_EQUAL: lambda: compare(Condition.E),
    BinaryOperator.BANG_EQUAL: lambda: compare(Condition.NE),
    BinaryOperator.LESS: lambda: compare(Condition.L),
    BinaryOperator.LESS_EQUAL: lambda: compare(Condition.LE),
    BinaryOperator.GREATER: lambda: compare(Condition.G),
    BinaryOperator.GREATER_EQUAL: lambda: compare(Condition.GE),
}

# Forms with both operands known at compile time.
IMMEDIATE_BLOBS: Dict[BinaryOperator, Callable[[int, int], Blob]] = {
    BinaryOperator.PLUS: add_v,
    BinaryOperator.MINUS: sub_v,
    BinaryOperator.STAR: mul_v,
    BinaryOperator.SLASH: div_v,
}

UNARY_BLOBS: Dict[UnaryOperator, Callable[[], Blob]] = {
    UnaryOperator.MINUS: negate,
    UnaryOperator.BANG: logical_not,
}


def _unwrap(expr: Expression) -> Expression:
    while isinstance(expr, Grouping):
        expr = expr.expression
    return expr


class CodeGenerator:
    """Lowers an expression tree to an x86-64 ``Program``"""

    def __init__(self, optimize: bool = True):
        self.optimize = optimize
        self._blobs: List[Blob] = []

    def generate(self, expr: Expression) -> Program:
        self._blobs = []

        value = self._int_value(expr) if self.optimize else None
        if value is not None:
            # Known exit code: skip the stack entirely.
            self._blobs.append(sys_exit(Immediate(value)))
        else:
            self._emit_expr(expr)
            self._blobs.append(Blob([x86.pop(RAX)]))
            self._blobs.append(sys_exit(RAX))

        return Program(data=None, text=[Section(ENTRY_POINT, self._blobs)])

    def generate_assembly(self, expr: Expression) -> str:
        return self.generate(expr).render()

    # -----------------
    # Lowering
    # -----------------

    def _emit_expr(self, root: Expression) -> None:
        """Post-order walk over an explicit work stack.

        An operator node is pushed twice: first to schedule its operands,
        then (``expanded``) to emit its own blob once they are on the
        machine stack.
        """
        work: List[Tuple[Expression, bool]] = [(root, False)]
        while work:
            expr, expanded = work.pop()
            if isinstance(expr, Literal):
                self._blobs.append(constant(self._literal_value(expr)))
            elif isinstance(expr, Grouping):
                work.append((expr.expression, False))
            elif isinstance(expr, Unary):
                if expanded:
                    self._blobs.append(UNARY_BLOBS[expr.operator]())
                else:
                    work.append((expr, True))
                    work.append((expr.operand, False))
            elif isinstance(expr, Binary):
                if expanded:
                    self._blobs.append(BINARY_BLOBS[expr.operator]())
                    continue
                self._check_divisor(expr)
                if self._emit_immediate(expr):
                    continue
                work.append((expr, True))
                work.append((expr.right, False))
                work.append((expr.left, False))
            else:
                raise CodegenError(f"Unsupported expression node {type(expr).__name__}.", 0)

    def _emit_immediate(self, expr: Binary) -> bool:
        """Emit the ``*_v`` form when both operands are literals"""
        if not self.optimize or expr.operator not in IMMEDIATE_BLOBS:
            return False
        a = self._int_value(expr.left)
        b = self._int_value(expr.right)
        if a is None or b is None:
            return False
        self._blobs.append(IMMEDIATE_BLOBS[expr.operator](a, b))
        self._blobs.append(Blob([x86.push(RAX)]))
        return True

    def _check_divisor(self, expr: Binary) -> None:
        if expr.operator is not BinaryOperator.SLASH:
            return
        divisor = _unwrap(expr.right)
        if isinstance(divisor, Literal) and self._literal_value(divisor) == 0:
            raise CodegenError("Division by zero.", expr.line, divisor.value)

    def _int_value(self, expr: Expression) -> Optional[int]:
        """Value of a (possibly grouped) literal, else None"""
        expr = _unwrap(expr)
        if isinstance(expr, Literal):
            return self._literal_value(expr)
        return None

    def _literal_value(self, lit: Literal) -> int:
        if lit.kind == LiteralKind.TRUE:
            return 1
        if lit.kind in (LiteralKind.FALSE, LiteralKind.NIL):
            return 0
        if lit.kind == LiteralKind.STRING:
            raise CodegenError("String values are not supported by the code generator.", lit.line, f'"{lit.value}"')
        if not lit.value.isdigit():
            raise CodegenError("Only integer numbers are supported by the code generator.", lit.line, lit.value)
        value = int(lit.value)
        if value > x86.U32_MAX:
            raise CodegenError("Number does not fit in 32 bits.", lit.line, lit.value)
        return value
