"""loxc.x86_64

Target vocabulary for the x86-64 backend: registers, operands and opcodes.

Everything here renders to NASM (Intel) syntax via ``str()``:

- registers render as their lowercase mnemonic (``rax``)
- memory references render as ``QWORD [rbp+8]``; without ``deref`` the
  brackets are dropped (``QWORD rbp+8``) and the size prefix is optional
- immediates render in decimal
- opcodes render as ``mnemonic dst,src`` (no space after the comma)
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple, Union


class Register(Enum):
    """x86-64 general purpose registers, including the narrower views"""
    # accumulator
    RAX = "rax"
    EAX = "eax"
    AX = "ax"
    AH = "ah"
    AL = "al"
    # base
    RBX = "rbx"
    EBX = "ebx"
    BX = "bx"
    BH = "bh"
    BL = "bl"
    # counter
    RCX = "rcx"
    ECX = "ecx"
    CX = "cx"
    CH = "ch"
    CL = "cl"
    # data (high half of the dividend for div)
    RDX = "rdx"
    EDX = "edx"
    DX = "dx"
    DH = "dh"
    DL = "dl"
    # base pointer (start of frame) and stack pointer (grows downwards)
    RBP = "rbp"
    RSP = "rsp"
    # source / destination index for data copies
    RSI = "rsi"
    RDI = "rdi"
    R8 = "r8"
    R8D = "r8d"
    R8W = "r8w"
    R8B = "r8b"
    R9 = "r9"
    R9D = "r9d"
    R9W = "r9w"
    R9B = "r9b"
    R10 = "r10"
    R10D = "r10d"
    R10W = "r10w"
    R10B = "r10b"
    R11 = "r11"
    R11D = "r11d"
    R11W = "r11w"
    R11B = "r11b"
    R12 = "r12"
    R12D = "r12d"
    R12W = "r12w"
    R12B = "r12b"
    R13 = "r13"
    R13D = "r13d"
    R13W = "r13w"
    R13B = "r13b"
    R14 = "r14"
    R14D = "r14d"
    R14W = "r14w"
    R14B = "r14b"
    R15 = "r15"
    R15D = "r15d"
    R15W = "r15w"
    R15B = "r15b"

    def __str__(self) -> str:
        return self.value


class SizeDirective(Enum):
    BYTE = "BYTE"      # 8 bits
    WORD = "WORD"      # 2 bytes
    DWORD = "DWORD"    # 2 words
    QWORD = "QWORD"    # 4 words

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class MemoryRef:
    """Memory operand based on a register"""
    register: Register
    size: Optional[SizeDirective] = None
    offset: Optional[int] = None
    deref: bool = True

    def __str__(self) -> str:
        addr = str(self.register)
        if self.offset is not None:
            addr = f"{addr}+{self.offset}"
        if self.deref:
            addr = f"[{addr}]"
        if self.size is not None:
            return f"{self.size} {addr}"
        return addr


U32_MAX = 2**32 - 1


@dataclass(frozen=True)
class Immediate:
    """Unsigned 32-bit immediate"""
    value: int

    def __post_init__(self):
        if not 0 <= self.value <= U32_MAX:
            raise ValueError(f"immediate out of u32 range: {self.value}")

    def __str__(self) -> str:
        return str(self.value)


Operand = Union[Register, MemoryRef, Immediate]


class Syscall(Enum):
    """Linux x86-64 syscall numbers"""
    WRITE = 0x01   # rdi: fd, rsi: buf, rdx: count
    EXIT = 0x3C    # rdi: error code

    def immediate(self) -> Immediate:
        return Immediate(self.value)


class Condition(Enum):
    """Condition codes for ``set<cc>``"""
    E = "e"
    NE = "ne"
    L = "l"
    LE = "le"
    G = "g"
    GE = "ge"


class Op(Enum):
    MOV = "mov"
    PUSH = "push"
    POP = "pop"
    ADD = "add"
    SUB = "sub"
    MUL = "imul"
    DIV = "div"
    XOR = "xor"
    NEG = "neg"
    CMP = "cmp"
    SETCC = "set"
    MOVZX = "movzx"
    SYSCALL = "syscall"


# Operand count per opcode.
ARITY = {
    Op.MOV: 2,
    Op.PUSH: 1,
    Op.POP: 1,
    Op.ADD: 2,
    Op.SUB: 2,
    Op.MUL: 2,
    Op.DIV: 1,
    Op.XOR: 2,
    Op.NEG: 1,
    Op.CMP: 2,
    Op.SETCC: 1,
    Op.MOVZX: 2,
    Op.SYSCALL: 0,
}


@dataclass(frozen=True)
class OpCode:
    """One instruction: an opcode tag and its operands (destination first)"""
    op: Op
    operands: Tuple[Operand, ...] = ()
    condition: Optional[Condition] = None

    def __post_init__(self):
        if len(self.operands) != ARITY[self.op]:
            raise ValueError(f"{self.op.name} takes {ARITY[self.op]} operand(s), got {len(self.operands)}")
        if (self.op is Op.SETCC) != (self.condition is not None):
            raise ValueError("a condition code is required for SETCC and only for SETCC")

    @property
    def mnemonic(self) -> str:
        if self.op is Op.SETCC:
            return f"set{self.condition.value}"
        return self.op.value

    def __str__(self) -> str:
        if not self.operands:
            return self.mnemonic
        return f"{self.mnemonic} " + ",".join(str(o) for o in self.operands)


# Constructors, mirroring the assembler mnemonics.

def mov(dst: Operand, src: Operand) -> OpCode:
    return OpCode(Op.MOV, (dst, src))


def push(src: Operand) -> OpCode:
    return OpCode(Op.PUSH, (src,))


def pop(dst: Operand) -> OpCode:
    return OpCode(Op.POP, (dst,))


def add(dst: Operand, src: Operand) -> OpCode:
    return OpCode(Op.ADD, (dst, src))


def sub(dst: Operand, src: Operand) -> OpCode:
    return OpCode(Op.SUB, (dst, src))


def imul(dst: Operand, src: Operand) -> OpCode:
    return OpCode(Op.MUL, (dst, src))


def div(divisor: Register) -> OpCode:
    """Unsigned divide of rdx:rax by ``divisor``; quotient in rax"""
    return OpCode(Op.DIV, (divisor,))


def xor(dst: Operand, src: Operand) -> OpCode:
    return OpCode(Op.XOR, (dst, src))


def neg(dst: Operand) -> OpCode:
    return OpCode(Op.NEG, (dst,))


def cmp(lhs: Operand, rhs: Operand) -> OpCode:
    return OpCode(Op.CMP, (lhs, rhs))


def setcc(cond: Condition, dst: Register) -> OpCode:
    return OpCode(Op.SETCC, (dst,), condition=cond)


def movzx(dst: Register, src: Register) -> OpCode:
    return OpCode(Op.MOVZX, (dst, src))


def syscall() -> OpCode:
    return OpCode(Op.SYSCALL)
