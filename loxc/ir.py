"""loxc.ir

Program structure handed from the code generator to the assembly writer.

A ``Program`` is an optional data ``Section`` plus text sections; a
``Section`` is a label and a list of ``Blob``s; a ``Blob`` is the short run
of opcodes that implements one logical operation ("push constant", "binary
add", ...). Rendering is plain string building and cannot fail.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Iterator, List, Optional, Tuple

from loxc.x86_64 import Op, OpCode


INDENT = "    "
ENTRY_POINT = "_start"


@dataclass(frozen=True, init=False)
class Blob:
    """Ordered group of instructions for one logical operation"""
    instructions: Tuple[OpCode, ...]

    def __init__(self, instructions: Iterable[OpCode]):
        object.__setattr__(self, "instructions", tuple(instructions))

    def __iter__(self) -> Iterator[OpCode]:
        return iter(self.instructions)

    def __len__(self) -> int:
        return len(self.instructions)

    @property
    def stack_effect(self) -> int:
        """Net change in evaluation-stack depth (pushes minus pops)"""
        depth = 0
        for ins in self.instructions:
            if ins.op is Op.PUSH:
                depth += 1
            elif ins.op is Op.POP:
                depth -= 1
        return depth

    def render(self) -> str:
        return "".join(f"{INDENT}{ins}\n" for ins in self.instructions)

    def __str__(self) -> str:
        return self.render()


@dataclass
class Section:
    """Labelled list of blobs"""
    name: str
    blobs: List[Blob] = field(default_factory=list)

    def append(self, blob: Blob) -> None:
        self.blobs.append(blob)

    @property
    def stack_effect(self) -> int:
        return sum(b.stack_effect for b in self.blobs)

    def render(self) -> str:
        return f"{self.name}:\n" + "".join(b.render() for b in self.blobs)

    def __str__(self) -> str:
        return self.render()


@dataclass
class Program:
    """Optional data section followed by text sections"""
    data: Optional[Section] = None
    text: List[Section] = field(default_factory=list)

    def render(self) -> str:
        out: List[str] = []
        if self.data is not None:
            out.append("section .data\n")
            out.append(self.data.render())
        out.append("section .text\n")
        out.append(f"{INDENT}global {ENTRY_POINT}\n")
        for section in self.text:
            out.append(section.render())
        return "".join(out)

    def __str__(self) -> str:
        return self.render()
