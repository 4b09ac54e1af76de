"""loxc.toolchain

Assembler/linker capability used by the driver.

The compiler core only produces assembly text. Turning that text into an
object file and an executable goes through a ``Toolchain``, so tests (or
other platforms) can plug in their own implementation without touching the
core. ``NasmToolchain`` is the default: ``nasm -f elf64`` plus ``ld``.

Configuration (environment):
- ``LOXC_NASM``: assembler executable (default ``nasm``)
- ``LOXC_LD``: linker executable (default ``ld``)
- ``LOXC_TOOL_TIMEOUT``: per-command timeout in seconds (default 30)
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
import tempfile
from typing import List, Optional, Sequence

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0


class ToolchainError(Exception):
    """Assembler or linker failure"""


class Toolchain:
    """Turns assembly text into object code and object code into executables"""

    def assemble(self, assembly: str) -> bytes:
        """Assemble ``assembly`` and return the object file contents"""
        raise NotImplementedError

    def link(self, objects: Sequence[bytes]) -> bytes:
        """Link object files and return the executable contents"""
        raise NotImplementedError


class NasmToolchain(Toolchain):
    """ELF64 toolchain backed by the system ``nasm`` and ``ld``"""

    def __init__(
        self,
        assembler: Optional[str] = None,
        linker: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        self.assembler = assembler or os.environ.get("LOXC_NASM", "nasm")
        self.linker = linker or os.environ.get("LOXC_LD", "ld")
        if timeout is None:
            timeout = float(os.environ.get("LOXC_TOOL_TIMEOUT", DEFAULT_TIMEOUT))
        self.timeout = timeout

    def assemble(self, assembly: str) -> bytes:
        with tempfile.TemporaryDirectory(prefix="loxc_") as td:
            asm_path = os.path.join(td, "out.asm")
            obj_path = os.path.join(td, "out.o")
            with open(asm_path, "w") as f:
                f.write(assembly)
            self._run([self.assembler, "-f", "elf64", "-o", obj_path, asm_path], "assemble")
            with open(obj_path, "rb") as f:
                return f.read()

    def link(self, objects: Sequence[bytes]) -> bytes:
        if not objects:
            raise ToolchainError("link: no object files")
        with tempfile.TemporaryDirectory(prefix="loxc_") as td:
            obj_paths: List[str] = []
            for i, obj in enumerate(objects):
                path = os.path.join(td, f"tu{i}.o")
                with open(path, "wb") as f:
                    f.write(obj)
                obj_paths.append(path)
            exe_path = os.path.join(td, "a.out")
            self._run([self.linker, "-o", exe_path, *obj_paths], "link")
            with open(exe_path, "rb") as f:
                return f.read()

    def _run(self, cmd: List[str], what: str) -> None:
        if shutil.which(cmd[0]) is None:
            raise ToolchainError(f"{what}: '{cmd[0]}' not found")
        logger.debug("%s: %s", what, " ".join(cmd))
        try:
            p = subprocess.run(
                cmd,
                check=False,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired as e:
            raise ToolchainError(f"{what}: timed out after {self.timeout:g}s") from e
        if p.returncode != 0:
            msg = p.stderr.strip() or p.stdout.strip() or "(no output)"
            raise ToolchainError(f"{what} failed ({p.returncode}): {msg}")
