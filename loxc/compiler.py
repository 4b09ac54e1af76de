"""
Main Compiler Driver

Orchestrates the compilation pipeline:

    source -> Scanner -> Parser -> expression tree -> CodeGenerator
           -> Program -> assembly text -> (Toolchain) object / executable
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import List, Optional

from loxc.ast_nodes import Expression
from loxc.codegen import CodeGenerator
from loxc.errors import CompileError
from loxc.parser import Parser
from loxc.toolchain import NasmToolchain, Toolchain, ToolchainError

logger = logging.getLogger(__name__)

ASSEMBLY_EXTENSIONS = (".asm", ".s")


@dataclass
class CompilationResult:
    """Result of compilation"""
    success: bool
    output_file: Optional[str] = None
    errors: List[str] = None
    diagnostics: List[CompileError] = None
    ast: Optional[Expression] = None
    assembly: Optional[str] = None

    def __post_init__(self):
        if self.errors is None:
            self.errors = []
        if self.diagnostics is None:
            self.diagnostics = []

    @property
    def has_compile_errors(self) -> bool:
        """True when the source itself was rejected (scan/parse/codegen)"""
        return bool(self.diagnostics)


class Compiler:
    """Main compiler class orchestrating all compilation stages"""

    def __init__(self, optimize: bool = True, *, toolchain: Optional[Toolchain] = None):
        self.optimize = optimize
        self._toolchain = toolchain

    @property
    def toolchain(self) -> Toolchain:
        # Built lazily so asm-only compiles never read toolchain config.
        if self._toolchain is None:
            self._toolchain = NasmToolchain()
        return self._toolchain

    def compile_file(self, source_file: str, output_file: Optional[str] = None) -> CompilationResult:
        """Compile a source file.

        If output_file endswith:
        - .asm / .s : emit assembly
        - .o : assemble with the toolchain
        - otherwise: assemble and link an ELF executable
        """
        try:
            with open(source_file, "r", encoding="utf-8") as f:
                source_code = f.read()
        except OSError as e:
            return CompilationResult(success=False, errors=[f"Failed to read source file: {e}"])
        return self.compile_code(source_code, output_file)

    def compile_code(self, source_code: str, output_file: Optional[str] = None) -> CompilationResult:
        """Compile source code"""
        # Phase 1+2: scanning and parsing (the parser pulls tokens lazily)
        try:
            ast = self.get_ast(source_code)
            logger.debug("parsed: %s", ast)
        except CompileError as e:
            return CompilationResult(success=False, errors=[str(e)], diagnostics=[e])

        # Phase 3: code generation
        try:
            assembly = self.get_assembly(ast)
        except CompileError as e:
            return CompilationResult(success=False, errors=[str(e)], diagnostics=[e], ast=ast)

        if output_file:
            try:
                self._write_output(assembly, output_file)
            except (OSError, ToolchainError) as e:
                return CompilationResult(success=False, errors=[str(e)], ast=ast, assembly=assembly)

        return CompilationResult(success=True, output_file=output_file, ast=ast, assembly=assembly)

    def _write_output(self, assembly: str, out: str) -> None:
        ext = os.path.splitext(out)[1]
        if ext in ASSEMBLY_EXTENSIONS:
            logger.debug("writing assembly to %s", out)
            with open(out, "w") as f:
                f.write(assembly)
            return

        obj = self.toolchain.assemble(assembly)
        if ext == ".o":
            data = obj
        else:
            data = self.toolchain.link([obj])
        logger.debug("writing %d bytes to %s", len(data), out)
        with open(out, "wb") as f:
            f.write(data)
        if ext != ".o":
            os.chmod(out, 0o755)

    def get_ast(self, source_code: str) -> Expression:
        """Get expression tree from source code"""
        return Parser(source_code).parse()

    def get_assembly(self, ast: Expression) -> str:
        """Generate assembly text from the expression tree"""
        return CodeGenerator(self.optimize).generate_assembly(ast)
