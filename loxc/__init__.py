"""
loxc - expression compiler for x86-64

Scans and parses Lox-style expressions and lowers them to NASM assembly for
a stack-machine evaluation on Linux x86-64.
"""

__version__ = "0.1.0"
__license__ = "MIT"

from .errors import CompileError, ScanError, ParseError, CodegenError
from .scanner import Scanner, Token, TokenType
from .parser import Parser, parse_expression
from .codegen import CodeGenerator
from .compiler import Compiler
from .toolchain import NasmToolchain, Toolchain, ToolchainError

__all__ = [
    'CompileError',
    'ScanError',
    'ParseError',
    'CodegenError',
    'Scanner',
    'Token',
    'TokenType',
    'Parser',
    'parse_expression',
    'CodeGenerator',
    'Compiler',
    'NasmToolchain',
    'Toolchain',
    'ToolchainError',
]
