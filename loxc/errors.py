"""loxc.errors

Diagnostics raised by the compiler core.

Every stage raises instead of printing; the driver formats the error and
decides what to do with it.
"""

from __future__ import annotations


class CompileError(Exception):
    """Error with source line and location context.

    ``location`` is empty for scan errors, the offending lexeme for parse
    errors, or ``" at end"`` when the input ran out.
    """

    def __init__(self, message: str, line: int, location: str = ""):
        self.message = message
        self.line = line
        self.location = location
        super().__init__(f"[line {line}] Error {location}: {message}")


class ScanError(CompileError):
    """Unterminated string or unexpected character"""


class ParseError(CompileError):
    """Grammar violation"""


class CodegenError(CompileError):
    """Expression the stack machine cannot represent"""
