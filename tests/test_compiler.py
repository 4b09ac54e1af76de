import os
from typing import List, Sequence

import pytest

from loxc.compiler import Compiler
from loxc.errors import ParseError, ScanError
from loxc.toolchain import Toolchain, ToolchainError


class FakeToolchain(Toolchain):
    """In-memory toolchain: 'objects' are the assembly bytes"""

    def __init__(self, fail: str = ""):
        self.fail = fail
        self.assembled: List[str] = []
        self.linked: List[List[bytes]] = []

    def assemble(self, assembly: str) -> bytes:
        if self.fail == "assemble":
            raise ToolchainError("assemble failed (1): bad instruction")
        self.assembled.append(assembly)
        return b"OBJ:" + assembly.encode()

    def link(self, objects: Sequence[bytes]) -> bytes:
        if self.fail == "link":
            raise ToolchainError("link failed (1): undefined symbol")
        self.linked.append(list(objects))
        return b"EXE:" + b"".join(objects)


def _compile(tmp_path, code: str, out_name: str, toolchain=None, optimize=True):
    src = tmp_path / "t.lox"
    src.write_text(code)
    comp = Compiler(optimize=optimize, toolchain=toolchain or FakeToolchain())
    out = tmp_path / out_name
    return comp.compile_file(str(src), str(out)), out


def test_compile_code_without_output():
    res = Compiler().compile_code("1 + 2")
    assert res.success
    assert res.errors == []
    assert str(res.ast) == "(+ 1 2)"
    assert res.assembly.startswith("section .text\n")


def test_write_assembly(tmp_path):
    res, out = _compile(tmp_path, "1 + 2", "t.asm")
    assert res.success, res.errors
    assert out.read_text() == res.assembly


def test_write_assembly_s_extension(tmp_path):
    toolchain = FakeToolchain()
    res, out = _compile(tmp_path, "7", "t.s", toolchain=toolchain)
    assert res.success
    assert "mov rdi,7" in out.read_text()
    assert toolchain.assembled == []


def test_assemble_object(tmp_path):
    toolchain = FakeToolchain()
    res, out = _compile(tmp_path, "7", "t.o", toolchain=toolchain)
    assert res.success
    assert out.read_bytes() == b"OBJ:" + res.assembly.encode()
    assert toolchain.linked == []


def test_link_executable(tmp_path):
    toolchain = FakeToolchain()
    res, out = _compile(tmp_path, "7", "t", toolchain=toolchain)
    assert res.success
    assert out.read_bytes() == b"EXE:OBJ:" + res.assembly.encode()
    assert os.access(str(out), os.X_OK)


def test_parse_error_is_reported(tmp_path):
    res, out = _compile(tmp_path, "(1 + 2", "t.asm")
    assert not res.success
    assert res.errors == ["[line 1] Error  at end: Expect ')' after expression."]
    assert isinstance(res.diagnostics[0], ParseError)
    assert res.has_compile_errors
    assert not out.exists()


def test_scan_error_is_reported(tmp_path):
    res, _ = _compile(tmp_path, "\n\n1 + $", "t.asm")
    assert not res.success
    assert isinstance(res.diagnostics[0], ScanError)
    assert res.errors[0].startswith("[line 3] Error : Unexpected character")


def test_codegen_error_keeps_tree():
    res = Compiler().compile_code('"text"')
    assert not res.success
    assert res.has_compile_errors
    assert res.ast is not None
    assert res.assembly is None


def test_toolchain_failure_is_not_a_compile_error(tmp_path):
    res, out = _compile(tmp_path, "1", "t", toolchain=FakeToolchain(fail="link"))
    assert not res.success
    assert not res.has_compile_errors
    assert "link failed" in res.errors[0]
    assert res.assembly is not None
    assert not out.exists()


def test_missing_source_file(tmp_path):
    res = Compiler().compile_file(str(tmp_path / "missing.lox"))
    assert not res.success
    assert "Failed to read source file" in res.errors[0]
    assert not res.has_compile_errors


def test_no_opt_keeps_stack_form():
    asm = Compiler(optimize=False).compile_code("0").assembly
    assert "push rax" in asm
    assert "mov rdi,rax" in asm


def test_compile_is_deterministic():
    comp = Compiler()
    assert comp.compile_code("2 * (3 + 4)").assembly == comp.compile_code("2 * (3 + 4)").assembly


def test_long_sum_compiles():
    res = Compiler().compile_code(" + ".join(["1"] * 2000))
    assert res.success, res.errors
    assert str(res.ast).count("(+ ") == 1999


def test_deep_nesting_is_reported_not_raised():
    depth = 500
    res = Compiler().compile_code("(" * depth + "1" + ")" * depth)
    if not res.success:
        assert res.has_compile_errors
        assert res.errors[0].endswith("Expression nesting too deep.")


def test_division_by_zero_is_a_compile_error():
    res = Compiler().compile_code("1/0")
    assert not res.success
    assert res.errors == ["[line 1] Error 0: Division by zero."]
    assert res.assembly is None
