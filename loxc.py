#!/usr/bin/env python3
"""loxc - top-level CLI wrapper

Usage examples:
  ./loxc.py expr.lox -o expr          # executable; exit status = value
  ./loxc.py expr.lox -o expr.asm      # NASM source
  ./loxc.py expr.lox -S               # assembly to stdout
  ./loxc.py expr.lox --ast            # prefix tree to stdout
  ./loxc.py                           # REPL: print the tree of each line

Exit status: 0 on success, 65 when the source is rejected, 1 when reading
input or running the toolchain fails.
"""
from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional

from loxc.compiler import Compiler
from loxc.errors import CompileError

EXIT_DATAERR = 65


def repl(compiler: Compiler) -> int:
    """Read expressions line by line and print their trees"""
    while True:
        try:
            line = input("> ")
        except EOFError:
            print()
            return 0
        if not line.strip():
            continue
        try:
            print(compiler.get_ast(line))
        except CompileError as e:
            print(e, file=sys.stderr)


def main(argv: Optional[List[str]] = None) -> int:
    if argv is None:
        argv = sys.argv[1:]

    ap = argparse.ArgumentParser(prog="loxc", description="Expression compiler for x86-64 Linux")
    ap.add_argument("source", nargs="?", help="Input source file (omit for a REPL)")
    ap.add_argument("-o", dest="output", required=False, help="Output: .asm/.s, .o, or executable")
    ap.add_argument("-S", dest="emit_asm", action="store_true", help="Print assembly to stdout")
    ap.add_argument("--ast", action="store_true", help="Print the expression tree to stdout")
    ap.add_argument("--no-opt", action="store_true", help="Disable optimizations")
    ap.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    args = ap.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    compiler = Compiler(optimize=not args.no_opt)

    if args.source is None:
        return repl(compiler)

    if not (args.output or args.emit_asm or args.ast):
        print("Error: -o is required unless -S or --ast is used", file=sys.stderr)
        return 1

    result = compiler.compile_file(args.source, args.output)
    if not result.success:
        for e in result.errors:
            print(e, file=sys.stderr)
        return EXIT_DATAERR if result.has_compile_errors else 1

    if args.ast:
        print(result.ast)
    if args.emit_asm:
        sys.stdout.write(result.assembly)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
