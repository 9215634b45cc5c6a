#!/usr/bin/env python3
"""Flag constructions that would bypass handlr's own command building.

- shlex: Exec templates are split by handlr.core.entry.split_exec (bashlex).
- shell=True: commands are spawned from an argv list, never re-read by a shell.

Usage: tools/check_style.py [SRC_DIR]   (default: src)
"""

import ast
import sys
from pathlib import Path

BANNED_MODULES = frozenset({"shlex"})


class BannedVisitor(ast.NodeVisitor):
    """Collect (lineno, message) for every banned construction."""

    def __init__(self):
        self.errors: list[tuple[int, str]] = []

    def visit_Import(self, node: ast.Import):
        for alias in node.names:
            if alias.name in BANNED_MODULES:
                self.errors.append((node.lineno, f"import {alias.name}: use split_exec"))

    def visit_ImportFrom(self, node: ast.ImportFrom):
        if node.module in BANNED_MODULES:
            self.errors.append((node.lineno, f"from {node.module}: use split_exec"))

    def visit_Call(self, node: ast.Call):
        for kw in node.keywords:
            if kw.arg == "shell" and isinstance(kw.value, ast.Constant) and kw.value.value is True:
                self.errors.append((node.lineno, "shell=True: pass an argv list"))
        self.generic_visit(node)


def find_python_files(directory) -> list[Path]:
    return sorted(p for p in Path(directory).rglob("*.py") if "__pycache__" not in p.parts)


def check_file(filepath) -> list[tuple[int, str]]:
    path = Path(filepath)
    visitor = BannedVisitor()
    visitor.visit(ast.parse(path.read_text(), str(path)))
    return visitor.errors


def main() -> int:
    src = Path(sys.argv[1] if len(sys.argv) > 1 else "src")
    files = find_python_files(src) if src.is_dir() else []
    if not files:
        print(f"No Python files found in: {src}")
        return 1

    found = [(str(f), lineno, msg) for f in files for lineno, msg in check_file(f)]
    for filepath, lineno, msg in found:
        print(f"{filepath}:{lineno}: {msg}")
    return 1 if found else 0


if __name__ == "__main__":
    sys.exit(main())
