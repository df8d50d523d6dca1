"""Etch compiler: instruction sequence → executable op tree.

Modules:
    core: Compiler class and block stack
    expressions: Expression parsing, validation and filter binding
    statements: Code-tag classification (blocks, loop control, simple statements)
"""

from etch.compiler.core import Compiler

__all__ = ["Compiler"]
