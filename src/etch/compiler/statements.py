"""Statement compilation for the etch compiler.

Provides the mixin that turns the body of a code tag into either a block
boundary (``for``/``if``/``elif``/``else``/``while``/``end``), a loop-control
op, or an `Execute` op holding simple statements.

Recognized forms::

    for TARGET in EXPR:        if EXPR:        while EXPR:
    elif EXPR:                 else:
    end  endfor  endif  endwhile
    break  continue
    x = 1; total += price      (assignment, augmented assignment,
    items.append(x)             expression statements, pass)

Uses inline TYPE_CHECKING declarations for host attributes.
"""

from __future__ import annotations

import ast
from typing import TYPE_CHECKING

from etch.environment.exceptions import ErrorCode
from etch.template.ops import Execute, LoopControl

if TYPE_CHECKING:
    from etch.environment.exceptions import TemplateCompileError
    from etch.nodes import Code
    from etch.template.ops import Op

_END_KEYWORDS = {
    "end": None,
    "endfor": "for",
    "endif": "if",
    "endwhile": "while",
}

_SIMPLE_STATEMENTS = (ast.Assign, ast.AugAssign, ast.Expr, ast.Pass)

_TARGETS = (ast.Name, ast.Tuple, ast.List, ast.Attribute, ast.Subscript)


class StatementCompilationMixin:
    """Mixin for compiling code tags."""

    # ─────────────────────────────────────────────────────────────────────────
    # Host attributes and cross-mixin dependencies (type-check only)
    # ─────────────────────────────────────────────────────────────────────────
    if TYPE_CHECKING:

        def _error(
            self,
            message: str,
            lineno: int,
            code: ErrorCode = ErrorCode.INVALID_EXPRESSION,
        ) -> TemplateCompileError: ...

        # From ExpressionCompilationMixin
        def _validate(self, node: ast.AST, lineno: int) -> None: ...

        # From Compiler core
        def _emit(self, op: Op) -> None: ...
        def _open_for(self, lineno: int, target: ast.expr, iter: ast.expr) -> None: ...
        def _open_while(self, lineno: int, test: ast.expr) -> None: ...
        def _open_if(self, lineno: int, test: ast.expr) -> None: ...
        def _add_elif(self, lineno: int, test: ast.expr) -> None: ...
        def _add_else(self, lineno: int) -> None: ...
        def _close_block(self, lineno: int, keyword: str, kind: str | None) -> None: ...
        def _in_loop(self) -> bool: ...

    def _compile_code(self, node: Code) -> None:
        code = node.code
        lineno = node.lineno

        if code in _END_KEYWORDS:
            self._close_block(lineno, code, _END_KEYWORDS[code])
            return
        if code in ("else", "else:"):
            self._add_else(lineno)
            return
        if code in ("break", "continue"):
            if not self._in_loop():
                raise self._error(
                    f"'{code}' outside of a loop", lineno, code=ErrorCode.UNBALANCED_BLOCK
                )
            self._emit(LoopControl(lineno, brk=code == "break"))
            return
        if code.endswith(":"):
            self._compile_header(code, lineno)
            return

        statements = self._parse_statements(code, lineno)
        if all(isinstance(stmt, ast.Pass) for stmt in statements):
            return
        self._emit(Execute(lineno, code, tuple(statements)))

    def _compile_header(self, code: str, lineno: int) -> None:
        """Open (or continue) a block from a ``...:`` header."""
        is_elif = code.startswith("elif") and not code[4:5].isidentifier()
        text = "if" + code[4:] if is_elif else code
        stmt = self._parse_single(f"{text} pass", lineno)

        if isinstance(stmt, ast.For):
            if not isinstance(stmt.target, _TARGETS):
                raise self._error("Invalid loop target", lineno)
            self._validate(stmt.target, lineno)
            self._validate(stmt.iter, lineno)
            self._open_for(lineno, stmt.target, stmt.iter)
        elif isinstance(stmt, ast.While):
            self._validate(stmt.test, lineno)
            self._open_while(lineno, stmt.test)
        elif isinstance(stmt, ast.If):
            self._validate(stmt.test, lineno)
            if is_elif:
                self._add_elif(lineno, stmt.test)
            else:
                self._open_if(lineno, stmt.test)
        else:
            raise self._unsupported(stmt, lineno)

    def _parse_single(self, text: str, lineno: int) -> ast.stmt:
        statements = self._parse(text, lineno)
        if len(statements) != 1:
            raise self._error(f"Invalid block header {text[:-5]!r}", lineno)
        return statements[0]

    def _parse_statements(self, code: str, lineno: int) -> list[ast.stmt]:
        statements = self._parse(code, lineno)
        for stmt in statements:
            if not isinstance(stmt, _SIMPLE_STATEMENTS):
                raise self._unsupported(stmt, lineno)
            line = lineno + stmt.lineno - 1
            if isinstance(stmt, ast.Assign):
                for target in stmt.targets:
                    self._validate_target(target, line)
                self._validate(stmt.value, line)
            elif isinstance(stmt, ast.AugAssign):
                if not isinstance(stmt.target, (ast.Name, ast.Attribute, ast.Subscript)):
                    raise self._error("Invalid augmented assignment target", line)
                self._validate(stmt.target, line)
                self._validate(stmt.value, line)
            elif isinstance(stmt, ast.Expr):
                self._validate(stmt.value, line)
        return statements

    def _validate_target(self, target: ast.expr, lineno: int) -> None:
        if not isinstance(target, _TARGETS):
            raise self._error(f"Cannot assign to {type(target).__name__}", lineno)
        if isinstance(target, (ast.Tuple, ast.List)):
            for elt in target.elts:
                self._validate_target(elt, lineno)
        else:
            self._validate(target, lineno)

    def _parse(self, code: str, lineno: int) -> list[ast.stmt]:
        try:
            return ast.parse(code, mode="exec").body
        except SyntaxError as err:
            line = lineno + (err.lineno or 1) - 1
            raise self._error(f"Invalid code {code!r}: {err.msg}", line) from err

    def _unsupported(self, stmt: ast.stmt, lineno: int) -> TemplateCompileError:
        return self._error(
            f"Unsupported statement: {type(stmt).__name__}",
            lineno + stmt.lineno - 1,
            code=ErrorCode.UNSUPPORTED_STATEMENT,
        )
