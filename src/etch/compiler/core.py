"""Etch Compiler Core: main Compiler class.

The Compiler lowers a flat instruction sequence (`etch.nodes`) into a tree
of executable ops (`etch.template.ops`). Nothing is generated as source or
``exec``-ed; expressions stay as Python ``ast`` nodes that the evaluator
walks at render time.

Design Principles:
1. **Block stack**: code tags never buffer. ``for``/``if``/``while`` headers
   push a block, and the instructions that follow land in its body until the
   matching ``end``
2. **Compile-time binding**: filter names are bound against the registry
   snapshot, so later registry changes never affect a compiled template
3. **O(1) dispatch**: dict-based node type → handler lookup
4. **Self-contained includes**: an inlined include is lowered with its own
   block stack and must balance its blocks on its own

Errors:
Every failure is a `TemplateCompileError` naming the file being lowered
(the include's own filename inside an include), with the underlying
``SyntaxError`` chained as ``__cause__`` where there is one.
"""

from __future__ import annotations

import ast
import logging
from collections.abc import Callable, Mapping, Sequence
from typing import Any

from etch.compiler.expressions import ExpressionCompilationMixin
from etch.compiler.statements import StatementCompilationMixin
from etch.environment.exceptions import ErrorCode, TemplateCompileError
from etch.nodes import Code, Include, Literal, Node, Output
from etch.template.ops import (
    Emit,
    ForLoop,
    IfChain,
    IncludeBlock,
    Op,
    Text,
    WhileLoop,
)

logger = logging.getLogger(__name__)


class _Block:
    """An open ``for``/``if``/``while`` block awaiting its ``end``.

    For ``if`` blocks, ``header`` and ``branch_line`` describe the branch
    currently being filled; finished branches move to ``branches``.
    """

    __slots__ = ("branch_line", "branches", "header", "kind", "lineno", "orelse", "target")

    def __init__(self, kind: str, lineno: int, header: tuple[ast.expr, ...]):
        self.kind = kind
        self.lineno = lineno
        self.header = header
        self.branch_line = lineno
        self.target: list[Op] = []
        self.branches: list[tuple[int, ast.expr, tuple[Op, ...]]] = []
        self.orelse: list[Op] | None = None

    @property
    def is_loop(self) -> bool:
        return self.kind in ("for", "while")

    def seal_branch(self) -> None:
        """Close the current ``if``/``elif`` branch."""
        self.branches.append((self.branch_line, self.header[0], tuple(self.target)))

    def build(self) -> Op:
        if self.kind == "for":
            target, iterable = self.header
            return ForLoop(self.lineno, target, iterable, tuple(self.target))
        if self.kind == "while":
            return WhileLoop(self.lineno, self.header[0], tuple(self.target))
        if self.orelse is None:
            self.seal_branch()
            return IfChain(self.lineno, tuple(self.branches))
        return IfChain(self.lineno, tuple(self.branches), tuple(self.orelse))


class Compiler(ExpressionCompilationMixin, StatementCompilationMixin):
    """Lower etch instruction sequences to executable op trees.

    Attributes:
        _filters: Filter snapshot bound at compile time
        _filename: File currently being lowered (switches inside includes)
        _source: Its source text, for error context
        _stack: Open blocks, innermost last
        _root: Top-level op list of the sequence being lowered
        _outer_loops: Loops open around the include being lowered

    Example:
        >>> from etch.compiler import Compiler
        >>> from etch.parser import parse
        >>> program = Compiler({}).compile(parse("<% for x in xs: %><%= x %><% end %>"))
        >>> program
        [ForLoop(lineno=1, ...)]
    """

    __slots__ = ("_filename", "_filters", "_outer_loops", "_root", "_source", "_stack")

    def __init__(
        self,
        filters: Mapping[str, Callable[..., Any]],
        *,
        filename: str | None = None,
        source: str | None = None,
    ):
        self._filters = filters
        self._filename = filename
        self._source = source
        self._stack: list[_Block] = []
        self._root: list[Op] = []
        self._outer_loops = 0

    def compile(self, nodes: Sequence[Node]) -> list[Op]:
        """Lower ``nodes`` into a program (a list of ops)."""
        program = self._compile_sequence(nodes)
        logger.debug("Compiled %s: %d top-level ops", self._filename or "<template>", len(program))
        return program

    # ─────────────────────────────────────────────────────────────────────────
    # Sequence lowering
    # ─────────────────────────────────────────────────────────────────────────

    def _compile_sequence(self, nodes: Sequence[Node]) -> list[Op]:
        self._root = []
        self._stack = []
        dispatch = self._dispatch
        for node in nodes:
            dispatch[type(node)](self, node)
        if self._stack:
            block = self._stack[-1]
            raise self._error(
                f"Unclosed '{block.kind}' block (expected 'end')",
                block.lineno,
                code=ErrorCode.UNBALANCED_BLOCK,
            )
        return self._root

    def _compile_literal(self, node: Literal) -> None:
        self._emit(Text(node.lineno, node.text))

    def _compile_output(self, node: Output) -> None:
        expr = self._parse_expression(node.expr, node.lineno)
        filters = self._bind_filters(node.filters, node.lineno)
        self._emit(Emit(node.lineno, node.expr, expr, filters, node.escape))

    def _compile_include(self, node: Include) -> None:
        saved = (self._filename, self._source, self._root, self._stack, self._outer_loops)
        self._outer_loops += sum(1 for block in self._stack if block.is_loop)
        self._filename = node.filename
        self._source = node.source
        try:
            body = self._compile_sequence(node.body)
        finally:
            self._filename, self._source, self._root, self._stack, self._outer_loops = saved
        self._emit(IncludeBlock(node.lineno, node.filename, node.source, tuple(body)))

    _dispatch: dict[type[Node], Callable[[Any, Any], None]] = {
        Literal: _compile_literal,
        Output: _compile_output,
        Code: StatementCompilationMixin._compile_code,
        Include: _compile_include,
    }

    # ─────────────────────────────────────────────────────────────────────────
    # Block stack
    # ─────────────────────────────────────────────────────────────────────────

    def _emit(self, op: Op) -> None:
        if self._stack:
            self._stack[-1].target.append(op)
        else:
            self._root.append(op)

    def _in_loop(self) -> bool:
        return self._outer_loops > 0 or any(block.is_loop for block in self._stack)

    def _open_for(self, lineno: int, target: ast.expr, iter: ast.expr) -> None:  # noqa: A002
        self._stack.append(_Block("for", lineno, (target, iter)))

    def _open_while(self, lineno: int, test: ast.expr) -> None:
        self._stack.append(_Block("while", lineno, (test,)))

    def _open_if(self, lineno: int, test: ast.expr) -> None:
        self._stack.append(_Block("if", lineno, (test,)))

    def _current_if(self, lineno: int, keyword: str) -> _Block:
        if not self._stack or self._stack[-1].kind != "if":
            raise self._error(
                f"Unexpected '{keyword}' outside of an 'if' block",
                lineno,
                code=ErrorCode.UNBALANCED_BLOCK,
            )
        block = self._stack[-1]
        if block.orelse is not None:
            raise self._error(
                f"Unexpected '{keyword}' after 'else'",
                lineno,
                code=ErrorCode.UNBALANCED_BLOCK,
            )
        return block

    def _add_elif(self, lineno: int, test: ast.expr) -> None:
        block = self._current_if(lineno, "elif")
        block.seal_branch()
        block.header = (test,)
        block.branch_line = lineno
        block.target = []

    def _add_else(self, lineno: int) -> None:
        block = self._current_if(lineno, "else")
        block.seal_branch()
        block.orelse = []
        block.target = block.orelse

    def _close_block(self, lineno: int, keyword: str, kind: str | None) -> None:
        if not self._stack:
            raise self._error(
                f"Unexpected '{keyword}' with no open block",
                lineno,
                code=ErrorCode.UNBALANCED_BLOCK,
            )
        block = self._stack[-1]
        if kind is not None and block.kind != kind:
            raise self._error(
                f"Unexpected '{keyword}': the open block is '{block.kind}' "
                f"from line {block.lineno}",
                lineno,
                code=ErrorCode.UNBALANCED_BLOCK,
            )
        self._stack.pop()
        self._emit(block.build())

    # ─────────────────────────────────────────────────────────────────────────
    # Errors
    # ─────────────────────────────────────────────────────────────────────────

    def _error(
        self,
        message: str,
        lineno: int,
        code: ErrorCode = ErrorCode.INVALID_EXPRESSION,
    ) -> TemplateCompileError:
        return TemplateCompileError(
            message,
            lineno=lineno,
            filename=self._filename,
            source=self._source,
            code=code,
        )
