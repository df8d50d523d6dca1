"""Expression compilation for the etch compiler.

Provides the mixin that parses tag expressions with ``ast.parse``, checks
them against the subset the evaluator understands, and binds output filters
against the registry snapshot.

Uses inline TYPE_CHECKING declarations for host attributes.
"""

from __future__ import annotations

import ast
from difflib import get_close_matches
from typing import TYPE_CHECKING, Any

from etch.environment.exceptions import ErrorCode
from etch.template.evaluator import SUPPORTED_EXPRESSIONS
from etch.template.ops import BoundFilter

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

    from etch.environment.exceptions import TemplateCompileError
    from etch.nodes import FilterCall

# Node types that may appear inside an expression without being evaluated
# themselves: contexts, operators, keywords, and star-unpacking.
_STRUCTURAL: frozenset[type[ast.AST]] = frozenset(
    {
        ast.Load,
        ast.Store,
        ast.Del,
        ast.keyword,
        ast.Starred,
        ast.operator,
        ast.unaryop,
        ast.boolop,
        ast.cmpop,
    }
)


def _is_structural(node: ast.AST) -> bool:
    return any(isinstance(node, kind) for kind in _STRUCTURAL)


class ExpressionCompilationMixin:
    """Mixin for compiling tag expressions and filter chains."""

    # ─────────────────────────────────────────────────────────────────────────
    # Host attributes (type-check only)
    # ─────────────────────────────────────────────────────────────────────────
    if TYPE_CHECKING:
        _filters: Mapping[str, Callable[..., Any]]

        def _error(
            self,
            message: str,
            lineno: int,
            code: ErrorCode = ErrorCode.INVALID_EXPRESSION,
        ) -> TemplateCompileError: ...

    def _parse_expression(self, text: str, lineno: int) -> ast.expr:
        """Parse one expression (the body of an output tag, a loop iterable, ...)."""
        text = text.strip()
        if not text:
            raise self._error("Expected an expression, got an empty tag", lineno)
        try:
            tree = ast.parse(f"({text}\n)", mode="eval")
        except SyntaxError as err:
            raise self._error(f"Invalid expression {text!r}: {err.msg}", lineno) from err
        self._validate(tree.body, lineno)
        return tree.body

    def _validate(self, node: ast.AST, lineno: int) -> None:
        """Reject syntax the evaluator does not support (lambdas, comprehensions, ...)."""
        for child in ast.walk(node):
            if type(child) in SUPPORTED_EXPRESSIONS:
                if isinstance(child, ast.Attribute) and child.attr.startswith("__"):
                    raise self._error(
                        f"Access to attribute '{child.attr}' is not allowed", lineno
                    )
                continue
            if _is_structural(child):
                continue
            raise self._error(
                f"Unsupported syntax in expression: {type(child).__name__}",
                lineno,
                code=ErrorCode.UNSUPPORTED_STATEMENT,
            )

    def _bind_filters(
        self, chain: tuple[FilterCall, ...], lineno: int
    ) -> tuple[BoundFilter, ...]:
        """Resolve filter names against the snapshot and parse their arguments."""
        bound: list[BoundFilter] = []
        for call in chain:
            func = self._filters.get(call.name)
            if func is None:
                message = f"Unknown filter '{call.name}'"
                matches = get_close_matches(call.name, sorted(self._filters), n=1, cutoff=0.6)
                if matches:
                    message += f". Did you mean '{matches[0]}'?"
                raise self._error(message, lineno, code=ErrorCode.UNKNOWN_FILTER)
            args: tuple[ast.expr, ...] = ()
            keywords: tuple[ast.keyword, ...] = ()
            if call.args:
                try:
                    tree = ast.parse(f"_({call.args}\n)", mode="eval")
                except SyntaxError as err:
                    raise self._error(
                        f"Invalid arguments for filter '{call.name}': {call.args!r}",
                        lineno,
                    ) from err
                assert isinstance(tree.body, ast.Call)
                for arg in tree.body.args:
                    self._validate(arg, lineno)
                for kw in tree.body.keywords:
                    self._validate(kw.value, lineno)
                args = tuple(tree.body.args)
                keywords = tuple(tree.body.keywords)
            bound.append(BoundFilter(call.name, func, args, keywords))
        return tuple(bound)
