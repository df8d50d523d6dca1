"""Executable ops: the lowered form of a template.

The compiler turns the flat instruction sequence into a tree of ops. Each op
appends to the output buffer (StringBuilder pattern, joined once at the end)
and records its line in the render's diagnostic state before doing anything
that can fail.

    Text          literal text
    Emit          output tag: evaluate, filter, escape, append
    Execute       simple statements (assignment, expression statement, pass)
    ForLoop       for TARGET in ITER: ... end
    IfChain       if/elif/else ... end
    WhileLoop     while TEST: ... end
    LoopControl   break / continue
    IncludeBlock  inlined template body with its own diagnostic source

Ops are immutable; all per-render state lives in the `Frame` and the output
list.
"""

from __future__ import annotations

import ast
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any

from etch.template.evaluator import (
    Frame,
    assign,
    augment,
    evaluate,
    evaluate_arguments,
    resolve,
)
from etch.utils.html import html_escape, to_str


class BreakLoop(Exception):  # noqa: N818
    """Internal: unwinds to the innermost loop on ``break``."""


class ContinueLoop(Exception):  # noqa: N818
    """Internal: unwinds to the innermost loop on ``continue``."""


async def run_body(body: Sequence[Op], frame: Frame, out: list[str]) -> None:
    for op in body:
        await op.run(frame, out)


@dataclass(frozen=True, slots=True)
class Op:
    """Base class for all ops."""

    lineno: int

    async def run(self, frame: Frame, out: list[str]) -> None:
        raise NotImplementedError

    def describe(self) -> str:
        return type(self).__name__


@dataclass(frozen=True, slots=True)
class Text(Op):
    text: str

    async def run(self, frame: Frame, out: list[str]) -> None:
        out.append(self.text)

    def describe(self) -> str:
        return f"Text {self.text!r}"


@dataclass(frozen=True, slots=True)
class BoundFilter:
    """A filter resolved against the registry snapshot at compile time."""

    name: str
    func: Callable[..., Any]
    args: tuple[ast.expr, ...] = ()
    keywords: tuple[ast.keyword, ...] = ()

    async def apply(self, value: Any, frame: Frame) -> Any:
        args, kwargs = await evaluate_arguments(list(self.args), list(self.keywords), frame)
        args = [await resolve(arg) for arg in args]
        kwargs = {key: await resolve(arg) for key, arg in kwargs.items()}
        return await resolve(self.func(value, *args, **kwargs))


@dataclass(frozen=True, slots=True)
class Emit(Op):
    """``<%= %>`` / ``<%- %>``: value, then filters left to right, then escape."""

    source: str
    expr: ast.expr
    filters: tuple[BoundFilter, ...] = ()
    escape: bool = True

    async def run(self, frame: Frame, out: list[str]) -> None:
        frame.diag.line = self.lineno
        value = await resolve(await evaluate(self.expr, frame))
        for bound in self.filters:
            value = await bound.apply(value, frame)
        out.append(html_escape(value) if self.escape else to_str(value))

    def describe(self) -> str:
        chain = "".join(f" | {f.name}" for f in self.filters)
        kind = "escaped" if self.escape else "raw"
        return f"Emit[{kind}] {self.source.strip()}{chain}"


@dataclass(frozen=True, slots=True)
class Execute(Op):
    source: str
    statements: tuple[ast.stmt, ...]

    async def run(self, frame: Frame, out: list[str]) -> None:
        frame.diag.line = self.lineno
        for stmt in self.statements:
            if isinstance(stmt, ast.Assign):
                value = await resolve(await evaluate(stmt.value, frame))
                for target in stmt.targets:
                    await assign(target, value, frame)
            elif isinstance(stmt, ast.AugAssign):
                await augment(stmt, frame)
            elif isinstance(stmt, ast.Expr):
                await resolve(await evaluate(stmt.value, frame))

    def describe(self) -> str:
        return f"Execute {self.source}"


@dataclass(frozen=True, slots=True)
class LoopControl(Op):
    brk: bool

    async def run(self, frame: Frame, out: list[str]) -> None:
        raise BreakLoop if self.brk else ContinueLoop

    def describe(self) -> str:
        return "Break" if self.brk else "Continue"


@dataclass(frozen=True, slots=True)
class ForLoop(Op):
    """``for`` over a sync or async iterable."""

    target: ast.expr
    iter: ast.expr
    body: tuple[Op, ...]

    async def run(self, frame: Frame, out: list[str]) -> None:
        frame.diag.line = self.lineno
        iterable = await resolve(await evaluate(self.iter, frame))
        if hasattr(iterable, "__aiter__"):
            async for item in iterable:
                if not await self._step(item, frame, out):
                    break
        else:
            for item in iterable:
                if not await self._step(item, frame, out):
                    break

    async def _step(self, item: Any, frame: Frame, out: list[str]) -> bool:
        await assign(self.target, item, frame)
        try:
            await run_body(self.body, frame, out)
        except BreakLoop:
            return False
        except ContinueLoop:
            pass
        return True

    def describe(self) -> str:
        return f"ForLoop {ast.unparse(self.target)} in {ast.unparse(self.iter)}"


@dataclass(frozen=True, slots=True)
class WhileLoop(Op):
    test: ast.expr
    body: tuple[Op, ...]

    async def run(self, frame: Frame, out: list[str]) -> None:
        while True:
            frame.diag.line = self.lineno
            if not await resolve(await evaluate(self.test, frame)):
                return
            try:
                await run_body(self.body, frame, out)
            except BreakLoop:
                return
            except ContinueLoop:
                continue

    def describe(self) -> str:
        return f"WhileLoop {ast.unparse(self.test)}"


@dataclass(frozen=True, slots=True)
class IfChain(Op):
    """``if``/``elif`` branches as (lineno, test, body), then the ``else`` body."""

    branches: tuple[tuple[int, ast.expr, tuple[Op, ...]], ...]
    orelse: tuple[Op, ...] = ()

    async def run(self, frame: Frame, out: list[str]) -> None:
        for lineno, test, body in self.branches:
            frame.diag.line = lineno
            if await resolve(await evaluate(test, frame)):
                await run_body(body, frame, out)
                return
        await run_body(self.orelse, frame, out)

    def describe(self) -> str:
        return f"IfChain {ast.unparse(self.branches[0][1])}"


@dataclass(frozen=True, slots=True)
class IncludeBlock(Op):
    """Inlined include: diagnostics point into ``filename`` while ``body`` runs."""

    filename: str
    source: str
    body: tuple[Op, ...]

    async def run(self, frame: Frame, out: list[str]) -> None:
        diag = frame.diag
        diag.line = self.lineno
        saved = diag.enter_include(self.filename, self.source)
        try:
            await run_body(self.body, frame, out)
        except (BreakLoop, ContinueLoop):
            diag.exit_include(saved)
            raise
        diag.exit_include(saved)

    def describe(self) -> str:
        return f"Include {self.filename}"


def children(op: Op) -> list[tuple[str, Sequence[Op]]]:
    """Labelled child bodies of ``op`` (for program listings)."""
    if isinstance(op, (ForLoop, WhileLoop, IncludeBlock)):
        return [("", op.body)]
    if isinstance(op, IfChain):
        labelled: list[tuple[str, Sequence[Op]]] = [
            ("if" if i == 0 else "elif", body) for i, (_, _, body) in enumerate(op.branches)
        ]
        if op.orelse:
            labelled.append(("else", op.orelse))
        return labelled
    return []


def format_program(body: Sequence[Op], indent: int = 0) -> str:
    """Human-readable listing of a lowered program, one op per line."""
    lines: list[str] = []
    pad = "  " * indent
    for op in body:
        lines.append(f"{op.lineno:>4} {pad}{op.describe()}")
        for label, child in children(op):
            if label:
                lines.append(f"     {pad}  {label}:")
            listing = format_program(child, indent + 2)
            if listing:
                lines.append(listing)
    return "\n".join(lines)
