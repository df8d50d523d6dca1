"""Etch Template: compiled template object ready for rendering.

A Template wraps the op tree produced by the compiler and provides the
``render()`` API. Templates are immutable; every render builds its own
`Frame`, output buffer and diagnostic state.

Architecture:
    ```
    Template
    ├── _program: tuple[Op, ...]   # Lowered op tree (filters already bound)
    ├── _globals: Mapping          # Environment globals (len, range, ...)
    └── _filename, _source         # For error annotation
    ```

StringBuilder Pattern:
Ops append to one ``list[str]``; the result is a single ``''.join(buf)``.

Async First:
Rendering is a coroutine (`render_async`) because any value may be deferred
(an awaitable, a future, a coroutine function). ``render()`` drives that
coroutine with ``asyncio.run`` and refuses to run inside a running event
loop.

Error Annotation:
With ``compile_debug`` on, any exception escaping a render is annotated in
place with file, line and surrounding source (see `annotate_error`) and
re-raised with its original type.

"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Coroutine, Mapping, Sequence
from typing import TYPE_CHECKING, Any, TypeVar

from etch.environment.exceptions import TemplateRuntimeError, annotate_error
from etch.render_context import RenderContext
from etch.template.evaluator import Frame
from etch.template.ops import format_program, run_body

if TYPE_CHECKING:
    from etch.template.ops import Op

logger = logging.getLogger(__name__)

T = TypeVar("T")


def run_sync(coro: Coroutine[Any, Any, T], what: str = "render") -> T:
    """Run ``coro`` to completion on a fresh event loop.

    Raises:
        TemplateRuntimeError: If called from inside a running event loop
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)
    coro.close()
    raise TemplateRuntimeError(
        f"{what}() cannot be called from a running event loop",
        suggestion=f"Use 'await {what}_async(...)' instead",
    )


def build_context(args: Sequence[Any], kwargs: Mapping[str, Any], method: str) -> dict[str, Any]:
    """Merge one optional positional dict with keyword arguments."""
    ctx: dict[str, Any] = {}
    if args:
        if len(args) == 1 and isinstance(args[0], Mapping):
            ctx.update(args[0])
        else:
            raise TypeError(
                f"{method}() takes at most 1 positional argument (a dict), got {len(args)}"
            )
    ctx.update(kwargs)
    return ctx


class Template:
    """Compiled template ready for rendering.

    Attributes:
        filename: Source file path (for error messages)
        source: Template source (for error context)

    Example:
        >>> from etch import Environment
        >>> env = Environment()
        >>> t = env.from_string("Hello, <%= name %>!")
        >>> t.render(name="World")
        'Hello, World!'

        >>> t.render({"name": "World"})  # Dict context also works
        'Hello, World!'

        >>> await t.render_async(name="World")
        'Hello, World!'
    """

    __slots__ = ("_compile_debug", "_filename", "_globals", "_program", "_source")

    def __init__(
        self,
        program: Sequence[Op],
        *,
        filename: str | None = None,
        source: str | None = None,
        globals: Mapping[str, Any] | None = None,  # noqa: A002
        compile_debug: bool = True,
    ):
        self._program: tuple[Op, ...] = tuple(program)
        self._filename = filename
        self._source = source
        self._globals = globals or {}
        self._compile_debug = compile_debug

    @property
    def filename(self) -> str | None:
        """Source filename."""
        return self._filename

    @property
    def source(self) -> str | None:
        return self._source

    @property
    def program(self) -> tuple[Op, ...]:
        """The lowered op tree."""
        return self._program

    def listing(self) -> str:
        """Human-readable listing of the lowered program."""
        return format_program(self._program)

    async def execute(
        self,
        context: Mapping[str, Any],
        *,
        scope: Any = None,
        compile_debug: bool | None = None,
    ) -> str:
        """Render with an already-merged context.

        Args:
            context: Render locals
            scope: Receiver visible to the template as ``self``
            compile_debug: Override annotation of errors (default: the
                setting the template was compiled with)
        """
        annotate = self._compile_debug if compile_debug is None else compile_debug
        diag = RenderContext(filename=self._filename, source=self._source)
        frame = Frame(context, scope=scope, globals=self._globals, diag=diag)
        buf: list[str] = []
        try:
            await run_body(self._program, frame, buf)
        except Exception as e:
            if annotate:
                annotate_error(e, diag.source, diag.filename, diag.line, diag.include_stack)
            raise
        return "".join(buf)

    async def render_async(self, *args: Any, **kwargs: Any) -> str:
        """Render template with given context.

        Args:
            *args: Single dict of context variables
            **kwargs: Context variables as keyword arguments

        Returns:
            Rendered template as string
        """
        return await self.execute(build_context(args, kwargs, "render_async"))

    def render(self, *args: Any, **kwargs: Any) -> str:
        """Synchronous `render_async`; not usable inside a running event loop."""
        return run_sync(self.render_async(*args, **kwargs))

    def __repr__(self) -> str:
        return f"<Template {self._filename or '(inline)'}>"
