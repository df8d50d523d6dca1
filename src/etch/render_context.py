"""Per-render diagnostic state.

While a template renders, a `RenderContext` tracks where execution is: the
source text and filename of the template (or inlined include) currently
executing and the line of the most recent tag. It travels on the render's
`Frame` as ``frame.diag`` and is read only when something fails, to annotate
the error with file/line/context.

Included templates swap in their own filename/source while their inlined body
runs and restore the parent's afterwards. On failure nothing is restored, so
the error points into the include.

Thread Safety:
    Each render builds its own RenderContext, so concurrent renders (threads
    or asyncio tasks) never see each other's state.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class RenderContext:
    """Diagnostic state for one render.

    Attributes:
        filename: Filename of the template (or include) currently executing
        source: Its source text, for context windows in error messages
        line: Line of the tag currently executing (updated by each op)
        include_stack: (filename, line) of each include directive entered
    """

    filename: str | None = None
    source: str | None = None
    line: int = 0
    include_stack: list[tuple[str | None, int]] = field(default_factory=list)

    def enter_include(self, filename: str, source: str) -> tuple[str | None, str | None, int]:
        """Switch to an included file; returns the parent state for `exit_include`."""
        saved = (self.filename, self.source, self.line)
        self.include_stack.append((self.filename, self.line))
        self.filename = filename
        self.source = source
        return saved

    def exit_include(self, saved: tuple[str | None, str | None, int]) -> None:
        """Restore the parent's filename, source and line after an include ran."""
        self.include_stack.pop()
        self.filename, self.source, self.line = saved
