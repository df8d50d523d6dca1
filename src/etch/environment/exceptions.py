"""Exceptions and error diagnostics for etch.

Exception Hierarchy:
TemplateError (base)
├── ConfigurationError        # Missing root, cache without filename, include without filename
├── TemplateNotFoundError     # Template not found by loader
├── TemplateCompileError      # Lowering failed (bad expression, unbalanced block, ...)
│   └── TemplateSyntaxError   # Open delimiter without a matching close delimiter
└── TemplateRuntimeError      # Failure while evaluating a tag
    ├── UndefinedError        # Name not found in the render locals
    └── FilterError           # Filter contract violation (e.g. first of empty)

Runtime Diagnostics:
With ``compile_debug`` enabled (the default), any exception raised while a
template renders (etch's own or one raised by user code) is annotated in
place by `annotate_error` and re-raised with its identity intact:

    ```
    users.html:5
        2| <ul>
        3| <% for user in users: %>
        4|   <li><%= user.name %></li>
     >> 5|   <li><%= user.emial %></li>
        6| <% end %>
        7| </ul>

    'dict' object has no attribute 'emial'
    ```

"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from etch.environment import terminal

# ---------------------------------------------------------------------------
# Error codes
# ---------------------------------------------------------------------------


class ErrorCode(Enum):
    """Searchable error codes.

    Format: E-{CATEGORY}-{NUMBER}
    Categories: LEX (scanner), CMP (compiler), RUN (runtime),
    CFG (configuration), TPL (template loading)
    """

    # Scanner errors
    UNCLOSED_TAG = "E-LEX-001"

    # Compiler errors
    INVALID_EXPRESSION = "E-CMP-001"
    UNBALANCED_BLOCK = "E-CMP-002"
    UNSUPPORTED_STATEMENT = "E-CMP-003"
    UNKNOWN_FILTER = "E-CMP-004"
    INCLUDE_DEPTH = "E-CMP-005"

    # Runtime errors
    UNDEFINED_LOCAL = "E-RUN-001"
    FILTER_ERROR = "E-RUN-002"
    RUNTIME_ERROR = "E-RUN-003"

    # Configuration errors
    MISSING_FILENAME = "E-CFG-001"
    MISSING_ROOT = "E-CFG-002"
    INCLUDE_WITHOUT_FILENAME = "E-CFG-003"

    # Template loading errors
    TEMPLATE_NOT_FOUND = "E-TPL-001"

    @property
    def category(self) -> str:
        """Error category (e.g., 'runtime', 'compiler', 'configuration')."""
        prefix = self.value.split("-")[1]
        return {
            "LEX": "scanner",
            "CMP": "compiler",
            "RUN": "runtime",
            "CFG": "configuration",
            "TPL": "template",
        }.get(prefix, "unknown")


# ---------------------------------------------------------------------------
# Source snippets
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class SourceSnippet:
    """Template source lines around an error line.

    Attributes:
        lines: Tuple of (line_number, line_content) pairs around the error.
        error_line: The 1-based line number where the error occurred.
    """

    lines: tuple[tuple[int, str], ...]
    error_line: int

    def format(self) -> str:
        """Plain rendering: ``" >> "`` marks the failing line, ``"    "`` the rest."""
        return "\n".join(
            f"{' >> ' if lineno == self.error_line else '    '}{lineno}| {content}"
            for lineno, content in self.lines
        )

    def format_color(self) -> str:
        """Terminal rendering with the failing line highlighted."""
        return "\n".join(
            terminal.format_source_line(lineno, content, is_error=lineno == self.error_line)
            for lineno, content in self.lines
        )


def build_source_snippet(
    source: str,
    error_line: int,
    *,
    context_lines: int = 3,
) -> SourceSnippet:
    """Build a SourceSnippet of up to ``context_lines`` lines each side of ``error_line``.

    The window is clamped to the bounds of ``source``.
    """
    all_lines = source.split("\n")
    start = max(0, error_line - 1 - context_lines)
    end = min(len(all_lines), error_line + context_lines)
    lines = tuple((i + 1, all_lines[i]) for i in range(start, end))
    return SourceSnippet(lines=lines, error_line=error_line)


def annotate_error(
    error: BaseException,
    source: str | None,
    filename: str | None,
    lineno: int,
    template_stack: list[tuple[str | None, int]] | None = None,
) -> BaseException:
    """Rewrite ``error``'s message with file, line and source context.

    The exception is mutated and returned (never wrapped), so ``raise`` keeps
    the original identity and traceback. The new message is::

        <filename or <template>>:<lineno>
        <numbered context lines, failing line marked with " >> ">

        <original message>

    The error also gains ``template_path``, ``template_line`` and
    ``template_stack`` attributes. An already-annotated error is returned
    untouched, so the innermost location wins.
    """
    if hasattr(error, "template_line"):
        return error

    original = str(error)
    location = f"{filename or '<template>'}:{lineno}"
    context = build_source_snippet(source, lineno).format() if source else ""
    message = f"{location}\n{context}\n\n{original}"

    error.template_path = filename  # type: ignore[attr-defined]
    error.template_line = lineno  # type: ignore[attr-defined]
    error.template_stack = list(template_stack or [])  # type: ignore[attr-defined]
    if isinstance(error, TemplateError):
        error.annotated_message = message
        if getattr(error, "source", None) is None:
            error.source = source  # type: ignore[attr-defined]
    error.args = (message, *error.args[1:])
    return error


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class TemplateError(Exception):
    """Base exception for all etch template errors.

        >>> try:
        ...     env.render_file("index")
        ... except TemplateError as e:
        ...     log.error("Template error: %s", e)

    Attributes:
        code: Optional ErrorCode for searchable error identification.
        message: The bare message, without location decoration.
    """

    code: ErrorCode | None = None
    annotated_message: str | None = None

    def __init__(self, message: str, *, code: ErrorCode | None = None):
        self.message = message
        if code is not None:
            self.code = code
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        return self.message

    def format_compact(self) -> str:
        """Format the error as a terminal summary, colour-aware.

        Format::

            E-RUN-001: Undefined local 'usernme'
              --> users.html:4
               2| <ul>
             >>4|   <li><%= usernme %></li>
              Hint: Pass 'usernme' in locals, or read it as locals.get('usernme')
        """
        header = terminal.format_error_header(
            self.code.value if self.code else None, self.message
        )
        parts = [header]
        path = getattr(self, "template_path", None) or getattr(self, "filename", None)
        line = getattr(self, "template_line", None) or getattr(self, "lineno", None)
        if path or line:
            where = path or "<template>"
            if line:
                where += f":{line}"
            parts.append(f"  --> {terminal.location(where)}")
        source = getattr(self, "source", None)
        if source and line:
            parts.append(build_source_snippet(source, line, context_lines=2).format_color())
        suggestion = getattr(self, "suggestion", None)
        if suggestion:
            parts.append(f"  {terminal.hint('Hint:')} {suggestion}")
        return "\n".join(parts)


class ConfigurationError(TemplateError):
    """Invalid or incomplete configuration.

    Raised for: ``cache`` without ``filename``, a view renderer without
    ``root``, and an include directive in a template that has no filename.
    Always fatal; retrying with the same options fails the same way.
    """

    code: ErrorCode | None = ErrorCode.MISSING_FILENAME


class TemplateNotFoundError(TemplateError):
    """Template not found by the configured loader."""

    code: ErrorCode | None = ErrorCode.TEMPLATE_NOT_FOUND


class TemplateCompileError(TemplateError):
    """A template could not be lowered into an executable program.

    The message gets the filename appended (``... in users.html``) or, for
    anonymous templates, ``... while compiling template``. The underlying
    Python ``SyntaxError``, when there is one, is chained as ``__cause__``.
    """

    code: ErrorCode | None = ErrorCode.INVALID_EXPRESSION

    def __init__(
        self,
        message: str,
        *,
        lineno: int | None = None,
        filename: str | None = None,
        source: str | None = None,
        code: ErrorCode | None = None,
    ):
        self.lineno = lineno
        self.filename = filename
        self.source = source
        super().__init__(message, code=code)

    def _format_message(self) -> str:
        where = f" in {self.filename}" if self.filename else " while compiling template"
        msg = f"{self.message}{where}"
        if self.lineno:
            msg += f" (line {self.lineno})"
        return msg


class TemplateSyntaxError(TemplateCompileError):
    """Open delimiter with no matching close delimiter before end of input.

    ``message`` is exactly ``Could not find matching close tag "<close>".``
    for whichever close delimiter is configured.
    """

    code: ErrorCode | None = ErrorCode.UNCLOSED_TAG

    def _format_message(self) -> str:
        if not (self.filename or self.lineno):
            return self.message
        location = self.filename or "<template>"
        if self.lineno:
            location += f":{self.lineno}"
        return f"{self.message}\n  --> {location}"


class TemplateRuntimeError(TemplateError):
    """Failure raised by etch while evaluating a tag.

    Attributes:
        suggestion: Optional actionable hint appended to the message.
    """

    code: ErrorCode | None = ErrorCode.RUNTIME_ERROR

    def __init__(
        self,
        message: str,
        *,
        suggestion: str | None = None,
        code: ErrorCode | None = None,
    ):
        self.suggestion = suggestion
        super().__init__(message, code=code)

    def _format_message(self) -> str:
        if self.suggestion:
            return f"{self.message}\n  Hint: {self.suggestion}"
        return self.message


class UndefinedError(TemplateRuntimeError):
    """A name in an expression is not bound in the render locals.

    If ``available_names`` is provided, a "Did you mean?" suggestion is
    included when a close match is found.

    Example:
        >>> env.render("<%= titl %>", title="Hi")
        UndefinedError: Undefined local 'titl'. Did you mean 'title'?
    """

    code: ErrorCode | None = ErrorCode.UNDEFINED_LOCAL

    def __init__(self, name: str, available_names: frozenset[str] | None = None):
        self.name = name
        message = f"Undefined local '{name}'"
        if available_names:
            from difflib import get_close_matches

            matches = get_close_matches(name, sorted(available_names), n=1, cutoff=0.6)
            if matches:
                message += f". Did you mean '{matches[0]}'?"
        super().__init__(
            message,
            suggestion=f"Pass '{name}' in locals, or read it as locals.get('{name}')",
        )


class FilterError(TemplateRuntimeError):
    """A filter was applied to a value it cannot handle."""

    code: ErrorCode | None = ErrorCode.FILTER_ERROR

    def __init__(self, filter_name: str, message: str):
        self.filter_name = filter_name
        super().__init__(f"Filter '{filter_name}': {message}")
