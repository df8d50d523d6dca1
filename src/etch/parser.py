"""Scanner/parser: template text to an instruction sequence.

Tag kinds are decided by the character right after the open delimiter:

    <%= expr %>      escaped output
    <%- expr %>      raw output
    <% code %>       code (statement or block boundary), no output
    <% # note %>     comment, emits nothing
    <% include p %>  inline another template (resolved at parse time)

Output filter shorthand: a body starting with ``:`` is a filter chain,
``<%=: users | map:"name" | join:", " %>``. Everything after a filter name's
first ``:`` is that filter's raw argument text.

A ``-`` right before the close delimiter (``-%>``) consumes the one newline
that immediately follows the tag.

Carriage returns in literal text are dropped.
"""

from __future__ import annotations

import logging
import re

from etch.environment.exceptions import (
    ConfigurationError,
    ErrorCode,
    TemplateCompileError,
    TemplateSyntaxError,
)
from etch.includes import IncludeResolver
from etch.nodes import Code, FilterCall, Include, Literal, Node, Output

logger = logging.getLogger(__name__)

_INCLUDE_RE = re.compile(r"include(?:\s+|(?=[\"']))(?P<name>[^\s=(\[].*)\Z", re.DOTALL)

DEFAULT_OPEN = "<%"
DEFAULT_CLOSE = "%>"


def parse_filter_chain(body: str) -> tuple[str, tuple[FilterCall, ...]]:
    """Split an output-tag body into its base expression and filter chain.

    Example:
        >>> parse_filter_chain(': word | truncate: 2,"..."')
        (' word ', (FilterCall(name='truncate', args='2,"..."'),))
        >>> parse_filter_chain(" name ")
        (' name ', ())
    """
    if not body.startswith(":"):
        return body, ()
    expr, *segments = body[1:].split("|")
    filters = []
    for segment in segments:
        name, _, args = segment.partition(":")
        filters.append(FilterCall(name.strip(), args.strip()))
    return expr, tuple(filters)


def _include_name(code: str) -> str | None:
    match = _INCLUDE_RE.match(code)
    if match is None:
        return None
    name = match.group("name").strip()
    if len(name) >= 2 and name[0] == name[-1] and name[0] in "\"'":
        name = name[1:-1]
    return name


class Parser:
    """Parse one template source into a flat ``list[Node]``.

    Includes are resolved through ``includes`` and parsed recursively with the
    same delimiters; ``depth`` counts the include nesting of this source.

    Example:
        >>> Parser("Hi <%= name %>!").parse()
        [Literal(lineno=1, text='Hi '), Output(lineno=1, expr=' name ', ...), Literal(...)]
    """

    __slots__ = ("_close", "_depth", "_filename", "_includes", "_open", "_source")

    def __init__(
        self,
        source: str,
        *,
        filename: str | None = None,
        open: str = DEFAULT_OPEN,  # noqa: A002
        close: str = DEFAULT_CLOSE,
        includes: IncludeResolver | None = None,
        depth: int = 0,
    ):
        if not open or not close:
            raise ConfigurationError("Tag delimiters must be non-empty strings")
        self._source = source
        self._filename = filename
        self._open = open
        self._close = close
        self._includes = includes
        self._depth = depth

    def parse(self) -> list[Node]:
        src = self._source
        open_, close = self._open, self._close
        length = len(src)

        nodes: list[Node] = []
        text: list[str] = []
        text_line = 1
        lineno = 1
        i = 0

        while i < length:
            if src.startswith(open_, i):
                if text:
                    nodes.append(Literal(text_line, "".join(text)))
                    text = []
                tag_line = lineno
                i += len(open_)

                kind = src[i] if i < length else ""
                if kind in ("=", "-"):
                    i += 1

                end = src.find(close, i)
                if end < 0:
                    raise TemplateSyntaxError(
                        f'Could not find matching close tag "{close}".',
                        lineno=tag_line,
                        filename=self._filename,
                        source=src,
                    )

                body = src[i:end]
                lineno += body.count("\n")
                i = end + len(close)

                if body.endswith("-"):
                    body = body[:-1]
                    j = i
                    while j < length and src[j] == "\r":
                        j += 1
                    if j < length and src[j] == "\n":
                        i = j + 1
                        lineno += 1

                node = self._tag(kind, body, tag_line)
                if node is not None:
                    nodes.append(node)
                continue

            ch = src[i]
            i += 1
            if ch == "\r":
                continue
            if not text:
                text_line = lineno
            text.append(ch)
            if ch == "\n":
                lineno += 1

        if text:
            nodes.append(Literal(text_line, "".join(text)))
        return nodes

    def _tag(self, kind: str, body: str, lineno: int) -> Node | None:
        if kind in ("=", "-"):
            expr, filters = parse_filter_chain(body)
            return Output(lineno, expr, filters, escape=kind == "=")

        code = body.strip()
        if not code or code.startswith("#"):
            return None

        name = _include_name(code)
        if name is None:
            return Code(lineno, code)
        return self._include(name, lineno)

    def _include(self, name: str, lineno: int) -> Include:
        if not self._filename:
            raise ConfigurationError(
                "filename option is required for includes",
                code=ErrorCode.INCLUDE_WITHOUT_FILENAME,
            )
        if self._includes is None:
            raise ConfigurationError(
                f"Cannot include '{name}': no loader configured",
                code=ErrorCode.INCLUDE_WITHOUT_FILENAME,
            )
        if self._depth >= self._includes.max_depth:
            raise TemplateCompileError(
                f"Maximum include depth exceeded ({self._includes.max_depth}) "
                f"when including '{name}'",
                lineno=lineno,
                filename=self._filename,
                source=self._source,
                code=ErrorCode.INCLUDE_DEPTH,
            )

        path = self._includes.resolve(name, self._filename)
        source = self._includes.read(path)
        logger.debug("Inlining %s into %s:%d", path, self._filename, lineno)
        body = Parser(
            source,
            filename=path,
            open=self._open,
            close=self._close,
            includes=self._includes,
            depth=self._depth + 1,
        ).parse()
        return Include(lineno, name, path, source, body)


def parse(
    source: str,
    *,
    filename: str | None = None,
    open: str = DEFAULT_OPEN,  # noqa: A002
    close: str = DEFAULT_CLOSE,
    includes: IncludeResolver | None = None,
) -> list[Node]:
    """Parse ``source`` into an instruction sequence (see `Parser`)."""
    return Parser(
        source, filename=filename, open=open, close=close, includes=includes
    ).parse()
