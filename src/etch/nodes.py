"""Instruction nodes produced by the etch parser.

A parsed template is a flat, ordered ``list[Node]``:

- `Literal`: text emitted verbatim
- `Output`: ``<%= expr %>`` (escaped) or ``<%- expr %>`` (raw), with an
  optional filter chain
- `Code`: ``<% code %>``, a statement or block boundary
- `Include`: ``<% include path %>``, another template's instructions inlined

Block structure (``for``/``if``/``while`` ... ``end``) is not represented
here; `Code` nodes are matched into blocks by the compiler.

Nodes are immutable and carry the 1-based line where they start.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Node:
    """Base class for all instruction nodes."""

    lineno: int


@dataclass(frozen=True, slots=True)
class Literal(Node):
    """Raw text between tags."""

    text: str


@dataclass(frozen=True, slots=True)
class FilterCall:
    """One ``| name:args`` segment of a filter chain.

    ``args`` is the raw argument text (``'", "'`` for ``join:", "``) or ``""``.
    """

    name: str
    args: str = ""


@dataclass(frozen=True, slots=True)
class Output(Node):
    """Output tag: ``<%= expr %>`` when ``escape`` is true, ``<%- expr %>`` otherwise."""

    expr: str
    filters: tuple[FilterCall, ...] = ()
    escape: bool = True


@dataclass(frozen=True, slots=True)
class Code(Node):
    """Code tag body, stripped of delimiters and of a trailing trim marker."""

    code: str


@dataclass(frozen=True, slots=True)
class Include(Node):
    """Inlined sub-template.

    ``filename`` and ``source`` identify the included file for diagnostics
    while its ``body`` executes.
    """

    name: str
    filename: str
    source: str
    body: Sequence[Node]
