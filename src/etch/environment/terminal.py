"""ANSI colouring for terminal diagnostics.

Used by ``TemplateError.format_compact()``. Exception messages themselves
stay plain text; colour is applied only when the compact summary is built.

Colour is enabled when stdout is a TTY, disabled by ``NO_COLOR`` and forced
by ``FORCE_COLOR`` (which wins over ``NO_COLOR``).
"""

from __future__ import annotations

import os
import re
import sys
from typing import Literal

_COLORS = {
    "reset": "\033[0m",
    "bold": "\033[1m",
    "dim": "\033[2m",
    "red": "\033[31m",
    "green": "\033[32m",
    "yellow": "\033[33m",
    "cyan": "\033[36m",
    "bright_red": "\033[91m",
}

ColorName = Literal["reset", "bold", "dim", "red", "green", "yellow", "cyan", "bright_red"]

_ANSI_RE = re.compile(r"\x1B(?:[@-Z\\-_]|\[[0-?]*[ -/]*[@-~])")


def _should_use_colors() -> bool:
    if os.environ.get("FORCE_COLOR"):
        return True
    if os.environ.get("NO_COLOR"):
        return False
    return sys.stdout.isatty()


_USE_COLORS = _should_use_colors()


def supports_color() -> bool:
    """True when diagnostics will be coloured."""
    return _USE_COLORS


def colorize(text: str, *colors: ColorName) -> str:
    """Wrap ``text`` in the given ANSI codes, or return it unchanged.

    Example:
        >>> colorize("Error", "red", "bold")  # colours off
        'Error'
    """
    if not _USE_COLORS or not colors:
        return text
    prefix = "".join(_COLORS.get(color, "") for color in colors)
    if not prefix:
        return text
    return f"{prefix}{text}{_COLORS['reset']}"


def strip_colors(text: str) -> str:
    """Remove ANSI escape sequences from ``text``."""
    return _ANSI_RE.sub("", text)


def error_code(text: str) -> str:
    return colorize(text, "bright_red", "bold")


def location(text: str) -> str:
    return colorize(text, "cyan")


def line_number(text: str) -> str:
    return colorize(text, "yellow")


def error_line(text: str) -> str:
    return colorize(text, "bright_red")


def hint(text: str) -> str:
    return colorize(text, "green")


def dim_text(text: str) -> str:
    return colorize(text, "dim")


def format_error_header(code: str | None, message: str) -> str:
    """Prefix ``message`` with a coloured error code when one is given.

    Example:
        >>> format_error_header("E-RUN-001", "Undefined local")  # colours off
        'E-RUN-001: Undefined local'
    """
    if code:
        return f"{error_code(code + ':')} {message}"
    return message


def format_source_line(lineno: int, content: str, is_error: bool = False) -> str:
    """Format one numbered source line, marking and highlighting the failing one."""
    marker = ">>" if is_error else "  "
    num = line_number(f"{marker}{lineno:>4}")
    body = error_line(content) if is_error else dim_text(content)
    return f"{num} | {body}"
