"""HTML escaping for etch output tags.

``<%= expr %>`` passes its value through `html_escape`; ``<%- expr %>`` does not.

Escaping is a single left-to-right pass via ``str.translate()``, so the output
of one substitution is never re-scanned. There is no entity awareness:
``&nbsp;`` becomes ``&amp;nbsp;``.

"""

from __future__ import annotations

from typing import Any

_ESCAPE_TABLE = str.maketrans(
    {
        "&": "&amp;",
        "<": "&lt;",
        ">": "&gt;",
        "'": "&#39;",
        '"': "&quot;",
    }
)


def to_str(value: Any) -> str:
    """Convert an evaluated value to output text (``None`` renders as ``""``)."""
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return str(value)


def html_escape(value: Any) -> str:
    """Escape ``& < > ' "`` in ``value``.

    Example:
        >>> html_escape("&nbsp;<script>")
        '&amp;nbsp;&lt;script&gt;'
        >>> html_escape("The Jones's")
        'The Jones&#39;s'

    Complexity: O(n), one pass.
    """
    return to_str(value).translate(_ESCAPE_TABLE)
