"""Default globals available in all templates.

Globals sit below the render locals in name resolution, so a local named
``len`` shadows the builtin. Only side-effect-free builtins are exposed.

Usage:
    <% for i, user in enumerate(users): %>
      <li class="<%= 'odd' if i % 2 else 'even' %>"><%= user.name %></li>
    <% end %>
    <%= escape(raw_html) %>
"""

from __future__ import annotations

from typing import Any

from etch.utils.html import html_escape

DEFAULT_GLOBALS: dict[str, Any] = {
    "abs": abs,
    "all": all,
    "any": any,
    "bool": bool,
    "dict": dict,
    "enumerate": enumerate,
    "escape": html_escape,
    "float": float,
    "int": int,
    "isinstance": isinstance,
    "len": len,
    "list": list,
    "max": max,
    "min": min,
    "range": range,
    "repr": repr,
    "reversed": reversed,
    "round": round,
    "set": set,
    "sorted": sorted,
    "str": str,
    "sum": sum,
    "tuple": tuple,
    "zip": zip,
}
