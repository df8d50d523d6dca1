"""Built-in filters.

Filters transform an output tag's value before it is emitted:

    <%=: items | reverse | first | capitalize %>
    <%=: users | map:"name" | join:", " %>
    <%=: title | truncate: 20, "..." %>

Each filter is called as ``filter(value, *args)``; the text after the
filter name's ``:`` is parsed as the argument list. Filters are pure: they
never mutate their input.

Register more with ``Environment(filters={...})`` or
``env.filters["name"] = func``.
"""

from __future__ import annotations

import json as _json
import re
from collections.abc import Callable, Iterable, Mapping
from typing import Any

from etch.environment.exceptions import FilterError


def _field(item: Any, key: Any) -> Any:
    """Read ``key`` from a mapping or attribute ``key`` from an object."""
    if isinstance(item, Mapping):
        return item[key]
    try:
        return getattr(item, key)
    except (AttributeError, TypeError):
        return item[key]


def _filter_reverse(value: Any) -> Any:
    if isinstance(value, str):
        return value[::-1]
    return list(value)[::-1]


def _filter_first(value: Any) -> Any:
    if isinstance(value, str):
        if not value:
            raise FilterError("first", "empty string has no first element")
        return value[0]
    for item in value:
        return item
    raise FilterError("first", "empty sequence has no first element")


def _filter_last(value: Any) -> Any:
    items = value if isinstance(value, str) else list(value)
    if not items:
        raise FilterError("last", "empty sequence has no last element")
    return items[-1]


def _filter_capitalize(value: Any) -> str:
    s = str(value)
    return s[:1].upper() + s[1:]


def _filter_upcase(value: Any) -> str:
    return str(value).upper()


def _filter_downcase(value: Any) -> str:
    return str(value).lower()


def _filter_map(value: Iterable[Any], key: Any) -> list[Any]:
    return [_field(item, key) for item in value]


def _filter_join(value: Iterable[Any], sep: str = ",") -> str:
    return sep.join(str(item) for item in value)


def _filter_truncate(value: Any, length: int, suffix: str = "") -> str:
    s = str(value)
    if len(s) > length:
        return s[:length] + suffix
    return s


def _filter_truncate_words(value: Any, count: int) -> str:
    return " ".join(str(value).split(" ")[:count])


def _filter_length(value: Any) -> int:
    return len(value)


def _filter_sort(value: Iterable[Any]) -> list[Any]:
    return sorted(value)


def _filter_sort_by(value: Iterable[Any], key: Any) -> list[Any]:
    return sorted(value, key=lambda item: _field(item, key))


def _filter_plus(value: Any, other: Any) -> Any:
    return value + other


def _filter_minus(value: Any, other: Any) -> Any:
    return value - other


def _filter_times(value: Any, other: Any) -> Any:
    return value * other


def _filter_divided_by(value: Any, other: Any) -> Any:
    return value / other


def _filter_replace(value: Any, pattern: str | re.Pattern[str], repl: str = "") -> str:
    if isinstance(pattern, re.Pattern):
        return pattern.sub(repl, str(value))
    return str(value).replace(pattern, repl)


def _filter_prepend(value: Any, prefix: Any) -> str:
    return f"{prefix}{value}"


def _filter_append(value: Any, suffix: Any) -> str:
    return f"{value}{suffix}"


def _filter_get(value: Any, key: Any) -> Any:
    return _field(value, key)


def _filter_json(value: Any) -> str:
    return _json.dumps(value)


DEFAULT_FILTERS: dict[str, Callable[..., Any]] = {
    "append": _filter_append,
    "capitalize": _filter_capitalize,
    "divided_by": _filter_divided_by,
    "downcase": _filter_downcase,
    "first": _filter_first,
    "get": _filter_get,
    "join": _filter_join,
    "json": _filter_json,
    "last": _filter_last,
    "length": _filter_length,
    "map": _filter_map,
    "minus": _filter_minus,
    "plus": _filter_plus,
    "prepend": _filter_prepend,
    "replace": _filter_replace,
    "reverse": _filter_reverse,
    "size": _filter_length,
    "sort": _filter_sort,
    "sort_by": _filter_sort_by,
    "times": _filter_times,
    "truncate": _filter_truncate,
    "truncate_words": _filter_truncate_words,
    "upcase": _filter_upcase,
}
