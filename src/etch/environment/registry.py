"""Filter registry for etch environments.

Dict-like and copy-on-write: every mutation swaps in a new dict, so a
template compiled earlier keeps the snapshot it was compiled against.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator, Mapping
from typing import Any

FilterFunc = Callable[..., Any]


class FilterRegistry:
    """Name → filter function mapping.

    Supports:
        - env.filters['name'] = func
        - env.filters.update({'name': func})
        - func = env.filters['name']
        - 'name' in env.filters
        - env.filters.snapshot() for compilation
    """

    __slots__ = ("_filters",)

    def __init__(self, filters: Mapping[str, FilterFunc] | None = None):
        self._filters: dict[str, FilterFunc] = dict(filters or {})

    def __getitem__(self, name: str) -> FilterFunc:
        return self._filters[name]

    def __setitem__(self, name: str, func: FilterFunc) -> None:
        new = self._filters.copy()
        new[name] = func
        self._filters = new

    def __delitem__(self, name: str) -> None:
        new = self._filters.copy()
        del new[name]
        self._filters = new

    def __contains__(self, name: object) -> bool:
        return name in self._filters

    def __iter__(self) -> Iterator[str]:
        return iter(self._filters)

    def __len__(self) -> int:
        return len(self._filters)

    def get(self, name: str, default: FilterFunc | None = None) -> FilterFunc | None:
        return self._filters.get(name, default)

    def update(self, mapping: Mapping[str, FilterFunc]) -> None:
        """Register several filters at once."""
        new = self._filters.copy()
        new.update(mapping)
        self._filters = new

    def snapshot(self, extra: Mapping[str, FilterFunc] | None = None) -> Mapping[str, FilterFunc]:
        """The current mapping, with ``extra`` layered on top when given.

        The returned dict is never mutated by the registry afterwards.
        """
        if not extra:
            return self._filters
        merged = self._filters.copy()
        merged.update(extra)
        return merged

    def keys(self):
        return self._filters.keys()

    def items(self):
        return self._filters.items()
