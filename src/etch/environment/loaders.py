"""Template loaders: the ``read(path) -> text`` capability.

Loaders give the Environment template source by root-relative path. They
implement ``get_source(path) -> str``.

Built-in Loaders:
- `FileSystemLoader`: Read from a root directory
- `DictLoader`: Read from an in-memory dictionary (testing/embedded)
- `FunctionLoader`: Wrap a callable as a loader

Custom Loaders:
Implement the Loader protocol:
    ```python
    class DatabaseLoader:
        def get_source(self, path: str) -> str:
            row = db.query("SELECT source FROM templates WHERE path = ?", path)
            if not row:
                raise TemplateNotFoundError(f"Template '{path}' not found")
            return row.source
    ```

Errors:
A missing template raises `TemplateNotFoundError`. Any other I/O error
(permissions, decoding, ...) propagates unchanged.

"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Protocol

from etch.environment.exceptions import TemplateNotFoundError


class Loader(Protocol):
    """Anything with ``get_source(path) -> str``."""

    def get_source(self, path: str) -> str: ...


class FileSystemLoader:
    """Load templates from a root directory.

    Paths are joined onto the root; absolute paths are used as given.

    Example:
        >>> loader = FileSystemLoader("views/")
        >>> loader.get_source("users/show.html")
        '<h1><%= user.name %></h1>'

    Raises:
        TemplateNotFoundError: If the file does not exist
    """

    __slots__ = ("_encoding", "_root")

    def __init__(self, root: str | Path, encoding: str = "utf-8"):
        self._root = Path(root)
        self._encoding = encoding

    @property
    def root(self) -> Path:
        return self._root

    def get_source(self, path: str) -> str:
        """Read the template at ``root / path``."""
        full = self._root / path
        if not full.is_file():
            raise TemplateNotFoundError(f"Template '{path}' not found in: {self._root}")
        return full.read_text(self._encoding)


class DictLoader:
    """Load templates from an in-memory dictionary.

    Example:
        >>> loader = DictLoader({
        ...     "layout.html": "<body><%- body %></body>",
        ...     "index.html": "<h1><%= title %></h1>",
        ... })
        >>> env = Environment(loader=loader)
        >>> env.render_file("index", title="Hi")
        '<h1>Hi</h1>'

    Raises:
        TemplateNotFoundError: If the path is not in the mapping
    """

    __slots__ = ("_mapping",)

    def __init__(self, mapping: dict[str, str]):
        self._mapping = mapping

    def get_source(self, path: str) -> str:
        if path not in self._mapping:
            from difflib import get_close_matches

            available = sorted(self._mapping)
            msg = f"Template '{path}' not found"
            matches = get_close_matches(path, available, n=1, cutoff=0.6)
            if matches:
                msg += f". Did you mean '{matches[0]}'?"
            elif available:
                msg += f". Available: {', '.join(available[:10])}"
                if len(available) > 10:
                    msg += f" ... ({len(available)} total)"
            raise TemplateNotFoundError(msg)
        return self._mapping[path]


class FunctionLoader:
    """Wrap a callable as a loader.

    The callable takes a path and returns the source, or ``None`` when the
    template does not exist.

    Example:
        >>> loader = FunctionLoader(lambda path: TEMPLATES.get(path))
    """

    __slots__ = ("_func",)

    def __init__(self, func: Callable[[str], str | None]):
        self._func = func

    def get_source(self, path: str) -> str:
        source = self._func(path)
        if source is None:
            raise TemplateNotFoundError(f"Template '{path}' not found")
        return source
