"""Include resolution for ``<% include name %>``.

Include paths are relative to the including template's filename, in POSIX
form and relative to the environment root:

    users/index.html + "show"       -> users/show.html
    users/index.html + "../nav"     -> nav.html
    users/index.html + "style.css"  -> users/style.css   (has an extension)

Whatever the extension, the included text goes through the same scanner, so
a file without tags is inlined verbatim.
"""

from __future__ import annotations

import posixpath
from collections.abc import Callable
from typing import TYPE_CHECKING

from etch.environment.exceptions import ConfigurationError, ErrorCode

if TYPE_CHECKING:
    from etch.environment.cache import TemplateCache

DEFAULT_MAX_INCLUDE_DEPTH = 50


def resolve_include(name: str, parent_filename: str | None, view_ext: str) -> str:
    """Resolve ``name`` against the directory of ``parent_filename``.

    ``view_ext`` is appended when ``name`` has no extension.

    Raises:
        ConfigurationError: If there is no parent filename to resolve against.
    """
    if not parent_filename:
        raise ConfigurationError(
            "filename option is required for includes",
            code=ErrorCode.INCLUDE_WITHOUT_FILENAME,
        )
    parent_dir = posixpath.dirname(parent_filename.replace("\\", "/"))
    path = posixpath.normpath(posixpath.join(parent_dir, name))
    if not posixpath.splitext(name)[1]:
        path += view_ext
    return path


class IncludeResolver:
    """Resolve and read included templates for the parser.

    Attributes:
        view_ext: Extension appended to bare include names
        max_depth: Deepest include nesting allowed before compilation fails

    Reads go through ``cache`` (keyed ``path + ":string"``) when one is given.
    """

    __slots__ = ("_cache", "_read", "max_depth", "view_ext")

    def __init__(
        self,
        read: Callable[[str], str],
        *,
        view_ext: str = ".html",
        cache: TemplateCache | None = None,
        max_depth: int = DEFAULT_MAX_INCLUDE_DEPTH,
    ):
        self._read = read
        self._cache = cache
        self.view_ext = view_ext
        self.max_depth = max_depth

    def resolve(self, name: str, parent_filename: str | None) -> str:
        return resolve_include(name, parent_filename, self.view_ext)

    def read(self, path: str) -> str:
        if self._cache is not None:
            return self._cache.get_source(path, self._read)
        return self._read(path)
