"""In-memory template cache.

Two maps, both filled lazily and emptied only by `TemplateCache.clear`:

- compiled templates, keyed by filename
- raw template sources, keyed by ``path + ":string"``

There is no invalidation: if template files change on disk, clear the cache.

Thread-Safety:
Fetch-or-create holds a re-entrant lock so each key is compiled (or read)
once; compiling a template may read include sources from the same cache on
the same thread. Hits on populated keys do not take the lock.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from etch.template import Template

logger = logging.getLogger(__name__)


class TemplateCache:
    """Compiled-template and source cache shared by an Environment.

    Example:
        >>> cache = TemplateCache()
        >>> cache.get_source("index.html", loader.get_source)
        '<h1><%= title %></h1>'
        >>> cache.stats()
        {'compiled': 0, 'sources': 1, 'hits': 0, 'misses': 1}
    """

    __slots__ = ("_compiled", "_hits", "_lock", "_misses", "_sources")

    def __init__(self) -> None:
        self._compiled: dict[str, Template] = {}
        self._sources: dict[str, str] = {}
        self._lock = threading.RLock()
        self._hits = 0
        self._misses = 0

    def get_template(self, filename: str, factory: Callable[[], Template]) -> Template:
        """Return the template cached under ``filename``, compiling it on a miss."""
        template = self._compiled.get(filename)
        if template is not None:
            self._hits += 1
            logger.debug("Template cache hit: %s", filename)
            return template
        with self._lock:
            template = self._compiled.get(filename)
            if template is None:
                self._misses += 1
                logger.debug("Template cache miss: %s", filename)
                template = factory()
                self._compiled[filename] = template
            return template

    def get_source(self, path: str, read: Callable[[str], str]) -> str:
        """Return the raw source for ``path``, reading it on a miss."""
        key = f"{path}:string"
        source = self._sources.get(key)
        if source is not None:
            self._hits += 1
            return source
        with self._lock:
            source = self._sources.get(key)
            if source is None:
                self._misses += 1
                logger.debug("Source cache miss: %s", path)
                source = read(path)
                self._sources[key] = source
            return source

    def clear(self) -> None:
        """Drop every compiled template and cached source."""
        with self._lock:
            self._compiled = {}
            self._sources = {}
            self._hits = 0
            self._misses = 0

    def stats(self) -> dict[str, int]:
        return {
            "compiled": len(self._compiled),
            "sources": len(self._sources),
            "hits": self._hits,
            "misses": self._misses,
        }

    def __contains__(self, filename: object) -> bool:
        return filename in self._compiled

    def __len__(self) -> int:
        return len(self._compiled)
