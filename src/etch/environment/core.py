"""Environment: the render orchestrator.

An Environment owns everything a render needs besides the data: settings,
the filter registry, globals, the loader and the template cache. Module-level
``etch.render`` and friends use a lazily created default Environment.

Render Pipeline:
    ```
    options ──split──► settings overrides + template data
    source ──parse──► instructions ──compile──► Template   (cached by filename)
    Template.execute(context) ──► html ──layout?──► layout.execute(body=html)
    ```

Context Composition:
    ``{**env locals, **keyword data, **call locals}``; explicit ``locals``
    passed to the call win over keyword data.

Thread-Safety:
    Settings are frozen, the filter registry is copy-on-write, and the cache
    locks fetch-or-create. Renders share nothing else.

"""

from __future__ import annotations

import asyncio
import logging
import posixpath
import threading
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Any

from etch.compiler import Compiler
from etch.environment.cache import TemplateCache
from etch.environment.exceptions import ConfigurationError
from etch.environment.filters import DEFAULT_FILTERS
from etch.environment.globals import DEFAULT_GLOBALS
from etch.environment.loaders import FileSystemLoader, Loader
from etch.environment.registry import FilterRegistry
from etch.environment.settings import Settings
from etch.includes import IncludeResolver
from etch.parser import Parser
from etch.template import Template
from etch.template.core import run_sync

logger = logging.getLogger(__name__)


def template_path(name: str, view_ext: str) -> str:
    """Template id → root-relative filename (``view_ext`` added when missing)."""
    if posixpath.splitext(name)[1]:
        return name
    return name + view_ext


class Environment:
    """Central configuration and entry point for rendering.

    Args:
        root: Base directory for templates and includes (default: cwd).
            Ignored for reading when ``loader`` is given.
        loader: Source of template text (default: ``FileSystemLoader(root)``)
        globals: Extra globals layered over the defaults
        **options: Any `Settings` key (snake_case or camelCase)

    Example:
        >>> env = Environment(root="views", cache=True, layout="layout")
        >>> env.render_file("users/index", users=users)
        '<html>...</html>'

        >>> env.filters["shout"] = lambda s: s.upper() + "!"
        >>> env.render("<%=: name | shout %>", name="hi")
        'HI!'
    """

    def __init__(
        self,
        *,
        root: str | Path | None = None,
        loader: Loader | None = None,
        globals: Mapping[str, Any] | None = None,  # noqa: A002
        **options: Any,
    ):
        if root is not None:
            options["root"] = root
        self.settings = Settings.from_options(options)
        self.filters = FilterRegistry(DEFAULT_FILTERS)
        self.filters.update(self.settings.filters)
        self.globals: dict[str, Any] = {**DEFAULT_GLOBALS, **(globals or {})}
        self._custom_loader = loader is not None
        self.loader: Loader = loader or FileSystemLoader(self.settings.root or ".")
        self._cache = TemplateCache()

    @property
    def cache(self) -> TemplateCache:
        return self._cache

    # ─────────────────────────────────────────────────────────────────────────
    # Compilation
    # ─────────────────────────────────────────────────────────────────────────

    def from_string(self, source: str, *, filename: str | None = None, **options: Any) -> Template:
        """Compile ``source`` without consulting the cache."""
        settings = self.settings.merge(self._settings_only(options))
        return self._compile(source, settings, filename)

    def compile(self, source: str, **options: Any) -> Template:
        """Compile ``source``; with ``cache`` the result is shared per filename."""
        overrides, data = Settings.split(options)
        filename = data.pop("filename", None)
        if data:
            raise ConfigurationError(f"Unknown option(s): {', '.join(sorted(data))}")
        settings = self.settings.merge(overrides)
        return self._compile_cached(source, settings, filename)

    def get_template(self, name: str, **options: Any) -> Template:
        """Load and compile the template ``name`` (``view_ext`` added when missing)."""
        settings = self.settings.merge(self._settings_only(options))
        return self._load(template_path(name, settings.view_ext), settings)

    def _settings_only(self, options: Mapping[str, Any]) -> dict[str, Any]:
        overrides, unknown = Settings.split(options)
        if unknown:
            raise ConfigurationError(f"Unknown option(s): {', '.join(sorted(unknown))}")
        return overrides

    def _loader_for(self, settings: Settings) -> Loader:
        """The configured loader, or one for a per-call ``root`` override."""
        if self._custom_loader or settings.root == self.settings.root:
            return self.loader
        return FileSystemLoader(settings.root or ".")

    def _read(self, path: str, settings: Settings) -> str:
        loader = self._loader_for(settings)
        if settings.cache:
            return self._cache.get_source(path, loader.get_source)
        return loader.get_source(path)

    def _load(self, filename: str, settings: Settings) -> Template:
        if settings.cache:
            return self._cache.get_template(
                filename, lambda: self._compile(self._read(filename, settings), settings, filename)
            )
        return self._compile(self._read(filename, settings), settings, filename)

    def _compile_cached(self, source: str, settings: Settings, filename: str | None) -> Template:
        if not settings.cache:
            return self._compile(source, settings, filename)
        if not filename:
            raise ConfigurationError('"cache" option requires "filename".')
        return self._cache.get_template(filename, lambda: self._compile(source, settings, filename))

    def _compile(self, source: str, settings: Settings, filename: str | None) -> Template:
        includes = IncludeResolver(
            self._loader_for(settings).get_source,
            view_ext=settings.view_ext,
            cache=self._cache if settings.cache else None,
        )
        nodes = Parser(
            source,
            filename=filename,
            open=settings.open,
            close=settings.close,
            includes=includes,
        ).parse()
        filters = self.filters.snapshot(settings.filters)
        program = Compiler(filters, filename=filename, source=source).compile(nodes)
        template = Template(
            program,
            filename=filename,
            source=source,
            globals=self.globals,
            compile_debug=settings.diagnostics,
        )
        if settings.debug:
            logger.info("Program for %s:\n%s", filename or "<template>", template.listing())
        return template

    # ─────────────────────────────────────────────────────────────────────────
    # Rendering
    # ─────────────────────────────────────────────────────────────────────────

    def _prepare(self, options: Mapping[str, Any]) -> tuple[Settings, dict[str, Any], str | None]:
        """Split call options into (settings, context, filename)."""
        overrides, data = Settings.split(options)
        filename = data.pop("filename", None)
        call_locals = overrides.get("locals") or {}
        settings = self.settings.merge(overrides)
        context = {**self.settings.locals, **data, **call_locals}
        return settings, context, filename

    async def _execute(
        self, template: Template, settings: Settings, context: dict[str, Any]
    ) -> str:
        html = await template.execute(
            context, scope=settings.scope, compile_debug=settings.diagnostics
        )
        if not settings.layout:
            return html
        layout = await asyncio.to_thread(
            self._load, template_path(settings.layout, settings.view_ext), settings
        )
        return await layout.execute(
            {**context, "body": html},
            scope=settings.scope,
            compile_debug=settings.diagnostics,
        )

    async def render_async(self, source: str, **options: Any) -> str:
        """Compile (or fetch from cache) and render ``source``.

        Compiling runs in a worker thread, since includes are read through the
        synchronous loader.

        Args:
            source: Template text
            **options: Settings keys, ``filename``, and template data

        Raises:
            ConfigurationError: ``cache`` without ``filename``
        """
        settings, context, filename = self._prepare(options)
        template = await asyncio.to_thread(self._compile_cached, source, settings, filename)
        return await self._execute(template, settings, context)

    def render(self, source: str, **options: Any) -> str:
        """Synchronous `render_async`."""
        return run_sync(self.render_async(source, **options), "render")

    async def render_file_async(self, path: str, **options: Any) -> str:
        """Render the template file ``path`` (relative to ``root``).

        Loading and compiling run in a worker thread; loaders are synchronous.
        """
        settings, context, _ = self._prepare(options)
        filename = template_path(path, settings.view_ext)
        template = await asyncio.to_thread(self._load, filename, settings)
        return await self._execute(template, settings, context)

    def render_file(self, path: str, **options: Any) -> str:
        """Synchronous `render_file_async`."""
        return run_sync(self.render_file_async(path, **options), "render_file")

    def clear_cache(self) -> None:
        """Empty the compiled-template and source caches."""
        self._cache.clear()
        logger.debug("Template cache cleared")

    def __repr__(self) -> str:
        return f"<Environment root={self.settings.root!r} filters={len(self.filters)}>"


# ─────────────────────────────────────────────────────────────────────────────
# Default environment
# ─────────────────────────────────────────────────────────────────────────────

_default_env: Environment | None = None
_default_lock = threading.Lock()


def get_default_environment() -> Environment:
    """The process-wide Environment behind the module-level functions."""
    global _default_env
    env = _default_env
    if env is None:
        with _default_lock:
            if _default_env is None:
                _default_env = Environment()
            env = _default_env
    return env


def render(source: str, **options: Any) -> str:
    return get_default_environment().render(source, **options)


async def render_async(source: str, **options: Any) -> str:
    return await get_default_environment().render_async(source, **options)


def render_file(path: str, **options: Any) -> str:
    return get_default_environment().render_file(path, **options)


async def render_file_async(path: str, **options: Any) -> str:
    return await get_default_environment().render_file_async(path, **options)


def compile(source: str, **options: Any) -> Template:  # noqa: A001
    return get_default_environment().compile(source, **options)


def clear_cache() -> None:
    get_default_environment().clear_cache()


def register_filter(name: str, func: Callable[..., Any]) -> None:
    """Add ``func`` to the default environment's filters."""
    get_default_environment().filters[name] = func
