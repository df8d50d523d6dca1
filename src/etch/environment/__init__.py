"""Etch Environment package: configuration, loaders, filters, cache, errors.

Re-exports the public symbols so that ``from etch.environment import
Environment`` works regardless of the module layout.
"""

# exceptions must load before core: the template runtime imports it while
# core is still initializing.
from etch.environment.exceptions import (
    ConfigurationError,
    ErrorCode,
    FilterError,
    SourceSnippet,
    TemplateCompileError,
    TemplateError,
    TemplateNotFoundError,
    TemplateRuntimeError,
    TemplateSyntaxError,
    UndefinedError,
    annotate_error,
    build_source_snippet,
)
from etch.environment.cache import TemplateCache
from etch.environment.core import (
    Environment,
    clear_cache,
    compile,
    get_default_environment,
    register_filter,
    render,
    render_async,
    render_file,
    render_file_async,
)
from etch.environment.filters import DEFAULT_FILTERS
from etch.environment.loaders import DictLoader, FileSystemLoader, FunctionLoader, Loader
from etch.environment.registry import FilterRegistry
from etch.environment.settings import Settings

__all__ = [
    "DEFAULT_FILTERS",
    "ConfigurationError",
    "DictLoader",
    "Environment",
    "ErrorCode",
    "FileSystemLoader",
    "FilterError",
    "FilterRegistry",
    "FunctionLoader",
    "Loader",
    "Settings",
    "SourceSnippet",
    "TemplateCache",
    "TemplateCompileError",
    "TemplateError",
    "TemplateNotFoundError",
    "TemplateRuntimeError",
    "TemplateSyntaxError",
    "UndefinedError",
    "annotate_error",
    "build_source_snippet",
    "clear_cache",
    "compile",
    "get_default_environment",
    "register_filter",
    "render",
    "render_async",
    "render_file",
    "render_file_async",
]
