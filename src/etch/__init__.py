"""Etch: embedded-tag templates for Python, rendered asynchronously.

Templates mix literal text with tags; a template is compiled once into an op
tree and rendered against a data context.

Quickstart:
    >>> import etch
    >>> etch.render("Hello, <%= name %>!", name="<World>")
    'Hello, &lt;World&gt;!'

Tags:
    <%= expr %>       escaped output
    <%- expr %>       raw output
    <% code %>        statements and blocks: for/if/while ... end
    <% include p %>   inline another template
    <%=: users | map:"name" | join:", " %>   filter chain
    <% code -%>       also consume the newline after the tag

File-based templates:
    >>> from etch import Environment
    >>> env = Environment(root="views", cache=True, layout="layout")
    >>> env.render_file("users/index", users=users)

Architecture:
Template Source → Parser → instruction sequence → Compiler → op tree → render

Pipeline stages:
1. **Parser**: Scans tags and literal text into a flat instruction list,
   inlining includes
2. **Compiler**: Matches blocks, parses expressions with ``ast`` and binds
   filters against the registry snapshot
3. **Template**: Walks the op tree asynchronously, resolving deferred values
   (awaitables, futures, coroutine functions) as it goes

Strict Names:
Undefined names raise `UndefinedError`. Read optional data through the
``locals`` mapping: ``<%= locals.get("title", "Untitled") %>``.

"""

from etch.environment import (
    DEFAULT_FILTERS,
    ConfigurationError,
    DictLoader,
    Environment,
    ErrorCode,
    FileSystemLoader,
    FilterError,
    FilterRegistry,
    FunctionLoader,
    Loader,
    Settings,
    SourceSnippet,
    TemplateCache,
    TemplateCompileError,
    TemplateError,
    TemplateNotFoundError,
    TemplateRuntimeError,
    TemplateSyntaxError,
    UndefinedError,
    annotate_error,
    build_source_snippet,
    clear_cache,
    compile,
    get_default_environment,
    register_filter,
    render,
    render_async,
    render_file,
    render_file_async,
)
from etch.parser import parse
from etch.render_context import RenderContext
from etch.template import Template, resolve
from etch.utils.html import html_escape
from etch.views import ResponseSink, ViewRenderer

__version__ = "0.1.0"

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
    "RenderContext",
    "ResponseSink",
    "Settings",
    "SourceSnippet",
    "Template",
    "TemplateCache",
    "TemplateCompileError",
    "TemplateError",
    "TemplateNotFoundError",
    "TemplateRuntimeError",
    "TemplateSyntaxError",
    "UndefinedError",
    "ViewRenderer",
    "__version__",
    "annotate_error",
    "build_source_snippet",
    "clear_cache",
    "compile",
    "get_default_environment",
    "html_escape",
    "parse",
    "register_filter",
    "render",
    "render_async",
    "render_file",
    "render_file_async",
    "resolve",
]
