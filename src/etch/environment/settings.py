"""Configuration for etch environments and render calls.

Options are plain keyword arguments. Both snake_case names and the
camelCase spellings used by older configuration files are accepted:

    Settings.from_options({"viewExt": "tpl", "compileDebug": False})
    Settings(view_ext=".tpl", compile_debug=False)

Unknown keys are not settings: at render time they become template data.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field, fields, replace
from typing import Any, ClassVar

from etch.environment.exceptions import ConfigurationError


def normalize_view_ext(ext: str | None) -> str:
    """``"html"`` and ``".html"`` both become ``".html"``; empty stays empty."""
    if not ext:
        return ""
    return "." + ext.lstrip(".")


@dataclass(frozen=True, slots=True)
class Settings:
    """Resolved options for one environment or one render call.

    Attributes:
        root: Base directory for template and include paths
        layout: Template id wrapping every render (``None`` disables)
        view_ext: Extension appended to template ids without one
        cache: Cache compiled templates and sources (requires a filename)
        open: Opening tag delimiter
        close: Closing tag delimiter
        filters: Extra filters merged over the registry
        locals: Ambient data beneath render-time data
        debug: Log the lowered program; implies ``compile_debug``
        compile_debug: Annotate render errors with file/line/source context
        scope: Receiver exposed to templates as ``self``
        write_resp: Send output to the response sink instead of returning it
    """

    root: str | None = None
    layout: str | None = None
    view_ext: str = ".html"
    cache: bool = False
    open: str = "<%"
    close: str = "%>"
    filters: Mapping[str, Callable[..., Any]] = field(default_factory=dict)
    locals: Mapping[str, Any] = field(default_factory=dict)
    debug: bool = False
    compile_debug: bool = True
    scope: Any = None
    write_resp: bool = True

    ALIASES: ClassVar[dict[str, str]] = {
        "viewExt": "view_ext",
        "compileDebug": "compile_debug",
        "writeResp": "write_resp",
    }

    @property
    def diagnostics(self) -> bool:
        """True when render errors get annotated with source context."""
        return self.compile_debug or self.debug

    @classmethod
    def names(cls) -> frozenset[str]:
        return frozenset(f.name for f in fields(cls)) | frozenset(cls.ALIASES)

    @classmethod
    def split(cls, options: Mapping[str, Any]) -> tuple[dict[str, Any], dict[str, Any]]:
        """Partition ``options`` into (setting overrides, template data)."""
        known = cls.names()
        settings: dict[str, Any] = {}
        data: dict[str, Any] = {}
        for key, value in options.items():
            if key in known:
                settings[cls.ALIASES.get(key, key)] = value
            else:
                data[key] = value
        return settings, data

    @classmethod
    def from_options(cls, options: Mapping[str, Any] | None = None, **overrides: Any) -> Settings:
        """Build settings from a mapping; keys that are not settings are rejected."""
        merged = {**(options or {}), **overrides}
        settings, unknown = cls.split(merged)
        if unknown:
            raise ConfigurationError(f"Unknown option(s): {', '.join(sorted(unknown))}")
        return cls()._apply(settings)

    def merge(self, overrides: Mapping[str, Any]) -> Settings:
        """Return a copy with ``overrides`` (already split) applied."""
        if not overrides:
            return self
        return self._apply(overrides)

    def _apply(self, overrides: Mapping[str, Any]) -> Settings:
        values = dict(overrides)
        if "view_ext" in values:
            values["view_ext"] = normalize_view_ext(values["view_ext"])
        if "root" in values and values["root"] is not None:
            values["root"] = str(values["root"])
        for key in ("filters", "locals"):
            if values.get(key) is None and key in values:
                values[key] = {}
        return replace(self, **values)
