"""App-level view rendering.

`ViewRenderer` is the piece a web application wires in: a root directory of
views, a layout wrapped around every page, caching on, and the rendered HTML
written straight to the response.

    views = ViewRenderer("views")

    async def show_user(request, response):
        await views.render("users/show", response, user=await load(request))

Any object with ``send(body, content_type)`` can receive the output; a
framework adapter only has to implement `ResponseSink`.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Protocol

from etch.environment.core import Environment
from etch.environment.exceptions import ConfigurationError, ErrorCode
from etch.environment.loaders import Loader
from etch.environment.settings import Settings

logger = logging.getLogger(__name__)

APP_DEFAULTS: dict[str, Any] = {
    "cache": True,
    "layout": "layout",
    "view_ext": ".html",
    "write_resp": True,
}


class ResponseSink(Protocol):
    """Where rendered views go when ``write_resp`` is on."""

    def send(self, body: str, content_type: str) -> None: ...


class ViewRenderer:
    """Render views under ``root`` with the application defaults.

    Defaults (each overridable): ``cache=True``, ``layout="layout"``,
    ``view_ext=".html"``, ``write_resp=True``.

    Args:
        root: Views directory (required; resolved to an absolute path)
        loader: Alternative source of template text
        **settings: `Settings` keys (snake_case or camelCase)

    Raises:
        ConfigurationError: If ``root`` is missing
    """

    __slots__ = ("env", "root")

    def __init__(self, root: str | Path | None = None, *, loader: Loader | None = None, **settings: Any):
        if not root:
            raise ConfigurationError("settings.root required", code=ErrorCode.MISSING_ROOT)
        self.root = Path(root).resolve()
        overrides, unknown = Settings.split(settings)
        if unknown:
            raise ConfigurationError(f"Unknown option(s): {', '.join(sorted(unknown))}")
        options = {**APP_DEFAULTS, **overrides, "root": str(self.root)}
        self.env = Environment(loader=loader, **options)

    @property
    def settings(self) -> Settings:
        return self.env.settings

    async def render(
        self, view: str, response: ResponseSink | None = None, **options: Any
    ) -> str | None:
        """Render ``view`` (wrapped in the layout, if any).

        With ``write_resp`` on, the HTML is sent to ``response`` as
        ``(html, "html")`` and None is returned; otherwise the HTML is returned.
        ``self`` inside templates is ``response`` unless ``scope`` is given.
        """
        if "scope" not in options:
            options["scope"] = response
        html = await self.env.render_file_async(view, **options)

        overrides, _ = Settings.split(options)
        write_resp = overrides.get("write_resp", self.env.settings.write_resp)
        if not write_resp:
            return html
        if response is None:
            raise ConfigurationError(
                f"Cannot write view '{view}': no response given and write_resp is on"
            )
        logger.debug("Writing view %s (%d chars)", view, len(html))
        response.send(html, "html")
        return None

    def clear_cache(self) -> None:
        self.env.clear_cache()
