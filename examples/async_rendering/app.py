"""Async rendering -- deferred values resolved while the template renders.

Any value reaching a tag may be deferred: a coroutine, a coroutine function,
a future, or an async iterable in a ``for`` loop. Rendering awaits each one
in template order.

Run:
    python app.py
"""

import asyncio
from collections.abc import AsyncIterator

from etch import Environment

# -- Simulated async data sources ----------------------------------------


async def fetch_items() -> AsyncIterator[dict]:
    """Simulate an async data stream (e.g., database cursor, API pagination)."""
    items = [
        {"id": 1, "title": "Embedded tags"},
        {"id": 2, "title": "Deferred values"},
        {"id": 3, "title": "Zero dependencies"},
    ]
    for item in items:
        await asyncio.sleep(0)
        yield item


async def fetch_count() -> int:
    """Simulate an async API call that returns a value."""
    return 3


async def fetch_title() -> str:
    """Simulate fetching a page title."""
    return "Etch Features"


# -- Template setup -------------------------------------------------------

TEMPLATE_SOURCE = """\
<h1><%= title %></h1>
<p>Total: <%= fetch_count() %> features</p>
<ul>
<% for item in fetch_items(): -%>
    <li>#<%= item["id"] %>: <%= item.title %></li>
<% end -%>
</ul>
"""

env = Environment()
template = env.from_string(TEMPLATE_SOURCE)


async def render() -> str:
    """Render inside a running event loop with the async API."""
    return await template.render_async(
        title=fetch_title,
        fetch_items=fetch_items,
        fetch_count=fetch_count,
    )


# Run at import time for test access
output = asyncio.run(render())


def main() -> None:
    print(output)


if __name__ == "__main__":
    main()
