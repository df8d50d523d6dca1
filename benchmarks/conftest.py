"""Shared fixtures for etch benchmarks.

Run with: pytest benchmarks/ --benchmark-only
"""

from __future__ import annotations

import pytest

from etch import DictLoader, Environment

TEMPLATES = {
    "minimal.html": "<p><%= name %></p>",
    "conditional.html": "<% if foo: %><p><%= foo %></p><% end %>",
    "list.html": (
        "<ul>\n<% for user in users: -%>\n"
        '  <li><a href="/users/<%= user.id %>"><%= user.name %></a></li>\n'
        "<% end -%>\n</ul>\n"
    ),
    "filters.html": '<%=: users | map:"name" | join:", " | truncate:40,"..." %>',
    "nav.html": "<nav><% for link in links: %><a href=\"<%= link %>\"><%= link %></a><% end %></nav>",
    "page.html": "<% include nav %><main><%= title %></main>",
}


@pytest.fixture
def etch_env() -> Environment:
    return Environment(loader=DictLoader(TEMPLATES), cache=True)


@pytest.fixture
def users() -> list[dict[str, object]]:
    return [{"id": i, "name": f"user{i}"} for i in range(100)]
