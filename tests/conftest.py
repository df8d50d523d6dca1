"""Pytest configuration and fixtures for etch tests."""

import pytest

from etch import DictLoader, Environment

from .helpers import FIXTURES, RecordingResponse, User


@pytest.fixture
def env():
    """Create a basic etch Environment."""
    return Environment()


@pytest.fixture
def env_files():
    """Create an Environment rooted at tests/fixtures."""
    return Environment(root=FIXTURES)


@pytest.fixture
def env_with_loader():
    """Create an Environment with a DictLoader and a few templates."""
    loader = DictLoader(
        {
            "layout.html": "<html><body><%- body %></body></html>",
            "index.html": "<h1><%= title %></h1>",
            "partials/nav.html": "<nav><%= title %></nav>",
            "page.html": "<% include partials/nav %><main><%= title %></main>",
        }
    )
    return Environment(loader=loader)


@pytest.fixture
def users():
    return [{"name": "tobi"}, {"name": "loki"}, {"name": "jane"}]


@pytest.fixture
def user_objects():
    return [User("tobi"), User("loki"), User("jane")]


@pytest.fixture
def response():
    return RecordingResponse()
