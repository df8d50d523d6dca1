"""Tests for include resolution and inlining."""

import pytest
from hypothesis import given, settings

from etch import (
    ConfigurationError,
    DictLoader,
    Environment,
    TemplateCompileError,
    TemplateNotFoundError,
)
from etch.environment.exceptions import ErrorCode
from etch.includes import resolve_include

from .helpers import fixture
from .strategies import segment_text


class TestResolveInclude:
    @pytest.mark.parametrize(
        ("name", "parent", "expected"),
        [
            ("show", "users/index.html", "users/show.html"),
            ("../nav", "users/index.html", "nav.html"),
            ("style.css", "users/index.html", "users/style.css"),
            ("partials/nav", "page.html", "partials/nav.html"),
            ("./item", "menu/list.html", "menu/item.html"),
        ],
    )
    def test_resolution(self, name: str, parent: str, expected: str) -> None:
        assert resolve_include(name, parent, ".html") == expected

    def test_custom_view_ext(self) -> None:
        assert resolve_include("nav", "page.tpl", ".tpl") == "nav.tpl"

    def test_requires_parent(self) -> None:
        with pytest.raises(ConfigurationError) as exc_info:
            resolve_include("nav", None, ".html")
        assert exc_info.value.code is ErrorCode.INCLUDE_WITHOUT_FILENAME


class TestInlining:
    def test_include_with_custom_delimiters(self, env_files: Environment, users) -> None:
        out = env_files.render(
            fixture("include.html"), filename="include.html", pets=users, open="[[", close="]]"
        )
        assert out == (
            "<ul>\n  \n    <li>tobi</li>\n  \n    <li>loki</li>\n  \n    <li>jane</li>\n  \n</ul>\n"
        )

    def test_nested_includes(self, env_files: Environment, users) -> None:
        out = env_files.render(fixture("menu.html"), filename="menu.html", pets=users)
        assert out == (
            "<ul>\n"
            '<li><a href="/pets/tobi">tobi</a></li>\n'
            '<li><a href="/pets/loki">loki</a></li>\n'
            '<li><a href="/pets/jane">jane</a></li>\n'
            "</ul>\n"
        )

    def test_arbitrary_files_included_as_is(self, env_files: Environment) -> None:
        out = env_files.render(fixture("include_css.html"), filename="include_css.html")
        assert out == "<style>\nbody { color: red; }\n</style>\n"

    def test_render_file_with_includes(self, env_files: Environment, users) -> None:
        assert env_files.render_file("menu", pets=users).count("<li>") == 3

    def test_include_shares_scope(self) -> None:
        env = Environment(loader=DictLoader({"set.html": "<% greeting = 'hi' %>"}))
        assert env.render("<% include set %><%= greeting %>", filename="page.html") == "hi"

    def test_include_without_filename(self, env_files: Environment) -> None:
        with pytest.raises(ConfigurationError, match="filename option is required for includes"):
            env_files.render("<% include para %>")

    def test_circular_include(self, env_files: Environment) -> None:
        with pytest.raises(TemplateCompileError) as exc_info:
            env_files.render_file("loop")
        assert exc_info.value.code is ErrorCode.INCLUDE_DEPTH

    def test_missing_include(self) -> None:
        env = Environment(loader=DictLoader({}))
        with pytest.raises(TemplateNotFoundError, match="nope.html"):
            env.render("<% include nope %>", filename="page.html")


class TestNestedEqualsFlattened:
    @given(header=segment_text, body=segment_text, footer=segment_text)
    @settings(max_examples=100)
    def test_nested_equals_flattened(self, header: str, body: str, footer: str) -> None:
        header_src = header + "<%= title %>"
        footer_src = "<% for i in range(2): %>" + footer + "<%= i %><% end %>"
        env = Environment(
            loader=DictLoader({"header.html": header_src, "partials/footer.html": footer_src})
        )
        nested = env.render(
            "<% include header %>" + body + "<% include partials/footer %>",
            filename="page.html",
            title="T",
        )
        flattened = env.render(header_src + body + footer_src, title="T")
        assert nested == flattened
