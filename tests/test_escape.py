"""Tests for HTML escaping in output tags."""

import html

from hypothesis import given, settings

from etch import Environment, html_escape
from etch.utils.html import to_str

from .strategies import printable_text

_env = Environment()


class TestEscapedOutput:
    """<%= escapes, <%- does not."""

    def test_escapes_ampersand_and_script(self, env: Environment) -> None:
        assert env.render("<%= name %>", name="&nbsp;<script>") == "&amp;nbsp;&lt;script&gt;"

    def test_escapes_single_quote(self, env: Environment) -> None:
        assert env.render("<%= name %>", name="The Jones's") == "The Jones&#39;s"

    def test_escapes_entity_like_text(self, env: Environment) -> None:
        assert env.render("<%= name %>", name="&foo_bar;") == "&amp;foo_bar;"

    def test_escapes_double_quote(self, env: Environment) -> None:
        assert env.render('<a title="<%= t %>">', t='say "hi"') == '<a title="say &quot;hi&quot;">'

    def test_raw_output_is_not_escaped(self, env: Environment) -> None:
        assert env.render("<%- name %>", name="<script>") == "<script>"

    def test_non_strings_are_converted(self, env: Environment) -> None:
        assert env.render("<%= n %>|<%- n %>", n=42) == "42|42"

    def test_none_renders_empty(self, env: Environment) -> None:
        assert env.render("[<%= v %>][<%- v %>]", v=None) == "[][]"

    def test_literal_text_is_never_escaped(self, env: Environment) -> None:
        assert env.render("<p>a & b</p>") == "<p>a & b</p>"


class TestHtmlEscape:
    def test_single_pass(self) -> None:
        assert html_escape("&lt;") == "&amp;lt;"

    def test_to_str(self) -> None:
        assert to_str(None) == ""
        assert to_str(1.5) == "1.5"
        assert to_str("x") == "x"


class TestEscapeProperties:
    @given(s=printable_text)
    @settings(max_examples=200)
    def test_escaped_has_no_markup_characters(self, s: str) -> None:
        escaped = html_escape(s)
        for ch in "<>\"'":
            assert ch not in escaped

    @given(s=printable_text)
    @settings(max_examples=200)
    def test_unescape_restores_input(self, s: str) -> None:
        assert html.unescape(html_escape(s)) == s

    @given(s=printable_text)
    @settings(max_examples=100)
    def test_raw_output_never_escapes(self, s: str) -> None:
        assert _env.render("<%- v %>", v=s) == s
