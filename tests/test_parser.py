"""Tests for the scanner/parser: instruction sequences, trim, filters, includes."""

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from etch import ConfigurationError, DictLoader, TemplateSyntaxError, parse
from etch.environment.exceptions import ErrorCode
from etch.includes import IncludeResolver
from etch.nodes import Code, FilterCall, Include, Literal, Output
from etch.parser import Parser, parse_filter_chain

from .strategies import close_delimiter, open_delimiter, tagless_text


class TestInstructions:
    def test_literal_only(self) -> None:
        assert parse("<p>yay</p>") == [Literal(1, "<p>yay</p>")]

    def test_empty_source(self) -> None:
        assert parse("") == []

    def test_tag_kinds(self) -> None:
        nodes = parse("a<%= x %>b<%- y %>c<% z = 1 %>")
        assert nodes == [
            Literal(1, "a"),
            Output(1, " x ", (), escape=True),
            Literal(1, "b"),
            Output(1, " y ", (), escape=False),
            Literal(1, "c"),
            Code(1, "z = 1"),
        ]

    def test_line_numbers(self) -> None:
        nodes = parse("one\ntwo <%= a %>\n<%\n b = 1\n%>\n<%= c %>")
        outputs = [n for n in nodes if not isinstance(n, Literal)]
        assert [n.lineno for n in outputs] == [2, 3, 6]

    def test_literal_records_start_line(self) -> None:
        nodes = parse("<% x = 1 %>\n\nhello")
        assert nodes[1] == Literal(1, "\n\nhello")

    def test_carriage_returns_dropped(self) -> None:
        assert parse("a\r\nb") == [Literal(1, "a\nb")]

    def test_comment_emits_nothing(self) -> None:
        assert parse("a<% # note %>b") == [Literal(1, "a"), Literal(1, "b")]

    def test_empty_code_tag_emits_nothing(self) -> None:
        assert parse("<%  %>") == []

    def test_custom_delimiters(self) -> None:
        assert parse("<p>{= name }</p>", open="{", close="}")[1] == Output(1, " name ")
        assert parse("<p>::= name ::</p>", open="::", close="::")[1] == Output(1, " name ")
        assert parse("<p>(= name )</p>", open="(", close=")")[1] == Output(1, " name ")

    def test_empty_delimiters_rejected(self) -> None:
        with pytest.raises(ConfigurationError):
            Parser("x", open="", close="%>")


class TestUnclosedTag:
    def test_message(self) -> None:
        with pytest.raises(TemplateSyntaxError) as exc_info:
            parse("<h1>oops</h1><%- name ->")
        err = exc_info.value
        assert err.message == 'Could not find matching close tag "%>".'
        assert err.code is ErrorCode.UNCLOSED_TAG
        assert err.lineno == 1

    def test_reports_tag_line(self) -> None:
        with pytest.raises(TemplateSyntaxError) as exc_info:
            parse("a\nb\n<%= x", filename="t.html")
        assert exc_info.value.lineno == 3
        assert "t.html:3" in str(exc_info.value)

    @given(open_=open_delimiter, close=close_delimiter)
    @settings(max_examples=100)
    def test_message_for_any_delimiters(self, open_: str, close: str) -> None:
        with pytest.raises(TemplateSyntaxError) as exc_info:
            parse(f"<h1>oops</h1>{open_}- name ", open=open_, close=close)
        assert exc_info.value.message == f'Could not find matching close tag "{close}".'


class TestTrim:
    def test_trim_consumes_one_newline(self) -> None:
        assert parse("<% x = 1 -%>\n\nrest") == [Code(1, "x = 1"), Literal(2, "\nrest")]

    def test_trim_skips_carriage_return(self) -> None:
        assert parse("<% x = 1 -%>\r\nrest") == [Code(1, "x = 1"), Literal(2, "rest")]

    def test_trim_without_newline(self) -> None:
        assert parse("<% x = 1 -%> rest") == [Code(1, "x = 1"), Literal(1, " rest")]

    def test_trim_on_output_tag(self) -> None:
        assert parse("<%= x -%>\nb") == [Output(1, " x "), Literal(2, "b")]

    @given(n=st.integers(min_value=1, max_value=5))
    def test_removes_exactly_one_newline(self, n: int) -> None:
        nodes = parse("<% x = 1 -%>" + "\n" * n + "end")
        assert nodes[-1].text == "\n" * (n - 1) + "end"


class TestFilterChain:
    def test_plain_body(self) -> None:
        assert parse_filter_chain(" name ") == (" name ", ())

    def test_chain(self) -> None:
        expr, filters = parse_filter_chain(': users | map:"name" | join:", " ')
        assert expr == " users "
        assert filters == (FilterCall("map", '"name"'), FilterCall("join", '", "'))

    def test_args_keep_colons(self) -> None:
        _, filters = parse_filter_chain(': users | join:"::" ')
        assert filters == (FilterCall("join", '"::"'),)

    def test_filter_without_args(self) -> None:
        _, filters = parse_filter_chain(": items | reverse | first")
        assert filters == (FilterCall("reverse"), FilterCall("first"))

    def test_output_node_carries_chain(self) -> None:
        [node] = parse("<%=: word | truncate: 2,\"...\" %>")
        assert node.filters == (FilterCall("truncate", '2,"..."'),)


class TestIncludeDirective:
    def _resolver(self, templates: dict[str, str]) -> IncludeResolver:
        return IncludeResolver(DictLoader(templates).get_source)

    def test_include_is_inlined(self) -> None:
        resolver = self._resolver({"nav.html": "<nav><%= title %></nav>"})
        nodes = parse("<% include nav %>", filename="page.html", includes=resolver)
        assert nodes == [
            Include(
                1,
                "nav",
                "nav.html",
                "<nav><%= title %></nav>",
                [Literal(1, "<nav>"), Output(1, " title "), Literal(1, "</nav>")],
            )
        ]

    def test_quoted_name(self) -> None:
        resolver = self._resolver({"nav.html": "x"})
        [node] = parse('<% include "nav" %>', filename="page.html", includes=resolver)
        assert node.filename == "nav.html"

    def test_relative_to_parent(self) -> None:
        resolver = self._resolver({"users/show.html": "x"})
        [node] = parse("<% include show %>", filename="users/index.html", includes=resolver)
        assert node.filename == "users/show.html"

    def test_include_uses_same_delimiters(self) -> None:
        resolver = self._resolver({"pet.html": "[[= pet ]]"})
        [node] = parse("[[ include pet ]]", filename="a.html", open="[[", close="]]", includes=resolver)
        assert node.body == [Output(1, " pet ")]

    def test_include_requires_filename(self) -> None:
        resolver = self._resolver({"nav.html": "x"})
        with pytest.raises(ConfigurationError, match="filename option is required"):
            parse("<% include nav %>", includes=resolver)

    def test_identifier_starting_with_include_is_code(self) -> None:
        assert parse("<% included = True %>") == [Code(1, "included = True")]

    def test_include_call_is_code(self) -> None:
        assert parse("<% include(x) %>") == [Code(1, "include(x)")]


class TestTaglessProperties:
    @given(text=tagless_text)
    @settings(max_examples=200)
    def test_tagless_text_is_one_literal(self, text: str) -> None:
        nodes = parse(text)
        if text:
            assert nodes == [Literal(1, text)]
        else:
            assert nodes == []
