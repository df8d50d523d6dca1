"""Rendering tests: templates from strings and files, statements, expressions."""

from types import SimpleNamespace

import pytest
from hypothesis import given, settings

import etch
from etch import Environment, TemplateRuntimeError, UndefinedError

from .helpers import FIXTURES, fixture
from .strategies import (
    build_template,
    delimiter_pair,
    tagless_text,
    template_segments,
)

_env = Environment()


class TestCompile:
    def test_compile_returns_template(self) -> None:
        template = etch.compile("<p>yay</p>")
        assert template.render() == "<p>yay</p>"

    def test_template_accepts_dict_or_kwargs(self, env: Environment) -> None:
        template = env.from_string("<p><%= name %></p>")
        assert template.render({"name": "tobi"}) == "<p>tobi</p>"
        assert template.render(name="tobi") == "<p>tobi</p>"

    def test_template_rejects_extra_positionals(self, env: Environment) -> None:
        template = env.from_string("x")
        with pytest.raises(TypeError):
            template.render({}, {})

    def test_custom_delimiters(self, env: Environment) -> None:
        assert env.render("<p>{= name }</p>", open="{", close="}", name="tobi") == "<p>tobi</p>"
        assert env.render("<p>::= name ::</p>", open="::", close="::", name="tobi") == "<p>tobi</p>"
        assert env.render("<p>(= name )</p>", open="(", close=")", name="tobi") == "<p>tobi</p>"

    def test_repr(self, env: Environment) -> None:
        assert repr(env.from_string("x", filename="a.html")) == "<Template a.html>"


class TestRender:
    def test_render_literal(self) -> None:
        assert etch.render("<p>yay</p>") == "<p>yay</p>"

    def test_accepts_locals(self) -> None:
        assert etch.render("<p><%= name %></p>", name="tobi") == "<p>tobi</p>"

    def test_explicit_locals_win(self, env: Environment) -> None:
        assert env.render("<%= name %>", name="data", locals={"name": "locals"}) == "locals"

    def test_environment_locals_are_ambient(self) -> None:
        env = Environment(locals={"site": "etch", "name": "ambient"})
        assert env.render("<%= site %>:<%= name %>", name="call") == "etch:call"

    def test_locals_mapping_is_visible(self, env: Environment) -> None:
        out = env.render('<%= locals.get("title", "Untitled") %>|<%= "x" in locals %>', x=1)
        assert out == "Untitled|True"

    def test_scope_is_self(self, env: Environment) -> None:
        scope = SimpleNamespace(ip="10.0.0.1")
        assert env.render("<%= self.ip %>", scope=scope) == "10.0.0.1"

    def test_render_file(self, env_files: Environment) -> None:
        assert env_files.render_file("para") == "<p>hey</p>\n"

    def test_render_file_with_extension(self, env_files: Environment) -> None:
        assert env_files.render_file("para.html") == "<p>hey</p>\n"

    def test_render_file_with_delimiters(self, env_files: Environment) -> None:
        assert env_files.render_file("user", name="tj", open="{", close="}") == "<h1>tj</h1>\n"

    def test_exception_from_callable_propagates(self, env: Environment) -> None:
        def boom():
            raise ValueError("Exception in callback")

        with pytest.raises(ValueError, match="Exception in callback"):
            env.render("<%= boom() %>", boom=boom)

    def test_sync_render_inside_event_loop_is_rejected(self, env: Environment) -> None:
        import asyncio

        async def main():
            return env.render("x")

        with pytest.raises(TemplateRuntimeError, match="render_async"):
            asyncio.run(main())


class TestFixtures:
    def test_newlines(self, env: Environment, users) -> None:
        out = env.render(fixture("newlines.html"), users=users)
        assert out == (
            "<ul>\n  \n    <li>tobi</li>\n  \n    <li>loki</li>\n  \n    <li>jane</li>\n  \n</ul>\n"
        )

    def test_no_newlines(self, env: Environment, users) -> None:
        out = env.render(fixture("no_newlines.html"), users=users)
        assert out == "<ul>\n<li>tobi</li>\n<li>loki</li>\n<li>jane</li>\n</ul>\n"

    def test_messed_up_whitespace(self, env: Environment, users) -> None:
        out = env.render(fixture("messed.html"), users=users)
        assert out == "<ul>\n<li>tobi</li><li>loki</li><li>jane</li>\n</ul>\n"

    def test_single_quotes(self, env: Environment) -> None:
        assert env.render(fixture("single_quote.html")) == "<p>loki's wheelchair</p>\n"

    def test_double_quotes(self, env: Environment) -> None:
        assert env.render(fixture("double_quote.html")) == "<p>loki's \"wheelchair\"</p>\n"

    def test_backslashes(self, env: Environment) -> None:
        assert env.render(fixture("backslash.html")) == "\\foo\n\\bar\n"

    def test_comments_removed(self, env: Environment) -> None:
        assert env.render(fixture("comments.html")) == "\n<p>visible</p>\n<p>done</p>\n"

    def test_fixture_dir_exists(self) -> None:
        assert (FIXTURES / "para.html").is_file()


class TestStatements:
    def test_assignment_and_augmented(self, env: Environment) -> None:
        out = env.render("<% total = 0 %><% for n in nums: %><% total += n %><% end %><%= total %>", nums=[1, 2, 3])
        assert out == "6"

    def test_tuple_unpacking_in_for(self, env: Environment) -> None:
        out = env.render("<% for k, v in pairs: %><%= k %>=<%= v %>;<% end %>", pairs=[("a", 1), ("b", 2)])
        assert out == "a=1;b=2;"

    def test_multiline_code_tag(self, env: Environment) -> None:
        out = env.render("<%\nx = 1\ny = x * 10\n%><%= y %>")
        assert out == "10"

    def test_subscript_and_attribute_assignment(self, env: Environment) -> None:
        out = env.render(
            '<% d["k"] = 1 %><% d.other = 2 %><%= d["k"] + d.other %>', d={}
        )
        assert out == "3"

    def test_augmented_target_evaluated_once(self, env: Environment) -> None:
        calls = []
        box = [1]
        counter = {"n": 10}

        def pick(target):
            calls.append(target)
            return target

        out = env.render(
            "<% pick(box)[0] += 1 %><% pick(counter).n += 5 %><%= box[0] %>,<%= counter.n %>",
            pick=pick,
            box=box,
            counter=counter,
        )
        assert out == "2,15"
        assert calls == [box, counter]

    def test_augmented_subscript_key_evaluated_once(self, env: Environment) -> None:
        keys = iter(["a", "b"])
        totals = {"a": 1, "b": 100}
        env.render("<% totals[next(keys)] *= 3 %>", totals=totals, keys=keys, next=next)
        assert totals == {"a": 3, "b": 100}

    def test_expression_statement(self, env: Environment) -> None:
        out = env.render('<% items.append("x") %><%= items %>', items=[])
        assert out == "[&#39;x&#39;]"

    def test_if_elif_else(self, env: Environment) -> None:
        source = "<% if n > 1: %>many<% elif n == 1: %>one<% else: %>none<% end %>"
        assert [env.render(source, n=n) for n in (0, 1, 5)] == ["none", "one", "many"]

    def test_while_break_continue(self, env: Environment) -> None:
        source = (
            "<% i = 0 %><% while True: %><% i += 1 %>"
            "<% if i == 2: %><% continue %><% end %>"
            "<% if i > 4: %><% break %><% end %><%= i %><% endwhile %>"
        )
        assert env.render(source) == "134"

    def test_for_break(self, env: Environment) -> None:
        out = env.render("<% for x in xs: %><% if x > 2: %><% break %><% end %><%= x %><% end %>", xs=[1, 2, 3, 4])
        assert out == "12"

    def test_loop_variable_visible_after_loop(self, env: Environment) -> None:
        assert env.render("<% for x in xs: %><% end %><%= x %>", xs=[1, 2]) == "2"


class TestExpressions:
    @pytest.mark.parametrize(
        ("source", "expected"),
        [
            ("<%= 1 + 2 * 3 %>", "7"),
            ("<%= 7 // 2 %>,<%= 7 % 2 %>,<%= 2 ** 3 %>", "3,1,8"),
            ("<%= -x %>", "-5"),
            ("<%= not x %>", "False"),
            ("<%= 1 < x <= 5 %>", "True"),
            ("<%= x if x > 3 else 0 %>", "5"),
            ("<%= x and 'yes' %>", "yes"),
            ("<%= 0 or 'fallback' %>", "fallback"),
            ("<%= [1, 2][-1] %>", "2"),
            ("<%= 'abcdef'[1:4] %>", "bcd"),
            ("<%= {'a': 1}['a'] %>", "1"),
            ("<%= len((1, 2, 3)) %>", "3"),
            ("<%= sorted({3, 1}) %>", "[1, 3]"),
            ("<%= f'{x:03d}' %>", "005"),
            ("<%= max(*[1, 9, 3]) %>", "9"),
            ("<%= dict(**{'a': 1}) %>", "{&#39;a&#39;: 1}"),
            ("<%= 'x' in 'xyz' %>", "True"),
            ("<%= x is None %>", "False"),
        ],
    )
    def test_expression(self, env: Environment, source: str, expected: str) -> None:
        assert env.render(source, x=5) == expected

    def test_generator_expression_rejected(self, env: Environment) -> None:
        with pytest.raises(etch.TemplateCompileError):
            env.render("<%= sum(i for i in range(3)) %>")

    def test_dict_key_before_attribute(self, env: Environment) -> None:
        assert env.render("<%= d.items %>", d={"items": "mine"}) == "mine"

    def test_object_subscript_fallback(self, env: Environment) -> None:
        class Row:
            def __getitem__(self, key):
                return f"row[{key}]"

        assert env.render("<%= r.name %>", r=Row()) == "row[name]"

    def test_missing_attribute(self, env: Environment) -> None:
        with pytest.raises(AttributeError, match="emial"):
            env.render("<%= u.emial %>", u=SimpleNamespace(email="x"))

    def test_undefined_name(self, env: Environment) -> None:
        with pytest.raises(UndefinedError) as exc_info:
            env.render("<%= titl %>", title="Hi")
        assert "Undefined local 'titl'" in str(exc_info.value)
        assert "Did you mean 'title'?" in str(exc_info.value)

    def test_globals(self, env: Environment) -> None:
        assert env.render("<%= len(xs) %>:<%= escape('<') %>", xs=[1]) == "1:&amp;lt;"

    def test_locals_shadow_globals(self, env: Environment) -> None:
        assert env.render("<%= len %>", len="mine") == "mine"

    def test_custom_globals(self) -> None:
        env = Environment(globals={"site_name": "etch"})
        assert env.render("<%= site_name %>") == "etch"


class TestProperties:
    @given(text=tagless_text)
    @settings(max_examples=200)
    def test_tagless_identity(self, text: str) -> None:
        assert _env.render(text) == text

    @given(segments=template_segments, pair=delimiter_pair)
    @settings(max_examples=100)
    def test_delimiter_equivalence(self, segments, pair) -> None:
        data = {name: f"<{name}>" for name in ("x", "y", "name", "item", "count", "title", "data", "val", "total", "text")}
        default = _env.render(build_template(segments), **data)
        custom = _env.render(build_template(segments, *pair), open=pair[0], close=pair[1], **data)
        assert default == custom
