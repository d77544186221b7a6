"""Tests for the template language and in-place rendering.

Covers:
- Interpolation (escaped and raw), comments and literal ``<%``
- Conditional blocks, ``else``/``else if`` and nesting
- Whitespace trimming markers
- Literal text that looks like other template syntaxes
- Malformed templates raising RenderError
- File and tree rendering (suffix stripping, source removal, partial failure)
"""

from __future__ import annotations

from pathlib import Path

import pytest

from create_nft_gallery.errors import RenderError
from create_nft_gallery.scaffolder.templates import TemplateRenderer, render_all, translate

pytestmark = pytest.mark.unit


@pytest.fixture
def renderer() -> TemplateRenderer:
    return TemplateRenderer()


# ---------------------------------------------------------------------------
# Interpolation
# ---------------------------------------------------------------------------


class TestInterpolation:
    def test_variable(self, renderer):
        assert renderer.render_string("Hello <%= name %>!", {"name": "gallery"}) == "Hello gallery!"

    def test_variable_without_spaces(self, renderer):
        assert renderer.render_string('{"name":"<%=name%>"}', {"name": "g"}) == '{"name":"g"}'

    def test_escaped_output(self, renderer):
        result = renderer.render_string("<%= value %>", {"value": "<b>&"})
        assert result == "&lt;b&gt;&amp;"

    def test_raw_output(self, renderer):
        assert renderer.render_string("<%- value %>", {"value": "<b>&"}) == "<b>&"

    def test_booleans_print_lowercase(self, renderer):
        result = renderer.render_string("<%= yes %>/<%= no %>", {"yes": True, "no": False})
        assert result == "true/false"

    def test_null_prints_empty(self, renderer):
        assert renderer.render_string("[<%= value %>]", {"value": None}) == "[]"

    def test_dotted_name(self, renderer):
        assert renderer.render_string("<%= env.RPC %>", {"env": {"RPC": "https://rpc"}}) == "https://rpc"

    def test_comment_is_dropped(self, renderer):
        assert renderer.render_string("a<%# note %>b", {}) == "ab"

    def test_literal_open_tag(self, renderer):
        assert renderer.render_string("a <%% b", {}) == "a <% b"

    def test_trailing_newline_kept(self, renderer):
        assert renderer.render_string("<%= name %>\n", {"name": "x"}) == "x\n"


# ---------------------------------------------------------------------------
# Conditionals
# ---------------------------------------------------------------------------


class TestConditionals:
    def test_included_when_true(self, renderer):
        source = "<% if (includeManifold) { %>manifold<% } %>"
        assert renderer.render_string(source, {"includeManifold": True}) == "manifold"

    def test_omitted_when_false(self, renderer):
        source = "<% if (includeManifold) { %>manifold<% } %>"
        assert renderer.render_string(source, {"includeManifold": False}) == ""

    def test_else_branch(self, renderer):
        source = "<% if (flag) { %>yes<% } else { %>no<% } %>"
        assert renderer.render_string(source, {"flag": False}) == "no"

    def test_else_if_chain(self, renderer):
        source = (
            "<% if (variant === 'manifold') { %>M"
            "<% } else if (variant === 'metaplex') { %>X"
            "<% } else { %>O<% } %>"
        )
        assert renderer.render_string(source, {"variant": "manifold"}) == "M"
        assert renderer.render_string(source, {"variant": "metaplex"}) == "X"
        assert renderer.render_string(source, {"variant": "other"}) == "O"

    def test_nested_blocks(self, renderer):
        source = "<% if (a) { %>A<% if (b) { %>B<% } %>.<% } %>"
        assert renderer.render_string(source, {"a": True, "b": False}) == "A."
        assert renderer.render_string(source, {"a": True, "b": True}) == "AB."
        assert renderer.render_string(source, {"a": False, "b": True}) == ""

    def test_negation(self, renderer):
        source = "<% if (!includeManifold) { %>not manifold<% } %>"
        assert renderer.render_string(source, {"includeManifold": False}) == "not manifold"

    def test_logical_operators(self, renderer):
        source = "<% if ((a && b) || !c) { %>ok<% } %>"
        assert renderer.render_string(source, {"a": True, "b": True, "c": True}) == "ok"
        assert renderer.render_string(source, {"a": True, "b": False, "c": True}) == ""
        assert renderer.render_string(source, {"a": False, "b": False, "c": False}) == "ok"

    def test_inequality(self, renderer):
        source = "<% if (variant !== 'manifold') { %>other<% } %>"
        assert renderer.render_string(source, {"variant": "metaplex"}) == "other"

    def test_negation_binds_tighter_than_equality(self, renderer):
        source = "<% if (!variant === 'manifold') { %>X<% } %>"
        assert renderer.render_string(source, {"variant": "metaplex"}) == ""
        assert renderer.render_string(source, {"variant": ""}) == ""

    def test_negated_comparison_in_parentheses(self, renderer):
        source = "<% if (!(variant === 'manifold')) { %>X<% } %>"
        assert renderer.render_string(source, {"variant": "metaplex"}) == "X"

    def test_and_binds_tighter_than_or(self, renderer):
        source = "<% if (a || b && c) { %>X<% } %>"
        assert renderer.render_string(source, {"a": True, "b": False, "c": False}) == "X"
        assert renderer.render_string(source, {"a": False, "b": True, "c": False}) == ""

    def test_strict_equality_checks_type(self, renderer):
        source = "<% if (flag === 1) { %>X<% } %>"
        assert renderer.render_string(source, {"flag": True}) == ""
        assert renderer.render_string(source, {"flag": 1}) == "X"
        assert renderer.render_string(source, {"flag": "1"}) == ""

    def test_strict_inequality_checks_type(self, renderer):
        source = "<% if (flag !== 0) { %>X<% } %>"
        assert renderer.render_string(source, {"flag": False}) == "X"
        assert renderer.render_string(source, {"flag": 0}) == ""

    def test_strict_equality_with_null(self, renderer):
        source = "<% if (value === null) { %>X<% } %>"
        assert renderer.render_string(source, {"value": None}) == "X"
        assert renderer.render_string(source, {"value": ""}) == ""

    def test_strict_equality_undefined_parameter(self, renderer):
        with pytest.raises(RenderError, match="undefined parameter"):
            renderer.render_string("<% if (missing === 'x') { %>X<% } %>", {})


# ---------------------------------------------------------------------------
# Whitespace control
# ---------------------------------------------------------------------------


class TestWhitespace:
    def test_dash_eats_following_newline(self, renderer):
        source = "<% if (a) { -%>\nx\n<% } -%>\ny"
        assert renderer.render_string(source, {"a": True}) == "x\ny"
        assert renderer.render_string(source, {"a": False}) == "y"

    def test_dash_eats_crlf(self, renderer):
        assert renderer.render_string("<%= a -%>\r\nb", {"a": "x"}) == "xb"

    def test_underscore_slurps_spaces(self, renderer):
        source = "    <%_ if (a) { _%>  body<% } %>"
        assert renderer.render_string(source, {"a": True}) == "body"


# ---------------------------------------------------------------------------
# Literal text
# ---------------------------------------------------------------------------


class TestLiteralText:
    def test_jsx_braces_untouched(self, renderer):
        source = "<p style={{ color: 'crimson' }}>{error}</p>"
        assert renderer.render_string(source, {}) == source

    def test_other_template_syntaxes_untouched(self, renderer):
        source = "{% raw %} {# note #} ${value} %> done"
        assert renderer.render_string(source, {}) == source

    def test_translation_keeps_text(self):
        assert translate("a <%= name %> b") == "a <%= (name)|ejs_text|e %> b"


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class TestRenderErrors:
    def test_unterminated_tag(self, renderer):
        with pytest.raises(RenderError, match="unterminated"):
            renderer.render_string("line\n<%= name", {"name": "x"}, path="a.txt.ejs")

    def test_error_carries_path_and_line(self, renderer):
        with pytest.raises(RenderError) as excinfo:
            renderer.render_string("ok\n<% while (x) { %>", {"x": True}, path="src/App.jsx.ejs")
        assert excinfo.value.path == Path("src/App.jsx.ejs")
        assert excinfo.value.line == 2
        assert "src/App.jsx.ejs:2" in str(excinfo.value)

    def test_unclosed_block(self, renderer):
        with pytest.raises(RenderError, match="unclosed"):
            renderer.render_string("<% if (a) { %>x", {"a": True})

    def test_stray_close(self, renderer):
        with pytest.raises(RenderError, match="without a matching"):
            renderer.render_string("x<% } %>", {})

    def test_unsupported_statement(self, renderer):
        with pytest.raises(RenderError, match="unsupported statement"):
            renderer.render_string("<% for (const n of nfts) { %>x<% } %>", {"nfts": []})

    def test_unsupported_operator(self, renderer):
        with pytest.raises(RenderError, match="unsupported token"):
            renderer.render_string("<%= a + b %>", {"a": 1, "b": 2})

    def test_unbalanced_parentheses(self, renderer):
        with pytest.raises(RenderError, match="unbalanced"):
            renderer.render_string("<% if ((a) { %>x<% } %>", {"a": True})

    def test_empty_expression(self, renderer):
        with pytest.raises(RenderError, match="empty expression"):
            renderer.render_string("<%= %>", {})

    def test_undefined_parameter(self, renderer):
        with pytest.raises(RenderError, match="undefined parameter"):
            renderer.render_string("<%= missing %>", {})

    def test_undefined_parameter_in_condition(self, renderer):
        with pytest.raises(RenderError, match="undefined parameter"):
            renderer.render_string("<% if (missing) { %>x<% } %>", {})

    def test_duplicate_else(self, renderer):
        with pytest.raises(RenderError):
            renderer.render_string("<% if (a) { %>1<% } else { %>2<% } else { %>3<% } %>", {"a": True})


# ---------------------------------------------------------------------------
# File rendering
# ---------------------------------------------------------------------------


class TestFileRendering:
    def test_target_path_strips_only_suffix(self, renderer):
        assert renderer.target_path(Path("pkg/package.json.ejs")) == Path("pkg/package.json")

    def test_target_path_rejects_plain_file(self, renderer):
        with pytest.raises(ValueError):
            renderer.target_path(Path("main.jsx"))

    def test_bare_suffix_is_not_a_template(self, renderer, tmp_path: Path):
        (tmp_path / ".ejs").write_text("x", encoding="utf-8")
        assert renderer.list_templates(tmp_path) == []

    async def test_render_file_replaces_template(self, renderer, tmp_path: Path):
        source = tmp_path / "index.html.ejs"
        source.write_text("<title><%= name %></title>", encoding="utf-8")

        output = await renderer.render_file(source, {"name": "gallery"})

        assert output == tmp_path / "index.html"
        assert output.read_text(encoding="utf-8") == "<title>gallery</title>"
        assert not source.exists()

    async def test_render_all_leaves_no_templates(self, tmp_path: Path):
        (tmp_path / "src" / "lib").mkdir(parents=True)
        (tmp_path / "README.md.ejs").write_text("# <%= name %>\n", encoding="utf-8")
        (tmp_path / "src" / "lib" / "nfts.js.ejs").write_text("// <%= domain %>\n", encoding="utf-8")
        (tmp_path / "src" / "main.jsx").write_text("static\n", encoding="utf-8")

        written = await render_all(tmp_path, {"name": "g", "domain": "d"})

        assert sorted(p.relative_to(tmp_path).as_posix() for p in written) == [
            "README.md",
            "src/lib/nfts.js",
        ]
        assert list(tmp_path.rglob("*.ejs")) == []
        assert (tmp_path / "README.md").read_text(encoding="utf-8") == "# g\n"
        assert (tmp_path / "src" / "main.jsx").read_text(encoding="utf-8") == "static\n"

    async def test_non_utf8_template_names_file(self, renderer, tmp_path: Path):
        source = tmp_path / "logo.svg.ejs"
        source.write_bytes(b"<svg>\xff\xfe</svg>")

        with pytest.raises(RenderError, match="not valid UTF-8") as excinfo:
            await renderer.render_file(source, {})

        assert excinfo.value.path == source
        assert "logo.svg.ejs" in str(excinfo.value)
        assert source.exists()

    async def test_custom_suffix(self, tmp_path: Path):
        (tmp_path / "package.json.tmpl").write_text('{"name":"<%=name%>"}', encoding="utf-8")

        await render_all(tmp_path, {"name": "g"}, suffix=".tmpl")

        assert (tmp_path / "package.json").read_text(encoding="utf-8") == '{"name":"g"}'
        assert not (tmp_path / "package.json.tmpl").exists()

    async def test_failure_leaves_partial_state(self, tmp_path: Path):
        (tmp_path / "a.txt.ejs").write_text("<%= name %>", encoding="utf-8")
        (tmp_path / "b.txt.ejs").write_text("<% if (name) { %>", encoding="utf-8")
        (tmp_path / "c.txt.ejs").write_text("<%= name %>", encoding="utf-8")

        with pytest.raises(RenderError) as excinfo:
            await render_all(tmp_path, {"name": "g"})

        assert excinfo.value.path == tmp_path / "b.txt.ejs"
        assert (tmp_path / "a.txt").read_text(encoding="utf-8") == "g"
        assert (tmp_path / "b.txt.ejs").exists()
        assert (tmp_path / "c.txt.ejs").exists()
        assert not (tmp_path / "c.txt").exists()
