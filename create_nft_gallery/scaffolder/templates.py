"""Template rendering for scaffolded projects.

Parametrized files use a small EJS-style syntax:

- ``<%= expr %>`` interpolates ``expr`` HTML-escaped, ``<%- expr %>`` raw.
- ``<%# ... %>`` is a comment.
- ``<% if (expr) { %>``, ``<% } else if (expr) { %>``, ``<% } else { %>`` and
  ``<% } %>`` delimit conditional blocks.
- ``<%%`` emits a literal ``<%``.  ``-%>`` eats the newline after a tag,
  ``<%_`` / ``_%>`` eat the spaces and tabs before / after it.

Expressions are limited to parameter names, literals, ``!``, ``&&``, ``||``,
the (in)equality operators and parentheses.  The source is checked against
that grammar and translated into a Jinja2 template that uses the same
``<% %>`` delimiters, so literal text (JSX ``{{ }}`` included) passes through
untouched.  Jinja2 then does the evaluation.
"""

from __future__ import annotations

import asyncio
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from jinja2 import Environment, StrictUndefined, TemplateError, Undefined, UndefinedError

from ..errors import RenderError

_DEFAULT_SUFFIX = ".ejs"

_JINJA_KEYWORDS = frozenset(
    {"and", "or", "not", "in", "is", "if", "else", "elif", "for", "recursive", "none", "True", "False", "None"}
)

_LITERALS = {
    "true": "true",
    "false": "false",
    "null": "none",
    "undefined": "none",
}

_EQUALITY_OPERATORS = frozenset({"===", "!==", "==", "!="})

_EXPR_TOKEN = re.compile(
    r"""
    (?P<space>\s+)
    |(?P<string>'(?:[^'\\\n]|\\.)*'|"(?:[^"\\\n]|\\.)*")
    |(?P<number>\d+(?:\.\d+)?)
    |(?P<op>===|!==|==|!=|&&|\|\||!|\(|\))
    |(?P<name>[A-Za-z_]\w*(?:\.[A-Za-z_]\w*)*)
    |(?P<other>.)
    """,
    re.VERBOSE | re.DOTALL,
)

_IF = re.compile(r"^if\s*(?P<expr>\(.*\))\s*\{$", re.DOTALL)
_ELSE_IF = re.compile(r"^\}\s*else\s+if\s*(?P<expr>\(.*\))\s*\{$", re.DOTALL)
_ELSE = re.compile(r"^\}\s*else\s*\{$")
_CLOSE = re.compile(r"^\}$")


# ---------------------------------------------------------------------------
# Translation
# ---------------------------------------------------------------------------


@dataclass
class _Tag:
    kind: str  # "", "=", "-", "#"
    body: str
    line: int
    trim_after: str = ""  # "", "-", "_"


def _tokenize(source: str, path: Path) -> list[str | _Tag]:
    """Split *source* into literal text and tags, applying whitespace trims."""
    parts: list[str | _Tag] = []
    pos = 0
    while True:
        start = source.find("<%", pos)
        if start < 0:
            parts.append(source[pos:])
            break
        parts.append(source[pos:start])
        line = source.count("\n", 0, start) + 1

        if source.startswith("<%%", start):
            parts.append(_Tag("%", "", line))
            pos = start + 3
            continue

        end = source.find("%>", start + 2)
        if end < 0:
            raise RenderError(path, "unterminated tag, missing '%>'", line)

        body = source[start + 2:end]
        kind = ""
        if body[:1] in ("=", "-", "#", "_"):
            kind, body = body[0], body[1:]
        if kind == "_":
            kind = ""
            if parts and isinstance(parts[-1], str):
                parts[-1] = parts[-1].rstrip(" \t")

        trim_after = ""
        if body.endswith(("-", "_")):
            trim_after, body = body[-1], body[:-1]

        parts.append(_Tag(kind, body.strip(), line, trim_after))
        pos = end + 2

        rest = source[pos:]
        if trim_after == "-":
            if rest.startswith("\r\n"):
                pos += 2
            elif rest.startswith("\n"):
                pos += 1
        elif trim_after == "_":
            pos += len(rest) - len(rest.lstrip(" \t"))
    return parts


class _ExpressionParser:
    """Parses one tag expression into a fully parenthesised Jinja2 expression.

    Precedence follows JavaScript, loosest first: ``||``, ``&&``, the equality
    operators, then unary ``!``.  ``===`` and ``!==`` become the
    ``ejs_strict_eq`` test so that values of different types never compare
    equal.
    """

    def __init__(self, expr: str, path: Path, line: int) -> None:
        self.expr = expr
        self.path = path
        self.line = line
        self.pos = 0
        self.tokens: list[tuple[str, str]] = []
        for match in _EXPR_TOKEN.finditer(expr):
            group, value = match.lastgroup or "", match.group()
            if group == "space":
                continue
            if group == "other":
                raise self._error(f"unsupported token '{value}' in expression '{expr}'")
            self.tokens.append((group, value))

    def _error(self, reason: str) -> RenderError:
        return RenderError(self.path, reason, self.line)

    def _peek(self) -> str | None:
        if self.pos < len(self.tokens):
            return self.tokens[self.pos][1]
        return None

    def parse(self) -> str:
        if not self.tokens:
            raise self._error("empty expression")
        result = self._or()
        if self.pos < len(self.tokens):
            value = self.tokens[self.pos][1]
            if value == ")":
                raise self._error(f"unbalanced parentheses in '{self.expr}'")
            raise self._error(f"unexpected '{value}' in expression '{self.expr}'")
        return result

    def _or(self) -> str:
        left = self._and()
        while self._peek() == "||":
            self.pos += 1
            left = f"({left} or {self._and()})"
        return left

    def _and(self) -> str:
        left = self._equality()
        while self._peek() == "&&":
            self.pos += 1
            left = f"({left} and {self._equality()})"
        return left

    def _equality(self) -> str:
        left = self._unary()
        while self._peek() in _EQUALITY_OPERATORS:
            op = self.tokens[self.pos][1]
            self.pos += 1
            right = self._unary()
            if op == "===":
                left = f"({left} is ejs_strict_eq({right}))"
            elif op == "!==":
                left = f"({left} is not ejs_strict_eq({right}))"
            else:
                left = f"({left} {op} {right})"
        return left

    def _unary(self) -> str:
        if self._peek() == "!":
            self.pos += 1
            return f"(not {self._unary()})"
        return self._primary()

    def _primary(self) -> str:
        if self.pos >= len(self.tokens):
            raise self._error(f"incomplete expression '{self.expr}'")
        group, value = self.tokens[self.pos]
        self.pos += 1

        if value == "(":
            inner = self._or()
            if self._peek() != ")":
                raise self._error(f"unbalanced parentheses in '{self.expr}'")
            self.pos += 1
            return inner
        if group == "name":
            if value in _LITERALS:
                return _LITERALS[value]
            if value.split(".")[0] in _JINJA_KEYWORDS:
                raise self._error(f"reserved name '{value}' in expression '{self.expr}'")
            return value
        if group in ("string", "number"):
            return value
        raise self._error(f"unexpected '{value}' in expression '{self.expr}'")


def _translate_expression(expr: str, path: Path, line: int) -> str:
    return _ExpressionParser(expr, path, line).parse()


def translate(source: str, path: str | Path = "<string>") -> str:
    """Translate EJS-style *source* into the equivalent Jinja2 template text.

    Raises:
        RenderError: If a tag or expression falls outside the supported syntax.
    """
    path = Path(path)
    out: list[str] = []
    open_blocks: list[int] = []

    for part in _tokenize(source, path):
        if isinstance(part, str):
            out.append(part)
            continue

        if part.kind == "%":
            out.append("<%= '<%' %>")
        elif part.kind == "#":
            continue
        elif part.kind in ("=", "-"):
            expr = _translate_expression(part.body, path, part.line)
            filters = "|ejs_text|e" if part.kind == "=" else "|ejs_text"
            out.append(f"<%= ({expr}){filters} %>")
        else:
            out.append(_translate_statement(part, path, open_blocks))

    if open_blocks:
        raise RenderError(path, "unclosed 'if' block", open_blocks[-1])
    return "".join(out)


def _translate_statement(tag: _Tag, path: Path, open_blocks: list[int]) -> str:
    body = tag.body
    if not body:
        return ""

    match = _IF.match(body)
    if match:
        open_blocks.append(tag.line)
        return f"<% if {_translate_expression(match.group('expr'), path, tag.line)} %>"

    if _CLOSE.match(body) or _ELSE.match(body) or _ELSE_IF.match(body):
        if not open_blocks:
            raise RenderError(path, "'}' without a matching 'if'", tag.line)

    match = _ELSE_IF.match(body)
    if match:
        return f"<% elif {_translate_expression(match.group('expr'), path, tag.line)} %>"
    if _ELSE.match(body):
        return "<% else %>"
    if _CLOSE.match(body):
        open_blocks.pop()
        return "<% endif %>"

    raise RenderError(path, f"unsupported statement '{body}'", tag.line)


def _ejs_text_filter(value: Any) -> str:
    """Stringify a value the way the template language prints it."""
    if value is None:
        return ""
    if value is True:
        return "true"
    if value is False:
        return "false"
    return str(value)


def _ejs_strict_eq(value: Any, other: Any) -> bool:
    """``===``: equal values of the same type, numbers compared across int/float."""
    for operand in (value, other):
        if isinstance(operand, Undefined):
            operand._fail_with_undefined_error()
    if isinstance(value, bool) or isinstance(other, bool):
        return type(value) is type(other) and value == other
    if isinstance(value, (int, float)) and isinstance(other, (int, float)):
        return value == other
    if isinstance(value, str) and isinstance(other, str):
        return value == other
    return type(value) is type(other) and value == other


# ---------------------------------------------------------------------------
# TemplateRenderer
# ---------------------------------------------------------------------------


class TemplateRenderer:
    """Renders parametrized files in place inside a project directory.

    A parametrized file is any file whose name ends with *suffix*.  Rendering
    writes the result next to it, under the name with the suffix stripped,
    and removes the template.
    """

    def __init__(self, suffix: str = _DEFAULT_SUFFIX) -> None:
        if not suffix:
            raise ValueError("template suffix must not be empty")
        self.suffix = suffix
        self.env = Environment(
            block_start_string="<%",
            block_end_string="%>",
            variable_start_string="<%=",
            variable_end_string="%>",
            comment_start_string="<%#",
            comment_end_string="%>",
            autoescape=False,
            keep_trailing_newline=True,
            undefined=StrictUndefined,
        )
        self.env.filters["ejs_text"] = _ejs_text_filter
        self.env.tests["ejs_strict_eq"] = _ejs_strict_eq

    # -- String rendering --------------------------------------------------

    def render_string(
        self,
        source: str,
        context: dict[str, Any],
        path: str | Path = "<string>",
    ) -> str:
        """Render template *source* with *context*.

        Raises:
            RenderError: On malformed syntax or an undefined parameter.
        """
        jinja_source = translate(source, path)
        try:
            template = self.env.from_string(jinja_source)
            return str(template.render(**context))
        except UndefinedError as exc:
            raise RenderError(path, f"undefined parameter ({exc.message})") from exc
        except TemplateError as exc:
            raise RenderError(path, exc.message or type(exc).__name__) from exc

    # -- File-based rendering (async) --------------------------------------

    def is_template(self, path: Path) -> bool:
        return path.name.endswith(self.suffix) and len(path.name) > len(self.suffix)

    def target_path(self, template_path: str | Path) -> Path:
        """Return *template_path* with exactly the template suffix removed."""
        template_path = Path(template_path)
        if not self.is_template(template_path):
            raise ValueError(f"{template_path} does not end with {self.suffix}")
        return template_path.with_name(template_path.name[: -len(self.suffix)])

    async def render_file(self, template_path: str | Path, context: dict[str, Any]) -> Path:
        """Render one template file in place and delete the source.

        Returns:
            The path of the rendered file.
        """
        source_path = Path(template_path)
        output_path = self.target_path(source_path)
        try:
            text = await asyncio.to_thread(source_path.read_text, encoding="utf-8")
        except UnicodeDecodeError as exc:
            raise RenderError(
                source_path, f"not valid UTF-8 text ({exc.reason} at byte {exc.start})"
            ) from exc
        rendered = self.render_string(text, context, source_path)
        await asyncio.to_thread(_write_file, output_path, rendered)
        await asyncio.to_thread(source_path.unlink)
        return output_path

    async def render_tree(self, root: str | Path, context: dict[str, Any]) -> list[Path]:
        """Render every template file under *root*.

        Files are processed one at a time in sorted order.  A failure stops
        the walk: files rendered before it stay rendered, the rest keep their
        template form.

        Returns:
            List of written file paths.
        """
        written: list[Path] = []
        for template_file in self.list_templates(root):
            written.append(await self.render_file(template_file, context))
        return written

    # -- Utility -----------------------------------------------------------

    def list_templates(self, root: str | Path) -> list[Path]:
        """Return a sorted list of all template files under *root*."""
        root_path = Path(root)
        if not root_path.is_dir():
            return []
        return sorted(
            p for p in root_path.rglob(f"*{self.suffix}") if p.is_file() and self.is_template(p)
        )


async def render_all(
    project_dir: str | Path,
    params: dict[str, Any],
    suffix: str = _DEFAULT_SUFFIX,
) -> list[Path]:
    """Render every parametrized file in *project_dir* with *params*."""
    return await TemplateRenderer(suffix).render_tree(project_dir, params)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _write_file(path: Path, content: str) -> None:
    """Synchronous helper: create parent dirs and write content."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
