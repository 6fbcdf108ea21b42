"""
Expression templating for alert definitions.

Stored expressions mark their tunable parameters with ``[[ ... ]]`` so
they do not collide with the ruler's own ``{{ ... }}`` templating in
annotations. Rendering rewrites that notation to ``{{ ... }}``, binds
``.Threshold`` and ``.Duration`` and validates the result as PromQL:

    >>> render_expression(TemplateData(threshold="85"), "up == [[ .Threshold ]]")
    'up == 85'
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from alertsync.core.errors import (
    InvalidExpressionError,
    TemplateSyntaxError,
    UndefinedFieldError,
)
from alertsync.validation.promql import PromQLSyntaxError, parse_expr

# Appended to the expression of a disabled definition so the rule stays
# loaded in the ruler but can never fire.
DISABLED_SUFFIX = " and false"

_ACTION_OPEN = "{{"
_ACTION_CLOSE = "}}"
# Go templates accept any ASCII space after "{{-" and before "-}}".
_TRIM_SPACE = " \t\r\n"
_FIELD_RE = re.compile(r"\.([A-Za-z_][A-Za-z0-9_]*)\Z")


@dataclass(frozen=True)
class TemplateData:
    """Values available to an expression template."""

    threshold: str = ""
    duration: str = ""

    def lookup(self, name: str) -> str | None:
        return {"Threshold": self.threshold, "Duration": self.duration}.get(name)


def normalize_placeholders(expr: str) -> str:
    """Rewrite ``[[ ... ]]`` placeholders to ``{{ ... }}``."""
    return expr.replace("[[", _ACTION_OPEN).replace("]]", _ACTION_CLOSE)


def substitute(data: TemplateData, expr: str) -> str:
    """Execute the ``{{ .Field }}`` actions in ``expr`` against ``data``.

    Trim markers (``{{- `` and `` -}}``) remove the whitespace next to the
    action, as in Go templates.

    Raises:
        TemplateSyntaxError: on an unterminated or unsupported action
        UndefinedFieldError: when an action names a field ``data`` lacks
    """
    pieces: list[str] = []
    pos = 0

    while True:
        start = expr.find(_ACTION_OPEN, pos)
        if start == -1:
            pieces.append(expr[pos:])
            break

        end = expr.find(_ACTION_CLOSE, start + len(_ACTION_OPEN))
        if end == -1:
            raise TemplateSyntaxError(f"unclosed action at char {start + 1}", expr)

        text = expr[pos:start]
        action = expr[start + len(_ACTION_OPEN) : end]

        if action == "-" or (action[:1] == "-" and action[1] in _TRIM_SPACE):
            text = text.rstrip()
            action = action[1:]
        trim_right = len(action) >= 2 and action[-1] == "-" and action[-2] in _TRIM_SPACE
        if trim_right:
            action = action[:-1]

        pieces.append(text)

        match = _FIELD_RE.match(action.strip())
        if not match:
            raise TemplateSyntaxError(
                f"unsupported action {{{{{action.strip()}}}}} at char {start + 1}", expr
            )

        value = data.lookup(match.group(1))
        if value is None:
            raise UndefinedFieldError(match.group(1), expr)
        pieces.append(value)

        pos = end + len(_ACTION_CLOSE)
        if trim_right:
            while pos < len(expr) and expr[pos].isspace():
                pos += 1

    return "".join(pieces)


def render_expression(data: TemplateData, expr: str) -> str:
    """Fill in an expression template and validate the result as PromQL.

    Args:
        data: Threshold and duration to substitute
        expr: Expression template, using ``[[ ]]`` or ``{{ }}`` actions

    Returns:
        The rendered expression

    Raises:
        TemplateSyntaxError: if the template itself is malformed
        UndefinedFieldError: if the template references an unknown field
        InvalidExpressionError: if the rendered text is not valid PromQL
    """
    rendered = substitute(data, normalize_placeholders(expr))

    try:
        parse_expr(rendered)
    except PromQLSyntaxError as exc:
        raise InvalidExpressionError(exc.message, rendered, exc.pos) from exc

    return rendered


def disable_expression(expr: str) -> str:
    """Make a validated expression inert without removing the rule."""
    return expr + DISABLED_SUFFIX
