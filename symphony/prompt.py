"""Rendering of issue prompts from workflow templates."""

from __future__ import annotations

import re
from typing import Any

import jinja2

from .errors import TemplateParseError, TemplateRenderError
from .issue import Issue

_EXPRESSION = re.compile(r"\{\{\s*([a-zA-Z_][a-zA-Z0-9_.]*)[\s|}]?")
_FOR_LOOP = re.compile(r"\{%\s*for\s+\w+\s+in\s+([a-zA-Z_][a-zA-Z0-9_.]*)\s*%\}")

_ENVIRONMENT = jinja2.Environment(
    undefined=jinja2.StrictUndefined,
    autoescape=False,
    finalize=lambda value: "" if value is None else value,
)


def render_issue_prompt(template: str, issue: Issue, attempt: int | None) -> str:
    """Render ``template`` for ``issue``; every referenced variable must exist."""
    try:
        compiled = _ENVIRONMENT.from_string(template)
    except jinja2.TemplateSyntaxError as err:
        raise TemplateParseError(str(err)) from err

    context = {"issue": issue.to_dict(), "attempt": attempt}
    _validate_template_variables(template, context)

    try:
        rendered = compiled.render(context)
    except jinja2.TemplateError as err:
        raise TemplateRenderError(str(err)) from err
    return rendered.strip()


def _validate_template_variables(template: str, context: dict[str, Any]) -> None:
    required = {match.group(1) for match in _EXPRESSION.finditer(template)}
    required |= {match.group(1) for match in _FOR_LOOP.finditer(template)}
    for path in sorted(required):
        if not _path_exists(context, path):
            raise TemplateRenderError(f"unknown variable: {path}")


def _path_exists(context: Any, dot_path: str) -> bool:
    current = context
    for segment in dot_path.split("."):
        if not isinstance(current, dict) or segment not in current:
            return False
        current = current[segment]
    return True