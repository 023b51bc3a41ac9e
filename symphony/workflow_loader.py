"""Parsing of workflow files: optional YAML front matter followed by a prompt template."""

from __future__ import annotations

import math
from typing import Any

import yaml

from .errors import WorkflowFrontMatterNotAMapError, WorkflowParseError
from .workflow import WorkflowDefinition

_MARKER = "---"
_TIMESTAMP_TAG = "tag:yaml.org,2002:timestamp"


class _FrontMatterLoader(yaml.SafeLoader):
    """Safe loader that leaves timestamps as plain strings."""


_FrontMatterLoader.yaml_implicit_resolvers = {
    first: [(tag, regexp) for tag, regexp in resolvers if tag != _TIMESTAMP_TAG]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}


def _lines(text: str) -> list[str]:
    return [line[:-1] if line.endswith("\r") else line for line in text.split("\n")]


def _to_json(value: Any) -> Any:
    if isinstance(value, dict):
        result = {}
        for key, item in value.items():
            if isinstance(key, str):
                name = key
            elif isinstance(key, bool):
                name = "true" if key else "false"
            elif isinstance(key, int):
                name = str(key)
            else:
                raise WorkflowParseError(
                    f"invalid front matter value: unsupported mapping key {key!r}"
                )
            result[name] = _to_json(item)
        return result
    if isinstance(value, list):
        return [_to_json(item) for item in value]
    if isinstance(value, float) and not math.isfinite(value):
        return None
    if isinstance(value, bytes):
        return list(value)
    return value


def parse_workflow(contents: str) -> WorkflowDefinition:
    """Split ``contents`` into front-matter config and a trimmed prompt template."""
    trimmed = contents.rstrip("\n")
    if not trimmed.startswith(_MARKER):
        return WorkflowDefinition(config={}, prompt_template=trimmed.strip())

    lines = iter(_lines(trimmed))
    first_line = next(lines)
    if first_line.strip() != _MARKER:
        return WorkflowDefinition(config={}, prompt_template=trimmed.strip())

    yaml_lines: list[str] = []
    for line in lines:
        if line.strip() == _MARKER:
            break
        yaml_lines.append(line)
    else:
        raise WorkflowParseError("front matter start marker found without closing marker")

    try:
        front_matter = yaml.load("\n".join(yaml_lines), Loader=_FrontMatterLoader)
    except yaml.YAMLError as err:
        raise WorkflowParseError(f"failed to decode yaml front matter: {err}") from err

    if not isinstance(front_matter, dict):
        raise WorkflowFrontMatterNotAMapError()

    config: dict[str, Any] = {}
    for key, value in front_matter.items():
        if not isinstance(key, str):
            raise WorkflowParseError("front matter keys must be strings")
        config[key] = _to_json(value)

    prompt_body = "\n".join(lines).strip()
    return WorkflowDefinition(config=dict(sorted(config.items())), prompt_template=prompt_body)