"""Tracker issues and the parsers that validate their fields."""

from __future__ import annotations

import dataclasses
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from .errors import validation_error
from .normalization import normalize_label, normalize_state_name

_LABEL_PATTERN = re.compile(r"[a-z0-9._-]+")


@dataclass(kw_only=True)
class BlockerRef:
    """A reference to an issue that blocks another one."""

    id: str | None = None
    identifier: str | None = None
    state: str | None = None


@dataclass(kw_only=True)
class Issue:
    """An issue as fetched from the tracker."""

    id: str
    identifier: str
    title: str
    description: str | None = None
    priority: int | None = None
    state: str
    branch_name: str | None = None
    url: str | None = None
    labels: list[str] = field(default_factory=list)
    blocked_by: list[BlockerRef] = field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-compatible representation of the issue."""
        return {
            "id": self.id,
            "identifier": self.identifier,
            "title": self.title,
            "description": self.description,
            "priority": self.priority,
            "state": self.state,
            "branch_name": self.branch_name,
            "url": self.url,
            "labels": list(self.labels),
            "blocked_by": [dataclasses.asdict(blocker) for blocker in self.blocked_by],
            "created_at": _timestamp(self.created_at),
            "updated_at": _timestamp(self.updated_at),
        }


def _timestamp(value: datetime | None) -> str | None:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    if value.microsecond == 0:
        spec = "seconds"
    elif value.microsecond % 1000 == 0:
        spec = "milliseconds"
    else:
        spec = "microseconds"
    return value.isoformat(timespec=spec).replace("+00:00", "Z")


def _non_empty(field_name: str, value: str) -> str:
    if not value:
        raise validation_error(field_name, "value must not be empty")
    return value


def parse_issue_id(raw: str) -> str:
    return _non_empty("issue.id", raw.strip())


def parse_issue_identifier(raw: str) -> str:
    return _non_empty("issue.identifier", raw.strip())


def parse_issue_title(raw: str) -> str:
    return _non_empty("issue.title", raw.strip())


def parse_issue_state(raw: str) -> str:
    return _non_empty("issue.state", raw.strip())


def parse_normalized_state(raw: str) -> str:
    return _non_empty("normalized_state", normalize_state_name(raw))


def parse_label(raw: str) -> str:
    """Normalise a label and check it uses only ``a-z0-9._-``."""
    normalized = _non_empty("issue.label", normalize_label(raw))
    if not _LABEL_PATTERN.fullmatch(normalized):
        raise validation_error("issue.label", "value must match ^[a-z0-9._-]+$")
    return normalized