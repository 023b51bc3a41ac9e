"""Service configuration types and the parsers for their values."""

from __future__ import annotations

from dataclasses import dataclass
from dataclasses import field as _field
from enum import Enum
from typing import Any, Union

from .errors import InvalidValueError, validation_error
from .issue import parse_issue_state
from .normalization import parse_comma_separated

_U32_MASK = 0xFFFF_FFFF


class TrackerKind(Enum):
    LINEAR = "linear"


@dataclass(frozen=True)
class LiteralValue:
    """A configuration value given literally."""

    value: str


@dataclass(frozen=True)
class EnvironmentVariable:
    """A configuration value to be read from the named environment variable."""

    name: str


EnvResolvedValue = Union[LiteralValue, EnvironmentVariable]


@dataclass
class TrackerConfig:
    kind: TrackerKind
    endpoint: str
    api_key: str
    project_slug: str
    active_states: list[str]
    terminal_states: list[str]


@dataclass
class PollingConfig:
    interval_ms: int


@dataclass
class WorkspaceConfig:
    root: str


@dataclass
class HookConfig:
    timeout_ms: int
    after_create: str | None = None
    before_run: str | None = None
    after_run: str | None = None
    before_remove: str | None = None


@dataclass
class AgentConfig:
    max_concurrent_agents: int
    max_turns: int
    max_retry_backoff_ms: int
    max_concurrent_agents_by_state: dict[str, int] = _field(default_factory=dict)


@dataclass
class CodexConfig:
    command: str
    approval_policy: str
    thread_sandbox: str
    turn_sandbox_policy: Any
    turn_timeout_ms: int
    read_timeout_ms: int
    stall_timeout_ms: int


@dataclass
class ServerConfig:
    port: int


@dataclass
class ServiceConfig:
    tracker: TrackerConfig
    polling: PollingConfig
    workspace: WorkspaceConfig
    hooks: HookConfig
    agent: AgentConfig
    codex: CodexConfig
    server: ServerConfig | None = None
    extra: dict[str, Any] = _field(default_factory=dict)


def _at_least_one(field_name: str, candidate: int) -> int:
    if candidate < 1:
        raise validation_error(field_name, "value must be at least 1")
    return candidate


def parse_positive_ms(field: str, raw: int, default: int) -> int:
    """Return ``raw``, or ``default`` when ``raw`` is not positive; the result must be >= 1."""
    candidate = default if raw <= 0 else raw
    return _at_least_one(field, candidate)


def parse_positive_count(field: str, raw: int, default: int) -> int:
    """Return ``raw``, or ``default`` when ``raw`` is not positive; the result must be >= 1."""
    # Counts are 32-bit; wider values wrap.
    candidate = default if raw <= 0 else raw & _U32_MASK
    return _at_least_one(field, candidate)


def parse_workspace_root(raw: str) -> str:
    root = raw.strip()
    if not root:
        raise validation_error("workspace.root", "value must not be empty")
    return root


def parse_state_list(raw: str) -> list[str]:
    """Parse a comma separated list of state names, keeping their order."""
    states = [parse_issue_state(segment) for segment in parse_comma_separated(raw)]
    if not states:
        raise InvalidValueError("tracker.states", "at least one state is required")
    return states


def parse_env_resolved_value(raw: str) -> EnvResolvedValue:
    """Parse ``$NAME`` as an environment reference, anything else as a literal."""
    trimmed = raw.strip()
    if not trimmed:
        raise InvalidValueError("env", "value cannot be empty")
    if trimmed.startswith("$"):
        name = trimmed[1:]
        if not name:
            raise InvalidValueError("env", "environment variable name is missing")
        return EnvironmentVariable(name)
    return LiteralValue(trimmed)