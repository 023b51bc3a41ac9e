"""Dispatch decisions, retry scheduling and token accounting for the orchestrator."""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from .config import AgentConfig
from .issue import Issue, parse_normalized_state
from .normalization import normalize_state_name
from .runtime import RetryEntry, RunningEntry, RuntimeState

_I32_MAX = 2**31 - 1
_CONTINUATION_DELAY_MS = 1_000
_BASE_FAILURE_BACKOFF_MS = 10_000
_MAX_BACKOFF_EXPONENT = 31


@dataclass
class DispatchPolicy:
    """Which states are dispatchable or finished, and the agent limits."""

    active_states: set[str]
    terminal_states: set[str]
    agent: AgentConfig


class ExitKind(Enum):
    NORMAL = "normal"
    FAILED = "failed"
    TIMED_OUT = "timed_out"
    STALLED = "stalled"


@dataclass(frozen=True)
class WorkerExitReason:
    """Why a worker stopped; ``error`` is only meaningful for ``FAILED``."""

    kind: ExitKind
    error: str | None = None


@dataclass(frozen=True)
class RetryPlan:
    issue_id: str
    attempt: int
    due_after_ms: int
    error: str | None = None


def initial_runtime_state(poll_interval_ms: int, max_concurrent_agents: int) -> RuntimeState:
    """Return an empty runtime state with zeroed totals."""
    return RuntimeState(
        poll_interval_ms=poll_interval_ms,
        max_concurrent_agents=max_concurrent_agents,
    )


def available_slots(runtime: RuntimeState, policy: DispatchPolicy) -> int:
    return max(0, policy.agent.max_concurrent_agents - len(runtime.running))


def is_terminal_state(state: str, policy: DispatchPolicy) -> bool:
    return normalize_state_name(state) in policy.terminal_states


def is_active_state(state: str, policy: DispatchPolicy) -> bool:
    return normalize_state_name(state) in policy.active_states


def _priority_key(issue: Issue) -> tuple:
    priority = issue.priority if issue.priority is not None else _I32_MAX
    # Issues without a creation time sort before those with one.
    created = (False, 0) if issue.created_at is None else (True, issue.created_at)
    return (priority, created, issue.identifier)


def sort_for_dispatch(issues: Iterable[Issue]) -> list[Issue]:
    """Order issues by priority, then creation time, then identifier."""
    return sorted(issues, key=_priority_key)


def should_dispatch(issue: Issue, runtime: RuntimeState, policy: DispatchPolicy) -> bool:
    if issue.id in runtime.running or issue.id in runtime.claimed:
        return False
    if not is_active_state(issue.state, policy) or is_terminal_state(issue.state, policy):
        return False
    if available_slots(runtime, policy) == 0:
        return False
    if not _within_state_concurrency_limit(issue, runtime, policy):
        return False
    if normalize_state_name(issue.state) == "todo" and _has_non_terminal_blocker(issue, policy):
        return False
    return True


def register_running_issue(
    runtime: RuntimeState,
    issue: Issue,
    retry_attempt: int | None,
    started_at: datetime,
) -> None:
    """Claim ``issue`` and record it as running, clearing any pending retry."""
    runtime.claimed.add(issue.id)
    runtime.retry_attempts.pop(issue.id, None)
    runtime.running[issue.id] = RunningEntry(
        issue=issue,
        started_at=started_at,
        retry_attempt=retry_attempt,
    )


def compute_retry_plan(
    issue_id: str,
    retry_attempt: int | None,
    reason: WorkerExitReason,
    max_backoff_ms: int,
) -> RetryPlan:
    if reason.kind is ExitKind.NORMAL:
        return RetryPlan(issue_id, 1, continuation_delay_ms(), None)

    attempt = (retry_attempt or 0) + 1
    if reason.kind is ExitKind.FAILED:
        error = reason.error
    elif reason.kind is ExitKind.TIMED_OUT:
        error = "turn_timeout"
    else:
        error = "stalled"
    return RetryPlan(issue_id, attempt, failure_backoff_ms(attempt, max_backoff_ms), error)


def apply_worker_exit(
    runtime: RuntimeState,
    issue_id: str,
    reason: WorkerExitReason,
    due_at_ms: int,
    max_backoff_ms: int,
) -> RetryEntry | None:
    """Remove a running issue and schedule its retry; ``None`` if it was not running."""
    running_entry = runtime.running.pop(issue_id, None)
    if running_entry is None:
        return None

    plan = compute_retry_plan(issue_id, running_entry.retry_attempt, reason, max_backoff_ms)
    if reason.kind is ExitKind.NORMAL:
        runtime.completed.add(issue_id)

    retry_entry = RetryEntry(
        issue_id=issue_id,
        identifier=running_entry.issue.identifier,
        attempt=plan.attempt,
        due_at_ms=due_at_ms + plan.due_after_ms,
        error=plan.error,
    )
    runtime.retry_attempts[issue_id] = retry_entry
    return retry_entry


def apply_absolute_token_totals(
    runtime: RuntimeState,
    issue_id: str,
    input_tokens: int,
    output_tokens: int,
    total_tokens: int,
) -> None:
    """Record absolute token counts for a session and add only the growth to the totals."""
    running_entry = runtime.running.get(issue_id)
    if running_entry is None:
        return

    session = running_entry.live_session
    delta_input = max(0, input_tokens - session.last_reported_input_tokens)
    delta_output = max(0, output_tokens - session.last_reported_output_tokens)
    delta_total = max(0, total_tokens - session.last_reported_total_tokens)

    session.last_reported_input_tokens = input_tokens
    session.last_reported_output_tokens = output_tokens
    session.last_reported_total_tokens = total_tokens

    session.codex_input_tokens = input_tokens
    session.codex_output_tokens = output_tokens
    session.codex_total_tokens = total_tokens

    totals = runtime.codex_totals
    totals.input_tokens += delta_input
    totals.output_tokens += delta_output
    totals.total_tokens += delta_total


def continuation_delay_ms() -> int:
    return _CONTINUATION_DELAY_MS


def failure_backoff_ms(attempt: int, max_backoff_ms: int) -> int:
    """Exponential backoff from 10 s, doubling per attempt, capped at ``max_backoff_ms``."""
    exponent = min(max(attempt - 1, 0), _MAX_BACKOFF_EXPONENT)
    return min(_BASE_FAILURE_BACKOFF_MS * 2**exponent, max_backoff_ms)


def parse_state_set(states: Iterable[str]) -> set[str]:
    return {normalize_state_name(state) for state in states}


def parse_running_state_count(runtime: RuntimeState) -> dict[str, int]:
    """Count running issues per normalised state."""
    return dict(
        Counter(normalize_state_name(entry.issue.state) for entry in runtime.running.values())
    )


def _within_state_concurrency_limit(
    issue: Issue, runtime: RuntimeState, policy: DispatchPolicy
) -> bool:
    state = normalize_state_name(issue.state)
    current = parse_running_state_count(runtime).get(state, 0)
    limit = policy.agent.max_concurrent_agents_by_state.get(
        state, policy.agent.max_concurrent_agents
    )
    return current < limit


def _has_non_terminal_blocker(issue: Issue, policy: DispatchPolicy) -> bool:
    return any(
        blocker.state is None
        or normalize_state_name(blocker.state) not in policy.terminal_states
        for blocker in issue.blocked_by
    )


def normalized_state(state: str) -> str:
    """Return the normalised form of ``state``; raises if it is empty."""
    return parse_normalized_state(state)