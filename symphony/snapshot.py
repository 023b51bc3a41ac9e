"""Read-only views of the runtime state for the dashboard and API."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any

from .runtime import RetryEntry, RuntimeState

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def _rfc3339(value: datetime | None) -> str | None:
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


@dataclass
class RuntimeCounts:
    running: int
    retrying: int


@dataclass
class TokenSnapshot:
    input_tokens: int = 0
    output_tokens: int = 0
    total_tokens: int = 0


@dataclass
class RunningSnapshotRow:
    issue_id: str
    issue_identifier: str
    state: str
    started_at: datetime
    session_id: str | None = None
    turn_count: int = 0
    last_event: str | None = None
    last_message: str | None = None
    last_event_at: datetime | None = None
    tokens: TokenSnapshot = field(default_factory=TokenSnapshot)


@dataclass
class RetrySnapshotRow:
    issue_id: str
    issue_identifier: str
    attempt: int
    due_at: datetime
    error: str | None = None


@dataclass
class CodexTotalsSnapshot:
    input_tokens: int = 0
    output_tokens: int = 0
    total_tokens: int = 0
    seconds_running: float = 0.0


@dataclass
class RuntimeSnapshot:
    generated_at: datetime
    counts: RuntimeCounts
    running: list[RunningSnapshotRow] = field(default_factory=list)
    retrying: list[RetrySnapshotRow] = field(default_factory=list)
    codex_totals: CodexTotalsSnapshot = field(default_factory=CodexTotalsSnapshot)
    rate_limits: Any = None

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-compatible representation with RFC 3339 timestamps."""
        return {
            "generated_at": _rfc3339(self.generated_at),
            "counts": {"running": self.counts.running, "retrying": self.counts.retrying},
            "running": [
                {
                    "issue_id": row.issue_id,
                    "issue_identifier": row.issue_identifier,
                    "state": row.state,
                    "session_id": row.session_id,
                    "turn_count": row.turn_count,
                    "last_event": row.last_event,
                    "last_message": row.last_message,
                    "started_at": _rfc3339(row.started_at),
                    "last_event_at": _rfc3339(row.last_event_at),
                    "tokens": {
                        "input_tokens": row.tokens.input_tokens,
                        "output_tokens": row.tokens.output_tokens,
                        "total_tokens": row.tokens.total_tokens,
                    },
                }
                for row in self.running
            ],
            "retrying": [
                {
                    "issue_id": row.issue_id,
                    "issue_identifier": row.issue_identifier,
                    "attempt": row.attempt,
                    "due_at": _rfc3339(row.due_at),
                    "error": row.error,
                }
                for row in self.retrying
            ],
            "codex_totals": {
                "input_tokens": self.codex_totals.input_tokens,
                "output_tokens": self.codex_totals.output_tokens,
                "total_tokens": self.codex_totals.total_tokens,
                "seconds_running": self.codex_totals.seconds_running,
            },
            "rate_limits": self.rate_limits,
        }


def build_runtime_snapshot(runtime: RuntimeState, now: datetime) -> RuntimeSnapshot:
    """Summarise ``runtime`` as of ``now``, adding live elapsed time to the totals."""
    running = [
        RunningSnapshotRow(
            issue_id=entry.issue.id,
            issue_identifier=entry.issue.identifier,
            state=entry.issue.state,
            session_id=entry.live_session.session_id,
            turn_count=entry.live_session.turn_count,
            last_event=entry.live_session.last_codex_event,
            last_message=entry.live_session.last_codex_message,
            started_at=entry.started_at,
            last_event_at=entry.live_session.last_codex_timestamp,
            tokens=TokenSnapshot(
                input_tokens=entry.live_session.codex_input_tokens,
                output_tokens=entry.live_session.codex_output_tokens,
                total_tokens=entry.live_session.codex_total_tokens,
            ),
        )
        for entry in runtime.running.values()
    ]
    retrying = [_retry_row(entry) for entry in runtime.retry_attempts.values()]

    live_elapsed_seconds = sum(
        float(max(0, (now - entry.started_at) // timedelta(seconds=1)))
        for entry in runtime.running.values()
    )

    totals = runtime.codex_totals
    return RuntimeSnapshot(
        generated_at=now,
        counts=RuntimeCounts(running=len(running), retrying=len(retrying)),
        running=running,
        retrying=retrying,
        codex_totals=CodexTotalsSnapshot(
            input_tokens=totals.input_tokens,
            output_tokens=totals.output_tokens,
            total_tokens=totals.total_tokens,
            seconds_running=float(totals.seconds_running) + live_elapsed_seconds,
        ),
        rate_limits=runtime.codex_rate_limits,
    )


def _retry_row(entry: RetryEntry) -> RetrySnapshotRow:
    try:
        due_at = _EPOCH + timedelta(milliseconds=entry.due_at_ms)
    except OverflowError:
        due_at = datetime.now(timezone.utc)
    return RetrySnapshotRow(
        issue_id=entry.issue_id,
        issue_identifier=entry.identifier,
        attempt=entry.attempt,
        due_at=due_at,
        error=entry.error,
    )