"""Server-side rendering of the runtime dashboard page."""

from __future__ import annotations

import html
import json
import os
from collections.abc import Iterable
from datetime import datetime, timezone
from typing import Any

from .snapshot import RetrySnapshotRow, RunningSnapshotRow, RuntimeSnapshot

DASHBOARD_ROOT_ID = "symphony-dashboard-root"
DASHBOARD_STATE_SCRIPT_ID = "symphony-dashboard-snapshot"
DASHBOARD_CONTROLS_ROOT_ID = "symphony-dashboard-controls-root"
DASHBOARD_GENERATED_AT_ID = "symphony-dashboard-generated-at"
DASHBOARD_REFRESH_ID = "symphony-dashboard-refresh"
DASHBOARD_LIVE_STATUS_ID = "symphony-dashboard-live-status"
DASHBOARD_RUNNING_COUNT_ID = "symphony-dashboard-running-count"
DASHBOARD_RETRYING_COUNT_ID = "symphony-dashboard-retrying-count"
DASHBOARD_TOTAL_TOKENS_ID = "symphony-dashboard-total-tokens"
DASHBOARD_INPUT_TOKENS_ID = "symphony-dashboard-input-tokens"
DASHBOARD_OUTPUT_TOKENS_ID = "symphony-dashboard-output-tokens"
DASHBOARD_RUNTIME_SECONDS_ID = "symphony-dashboard-runtime-seconds"
DASHBOARD_RUNNING_ROWS_ID = "symphony-dashboard-running-rows"
DASHBOARD_RETRY_ROWS_ID = "symphony-dashboard-retry-rows"
DASHBOARD_RATE_LIMITS_ID = "symphony-dashboard-rate-limits"

HYDRATION_PENDING_STATUS = "Hydration pending"
NO_RATE_LIMITS_TEXT = "No rate limit payload received yet"

_CELL = '<td style="padding: 0.5rem; border-top: 1px solid #e2e8f0;">{}</td>'
_EMPTY_ROW = (
    '<tr><td colspan="{colspan}" style="padding: 0.75rem; border-top: 1px solid #e2e8f0;'
    ' color: #64748b;">{message}</td></tr>'
)
_TH_STYLE = "padding: 0.5rem; border-bottom: 1px solid #cbd5e1;"
_CARD_STYLE = "padding: 0.9rem; border: 1px solid #cbd5e1; border-radius: 0.6rem;"
_TABLE_STYLE = "width: 100%; border-collapse: collapse; border: 1px solid #cbd5e1;"


def output_name() -> str:
    """Name of the client bundle, from ``LEPTOS_OUTPUT_NAME`` or the default."""
    return os.environ.get("LEPTOS_OUTPUT_NAME", "symphony-app")


def site_pkg_dir() -> str:
    """Directory under the site root that holds the client bundle."""
    return os.environ.get("LEPTOS_SITE_PKG_DIR", "pkg")


def site_root() -> str:
    """Root directory of the static site."""
    return os.environ.get("LEPTOS_SITE_ROOT", "target/site")


def _rfc3339(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    if value.microsecond == 0:
        spec = "seconds"
    elif value.microsecond % 1000 == 0:
        spec = "milliseconds"
    else:
        spec = "microseconds"
    return value.isoformat(timespec=spec)


def _sorted_json(value: Any) -> Any:
    if isinstance(value, dict):
        return {key: _sorted_json(value[key]) for key in sorted(value)}
    if isinstance(value, list):
        return [_sorted_json(item) for item in value]
    return value


def _text(value: str) -> str:
    return html.escape(value, quote=False)


def format_rate_limits(rate_limits: Any) -> str:
    """Pretty-print the rate limit payload, or a placeholder when there is none."""
    if rate_limits is None:
        return NO_RATE_LIMITS_TEXT
    try:
        return json.dumps(
            rate_limits, indent=2, sort_keys=True, ensure_ascii=False
        )
    except (TypeError, ValueError):
        return NO_RATE_LIMITS_TEXT


def render_generated_at(snapshot: RuntimeSnapshot) -> str:
    return f"generated at {_rfc3339(snapshot.generated_at)}"


def escape_html_text(value: str) -> str:
    """Escape the five HTML-significant characters."""
    return (
        value.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
        .replace("'", "&#39;")
    )


def escape_json_for_html_script(rendered: str) -> str:
    """Make serialised JSON safe to embed inside a ``<script>`` element."""
    return (
        rendered.replace("&", "\\u0026")
        .replace("<", "\\u003c")
        .replace(">", "\\u003e")
        .replace("\u2028", "\\u2028")
        .replace("\u2029", "\\u2029")
    )


def _row(cells: Iterable[object]) -> str:
    return "<tr>" + "".join(_CELL.format(cell) for cell in cells) + "</tr>"


def _running_row_html(row: RunningSnapshotRow) -> str:
    return _row(
        [
            escape_html_text(row.issue_identifier),
            escape_html_text(row.state),
            escape_html_text(row.session_id if row.session_id is not None else "-"),
            row.turn_count,
            escape_html_text(row.last_event if row.last_event is not None else "-"),
            row.tokens.total_tokens,
        ]
    )


def _retry_row_html(row: RetrySnapshotRow) -> str:
    return _row(
        [
            escape_html_text(row.issue_identifier),
            row.attempt,
            escape_html_text(_rfc3339(row.due_at)),
            escape_html_text(row.error if row.error is not None else "-"),
        ]
    )


def format_running_rows_html(rows: Iterable[RunningSnapshotRow]) -> str:
    rendered = "".join(_running_row_html(row) for row in rows)
    return rendered or _EMPTY_ROW.format(colspan=6, message="No active sessions")


def format_retry_rows_html(rows: Iterable[RetrySnapshotRow]) -> str:
    rendered = "".join(_retry_row_html(row) for row in rows)
    return rendered or _EMPTY_ROW.format(colspan=4, message="No queued retries")


def _hydration_scripts() -> str:
    base = f"/{site_pkg_dir()}/{output_name()}"
    return (
        f'<link rel="modulepreload" href="{base}.js">'
        f'<link rel="preload" href="{base}_bg.wasm" as="fetch" '
        'type="application/wasm" crossorigin="">'
        f"<script type=\"module\">import('{base}.js').then(mod => "
        f"{{ mod.default('{base}_bg.wasm').then(() => mod.hydrate()); }})</script>"
    )


def _controls_html() -> str:
    return (
        f'<div id="{DASHBOARD_CONTROLS_ROOT_ID}" '
        'style="display: flex; flex-direction: column; gap: 0.5rem; align-items: end;">'
        f'<button id="{DASHBOARD_REFRESH_ID}" type="button" data-testid="dashboard-refresh" '
        'style="padding: 0.7rem 1rem; border-radius: 0.6rem; border: 1px solid #0f172a; '
        'background: #0f172a; color: white; font-weight: 600; cursor: pointer;">'
        "Refresh dashboard</button>"
        f'<p id="{DASHBOARD_LIVE_STATUS_ID}" role="status" style="margin: 0; color: #475569;" '
        f'data-testid="dashboard-live-status">{HYDRATION_PENDING_STATUS}</p>'
        "</div>"
    )


def _card(element_id: str, testid: str, value: str, caption: str) -> str:
    return (
        f'<article style="{_CARD_STYLE}">'
        f'<strong id="{element_id}" data-testid="{testid}">{_text(value)}</strong>'
        f'<div style="color: #64748b;">{caption}</div></article>'
    )


def _table(title: str, headers: list[str], body_id: str, body_html: str) -> str:
    head = "".join(f'<th style="{_TH_STYLE}">{header}</th>' for header in headers)
    return (
        '<section style="margin: 1.25rem 0;">'
        f'<h2 style="font-size: 1.1rem;">{title}</h2>'
        f'<table style="{_TABLE_STYLE}"><thead>'
        f'<tr style="background: #f8fafc; text-align: left;">{head}</tr></thead>'
        f'<tbody id="{body_id}">{body_html}</tbody></table></section>'
    )


def _app_html(snapshot: RuntimeSnapshot) -> str:
    totals = snapshot.codex_totals
    return (
        f'<main id="{DASHBOARD_ROOT_ID}" style="font-family: ui-sans-serif, system-ui, '
        'sans-serif; max-width: 1100px; margin: 2rem auto; padding: 0 1rem;">'
        '<header style="display: flex; justify-content: space-between; gap: 1rem; '
        'align-items: start; flex-wrap: wrap;"><div>'
        '<h1 style="font-size: 2rem; margin-bottom: 0.5rem;">Symphony Runtime</h1>'
        f'<p id="{DASHBOARD_GENERATED_AT_ID}" style="color: #475569; margin-top: 0;" '
        f'data-testid="dashboard-generated-at">{_text(render_generated_at(snapshot))}</p>'
        f"</div>{_controls_html()}</header>"
        '<section style="display: grid; grid-template-columns: repeat(3, minmax(0, 1fr)); '
        'gap: 0.75rem; margin: 1.25rem 0;">'
        + _card(DASHBOARD_RUNNING_COUNT_ID, "running-count", str(snapshot.counts.running), "running")
        + _card(
            DASHBOARD_RETRYING_COUNT_ID, "retrying-count", str(snapshot.counts.retrying), "retrying"
        )
        + _card(DASHBOARD_TOTAL_TOKENS_ID, "total-tokens", str(totals.total_tokens), "total tokens")
        + "</section>"
        '<section style="margin: 1.25rem 0; display: grid; gap: 0.1rem;">'
        f'<p id="{DASHBOARD_INPUT_TOKENS_ID}" style="margin: 0.1rem 0;">'
        f"input: {totals.input_tokens}</p>"
        f'<p id="{DASHBOARD_OUTPUT_TOKENS_ID}" style="margin: 0.1rem 0;">'
        f"output: {totals.output_tokens}</p>"
        f'<p id="{DASHBOARD_RUNTIME_SECONDS_ID}" style="margin: 0.1rem 0;">'
        f"runtime seconds: {totals.seconds_running:.1f}</p></section>"
        + _table(
            "Running Sessions",
            ["Issue", "State", "Session", "Turns", "Last Event", "Tokens"],
            DASHBOARD_RUNNING_ROWS_ID,
            format_running_rows_html(snapshot.running),
        )
        + _table(
            "Retry Queue",
            ["Issue", "Attempt", "Due At", "Error"],
            DASHBOARD_RETRY_ROWS_ID,
            format_retry_rows_html(snapshot.retrying),
        )
        + '<section style="margin: 1.25rem 0;">'
        '<h2 style="font-size: 1.1rem;">Rate Limits</h2>'
        f'<pre id="{DASHBOARD_RATE_LIMITS_ID}" data-testid="dashboard-rate-limits" '
        'style="padding: 0.9rem; border: 1px solid #cbd5e1; border-radius: 0.6rem; '
        'background: #f8fafc; overflow-x: auto; white-space: pre-wrap;">'
        f"{_text(format_rate_limits(snapshot.rate_limits))}</pre></section>"
        "</main>"
    )


def render_dashboard(snapshot: RuntimeSnapshot) -> str:
    """Render the full dashboard page with the snapshot embedded as JSON."""
    payload = snapshot.to_dict()
    payload["rate_limits"] = _sorted_json(payload["rate_limits"])
    snapshot_json = json.dumps(payload, separators=(",", ":"), ensure_ascii=False)
    escaped_snapshot_json = escape_json_for_html_script(snapshot_json)
    return (
        "<!DOCTYPE html>"
        '<html lang="en"><head>'
        '<meta charset="utf-8">'
        '<meta name="viewport" content="width=device-width, initial-scale=1">'
        "<title>Symphony Dashboard</title>"
        + _hydration_scripts()
        + f'<script id="{DASHBOARD_STATE_SCRIPT_ID}" type="application/json">'
        f"{escaped_snapshot_json}</script>"
        "</head><body>"
        + _app_html(snapshot)
        + "</body></html>"
    )