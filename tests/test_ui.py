import json
import re
from datetime import datetime, timezone

import pytest

from symphony.snapshot import (
    CodexTotalsSnapshot,
    RetrySnapshotRow,
    RunningSnapshotRow,
    RuntimeCounts,
    RuntimeSnapshot,
    TokenSnapshot,
)
from symphony.ui import (
    DASHBOARD_ROOT_ID,
    DASHBOARD_STATE_SCRIPT_ID,
    escape_html_text,
    escape_json_for_html_script,
    format_rate_limits,
    format_retry_rows_html,
    format_running_rows_html,
    output_name,
    render_dashboard,
    render_generated_at,
    site_pkg_dir,
    site_root,
)


def _utc(*args):
    return datetime(*args, tzinfo=timezone.utc)


def sample_snapshot():
    return RuntimeSnapshot(
        generated_at=_utc(2026, 3, 5, 12, 0, 0),
        counts=RuntimeCounts(running=1, retrying=1),
        running=[
            RunningSnapshotRow(
                issue_id="issue-1",
                issue_identifier="MT-101",
                state="In Progress",
                session_id="session-1",
                turn_count=2,
                last_event="turn/completed",
                last_message="working",
                started_at=_utc(2026, 3, 5, 11, 55, 0),
                last_event_at=_utc(2026, 3, 5, 11, 59, 0),
                tokens=TokenSnapshot(input_tokens=10, output_tokens=4, total_tokens=14),
            )
        ],
        retrying=[
            RetrySnapshotRow(
                issue_id="issue-2",
                issue_identifier="MT-102",
                attempt=3,
                due_at=_utc(2026, 3, 5, 12, 5, 0),
                error="turn_timeout",
            )
        ],
        codex_totals=CodexTotalsSnapshot(
            input_tokens=10, output_tokens=4, total_tokens=14, seconds_running=120.0
        ),
        rate_limits={"requests_remaining": 42},
    )


@pytest.fixture(autouse=True)
def _clear_site_env(monkeypatch):
    for name in ("LEPTOS_OUTPUT_NAME", "LEPTOS_SITE_PKG_DIR", "LEPTOS_SITE_ROOT"):
        monkeypatch.delenv(name, raising=False)


def test_render_dashboard_embeds_snapshot_and_controls():
    page = render_dashboard(sample_snapshot())

    assert "Symphony Runtime" in page
    assert DASHBOARD_ROOT_ID in page
    assert DASHBOARD_STATE_SCRIPT_ID in page
    assert "Refresh dashboard" in page
    assert "Hydration pending" in page
    assert f"/{site_pkg_dir()}/{output_name()}.js" in page
    assert "<!doctype html>" in page.lower()


def test_render_dashboard_escapes_embedded_json_script_content():
    snapshot = sample_snapshot()
    snapshot.running[0].last_message = "</script><script>alert(1)</script>"

    page = render_dashboard(snapshot)

    assert "</script><script>alert(1)</script>" not in page
    assert "\\u003c/script\\u003e\\u003cscript\\u003ealert(1)\\u003c/script\\u003e" in page


def test_embedded_snapshot_json_round_trips():
    page = render_dashboard(sample_snapshot())
    match = re.search(
        rf'<script id="{DASHBOARD_STATE_SCRIPT_ID}" type="application/json">(.*?)</script>',
        page,
    )
    assert match is not None
    payload = json.loads(match.group(1))
    assert payload["counts"] == {"running": 1, "retrying": 1}
    assert payload["running"][0]["issue_identifier"] == "MT-101"
    assert payload["rate_limits"] == {"requests_remaining": 42}


def test_render_dashboard_shows_counts_and_totals():
    page = render_dashboard(sample_snapshot())
    assert "input: 10" in page
    assert "output: 4" in page
    assert "runtime seconds: 120.0" in page
    assert "MT-102" in page
    assert "turn_timeout" in page


def test_render_generated_at_uses_rfc3339_offset():
    assert render_generated_at(sample_snapshot()) == "generated at 2026-03-05T12:00:00+00:00"


def test_format_rate_limits_pretty_prints_payload():
    assert format_rate_limits({"b": 1, "a": 2}) == '{\n  "a": 2,\n  "b": 1\n}'


def test_format_rate_limits_without_payload():
    assert format_rate_limits(None) == "No rate limit payload received yet"


def test_empty_running_rows_show_placeholder():
    rendered = format_running_rows_html([])
    assert "No active sessions" in rendered
    assert 'colspan="6"' in rendered


def test_empty_retry_rows_show_placeholder():
    rendered = format_retry_rows_html([])
    assert "No queued retries" in rendered
    assert 'colspan="4"' in rendered


def test_running_row_uses_dash_for_missing_values_and_escapes():
    row = RunningSnapshotRow(
        issue_id="id-1",
        issue_identifier="<MT-1>",
        state="Todo",
        started_at=_utc(2026, 1, 1),
    )
    rendered = format_running_rows_html([row])
    assert rendered.count("<tr>") == 1
    assert "&lt;MT-1&gt;" in rendered
    assert rendered.count(">-</td>") == 2
    assert ">0</td>" in rendered


def test_retry_row_renders_due_at_and_attempt():
    row = RetrySnapshotRow(
        issue_id="id-2", issue_identifier="MT-2", attempt=4, due_at=_utc(2026, 3, 5, 12, 5, 0)
    )
    rendered = format_retry_rows_html([row])
    assert ">4</td>" in rendered
    assert "2026-03-05T12:05:00+00:00" in rendered
    assert rendered.endswith(">-</td></tr>")


def test_escape_html_text_escapes_all_special_characters():
    assert escape_html_text("a&b<c>\"d'") == "a&amp;b&lt;c&gt;&quot;d&#39;"


def test_escape_json_for_html_script():
    assert escape_json_for_html_script("<a>&\u2028\u2029") == (
        "\\u003ca\\u003e\\u0026\\u2028\\u2029"
    )


def test_site_defaults():
    assert output_name() == "symphony-app"
    assert site_pkg_dir() == "pkg"
    assert site_root() == "target/site"


def test_site_settings_follow_environment(monkeypatch):
    monkeypatch.setenv("LEPTOS_OUTPUT_NAME", "custom")
    monkeypatch.setenv("LEPTOS_SITE_PKG_DIR", "assets")
    assert "/assets/custom.js" in render_dashboard(sample_snapshot())