from datetime import datetime, timezone

import pytest
from hypothesis import given
from hypothesis import strategies as st

from symphony.errors import InvalidValueError
from symphony.issue import (
    BlockerRef,
    Issue,
    parse_issue_id,
    parse_issue_identifier,
    parse_issue_state,
    parse_issue_title,
    parse_label,
    parse_normalized_state,
)


@given(st.from_regex(r"[A-Za-z0-9._-]{1,40}", fullmatch=True))
def test_label_parser_outputs_lowercase_ascii(label):
    parsed = parse_label(label)
    assert parsed == parsed.lower()
    assert parsed == label.lower()


@given(st.text(alphabet=" \t\n\r\x0b\x0c\u00a0\u2003", min_size=1))
def test_issue_state_parser_rejects_whitespace_only(whitespace):
    with pytest.raises(InvalidValueError):
        parse_issue_state(whitespace)


def test_parsers_trim_input():
    assert parse_issue_id(" abc123 ") == "abc123"
    assert parse_issue_identifier(" ABC-123 ") == "ABC-123"
    assert parse_issue_title(" Fix orchestrator ") == "Fix orchestrator"
    assert parse_issue_state(" In Progress ") == "In Progress"


@pytest.mark.parametrize(
    ("parser", "field"),
    [
        (parse_issue_id, "issue.id"),
        (parse_issue_identifier, "issue.identifier"),
        (parse_issue_title, "issue.title"),
        (parse_issue_state, "issue.state"),
        (parse_normalized_state, "normalized_state"),
        (parse_label, "issue.label"),
    ],
)
def test_empty_values_are_rejected_with_field(parser, field):
    with pytest.raises(InvalidValueError) as excinfo:
        parser("   ")
    assert excinfo.value.field == field


def test_normalized_state_is_lowercase():
    assert parse_normalized_state("  In Progress ") == "in progress"


def test_label_with_space_is_rejected():
    with pytest.raises(InvalidValueError):
        parse_label("needs review")


def test_label_is_normalized():
    assert parse_label(" Backend ") == "backend"


def test_issue_to_dict():
    created = datetime(2026, 3, 5, 12, 0, 0, tzinfo=timezone.utc)
    issue = Issue(
        id="abc123",
        identifier="ABC-123",
        title="Fix orchestrator",
        description="description",
        priority=1,
        state="In Progress",
        branch_name="feature/abc-123",
        labels=["backend"],
        blocked_by=[BlockerRef(identifier="ABC-1", state="Done")],
        created_at=created,
    )
    data = issue.to_dict()
    assert data["identifier"] == "ABC-123"
    assert data["priority"] == 1
    assert data["labels"] == ["backend"]
    assert data["blocked_by"] == [{"id": None, "identifier": "ABC-1", "state": "Done"}]
    assert data["created_at"] == "2026-03-05T12:00:00Z"
    assert data["updated_at"] is None
    assert data["url"] is None


def test_issue_defaults_are_independent():
    first = Issue(id="a", identifier="A-1", title="t", state="Todo")
    second = Issue(id="b", identifier="B-1", title="t", state="Todo")
    first.labels.append("ops")
    assert second.labels == []