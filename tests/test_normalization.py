from hypothesis import given
from hypothesis import strategies as st

from symphony.normalization import (
    normalize_label,
    normalize_state_name,
    parse_comma_separated,
    sanitize_workspace_key,
)


@given(st.text())
def test_normalized_states_are_trimmed_and_lowercase(value):
    normalized = normalize_state_name(value)
    assert normalized == normalized.strip()
    assert normalized == normalized.lower()


@given(st.text())
def test_sanitized_workspace_keys_only_use_allowed_characters(value):
    sanitized = sanitize_workspace_key(value)
    assert sanitized
    for character in sanitized:
        assert character.isascii() and (character.isalnum() or character in "._-")


def test_normalize_state_name_example():
    assert normalize_state_name("  In Progress ") == "in progress"


def test_normalize_label_example():
    assert normalize_label(" Backend ") == "backend"


def test_sanitize_keeps_allowed_characters():
    assert sanitize_workspace_key("MT-101") == "MT-101"


def test_sanitize_replaces_disallowed_characters():
    assert sanitize_workspace_key(" ABC 12/3 ") == "ABC_12_3"


def test_sanitize_empty_falls_back_to_issue():
    assert sanitize_workspace_key("   ") == "issue"


def test_parse_comma_separated_drops_empty_segments():
    assert parse_comma_separated("a, b,,c ,") == ["a", "b", "c"]


def test_parse_comma_separated_empty_input():
    assert parse_comma_separated("") == []