import pytest

from symphony.errors import (
    ConfigError,
    DomainError,
    InvalidConfigError,
    InvalidValueError,
    MissingFieldError,
    MissingTrackerApiKeyError,
    MissingTrackerProjectSlugError,
    MissingWorkflowFileError,
    PromptError,
    TemplateParseError,
    TemplateRenderError,
    UnsupportedTrackerKindError,
    WorkflowError,
    WorkflowFrontMatterNotAMapError,
    WorkflowParseError,
    validation_error,
)


def test_invalid_value_message_and_fields():
    error = InvalidValueError("tracker.states", "at least one state is required")
    assert str(error) == "invalid value for tracker.states: at least one state is required"
    assert error.field == "tracker.states"
    assert error.reason == "at least one state is required"
    assert isinstance(error, DomainError)


def test_missing_field_message():
    error = MissingFieldError("workspace.root")
    assert str(error) == "missing required field: workspace.root"
    assert error.field == "workspace.root"


def test_validation_error_wraps_exception_text():
    cause = ValueError("value cannot be empty")
    error = validation_error("env", cause)
    assert isinstance(error, InvalidValueError)
    assert error.field == "env"
    assert error.reason == "value cannot be empty"


def test_domain_errors_are_value_errors():
    error = validation_error("issue.id", "bad")
    assert isinstance(error, ValueError)
    assert str(error) == "invalid value for issue.id: bad"
    assert error.field == "issue.id"
    assert error.reason == "bad"


@pytest.mark.parametrize(
    ("error", "message", "base"),
    [
        (MissingWorkflowFileError(), "missing_workflow_file", WorkflowError),
        (WorkflowParseError("oops"), "workflow_parse_error: oops", WorkflowError),
        (WorkflowFrontMatterNotAMapError(), "workflow_front_matter_not_a_map", WorkflowError),
        (UnsupportedTrackerKindError(), "unsupported_tracker_kind", ConfigError),
        (MissingTrackerApiKeyError(), "missing_tracker_api_key", ConfigError),
        (MissingTrackerProjectSlugError(), "missing_tracker_project_slug", ConfigError),
        (InvalidConfigError("oops"), "invalid_config: oops", ConfigError),
        (TemplateParseError("oops"), "template_parse_error: oops", PromptError),
        (TemplateRenderError("oops"), "template_render_error: oops", PromptError),
    ],
)
def test_error_messages(error, message, base):
    assert str(error) == message
    assert isinstance(error, base)


def test_detail_is_kept():
    assert TemplateRenderError("unknown variable: x").detail == "unknown variable: x"