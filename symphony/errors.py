"""Error types raised by the domain model, the workflow loader, config building and prompts."""

from __future__ import annotations


class DomainError(ValueError):
    """Base class for domain validation failures."""


class InvalidValueError(DomainError):
    """A value was present but did not satisfy its constraints."""

    def __init__(self, field: str, reason: object) -> None:
        self.field = field
        self.reason = str(reason)
        super().__init__(f"invalid value for {field}: {self.reason}")


class MissingFieldError(DomainError):
    """A required field was absent."""

    def __init__(self, field: str) -> None:
        self.field = field
        super().__init__(f"missing required field: {field}")


def validation_error(field: str, err: object) -> InvalidValueError:
    """Wrap a validation failure for ``field`` as an :class:`InvalidValueError`."""
    return InvalidValueError(field, err)


class WorkflowError(Exception):
    """Base class for workflow file failures."""


class MissingWorkflowFileError(WorkflowError):
    def __init__(self) -> None:
        super().__init__("missing_workflow_file")


class WorkflowParseError(WorkflowError):
    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(f"workflow_parse_error: {detail}")


class WorkflowFrontMatterNotAMapError(WorkflowError):
    def __init__(self) -> None:
        super().__init__("workflow_front_matter_not_a_map")


class ConfigError(Exception):
    """Base class for service configuration failures."""


class UnsupportedTrackerKindError(ConfigError):
    def __init__(self) -> None:
        super().__init__("unsupported_tracker_kind")


class MissingTrackerApiKeyError(ConfigError):
    def __init__(self) -> None:
        super().__init__("missing_tracker_api_key")


class MissingTrackerProjectSlugError(ConfigError):
    def __init__(self) -> None:
        super().__init__("missing_tracker_project_slug")


class InvalidConfigError(ConfigError):
    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(f"invalid_config: {detail}")


class PromptError(Exception):
    """Base class for prompt template failures."""


class TemplateParseError(PromptError):
    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(f"template_parse_error: {detail}")


class TemplateRenderError(PromptError):
    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(f"template_render_error: {detail}")